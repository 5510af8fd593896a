# src/cache/models.py — v2
"""Cache domain models: CacheEntry, CacheEntryMetadata, SourceSnapshot, CacheStats, CacheListing."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr


class CacheEntryMetadata(BaseModel):
    """Caller-supplied description of how an artifact was produced."""

    processing_strategy: str
    input_text_length: int


class SourceSnapshot(BaseModel):
    """Content fingerprint and file metadata captured when an entry is written."""

    model_config = ConfigDict(frozen=True)

    content_fingerprint: str
    byte_size: int
    last_modified_ns: int


class CacheEntry(BaseModel):
    """Single cache entry linking a source locator to a derived artifact.

    Primitive fields are strict so that a hand-edited or corrupted durable
    file (a string where a number belongs) is rejected rather than coerced.
    The payload is validated separately against the store's payload type.
    """

    model_config = ConfigDict(frozen=True)

    data: Any
    created_at: StrictFloat | StrictInt
    content_fingerprint: StrictStr
    byte_size: StrictInt
    last_modified_ns: StrictInt
    source_locator: StrictStr
    processing_strategy: StrictStr
    input_text_length: StrictInt


class CacheStats(BaseModel):
    """Aggregate view of one cache namespace."""

    total_entries: int = 0
    total_size_kb: int = 0
    oldest_entry: datetime | None = None


class CacheListing(BaseModel):
    """One row of a cache enumeration for diagnostic surfaces."""

    locator: str
    data: Any
    created_at: datetime
