# src/cache/base_cache_store.py — v2
"""Abstract cache store interface, generic over the cached artifact type."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from docpilot.cache.models import CacheEntryMetadata, CacheListing, CacheStats

T = TypeVar("T")


class BaseCacheStore(ABC, Generic[T]):
    """Unified interface for per-namespace artifact caches.

    Implementations never raise from these methods: every failure degrades
    to "not cached".
    """

    @property
    @abstractmethod
    def namespace(self) -> str:
        """Processing-strategy namespace (e.g., 'summary', 'outline')."""

    @abstractmethod
    async def get(self, locator: str) -> T | None:
        """Return the cached artifact for a locator, or None on any miss."""

    @abstractmethod
    async def set(self, locator: str, data: T, metadata: CacheEntryMetadata) -> None:
        """Store an artifact for a locator, replacing any previous entry."""

    @abstractmethod
    async def invalidate(self, locator: str) -> None:
        """Remove the entry for a locator, if present."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""

    @abstractmethod
    async def stats(self) -> CacheStats:
        """Aggregate statistics over well-formed entries."""

    @abstractmethod
    async def list_all(self) -> list[CacheListing]:
        """Materialized snapshot of all well-formed entries."""
