# src/cache/document_cache.py — v2
"""JSON file-backed document cache (one durable file per namespace).

The in-memory map mirrors a single JSON document:

    {"version": "1.0.0", "entries": {<cache key>: <entry>}}

Every mutation (set, invalidate, clear, expiry, eviction) rewrites the whole
file before the operation completes; the file, not memory, is authoritative
on the next load. A version mismatch or an unparsable file discards the
file. Malformed entries are skipped one by one.

The cache is an optimization only: no public method raises. Failures are
logged and resolved to "not cached".
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import os
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from docpilot.cache.base_cache_store import BaseCacheStore, T
from docpilot.cache.fingerprint import (
    compute_cache_key,
    hash_file,
    is_remote,
    snapshot_source,
)
from docpilot.cache.models import (
    CacheEntry,
    CacheEntryMetadata,
    CacheListing,
    CacheStats,
)
from docpilot.config.settings import Settings

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = "1.0.0"

_DEFAULT_CACHE_ROOT = Path("~/.docpilot/cache")
_DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60
_DEFAULT_MAX_ENTRIES = 100
_DEFAULT_HASH_VERIFY_MAX_BYTES = 50 * 1024 * 1024


class DocumentCache(BaseCacheStore[T]):
    """Persistent, validity-checked artifact cache for one namespace.

    Args:
        namespace: Processing-strategy namespace; part of every cache key.
        cache_path: Durable file. Defaults to
            ``{settings.cache_root}/{namespace}-cache.json``.
        payload_type: Type of the cached artifact. Payloads are validated
            and serialized through a pydantic TypeAdapter for this type.
        settings: Application settings (TTL, capacity, hash threshold).
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        namespace: str,
        cache_path: str | Path | None = None,
        payload_type: Any = str,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._namespace = namespace
        if cache_path is None:
            root = _DEFAULT_CACHE_ROOT if settings is None else settings.cache_root
            cache_path = Path(root).expanduser() / f"{namespace}-cache.json"
        self._path = Path(cache_path).expanduser()

        if settings is None:
            self._ttl_seconds: float = _DEFAULT_TTL_SECONDS
            self._max_entries = _DEFAULT_MAX_ENTRIES
            self._hash_verify_max_bytes = _DEFAULT_HASH_VERIFY_MAX_BYTES
        else:
            self._ttl_seconds = settings.cache_ttl_seconds
            self._max_entries = settings.cache_max_entries
            self._hash_verify_max_bytes = settings.cache_hash_verify_max_bytes

        self._payload: TypeAdapter[Any] = TypeAdapter(payload_type)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._loaded = False
        # Serializes read-modify-write of the map and its durable rewrite.
        self._lock = asyncio.Lock()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def path(self) -> Path:
        return self._path

    # --- Public API ---

    async def load(self) -> None:
        """Load the durable file now instead of on first use."""
        try:
            async with self._lock:
                await self._ensure_loaded()
        except Exception:
            logger.exception("Error loading %s cache from %s", self._namespace, self._path)

    async def get(self, locator: str) -> T | None:
        try:
            async with self._lock:
                await self._ensure_loaded()
                key = compute_cache_key(self._namespace, locator)
                entry = self._entries.get(key)

                if entry is None:
                    logger.debug("No %s cache entry for %s", self._namespace, locator)
                    return None

                if self._is_expired(entry, self._clock()):
                    logger.debug("%s cache entry expired for %s", self._namespace, locator)
                    del self._entries[key]
                    await self._persist()
                    return None

                if not is_remote(locator):
                    unchanged = await asyncio.to_thread(
                        self._is_source_unchanged, locator, entry
                    )
                    if not unchanged:
                        logger.debug(
                            "%s cache invalidated by source change: %s",
                            self._namespace, locator,
                        )
                        del self._entries[key]
                        await self._persist()
                        return None

                logger.info("%s cache hit for %s", self._namespace, locator)
                return self._copy(entry.data)
        except Exception:
            logger.exception("Error retrieving cached %s for %s", self._namespace, locator)
            return None

    async def set(self, locator: str, data: T, metadata: CacheEntryMetadata) -> None:
        try:
            async with self._lock:
                await self._ensure_loaded()
                key = compute_cache_key(self._namespace, locator)
                payload = self._copy(self._payload.validate_python(data))
                now = self._clock()
                snapshot = await asyncio.to_thread(
                    snapshot_source, locator, int(now * 1_000_000_000)
                )

                self._entries[key] = CacheEntry(
                    data=payload,
                    created_at=now,
                    content_fingerprint=snapshot.content_fingerprint,
                    byte_size=snapshot.byte_size,
                    last_modified_ns=snapshot.last_modified_ns,
                    source_locator=locator,
                    processing_strategy=metadata.processing_strategy,
                    input_text_length=metadata.input_text_length,
                )

                self._evict(now)
                await self._persist()
            logger.info("Cached %s for %s", self._namespace, locator)
        except Exception:
            logger.exception("Error caching %s for %s", self._namespace, locator)

    async def invalidate(self, locator: str) -> None:
        try:
            async with self._lock:
                await self._ensure_loaded()
                key = compute_cache_key(self._namespace, locator)
                if self._entries.pop(key, None) is None:
                    return
                await self._persist()
            logger.info("%s cache invalidated for %s", self._namespace, locator)
        except Exception:
            logger.exception(
                "Error invalidating %s cache entry for %s", self._namespace, locator
            )

    async def clear(self) -> None:
        try:
            async with self._lock:
                self._entries = {}
                self._loaded = True
                await self._persist()
            logger.info("%s cache cleared", self._namespace)
        except Exception:
            logger.exception("Error clearing %s cache", self._namespace)

    async def stats(self) -> CacheStats:
        try:
            async with self._lock:
                await self._ensure_loaded()
                return self._compute_stats()
        except Exception:
            logger.exception("Error computing %s cache stats", self._namespace)
            return CacheStats()

    async def list_all(self) -> list[CacheListing]:
        try:
            async with self._lock:
                await self._ensure_loaded()
                return [
                    CacheListing(
                        locator=entry.source_locator,
                        data=self._copy(entry.data),
                        created_at=_to_datetime(entry.created_at),
                    )
                    for entry in self._entries.values()
                    if self._is_well_formed(entry)
                ]
        except Exception:
            logger.exception("Error listing %s cache entries", self._namespace)
            return []

    # --- Validity ---

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self._ttl_seconds

    def _is_source_unchanged(self, locator: str, entry: CacheEntry) -> bool:
        """Compare a local file with its snapshot. Blocking."""
        try:
            stat = os.stat(locator)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Cannot stat %s for %s validation: %s", locator, self._namespace, e)
            return False

        if (
            stat.st_size != entry.byte_size
            or stat.st_mtime_ns != entry.last_modified_ns
        ):
            return False

        # Large files: size + mtime match is taken as proof of no change.
        if stat.st_size >= self._hash_verify_max_bytes:
            return True

        try:
            return hash_file(locator) == entry.content_fingerprint
        except OSError as e:
            logger.warning("Cannot hash %s for %s validation: %s", locator, self._namespace, e)
            return False

    @staticmethod
    def _is_well_formed(entry: object) -> bool:
        if not isinstance(entry, CacheEntry):
            return False
        created_at = getattr(entry, "created_at", None)
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            return False
        if not isinstance(getattr(entry, "source_locator", None), str):
            return False
        return getattr(entry, "data", None) is not None

    # --- Eviction ---

    def _evict(self, now: float) -> None:
        """Bring the map back to capacity: expired entries first, then oldest-created."""
        if len(self._entries) <= self._max_entries:
            return

        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            del self._entries[key]

        overflow = len(self._entries) - self._max_entries
        if overflow > 0:
            by_age = sorted(self._entries.items(), key=lambda item: item[1].created_at)
            for key, _ in by_age[:overflow]:
                del self._entries[key]

        logger.debug(
            "%s cache cleanup completed: %d expired removed, %d entries left",
            self._namespace, len(expired), len(self._entries),
        )

    # --- Stats ---

    def _compute_stats(self) -> CacheStats:
        total_bytes = 0
        oldest: float | None = None
        count = 0

        for entry in self._entries.values():
            if not self._is_well_formed(entry):
                logger.warning("Malformed %s cache entry found, skipping", self._namespace)
                continue
            try:
                total_bytes += self._payload_size(entry.data)
            except (TypeError, ValueError, PydanticSerializationError) as e:
                logger.warning("Unserializable %s cache payload, skipping: %s", self._namespace, e)
                continue
            count += 1
            if oldest is None or entry.created_at < oldest:
                oldest = entry.created_at

        return CacheStats(
            total_entries=count,
            total_size_kb=math.floor(total_bytes / 1024 + 0.5),
            oldest_entry=_to_datetime(oldest) if oldest is not None else None,
        )

    def _copy(self, data: Any) -> Any:
        """Detached copy of a payload; stored entries never share objects with callers."""
        return self._payload.validate_python(self._payload.dump_python(data))

    def _payload_size(self, data: Any) -> int:
        if isinstance(data, str):
            return len(data.encode("utf-8"))
        return len(self._payload.dump_json(data))

    # --- Durable file ---

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._entries = await asyncio.to_thread(self._read_durable)
        self._loaded = True

    def _read_durable(self) -> dict[str, CacheEntry]:
        """Read and validate the durable file. Blocking."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.exists():
            logger.debug("No existing %s cache file at %s", self._namespace, self._path)
            return {}

        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "Error loading %s cache, starting fresh: %s", self._namespace, e
            )
            self._discard_file()
            return {}

        if not isinstance(document, dict):
            logger.warning("Unexpected %s cache file layout, starting fresh", self._namespace)
            self._discard_file()
            return {}

        if document.get("version") != CACHE_FORMAT_VERSION:
            logger.info(
                "%s cache version mismatch (%r != %r), clearing cache",
                self._namespace, document.get("version"), CACHE_FORMAT_VERSION,
            )
            self._discard_file()
            return {}

        raw_entries = document.get("entries")
        if not isinstance(raw_entries, dict):
            logger.warning("Missing %s cache entries map, starting fresh", self._namespace)
            self._discard_file()
            return {}

        now = self._clock()
        entries: dict[str, CacheEntry] = {}
        for key, raw in raw_entries.items():
            entry = self._parse_entry(key, raw)
            if entry is None:
                continue
            if self._is_expired(entry, now):
                logger.debug("Dropping expired %s cache entry %s", self._namespace, key)
                continue
            entries[key] = entry

        logger.info("Loaded %d %s cache entries", len(entries), self._namespace)
        return entries

    def _parse_entry(self, key: str, raw: Any) -> CacheEntry | None:
        try:
            entry = CacheEntry.model_validate(raw)
            return entry.model_copy(
                update={"data": self._payload.validate_python(entry.data)}
            )
        except ValidationError as e:
            logger.warning(
                "Skipping malformed %s cache entry %s (%d errors)",
                self._namespace, key, e.error_count(),
            )
            return None

    def _discard_file(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Error removing %s cache file %s: %s", self._namespace, self._path, e)

    def _serialize(self) -> str:
        entries: dict[str, Any] = {}
        for key, entry in self._entries.items():
            record = {"data": self._payload.dump_python(entry.data, mode="json")}
            record.update(entry.model_dump(exclude={"data"}))
            entries[key] = record
        return json.dumps(
            {"version": CACHE_FORMAT_VERSION, "entries": entries},
            indent=2,
            ensure_ascii=False,
        )

    async def _persist(self) -> None:
        text = self._serialize()
        await asyncio.to_thread(_atomic_write_text, self._path, text)
        logger.debug(
            "%s cache saved with %d entries", self._namespace, len(self._entries)
        )


def _atomic_write_text(path: Path, text: str) -> None:
    """Write to a temporary sibling and atomically replace the destination."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f"{path.name}.tmp.{uuid.uuid4().hex}")
    try:
        with tmp.open("w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def _to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
