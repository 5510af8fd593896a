# src/cache/fingerprint.py — v2
"""Cache keys and source content fingerprints.

Local sources are fingerprinted by their bytes; remote sources (locators
starting with "http") by the URL string alone, since their content is never
re-downloaded for verification.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from docpilot.cache.models import SourceSnapshot

_READ_BLOCK_SIZE = 1024 * 1024


def is_remote(locator: str) -> bool:
    """True for remote URLs (http/https), False for local paths."""
    return locator.startswith("http")


def normalize_locator(locator: str) -> str:
    """Canonical, case-folded form of a locator used for key derivation."""
    if is_remote(locator):
        return locator.lower()
    return str(Path(locator).expanduser().resolve()).lower()


def compute_cache_key(namespace: str, locator: str) -> str:
    """Deterministic key for a locator within a processing-strategy namespace."""
    material = f"{namespace}:{normalize_locator(locator)}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def hash_text(text: str) -> str:
    """SHA-256 of a UTF-8 string."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def hash_file(path: str | Path) -> str:
    """SHA-256 of file bytes, read in blocks."""
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for block in iter(lambda: fh.read(_READ_BLOCK_SIZE), b""):
            digest.update(block)
    return digest.hexdigest()


def snapshot_source(locator: str, now_ns: int) -> SourceSnapshot:
    """Capture the fingerprint and metadata of a source at write time.

    Blocking: callers on the event loop run this in a worker thread.

    Raises:
        OSError: If a local source cannot be stat'ed or read.
    """
    if is_remote(locator):
        return SourceSnapshot(
            content_fingerprint=hash_text(locator),
            byte_size=0,
            last_modified_ns=now_ns,
        )

    stat = os.stat(locator)
    return SourceSnapshot(
        content_fingerprint=hash_file(locator),
        byte_size=stat.st_size,
        last_modified_ns=stat.st_mtime_ns,
    )
