# src/cache/cache_factory.py — v3
"""Factory for per-namespace document caches.

Each processing strategy gets its own store and durable file, so the
same locator cached under two namespaces never collides.
"""

from __future__ import annotations

import re
from typing import Any

from docpilot.cache.document_cache import DocumentCache
from docpilot.config.settings import Settings
from docpilot.core.models import OutlineNode

SUMMARY_NAMESPACE = "summary"
OUTLINE_NAMESPACE = "outline"

# Payload type per known namespace
NAMESPACE_PAYLOADS: dict[str, Any] = {
    SUMMARY_NAMESPACE: str,
    OUTLINE_NAMESPACE: OutlineNode,
}

_NAMESPACE_PATTERN = re.compile(r"^[a-z0-9_-]+$")


def create_document_cache(
    namespace: str,
    settings: Settings | None = None,
    payload_type: Any = None,
) -> DocumentCache[Any]:
    """Instantiate the cache for one processing-strategy namespace.

    Args:
        namespace: Namespace name; also names the durable file.
        settings: Application settings. Defaults apply when None.
        payload_type: Artifact type. Defaults to the registered type for
            known namespaces, else str.

    Raises:
        ValueError: If the namespace is not a safe file-name component.
    """
    if not _NAMESPACE_PATTERN.match(namespace):
        raise ValueError(f"Invalid cache namespace: {namespace!r}")

    if payload_type is None:
        payload_type = NAMESPACE_PAYLOADS.get(namespace, str)

    return DocumentCache(namespace, payload_type=payload_type, settings=settings)


def create_summary_cache(settings: Settings | None = None) -> DocumentCache[str]:
    """Cache for generated summaries (plain text)."""
    return create_document_cache(SUMMARY_NAMESPACE, settings=settings)


def create_outline_cache(settings: Settings | None = None) -> DocumentCache[OutlineNode]:
    """Cache for generated outline structures."""
    return create_document_cache(OUTLINE_NAMESPACE, settings=settings)
