# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

Integration tests exercise real files on disk across store instances; the
only controlled input is the clock.
"""

from __future__ import annotations

import pytest

from docpilot.cache.cache_factory import create_outline_cache, create_summary_cache
from docpilot.cache.document_cache import DocumentCache
from docpilot.config.settings import Settings
from docpilot.core.models import OutlineNode


@pytest.fixture
def summary_cache(settings: Settings) -> DocumentCache[str]:
    return create_summary_cache(settings)


@pytest.fixture
def outline_cache(settings: Settings) -> DocumentCache[OutlineNode]:
    return create_outline_cache(settings)
