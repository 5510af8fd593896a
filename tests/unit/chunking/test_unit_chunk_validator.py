# tests/unit/chunking/test_unit_chunk_validator.py — v1
"""Tests for chunking/chunk_validator.py."""

from __future__ import annotations

from docpilot.chunking.chunk_validator import inspect_chunks
from docpilot.chunking.page_chunker import PageChunker
from docpilot.core.models import ChunkingConfig, DocumentChunk

CONFIG = ChunkingConfig(max_tokens_per_chunk=100)


def _chunk(index: int, start: int = 1, end: int = 1, tokens: int = 10, content: str = "text") -> DocumentChunk:
    return DocumentChunk(
        content=content, index=index, start_page=start, end_page=end, token_count=tokens,
    )


class TestInspectChunks:
    def test_empty_list_warns(self):
        result = inspect_chunks([], CONFIG)
        assert result.valid is True
        assert "Empty chunk list" in result.warnings

    def test_clean_chunker_output(self, paged_text):
        chunker = PageChunker()
        config = ChunkingConfig(max_tokens_per_chunk=40)
        result = inspect_chunks(chunker.chunk(paged_text, config), config)
        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_over_budget_is_error(self):
        result = inspect_chunks([_chunk(0), _chunk(1, tokens=200)], CONFIG)
        assert result.valid is False
        assert any("exceeds budget" in e for e in result.errors)

    def test_index_gap_warns(self):
        result = inspect_chunks([_chunk(0), _chunk(2)], CONFIG)
        assert result.valid is True
        assert any("has index 2" in w for w in result.warnings)

    def test_backwards_page_range_warns(self):
        result = inspect_chunks([_chunk(0, start=3, end=2)], CONFIG)
        assert any("runs backwards" in w for w in result.warnings)

    def test_pages_out_of_order_warn(self):
        result = inspect_chunks([_chunk(0, start=4, end=4), _chunk(1, start=2, end=2)], CONFIG)
        assert any("before previous chunk start" in w for w in result.warnings)

    def test_overlap_only_chunk_warns(self):
        chunk = DocumentChunk(
            content="tail\n\n", index=0, start_page=1, end_page=1, token_count=2, overlap_length=6,
        )
        result = inspect_chunks([chunk], CONFIG)
        assert any("no new content" in w for w in result.warnings)
