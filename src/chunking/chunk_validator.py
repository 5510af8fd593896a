# src/chunking/chunk_validator.py — v2
"""Detailed chunk inspection for diagnostics.

PageChunker.validate() answers only the budget question. This module
reports everything worth knowing about a chunk list:
- Chunks over budget (beyond the 10% tolerance) -> error
- Index gaps or reordering -> warning
- Page ranges running backwards -> warning
- Empty chunks -> warning
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from docpilot.chunking.page_chunker import BUDGET_TOLERANCE
from docpilot.core.models import ChunkingConfig, DocumentChunk


@dataclass
class ValidationResult:
    """Result of chunk inspection."""

    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def inspect_chunks(
    chunks: Sequence[DocumentChunk],
    config: ChunkingConfig,
) -> ValidationResult:
    """Inspect an ordered list of chunks.

    Args:
        chunks: Chunks as returned by PageChunker.chunk().
        config: The config they were produced with.

    Returns:
        ValidationResult; `valid` is False only for over-budget chunks.
    """
    result = ValidationResult()

    if not chunks:
        result.warnings.append("Empty chunk list")
        return result

    limit = config.max_tokens_per_chunk * BUDGET_TOLERANCE
    previous_start = 0

    for position, chunk in enumerate(chunks):
        if chunk.index != position:
            result.warnings.append(
                f"Chunk at position {position} has index {chunk.index}"
            )

        if chunk.token_count > limit:
            result.valid = False
            result.errors.append(
                f"Chunk {chunk.index} exceeds budget: "
                f"{chunk.token_count} > {config.max_tokens_per_chunk}"
            )

        if chunk.end_page < chunk.start_page:
            result.warnings.append(
                f"Chunk {chunk.index} page range runs backwards: "
                f"{chunk.start_page}-{chunk.end_page}"
            )
        if chunk.start_page < previous_start:
            result.warnings.append(
                f"Chunk {chunk.index} starts on page {chunk.start_page}, "
                f"before previous chunk start {previous_start}"
            )
        previous_start = chunk.start_page

        if not chunk.fresh_content.strip():
            result.warnings.append(f"Chunk {chunk.index} has no new content")

    return result
