# src/chunking/page_chunker.py — v2
"""Page-aware semantic chunking for token-limited downstream processing.

Input text is expected to carry page markers (``--- Page N ---``) as
produced by text extraction. Pages are split into paragraphs, paragraphs
are packed into chunks under a token budget, and each new chunk starts
with the tail of the previous one so context survives the boundary.
Paragraphs are never split: a single paragraph larger than the budget
becomes an oversized chunk of its own.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Sequence

from docpilot.config.settings import Settings
from docpilot.core.models import ChunkingConfig, DocumentChunk
from docpilot.llm.token_estimator import TokenEstimator

logger = logging.getLogger(__name__)

_PAGE_MARKER = re.compile(r"--- Page (\d+) ---")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n+")
_SEPARATOR = "\n\n"

# Chunks may exceed the budget by this factor before validate() rejects them.
BUDGET_TOLERANCE = 1.1


class PageChunker:
    """Split page-marked text into bounded, overlapping chunks."""

    def __init__(
        self,
        settings: Settings | None = None,
        estimator: TokenEstimator | None = None,
    ) -> None:
        self._estimator = estimator or TokenEstimator(settings)
        self._overlap_ratio = 0.1 if settings is None else settings.chunk_overlap_ratio
        self._time_per_chunk_ms = (
            3000 if settings is None else settings.chunk_processing_time_ms
        )
        self._time_variability = (
            0.5 if settings is None else settings.chunk_processing_variability
        )

    @property
    def estimator(self) -> TokenEstimator:
        return self._estimator

    def default_config(self, max_input_tokens: int) -> ChunkingConfig:
        """Chunking config sized for a model's input token budget.

        Raises:
            ValueError: If the budget leaves no room after prompt overhead.
        """
        max_tokens = self._estimator.get_optimal_chunk_size(max_input_tokens)
        if max_tokens <= 0:
            raise ValueError(
                f"max_input_tokens={max_input_tokens} leaves no room for chunk content"
            )
        return ChunkingConfig(
            max_tokens_per_chunk=max_tokens,
            overlap_ratio=self._overlap_ratio,
            sentence_boundary=True,
            paragraph_boundary=True,
        )

    def chunk(self, text: str, config: ChunkingConfig) -> list[DocumentChunk]:
        """Split page-marked text into chunks. Pure and deterministic.

        A chunk's end_page is the last page that contributed a paragraph to
        it, so a split in the middle of a page ends the closed chunk on that
        same page and ranges never run backwards. Each chunk after a split
        starts on the page of its first fresh paragraph.

        Raises:
            TypeError: If config is not a ChunkingConfig.
        """
        if not isinstance(config, ChunkingConfig):
            raise TypeError(
                f"config must be a ChunkingConfig, got {type(config).__name__}"
            )

        logger.info(
            "Creating semantic chunks",
            extra={"data": {
                "text_length": len(text),
                "max_tokens_per_chunk": config.max_tokens_per_chunk,
                "overlap_ratio": config.overlap_ratio,
            }},
        )

        chunks: list[DocumentChunk] = []
        buffer = ""
        buffer_tokens = 0
        overlap_length = 0
        start_page = 1
        last_page = 1

        for page_number, page_text in self._split_pages(text):
            units = (
                self._split_paragraphs(page_text)
                if config.paragraph_boundary
                else [page_text]
            )
            for paragraph in units:
                paragraph_tokens = self._estimator.estimate(paragraph)

                if buffer and buffer_tokens + paragraph_tokens > config.max_tokens_per_chunk:
                    chunks.append(DocumentChunk(
                        content=buffer,
                        index=len(chunks),
                        start_page=start_page,
                        end_page=last_page,
                        token_count=buffer_tokens,
                        overlap_length=overlap_length,
                    ))
                    overlap = self._tail(buffer, config.overlap_ratio)
                    if overlap:
                        buffer = f"{overlap}{_SEPARATOR}{paragraph}"
                        overlap_length = len(overlap) + len(_SEPARATOR)
                    else:
                        buffer = paragraph
                        overlap_length = 0
                    buffer_tokens = self._estimator.estimate(buffer)
                    start_page = page_number
                elif buffer:
                    buffer = f"{buffer}{_SEPARATOR}{paragraph}"
                    buffer_tokens += paragraph_tokens
                else:
                    buffer = paragraph
                    buffer_tokens = paragraph_tokens
                    overlap_length = 0
                    start_page = page_number
                last_page = page_number

        if buffer:
            chunks.append(DocumentChunk(
                content=buffer,
                index=len(chunks),
                start_page=start_page,
                end_page=last_page,
                token_count=buffer_tokens,
                overlap_length=overlap_length,
            ))

        logger.info("Created %d semantic chunks", len(chunks))
        return chunks

    def estimate_processing_time(self, chunks: Sequence[DocumentChunk]) -> int:
        """Rough wall-clock estimate in milliseconds, for progress reporting only."""
        return math.floor(
            len(chunks) * self._time_per_chunk_ms * (1 + self._time_variability)
        )

    def validate(self, chunks: Sequence[DocumentChunk], config: ChunkingConfig) -> bool:
        """True if every chunk is within 10% of the token budget."""
        limit = config.max_tokens_per_chunk * BUDGET_TOLERANCE
        for chunk in chunks:
            if chunk.token_count > limit:
                logger.warning(
                    "Chunk %d exceeds token limit (%d > %d)",
                    chunk.index, chunk.token_count, config.max_tokens_per_chunk,
                )
                return False
        return True

    @staticmethod
    def _split_pages(text: str) -> list[tuple[int, str]]:
        """Return (page number, stripped page text) pairs, skipping empty pages.

        Text before the first marker belongs to the first marked page; text
        without any marker is page 1.
        """
        parts = _PAGE_MARKER.split(text)
        preamble = parts[0].strip()
        if len(parts) == 1:
            return [(1, preamble)] if preamble else []

        pages: list[tuple[int, str]] = []
        if preamble:
            pages.append((int(parts[1]), preamble))
        for i in range(1, len(parts), 2):
            page_text = parts[i + 1].strip()
            if page_text:
                pages.append((int(parts[i]), page_text))
        return pages

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]

    @staticmethod
    def _tail(text: str, ratio: float) -> str:
        """Trailing `ratio` share of text (by characters), whitespace-trimmed."""
        size = math.floor(len(text) * ratio)
        if size <= 0:
            return ""
        return text[-size:].strip()
