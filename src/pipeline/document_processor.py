# src/pipeline/document_processor.py — v2
"""Cache-aware document processing.

Flow for one document:
  1. Cache lookup by source locator -> return the stored artifact on a hit.
  2. Text within one chunk budget -> a single `summarize` call.
  3. Larger text -> page-aware chunking, `summarize` per chunk in batches,
     then `consolidate` over the partial results.
  4. Store the artifact. A failed cache write never fails processing.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Sequence

from docpilot.cache.base_cache_store import BaseCacheStore, T
from docpilot.cache.models import CacheEntryMetadata
from docpilot.chunking.page_chunker import PageChunker
from docpilot.config.settings import Settings
from docpilot.core.models import DocumentChunk
from docpilot.llm.token_estimator import TokenEstimator
from docpilot.logging.context import (
    clear_context,
    set_document_context,
    set_operation_context,
)
from docpilot.pipeline.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)

STRATEGY_CACHE = "cache"
STRATEGY_SINGLE = "single"
STRATEGY_CHUNKED = "chunked"

Summarize = Callable[[str], Awaitable[Any]]
Consolidate = Callable[[list[Any], list[DocumentChunk]], Awaitable[Any]]


class ChunkProcessingError(Exception):
    """A chunk could not be processed, retries included."""

    def __init__(self, chunk_index: int, cause: Exception):
        self.chunk_index = chunk_index
        self.cause = cause
        super().__init__(f"Failed to process chunk {chunk_index}: {cause}")


@dataclass
class ProcessingResult(Generic[T]):
    """Outcome of processing one document."""

    data: T
    from_cache: bool
    strategy: str
    chunk_count: int = 0
    duration_ms: int = 0


class DocumentProcessor(Generic[T]):
    """Run expensive per-document processing at most once per source.

    Args:
        cache: Store for the final artifact (one namespace per strategy).
        chunker: Page chunker. Built from settings when omitted.
        settings: Application settings (batch size, default token budget).
        retry_configs: Retry policy for per-chunk calls.
    """

    def __init__(
        self,
        cache: BaseCacheStore[T],
        chunker: PageChunker | None = None,
        settings: Settings | None = None,
        retry_configs: dict[str, RetryConfig] | None = None,
    ) -> None:
        self._cache = cache
        self._chunker = chunker or PageChunker(settings=settings)
        self._batch_size = 3 if settings is None else settings.processing_batch_size
        self._default_max_input_tokens = (
            4000 if settings is None else settings.default_max_input_tokens
        )
        self._retry_configs = retry_configs

    @property
    def estimator(self) -> TokenEstimator:
        return self._chunker.estimator

    async def process(
        self,
        locator: str,
        text: str,
        *,
        summarize: Summarize,
        consolidate: Consolidate,
        max_input_tokens: int | None = None,
    ) -> ProcessingResult[T]:
        """Return the artifact for a document, computing and caching it on a miss.

        Raises:
            RetryExhausted: If the single-call path fails after retries.
            ChunkProcessingError: If a chunk fails after retries.
        """
        start = time.monotonic()
        set_document_context(locator, self._cache.namespace)
        try:
            cached = await self._cache.get(locator)
            if cached is not None:
                return ProcessingResult(
                    data=cached,
                    from_cache=True,
                    strategy=STRATEGY_CACHE,
                    duration_ms=_elapsed_ms(start),
                )

            budget = max_input_tokens or self._default_max_input_tokens
            config = self._chunker.default_config(budget)
            estimated = self.estimator.estimate(text)
            logger.info(
                "Processing %d characters (~%d tokens)", len(text), estimated,
            )

            if estimated <= config.max_tokens_per_chunk:
                set_operation_context("summarize", STRATEGY_SINGLE)
                data = await with_retry(
                    summarize, text,
                    operation="summarize", retry_configs=self._retry_configs,
                )
                strategy = STRATEGY_SINGLE
                chunk_count = 1
            else:
                set_operation_context("chunk")
                chunks = self._chunker.chunk(text, config)
                if not self._chunker.validate(chunks, config):
                    logger.warning(
                        "Some chunks exceed the %d-token budget; processing anyway",
                        config.max_tokens_per_chunk,
                    )
                logger.info(
                    "Created %d chunks, estimated %d ms",
                    len(chunks), self._chunker.estimate_processing_time(chunks),
                )
                partials = await self._process_chunks(chunks, summarize)
                set_operation_context("consolidate")
                data = await consolidate(partials, chunks)
                strategy = STRATEGY_CHUNKED
                chunk_count = len(chunks)

            await self._cache.set(
                locator,
                data,
                CacheEntryMetadata(
                    processing_strategy=strategy,
                    input_text_length=len(text),
                ),
            )
            return ProcessingResult(
                data=data,
                from_cache=False,
                strategy=strategy,
                chunk_count=chunk_count,
                duration_ms=_elapsed_ms(start),
            )
        finally:
            clear_context()

    async def _process_chunks(
        self, chunks: Sequence[DocumentChunk], summarize: Summarize,
    ) -> list[Any]:
        """Summarize chunks in batches, preserving chunk order.

        The first failure in a batch cancels the rest of that batch; no
        chunk call outlives the error raised to the caller.
        """
        results: list[Any] = []
        for offset in range(0, len(chunks), self._batch_size):
            batch = chunks[offset:offset + self._batch_size]
            set_operation_context("summarize", f"batch {offset // self._batch_size + 1}")
            tasks = [asyncio.create_task(self._process_one(c, summarize)) for c in batch]
            try:
                results.extend(await asyncio.gather(*tasks))
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
        return results

    async def _process_one(self, chunk: DocumentChunk, summarize: Summarize) -> Any:
        logger.debug(
            "Processing chunk %d (pages %d-%d)",
            chunk.index, chunk.start_page, chunk.end_page,
        )
        try:
            return await with_retry(
                summarize, chunk.content,
                operation=f"chunk {chunk.index}",
                retry_configs=self._retry_configs,
            )
        except Exception as e:
            raise ChunkProcessingError(chunk.index, e) from e


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
