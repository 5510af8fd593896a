# src/core/models.py — v3
"""Shared Pydantic domain models used across modules.

Chunking, token-estimate and outline types shared by the chunker, the
processor and the outline cache.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


# === TOKEN ESTIMATION ===


class TokenEstimate(BaseModel):
    """Token estimate with the evidence it was derived from."""

    model_config = ConfigDict(frozen=True)

    tokens: int
    characters: int
    estimation_method: str = "character-based"
    confidence: float = Field(ge=0.0, le=1.0)


# === CHUNK MODELS ===


class ChunkingConfig(BaseModel):
    """Parameters for one chunking call.

    Invalid values raise pydantic.ValidationError at construction: a bad
    budget is a caller bug, not a runtime condition.
    """

    model_config = ConfigDict(frozen=True)

    max_tokens_per_chunk: int = Field(gt=0)
    overlap_ratio: float = Field(default=0.1, ge=0.0, lt=1.0)
    sentence_boundary: bool = True
    paragraph_boundary: bool = True


class DocumentChunk(BaseModel):
    """A bounded, page-attributed segment of extracted document text."""

    content: str
    index: int = Field(ge=0)
    start_page: int
    end_page: int
    token_count: int = Field(ge=0)
    # Leading characters of content carried over from the previous chunk,
    # blank-line separator included.
    overlap_length: int = Field(default=0, ge=0)

    @property
    def fresh_content(self) -> str:
        """Content without the carried-over overlap prefix."""
        return self.content[self.overlap_length:]

    @property
    def page_count(self) -> int:
        return self.end_page - self.start_page + 1


# === OUTLINE MODELS ===


class OutlineNode(BaseModel):
    """One node of a generated document outline (the `outline` cache payload)."""

    title: str
    page: int | None = None
    children: list[OutlineNode] = Field(default_factory=list)

    def walk(self) -> list[OutlineNode]:
        """Depth-first list of this node and all descendants."""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.walk())
        return nodes
