# src/llm/token_estimator.py — v1
"""Character-based token estimation and chunk-size derivation.

The estimator never calls a tokenizer: tokens are approximated from the
character count with a configurable overhead, which is accurate enough to
size chunks for a model's input budget.
"""

from __future__ import annotations

import logging
import math
import re

from docpilot.config.settings import Settings
from docpilot.core.models import TokenEstimate

logger = logging.getLogger(__name__)

_ALNUM_OR_SPACE = re.compile(r"[A-Za-z0-9\s]")
_TYPICAL_WORD_LENGTH = 4.5
_MAX_CONFIDENCE = 0.95


class TokenEstimator:
    """Estimate token counts from character counts."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._chars_per_token = 3.5 if settings is None else settings.chars_per_token
        self._overhead_ratio = (
            0.1 if settings is None else settings.token_overhead_ratio
        )
        self._prompt_overhead = (
            500 if settings is None else settings.prompt_overhead_tokens
        )
        self._chunk_size_ratio = 0.8 if settings is None else settings.chunk_size_ratio

    def estimate(self, text: str) -> int:
        """Approximate token count of a text span."""
        base_tokens = math.ceil(len(text) / self._chars_per_token)
        return math.ceil(base_tokens * (1 + self._overhead_ratio))

    def estimate_with_metadata(self, text: str) -> TokenEstimate:
        """Estimate tokens and attach a heuristic confidence score."""
        return TokenEstimate(
            tokens=self.estimate(text),
            characters=len(text),
            confidence=self._confidence(text),
        )

    def get_optimal_chunk_size(self, max_input_tokens: int) -> int:
        """Tokens per chunk leaving room for the prompt around it.

        May return zero or a negative number when the budget is smaller
        than the prompt overhead; callers decide whether that is fatal.
        """
        usable = max_input_tokens - self._prompt_overhead
        return math.floor(usable * self._chunk_size_ratio)

    def tokens_to_characters(self, tokens: int) -> int:
        return math.floor(tokens * self._chars_per_token)

    def characters_to_tokens(self, characters: int) -> int:
        return math.ceil(characters / self._chars_per_token)

    @staticmethod
    def _confidence(text: str) -> float:
        """Higher for prose-like text, lower for code or symbol-heavy text."""
        if not text:
            return 0.5
        alnum_ratio = len(_ALNUM_OR_SPACE.findall(text)) / len(text)
        words = text.split()
        avg_word_length = sum(len(w) for w in words) / len(words) if words else 0.0
        word_length_score = max(
            0.0, 1 - abs(avg_word_length - _TYPICAL_WORD_LENGTH) / 10
        )
        return min(
            _MAX_CONFIDENCE, 0.5 + alnum_ratio * 0.3 + word_length_score * 0.2
        )
