# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides isolated settings, a controllable clock, sample source files and
page-marked text. All file I/O goes to pytest's tmp_path.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docpilot.config.settings import Settings
from docpilot.llm.token_estimator import TokenEstimator


class FakeClock:
    """Callable clock returning a settable epoch time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CharTokenEstimator(TokenEstimator):
    """One token per character, for predictable chunk boundaries."""

    def estimate(self, text: str) -> int:
        return len(text)


# === FIXTURES: Configuration ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Default settings with the cache rooted in tmp_path."""
    return Settings(_env_file=None, cache_root=tmp_path / "cache")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clock_factory() -> type[FakeClock]:
    """The FakeClock class, for tests that need a second clock."""
    return FakeClock


@pytest.fixture
def char_estimator() -> CharTokenEstimator:
    return CharTokenEstimator()


# === FIXTURES: Sample sources ===


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """A 10 KB local document."""
    path = tmp_path / "docs" / "report.pdf"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"%PDF-1.7\n" + b"x" * (10 * 1024 - 9))
    return path


@pytest.fixture
def remote_url() -> str:
    return "https://example.com/papers/Attention.pdf"


@pytest.fixture
def paged_text() -> str:
    """Three pages of extracted text with two paragraphs each."""
    return (
        "--- Page 1 ---\n"
        "The directive applies to essential entities.\n\n"
        "Member states designate competent authorities.\n"
        "--- Page 2 ---\n"
        "Incidents must be reported within 24 hours.\n\n"
        "A final report follows within one month.\n"
        "--- Page 3 ---\n"
        "Penalties are set by national law.\n\n"
        "The commission reviews the directive periodically."
    )
