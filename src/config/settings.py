# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache, text-processing and logging settings.
Components receive a Settings instance through their constructor and fall
back to these defaults when given None.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DOCPILOT_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_root: Path = Path("~/.docpilot/cache")
    cache_ttl_days: float = 7
    cache_max_entries: int = 100
    cache_hash_verify_max_mb: float = 50

    # === Token estimation ===
    chars_per_token: float = 3.5
    token_overhead_ratio: float = 0.1
    prompt_overhead_tokens: int = 500
    default_max_input_tokens: int = 4000

    # === Chunking ===
    chunk_size_ratio: float = 0.8
    chunk_overlap_ratio: float = 0.1
    chunk_processing_time_ms: int = 3000
    chunk_processing_variability: float = 0.5

    # === Processing ===
    processing_batch_size: int = 3
    processing_max_batch_size: int = 10

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("chunk_overlap_ratio")
    @classmethod
    def validate_overlap_ratio(cls, v: float) -> float:
        """Overlap is a fraction of the closed chunk and must stay below 1."""
        if not 0 <= v < 1:
            raise ValueError("chunk_overlap_ratio must be in [0, 1)")
        return v

    @field_validator("chunk_size_ratio")
    @classmethod
    def validate_chunk_size_ratio(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("chunk_size_ratio must be in (0, 1]")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.chars_per_token <= 0:
            errors.append("CHARS_PER_TOKEN must be > 0")
        if self.cache_max_entries < 1:
            errors.append("CACHE_MAX_ENTRIES must be >= 1")
        if self.cache_ttl_days <= 0:
            errors.append("CACHE_TTL_DAYS must be > 0")
        if self.processing_batch_size < 1:
            errors.append("PROCESSING_BATCH_SIZE must be >= 1")
        if self.processing_batch_size > self.processing_max_batch_size:
            errors.append(
                "PROCESSING_BATCH_SIZE must be <= PROCESSING_MAX_BATCH_SIZE"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_ttl_seconds(self) -> float:
        """Entry time-to-live in seconds."""
        return self.cache_ttl_days * 24 * 60 * 60

    @property
    def cache_hash_verify_max_bytes(self) -> int:
        """Files at or above this size skip the content re-hash on lookup."""
        return int(self.cache_hash_verify_max_mb * 1024 * 1024)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
