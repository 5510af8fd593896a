# tests/unit/config/test_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from docpilot.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_cache(self):
        s = Settings(_env_file=None)
        assert s.cache_root == Path("~/.docpilot/cache")
        assert s.cache_ttl_days == 7
        assert s.cache_max_entries == 100
        assert s.cache_hash_verify_max_mb == 50

    def test_default_text_processing(self):
        s = Settings(_env_file=None)
        assert s.chars_per_token == 3.5
        assert s.token_overhead_ratio == 0.1
        assert s.prompt_overhead_tokens == 500
        assert s.chunk_size_ratio == 0.8
        assert s.chunk_overlap_ratio == 0.1
        assert s.processing_batch_size == 3

    def test_default_logging(self):
        s = Settings(_env_file=None)
        assert s.log_format == "json"
        assert s.log_file is None

    def test_derived_values(self):
        s = Settings(_env_file=None)
        assert s.cache_ttl_seconds == 7 * 24 * 60 * 60
        assert s.cache_hash_verify_max_bytes == 50 * 1024 * 1024


class TestSettingsValidation:
    @pytest.mark.parametrize("ratio", [-0.1, 1.0, 2.0])
    def test_overlap_ratio_range(self, ratio):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, chunk_overlap_ratio=ratio)

    @pytest.mark.parametrize("ratio", [0.0, 1.5])
    def test_chunk_size_ratio_range(self, ratio):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, chunk_size_ratio=ratio)

    def test_batch_size_above_max(self):
        with pytest.raises(ConfigurationError, match="PROCESSING_BATCH_SIZE"):
            Settings(_env_file=None, processing_batch_size=20, processing_max_batch_size=10)

    def test_zero_capacity(self):
        with pytest.raises(ConfigurationError, match="CACHE_MAX_ENTRIES"):
            Settings(_env_file=None, cache_max_entries=0)

    def test_non_positive_ttl(self):
        with pytest.raises(ConfigurationError, match="CACHE_TTL_DAYS"):
            Settings(_env_file=None, cache_ttl_days=0)

    def test_errors_are_joined(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(_env_file=None, cache_max_entries=0, chars_per_token=0)
        assert "CHARS_PER_TOKEN" in str(exc_info.value)
        assert "CACHE_MAX_ENTRIES" in str(exc_info.value)


class TestEnvironment:
    def test_env_prefix(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DOCPILOT_CACHE_ROOT", str(tmp_path))
        monkeypatch.setenv("DOCPILOT_CACHE_MAX_ENTRIES", "7")
        s = Settings(_env_file=None)
        assert s.cache_root == tmp_path
        assert s.cache_max_entries == 7

    def test_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("DOCPILOT_CACHE_TTL_DAYS=2\nUNRELATED=1\n", encoding="utf-8")
        s = Settings(_env_file=env)
        assert s.cache_ttl_days == 2


class TestLoadSettings:
    def test_overrides(self):
        s = load_settings(_env_file=None, cache_max_entries=5)
        assert s.cache_max_entries == 5
