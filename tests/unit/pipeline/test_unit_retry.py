# tests/unit/pipeline/test_unit_retry.py — v2
"""Tests for pipeline/retry.py."""

from __future__ import annotations

import pytest

from docpilot.pipeline.retry import (
    RetryConfig,
    RetryExhausted,
    _compute_delay,
    classify_error,
    with_retry,
)

NO_WAIT = {
    "timeout": RetryConfig(max_retries=2, base_delay_s=0, jitter=False),
    "rate_limit": RetryConfig(max_retries=3, base_delay_s=0, jitter=False),
}


class Flaky:
    """Async callable failing with the given errors before succeeding."""

    def __init__(self, *errors: Exception, result: str = "ok"):
        self._errors = list(errors)
        self._result = result
        self.calls = 0

    async def __call__(self, *args, **kwargs):
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return self._result


class TestClassifyError:
    @pytest.mark.parametrize("error,expected", [
        (RuntimeError("HTTP 429 Too Many Requests"), "rate_limit"),
        (RuntimeError("Rate limit reached"), "rate_limit"),
        (TimeoutError(), "timeout"),
        (RuntimeError("request timed out"), "timeout"),
        (RuntimeError("503 Service Unavailable"), "server_error"),
        (ConnectionResetError("reset"), "network"),
        (RuntimeError("maximum token limit exceeded"), "token_limit"),
        (ValueError("bad input"), "unknown"),
    ])
    def test_classification(self, error, expected):
        assert classify_error(error) == expected


class TestComputeDelay:
    def test_exponential_without_jitter(self):
        config = RetryConfig(max_retries=3, base_delay_s=2.0, jitter=False)
        assert [_compute_delay(config, a) for a in range(3)] == [2.0, 4.0, 8.0]

    def test_jitter_bounds(self):
        config = RetryConfig(max_retries=3, base_delay_s=1.0, backoff_factor=1.0)
        for _ in range(20):
            assert 0.5 <= _compute_delay(config, 0) < 1.5


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        fn = Flaky()
        assert await with_retry(fn, "text", retry_configs=NO_WAIT) == "ok"
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_retries_transient_error(self):
        fn = Flaky(TimeoutError("timed out"), TimeoutError("timed out"))
        assert await with_retry(fn, retry_configs=NO_WAIT) == "ok"
        assert fn.calls == 3

    @pytest.mark.asyncio
    async def test_exhausted(self):
        fn = Flaky(*[RuntimeError("429")] * 5)
        with pytest.raises(RetryExhausted) as exc_info:
            await with_retry(fn, operation="chunk 2", retry_configs=NO_WAIT)
        assert fn.calls == 4
        assert exc_info.value.attempts == 4
        assert exc_info.value.error_type == "rate_limit"
        assert exc_info.value.operation == "chunk 2"

    @pytest.mark.asyncio
    async def test_unknown_error_not_retried(self):
        fn = Flaky(ValueError("bad input"))
        with pytest.raises(RetryExhausted) as exc_info:
            await with_retry(fn, retry_configs=NO_WAIT)
        assert fn.calls == 1
        assert isinstance(exc_info.value.last_error, ValueError)

    @pytest.mark.asyncio
    async def test_unconfigured_type_not_retried(self):
        fn = Flaky(ConnectionError("network down"))
        with pytest.raises(RetryExhausted):
            await with_retry(fn, retry_configs=NO_WAIT)
        assert fn.calls == 1
