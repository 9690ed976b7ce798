"""Tests for the retry/backoff policy."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from pydantic import BaseModel, ValidationError

from mcp_assistant.retry import RetryPolicy, is_retryable, retry_with_backoff


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.test/v1/messages")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class _Strict(BaseModel):
    value: int


def _validation_error() -> ValidationError:
    try:
        _Strict(value="not-a-number")
    except ValidationError as e:
        return e
    raise AssertionError("expected ValidationError")


class FailingOperation:
    """Async callable that raises one exception per call, or returns a value."""

    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        outcome = self._outcomes[min(self.calls, len(self._outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def sleep():
    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


def _delays(mock_sleep) -> list[float]:
    return [c.args[0] for c in mock_sleep.await_args_list]


class TestRetryWithBackoff:
    @pytest.mark.asyncio
    async def test_returns_first_success_without_sleeping(self, sleep):
        operation = FailingOperation("ok")
        result = await retry_with_backoff(operation, RetryPolicy())
        assert result == "ok"
        assert operation.calls == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delay_sequence_and_last_error(self, sleep):
        errors = [httpx.ReadTimeout(f"timeout {i}") for i in range(3)]
        operation = FailingOperation(*errors)
        policy = RetryPolicy(max_attempts=3, initial_delay=1.0, max_delay=10.0, multiplier=2.0)

        with pytest.raises(httpx.ReadTimeout) as exc_info:
            await retry_with_backoff(operation, policy)

        assert exc_info.value is errors[2]
        assert operation.calls == 3
        assert _delays(sleep) == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_delay_capped_at_max_delay(self, sleep):
        operation = FailingOperation(httpx.ConnectTimeout("slow"))
        policy = RetryPolicy(max_attempts=3, initial_delay=8.0, max_delay=10.0, multiplier=2.0)

        with pytest.raises(httpx.ConnectTimeout):
            await retry_with_backoff(operation, policy)

        assert _delays(sleep) == [8.0, 10.0]

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, sleep):
        operation = FailingOperation(_status_error(503), "answer")
        result = await retry_with_backoff(operation, RetryPolicy(max_attempts=3))
        assert result == "answer"
        assert operation.calls == 2
        assert _delays(sleep) == [1.0]

    @pytest.mark.asyncio
    async def test_404_is_attempted_once(self, sleep):
        operation = FailingOperation(_status_error(404))
        with pytest.raises(httpx.HTTPStatusError):
            await retry_with_backoff(operation, RetryPolicy(max_attempts=3))
        assert operation.calls == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_429_is_retried_up_to_max_attempts(self, sleep):
        operation = FailingOperation(_status_error(429))
        with pytest.raises(httpx.HTTPStatusError):
            await retry_with_backoff(operation, RetryPolicy(max_attempts=3))
        assert operation.calls == 3

    @pytest.mark.asyncio
    async def test_custom_predicate(self, sleep):
        operation = FailingOperation(RuntimeError("flaky"), "done")
        policy = RetryPolicy(should_retry=lambda exc: isinstance(exc, RuntimeError))
        assert await retry_with_backoff(operation, policy) == "done"
        assert operation.calls == 2

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self, sleep):
        operation = FailingOperation(httpx.ReadTimeout("t"))
        with pytest.raises(httpx.ReadTimeout):
            await retry_with_backoff(operation, RetryPolicy(max_attempts=1))
        assert operation.calls == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self, sleep):
        operation = FailingOperation(asyncio.CancelledError())
        with pytest.raises(asyncio.CancelledError):
            await retry_with_backoff(operation, RetryPolicy(max_attempts=3))
        assert operation.calls == 1


class TestIsRetryable:
    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectTimeout("c"),
            httpx.ReadTimeout("r"),
            httpx.WriteTimeout("w"),
            httpx.ConnectError("refused"),
        ],
    )
    def test_transport_failures_are_retryable(self, exc):
        assert is_retryable(exc) is True

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_server_and_rate_limit_statuses_are_retryable(self, status):
        assert is_retryable(_status_error(status)) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_client_statuses_are_not_retryable(self, status):
        assert is_retryable(_status_error(status)) is False

    def test_parse_failures_are_not_retryable(self):
        assert is_retryable(_validation_error()) is False
        assert is_retryable(json.JSONDecodeError("bad", "{", 0)) is False

    def test_unknown_errors_are_not_retryable(self):
        assert is_retryable(RuntimeError("boom")) is False


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.initial_delay == 1.0
        assert policy.max_delay == 10.0
        assert policy.multiplier == 2.0
        assert policy.should_retry is is_retryable

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=0)

    def test_rejects_shrinking_multiplier(self):
        with pytest.raises(ValueError, match="multiplier"):
            RetryPolicy(multiplier=0.5)
