"""Bounded exponential-backoff retry for async operations."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import backoff
import httpx
import structlog
from pydantic import ValidationError

logger = structlog.get_logger()

T = TypeVar("T")


def is_retryable(exc: BaseException) -> bool:
    """Default retry predicate.

    Retries connect/socket timeouts, dropped connections, 5xx and 429.
    Other 4xx, decode failures and everything else are terminal.
    """
    if isinstance(exc, (ValidationError, json.JSONDecodeError)):
        return False
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, httpx.NetworkError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        # 429 is the only client error worth retrying
        return status >= 500 or status == 429
    return False


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Parameters governing one retried call.

    Delays are in seconds: ``initial_delay``, then multiplied by
    ``multiplier`` after each retry and capped at ``max_delay``.
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    multiplier: float = 2.0
    should_retry: Callable[[BaseException], bool] = is_retryable

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")


def _log_backoff(details: dict[str, Any]) -> None:
    exc = details.get("exception")
    logger.warning(
        "retry_backoff",
        attempt=details["tries"],
        wait_seconds=details["wait"],
        error_type=type(exc).__name__ if exc else None,
    )


def _log_giveup(details: dict[str, Any]) -> None:
    exc = details.get("exception")
    logger.warning(
        "retry_giveup",
        attempts=details["tries"],
        elapsed_seconds=round(details["elapsed"], 3),
        error_type=type(exc).__name__ if exc else None,
    )


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
) -> T:
    """Run ``operation`` with bounded exponential-backoff retry.

    Args:
        operation: Zero-argument coroutine function; called once per attempt.
        policy: Retry parameters. Defaults to ``RetryPolicy()``.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        The exception of the last attempt, or of the first attempt that
        ``policy.should_retry`` rejects.
    """
    policy = policy or RetryPolicy()
    should_retry = policy.should_retry

    @backoff.on_exception(
        backoff.expo,
        Exception,
        max_tries=policy.max_attempts,
        giveup=lambda exc: not should_retry(exc),
        jitter=None,
        on_backoff=_log_backoff,
        on_giveup=_log_giveup,
        logger=None,
        base=policy.multiplier,
        factor=policy.initial_delay,
        max_value=policy.max_delay,
    )
    async def _attempt() -> T:
        return await operation()

    return await _attempt()
