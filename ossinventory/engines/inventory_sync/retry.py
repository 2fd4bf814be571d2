"""Bounded retry combinator for inventory service calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from ossinventory.core.settings import RetryPolicy
from ossinventory.exceptions import TransientNetworkError

log = structlog.get_logger("ossinventory.engine")

T = TypeVar("T")


@dataclass
class RetryOutcome(Generic[T]):
    """Either a value or the last error, plus how many attempts were made.

    ``exhausted`` is True only when every allowed attempt failed with a
    retryable error.
    """

    value: T | None = None
    error: Exception | None = None
    attempts: int = 0
    exhausted: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None


def is_transient(exc: Exception) -> bool:
    return isinstance(exc, TransientNetworkError)


async def attempt(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    is_retryable: Callable[[Exception], bool] = is_transient,
    on_retry: Callable[[int, Exception], None] | None = None,
) -> RetryOutcome[T]:
    """Run *fn* up to ``policy.total_attempts`` times.

    A non-retryable error stops immediately. ``asyncio.CancelledError`` is a
    ``BaseException`` and is never caught here, so cancelling the caller
    aborts both in-flight calls and the pause between attempts.
    """
    total = policy.total_attempts
    last_error: Exception | None = None

    for n in range(1, total + 1):
        try:
            value = await fn()
        except Exception as exc:
            last_error = exc
            if not is_retryable(exc):
                log.warning("retry.non_retryable", attempt=n, error=str(exc))
                return RetryOutcome(error=exc, attempts=n, exhausted=False)

            remaining = total - n
            log.warning("retry.failed", attempt=n, remaining=remaining, error=str(exc))
            if remaining == 0:
                break
            if on_retry is not None:
                on_retry(n, exc)
            await asyncio.sleep(policy.retry_interval_seconds)
            continue
        return RetryOutcome(value=value, attempts=n)

    return RetryOutcome(error=last_error, attempts=total, exhausted=True)
