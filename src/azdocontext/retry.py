"""Retry policy for remote Azure DevOps calls.

One loop shared by every domain service. Call sites differ only in the
policy parameters (attempt budget, base delay, ceiling) and, if needed, the
classification predicate. Backoff for attempt ``n`` (1-based) is
``min(base_delay * multiplier ** (n - 1), max_delay)``.

Authentication failures and other client errors are surfaced on the first
attempt. Server errors, network failures and timeouts are retried until the
budget runs out, then the last error is re-raised unchanged.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import structlog

from azdocontext.errors import AzdoContextError, ErrorCode

log = structlog.get_logger()

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MULTIPLIER = 2.0

_AUTH_STATUSES = frozenset({401, 403})
_REQUEST_TIMEOUT_STATUS = 408
_NON_RETRYABLE_CODES = frozenset(
    {ErrorCode.AUTH_FAILED, ErrorCode.CLIENT_ERROR, ErrorCode.INVALID_RESPONSE}
)


def is_retryable(exc: BaseException) -> bool:
    """Return False for auth and client failures, True for everything else."""
    status_code = getattr(exc, "status_code", None)
    if status_code in _AUTH_STATUSES:
        return False

    if isinstance(exc, AzdoContextError):
        if exc.code in _NON_RETRYABLE_CODES:
            return False
        if exc.code == ErrorCode.REQUEST_TIMEOUT:
            return True

    if isinstance(status_code, int) and 400 <= status_code < 500:
        return status_code == _REQUEST_TIMEOUT_STATUS

    return True


@dataclass
class RetryPolicy:
    """Exponential-backoff retry executor."""

    max_delay: float
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS
    multiplier: float = DEFAULT_MULTIPLIER
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    classify: Callable[[BaseException], bool] = is_retryable
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def delay_for(self, attempt: int) -> float:
        """Backoff before the attempt following ``attempt`` (1-based)."""
        return min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        label: str = "api_call",
        max_attempts: int | None = None,
    ) -> T:
        """Await ``operation()`` until it succeeds or the attempt budget is spent."""
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        for attempt in range(1, attempts + 1):
            log.debug("retry_attempt", operation=label, attempt=attempt, max_attempts=attempts)
            try:
                return await operation()
            except Exception as exc:
                if not self.classify(exc):
                    log.debug("retry_not_retryable", operation=label, error=str(exc))
                    raise
                if attempt == attempts:
                    log.warning(
                        "retry_exhausted", operation=label, attempts=attempts, error=str(exc)
                    )
                    raise

                delay = self.delay_for(attempt)
                log.info(
                    "retry_scheduled",
                    operation=label,
                    attempt=attempt,
                    delay_seconds=delay,
                    error=str(exc),
                )
                await self.sleep(delay)

        # Unreachable but satisfies the type checker
        raise AssertionError("retry loop exited without result")
