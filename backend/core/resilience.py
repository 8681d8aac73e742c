"""
ClauseLens Resilience Module
============================
Timeout + retry + exponential backoff guard for every external-service call
(text extraction, language detection, generative summary/questions/answers).

Local segmentation, classification and extraction never go through here:
they are synchronous and bounded.

A timed-out attempt is abandoned, not cancelled. The underlying task keeps
running in the background and its eventual outcome is discarded, so callers
must not assume the remote resource has been released.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExternalServiceError(Exception):
    """Raised when an external call still fails after its retry budget."""

    def __init__(self, message: str, label: str = "", attempts: int = 0):
        super().__init__(message)
        self.label = label
        self.attempts = attempts


class OperationTimeoutError(ExternalServiceError):
    """Raised when a single attempt exceeds its timeout."""
    pass


def _discard_outcome(task: asyncio.Future) -> None:
    """Consume the result of an abandoned task so it is never reported as unretrieved."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Abandoned call finished late with error: {exc}")


async def _race(
    awaitable: Awaitable[T],
    timeout: float,
    label: str,
    attempt: int
) -> T:
    """Race an awaitable against a timer without cancelling it on timeout."""
    task = asyncio.ensure_future(awaitable)
    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout)
    except asyncio.TimeoutError:
        task.add_done_callback(_discard_outcome)
        raise OperationTimeoutError(
            f"{label} timeout after {timeout}s (attempt {attempt})",
            label=label,
            attempts=attempt
        )


def _log_before_sleep(label: str, attempts: int) -> Callable[[RetryCallState], None]:
    def log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"{label} - Attempt {retry_state.attempt_number}/{attempts} failed, "
            f"retrying in {delay:.1f}s: {error}"
        )
    return log_retry


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    timeout: float,
    retries: int | None = None,
    label: str = "API call",
    base_delay: float | None = None,
    max_delay: float | None = None,
    fatal: tuple[type[BaseException], ...] = (),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> T:
    """
    Run an external operation with a per-attempt timeout and retries.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        timeout: Seconds allowed for each attempt
        retries: Extra attempts after the first one (settings default when omitted)
        label: Name used in log records and error messages
        base_delay: First backoff delay in seconds (doubles per attempt)
        max_delay: Upper bound for any backoff delay
        fatal: Exception types raised as-is on first occurrence, never retried
        sleep: Coroutine used to wait between attempts

    Returns:
        The operation's result from the first successful attempt

    Raises:
        ExternalServiceError: When every attempt failed or timed out
    """
    settings = get_settings()
    if retries is None:
        retries = settings.max_retries
    if base_delay is None:
        base_delay = settings.retry_base_delay_seconds
    if max_delay is None:
        max_delay = settings.retry_max_delay_seconds

    attempts = retries + 1
    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=base_delay, max=max_delay),
        retry=retry_if_not_exception_type(fatal),
        before_sleep=_log_before_sleep(label, attempts),
        sleep=sleep,
        reraise=True
    )

    try:
        async for attempt in retrying:
            with attempt:
                number = attempt.retry_state.attempt_number
                logger.info(f"{label} - Attempt {number}/{attempts}")
                result = await _race(operation(), timeout, label, number)
                logger.info(f"{label} - Success on attempt {number}")
                return result
    except Exception as e:
        logger.error(f"{label} - Failed after {attempts} attempts: {e}")
        if isinstance(e, fatal):
            raise
        if isinstance(e, ExternalServiceError) and not isinstance(e, OperationTimeoutError):
            raise
        raise ExternalServiceError(
            f"{label} failed after {attempts} attempts: {e}",
            label=label,
            attempts=attempts
        ) from e

    # Unreachable: AsyncRetrying either returns inside the loop or raises.
    raise ExternalServiceError(f"{label} produced no result", label=label, attempts=attempts)
