"""
Criticality-tagged calls to external systems.

Every call that leaves the process (store, meeting provider, email, WhatsApp)
goes through guarded_call with an explicit Criticality:

- mandatory: bounded by a timeout, failures propagate to the caller
- best_effort: bounded by a timeout, failures are logged, reported to Sentry,
  and replaced by a fallback value
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx
import sentry_sdk

from .config import get_external_call_timeout
from .enums import Criticality
from .errors import SessionChangeError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_rate_limit_error(exception: Exception) -> bool:
    """Check if exception is a provider rate limit response."""
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code == 429
    return False


def log_external_error(
    exception: Exception,
    operation: str,
    context: dict | None = None,
) -> None:
    """
    Log external call errors with appropriate severity.

    Rate limits get warning level + specific Sentry event.
    Timeouts get warning level. Other errors get error level.
    """
    context = context or {}

    if is_rate_limit_error(exception):
        logger.warning(
            f"Rate limit hit during {operation}",
            extra={"operation": operation, **context},
        )
        sentry_sdk.capture_message(
            f"Provider rate limit: {operation}",
            level="warning",
            extras={"operation": operation, **context},
        )
    elif isinstance(exception, asyncio.TimeoutError):
        logger.warning(
            f"Timed out during {operation}",
            extra={"operation": operation, **context},
        )
    else:
        logger.error(
            f"External call failed during {operation}: {exception}",
            extra={"operation": operation, **context},
        )
        sentry_sdk.capture_exception(exception)


async def guarded_call(
    operation: str,
    call: Callable[[], Awaitable[T]],
    *,
    criticality: Criticality,
    timeout: float | None = None,
    fallback: Any = None,
    context: dict | None = None,
) -> T:
    """
    Run an external call under a timeout and a declared criticality.

    Args:
        operation: Short name for logs ("delete_meeting", "send_email", ...)
        call: Zero-argument coroutine factory
        criticality: mandatory calls re-raise, best_effort calls return fallback
        timeout: Seconds; defaults to EXTERNAL_CALL_TIMEOUT_SECONDS
        fallback: Value returned when a best_effort call fails
        context: Extra fields for log records and Sentry
    """
    if timeout is None:
        timeout = get_external_call_timeout()

    try:
        return await asyncio.wait_for(call(), timeout)
    except Exception as e:
        if criticality == Criticality.mandatory:
            # Rejections (not found, bad input) are expected outcomes
            if not isinstance(e, SessionChangeError):
                logger.error(
                    f"Mandatory call {operation} failed: {e}",
                    extra={"operation": operation, **(context or {})},
                )
            raise
        log_external_error(e, operation, context)
        return fallback
