"""Async utility functions for resilient outbound calls.

This module provides:
- The gateway exception hierarchy
- A linear-backoff retry decorator for chat platform calls
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import httpx
import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

log = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")


# =============================================================================
# Custom Exceptions
# =============================================================================


class GatewayError(Exception):
    """Base exception for all gateway errors."""


class ConfigurationError(GatewayError):
    """A required endpoint or credential is not configured."""


class ChatPlatformError(GatewayError):
    """Failure talking to the chat platform.

    Attributes:
        status_code: HTTP status returned by the platform, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(ChatPlatformError):
    """Chat platform rejected the access token (HTTP 401)."""


class NotFoundError(ChatPlatformError):
    """Conversation does not exist (HTTP 404)."""


class ServiceError(ChatPlatformError):
    """Any other chat platform failure after the retry budget is spent."""


class ImageDownloadError(GatewayError):
    """A single image could not be materialized.

    Attributes:
        url: The URL that failed.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


# =============================================================================
# Retry Decorator
# =============================================================================


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging."""
    if retry_state.outcome is None:
        return

    exception = retry_state.outcome.exception()
    if exception:
        log.warning(
            "retrying_operation",
            attempt=retry_state.attempt_number,
            exception_type=type(exception).__name__,
            exception_message=str(exception),
            wait_time=retry_state.next_action.sleep if retry_state.next_action else 0,
        )


def is_fetch_failure(exc: BaseException) -> bool:
    """Decide whether a failed fetch attempt is retried.

    Every httpx failure counts, whatever the status code, and so does an
    undecodable body. Callers classify the error after the last attempt.

    Args:
        exc: The exception raised by the attempt.

    Returns:
        True for ``httpx.HTTPError`` and ``ValueError``.
    """
    return isinstance(exc, (httpx.HTTPError, ValueError))


def create_linear_retry(
    max_attempts: int = 3,
    backoff_seconds: float = 2.0,
    retry_on: Callable[[BaseException], bool] = is_fetch_failure,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Create a retry decorator with linearly growing waits.

    The wait before attempt ``n + 1`` is ``backoff_seconds * n``, so the default
    settings sleep 2 s and then 4 s.

    Args:
        max_attempts: Maximum number of attempts, including the first.
        backoff_seconds: Base delay multiplied by the attempt number.
        retry_on: Predicate selecting which exceptions are retried.

    Returns:
        A retry decorator configured with the given parameters.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=backoff_seconds, increment=backoff_seconds),
        retry=retry_if_exception(retry_on),
        before_sleep=_log_retry,
        reraise=True,
    )
