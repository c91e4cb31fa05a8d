"""Shared retry configuration and utilities.

Retries cover transient failures only: connection problems, rate limiting
(429) and server errors (5xx).
"""

import logging
from typing import Callable

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from .exceptions import CloudantAPIError, CloudantConnectionError

logger = logging.getLogger("cloudant-tools")


RETRY_WAIT = wait_exponential_jitter(initial=1, max=10, jitter=2)


def get_retry_decorator(is_retryable: Callable[[BaseException], bool], max_retries: int = 2):
    """Create a retry decorator with the shared config.

    Args:
        is_retryable: Function that takes an exception and returns True
            if the operation should be retried.
        max_retries: Retries after the first attempt (0 disables retrying)

    Returns:
        A tenacity retry decorator configured with standard settings.

    Example:
        send = get_retry_decorator(_is_retryable_http, 2)(self._send_once)
    """
    return retry(
        stop=stop_after_attempt(max_retries + 1),
        wait=RETRY_WAIT,
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def is_retryable_status_code(status_code: int) -> bool:
    """Check if an HTTP status code indicates a retryable error.

    Args:
        status_code: HTTP status code

    Returns:
        True if the status code is 429 (rate limit) or 5xx (server error)
    """
    return status_code == 429 or (500 <= status_code < 600)


def is_retryable_api_error(exception: BaseException) -> bool:
    """Check if a CloudantAPIError is retryable based on status code."""
    if isinstance(exception, CloudantAPIError):
        return is_retryable_status_code(exception.status_code)
    return False


def is_retryable_connection_error(exception: BaseException) -> bool:
    """Check if the exception is a connection error."""
    return isinstance(exception, CloudantConnectionError)
