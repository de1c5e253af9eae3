"""Retry policy for provider HTTP calls.

Only transport faults (connection errors, disconnects, timeouts) are retried;
HTTP error statuses are mapped to ExternalServiceException by request_json and
propagate immediately. The number of retries is configured through
HTTP_MAX_RETRIES and defaults to none.
"""

from __future__ import annotations

import asyncio
import logging

from aiohttp import ClientConnectionError, ServerDisconnectedError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import get_http_max_retries

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    ClientConnectionError,
    ServerDisconnectedError,
    asyncio.TimeoutError,
)


def retry_async(
    max_retries: int | None = None,
    retry_delay: float = 1.0,
    backoff_factor: float = 2.0,
    retry_exceptions: tuple[type[BaseException], ...] = TRANSPORT_ERRORS,
):
    """Build a tenacity retry decorator for an async callable.

    Args:
        max_retries: Attempts after the first one. None reads HTTP_MAX_RETRIES
            when the decorator is built.
        retry_delay: Multiplier for the exponential wait, in seconds.
        backoff_factor: Exponential base for the wait between attempts.
        retry_exceptions: Exception types that trigger another attempt.

    Example:
        @retry_async(max_retries=2, retry_delay=0.5)
        async def fetch_scene():
            ...
    """
    if max_retries is None:
        max_retries = get_http_max_retries()
    return retry(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=retry_delay, exp_base=backoff_factor),
        retry=retry_if_exception_type(retry_exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
