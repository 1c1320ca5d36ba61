"""
Retry logic with exponential backoff for transient backend failures.

Used by the REST backend so a dropped connection or a slow response does
not fail a whole matching run. Retries stay at the transport level: the
engine itself never re-runs a candidate.
"""

import time
import functools
from typing import Callable, Type, Tuple, Optional

import requests

from .logger import get_logger


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


TRANSIENT_REQUEST_ERRORS: Tuple[Type[Exception], ...] = (
    requests.exceptions.Timeout,
    requests.exceptions.ConnectionError,
)


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Optional callback function(attempt, exception, delay)

    Example:
        @exponential_backoff(max_retries=3, exceptions=TRANSIENT_REQUEST_ERRORS)
        def fetch_rows(session, url):
            return session.get(url, timeout=15)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {str(e)}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)

                    time.sleep(current_delay)
                    delay *= exponential_base

        return wrapper
    return decorator


def log_retry(attempt: int, exc: Exception, delay: float) -> None:
    """on_retry hook that records the retry in the run log."""
    get_logger().warning(
        "Transient backend error, retrying",
        attempt=attempt,
        delay=delay,
        error=f"{type(exc).__name__}: {exc}",
    )
