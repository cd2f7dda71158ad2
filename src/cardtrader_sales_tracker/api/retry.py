"""Retry logic with exponential backoff for API requests."""

import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class RetryConfig:
    """
    Configuration for retry behavior.

    Parameters
    ----------
    max_retries : int
        Maximum number of retry attempts
    base_delay : float
        Initial delay in seconds before first retry
    max_delay : float
        Maximum delay between retries
    exponential_base : float
        Base for exponential backoff calculation

    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base

    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay for a given retry attempt using exponential backoff.

        Parameters
        ----------
        attempt : int
            Current attempt number (0-indexed)

        Returns
        -------
        float
            Delay in seconds

        """
        delay = self.base_delay * (self.exponential_base**attempt)
        return min(delay, self.max_delay)


def is_transient(error: Exception) -> bool:
    """
    Decide whether an httpx error is worth retrying.

    Parameters
    ----------
    error : Exception
        Raised exception

    Returns
    -------
    bool
        True for transport failures, rate limiting and 5xx responses

    """
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(error, httpx.TransportError)


def with_retry(
    config: RetryConfig | None = None,
    should_retry: Callable[[Exception], bool] = is_transient,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to add retry logic with exponential backoff to a function.

    Parameters
    ----------
    config : RetryConfig | None
        Retry configuration. Uses default config if None.
    should_retry : Callable[[Exception], bool]
        Predicate selecting retryable exceptions. Others propagate at once.
    sleep : Callable[[float], None]
        Sleep function, replaceable in tests

    Returns
    -------
    Callable
        Decorated function with retry logic

    """
    if config is None:
        config = RetryConfig()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(config.max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    # Don't retry on last attempt or on permanent errors
                    if attempt == config.max_retries or not should_retry(e):
                        raise

                    delay = config.get_delay(attempt)
                    logger.debug(
                        "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                        func.__name__,
                        attempt + 1,
                        config.max_retries + 1,
                        delay,
                        e,
                    )
                    sleep(delay)

            msg = "unreachable"
            raise AssertionError(msg)

        return wrapper

    return decorator
