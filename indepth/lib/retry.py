"""Retry decorator with exponential backoff for contended operations.

Used where an operation can lose a race and be safely re-run from
scratch, e.g. an optimistic-concurrency write that hit a version conflict.

Example:
    @retry_on_failure_async(max_retries=2, exceptions=(TaxonomyVersionConflict,))
    async def merge_once():
        latest = await repository.get_latest()
        ...
"""

import asyncio
import logging
import random
from functools import wraps
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default exceptions to retry on
RETRYABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
)


def retry_on_failure_async(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
    jitter: bool = True,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator for async retry with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts after the first call
        base_delay: Initial delay in seconds (0 disables sleeping)
        max_delay: Maximum delay between retries
        exceptions: Tuple of exception types to retry on
        jitter: Add random jitter to delay to prevent thundering herd

    Returns:
        Decorated coroutine function. Once retries are exhausted the last
        exception is re-raised unchanged.

    Backoff schedule (with base_delay=1.0):
        Attempt 1: immediate
        Attempt 2: 1s delay (+ jitter)
        Attempt 3: 2s delay (+ jitter)
        (capped at max_delay)
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        logger.warning(
                            f"{func.__name__} failed after {max_retries + 1} attempts: {e}"
                        )
                        raise

                    delay = min(base_delay * (2**attempt), max_delay)
                    if jitter and delay > 0:
                        delay += random.uniform(0, delay * 0.25)

                    logger.info(
                        f"{func.__name__} attempt {attempt + 1} failed: {e}. "
                        f"Retrying in {delay:.2f}s..."
                    )

                    await asyncio.sleep(delay)

            raise RuntimeError("unreachable")  # pragma: no cover

        return wrapper

    return decorator
