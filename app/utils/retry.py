"""
Retry utilities.

Exponential backoff for transient store errors.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger

from app.utils.exceptions import is_transient


T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """
    Delay before the next attempt.

    Args:
        attempt: Zero-based number of the failed attempt
        base_delay: Delay after the first failure, seconds
        max_delay: Upper bound, seconds

    Returns:
        Delay in seconds (base, 2*base, 4*base, ... capped)
    """
    return min(base_delay * (2 ** attempt), max_delay)


async def retry_transient(
    coro_factory: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.2,
    max_delay: float = 5.0,
    operation_name: str = "store call",
) -> T:
    """
    Run an async operation, retrying transient store errors.

    Permission errors, missing schema and any other error propagate on
    the first failure.

    Args:
        coro_factory: Factory returning a fresh coroutine per attempt
        max_attempts: Total attempts
        base_delay: Backoff base in seconds
        max_delay: Backoff cap in seconds
        operation_name: Operation name for logging

    Returns:
        Result of the operation

    Raises:
        Exception: Last error once attempts are exhausted
    """
    for attempt in range(max_attempts):
        try:
            return await coro_factory()
        except Exception as e:
            if not is_transient(e) or attempt >= max_attempts - 1:
                raise

            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                f"{operation_name} failed on attempt {attempt + 1}/{max_attempts}: "
                f"{e}. Retrying in {delay:.2f}s..."
            )
            await asyncio.sleep(delay)

    # max_attempts < 1
    raise ValueError("max_attempts must be at least 1")
