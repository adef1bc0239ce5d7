"""
Distributed lock.

Redis lock used by the worker jobs so that only one batch run of a kind
is in flight at a time. Without Redis the lock is always granted.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError


LOCK_KEY_PREFIX = "income:lock:"


class DistributedLock:
    """Non-blocking Redis lock."""

    def __init__(self, redis_client: AsyncRedis | None = None) -> None:
        """
        Initialize distributed lock.

        Args:
            redis_client: Redis client, None disables locking
        """
        self.redis = redis_client

    @asynccontextmanager
    async def lock(self, key: str, timeout: int = 300) -> AsyncIterator[bool]:
        """
        Try to take the lock without waiting.

        Usage:
            async with lock.lock("daily_payout", timeout=3600) as acquired:
                if not acquired:
                    return

        Args:
            key: Lock name
            timeout: Seconds after which Redis expires a forgotten lock

        Yields:
            True if this caller holds the lock (or locking is unavailable)
        """
        if self.redis is None:
            yield True
            return

        redis_lock = self.redis.lock(
            f"{LOCK_KEY_PREFIX}{key}", timeout=timeout, blocking=False
        )
        try:
            acquired = await redis_lock.acquire()
        except RedisError as e:
            # Guarded jobs are idempotent
            logger.warning(
                "Failed to acquire lock, running without it",
                extra={"lock": key, "error": str(e)},
            )
            redis_lock = None
            acquired = True

        if not acquired:
            yield False
            return

        try:
            yield True
        finally:
            if redis_lock is not None:
                await self._release(redis_lock, key)

    async def _release(self, redis_lock, key: str) -> None:
        try:
            await redis_lock.release()
        except RedisError as e:
            logger.warning(
                "Failed to release lock",
                extra={"lock": key, "error": str(e)},
            )
