"""
Dashboard figures cache.

Redis-backed cache of IncomeFigures per account. Cache failures are
logged and behave like a miss.
"""

from loguru import logger
from pydantic import ValidationError
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from app.services.summary.figures import IncomeFigures


FIGURES_KEY_PREFIX = "income:figures:"


def figures_key(account_id: int) -> str:
    """Cache key of one account's figures."""
    return f"{FIGURES_KEY_PREFIX}{account_id}"


class DashboardCache:
    """Redis cache for dashboard income figures."""

    def __init__(self, redis_client: AsyncRedis, ttl_seconds: int = 300) -> None:
        """
        Initialize dashboard cache.

        Args:
            redis_client: Redis client (decode_responses=True)
            ttl_seconds: Entry lifetime
        """
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    async def get(self, account_id: int) -> IncomeFigures | None:
        """
        Get cached figures.

        Args:
            account_id: Account ID

        Returns:
            Figures or None on miss / cache failure
        """
        try:
            raw = await self.redis.get(figures_key(account_id))
        except RedisError as e:
            logger.warning(
                "Dashboard cache read failed",
                extra={"account_id": account_id, "error": str(e)},
            )
            return None

        if raw is None:
            return None

        try:
            return IncomeFigures.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "Dropping malformed dashboard cache entry",
                extra={"account_id": account_id, "error": str(e)},
            )
            await self.invalidate(account_id)
            return None

    async def set(self, figures: IncomeFigures) -> None:
        """
        Store figures.

        Args:
            figures: Figures to cache
        """
        try:
            await self.redis.set(
                figures_key(figures.account_id),
                figures.model_dump_json(),
                ex=self.ttl_seconds,
            )
        except RedisError as e:
            logger.warning(
                "Dashboard cache write failed",
                extra={"account_id": figures.account_id, "error": str(e)},
            )

    async def invalidate(self, account_id: int) -> None:
        """
        Drop one account's figures.

        Args:
            account_id: Account ID
        """
        try:
            deleted = await self.redis.delete(figures_key(account_id))
            if deleted:
                logger.debug(f"Cache invalidated: {figures_key(account_id)}")
        except RedisError as e:
            logger.error(f"Failed to invalidate dashboard cache: {e}")

    async def invalidate_all(self) -> int:
        """
        Drop every cached figures entry.

        Returns:
            Number of deleted keys
        """
        deleted = 0
        try:
            async for key in self.redis.scan_iter(match=f"{FIGURES_KEY_PREFIX}*"):
                deleted += await self.redis.delete(key)
        except RedisError as e:
            logger.error(f"Failed to invalidate dashboard cache: {e}")
            return deleted

        if deleted:
            logger.info(f"Cache invalidated: {deleted} dashboard figure set(s)")
        return deleted
