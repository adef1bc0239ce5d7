"""
Configuration change watcher.

Admin edits to level rules and the ROI setting are announced on a Redis
channel. Bursts of edits are debounced into one dashboard cache
invalidation.
"""

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from app.config.business_constants import CONFIG_DEBOUNCE_MS
from app.services.dashboard_cache import DashboardCache


CONFIG_CHANGED_CHANNEL = "income:config_changed"


async def publish_config_change(redis_client: AsyncRedis, source: str) -> bool:
    """
    Announce an admin configuration change.

    Args:
        redis_client: Redis client
        source: What changed (e.g. "level_rules", "roi_setting")

    Returns:
        True if published
    """
    try:
        await redis_client.publish(CONFIG_CHANGED_CHANNEL, source)
    except RedisError as e:
        logger.warning(
            "Failed to publish config change",
            extra={"source": source, "error": str(e)},
        )
        return False
    return True


class Debouncer:
    """
    Trailing-edge debouncer.

    Each trigger restarts the delay; the callback runs once after the
    last trigger of a burst.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        delay_ms: int = CONFIG_DEBOUNCE_MS,
    ) -> None:
        """
        Initialize debouncer.

        Args:
            callback: Coroutine function run after the quiet period
            delay_ms: Quiet period in milliseconds
        """
        self.callback = callback
        self.delay = delay_ms / 1000
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        """A callback run is scheduled."""
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        """Restart the quiet period."""
        if self.pending:
            self._task.cancel()
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        try:
            await self.callback()
        except Exception:
            logger.exception("Debounced callback failed")

    async def flush(self) -> None:
        """Wait for a scheduled run to finish."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    def cancel(self) -> None:
        """Drop a scheduled run."""
        if self.pending:
            self._task.cancel()


class ConfigChangeListener:
    """Invalidates dashboard figures after admin configuration changes."""

    def __init__(
        self,
        redis_client: AsyncRedis,
        cache: DashboardCache,
        debounce_ms: int = CONFIG_DEBOUNCE_MS,
        on_change: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        """
        Initialize config change listener.

        Args:
            redis_client: Redis client used for the subscription
            cache: Dashboard cache to invalidate
            debounce_ms: Quiet period before re-computation
            on_change: Extra coroutine run after the invalidation
        """
        self.redis = redis_client
        self.cache = cache
        self.on_change = on_change
        self.debouncer = Debouncer(self._apply_change, delay_ms=debounce_ms)
        self.changes_seen = 0

    async def _apply_change(self) -> None:
        deleted = await self.cache.invalidate_all()
        logger.info(
            "Configuration changed, dashboard figures invalidated",
            extra={"changes": self.changes_seen, "invalidated": deleted},
        )
        self.changes_seen = 0
        if self.on_change is not None:
            await self.on_change()

    def handle_message(self, message: dict | None) -> None:
        """
        Feed one pub/sub message.

        Args:
            message: Message dict from redis pub/sub (None = no message)
        """
        if not message or message.get("type") != "message":
            return
        self.changes_seen += 1
        logger.debug(
            "Config change received",
            extra={"source": message.get("data")},
        )
        self.debouncer.trigger()

    async def run(self, stop_event: asyncio.Event) -> None:
        """
        Listen until stop_event is set.

        Args:
            stop_event: Set to stop listening
        """
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(CONFIG_CHANGED_CHANNEL)
        logger.info(f"Listening for config changes on {CONFIG_CHANGED_CHANNEL}")

        try:
            while not stop_event.is_set():
                try:
                    message = await pubsub.get_message(
                        ignore_subscribe_messages=True, timeout=1.0
                    )
                except RedisError as e:
                    logger.warning(f"Config change subscription error: {e}")
                    await asyncio.sleep(1)
                    continue
                self.handle_message(message)
        finally:
            await self.debouncer.flush()
            await pubsub.unsubscribe(CONFIG_CHANGED_CHANNEL)
            await pubsub.aclose()
