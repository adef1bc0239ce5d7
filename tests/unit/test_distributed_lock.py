"""
Tests for the batch job lock.

Tests cover:
- Acquire / release around the guarded block
- Held lock skipping the job
- Redis failures
- run_exclusive wiring of lock and income context
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockNotOwnedError

from app.utils.distributed_lock import LOCK_KEY_PREFIX, DistributedLock
from jobs.async_runner import run_exclusive


def redis_with_lock(acquired=True):
    """Mock Redis client whose lock() returns one mock lock."""
    redis_lock = MagicMock()
    redis_lock.acquire = AsyncMock(return_value=acquired)
    redis_lock.release = AsyncMock()
    client = MagicMock()
    client.lock = MagicMock(return_value=redis_lock)
    client.aclose = AsyncMock()
    return client, redis_lock


class TestDistributedLock:
    """Test non-blocking lock."""

    @pytest.mark.asyncio
    async def test_acquired_and_released(self):
        """Free lock is taken, then released after the block."""
        client, redis_lock = redis_with_lock(acquired=True)

        async with DistributedLock(client).lock("daily_payout", timeout=60) as acquired:
            assert acquired is True
            redis_lock.release.assert_not_awaited()

        client.lock.assert_called_once_with(
            f"{LOCK_KEY_PREFIX}daily_payout", timeout=60, blocking=False
        )
        redis_lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_held_lock(self):
        """Lock held by another run is reported and not released."""
        client, redis_lock = redis_with_lock(acquired=False)

        async with DistributedLock(client).lock("daily_payout") as acquired:
            assert acquired is False

        redis_lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        """Lock is released when the guarded block raises."""
        client, redis_lock = redis_with_lock(acquired=True)

        with pytest.raises(RuntimeError):
            async with DistributedLock(client).lock("daily_payout"):
                raise RuntimeError("job failed")

        redis_lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redis_down_runs_unlocked(self):
        """Unreachable Redis grants the lock."""
        client, redis_lock = redis_with_lock()
        redis_lock.acquire.side_effect = RedisConnectionError("down {0}")

        async with DistributedLock(client).lock("daily_payout") as acquired:
            assert acquired is True

        redis_lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_lock_release_swallowed(self):
        """Releasing a lock that already expired does not raise."""
        client, redis_lock = redis_with_lock(acquired=True)
        redis_lock.release.side_effect = LockNotOwnedError("expired")

        async with DistributedLock(client).lock("daily_payout") as acquired:
            assert acquired is True

    @pytest.mark.asyncio
    async def test_without_redis(self):
        """No client means no locking."""
        async with DistributedLock(None).lock("daily_payout") as acquired:
            assert acquired is True


class TestRunExclusive:
    """Test batch job wrapper."""

    @pytest.mark.asyncio
    async def test_runs_job_with_context(self):
        """Free lock runs the job with a fresh context."""
        client, _ = redis_with_lock(acquired=True)
        context = MagicMock()
        job = AsyncMock(return_value={"processed": 2})

        @asynccontextmanager
        async def fake_context():
            yield context

        with patch("jobs.async_runner.get_redis_client", return_value=client), \
                patch("jobs.async_runner.local_income_context", fake_context):
            result = await run_exclusive("daily_payout", job)

        assert result == {"processed": 2}
        job.assert_awaited_once_with(context)
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_skips_while_previous_run_in_flight(self):
        """Held lock skips the job without opening a context."""
        client, _ = redis_with_lock(acquired=False)
        job = AsyncMock()
        fake_context = MagicMock()

        with patch("jobs.async_runner.get_redis_client", return_value=client), \
                patch("jobs.async_runner.local_income_context", fake_context):
            result = await run_exclusive("daily_payout", job)

        assert result == {"skipped": True}
        job.assert_not_awaited()
        fake_context.assert_not_called()
        client.aclose.assert_awaited_once()
