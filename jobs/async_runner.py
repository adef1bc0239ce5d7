"""
Async runner for dramatiq tasks.

Runs async engine code inside dramatiq worker threads. Every task gets
its own income context bound to the current event loop; batch jobs also
hold a Redis lock so that runs of the same job never overlap.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Awaitable, Callable, Coroutine
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.pool import NullPool

from app.config.database import create_engine, create_session_maker
from app.config.settings import settings
from app.services.context import IncomeContext
from app.services.dashboard_cache import DashboardCache
from app.utils.distributed_lock import DistributedLock
from app.utils.redis_utils import get_redis_client

T = TypeVar("T")

# Thread-local storage for event loops
_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """
    Get or create event loop for current thread.

    One loop per worker thread, reused across tasks, so connections are
    never attached to a different loop.
    """
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        logger.debug(
            f"Created new event loop for thread {threading.current_thread().name}"
        )
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in the thread's event loop.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine
    """
    loop = get_event_loop()
    try:
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.exception(f"Error running async coroutine: {e}")
        raise


def async_actor(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """
    Decorator to wrap async function for use in dramatiq actor.

    Usage:
        @dramatiq.actor
        @async_actor
        async def my_task():
            await some_async_operation()

    Args:
        func: Async function to wrap

    Returns:
        Synchronous wrapper function
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        return run_async(func(*args, **kwargs))
    return wrapper


@asynccontextmanager
async def local_income_context() -> AsyncIterator[IncomeContext]:
    """
    Build an income context for the current event loop.

    Uses a NullPool engine so worker threads never share pooled
    connections. Redis failures are handled inside the dashboard cache.

    Yields:
        IncomeContext
    """
    engine = create_engine(poolclass=NullPool)
    redis_client = get_redis_client()
    context = IncomeContext(
        session_factory=create_session_maker(engine),
        settings=settings,
        cache=DashboardCache(redis_client, ttl_seconds=settings.dashboard_cache_ttl),
    )

    try:
        yield context
    finally:
        await engine.dispose()
        await redis_client.aclose()


async def run_exclusive(
    job_name: str, job: Callable[[IncomeContext], Awaitable[dict]]
) -> dict:
    """
    Run a batch job unless another run of it still holds the lock.

    Args:
        job_name: Lock name of the job
        job: Coroutine function receiving the income context

    Returns:
        Job result, or {"skipped": True} while another run is in flight
    """
    redis_client = get_redis_client()
    try:
        lock = DistributedLock(redis_client)
        async with lock.lock(job_name, timeout=settings.batch_lock_timeout) as acquired:
            if not acquired:
                logger.info(
                    "Batch job already running, skipping",
                    extra={"job": job_name},
                )
                return {"skipped": True}

            async with local_income_context() as context:
                return await job(context)
    finally:
        await redis_client.aclose()
