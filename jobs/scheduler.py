"""
Payout scheduler process.

Enqueues the daily payout at the local cutoff and re-enqueues it at a
fixed interval for the rest of the day, and the rank reward run half an
hour after the cutoff. Also runs the configuration change listener, which
enqueues an income refresh after admin edits, and the health server.

Run with: python -m jobs.scheduler
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from app.config.logging import setup_logging
from app.config.settings import Settings, settings
from app.services.config_watcher import ConfigChangeListener
from app.services.dashboard_cache import DashboardCache
from app.utils.redis_utils import get_redis_client
from jobs.health import SchedulerHealth, start_health_server, stop_health_server


def enqueue_daily_payouts(health: SchedulerHealth) -> None:
    """
    Send the batch payout message to the workers.

    Args:
        health: Health state updated with the enqueue result
    """
    # Imported here so importing this module does not need a broker
    from jobs.tasks.daily_payout import process_daily_payouts

    try:
        process_daily_payouts.send()
    except Exception as e:
        logger.error(f"Failed to enqueue daily payouts: {e}")
        health.record_enqueue(error=str(e))
        return

    health.record_enqueue()
    logger.debug("Daily payout run enqueued")


def enqueue_rank_rewards(health: SchedulerHealth) -> None:
    """
    Send the rank reward message to the workers.

    Args:
        health: Health state updated with the enqueue result
    """
    from jobs.tasks.rank_rewards import process_rank_rewards

    try:
        process_rank_rewards.send()
    except Exception as e:
        logger.error(f"Failed to enqueue rank rewards: {e}")
        health.record_enqueue(error=str(e))
        return

    health.record_enqueue()
    logger.debug("Rank reward run enqueued")


async def enqueue_income_refresh() -> None:
    """Send the income refresh message after a configuration change."""
    from jobs.tasks.income_refresh import refresh_income_figures

    try:
        refresh_income_figures.send()
    except Exception as e:
        logger.error(f"Failed to enqueue income refresh: {e}")
        return

    logger.debug("Income refresh enqueued")


def build_scheduler(
    health: SchedulerHealth, app_settings: Settings = settings
) -> AsyncIOScheduler:
    """
    Create the scheduler with the payout jobs.

    Args:
        health: Health state passed to the jobs
        app_settings: Settings with cutoff, time zone and interval

    Returns:
        Configured (not started) scheduler
    """
    zone = app_settings.payout_zone
    scheduler = AsyncIOScheduler(timezone=zone)

    scheduler.add_job(
        enqueue_daily_payouts,
        CronTrigger(hour=app_settings.payout_cutoff_hour, minute=0, timezone=zone),
        args=[health],
        id="daily_payout_cutoff",
        name="Daily payout at cutoff",
        replace_existing=True,
        misfire_grace_time=3600,
        coalesce=True,
    )
    scheduler.add_job(
        enqueue_daily_payouts,
        IntervalTrigger(
            minutes=app_settings.payout_check_interval_minutes, timezone=zone
        ),
        args=[health],
        id="daily_payout_check",
        name="Periodic idempotent payout check",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    scheduler.add_job(
        enqueue_rank_rewards,
        CronTrigger(hour=app_settings.payout_cutoff_hour, minute=30, timezone=zone),
        args=[health],
        id="daily_rank_rewards",
        name="Daily rank reward run",
        replace_existing=True,
        misfire_grace_time=3600,
        coalesce=True,
    )

    health.set_scheduler(scheduler)
    return scheduler


async def main() -> None:
    """Run scheduler, config listener and health server until stopped."""
    setup_logging("payout scheduler")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    health = SchedulerHealth()
    scheduler = build_scheduler(health)

    redis_client = get_redis_client()
    listener = ConfigChangeListener(
        redis_client,
        DashboardCache(redis_client, ttl_seconds=settings.dashboard_cache_ttl),
        debounce_ms=settings.config_debounce_ms,
        on_change=enqueue_income_refresh,
    )

    runner = await start_health_server(health, port=settings.health_check_port)
    scheduler.start()
    listener_task = asyncio.create_task(listener.run(stop_event))

    logger.info(
        f"Payout scheduler started: cutoff {settings.payout_cutoff_hour:02d}:00 "
        f"{settings.payout_timezone}, check every "
        f"{settings.payout_check_interval_minutes} min"
    )

    try:
        await stop_event.wait()
    finally:
        scheduler.shutdown(wait=False)
        await listener_task
        await stop_health_server(runner)
        await redis_client.aclose()
        logger.info("Payout scheduler stopped")


if __name__ == "__main__":
    asyncio.run(main())
