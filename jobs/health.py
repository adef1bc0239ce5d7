"""
Health check server for the payout scheduler.

Exposes health, readiness and liveness endpoints over aiohttp.
"""

from datetime import datetime
from typing import Any

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from app.utils.datetime_utils import utc_now


class SchedulerHealth:
    """
    Health state of the scheduler process.

    Attributes:
        scheduler: Monitored scheduler (None until registered)
        last_enqueued_at: Last time a payout run was enqueued
        last_error: Last enqueue error, cleared on success
    """

    def __init__(self) -> None:
        self.scheduler: AsyncIOScheduler | None = None
        self.last_enqueued_at: datetime | None = None
        self.last_error: str | None = None

    def set_scheduler(self, scheduler: AsyncIOScheduler) -> None:
        """
        Register the scheduler instance for health checks.

        Args:
            scheduler: AsyncIOScheduler instance to monitor
        """
        self.scheduler = scheduler
        logger.info("Scheduler registered for health checks")

    def record_enqueue(self, error: str | None = None) -> None:
        """
        Record a payout enqueue attempt.

        Args:
            error: Error text when enqueueing failed
        """
        if error is None:
            self.last_enqueued_at = utc_now()
        self.last_error = error

    def snapshot(self) -> dict[str, Any]:
        """Current state as a JSON-ready dict."""
        if self.scheduler is None:
            return {"status": "unhealthy", "error": "Scheduler not initialized"}

        is_running = self.scheduler.running
        jobs = self.scheduler.get_jobs()
        return {
            "status": "healthy" if is_running else "stopped",
            "scheduler_running": is_running,
            "jobs_count": len(jobs),
            "jobs": [
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run_time": (
                        job.next_run_time.isoformat() if job.next_run_time else None
                    ),
                }
                for job in jobs
            ],
            "last_enqueued_at": (
                self.last_enqueued_at.isoformat() if self.last_enqueued_at else None
            ),
            "last_error": self.last_error,
        }

    async def health_handler(self, request: web.Request) -> web.Response:
        """Scheduler status and job list."""
        try:
            data = self.snapshot()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return web.json_response(
                {"status": "unhealthy", "error": str(e)}, status=503
            )

        status = 200 if data["status"] == "healthy" else 503
        return web.json_response(data, status=status)

    async def readiness_handler(self, request: web.Request) -> web.Response:
        """Ready once the scheduler runs."""
        if self.scheduler is None or not self.scheduler.running:
            return web.json_response(
                {"status": "not_ready", "ready": False}, status=503
            )
        return web.json_response({"status": "ready", "ready": True})

    async def liveness_handler(self, request: web.Request) -> web.Response:
        """Process is alive."""
        return web.json_response({"status": "alive", "alive": True})


def build_health_app(health: SchedulerHealth) -> web.Application:
    """
    Build the health check application.

    Args:
        health: Health state to expose

    Returns:
        aiohttp application
    """
    app = web.Application()
    app.router.add_get("/health", health.health_handler)
    app.router.add_get("/readiness", health.readiness_handler)
    app.router.add_get("/liveness", health.liveness_handler)
    return app


async def start_health_server(
    health: SchedulerHealth,
    host: str = "0.0.0.0",
    port: int = 8081,
) -> web.AppRunner:
    """
    Start health check server.

    Args:
        health: Health state to expose
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(build_health_app(health))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Health check server started on {host}:{port}")
    return runner


async def stop_health_server(runner: web.AppRunner) -> None:
    """
    Stop health check server.

    Args:
        runner: AppRunner returned by start_health_server
    """
    await runner.cleanup()
    logger.info("Health check server stopped")
