"""
Income refresh task.

Recomputes the cached figures of all active accounts. Enqueued by the
scheduler process after an admin configuration change.
"""

import dramatiq
from loguru import logger

from app.services.context import IncomeContext
from app.services.summary.batch_refresh import BatchRefreshRunner
from jobs.async_runner import async_actor, run_exclusive
from jobs.broker import broker  # noqa: F401 - actors bind to the Redis broker


INCOME_REFRESH_JOB = "income_refresh"


async def run_income_refresh(context: IncomeContext) -> dict:
    """Run the refresh and format its summary."""
    summary = await BatchRefreshRunner(context).run_for_active()

    result = summary.as_dict()
    result["roi_total"] = str(result["roi_total"])

    logger.info(
        f"Income refresh complete: {summary.processed} active accounts, "
        f"total ROI {summary.roi_total}"
    )
    return result


@dramatiq.actor(max_retries=3, time_limit=3_600_000)  # 1 hour
@async_actor
async def refresh_income_figures() -> dict:
    """
    Refresh the income figures of all active accounts.

    Returns:
        Dict with processed, roi_total, stale, roi_disabled
    """
    logger.info("Starting income refresh...")
    return await run_exclusive(INCOME_REFRESH_JOB, run_income_refresh)
