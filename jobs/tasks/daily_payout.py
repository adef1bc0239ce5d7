"""
Daily payout tasks.

Posts yesterday's income into the wallet ledger. Enqueued by the
scheduler at the cutoff and every few minutes afterwards; the payout
cursor turns every repeat into a no-op, and a run that finds the
previous one still in flight is skipped.
"""

import dramatiq
from loguru import logger

from app.services.context import IncomeContext
from app.services.payout.batch_payout import BatchPayoutRunner
from app.services.payout.payout_scheduler import DailyPayoutScheduler
from jobs.async_runner import async_actor, local_income_context, run_exclusive
from jobs.broker import broker  # noqa: F401 - actors bind to the Redis broker


DAILY_PAYOUT_JOB = "daily_payout"


async def run_daily_payouts(context: IncomeContext) -> dict:
    """
    Run the batch payout and format its summary.

    Args:
        context: Income context

    Returns:
        Dict with processed, posted, credited_total, failed
    """
    summary = await BatchPayoutRunner(context).run_for_all()

    result = summary.as_dict()
    result["credited_total"] = str(result["credited_total"])

    logger.info(
        f"Daily payout run complete: {summary.posted} posted of "
        f"{summary.processed} processed, credited {summary.credited_total}, "
        f"{summary.failed} failed"
    )
    return result


@dramatiq.actor(max_retries=3, time_limit=3_600_000)  # 1 hour
@async_actor
async def process_daily_payouts() -> dict:
    """
    Run the daily payout for all accounts.

    Returns:
        Dict with processed, posted, credited_total, failed
        ({"skipped": True} while a previous run is still going)
    """
    logger.info("Starting daily payout run...")
    return await run_exclusive(DAILY_PAYOUT_JOB, run_daily_payouts)


@dramatiq.actor(max_retries=3, time_limit=60_000)  # 1 minute
@async_actor
async def process_account_payout(account_id: int) -> str:
    """
    Run the daily payout for one account.

    Meant for the hosting application's session hooks (e.g. on login).

    Args:
        account_id: Account ID

    Returns:
        Payout outcome value
    """
    async with local_income_context() as context:
        result = await DailyPayoutScheduler(context).run_for_account(account_id)

    logger.info(
        f"Account payout: {result.outcome.value}",
        extra={"account_id": account_id, "amount": str(result.amount)},
    )
    return result.outcome.value
