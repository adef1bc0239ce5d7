"""
Rank reward task.

Evaluates every account against the reward ranks once a day. A rank is
only ever credited once, so a repeated run pays nothing new.
"""

import dramatiq
from loguru import logger

from app.services.context import IncomeContext
from app.services.reward.rank_reward_service import RankRewardService
from jobs.async_runner import async_actor, run_exclusive
from jobs.broker import broker  # noqa: F401 - actors bind to the Redis broker


RANK_REWARD_JOB = "rank_rewards"


async def run_rank_rewards(context: IncomeContext) -> dict:
    """Run the rank evaluation and format its summary."""
    summary = await RankRewardService(context).run_for_all()

    result = summary.as_dict()
    result["rewarded_total"] = str(result["rewarded_total"])

    logger.info(
        f"Rank reward run complete: {summary.awarded} awarded of "
        f"{summary.processed} processed, rewarded {summary.rewarded_total}"
    )
    return result


@dramatiq.actor(max_retries=3, time_limit=3_600_000)  # 1 hour
@async_actor
async def process_rank_rewards() -> dict:
    """
    Award newly reached ranks for all accounts.

    Returns:
        Dict with processed, awarded, rewarded_total, failed
    """
    logger.info("Starting rank reward run...")
    return await run_exclusive(RANK_REWARD_JOB, run_rank_rewards)
