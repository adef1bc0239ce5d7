"""
Rank reward package.

- rank_reward: power leg / other legs split and rank thresholds
- rank_reward_service: awards newly reached ranks once
"""

from app.services.reward.rank_reward import (
    LegBusiness,
    RankRewardCalculator,
    RankRule,
)
from app.services.reward.rank_reward_service import (
    RankOutcome,
    RankRewardResult,
    RankRewardService,
    RankRewardSummary,
)


__all__ = [
    "LegBusiness",
    "RankOutcome",
    "RankRewardCalculator",
    "RankRewardResult",
    "RankRewardService",
    "RankRewardSummary",
    "RankRule",
]
