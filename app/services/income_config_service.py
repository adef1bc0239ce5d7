"""
Income configuration service.

Saves the admin level rules, reward ranks and ROI plan, then announces
the change so cached dashboard figures get recomputed.
"""

from decimal import Decimal
from typing import Any

from redis.asyncio import Redis as AsyncRedis

from app.config.business_constants import DEFAULT_REWARD_RANKS
from app.models.level_rule import LevelRule
from app.models.reward_rank import RewardRank
from app.models.roi_setting import ROISetting
from app.repositories.level_rule_repository import LevelRuleRepository
from app.repositories.reward_rank_repository import RewardRankRepository
from app.repositories.roi_setting_repository import ROISettingRepository
from app.services.base_service import BaseService
from app.services.config_watcher import publish_config_change
from app.services.context import IncomeContext
from app.services.income.roi_accrual import ROITerms
from app.services.income.roi_plan import plan_to_roi_terms


def default_reward_ranks() -> list[dict[str, Decimal]]:
    """
    Default rank ladder: rank N needs N * 1000 total business and
    N * 100 on each leg, and pays N * 100.
    """
    return [
        {
            "total_business": Decimal(number * 1000),
            "power_leg_business": Decimal(number * 100),
            "other_leg_business": Decimal(number * 100),
            "reward_income": Decimal(number * 100),
        }
        for number in range(1, DEFAULT_REWARD_RANKS + 1)
    ]


class IncomeConfigService(BaseService):
    """Admin configuration writer."""

    def __init__(
        self, context: IncomeContext, redis_client: AsyncRedis | None = None
    ) -> None:
        """
        Initialize income configuration service.

        Args:
            context: Income engine context
            redis_client: Redis client for change events (None = no events)
        """
        super().__init__(context)
        self.redis = redis_client

    async def _announce(self, source: str) -> None:
        if self.redis is not None:
            await publish_config_change(self.redis, source)

    async def get_roi_terms(self) -> ROITerms:
        """
        Effective ROI terms (defaults when nothing is saved).

        Returns:
            ROI terms
        """
        async with self.open_session() as session:
            setting = await ROISettingRepository(session).get_setting()
            return ROITerms.from_setting(setting, self.settings)

    async def save_roi_plan(
        self,
        plan_type: str,
        percentage: Decimal,
        duration: int | None = None,
        is_enabled: bool = True,
    ) -> ROISetting:
        """
        Convert and save the admin ROI plan.

        Args:
            plan_type: daily / weekly / monthly
            percentage: Plan percentage (1 = 1%)
            duration: Plan length in days (daily plans)
            is_enabled: ROI switched on

        Returns:
            Saved setting

        Raises:
            ValueError: Invalid plan
        """
        terms = plan_to_roi_terms(plan_type, percentage, duration)

        async with self.open_session() as session:
            setting = await ROISettingRepository(session).save(
                daily_roi=terms.daily_roi,
                max_roi=terms.max_roi,
                plan_type=plan_type,
                percentage=percentage,
                duration=duration,
                is_enabled=is_enabled,
            )
            await session.commit()

        self.logger.info(
            "ROI plan saved",
            extra={
                "plan_type": plan_type,
                "percentage": str(percentage),
                "duration": duration,
                "daily_roi": str(terms.daily_roi),
                "max_roi": str(terms.max_roi),
                "is_enabled": is_enabled,
            },
        )
        await self._announce("roi_setting")
        return setting

    async def replace_level_rules(
        self, rules: list[dict[str, Any]]
    ) -> list[LevelRule]:
        """
        Replace the level rule list.

        Args:
            rules: Rule field dicts, first entry = level 1

        Returns:
            Saved rules
        """
        async with self.open_session() as session:
            saved = await LevelRuleRepository(session).replace_rules(rules)
            await session.commit()

        self.logger.info("Level rules saved", extra={"levels": len(saved)})
        await self._announce("level_rules")
        return saved

    async def replace_reward_ranks(
        self, ranks: list[dict[str, Any]]
    ) -> list[RewardRank]:
        """
        Replace the reward rank list.

        A reward above the rank's total business is lowered to it.

        Args:
            ranks: Rank field dicts, first entry = rank 1

        Returns:
            Saved ranks

        Raises:
            ValueError: Negative threshold or reward
        """
        cleaned = []
        for number, data in enumerate(ranks, start=1):
            values = dict(data)
            for key in (
                "total_business",
                "power_leg_business",
                "other_leg_business",
                "reward_income",
            ):
                if Decimal(values.get(key) or 0) < 0:
                    raise ValueError(f"Rank {number}: {key} must not be negative")

            total_business = Decimal(values.get("total_business") or 0)
            if Decimal(values.get("reward_income") or 0) > total_business:
                self.logger.warning(
                    "Rank reward above total business, lowering it",
                    extra={"rank": number},
                )
                values["reward_income"] = total_business
            cleaned.append(values)

        async with self.open_session() as session:
            saved = await RewardRankRepository(session).replace_ranks(cleaned)
            await session.commit()

        self.logger.info("Reward ranks saved", extra={"ranks": len(saved)})
        await self._announce("reward_ranks")
        return saved

    async def reset_reward_ranks(self) -> list[RewardRank]:
        """
        Restore the default rank ladder.

        Returns:
            Saved ranks
        """
        return await self.replace_reward_ranks(default_reward_ranks())
