"""
Rank reward calculator.

Splits the team business into the power leg (the strongest level) and
the other legs, then finds the ranks those figures unlock.
"""

from dataclasses import dataclass
from decimal import Decimal

from app.models.reward_rank import RewardRank
from app.services.team.team_aggregator import TeamMember


@dataclass(frozen=True)
class RankRule:
    """Rank thresholds with a default for every field."""

    rank: int
    total_business: Decimal = Decimal("0")
    power_leg_business: Decimal = Decimal("0")
    other_leg_business: Decimal = Decimal("0")
    reward_income: Decimal = Decimal("0")

    @classmethod
    def from_model(cls, rank: RewardRank) -> "RankRule":
        """Build rule from a stored rank, defaulting missing values."""
        return cls(
            rank=rank.rank,
            total_business=rank.total_business or Decimal("0"),
            power_leg_business=rank.power_leg_business or Decimal("0"),
            other_leg_business=rank.other_leg_business or Decimal("0"),
            reward_income=rank.reward_income or Decimal("0"),
        )


@dataclass(frozen=True)
class LegBusiness:
    """Team business split by leg."""

    total: Decimal = Decimal("0")
    power_leg: Decimal = Decimal("0")
    other_legs: Decimal = Decimal("0")

    @classmethod
    def from_team(
        cls, team: list[list[TeamMember]], max_levels: int
    ) -> "LegBusiness":
        """
        Sum member deposits per level over the first max_levels levels.

        Args:
            team: Team grouped by level (index 0 = level 1)
            max_levels: Levels taken into account

        Returns:
            Total, power leg (largest level) and the rest
        """
        per_level = [
            sum((member.self_deposit for member in level), Decimal("0"))
            for level in team[:max_levels]
        ]
        if not per_level:
            return cls()
        total = sum(per_level, Decimal("0"))
        power_leg = max(per_level)
        return cls(total=total, power_leg=power_leg, other_legs=total - power_leg)


class RankRewardCalculator:
    """
    Rank reward calculator.

    A rank is reached when total, power leg and other legs business all
    meet its thresholds.
    """

    def __init__(self, rules: list[RankRule]) -> None:
        """
        Initialize rank reward calculator.

        Args:
            rules: Configured ranks in any order
        """
        self.rules = sorted(rules, key=lambda rule: rule.rank)

    @staticmethod
    def qualifies(rule: RankRule, business: LegBusiness) -> bool:
        """Check the three thresholds of one rank."""
        return (
            business.total >= rule.total_business
            and business.power_leg >= rule.power_leg_business
            and business.other_legs >= rule.other_leg_business
        )

    def highest_rank(self, business: LegBusiness) -> RankRule | None:
        """
        Highest rank the business qualifies for.

        Args:
            business: Team business split

        Returns:
            Rank rule or None
        """
        reached = [rule for rule in self.rules if self.qualifies(rule, business)]
        return reached[-1] if reached else None

    def ranks_to_award(
        self, current_rank: int, business: LegBusiness
    ) -> list[RankRule]:
        """
        Ranks above the current one that are now reached.

        Every rank between the current and the highest reached one is
        awarded, so skipping a rank does not skip its reward.

        Args:
            current_rank: Rank already held (0 = none)
            business: Team business split

        Returns:
            Rank rules, lowest first
        """
        highest = self.highest_rank(business)
        if highest is None or highest.rank <= current_rank:
            return []
        return [
            rule
            for rule in self.rules
            if current_rank < rule.rank <= highest.rank
        ]
