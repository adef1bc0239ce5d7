"""
Level income calculator.

Applies the admin level rules to a team grouped by level. Rule N of the
ordered rule list applies to team level N.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from app.models.level_rule import LevelRule
from app.services.team.team_aggregator import TeamMember


@dataclass(frozen=True)
class LevelRuleTerms:
    """Level rule values with a default for every field."""

    income_percent: Decimal = Decimal("0")
    self_investment_condition: Decimal = Decimal("0")
    total_team_business_condition: Decimal = Decimal("0")
    total_team_size_condition: int = 0
    blocked: bool = False

    @classmethod
    def from_model(cls, rule: LevelRule) -> "LevelRuleTerms":
        """Build terms from a stored rule, defaulting missing values."""
        return cls(
            income_percent=rule.income_percent or Decimal("0"),
            self_investment_condition=rule.self_investment_condition or Decimal("0"),
            total_team_business_condition=(
                rule.total_team_business_condition or Decimal("0")
            ),
            total_team_size_condition=rule.total_team_size_condition or 0,
            blocked=bool(rule.blocked),
        )


@dataclass(frozen=True)
class LevelIncomeLine:
    """Outcome of one level."""

    level: int
    member_count: int
    business: Decimal
    eligible: bool
    blocked: bool
    cumulative_income: Decimal
    today_income: Decimal


@dataclass(frozen=True)
class LevelIncomeResult:
    """Level income of one account."""

    cumulative_level_income: Decimal = Decimal("0")
    today_level_income: Decimal = Decimal("0")
    levels: list[LevelIncomeLine] = field(default_factory=list)


class LevelIncomeCalculator:
    """
    Level income calculator.

    A level pays its income percent of the level business when it is not
    blocked and all three conditions hold. The "today" figure uses only
    active members with a non-zero deposit.
    """

    def __init__(self, rules: list[LevelRuleTerms]) -> None:
        """
        Initialize level income calculator.

        Args:
            rules: Rules in level order (first rule = level 1)
        """
        self.rules = rules

    def is_eligible(
        self,
        rule: LevelRuleTerms,
        root_self_deposit: Decimal,
        business: Decimal,
        member_count: int,
    ) -> bool:
        """
        Check the three level conditions (all must hold).

        Args:
            rule: Level rule
            root_self_deposit: Own principal of the root account
            business: Summed self deposit of the level members
            member_count: Number of level members

        Returns:
            True if the level pays
        """
        if root_self_deposit < rule.self_investment_condition:
            return False
        if business < rule.total_team_business_condition:
            return False
        if member_count < rule.total_team_size_condition:
            return False
        return True

    def calculate(
        self,
        root_self_deposit: Decimal,
        team: list[list[TeamMember]],
    ) -> LevelIncomeResult:
        """
        Calculate cumulative and today's level income.

        Args:
            root_self_deposit: Own principal of the root account
            team: Members grouped by level (index 0 = level 1)

        Returns:
            Totals plus a per-level breakdown
        """
        cumulative_total = Decimal("0")
        today_total = Decimal("0")
        lines: list[LevelIncomeLine] = []

        for index, rule in enumerate(self.rules):
            level = index + 1
            members = team[index] if index < len(team) else []

            business = sum(
                (member.self_deposit for member in members), Decimal("0")
            )
            member_count = len(members)

            if rule.blocked:
                lines.append(
                    LevelIncomeLine(
                        level=level,
                        member_count=member_count,
                        business=business,
                        eligible=False,
                        blocked=True,
                        cumulative_income=Decimal("0"),
                        today_income=Decimal("0"),
                    )
                )
                continue

            eligible = self.is_eligible(
                rule, root_self_deposit, business, member_count
            )

            cumulative = Decimal("0")
            today = Decimal("0")
            if eligible:
                rate = rule.income_percent / Decimal("100")
                cumulative = business * rate
                active_business = sum(
                    (
                        member.self_deposit
                        for member in members
                        if member.is_active and member.self_deposit > 0
                    ),
                    Decimal("0"),
                )
                today = active_business * rate

            cumulative_total += cumulative
            today_total += today
            lines.append(
                LevelIncomeLine(
                    level=level,
                    member_count=member_count,
                    business=business,
                    eligible=eligible,
                    blocked=False,
                    cumulative_income=cumulative,
                    today_income=today,
                )
            )

        if len(team) > len(self.rules):
            logger.debug(
                "Team deeper than configured rules",
                extra={"team_levels": len(team), "rules": len(self.rules)},
            )

        return LevelIncomeResult(
            cumulative_level_income=cumulative_total,
            today_level_income=today_total,
            levels=lines,
        )
