"""
Tests for level income.

Tests cover:
- Eligibility as a conjunction of the three conditions
- Blocked levels
- Cumulative vs today's figure (active members only)
- Rules deeper than the team
"""

from decimal import Decimal
from types import SimpleNamespace

from app.services.income.level_income import LevelIncomeCalculator, LevelRuleTerms


def rule(percent="10", self_inv="0", business="0", size=0, blocked=False):
    return LevelRuleTerms(
        income_percent=Decimal(percent),
        self_investment_condition=Decimal(self_inv),
        total_team_business_condition=Decimal(business),
        total_team_size_condition=size,
        blocked=blocked,
    )


class TestLevelEligibility:
    """Test level eligibility conditions."""

    def test_all_conditions_met(self, member):
        """Rule {10%, 50, 100, 1}, root 60, member 150: $15.00."""
        calculator = LevelIncomeCalculator([rule("10", "50", "100", 1)])

        result = calculator.calculate(Decimal("60"), [[member(2, "150")]])

        assert result.levels[0].eligible is True
        assert result.cumulative_level_income == Decimal("15.00")

    def test_self_investment_not_met(self, member):
        """Root below the self investment condition."""
        calculator = LevelIncomeCalculator([rule("10", "50", "100", 1)])
        result = calculator.calculate(Decimal("49.99"), [[member(2, "150")]])
        assert result.levels[0].eligible is False
        assert result.cumulative_level_income == Decimal("0")

    def test_team_business_not_met(self, member):
        """Level business below the business condition."""
        calculator = LevelIncomeCalculator([rule("10", "50", "200", 1)])
        result = calculator.calculate(Decimal("60"), [[member(2, "150")]])
        assert result.levels[0].eligible is False

    def test_team_size_not_met(self, member):
        """Too few members on the level."""
        calculator = LevelIncomeCalculator([rule("10", "50", "100", 2)])
        result = calculator.calculate(Decimal("60"), [[member(2, "150")]])
        assert result.levels[0].eligible is False

    def test_blocked_level_contributes_nothing(self, member):
        """Blocked rule is skipped even when conditions hold."""
        calculator = LevelIncomeCalculator([rule(blocked=True), rule("5")])
        team = [[member(2, "100")], [member(3, "200")]]

        result = calculator.calculate(Decimal("0"), team)

        assert result.levels[0].blocked is True
        assert result.levels[0].cumulative_income == Decimal("0")
        assert result.cumulative_level_income == Decimal("10.00")


class TestLevelIncomeFigures:
    """Test cumulative and today's figures."""

    def test_today_counts_active_members_with_deposit(self, member):
        """Inactive and zero-deposit members are left out of today."""
        calculator = LevelIncomeCalculator([rule("10")])
        team = [[
            member(2, "100"),
            member(3, "200", active=False),
            member(4, "0"),
        ]]

        result = calculator.calculate(Decimal("0"), team)

        assert result.cumulative_level_income == Decimal("30.00")
        assert result.today_level_income == Decimal("10.00")

    def test_rules_beyond_team_depth(self, member):
        """Levels without members are not eligible when conditions need members."""
        calculator = LevelIncomeCalculator([rule("10"), rule("5", size=1)])

        result = calculator.calculate(Decimal("0"), [[member(2, "100")]])

        assert len(result.levels) == 2
        assert result.levels[1].member_count == 0
        assert result.levels[1].eligible is False
        assert result.cumulative_level_income == Decimal("10.00")

    def test_no_rules(self, member):
        """Without rules there is no level income."""
        result = LevelIncomeCalculator([]).calculate(Decimal("100"), [[member(2, "100")]])
        assert result.cumulative_level_income == Decimal("0")
        assert result.levels == []

    def test_terms_from_model_defaults(self):
        """Missing stored values default to zero / not blocked."""
        stored = SimpleNamespace(
            income_percent=None,
            self_investment_condition=None,
            total_team_business_condition=None,
            total_team_size_condition=None,
            blocked=None,
        )
        terms = LevelRuleTerms.from_model(stored)
        assert terms == LevelRuleTerms()
