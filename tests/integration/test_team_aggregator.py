"""
Integration tests for team aggregation.

Tests cover:
- Level grouping of the referral tree
- Referred accounts that no longer exist
- Cycles in the referral graph
- Depth cap
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from app.services.team.team_aggregator import TeamAggregator


pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def chain(factory):
    """root -> a1, a2; a1 -> b; b -> c."""
    root = await factory.account(self_deposit=Decimal("60"))
    a1 = await factory.account(self_deposit=Decimal("100"), is_active=True, referred_by=root)
    a2 = await factory.account(self_deposit=Decimal("50"), referred_by=root)
    b = await factory.account(self_deposit=Decimal("30"), is_active=True, referred_by=a1)
    c = await factory.account(self_deposit=Decimal("10"), referred_by=b)
    return {"root": root, "a1": a1, "a2": a2, "b": b, "c": c}


class TestTeamAggregator:
    """Test team aggregation."""

    @pytest.mark.asyncio
    async def test_levels(self, session_factory, chain):
        """Depth-3 tree gives three levels in referral order."""
        async with session_factory() as session:
            team = await TeamAggregator(session).get_team(chain["root"].id)

        assert [[m.account_id for m in level] for level in team] == [
            [chain["a1"].id, chain["a2"].id],
            [chain["b"].id],
            [chain["c"].id],
        ]
        assert team[0][0].self_deposit == Decimal("100")
        assert team[0][0].is_active is True
        assert team[0][1].is_active is False

    @pytest.mark.asyncio
    async def test_leaf_has_no_team(self, session_factory, chain):
        """Account without referrals has an empty team."""
        async with session_factory() as session:
            team = await TeamAggregator(session).get_team(chain["c"].id)
        assert team == []

    @pytest.mark.asyncio
    async def test_missing_referred_account_skipped(self, session_factory, factory, chain):
        """Edge to a deleted account is logged and skipped."""
        await factory.referral(chain["root"].id, 9999)

        async with session_factory() as session:
            team = await TeamAggregator(session).get_team(chain["root"].id)

        assert [m.account_id for m in team[0]] == [chain["a1"].id, chain["a2"].id]

    @pytest.mark.asyncio
    async def test_cycle_terminates(self, session_factory, factory, chain):
        """Edge back to the root does not loop."""
        await factory.referral(chain["c"].id, chain["root"].id)

        async with session_factory() as session:
            team = await TeamAggregator(session).get_team(chain["root"].id)

        assert len(team) == 3
        all_ids = [m.account_id for level in team for m in level]
        assert chain["root"].id not in all_ids

    @pytest.mark.asyncio
    async def test_depth_cap(self, session_factory, chain):
        """Walk stops at max_depth."""
        async with session_factory() as session:
            team = await TeamAggregator(session, max_depth=2).get_team(chain["root"].id)
        assert len(team) == 2
