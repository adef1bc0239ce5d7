"""
Integration tests for rank rewards.

Tests cover:
- Crediting every newly reached rank once
- Leg business persisted on the account
- Competing runs and failures
- Batch run over all accounts
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.models import NotificationKind
from app.services.reward.rank_reward_service import RankOutcome, RankRewardService
from app.utils.exceptions import StorePermissionError


pytestmark = pytest.mark.integration


async def rank_ladder(factory):
    """Rank 1 at $1000 total, rank 2 at $2000 total, rank 3 out of reach."""
    for rank in (1, 2, 3):
        await factory.reward_rank(
            rank,
            total_business=Decimal(rank * 1000) if rank < 3 else Decimal("50000"),
            power_leg_business=Decimal(rank * 100),
            other_leg_business=Decimal(rank * 100),
            reward_income=Decimal(rank * 100),
        )


async def two_level_team(factory):
    """Root with $1500 on level 1 and $700 on level 2."""
    root = await factory.account(is_active=True)
    child = await factory.account(
        self_deposit=Decimal("1500"), is_active=True, referred_by=root
    )
    await factory.account(self_deposit=Decimal("700"), referred_by=child)
    return root


class TestEvaluate:
    """Test single-account rank evaluation."""

    @pytest.mark.asyncio
    async def test_awards_reached_ranks(self, context, factory, store):
        """Reaching rank 2 from none credits ranks 1 and 2."""
        await rank_ladder(factory)
        root = await two_level_team(factory)

        result = await RankRewardService(context).evaluate(root.id)

        assert result.outcome is RankOutcome.AWARDED
        assert result.rank == 2
        assert result.amount == Decimal("300")
        assert result.business.power_leg == Decimal("1500")
        assert result.business.other_legs == Decimal("700")

        account = await store.account(root.id)
        assert account.rank == 2
        assert account.balance == Decimal("300")
        assert account.power_leg_business == Decimal("1500")
        assert account.other_leg_business == Decimal("700")

        ledger = await store.ledger(root.id)
        assert [row.type for row in ledger] == ["rank_reward", "rank_reward"]
        assert [row.amount for row in ledger] == [Decimal("100"), Decimal("200")]
        assert ledger[1].note.startswith("Rank 2 reward - power leg $1,500.00")

        notifications = await store.notifications(root.id)
        assert notifications[0].kind == NotificationKind.RANK_REWARD.value
        assert "Rank 2" in notifications[0].message

    @pytest.mark.asyncio
    async def test_rerun_awards_nothing(self, context, factory, store):
        """Held rank is not credited again."""
        await rank_ladder(factory)
        root = await two_level_team(factory)
        service = RankRewardService(context)
        await service.evaluate(root.id)

        result = await service.evaluate(root.id)

        assert result.outcome is RankOutcome.NOT_REACHED
        assert result.rank == 2
        assert (await store.account(root.id)).balance == Decimal("300")
        assert len(await store.ledger(root.id)) == 2

    @pytest.mark.asyncio
    async def test_next_rank_awards_only_new_one(self, context, factory, store):
        """Growing into rank 3 later credits only rank 3."""
        await rank_ladder(factory)
        root = await two_level_team(factory)
        service = RankRewardService(context)
        await service.evaluate(root.id)
        await factory.account(
            self_deposit=Decimal("48000"), is_active=True, referred_by=root
        )

        result = await service.evaluate(root.id)

        assert result.outcome is RankOutcome.AWARDED
        assert result.rank == 3
        assert result.amount == Decimal("300")
        assert (await store.account(root.id)).balance == Decimal("600")

    @pytest.mark.asyncio
    async def test_no_rank_reached(self, context, factory, store):
        """Small team reaches no rank and only leg business is stored."""
        await rank_ladder(factory)
        root = await factory.account(is_active=True)
        await factory.account(self_deposit=Decimal("400"), referred_by=root)

        result = await RankRewardService(context).evaluate(root.id)

        assert result.outcome is RankOutcome.NOT_REACHED
        account = await store.account(root.id)
        assert account.rank == 0
        assert account.balance == Decimal("0")
        assert account.power_leg_business == Decimal("400")
        assert await store.ledger(root.id) == []

    @pytest.mark.asyncio
    async def test_competing_run_credits_once(self, context, factory, store):
        """Run that read the old rank finds it raised and credits nothing."""
        await rank_ladder(factory)
        root = await two_level_team(factory)
        service = RankRewardService(context)
        stale_state = await service._read_state(root.id)
        await service.evaluate(root.id)

        service._read_state = AsyncMock(return_value=stale_state)
        result = await service.evaluate(root.id)

        assert result.outcome is RankOutcome.ALREADY_AWARDED
        assert (await store.account(root.id)).balance == Decimal("300")
        assert len(await store.ledger(root.id)) == 2

    @pytest.mark.asyncio
    async def test_missing_account(self, context):
        """Unknown account is skipped."""
        result = await RankRewardService(context).evaluate(999)
        assert result.outcome is RankOutcome.SKIPPED

    @pytest.mark.asyncio
    async def test_permission_denied_skips(self, context, factory):
        """Access denial skips the account."""
        root = await two_level_team(factory)
        service = RankRewardService(context)
        service._read_state = AsyncMock(side_effect=StorePermissionError("denied"))

        result = await service.evaluate(root.id)

        assert result.outcome is RankOutcome.SKIPPED

    @pytest.mark.asyncio
    async def test_write_error_with_braces_fails(self, context, factory, store):
        """Error text that looks like a format string still yields FAILED."""
        await rank_ladder(factory)
        root = await two_level_team(factory)
        service = RankRewardService(context)
        service._commit_award = AsyncMock(
            side_effect=RuntimeError("bad row {0} {amount:>x}")
        )

        result = await service.evaluate(root.id)

        assert result.outcome is RankOutcome.FAILED
        account = await store.account(root.id)
        assert account.rank == 0
        assert account.balance == Decimal("0")


class TestRunForAll:
    """Test batch rank reward run."""

    @pytest.mark.asyncio
    async def test_summary(self, context, factory, store):
        """Only the root reaches a rank; every account is evaluated."""
        await rank_ladder(factory)
        root = await two_level_team(factory)

        summary = await RankRewardService(context).run_for_all()

        assert summary.processed == 3
        assert summary.awarded == 1
        assert summary.rewarded_total == Decimal("300")
        assert summary.failed == 0
        assert summary.as_dict()["awarded"] == 1
        assert (await store.account(root.id)).rank == 2

    @pytest.mark.asyncio
    async def test_without_ranks(self, context, factory):
        """No configured ranks award nothing."""
        await two_level_team(factory)

        summary = await RankRewardService(context).run_for_all()

        assert summary.processed == 3
        assert summary.awarded == 0
