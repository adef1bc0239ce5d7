"""
Integration tests for the daily payout.

Tests cover:
- Posting once per day after the cutoff
- Too early / nothing to post / already posted
- Level income for inactive accounts
- Lost races and concurrent runs
- Batch run over all accounts
"""

import asyncio
from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.models import NotificationKind, PayoutCursor, WalletTransaction
from app.services.context import IncomeContext
from app.services.dashboard_cache import figures_key
from app.services.payout.batch_payout import BatchPayoutRunner
from app.services.payout.payout_scheduler import DailyPayoutScheduler
from app.services.payout.results import DailyAmounts, PayoutOutcome, PayoutResult
from app.services.summary.figures import IncomeFigures
from app.utils.exceptions import StorePermissionError


pytestmark = pytest.mark.integration

APPROVED_AT = datetime(2026, 10, 1, 9, 0, tzinfo=UTC)
FOR_DATE = date(2026, 10, 17)
YESTERDAY_AFTER_CUTOFF = datetime(2026, 10, 17, 10, 10, tzinfo=UTC)


async def funded_account(factory, amount: str = "100", cursor_at=YESTERDAY_AFTER_CUTOFF):
    """Active account with one approved deposit and a payout cursor."""
    account = await factory.account(is_active=True)
    await factory.deposit(account, Decimal(amount), APPROVED_AT)
    if cursor_at is not None:
        await factory._add(PayoutCursor(account_id=account.id, last_payout_at=cursor_at))
    return account


class TestDailyAmounts:
    """Test payout amount type."""

    def test_quantized_total(self):
        """Amounts are rounded to 8 decimals half up."""
        amounts = DailyAmounts(roi=Decimal("0.123456785"), level=Decimal("1"))
        assert amounts.roi == Decimal("0.12345679")
        assert amounts.total == Decimal("1.12345679")


class TestRunForAccount:
    """Test single-account payout."""

    @pytest.mark.asyncio
    async def test_posts_once_per_day(self, context, factory, store, clock):
        """10:05 run posts yesterday's ROI; a 10:06 rerun is a no-op."""
        account = await funded_account(factory)
        scheduler = DailyPayoutScheduler(context)

        result = await scheduler.run_for_account(account.id)

        assert result.outcome is PayoutOutcome.POSTED
        assert result.for_date == FOR_DATE
        assert result.amount == Decimal("1.00")
        assert result.roi_portion == Decimal("1.00")
        assert result.level_portion == Decimal("0")

        ledger = await store.ledger(account.id)
        assert len(ledger) == 1
        assert ledger[0].type == "daily_income"
        assert ledger[0].for_date == FOR_DATE
        assert ledger[0].amount == Decimal("1.00")
        assert (await store.account(account.id)).balance == Decimal("1.00")
        cursor = await store.cursor(account.id)
        assert cursor.last_payout_at.replace(tzinfo=UTC) == clock.now
        kinds = [n.kind for n in await store.notifications(account.id)]
        assert NotificationKind.DAILY_INCOME.value in kinds

        clock.now = datetime(2026, 10, 18, 10, 6, tzinfo=UTC)
        again = await scheduler.run_for_account(account.id)

        assert again.outcome is PayoutOutcome.ALREADY_POSTED
        assert len(await store.ledger(account.id)) == 1
        assert (await store.account(account.id)).balance == Decimal("1.00")

    @pytest.mark.asyncio
    async def test_first_payout_creates_cursor(self, context, factory, store):
        """Account never paid before gets a cursor."""
        account = await funded_account(factory, cursor_at=None)

        result = await DailyPayoutScheduler(context).run_for_account(account.id)

        assert result.outcome is PayoutOutcome.POSTED
        assert await store.cursor(account.id) is not None

    @pytest.mark.asyncio
    async def test_too_early(self, context, factory, store, clock):
        """Before the cutoff nothing happens."""
        account = await funded_account(factory)
        clock.now = datetime(2026, 10, 18, 9, 59, tzinfo=UTC)

        result = await DailyPayoutScheduler(context).run_for_account(account.id)

        assert result.outcome is PayoutOutcome.TOO_EARLY
        assert await store.ledger(account.id) == []

    @pytest.mark.asyncio
    async def test_nothing_to_post_advances_cursor(self, context, factory, store, clock):
        """Zero income writes no record but still closes the day."""
        account = await factory.account()

        result = await DailyPayoutScheduler(context).run_for_account(account.id)

        assert result.outcome is PayoutOutcome.NOTHING_TO_POST
        assert await store.ledger(account.id) == []
        cursor = await store.cursor(account.id)
        assert cursor.last_payout_at.replace(tzinfo=UTC) == clock.now

        again = await DailyPayoutScheduler(context).run_for_account(account.id)
        assert again.outcome is PayoutOutcome.ALREADY_POSTED

    @pytest.mark.asyncio
    async def test_capped_deposit_posts_nothing(self, context, factory):
        """Deposit past its 30 accrual days earns nothing."""
        account = await factory.account(is_active=True)
        await factory.deposit(account, Decimal("100"), datetime(2026, 9, 1, tzinfo=UTC))

        result = await DailyPayoutScheduler(context).run_for_account(account.id)

        assert result.outcome is PayoutOutcome.NOTHING_TO_POST

    @pytest.mark.asyncio
    async def test_level_income_for_inactive_account(self, context, factory, store):
        """Inactive account receives level income but no ROI."""
        root = await factory.account()
        await factory.account(
            self_deposit=Decimal("150"), is_active=True, referred_by=root
        )
        await factory.level_rule(1, income_percent=Decimal("10"))

        result = await DailyPayoutScheduler(context).run_for_account(root.id)

        assert result.outcome is PayoutOutcome.POSTED
        assert result.roi_portion == Decimal("0")
        assert result.level_portion == Decimal("15.00")
        ledger = await store.ledger(root.id)
        assert ledger[0].level_portion == Decimal("15.00")
        assert (await store.account(root.id)).balance == Decimal("15.00")

    @pytest.mark.asyncio
    async def test_existing_record_without_cursor(self, context, factory, store):
        """Day already in the ledger is not paid twice; the cursor catches up."""
        account = await funded_account(factory)
        await factory._add(
            WalletTransaction(
                account_id=account.id,
                type="daily_income",
                amount=Decimal("1"),
                roi_portion=Decimal("1"),
                for_date=FOR_DATE,
                posted_at=datetime(2026, 10, 18, 10, 1, tzinfo=UTC),
            )
        )

        result = await DailyPayoutScheduler(context).run_for_account(account.id)

        assert result.outcome is PayoutOutcome.ALREADY_POSTED
        assert len(await store.ledger(account.id)) == 1
        assert (await store.account(account.id)).balance == Decimal("0")
        cursor = await store.cursor(account.id)
        assert cursor.last_payout_at.replace(tzinfo=UTC) > YESTERDAY_AFTER_CUTOFF

    @pytest.mark.asyncio
    async def test_race_lost(self, context, factory, store):
        """Cursor advanced by another run after the guard read: no credit."""
        account = await funded_account(
            factory, cursor_at=datetime(2026, 10, 18, 10, 1, tzinfo=UTC)
        )
        scheduler = DailyPayoutScheduler(context)
        # Stale guard read, as if the other run committed right after it
        scheduler._read_last_payout = AsyncMock(return_value=YESTERDAY_AFTER_CUTOFF)

        result = await scheduler.run_for_account(account.id)

        assert result.outcome is PayoutOutcome.RACE_LOST
        assert await store.ledger(account.id) == []
        assert (await store.account(account.id)).balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_concurrent_runs_post_once(self, session_factory, test_settings, clock, factory, store):
        """Three simultaneous runs write exactly one record."""
        settings = test_settings.model_copy(
            update={"payout_max_attempts": 10, "store_retry_max_delay": 0.2}
        )
        context = IncomeContext(
            session_factory=session_factory, settings=settings, clock=clock
        )
        account = await funded_account(factory)

        results = await asyncio.gather(*[
            DailyPayoutScheduler(context).run_for_account(account.id)
            for _ in range(3)
        ])

        outcomes = [r.outcome for r in results]
        assert outcomes.count(PayoutOutcome.POSTED) == 1
        assert set(outcomes) <= {
            PayoutOutcome.POSTED,
            PayoutOutcome.RACE_LOST,
            PayoutOutcome.ALREADY_POSTED,
        }
        assert len(await store.ledger(account.id)) == 1
        assert (await store.account(account.id)).balance == Decimal("1.00")

    @pytest.mark.asyncio
    async def test_permission_denied_skips(self, context, factory, store):
        """Denied computation skips the account and keeps the cursor."""
        account = await funded_account(factory)
        scheduler = DailyPayoutScheduler(context)
        scheduler.compute_daily_amounts = AsyncMock(
            side_effect=StorePermissionError("denied")
        )

        result = await scheduler.run_for_account(account.id)

        assert result.outcome is PayoutOutcome.SKIPPED
        cursor = await store.cursor(account.id)
        assert cursor.last_payout_at.replace(tzinfo=UTC) == YESTERDAY_AFTER_CUTOFF

    @pytest.mark.asyncio
    async def test_computation_error_with_braces_fails(self, context, factory, store):
        """Error text that looks like a format string still yields FAILED."""
        account = await funded_account(factory)
        scheduler = DailyPayoutScheduler(context)
        scheduler.compute_daily_amounts = AsyncMock(
            side_effect=RuntimeError('constraint violated: {"detail": "x"}')
        )

        result = await scheduler.run_for_account(account.id)

        assert result.outcome is PayoutOutcome.FAILED
        assert await store.ledger(account.id) == []

    @pytest.mark.asyncio
    async def test_commit_error_with_braces_fails(self, context, factory, store):
        """Non-transient commit error is reported, not raised."""
        account = await funded_account(factory)
        scheduler = DailyPayoutScheduler(context)
        scheduler._commit_payout = AsyncMock(
            side_effect=RuntimeError("bad row {0} {amount:>x}")
        )

        result = await scheduler.run_for_account(account.id)

        assert result.outcome is PayoutOutcome.FAILED
        assert result.error == "bad row {0} {amount:>x}"
        assert (await store.account(account.id)).balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_missing_account(self, context):
        """Unknown account is skipped."""
        result = await DailyPayoutScheduler(context).run_for_account(4242)
        assert result.outcome is PayoutOutcome.SKIPPED

    @pytest.mark.asyncio
    async def test_posting_invalidates_dashboard_cache(self, context, factory, fake_redis):
        """Posted income drops the account's cached figures."""
        account = await funded_account(factory)
        await context.cache.set(IncomeFigures.zero(account.id))

        await DailyPayoutScheduler(context).run_for_account(account.id)

        assert figures_key(account.id) not in fake_redis.store


class TestBatchPayout:
    """Test batch payout over all accounts."""

    @pytest.mark.asyncio
    async def test_run_for_all(self, context, factory):
        """Every account is processed; a rerun posts nothing."""
        await funded_account(factory, "100")
        await funded_account(factory, "50")
        await factory.account()
        runner = BatchPayoutRunner(context)

        summary = await runner.run_for_all()

        assert summary.processed == 3
        assert summary.posted == 2
        assert summary.failed == 0
        assert summary.credited_total == Decimal("1.50")
        assert summary.outcomes == {"posted": 2, "nothing_to_post": 1}
        assert summary.as_dict()["processed"] == 3

        rerun = await runner.run_for_all()

        assert rerun.posted == 0
        assert rerun.outcomes == {"already_posted": 3}

    @pytest.mark.asyncio
    async def test_small_batches(self, session_factory, test_settings, clock, factory):
        """Accounts are paged by ID."""
        context = IncomeContext(
            session_factory=session_factory,
            settings=test_settings.model_copy(update={"payout_batch_size": 1}),
            clock=clock,
        )
        for _ in range(3):
            await funded_account(factory)

        summary = await BatchPayoutRunner(context).run_for_all()

        assert summary.processed == 3
        assert summary.posted == 3

    @pytest.mark.asyncio
    async def test_unexpected_error_counts_as_failed(self, context, factory):
        """One account blowing up does not stop the batch."""
        await factory.account()
        await factory.account()
        scheduler = DailyPayoutScheduler(context)
        scheduler.run_for_account = AsyncMock(side_effect=[
            RuntimeError("boom"),
            PayoutResult(account_id=2, outcome=PayoutOutcome.NOTHING_TO_POST),
        ])
        runner = BatchPayoutRunner(context, scheduler=scheduler)

        summary = await runner.run_for_all()

        assert summary.processed == 2
        assert summary.failed == 1
        assert summary.outcomes == {"nothing_to_post": 1}
