"""
Daily payout scheduler.

Posts yesterday's ROI and level income into the wallet ledger at most
once per calendar day, no earlier than the local cutoff hour.

The payout write is one transaction: the cursor and the account are
re-read under row locks, the balance is credited, one daily_income
record is appended and the cursor is advanced. A competing writer makes
this transaction fail on the cursor version or on the unique ledger key;
the retry re-reads the advanced cursor and stops without crediting.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from app.models.enums import TransactionType
from app.repositories.account_repository import AccountRepository
from app.repositories.deposit_repository import DepositRepository
from app.repositories.level_rule_repository import LevelRuleRepository
from app.repositories.payout_cursor_repository import PayoutCursorRepository
from app.repositories.roi_setting_repository import ROISettingRepository
from app.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)
from app.services.activation.activation_service import ActivationService
from app.services.base_service import BaseService
from app.services.context import IncomeContext
from app.services.income.level_income import (
    LevelIncomeCalculator,
    LevelRuleTerms,
)
from app.services.income.roi_accrual import (
    DepositSnapshot,
    ROIAccrualCalculator,
    ROITerms,
)
from app.services.notification.notification_service import NotificationService
from app.services.payout.results import DailyAmounts, PayoutOutcome, PayoutResult
from app.services.team.team_aggregator import TeamAggregator
from app.utils.datetime_utils import as_utc, payout_cutoff, previous_local_date
from app.utils.exceptions import is_permission_error, is_transient
from app.utils.retry import backoff_delay, retry_transient


# Raised by the ORM when a competing writer got there first
WRITE_CONFLICTS = (IntegrityError, StaleDataError)


class DailyPayoutScheduler(BaseService):
    """Daily payout scheduler."""

    def __init__(
        self,
        context: IncomeContext,
        activation: ActivationService | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        """
        Initialize daily payout scheduler.

        Args:
            context: Income engine context
            activation: Activation state machine (created when omitted)
            notifications: Notification recorder (created when omitted)
        """
        super().__init__(context)
        self.notifications = notifications or NotificationService(context)
        self.activation = activation or ActivationService(
            context, notifications=self.notifications
        )

    def _retry_kwargs(self, operation_name: str) -> dict:
        return {
            "max_attempts": self.settings.store_retry_attempts,
            "base_delay": self.settings.store_retry_base_delay,
            "max_delay": self.settings.store_retry_max_delay,
            "operation_name": operation_name,
        }

    async def _read_last_payout(self, account_id: int) -> datetime | None:
        async with self.open_session() as session:
            cursor = await PayoutCursorRepository(session).get_for_account(
                account_id
            )
        if cursor is None or cursor.last_payout_at is None:
            return None
        return as_utc(cursor.last_payout_at)

    async def compute_daily_amounts(
        self, account_id: int, for_date: date, is_active: bool
    ) -> DailyAmounts | None:
        """
        Compute the income accrued for one day.

        ROI follows the deposits that were accruing on that day and is
        zero for inactive accounts. Level income is today's level income
        of the current team.

        Args:
            account_id: Account ID
            for_date: Local calendar day to pay for
            is_active: Activation state evaluated just before

        Returns:
            Amounts, or None when the account does not exist
        """
        async with self.open_session() as session:
            account = await AccountRepository(session).get_by_id(account_id)
            if account is None:
                return None

            roi = Decimal("0")
            if is_active:
                setting = await ROISettingRepository(session).get_setting()
                terms = ROITerms.from_setting(setting, self.settings)
                deposits = [
                    DepositSnapshot.from_model(deposit)
                    for deposit in await DepositRepository(session).get_approved(
                        account_id
                    )
                ]
                roi = ROIAccrualCalculator(terms).accrual_for_day(
                    deposits, for_date, self.context.payout_zone
                )

            rules = [
                LevelRuleTerms.from_model(rule)
                for rule in await LevelRuleRepository(session).get_ordered()
            ]
            level = Decimal("0")
            if rules:
                team = await TeamAggregator(
                    session, max_depth=self.settings.team_max_depth
                ).get_team(account_id)
                level = LevelIncomeCalculator(rules).calculate(
                    account.self_deposit or Decimal("0"), team
                ).today_level_income

        return DailyAmounts(roi=roi, level=level)

    async def _commit_payout(
        self,
        account_id: int,
        for_date: date,
        cutoff: datetime,
        now: datetime,
        amounts: DailyAmounts,
    ) -> PayoutOutcome:
        """
        Run the payout transaction once.

        Returns:
            POSTED / NOTHING_TO_POST when committed, RACE_LOST or
            ALREADY_POSTED when another writer already handled the day,
            SKIPPED when the account is gone
        """
        async with self.open_session() as session:
            async with session.begin():
                cursor_repo = PayoutCursorRepository(session)
                cursor = await cursor_repo.get_for_account(
                    account_id, for_update=True
                )
                if (
                    cursor is not None
                    and cursor.last_payout_at is not None
                    and as_utc(cursor.last_payout_at) >= cutoff
                ):
                    return PayoutOutcome.RACE_LOST

                account_repo = AccountRepository(session)
                account = await account_repo.get_for_update(account_id)
                if account is None:
                    return PayoutOutcome.SKIPPED

                if amounts.total <= 0:
                    await cursor_repo.advance(account_id, now, cursor)
                    return PayoutOutcome.NOTHING_TO_POST

                ledger_repo = WalletTransactionRepository(session)
                if await ledger_repo.get_daily_income(account_id, for_date):
                    # Posted for this day without the cursor moving
                    await cursor_repo.advance(account_id, now, cursor)
                    return PayoutOutcome.ALREADY_POSTED

                await account_repo.credit_balance(account_id, amounts.total)
                await ledger_repo.create(
                    account_id=account_id,
                    type=TransactionType.DAILY_INCOME.value,
                    amount=amounts.total,
                    roi_portion=amounts.roi,
                    level_portion=amounts.level,
                    for_date=for_date,
                    note=f"Daily income for {for_date.isoformat()}",
                )
                await cursor_repo.advance(account_id, now, cursor)

        return PayoutOutcome.POSTED

    async def _post_with_retries(
        self,
        account_id: int,
        for_date: date,
        cutoff: datetime,
        now: datetime,
        amounts: DailyAmounts,
    ) -> tuple[PayoutOutcome, str | None]:
        max_attempts = self.settings.payout_max_attempts
        last_error: str | None = None

        for attempt in range(max_attempts):
            try:
                outcome = await self._commit_payout(
                    account_id, for_date, cutoff, now, amounts
                )
                return outcome, None
            except WRITE_CONFLICTS as e:
                # Rolled back; the next attempt re-reads the cursor
                last_error = str(e)
                self.logger.info(
                    "Payout write conflict, re-checking cursor",
                    extra={"account_id": account_id, "attempt": attempt + 1},
                )
            except Exception as e:
                last_error = str(e)
                if is_permission_error(e):
                    self.logger.debug(
                        "Payout write denied",
                        extra={"account_id": account_id},
                    )
                    return PayoutOutcome.SKIPPED, last_error
                if not is_transient(e):
                    self.logger.opt(exception=e).error(
                        "Payout transaction failed",
                        extra={"account_id": account_id, "error": last_error},
                    )
                    return PayoutOutcome.FAILED, last_error
                if attempt < max_attempts - 1:
                    delay = backoff_delay(
                        attempt,
                        self.settings.store_retry_base_delay,
                        self.settings.store_retry_max_delay,
                    )
                    self.logger.warning(
                        f"Payout transaction failed on attempt "
                        f"{attempt + 1}/{max_attempts}, retrying in {delay:.2f}s",
                        extra={"account_id": account_id, "error": last_error},
                    )
                    await asyncio.sleep(delay)

        self.logger.error(
            f"Payout transaction failed after {max_attempts} attempts",
            extra={"account_id": account_id, "error": last_error},
        )
        return PayoutOutcome.FAILED, last_error

    async def run_for_account(self, account_id: int) -> PayoutResult:
        """
        Post yesterday's income for one account if it is due.

        Safe to call any number of times per day: only the first call
        after the cutoff posts. Never raises.

        Args:
            account_id: Account ID

        Returns:
            Payout result
        """
        now = self.context.now()
        zone = self.context.payout_zone
        cutoff = payout_cutoff(now, self.settings.payout_cutoff_hour, zone)

        if now < cutoff:
            return PayoutResult(account_id=account_id, outcome=PayoutOutcome.TOO_EARLY)

        for_date = previous_local_date(now, zone)

        try:
            last_payout_at = await retry_transient(
                lambda: self._read_last_payout(account_id),
                **self._retry_kwargs("payout cursor read"),
            )
        except Exception as e:
            return self._read_failure(account_id, for_date, e)

        if last_payout_at is not None and last_payout_at >= cutoff:
            return PayoutResult(
                account_id=account_id,
                outcome=PayoutOutcome.ALREADY_POSTED,
                for_date=for_date,
            )

        activation = await self.activation.evaluate(account_id)

        try:
            amounts = await retry_transient(
                lambda: self.compute_daily_amounts(
                    account_id, for_date, activation.is_active
                ),
                **self._retry_kwargs("daily income computation"),
            )
        except Exception as e:
            return self._read_failure(account_id, for_date, e)

        if amounts is None:
            self.logger.warning(
                "Account not found for daily payout",
                extra={"account_id": account_id},
            )
            return PayoutResult(
                account_id=account_id,
                outcome=PayoutOutcome.SKIPPED,
                for_date=for_date,
            )

        outcome, error = await self._post_with_retries(
            account_id, for_date, cutoff, now, amounts
        )

        if outcome is PayoutOutcome.RACE_LOST:
            self.logger.info(
                "Daily payout already handled by another run",
                extra={"account_id": account_id, "for_date": for_date.isoformat()},
            )

        if outcome is not PayoutOutcome.POSTED:
            return PayoutResult(
                account_id=account_id,
                outcome=outcome,
                for_date=for_date,
                error=error,
            )

        self.logger.info(
            "Daily income posted",
            extra={
                "account_id": account_id,
                "for_date": for_date.isoformat(),
                "amount": str(amounts.total),
                "roi_portion": str(amounts.roi),
                "level_portion": str(amounts.level),
            },
        )

        await self.notifications.notify_daily_income(
            account_id, amounts.total, amounts.roi, amounts.level, for_date
        )
        if self.context.cache is not None:
            await self.context.cache.invalidate(account_id)

        return PayoutResult(
            account_id=account_id,
            outcome=PayoutOutcome.POSTED,
            for_date=for_date,
            amount=amounts.total,
            roi_portion=amounts.roi,
            level_portion=amounts.level,
        )

    def _read_failure(
        self, account_id: int, for_date: date, error: Exception
    ) -> PayoutResult:
        if is_permission_error(error):
            self.logger.debug(
                "Payout read denied, skipping account",
                extra={"account_id": account_id},
            )
            outcome = PayoutOutcome.SKIPPED
        else:
            self.logger.error(
                "Payout read failed",
                extra={"account_id": account_id, "error": str(error)},
            )
            outcome = PayoutOutcome.FAILED
        return PayoutResult(
            account_id=account_id,
            outcome=outcome,
            for_date=for_date,
            error=str(error),
        )
