"""
Activation service.

An account is active when its balance or its approved deposits total
reaches the activation threshold. Only the active flag gates ROI accrual
and withdrawals.
"""

from dataclasses import dataclass
from decimal import Decimal

from app.repositories.account_repository import AccountRepository
from app.repositories.deposit_repository import DepositRepository
from app.services.base_service import BaseService
from app.services.context import IncomeContext
from app.services.notification.notification_service import NotificationService
from app.utils.exceptions import is_permission_error
from app.utils.retry import retry_transient


def decide_activation(
    balance: Decimal, approved_total: Decimal, threshold: Decimal
) -> bool:
    """
    Pure activation rule.

    Args:
        balance: Wallet balance
        approved_total: Live total of approved deposits
        threshold: Activation threshold

    Returns:
        True if the account is active
    """
    return balance >= threshold or approved_total >= threshold


def missing_for_activation(
    balance: Decimal, approved_total: Decimal, threshold: Decimal
) -> Decimal:
    """
    Amount still needed to become active.

    Args:
        balance: Wallet balance
        approved_total: Live total of approved deposits
        threshold: Activation threshold

    Returns:
        Missing amount (0 when already active)
    """
    return max(Decimal("0"), threshold - max(balance, approved_total))


@dataclass(frozen=True)
class ActivationResult:
    """Outcome of one activation evaluation."""

    account_id: int
    is_active: bool
    changed: bool = False
    balance: Decimal = Decimal("0")
    approved_total: Decimal = Decimal("0")
    missing: Decimal = Decimal("0")

    @property
    def can_withdraw(self) -> bool:
        """Withdrawal eligibility equals the active flag."""
        return self.is_active


@dataclass(frozen=True)
class _AccountState:
    exists: bool
    balance: Decimal = Decimal("0")
    approved_total: Decimal = Decimal("0")
    stored_active: bool = False


class ActivationService(BaseService):
    """Activation state machine."""

    def __init__(
        self,
        context: IncomeContext,
        notifications: NotificationService | None = None,
    ) -> None:
        """
        Initialize activation service.

        Args:
            context: Income engine context
            notifications: Notification recorder (created when omitted)
        """
        super().__init__(context)
        self.notifications = notifications or NotificationService(context)

    @property
    def threshold(self) -> Decimal:
        """Activation threshold."""
        return self.settings.activation_threshold

    async def _read_state(self, account_id: int) -> _AccountState:
        async with self.open_session() as session:
            account = await AccountRepository(session).get_by_id(account_id)
            if account is None:
                return _AccountState(exists=False)
            approved_total = await DepositRepository(session).sum_approved(
                account_id
            )
            return _AccountState(
                exists=True,
                balance=account.balance or Decimal("0"),
                approved_total=approved_total,
                stored_active=bool(account.is_active),
            )

    async def _write_state(
        self, account_id: int, is_active: bool, approved_total: Decimal
    ) -> None:
        async with self.open_session() as session:
            await AccountRepository(session).set_activation(
                account_id,
                is_active=is_active,
                total_deposits=approved_total,
                checked_at=self.context.now(),
            )
            await session.commit()

    async def evaluate(self, account_id: int) -> ActivationResult:
        """
        Evaluate and persist the activation state of an account.

        Writes only on a transition, then records an activation or
        inactivity notification. Never raises: a failed read yields an
        inactive result and no write.

        Args:
            account_id: Account ID

        Returns:
            Activation result
        """
        try:
            state = await retry_transient(
                lambda: self._read_state(account_id),
                max_attempts=self.settings.store_retry_attempts,
                base_delay=self.settings.store_retry_base_delay,
                max_delay=self.settings.store_retry_max_delay,
                operation_name="activation read",
            )
        except Exception as e:
            if is_permission_error(e):
                self.logger.debug(
                    "Activation read denied, treating account as inactive",
                    extra={"account_id": account_id},
                )
            else:
                self.logger.warning(
                    "Activation read failed, treating account as inactive",
                    extra={"account_id": account_id, "error": str(e)},
                )
            return ActivationResult(account_id=account_id, is_active=False)

        if not state.exists:
            self.logger.warning(
                "Account not found for activation check",
                extra={"account_id": account_id},
            )
            return ActivationResult(account_id=account_id, is_active=False)

        is_active = decide_activation(
            state.balance, state.approved_total, self.threshold
        )
        missing = missing_for_activation(
            state.balance, state.approved_total, self.threshold
        )

        if is_active == state.stored_active:
            return ActivationResult(
                account_id=account_id,
                is_active=is_active,
                balance=state.balance,
                approved_total=state.approved_total,
                missing=missing,
            )

        try:
            await retry_transient(
                lambda: self._write_state(
                    account_id, is_active, state.approved_total
                ),
                max_attempts=self.settings.store_retry_attempts,
                base_delay=self.settings.store_retry_base_delay,
                max_delay=self.settings.store_retry_max_delay,
                operation_name="activation write",
            )
        except Exception as e:
            self.logger.error(
                "Failed to persist activation transition",
                extra={
                    "account_id": account_id,
                    "is_active": is_active,
                    "error": str(e),
                },
            )
            return ActivationResult(
                account_id=account_id,
                is_active=state.stored_active,
                balance=state.balance,
                approved_total=state.approved_total,
                missing=missing,
            )

        self.logger.info(
            "Account activation changed",
            extra={
                "account_id": account_id,
                "is_active": is_active,
                "balance": str(state.balance),
                "approved_total": str(state.approved_total),
            },
        )

        if is_active:
            await self.notifications.notify_activated(account_id)
        else:
            await self.notifications.notify_inactive(account_id, missing)

        return ActivationResult(
            account_id=account_id,
            is_active=is_active,
            changed=True,
            balance=state.balance,
            approved_total=state.approved_total,
            missing=missing,
        )
