"""
Notification service.

Records notification events in their own session. A failure to record
is logged and never reaches the caller.
"""

from datetime import date
from decimal import Decimal

from app.models.enums import NotificationKind
from app.repositories.notification_repository import NotificationRepository
from app.services.base_service import BaseService
from app.services.notification.messages import (
    activation_message,
    daily_income_message,
    inactivity_message,
    rank_reward_message,
)


class NotificationService(BaseService):
    """Notification recorder."""

    async def record(
        self, account_id: int, kind: NotificationKind, message: str
    ) -> bool:
        """
        Record a notification event.

        Args:
            account_id: Recipient account
            kind: Notification kind
            message: Text shown to the user

        Returns:
            True if recorded
        """
        try:
            async with self.open_session() as session:
                repo = NotificationRepository(session)
                await repo.create(
                    account_id=account_id, kind=kind.value, message=message
                )
                await session.commit()
        except Exception as e:
            self.logger.error(
                "Failed to record notification",
                extra={
                    "account_id": account_id,
                    "kind": kind.value,
                    "error": str(e),
                },
            )
            return False

        self.logger.debug(
            "Notification recorded",
            extra={"account_id": account_id, "kind": kind.value},
        )
        return True

    async def notify_activated(self, account_id: int) -> bool:
        """Record the activation success event."""
        return await self.record(
            account_id, NotificationKind.ACTIVATION, activation_message()
        )

    async def notify_inactive(self, account_id: int, missing: Decimal) -> bool:
        """Record the inactivity warning with the missing amount."""
        return await self.record(
            account_id,
            NotificationKind.INACTIVITY_WARNING,
            inactivity_message(missing),
        )

    async def notify_daily_income(
        self,
        account_id: int,
        amount: Decimal,
        roi: Decimal,
        level: Decimal,
        for_date: date,
    ) -> bool:
        """Record the daily-income-posted event."""
        return await self.record(
            account_id,
            NotificationKind.DAILY_INCOME,
            daily_income_message(amount, roi, level, for_date),
        )

    async def notify_rank_reward(
        self,
        account_id: int,
        rank: int,
        amount: Decimal,
        power_leg: Decimal,
        other_legs: Decimal,
    ) -> bool:
        """Record the rank-reward-credited event."""
        return await self.record(
            account_id,
            NotificationKind.RANK_REWARD,
            rank_reward_message(rank, amount, power_leg, other_legs),
        )

    async def notify_advisory(self, account_id: int, message: str) -> bool:
        """Record a non-fatal advisory (e.g. figures temporarily unavailable)."""
        return await self.record(account_id, NotificationKind.ADVISORY, message)
