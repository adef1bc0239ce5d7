"""
Notification repository.

Data access layer for Notification model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Notification repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize notification repository."""
        super().__init__(Notification, session)

    async def get_for_account(
        self, account_id: int, unread_only: bool = False
    ) -> list[Notification]:
        """
        Get notifications for an account, newest first.

        Args:
            account_id: Account ID
            unread_only: Skip already read notifications

        Returns:
            List of notifications
        """
        stmt = select(Notification).where(Notification.account_id == account_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
