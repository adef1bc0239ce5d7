"""
Payout cursor repository.

Data access layer for PayoutCursor model.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payout_cursor import PayoutCursor
from app.repositories.base import BaseRepository


class PayoutCursorRepository(BaseRepository[PayoutCursor]):
    """Payout cursor repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize payout cursor repository."""
        super().__init__(PayoutCursor, session)

    async def get_for_account(
        self, account_id: int, for_update: bool = False
    ) -> PayoutCursor | None:
        """
        Get cursor for an account.

        Always re-reads the row so a retry sees a cursor advanced by a
        competing writer.

        Args:
            account_id: Account ID
            for_update: Lock the row (SELECT FOR UPDATE)

        Returns:
            Cursor or None when the account was never paid
        """
        stmt = (
            select(PayoutCursor)
            .where(PayoutCursor.account_id == account_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def advance(
        self,
        account_id: int,
        payout_at: datetime,
        cursor: PayoutCursor | None = None,
    ) -> PayoutCursor:
        """
        Move last_payout_at forward, creating the cursor on first use.

        Args:
            account_id: Account ID
            payout_at: New last payout time
            cursor: Already loaded cursor, if any

        Returns:
            Updated cursor
        """
        if cursor is None:
            cursor = PayoutCursor(account_id=account_id, last_payout_at=payout_at)
            self.session.add(cursor)
        else:
            cursor.last_payout_at = payout_at
        await self.session.flush()
        return cursor
