"""
Fixtures for integration tests against a temporary SQLite database.
"""

import pytest
from sqlalchemy import select

from app.models import Account, Notification, PayoutCursor, WalletTransaction
from app.repositories.notification_repository import NotificationRepository


class StoreReader:
    """Reads rows back through a fresh session."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    async def account(self, account_id: int) -> Account:
        async with self.session_factory() as session:
            return await session.get(Account, account_id)

    async def ledger(self, account_id: int) -> list[WalletTransaction]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(WalletTransaction)
                .where(WalletTransaction.account_id == account_id)
                .order_by(WalletTransaction.id)
            )
            return list(result.scalars().all())

    async def cursor(self, account_id: int) -> PayoutCursor | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PayoutCursor).where(PayoutCursor.account_id == account_id)
            )
            return result.scalar_one_or_none()

    async def notifications(self, account_id: int) -> list[Notification]:
        """Newest first."""
        async with self.session_factory() as session:
            return await NotificationRepository(session).get_for_account(account_id)


@pytest.fixture
def store(session_factory):
    """Reader for asserting persisted state."""
    return StoreReader(session_factory)
