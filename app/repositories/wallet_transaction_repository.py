"""
Wallet transaction repository.

Data access layer for the append-only wallet ledger.
"""

from datetime import date, datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TransactionType
from app.models.wallet_transaction import WalletTransaction
from app.repositories.base import BaseRepository


class WalletTransactionRepository(BaseRepository[WalletTransaction]):
    """Wallet transaction repository with keyset pagination."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet transaction repository."""
        super().__init__(WalletTransaction, session)

    async def get_page(
        self,
        account_id: int,
        limit: int,
        after: tuple[datetime, int] | None = None,
        posted_from: datetime | None = None,
        posted_before: datetime | None = None,
        types: list[str] | None = None,
    ) -> list[WalletTransaction]:
        """
        Get one page of ledger records, newest first.

        Args:
            account_id: Account ID
            limit: Max number of records
            after: (posted_at, id) of the last record already seen
            posted_from: Inclusive lower bound on posted_at
            posted_before: Exclusive upper bound on posted_at
            types: Restrict to these transaction types

        Returns:
            Records ordered by posted_at desc, id desc
        """
        stmt = select(WalletTransaction).where(
            WalletTransaction.account_id == account_id
        )

        if posted_from is not None:
            stmt = stmt.where(WalletTransaction.posted_at >= posted_from)
        if posted_before is not None:
            stmt = stmt.where(WalletTransaction.posted_at < posted_before)
        if types:
            stmt = stmt.where(WalletTransaction.type.in_(types))

        if after is not None:
            last_posted_at, last_id = after
            stmt = stmt.where(
                or_(
                    WalletTransaction.posted_at < last_posted_at,
                    and_(
                        WalletTransaction.posted_at == last_posted_at,
                        WalletTransaction.id < last_id,
                    ),
                )
            )

        stmt = stmt.order_by(
            WalletTransaction.posted_at.desc(), WalletTransaction.id.desc()
        ).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_daily_income(
        self, account_id: int, for_date: date
    ) -> WalletTransaction | None:
        """
        Get the daily income record of one day.

        Args:
            account_id: Account ID
            for_date: Accrual day

        Returns:
            Record or None
        """
        return await self.get_by(
            account_id=account_id,
            type=TransactionType.DAILY_INCOME.value,
            for_date=for_date,
        )
