"""
Deposit repository.

Data access layer for Deposit model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.deposit import Deposit
from app.models.enums import DepositStatus
from app.repositories.base import BaseRepository


class DepositRepository(BaseRepository[Deposit]):
    """Deposit repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize deposit repository."""
        super().__init__(Deposit, session)

    async def get_approved(self, account_id: int) -> list[Deposit]:
        """
        Get approved deposits ordered by approval time.

        Args:
            account_id: Account ID

        Returns:
            List of approved deposits
        """
        stmt = (
            select(Deposit)
            .where(Deposit.account_id == account_id)
            .where(Deposit.status == DepositStatus.APPROVED.value)
            .order_by(Deposit.approved_at, Deposit.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_approved(self, account_id: int) -> Decimal:
        """
        Get live total of approved deposits.

        Args:
            account_id: Account ID

        Returns:
            Sum of approved amounts (0 when none)
        """
        stmt = select(func.coalesce(func.sum(Deposit.amount), 0)).where(
            Deposit.account_id == account_id,
            Deposit.status == DepositStatus.APPROVED.value,
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
