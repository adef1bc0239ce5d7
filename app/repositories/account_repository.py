"""
Account repository.

Data access layer for Account model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.enums import AccountStatus
from app.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Account repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account repository."""
        super().__init__(Account, session)

    async def get_for_update(self, account_id: int) -> Account | None:
        """
        Re-read account with a row lock (SELECT FOR UPDATE).

        Args:
            account_id: Account ID

        Returns:
            Locked account or None
        """
        stmt = (
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_id_batch(
        self, after_id: int = 0, limit: int = 200, active_only: bool = False
    ) -> list[int]:
        """
        Get a batch of account IDs in ascending order.

        Args:
            after_id: Return IDs strictly greater than this one
            limit: Batch size
            active_only: Only accounts with the active flag set

        Returns:
            List of account IDs
        """
        stmt = select(Account.id).where(Account.id > after_id)
        if active_only:
            stmt = stmt.where(Account.is_active.is_(True))
        stmt = stmt.order_by(Account.id).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def credit_balance(self, account_id: int, amount: Decimal) -> None:
        """
        Atomically add amount to the balance.

        Args:
            account_id: Account ID
            amount: Amount to add
        """
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(balance=Account.balance + amount)
        )
        await self.session.execute(stmt)

    async def set_activation(
        self,
        account_id: int,
        is_active: bool,
        total_deposits: Decimal,
        checked_at: datetime,
    ) -> None:
        """
        Write the activation fields in one update.

        Args:
            account_id: Account ID
            is_active: New activation flag
            total_deposits: Live approved deposits total
            checked_at: Evaluation time
        """
        status = AccountStatus.ACTIVE if is_active else AccountStatus.INACTIVE
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(
                is_active=is_active,
                status=status.value,
                total_deposits=total_deposits,
                activation_checked_at=checked_at,
            )
        )
        await self.session.execute(stmt)

    async def update_income_cache(
        self,
        account_id: int,
        level_income: Decimal,
        roi_income: Decimal | None = None,
    ) -> None:
        """
        Persist cached display figures.

        Args:
            account_id: Account ID
            level_income: Cumulative level income
            roi_income: Cumulative ROI; left untouched when None
        """
        values: dict[str, Decimal] = {"level_income": level_income}
        if roi_income is not None:
            values["roi_income"] = roi_income

        stmt = update(Account).where(Account.id == account_id).values(**values)
        await self.session.execute(stmt)

    async def update_leg_business(
        self,
        account_id: int,
        power_leg_business: Decimal,
        other_leg_business: Decimal,
    ) -> None:
        """
        Persist the cached leg business figures.

        Args:
            account_id: Account ID
            power_leg_business: Business of the strongest team level
            other_leg_business: Business of all other levels
        """
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(
                power_leg_business=power_leg_business,
                other_leg_business=other_leg_business,
            )
        )
        await self.session.execute(stmt)

    async def promote_rank(self, account_id: int, new_rank: int) -> bool:
        """
        Raise the account rank if it is still below new_rank.

        Compare-and-set: of two concurrent promotions to the same rank
        only one updates the row.

        Args:
            account_id: Account ID
            new_rank: Rank reached

        Returns:
            True if this call changed the rank
        """
        stmt = (
            update(Account)
            .where(Account.id == account_id, Account.rank < new_rank)
            .values(rank=new_rank)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
