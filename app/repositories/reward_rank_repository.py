"""
Reward rank repository.

Data access layer for RewardRank model.
"""

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reward_rank import RewardRank
from app.repositories.base import BaseRepository


class RewardRankRepository(BaseRepository[RewardRank]):
    """Reward rank repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reward rank repository."""
        super().__init__(RewardRank, session)

    async def get_ordered(self) -> list[RewardRank]:
        """
        Get all ranks, lowest first.

        Returns:
            Ranks (empty when not configured)
        """
        stmt = select(RewardRank).order_by(RewardRank.rank)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_ranks(
        self, ranks: list[dict[str, Any]]
    ) -> list[RewardRank]:
        """
        Replace the whole rank list.

        Entry N of the input list becomes rank N.

        Args:
            ranks: Rank field dicts, lowest rank first

        Returns:
            Created ranks
        """
        await self.session.execute(delete(RewardRank))
        created = []
        for number, data in enumerate(ranks, start=1):
            fields = {k: v for k, v in data.items() if k != "rank"}
            created.append(await self.create(rank=number, **fields))
        return created
