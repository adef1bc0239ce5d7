"""
Level rule repository.

Data access layer for LevelRule model.
"""

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.level_rule import LevelRule
from app.repositories.base import BaseRepository


class LevelRuleRepository(BaseRepository[LevelRule]):
    """Level rule repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize level rule repository."""
        super().__init__(LevelRule, session)

    async def get_ordered(self) -> list[LevelRule]:
        """
        Get all rules ordered by level.

        Returns:
            Rules, level 1 first (empty when not configured)
        """
        stmt = select(LevelRule).order_by(LevelRule.level_index)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_rules(
        self, rules: list[dict[str, Any]]
    ) -> list[LevelRule]:
        """
        Replace the whole rule list.

        Rule N of the input list becomes level N.

        Args:
            rules: Rule field dicts in level order

        Returns:
            Created rules
        """
        await self.session.execute(delete(LevelRule))
        created = []
        for index, data in enumerate(rules, start=1):
            fields = {k: v for k, v in data.items() if k != "level_index"}
            created.append(await self.create(level_index=index, **fields))
        return created
