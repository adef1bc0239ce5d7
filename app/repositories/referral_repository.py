"""
Referral repository.

Data access layer for ReferralEdge model.
"""

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.referral import ReferralEdge
from app.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[ReferralEdge]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(ReferralEdge, session)

    async def get_referred_ids(
        self, referrer_ids: list[int]
    ) -> dict[int, list[int]]:
        """
        Get direct referrals for a batch of referrers in one query.

        Args:
            referrer_ids: Referrer account IDs

        Returns:
            Dict mapping referrer ID to referred IDs in signup order
        """
        if not referrer_ids:
            return {}

        stmt = (
            select(ReferralEdge.referrer_id, ReferralEdge.referred_id)
            .where(ReferralEdge.referrer_id.in_(referrer_ids))
            .order_by(ReferralEdge.created_at, ReferralEdge.id)
        )
        result = await self.session.execute(stmt)

        children: dict[int, list[int]] = defaultdict(list)
        for referrer_id, referred_id in result.all():
            children[referrer_id].append(referred_id)
        return dict(children)
