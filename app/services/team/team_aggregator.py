"""
Team aggregator.

Walks the referral tree below an account level by level.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import MAX_TEAM_DEPTH
from app.models.account import Account
from app.models.enums import AccountStatus
from app.repositories.account_repository import AccountRepository
from app.repositories.referral_repository import ReferralRepository


@dataclass(frozen=True)
class TeamMember:
    """Snapshot of a team member used by the income calculators."""

    account_id: int
    self_deposit: Decimal = Decimal("0")
    status: str = AccountStatus.INACTIVE.value

    @property
    def is_active(self) -> bool:
        """Member counts toward today's level income."""
        return self.status == AccountStatus.ACTIVE.value

    @classmethod
    def from_account(cls, account: Account) -> "TeamMember":
        """Build member snapshot from an account row."""
        return cls(
            account_id=account.id,
            self_deposit=account.self_deposit or Decimal("0"),
            status=account.status or AccountStatus.INACTIVE.value,
        )


class TeamAggregator:
    """
    Team aggregator.

    Level 1 holds the direct referrals of the root, level k the accounts
    referred by level k-1. Each level costs one edge query and one
    account query.
    """

    def __init__(
        self, session: AsyncSession, max_depth: int = MAX_TEAM_DEPTH
    ) -> None:
        """
        Initialize team aggregator.

        Args:
            session: Database session
            max_depth: Hard cap on levels walked below the root
        """
        self.session = session
        self.max_depth = max_depth
        self.referral_repo = ReferralRepository(session)
        self.account_repo = AccountRepository(session)

    async def get_team(self, root_id: int) -> list[list[TeamMember]]:
        """
        Get the team of an account grouped by level.

        Args:
            root_id: Root account ID

        Returns:
            Levels, index 0 = level 1; no trailing empty levels
        """
        levels: list[list[TeamMember]] = []
        # Seeded with the root: an edge back to the root or to an already
        # visited account is dropped, which also breaks cycles
        visited = {root_id}
        frontier = [root_id]

        while frontier and len(levels) < self.max_depth:
            children = await self.referral_repo.get_referred_ids(frontier)

            next_ids: list[int] = []
            for parent_id in frontier:
                for child_id in children.get(parent_id, []):
                    if child_id in visited:
                        logger.warning(
                            "Referral edge revisits an account, ignoring",
                            extra={
                                "root_id": root_id,
                                "parent_id": parent_id,
                                "account_id": child_id,
                            },
                        )
                        continue
                    visited.add(child_id)
                    next_ids.append(child_id)

            if not next_ids:
                break

            accounts = {
                account.id: account
                for account in await self.account_repo.get_many(next_ids)
            }

            level: list[TeamMember] = []
            for account_id in next_ids:
                account = accounts.get(account_id)
                if account is None:
                    logger.warning(
                        "Referred account no longer exists, skipping",
                        extra={
                            "root_id": root_id,
                            "account_id": account_id,
                            "level": len(levels) + 1,
                        },
                    )
                    continue
                level.append(TeamMember.from_account(account))

            if not level:
                break

            levels.append(level)
            frontier = [member.account_id for member in level]

        if frontier and len(levels) >= self.max_depth:
            logger.info(
                "Team walk stopped at depth cap",
                extra={"root_id": root_id, "max_depth": self.max_depth},
            )

        return levels
