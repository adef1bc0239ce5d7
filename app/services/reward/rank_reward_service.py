"""
Rank reward service.

Evaluates the team business of an account against the admin reward
ranks and credits each newly reached rank once.

The award is one transaction: the rank is raised with a compare-and-set
update, the balance is credited and one rank_reward record per reached
rank is appended. A competing run finds the rank already raised and
credits nothing.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum

from app.models.enums import TransactionType
from app.repositories.account_repository import AccountRepository
from app.repositories.reward_rank_repository import RewardRankRepository
from app.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)
from app.services.base_service import BaseService, log_operation
from app.services.context import IncomeContext
from app.services.notification.notification_service import NotificationService
from app.services.reward.rank_reward import (
    LegBusiness,
    RankRewardCalculator,
    RankRule,
)
from app.services.team.team_aggregator import TeamAggregator
from app.utils.exceptions import is_permission_error
from app.utils.formatters import format_money, quantize_money
from app.utils.retry import retry_transient


def reward_total(ranks: list[RankRule]) -> Decimal:
    """Sum of the rewards of the given ranks."""
    return quantize_money(sum((rule.reward_income for rule in ranks), Decimal("0")))


class RankOutcome(StrEnum):
    """Outcome of one rank evaluation."""

    AWARDED = "awarded"
    NOT_REACHED = "not_reached"
    # Another run raised the rank first
    ALREADY_AWARDED = "already_awarded"
    # Permission denied or account missing
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class RankRewardResult:
    """Result of one rank evaluation."""

    account_id: int
    outcome: RankOutcome
    rank: int = 0
    amount: Decimal = Decimal("0")
    business: LegBusiness = field(default_factory=LegBusiness)


@dataclass
class RankRewardSummary:
    """Totals of one rank reward run."""

    processed: int = 0
    awarded: int = 0
    rewarded_total: Decimal = Decimal("0")
    failed: int = 0

    def as_dict(self) -> dict:
        """Summary in the job result format."""
        return {
            "processed": self.processed,
            "awarded": self.awarded,
            "rewarded_total": self.rewarded_total,
            "failed": self.failed,
        }


@dataclass(frozen=True)
class _RankState:
    current_rank: int
    business: LegBusiness
    to_award: list[RankRule]


class RankRewardService(BaseService):
    """Rank reward evaluation."""

    def __init__(
        self,
        context: IncomeContext,
        notifications: NotificationService | None = None,
    ) -> None:
        """
        Initialize rank reward service.

        Args:
            context: Income engine context
            notifications: Notification recorder (created when omitted)
        """
        super().__init__(context)
        self.notifications = notifications or NotificationService(context)

    def _retry_kwargs(self, operation_name: str) -> dict:
        return {
            "max_attempts": self.settings.store_retry_attempts,
            "base_delay": self.settings.store_retry_base_delay,
            "max_delay": self.settings.store_retry_max_delay,
            "operation_name": operation_name,
        }

    async def _read_state(self, account_id: int) -> _RankState | None:
        async with self.open_session() as session:
            account_repo = AccountRepository(session)
            account = await account_repo.get_by_id(account_id)
            if account is None:
                return None

            rules = [
                RankRule.from_model(rank)
                for rank in await RewardRankRepository(session).get_ordered()
            ]
            team = await TeamAggregator(
                session,
                max_depth=min(
                    self.settings.reward_team_levels, self.settings.team_max_depth
                ),
            ).get_team(account_id)
            business = LegBusiness.from_team(team, self.settings.reward_team_levels)
            current_rank = account.rank or 0

            await account_repo.update_leg_business(
                account_id,
                power_leg_business=quantize_money(business.power_leg),
                other_leg_business=quantize_money(business.other_legs),
            )
            await session.commit()

        return _RankState(
            current_rank=current_rank,
            business=business,
            to_award=RankRewardCalculator(rules).ranks_to_award(
                current_rank, business
            ),
        )

    async def _commit_award(
        self, account_id: int, ranks: list[RankRule], business: LegBusiness
    ) -> bool:
        """
        Run the award transaction once.

        Returns:
            True if committed, False when the rank was already raised
        """
        top_rank = ranks[-1].rank
        total = reward_total(ranks)

        async with self.open_session() as session:
            async with session.begin():
                account_repo = AccountRepository(session)
                if not await account_repo.promote_rank(account_id, top_rank):
                    return False

                if total > 0:
                    await account_repo.credit_balance(account_id, total)

                ledger_repo = WalletTransactionRepository(session)
                for rule in ranks:
                    if rule.reward_income <= 0:
                        continue
                    await ledger_repo.create(
                        account_id=account_id,
                        type=TransactionType.RANK_REWARD.value,
                        amount=quantize_money(rule.reward_income),
                        note=(
                            f"Rank {rule.rank} reward - power leg "
                            f"{format_money(business.power_leg)}, other legs "
                            f"{format_money(business.other_legs)}"
                        ),
                    )

        return True

    async def evaluate(self, account_id: int) -> RankRewardResult:
        """
        Award the ranks an account newly reached.

        Never raises: permission errors skip the account, other errors
        are reported as FAILED.

        Args:
            account_id: Account ID

        Returns:
            Rank reward result
        """
        try:
            state = await retry_transient(
                lambda: self._read_state(account_id),
                **self._retry_kwargs("rank reward read"),
            )
        except Exception as e:
            return self._failure(account_id, "Rank reward read failed", e)

        if state is None:
            self.logger.warning(
                "Account not found for rank reward",
                extra={"account_id": account_id},
            )
            return RankRewardResult(account_id=account_id, outcome=RankOutcome.SKIPPED)

        if not state.to_award:
            return RankRewardResult(
                account_id=account_id,
                outcome=RankOutcome.NOT_REACHED,
                rank=state.current_rank,
                business=state.business,
            )

        try:
            committed = await retry_transient(
                lambda: self._commit_award(
                    account_id, state.to_award, state.business
                ),
                **self._retry_kwargs("rank reward write"),
            )
        except Exception as e:
            return self._failure(account_id, "Rank reward write failed", e)

        top_rank = state.to_award[-1].rank
        if not committed:
            self.logger.info(
                "Rank already awarded by another run",
                extra={"account_id": account_id, "rank": top_rank},
            )
            return RankRewardResult(
                account_id=account_id,
                outcome=RankOutcome.ALREADY_AWARDED,
                rank=top_rank,
                business=state.business,
            )

        amount = reward_total(state.to_award)
        self.logger.info(
            "Rank reward credited",
            extra={
                "account_id": account_id,
                "rank": top_rank,
                "amount": str(amount),
                "power_leg": str(state.business.power_leg),
                "other_legs": str(state.business.other_legs),
            },
        )
        await self.notifications.notify_rank_reward(
            account_id,
            top_rank,
            amount,
            state.business.power_leg,
            state.business.other_legs,
        )
        if self.context.cache is not None:
            await self.context.cache.invalidate(account_id)

        return RankRewardResult(
            account_id=account_id,
            outcome=RankOutcome.AWARDED,
            rank=top_rank,
            amount=amount,
            business=state.business,
        )

    def _failure(
        self, account_id: int, message: str, error: Exception
    ) -> RankRewardResult:
        if is_permission_error(error):
            self.logger.debug(
                "Rank reward access denied, skipping account",
                extra={"account_id": account_id},
            )
            return RankRewardResult(account_id=account_id, outcome=RankOutcome.SKIPPED)

        self.logger.error(
            message, extra={"account_id": account_id, "error": str(error)}
        )
        return RankRewardResult(account_id=account_id, outcome=RankOutcome.FAILED)

    @log_operation
    async def run_for_all(self) -> RankRewardSummary:
        """
        Evaluate rank rewards for every account.

        Returns:
            Run summary
        """
        summary = RankRewardSummary()

        async for account_ids in self.account_id_batches():
            for account_id in account_ids:
                result = await self.evaluate(account_id)
                summary.processed += 1
                if result.outcome is RankOutcome.AWARDED:
                    summary.awarded += 1
                    summary.rewarded_total += result.amount
                elif result.outcome is RankOutcome.FAILED:
                    summary.failed += 1

        self.logger.info(
            "Rank reward run finished",
            extra={
                "processed": summary.processed,
                "awarded": summary.awarded,
                "rewarded_total": str(summary.rewarded_total),
                "failed": summary.failed,
            },
        )
        return summary
