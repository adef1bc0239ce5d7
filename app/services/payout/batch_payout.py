"""
Batch payout runner.

Runs the daily payout for every account, page by page. One account
failing never stops the batch.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from app.services.base_service import BaseService, log_operation
from app.services.context import IncomeContext
from app.services.payout.payout_scheduler import DailyPayoutScheduler
from app.services.payout.results import PayoutOutcome


@dataclass
class BatchPayoutSummary:
    """Totals of one batch payout run."""

    processed: int = 0
    posted: int = 0
    credited_total: Decimal = Decimal("0")
    failed: int = 0
    outcomes: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict:
        """Summary in the job result format."""
        return {
            "processed": self.processed,
            "posted": self.posted,
            "credited_total": self.credited_total,
            "failed": self.failed,
        }


class BatchPayoutRunner(BaseService):
    """Daily payout for all accounts."""

    def __init__(
        self,
        context: IncomeContext,
        scheduler: DailyPayoutScheduler | None = None,
    ) -> None:
        """
        Initialize batch payout runner.

        Args:
            context: Income engine context
            scheduler: Per-account payout scheduler (created when omitted)
        """
        super().__init__(context)
        self.scheduler = scheduler or DailyPayoutScheduler(context)

    @log_operation
    async def run_for_all(self) -> BatchPayoutSummary:
        """
        Run the daily payout for every account.

        Returns:
            Batch summary
        """
        summary = BatchPayoutSummary()

        async for account_ids in self.account_id_batches():
            for account_id in account_ids:
                try:
                    result = await self.scheduler.run_for_account(account_id)
                except Exception as e:
                    self.logger.exception(
                        "Unexpected payout error",
                        extra={"account_id": account_id, "error": str(e)},
                    )
                    summary.processed += 1
                    summary.failed += 1
                    continue

                summary.processed += 1
                summary.outcomes[result.outcome.value] = (
                    summary.outcomes.get(result.outcome.value, 0) + 1
                )
                if result.outcome is PayoutOutcome.POSTED:
                    summary.posted += 1
                    summary.credited_total += result.amount
                elif result.outcome is PayoutOutcome.FAILED:
                    summary.failed += 1

        self.logger.info(
            "Batch payout finished",
            extra={
                "processed": summary.processed,
                "posted": summary.posted,
                "credited_total": str(summary.credited_total),
                "failed": summary.failed,
            },
        )
        return summary
