"""
Batch income refresh.

Recomputes the cached dashboard figures of every active account, e.g.
after the admin changed the ROI plan.
"""

from dataclasses import dataclass
from decimal import Decimal

from app.repositories.roi_setting_repository import ROISettingRepository
from app.services.base_service import BaseService, log_operation
from app.services.context import IncomeContext
from app.services.income.roi_accrual import ROITerms
from app.services.summary.income_summary_service import IncomeSummaryService


@dataclass
class BatchRefreshSummary:
    """Totals of one refresh run."""

    processed: int = 0
    roi_total: Decimal = Decimal("0")
    stale: int = 0
    roi_disabled: bool = False

    def as_dict(self) -> dict:
        """Summary in the job result format."""
        return {
            "processed": self.processed,
            "roi_total": self.roi_total,
            "stale": self.stale,
            "roi_disabled": self.roi_disabled,
        }


class BatchRefreshRunner(BaseService):
    """Income figures refresh for all active accounts."""

    def __init__(
        self,
        context: IncomeContext,
        summary_service: IncomeSummaryService | None = None,
    ) -> None:
        """
        Initialize batch refresh runner.

        Args:
            context: Income engine context
            summary_service: Figures service (created when omitted)
        """
        super().__init__(context)
        self.summary_service = summary_service or IncomeSummaryService(context)

    async def _roi_enabled(self) -> bool:
        async with self.open_session() as session:
            setting = await ROISettingRepository(session).get_setting()
        return ROITerms.from_setting(setting, self.settings).is_enabled

    @log_operation
    async def run_for_active(self) -> BatchRefreshSummary:
        """
        Refresh the figures of every active account.

        Does nothing while ROI is switched off. Figures served stale
        from the cache are counted, not added to the ROI total.

        Returns:
            Run summary
        """
        summary = BatchRefreshSummary()

        if not await self._roi_enabled():
            self.logger.warning("ROI is disabled, skipping income refresh")
            summary.roi_disabled = True
            return summary

        async for account_ids in self.account_id_batches(active_only=True):
            for account_id in account_ids:
                figures = await self.summary_service.refresh(account_id)
                summary.processed += 1
                if figures.is_stale:
                    summary.stale += 1
                else:
                    summary.roi_total += figures.cumulative_roi

        self.logger.info(
            "Income refresh finished",
            extra={
                "processed": summary.processed,
                "roi_total": str(summary.roi_total),
                "stale": summary.stale,
            },
        )
        return summary
