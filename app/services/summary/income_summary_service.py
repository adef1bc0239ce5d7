"""
Income summary service.

Composes team aggregation, level income, ROI accrual and activation into
the dashboard figures and keeps the cached display values on the account.
"""

from decimal import Decimal

from app.repositories.account_repository import AccountRepository
from app.repositories.deposit_repository import DepositRepository
from app.repositories.level_rule_repository import LevelRuleRepository
from app.repositories.roi_setting_repository import ROISettingRepository
from app.services.activation.activation_service import ActivationService
from app.services.base_service import BaseService
from app.services.context import IncomeContext
from app.services.income.level_income import (
    LevelIncomeCalculator,
    LevelIncomeResult,
    LevelRuleTerms,
)
from app.services.income.roi_accrual import (
    DepositSnapshot,
    ROIAccrualCalculator,
    ROITerms,
)
from app.services.notification.notification_service import NotificationService
from app.services.summary.figures import IncomeFigures
from app.services.team.team_aggregator import TeamAggregator
from app.utils.exceptions import is_permission_error, is_transient
from app.utils.formatters import quantize_money
from app.utils.retry import retry_transient


FIGURES_UNAVAILABLE_ADVISORY = (
    "Income figures are temporarily unavailable; showing the last known values."
)


class IncomeSummaryService(BaseService):
    """Dashboard income figures."""

    def __init__(
        self,
        context: IncomeContext,
        activation: ActivationService | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        """
        Initialize income summary service.

        Args:
            context: Income engine context
            activation: Activation state machine (created when omitted)
            notifications: Notification recorder (created when omitted)
        """
        super().__init__(context)
        self.notifications = notifications or NotificationService(context)
        self.activation = activation or ActivationService(
            context, notifications=self.notifications
        )

    async def _compute(
        self, account_id: int, is_active: bool
    ) -> IncomeFigures | None:
        now = self.context.now()

        async with self.open_session() as session:
            account_repo = AccountRepository(session)
            account = await account_repo.get_by_id(account_id)
            if account is None:
                return None

            setting = await ROISettingRepository(session).get_setting()
            terms = ROITerms.from_setting(setting, self.settings)
            deposits = [
                DepositSnapshot.from_model(deposit)
                for deposit in await DepositRepository(session).get_approved(
                    account_id
                )
            ]
            roi = ROIAccrualCalculator(terms).calculate(
                deposits,
                now,
                is_active=is_active,
                cached_roi=account.roi_income or Decimal("0"),
            )

            rules = [
                LevelRuleTerms.from_model(rule)
                for rule in await LevelRuleRepository(session).get_ordered()
            ]
            level = LevelIncomeResult()
            if rules:
                team = await TeamAggregator(
                    session, max_depth=self.settings.team_max_depth
                ).get_team(account_id)
                level = LevelIncomeCalculator(rules).calculate(
                    account.self_deposit or Decimal("0"), team
                )

            cumulative_roi = quantize_money(roi.cumulative_roi)
            cumulative_level = quantize_money(level.cumulative_level_income)

            # The cached ROI only moves while it is actually accruing
            accruing = is_active and terms.is_enabled
            await account_repo.update_income_cache(
                account_id,
                level_income=cumulative_level,
                roi_income=cumulative_roi if accruing else None,
            )
            await session.commit()

        return IncomeFigures(
            account_id=account_id,
            cumulative_roi=cumulative_roi,
            today_roi=quantize_money(roi.today_roi),
            cumulative_level_income=cumulative_level,
            today_level_income=quantize_money(level.today_level_income),
            is_active=is_active,
        )

    async def refresh(self, account_id: int) -> IncomeFigures:
        """
        Recompute, persist and cache the dashboard figures.

        Never raises: permission errors give zero figures, transient
        errors give the last cached figures (or zero) plus an advisory.

        Args:
            account_id: Account ID

        Returns:
            Income figures
        """
        activation = await self.activation.evaluate(account_id)

        try:
            figures = await retry_transient(
                lambda: self._compute(account_id, activation.is_active),
                max_attempts=self.settings.store_retry_attempts,
                base_delay=self.settings.store_retry_base_delay,
                max_delay=self.settings.store_retry_max_delay,
                operation_name="income summary refresh",
            )
        except Exception as e:
            return await self._fallback(account_id, e)

        if figures is None:
            self.logger.warning(
                "Account not found for income summary",
                extra={"account_id": account_id},
            )
            return IncomeFigures.zero(account_id)

        if self.context.cache is not None:
            await self.context.cache.set(figures)
        return figures

    async def get_figures(self, account_id: int) -> IncomeFigures:
        """
        Serve figures from the cache, refreshing on a miss.

        Args:
            account_id: Account ID

        Returns:
            Income figures
        """
        if self.context.cache is not None:
            cached = await self.context.cache.get(account_id)
            if cached is not None:
                return cached
        return await self.refresh(account_id)

    async def _fallback(
        self, account_id: int, error: Exception
    ) -> IncomeFigures:
        if is_permission_error(error):
            self.logger.debug(
                "Income summary read denied, returning zero figures",
                extra={"account_id": account_id},
            )
            return IncomeFigures.zero(account_id)

        if not is_transient(error):
            self.logger.opt(exception=error).error(
                "Income summary refresh failed",
                extra={"account_id": account_id, "error": str(error)},
            )
            return IncomeFigures.zero(account_id)

        self.logger.warning(
            "Income summary store unavailable",
            extra={"account_id": account_id, "error": str(error)},
        )
        await self.notifications.notify_advisory(
            account_id, FIGURES_UNAVAILABLE_ADVISORY
        )

        if self.context.cache is not None:
            cached = await self.context.cache.get(account_id)
            if cached is not None:
                return cached.model_copy(update={"is_stale": True})
        return IncomeFigures.zero(account_id)
