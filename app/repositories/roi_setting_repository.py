"""
ROI setting repository.

Data access layer for the ROISetting singleton.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.roi_setting import ROI_SETTING_ID, ROISetting
from app.repositories.base import BaseRepository


class ROISettingRepository(BaseRepository[ROISetting]):
    """ROI setting repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ROI setting repository."""
        super().__init__(ROISetting, session)

    async def get_setting(self) -> ROISetting | None:
        """
        Get the singleton row.

        Returns:
            ROISetting or None when the admin never saved one
        """
        return await self.get_by_id(ROI_SETTING_ID)

    async def save(
        self,
        daily_roi: Decimal,
        max_roi: Decimal,
        plan_type: str,
        percentage: Decimal | None = None,
        duration: int | None = None,
        is_enabled: bool = True,
    ) -> ROISetting:
        """
        Create or overwrite the singleton row.

        Args:
            daily_roi: Daily rate as a fraction
            max_roi: Lifetime cap as a fraction
            plan_type: daily / weekly / monthly
            percentage: Plan percentage as entered
            duration: Plan duration in days (daily plans)
            is_enabled: ROI switched on

        Returns:
            Saved setting
        """
        values = {
            "daily_roi": daily_roi,
            "max_roi": max_roi,
            "plan_type": plan_type,
            "percentage": percentage,
            "duration": duration,
            "is_enabled": is_enabled,
        }
        setting = await self.get_setting()
        if setting is None:
            return await self.create(id=ROI_SETTING_ID, **values)

        for key, value in values.items():
            setattr(setting, key, value)
        await self.session.flush()
        return setting
