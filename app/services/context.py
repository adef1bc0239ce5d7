"""
Income engine context.

Everything a service needs from the outside world, passed explicitly:
session factory, settings, clock and the optional dashboard cache.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import Settings
from app.utils.datetime_utils import as_utc, utc_now


if TYPE_CHECKING:
    from app.services.dashboard_cache import DashboardCache


@dataclass
class IncomeContext:
    """
    Explicit dependencies of the income engine.

    Attributes:
        session_factory: Factory for new AsyncSession objects
        settings: Application settings
        clock: Returns the current moment (overridable in tests)
        cache: Dashboard figures cache, None disables caching
    """

    session_factory: async_sessionmaker[AsyncSession]
    settings: Settings
    clock: Callable[[], datetime] = field(default=utc_now)
    cache: "DashboardCache | None" = None

    def now(self) -> datetime:
        """Current moment as aware UTC."""
        return as_utc(self.clock())

    @property
    def payout_zone(self) -> ZoneInfo:
        """Time zone of payout calendar days."""
        return self.settings.payout_zone
