"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for the settings module; tests build their own engines
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", "")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import fnmatch
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from app.config.database import create_session_maker
from app.config.settings import Settings
from app.models import (
    Account,
    AccountStatus,
    Base,
    Deposit,
    DepositStatus,
    LevelRule,
    ReferralEdge,
    RewardRank,
    ROISetting,
)
from app.services.context import IncomeContext
from app.services.dashboard_cache import DashboardCache


class FakeClock:
    """Settable clock for IncomeContext."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryRedis:
    """Dict-backed stand-in for the few redis.asyncio calls the cache uses."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.published: list[tuple[str, str]] = []

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                deleted += 1
        return deleted

    async def scan_iter(self, match="*"):
        for key in list(self.store):
            if fnmatch.fnmatch(key, match):
                yield key

    async def publish(self, channel, message):
        self.published.append((channel, message))
        return 1


@pytest.fixture
def test_settings(tmp_path):
    """Settings for tests: fast retries, no file logging."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'income.db'}",
        environment="test",
        log_file=None,
        payout_max_attempts=5,
        store_retry_attempts=3,
        store_retry_base_delay=0.01,
        store_retry_max_delay=0.05,
        config_debounce_ms=50,
    )


@pytest_asyncio.fixture
async def engine(test_settings):
    """File-backed SQLite engine with the schema created."""
    engine = create_async_engine(test_settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    return create_session_maker(engine)


@pytest.fixture
def clock():
    """Clock fixed at 2026-10-18 10:05 UTC (after the 10:00 cutoff)."""
    return FakeClock(datetime(2026, 10, 18, 10, 5, tzinfo=UTC))


@pytest.fixture
def fake_redis():
    """In-memory Redis double."""
    return InMemoryRedis()


@pytest.fixture
def context(session_factory, test_settings, clock, fake_redis):
    """Income context with fixed clock and in-memory dashboard cache."""
    return IncomeContext(
        session_factory=session_factory,
        settings=test_settings,
        clock=clock,
        cache=DashboardCache(fake_redis, ttl_seconds=60),
    )


class DataFactory:
    """Creates accounts, deposits, referrals and admin config rows."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory
        self._code = 0

    async def _add(self, entity):
        async with self.session_factory() as session:
            session.add(entity)
            await session.commit()
            await session.refresh(entity)
        return entity

    async def account(
        self,
        balance: Decimal = Decimal("0"),
        self_deposit: Decimal = Decimal("0"),
        is_active: bool = False,
        referred_by: Account | None = None,
        **fields,
    ) -> Account:
        self._code += 1
        account = await self._add(
            Account(
                referral_code=f"REF{self._code:05d}",
                balance=balance,
                self_deposit=self_deposit,
                is_active=is_active,
                status=(
                    AccountStatus.ACTIVE.value
                    if is_active
                    else AccountStatus.INACTIVE.value
                ),
                referred_by_id=referred_by.id if referred_by else None,
                **fields,
            )
        )
        if referred_by is not None:
            await self.referral(referred_by.id, account.id)
        return account

    async def referral(self, referrer_id: int, referred_id: int) -> ReferralEdge:
        return await self._add(
            ReferralEdge(referrer_id=referrer_id, referred_id=referred_id)
        )

    async def deposit(
        self,
        account: Account,
        amount: Decimal,
        approved_at: datetime | None,
        status: DepositStatus = DepositStatus.APPROVED,
    ) -> Deposit:
        return await self._add(
            Deposit(
                account_id=account.id,
                amount=amount,
                status=status.value,
                approved_at=approved_at,
                created_at=approved_at or datetime(2026, 1, 1, tzinfo=UTC),
            )
        )

    async def level_rule(self, level_index: int, **fields) -> LevelRule:
        return await self._add(LevelRule(level_index=level_index, **fields))

    async def reward_rank(self, rank: int, **fields) -> RewardRank:
        return await self._add(RewardRank(rank=rank, **fields))

    async def roi_setting(
        self,
        daily_roi: Decimal = Decimal("0.01"),
        max_roi: Decimal = Decimal("0.30"),
        is_enabled: bool = True,
    ) -> ROISetting:
        return await self._add(
            ROISetting(
                id=1,
                daily_roi=daily_roi,
                max_roi=max_roi,
                plan_type="daily",
                is_enabled=is_enabled,
            )
        )


@pytest.fixture
def factory(session_factory):
    """Test data factory."""
    return DataFactory(session_factory)


@pytest.fixture
def mock_redis_client():
    """Mock Redis client for caching tests."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.delete = AsyncMock(return_value=0)
    client.publish = AsyncMock(return_value=1)
    return client
