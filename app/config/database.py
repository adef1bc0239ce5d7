"""
Database configuration.

Async SQLAlchemy engine and session factory shared by the application.
Worker processes build their own engines (see jobs/async_runner.py).
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config.settings import settings


def create_engine(database_url: str | None = None, **kwargs) -> AsyncEngine:
    """
    Create async engine for the configured database.

    Args:
        database_url: Override for settings.database_url
        **kwargs: Extra engine options

    Returns:
        AsyncEngine instance
    """
    url = database_url or settings.database_url
    options = {"echo": settings.database_echo, **kwargs}
    if url.startswith("postgresql") and "poolclass" not in kwargs:
        options.setdefault("pool_pre_ping", True)
        options.setdefault("pool_size", 10)
        options.setdefault("max_overflow", 20)
    return create_async_engine(url, **options)


def create_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """
    Create session factory bound to engine.

    Args:
        engine: Async engine

    Returns:
        Session factory
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
