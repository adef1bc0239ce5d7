"""
Base service class.

Provides common functionality for the engine services: the explicit
income context, logging with bound service context and helper decorators.
"""

import functools
import time
from collections.abc import AsyncIterator, Callable
from typing import Any, TypeVar

from loguru import logger

from app.repositories.account_repository import AccountRepository
from app.services.context import IncomeContext


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Access to the income context (sessions, settings, clock, cache)
    - Logging with bound service context
    """

    def __init__(self, context: IncomeContext) -> None:
        """
        Initialize base service.

        Args:
            context: Income engine context
        """
        self.context = context
        self.settings = context.settings
        self.logger = logger.bind(service=self.__class__.__name__)

    def open_session(self):
        """
        Open a new database session.

        Returns:
            AsyncSession usable as an async context manager
        """
        return self.context.session_factory()

    async def account_id_batches(
        self, active_only: bool = False
    ) -> AsyncIterator[list[int]]:
        """
        Yield all account IDs page by page.

        A page that fails to load ends the iteration.

        Args:
            active_only: Only accounts with the active flag set

        Yields:
            Account IDs in ascending order, payout_batch_size per page
        """
        after_id = 0
        while True:
            try:
                async with self.open_session() as session:
                    account_ids = await AccountRepository(session).get_id_batch(
                        after_id=after_id,
                        limit=self.settings.payout_batch_size,
                        active_only=active_only,
                    )
            except Exception as e:
                self.logger.error(
                    "Failed to load account batch, stopping run",
                    extra={"after_id": after_id, "error": str(e)},
                )
                return

            if not account_ids:
                return
            yield account_ids
            after_id = account_ids[-1]


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Log start, duration and failure of a long-running service call.

    Usage:
        @log_operation
        async def run_for_all(self):
            ...

    Args:
        func: Async service method

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        operation = func.__name__
        started = time.perf_counter()
        self.logger.info(f"{operation} started", extra={"operation": operation})

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            self.logger.error(
                f"{operation} failed",
                extra={
                    "operation": operation,
                    "duration": round(time.perf_counter() - started, 3),
                    "error": str(e),
                },
            )
            raise

        self.logger.info(
            f"{operation} finished in {time.perf_counter() - started:.3f}s",
            extra={"operation": operation},
        )
        return result

    return wrapper
