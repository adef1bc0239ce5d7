"""
Tests for store error classification and retry.

Tests cover:
- Permission, missing schema and transient classification
- Backoff delays
- retry_transient retrying only transient errors
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from app.utils.exceptions import (
    LedgerIndexMissingError,
    StorePermissionError,
    StoreUnavailableError,
    is_missing_index,
    is_permission_error,
    is_transient,
)
from app.utils.retry import backoff_delay, retry_transient


class FakeDriverError(Exception):
    """Driver error carrying a SQLSTATE."""

    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


def programming_error(message: str, sqlstate: str | None = None) -> ProgrammingError:
    return ProgrammingError("SELECT 1", {}, FakeDriverError(message, sqlstate))


class TestErrorClassification:
    """Test store error classification."""

    def test_permission_by_sqlstate(self):
        """SQLSTATE 42501 is an access denial."""
        error = programming_error("insufficient privilege", "42501")
        assert is_permission_error(error) is True
        assert is_transient(error) is False

    def test_permission_by_message(self):
        """Row-level security message is an access denial."""
        error = programming_error("permission denied for table accounts")
        assert is_permission_error(error) is True

    def test_store_permission_error(self):
        """Engine permission error is recognized."""
        assert is_permission_error(StorePermissionError("denied")) is True

    def test_missing_table_sqlite(self):
        """SQLite 'no such table' means missing schema."""
        error = OperationalError(
            "SELECT 1", {}, FakeDriverError("no such table: wallet_transactions")
        )
        assert is_missing_index(error) is True
        assert is_transient(error) is False

    def test_missing_table_postgres(self):
        """SQLSTATE 42P01 means missing schema."""
        assert is_missing_index(programming_error("relation missing", "42P01")) is True

    def test_database_locked_is_transient(self):
        """Lock contention is retried."""
        error = OperationalError("UPDATE", {}, FakeDriverError("database is locked"))
        assert is_transient(error) is True

    def test_connection_errors_are_transient(self):
        """Network failures are retried."""
        assert is_transient(ConnectionError("reset")) is True
        assert is_transient(TimeoutError()) is True
        assert is_transient(StoreUnavailableError("down")) is True

    def test_integrity_error_is_not_transient(self):
        """Constraint violations are handled by callers, not retried."""
        error = IntegrityError("INSERT", {}, FakeDriverError("UNIQUE constraint failed"))
        assert is_transient(error) is False

    def test_ledger_error_message_is_actionable(self):
        """The missing-index error names the table and the index columns."""
        message = str(LedgerIndexMissingError("no such table"))
        assert "wallet_transactions" in message
        assert "(account_id, posted_at, id)" in message


class TestRetry:
    """Test retry with backoff."""

    def test_backoff_delay_doubles_and_caps(self):
        """Delays double and stop at the cap."""
        assert backoff_delay(0, 0.2, 5.0) == 0.2
        assert backoff_delay(1, 0.2, 5.0) == 0.4
        assert backoff_delay(3, 0.2, 5.0) == 1.6
        assert backoff_delay(10, 0.2, 5.0) == 5.0

    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self):
        """Transient failures are retried until success."""
        operation = AsyncMock(side_effect=[ConnectionError("reset"), "ok"])

        result = await retry_transient(operation, max_attempts=3, base_delay=0)

        assert result == "ok"
        assert operation.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        """Last transient error propagates."""
        operation = AsyncMock(side_effect=ConnectionError("down"))

        with pytest.raises(ConnectionError):
            await retry_transient(operation, max_attempts=3, base_delay=0)

        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_permission_error_not_retried(self):
        """Access denial fails on the first attempt."""
        operation = AsyncMock(side_effect=StorePermissionError("denied"))

        with pytest.raises(StorePermissionError):
            await retry_transient(operation, max_attempts=5, base_delay=0)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self):
        """Programming errors propagate immediately."""
        operation = AsyncMock(side_effect=ValueError("bug"))

        with pytest.raises(ValueError):
            await retry_transient(operation, max_attempts=5, base_delay=0)

        assert operation.await_count == 1
