"""
Exception handling utilities.

Defines the engine exceptions and categorizes store errors by handling
strategy: permission errors are never retried, transient errors are
retried with backoff, a missing ledger schema is surfaced to the caller.
"""

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError


PERMISSION_DENIED_SQLSTATE = "42501"
UNDEFINED_TABLE_SQLSTATE = "42P01"
UNDEFINED_OBJECT_SQLSTATE = "42704"


class IncomeEngineError(Exception):
    """Base class for income engine errors."""
    pass


class StorePermissionError(IncomeEngineError):
    """Raised when the store denies access to a record."""
    pass


class StoreUnavailableError(IncomeEngineError):
    """Raised when the store stays unreachable after all retries."""
    pass


class LedgerIndexMissingError(IncomeEngineError):
    """Raised when the ledger table or its composite index is missing."""

    def __init__(self, detail: str = "") -> None:
        message = (
            "Wallet ledger query failed because the ledger schema is missing. "
            "Create table 'wallet_transactions' with index "
            "(account_id, posted_at, id) and retry."
        )
        if detail:
            message = f"{message} Store said: {detail}"
        super().__init__(message)


# Must retry with backoff - store temporarily unavailable
TRANSIENT_ERRORS = (
    OperationalError,
    InterfaceError,
    TimeoutError,
    ConnectionError,
    RedisConnectionError,
    RedisTimeoutError,
    StoreUnavailableError,
)


def _sqlstate(exc: BaseException) -> str | None:
    """Extract SQLSTATE from a DBAPI error (asyncpg / psycopg naming)."""
    orig = exc.orig if isinstance(exc, DBAPIError) else exc
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    return None


def is_permission_error(exc: BaseException) -> bool:
    """
    Check if exception is an access denial.

    Args:
        exc: Exception to check

    Returns:
        True if the store refused access
    """
    if isinstance(exc, (StorePermissionError, PermissionError)):
        return True
    if _sqlstate(exc) == PERMISSION_DENIED_SQLSTATE:
        return True
    return "permission denied" in str(exc).lower()


def is_missing_index(exc: BaseException) -> bool:
    """
    Check if exception means the queried table or index does not exist.

    Args:
        exc: Exception to check

    Returns:
        True if the schema is missing
    """
    if isinstance(exc, LedgerIndexMissingError):
        return True
    if _sqlstate(exc) in (UNDEFINED_TABLE_SQLSTATE, UNDEFINED_OBJECT_SQLSTATE):
        return True
    message = str(exc).lower()
    return "no such table" in message or "no such index" in message


def is_transient(exc: BaseException) -> bool:
    """
    Check if exception is a temporary store failure worth retrying.

    Args:
        exc: Exception to check

    Returns:
        True if retrying may succeed
    """
    if is_permission_error(exc) or is_missing_index(exc):
        return False
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, TRANSIENT_ERRORS)
