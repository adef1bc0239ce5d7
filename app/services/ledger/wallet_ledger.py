"""
Wallet ledger service.

Reads the append-only ledger newest first. Pages continue from the last
record seen (posted_at, id); offsets are never used.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal

from app.models.wallet_transaction import WalletTransaction
from app.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)
from app.services.base_service import BaseService
from app.utils.datetime_utils import as_utc, start_of_local_day
from app.utils.exceptions import (
    LedgerIndexMissingError,
    StoreUnavailableError,
    is_missing_index,
    is_permission_error,
    is_transient,
)
from app.utils.retry import retry_transient


@dataclass(frozen=True)
class LedgerCursor:
    """Position after the last record of a page."""

    posted_at: datetime
    id: int


@dataclass(frozen=True)
class LedgerRecord:
    """Detached copy of one ledger record."""

    id: int
    account_id: int
    type: str
    amount: Decimal
    roi_portion: Decimal
    level_portion: Decimal
    for_date: date | None
    posted_at: datetime
    note: str | None

    @classmethod
    def from_model(cls, tx: WalletTransaction) -> "LedgerRecord":
        """Build record from an ORM row."""
        return cls(
            id=tx.id,
            account_id=tx.account_id,
            type=tx.type,
            amount=tx.amount,
            roi_portion=tx.roi_portion or Decimal("0"),
            level_portion=tx.level_portion or Decimal("0"),
            for_date=tx.for_date,
            posted_at=as_utc(tx.posted_at),
            note=tx.note,
        )


@dataclass(frozen=True)
class LedgerPage:
    """One page of ledger records."""

    records: list[LedgerRecord] = field(default_factory=list)
    next_cursor: LedgerCursor | None = None

    @property
    def has_more(self) -> bool:
        """Another page can be requested."""
        return self.next_cursor is not None


class WalletLedger(BaseService):
    """Wallet ledger reader."""

    async def _fetch(
        self,
        account_id: int,
        limit: int,
        cursor: LedgerCursor | None,
        posted_from: datetime | None,
        posted_before: datetime | None,
        types: list[str] | None,
    ) -> list[LedgerRecord]:
        async with self.open_session() as session:
            rows = await WalletTransactionRepository(session).get_page(
                account_id=account_id,
                limit=limit,
                after=(cursor.posted_at, cursor.id) if cursor else None,
                posted_from=posted_from,
                posted_before=posted_before,
                types=types,
            )
            return [LedgerRecord.from_model(row) for row in rows]

    async def get_page(
        self,
        account_id: int,
        cursor: LedgerCursor | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        types: list[str] | None = None,
        page_size: int | None = None,
    ) -> LedgerPage:
        """
        Get one ledger page, newest first.

        Args:
            account_id: Account ID
            cursor: Continuation cursor from the previous page
            date_from: First local posting day (inclusive)
            date_to: Last local posting day (inclusive)
            types: Restrict to these transaction types
            page_size: Records per page (default from settings)

        Returns:
            Ledger page (empty when access is denied)

        Raises:
            LedgerIndexMissingError: Ledger table or index is missing
            StoreUnavailableError: Store unreachable after retries
        """
        size = page_size or self.settings.ledger_page_size
        zone = self.context.payout_zone
        posted_from = start_of_local_day(date_from, zone) if date_from else None
        posted_before = (
            start_of_local_day(date_to + timedelta(days=1), zone)
            if date_to
            else None
        )

        try:
            # One extra row tells whether another page exists
            records = await retry_transient(
                lambda: self._fetch(
                    account_id, size + 1, cursor, posted_from, posted_before, types
                ),
                max_attempts=self.settings.store_retry_attempts,
                base_delay=self.settings.store_retry_base_delay,
                max_delay=self.settings.store_retry_max_delay,
                operation_name="wallet ledger read",
            )
        except Exception as e:
            if is_missing_index(e):
                self.logger.error(
                    "Wallet ledger schema missing",
                    extra={"account_id": account_id, "error": str(e)},
                )
                raise LedgerIndexMissingError(str(e)) from e
            if is_permission_error(e):
                self.logger.debug(
                    "Wallet ledger read denied, returning empty page",
                    extra={"account_id": account_id},
                )
                return LedgerPage()
            if is_transient(e):
                raise StoreUnavailableError(
                    f"Wallet ledger temporarily unavailable: {e}"
                ) from e
            raise

        next_cursor = None
        if len(records) > size:
            records = records[:size]
            last = records[-1]
            next_cursor = LedgerCursor(posted_at=last.posted_at, id=last.id)

        return LedgerPage(records=records, next_cursor=next_cursor)
