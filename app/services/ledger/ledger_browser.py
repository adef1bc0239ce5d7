"""
Ledger browser.

Holds the pages fetched so far for one account and filter set. Free-text
search and CSV export work on these materialized pages only.
"""

import csv
import io
from datetime import date
from decimal import Decimal

from app.services.ledger.wallet_ledger import (
    LedgerCursor,
    LedgerPage,
    LedgerRecord,
    WalletLedger,
)


CSV_HEADER = [
    "ID",
    "Posted At",
    "Type",
    "Amount",
    "ROI Portion",
    "Level Portion",
    "For Date",
    "Note",
]


def matches_search(record: LedgerRecord, text: str | None) -> bool:
    """
    Case-insensitive match of type, note, for_date or amount.

    Args:
        record: Ledger record
        text: Search text (empty matches everything)

    Returns:
        True if the record matches
    """
    if not text:
        return True
    needle = text.strip().lower()
    if not needle:
        return True

    haystack = [
        record.type,
        record.note or "",
        record.for_date.isoformat() if record.for_date else "",
        str(record.amount),
        f"{record.amount:.2f}",
    ]
    return any(needle in value.lower() for value in haystack)


class LedgerBrowser:
    """Materialized ledger pages for one account."""

    def __init__(
        self,
        ledger: WalletLedger,
        account_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
        types: list[str] | None = None,
        page_size: int | None = None,
    ) -> None:
        """
        Initialize ledger browser.

        Args:
            ledger: Wallet ledger reader
            account_id: Account ID
            date_from: First local posting day (inclusive)
            date_to: Last local posting day (inclusive)
            types: Restrict to these transaction types
            page_size: Records per page
        """
        self.ledger = ledger
        self.account_id = account_id
        self.date_from = date_from
        self.date_to = date_to
        self.types = types
        self.page_size = page_size
        self.pages: list[LedgerPage] = []
        self._cursor: LedgerCursor | None = None
        self._exhausted = False

    @property
    def has_more(self) -> bool:
        """Another page can be loaded."""
        return not self._exhausted

    @property
    def records(self) -> list[LedgerRecord]:
        """All records loaded so far, newest first."""
        return [record for page in self.pages for record in page.records]

    async def load_more(self) -> LedgerPage | None:
        """
        Fetch the next page.

        Returns:
            The new page, or None when everything is loaded
        """
        if self._exhausted:
            return None

        page = await self.ledger.get_page(
            self.account_id,
            cursor=self._cursor,
            date_from=self.date_from,
            date_to=self.date_to,
            types=self.types,
            page_size=self.page_size,
        )
        self.pages.append(page)
        self._cursor = page.next_cursor
        if not page.has_more:
            self._exhausted = True
        return page

    def filtered(self, search: str | None = None) -> list[LedgerRecord]:
        """
        Loaded records matching the search text.

        Args:
            search: Free-text filter

        Returns:
            Matching records, newest first
        """
        return [r for r in self.records if matches_search(r, search)]

    def export_csv(self, search: str | None = None) -> str:
        """
        Export the loaded, filtered records.

        Args:
            search: Free-text filter

        Returns:
            CSV text with header row
        """
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(CSV_HEADER)

        for record in self.filtered(search):
            writer.writerow([
                record.id,
                record.posted_at.isoformat(),
                record.type,
                _money(record.amount),
                _money(record.roi_portion),
                _money(record.level_portion),
                record.for_date.isoformat() if record.for_date else "",
                record.note or "",
            ])

        return output.getvalue()


def _money(value: Decimal) -> str:
    return f"{value:.2f}"
