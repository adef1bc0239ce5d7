"""
Wallet ledger package.

- wallet_ledger: keyset-paginated ledger reads
- ledger_browser: materialized pages, free-text filter and CSV export
"""

from app.services.ledger.ledger_browser import LedgerBrowser, matches_search
from app.services.ledger.wallet_ledger import (
    LedgerCursor,
    LedgerPage,
    LedgerRecord,
    WalletLedger,
)


__all__ = [
    "LedgerBrowser",
    "LedgerCursor",
    "LedgerPage",
    "LedgerRecord",
    "WalletLedger",
    "matches_search",
]
