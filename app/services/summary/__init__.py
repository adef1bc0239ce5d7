"""
Income summary package.

- figures: dashboard figures model
- income_summary_service: refresh and serve dashboard figures
- batch_refresh: refresh the figures of every active account
"""

from app.services.summary.batch_refresh import BatchRefreshRunner, BatchRefreshSummary
from app.services.summary.figures import IncomeFigures
from app.services.summary.income_summary_service import IncomeSummaryService


__all__ = [
    "BatchRefreshRunner",
    "BatchRefreshSummary",
    "IncomeFigures",
    "IncomeSummaryService",
]
