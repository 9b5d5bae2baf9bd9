"""
Result export and summary tables.
"""

from finpanel.reporting.export import save_table
from finpanel.reporting.summary import (
    summarize_betas,
    summarize_consensus,
    summarize_portfolios,
)

__all__ = ["save_table", "summarize_betas", "summarize_consensus", "summarize_portfolios"]
