"""
Liquidity measures and liquidity-sorted portfolios.
"""

from finpanel.liquidity.measures import amihud_illiquidity, liquidity_beta
from finpanel.liquidity.portfolios import (
    assign_groups,
    form_portfolios,
    portfolio_returns,
    to_wide,
)

__all__ = [
    "amihud_illiquidity",
    "assign_groups",
    "form_portfolios",
    "liquidity_beta",
    "portfolio_returns",
    "to_wide",
]
