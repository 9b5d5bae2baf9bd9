"""
finpanel: empirical-finance panel analytics.

This package provides ingestion, rolling-window regressions, analyst
consensus aggregation and liquidity-sorted portfolios with factor-model
alphas for stock-month and stock-day panels.
"""

from importlib.metadata import version

__version__ = version("finpanel")

__all__ = ["__version__"]
