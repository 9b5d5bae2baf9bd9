"""
Stock and market return ingestion.

Loads CRSP-style monthly and daily stock files and market index returns.
"""

import pandas as pd

from finpanel.config.settings import Frequency, PipelineConfig
from finpanel.ingestion.base import DataLoader, coerce_numeric
from finpanel.normalization.columns import validate_required_columns
from finpanel.normalization.panel import deduplicate_panel
from finpanel.normalization.temporal import parse_dates, to_month_end
from finpanel.schemas.returns import (
    MARKET_COLUMNS,
    DailyStockSchema,
    MarketReturnSchema,
    StockReturnSchema,
)
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

STOCK_NUMERIC_COLUMNS = ["ret", "prc", "shrout", "vol", "exchcd", "shrcd"]


def _prepare_stock_panel(df: pd.DataFrame, *, monthly: bool) -> pd.DataFrame:
    """Shared cleaning for monthly and daily stock files."""
    validate_required_columns(df, ["permno", "date", "ret"])

    df = coerce_numeric(df, STOCK_NUMERIC_COLUMNS)
    df["date"] = parse_dates(df["date"])
    if monthly:
        df["date"] = to_month_end(df["date"])

    n_before = len(df)
    df = df.dropna(subset=["permno", "date"])
    if len(df) < n_before:
        log.warning("Dropped rows without identifier or date", dropped=n_before - len(df))

    df["permno"] = df["permno"].astype("int64")
    return deduplicate_panel(df)


class StockReturnLoader(DataLoader[StockReturnSchema]):
    """Loader for the monthly stock return panel."""

    path_attr = "stock_returns"

    def __init__(self, config: PipelineConfig) -> None:
        """Initialize monthly stock return loader."""
        super().__init__(config, StockReturnSchema)

    def _transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Clean returns and align dates to month end."""
        return _prepare_stock_panel(df, monthly=True)


class DailyStockLoader(DataLoader[DailyStockSchema]):
    """Loader for the daily stock panel (returns, prices, volume)."""

    path_attr = "daily_stock"

    def __init__(self, config: PipelineConfig) -> None:
        """Initialize daily stock loader."""
        super().__init__(config, DailyStockSchema)

    def _transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Clean returns, keeping calendar dates."""
        validate_required_columns(df, ["prc", "vol"])
        return _prepare_stock_panel(df, monthly=False)


class MarketReturnLoader(DataLoader[MarketReturnSchema]):
    """Loader for market index returns."""

    path_attr = "market_returns"

    def __init__(
        self, config: PipelineConfig, frequency: Frequency | None = None
    ) -> None:
        """
        Initialize market return loader.

        Args:
            config: Pipeline configuration.
            frequency: Date alignment (defaults to the rolling-beta frequency).
        """
        super().__init__(config, MarketReturnSchema)
        self.frequency = frequency or config.rolling.frequency

    def _transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse dates and coerce return columns."""
        validate_required_columns(df, ["date"])
        df = coerce_numeric(df, [*MARKET_COLUMNS, "rf"])
        df["date"] = parse_dates(df["date"])
        if self.frequency == Frequency.MONTHLY:
            df["date"] = to_month_end(df["date"])

        df = df.dropna(subset=["date"]).sort_values("date")
        return df.drop_duplicates(subset=["date"], keep="last").reset_index(drop=True)


def load_stock_returns(config: PipelineConfig, *, validate: bool = True) -> pd.DataFrame:
    """
    Convenience function to load the monthly stock panel.

    Args:
        config: Pipeline configuration.
        validate: Whether to validate against schema.

    Returns:
        DataFrame sorted by permno then date.
    """
    return StockReturnLoader(config).load(validate=validate)


def load_daily_stock(config: PipelineConfig, *, validate: bool = True) -> pd.DataFrame:
    """Convenience function to load the daily stock panel."""
    return DailyStockLoader(config).load(validate=validate)


def load_market_returns(
    config: PipelineConfig,
    *,
    frequency: Frequency | None = None,
    validate: bool = True,
) -> pd.DataFrame:
    """Convenience function to load market index returns."""
    return MarketReturnLoader(config, frequency).load(validate=validate)
