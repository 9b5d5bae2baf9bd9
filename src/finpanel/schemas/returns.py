"""
Pandera schemas for stock and market return panels.

Column names follow the canonical (lower-case CRSP) spelling produced by
finpanel.normalization.columns.
"""

from typing import Optional

import pandas as pd
import pandera.pandas as pa
from pandera.typing import Series

# Market index columns accepted by MarketReturnSchema
MARKET_COLUMNS: tuple[str, ...] = ("vwretd", "ewretd", "sprtrn", "mkt")


class StockReturnSchema(pa.DataFrameModel):
    """
    Schema for the monthly stock return panel.

    One row per stock-month. Returns are simple returns in decimals.
    """

    permno: Series[int] = pa.Field(description="Permanent security identifier")
    date: Series[pa.DateTime] = pa.Field(description="Observation date")
    ret: Series[float] = pa.Field(
        ge=-1.0,
        nullable=True,
        description="Holding period return (decimal)",
    )
    prc: Optional[Series[float]] = pa.Field(
        nullable=True,
        description="Price (negative = bid/ask midpoint)",
    )
    shrout: Optional[Series[float]] = pa.Field(
        ge=0,
        nullable=True,
        description="Shares outstanding (thousands)",
    )
    vol: Optional[Series[float]] = pa.Field(ge=0, nullable=True)
    exchcd: Optional[Series[float]] = pa.Field(nullable=True)
    shrcd: Optional[Series[float]] = pa.Field(nullable=True)

    class Config:
        """Schema configuration."""

        name = "StockReturnSchema"
        strict = False  # Allow extra columns
        coerce = True  # Coerce types where possible


class DailyStockSchema(pa.DataFrameModel):
    """Schema for the daily stock panel used for trading-based measures."""

    permno: Series[int] = pa.Field()
    date: Series[pa.DateTime] = pa.Field()
    ret: Series[float] = pa.Field(ge=-1.0, nullable=True)
    prc: Series[float] = pa.Field(nullable=True)
    vol: Series[float] = pa.Field(ge=0, nullable=True)

    class Config:
        """Schema configuration."""

        name = "DailyStockSchema"
        strict = False
        coerce = True


class MarketReturnSchema(pa.DataFrameModel):
    """
    Schema for market index returns.

    At least one of the MARKET_COLUMNS must be present.
    """

    date: Series[pa.DateTime] = pa.Field(unique=True)
    vwretd: Optional[Series[float]] = pa.Field(nullable=True)
    ewretd: Optional[Series[float]] = pa.Field(nullable=True)
    sprtrn: Optional[Series[float]] = pa.Field(nullable=True)
    mkt: Optional[Series[float]] = pa.Field(nullable=True)
    rf: Optional[Series[float]] = pa.Field(nullable=True)

    @pa.dataframe_check
    def has_market_column(cls, df: pd.DataFrame) -> bool:
        """Require at least one market return column."""
        return any(col in df.columns for col in MARKET_COLUMNS)

    class Config:
        """Schema configuration."""

        name = "MarketReturnSchema"
        strict = False
        coerce = True
