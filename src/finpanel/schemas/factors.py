"""
Pandera schemas for factor return series.

Factor returns are stored in decimals after ingestion, regardless of
whether the source file quotes them in percent.
"""

from typing import Optional

import pandera.pandas as pa
from pandera.typing import Series


class FactorReturnSchema(pa.DataFrameModel):
    """Schema for Fama-French style factor returns."""

    date: Series[pa.DateTime] = pa.Field(unique=True)
    mktrf: Series[float] = pa.Field(description="Market excess return")
    rf: Series[float] = pa.Field(description="Risk-free rate")
    smb: Optional[Series[float]] = pa.Field(nullable=True)
    hml: Optional[Series[float]] = pa.Field(nullable=True)
    umd: Optional[Series[float]] = pa.Field(nullable=True)
    rmw: Optional[Series[float]] = pa.Field(nullable=True)
    cma: Optional[Series[float]] = pa.Field(nullable=True)

    class Config:
        """Schema configuration."""

        name = "FactorReturnSchema"
        strict = False
        coerce = True


class LiquidityFactorSchema(pa.DataFrameModel):
    """Schema for aggregate liquidity innovations (Pastor-Stambaugh style)."""

    date: Series[pa.DateTime] = pa.Field(unique=True)
    liq: Series[float] = pa.Field(
        nullable=True,
        description="Innovation in aggregate liquidity",
    )

    class Config:
        """Schema configuration."""

        name = "LiquidityFactorSchema"
        strict = False
        coerce = True
