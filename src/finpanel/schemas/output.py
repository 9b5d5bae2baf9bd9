"""
Pandera schemas for job outputs.
"""

from typing import Optional

import pandera.pandas as pa
from pandera.typing import Series


class RollingBetaSchema(pa.DataFrameModel):
    """
    Schema for rolling market-model estimates.

    One row per stock-date. Estimates are NaN where the trailing window
    holds fewer than the minimum number of valid observations.
    """

    permno: Series[int] = pa.Field()
    date: Series[pa.DateTime] = pa.Field()
    alpha: Series[float] = pa.Field(nullable=True)
    beta: Series[float] = pa.Field(nullable=True)
    resid_std: Series[float] = pa.Field(ge=0, nullable=True)
    r2: Series[float] = pa.Field(nullable=True)
    nobs: Series[int] = pa.Field(ge=0)

    class Config:
        """Schema configuration."""

        name = "RollingBetaSchema"
        strict = False
        coerce = True


class ConsensusSchema(pa.DataFrameModel):
    """Schema for monthly analyst consensus statistics."""

    ticker: Series[str] = pa.Field()
    statpers: Series[pa.DateTime] = pa.Field(description="Statistical period (month end)")
    fpedats: Series[pa.DateTime] = pa.Field()
    numest: Series[int] = pa.Field(ge=1)
    meanest: Series[float] = pa.Field()
    medest: Series[float] = pa.Field()
    stdev: Series[float] = pa.Field(ge=0, nullable=True)
    highest: Series[float] = pa.Field()
    lowest: Series[float] = pa.Field()
    dispersion: Series[float] = pa.Field(ge=0, nullable=True)
    revision: Series[float] = pa.Field(nullable=True)
    permno: Optional[Series[float]] = pa.Field(nullable=True)

    class Config:
        """Schema configuration."""

        name = "ConsensusSchema"
        strict = False
        coerce = True


class PortfolioReturnSchema(pa.DataFrameModel):
    """Schema for long-format portfolio returns."""

    date: Series[pa.DateTime] = pa.Field()
    group: Series[int] = pa.Field(ge=1)
    ret: Series[float] = pa.Field(nullable=True)
    n_stocks: Series[int] = pa.Field(ge=0)

    class Config:
        """Schema configuration."""

        name = "PortfolioReturnSchema"
        strict = False
        coerce = True


class AlphaSchema(pa.DataFrameModel):
    """Schema for factor-model alpha tables."""

    portfolio: Series[str] = pa.Field()
    model: Series[str] = pa.Field()
    alpha: Series[float] = pa.Field(nullable=True)
    alpha_t: Series[float] = pa.Field(nullable=True)
    alpha_p: Series[float] = pa.Field(ge=0, le=1, nullable=True)
    r2: Series[float] = pa.Field(nullable=True)
    nobs: Series[int] = pa.Field(ge=0)

    class Config:
        """Schema configuration."""

        name = "AlphaSchema"
        strict = False
        coerce = True
