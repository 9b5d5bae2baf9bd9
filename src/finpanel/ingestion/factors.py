"""
Factor return ingestion.

Loads Fama-French style factor files and aggregate liquidity series.
"""

import numpy as np
import pandas as pd

from finpanel.config.settings import PipelineConfig
from finpanel.ingestion.base import DataLoader, coerce_numeric
from finpanel.normalization.columns import validate_required_columns
from finpanel.normalization.temporal import parse_dates, to_month_end
from finpanel.schemas.factors import FactorReturnSchema, LiquidityFactorSchema
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

# Missing-value sentinel used in the Pastor-Stambaugh liquidity file
LIQUIDITY_MISSING_CODE = -99.0


def _ensure_date_column(df: pd.DataFrame) -> pd.DataFrame:
    """Treat the first column as the date when no 'date' column exists."""
    if "date" not in df.columns:
        first = df.columns[0]
        log.debug("Using first column as date", column=str(first))
        df = df.rename(columns={first: "date"})
    return df


class FactorLoader(DataLoader[FactorReturnSchema]):
    """Loader for factor returns (market excess return, rf, SMB, HML, ...)."""

    path_attr = "factors"

    def __init__(self, config: PipelineConfig, *, monthly: bool = True) -> None:
        """
        Initialize factor loader.

        Args:
            config: Pipeline configuration.
            monthly: Align dates to month end.
        """
        super().__init__(config, FactorReturnSchema)
        self.monthly = monthly

    def _transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse dates and convert percent returns to decimals."""
        df = _ensure_date_column(df)
        df["date"] = parse_dates(df["date"])
        df = df.dropna(subset=["date"])
        if self.monthly:
            df["date"] = to_month_end(df["date"])

        value_cols = [c for c in df.columns if c != "date"]
        df = coerce_numeric(df, value_cols)
        validate_required_columns(df, ["mktrf", "rf"])

        if self.config.data_paths.factors_in_percent:
            df[value_cols] = df[value_cols] / 100.0
            log.debug("Converted factor returns from percent", columns=value_cols)

        df = df.sort_values("date").drop_duplicates(subset=["date"], keep="last")
        return df.reset_index(drop=True)


class LiquidityFactorLoader(DataLoader[LiquidityFactorSchema]):
    """Loader for aggregate liquidity innovations."""

    path_attr = "liquidity_factor"
    # Month, level, innovation and traded factor, as published
    text_columns = ["date", "agg_liq", "liq", "traded_liq"]

    def __init__(self, config: PipelineConfig) -> None:
        """Initialize liquidity factor loader."""
        super().__init__(config, LiquidityFactorSchema)

    def _transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse dates and replace the missing-value sentinel."""
        df = _ensure_date_column(df)
        validate_required_columns(df, ["liq"])
        df["date"] = to_month_end(parse_dates(df["date"]))
        df = coerce_numeric(df, ["liq"])
        df["liq"] = df["liq"].replace(LIQUIDITY_MISSING_CODE, np.nan)

        df = df.dropna(subset=["date"]).sort_values("date")
        df = df.drop_duplicates(subset=["date"], keep="last")
        return df[["date", "liq"]].reset_index(drop=True)


def load_factors(
    config: PipelineConfig, *, monthly: bool = True, validate: bool = True
) -> pd.DataFrame:
    """
    Convenience function to load factor returns.

    Args:
        config: Pipeline configuration.
        monthly: Align dates to month end.
        validate: Whether to validate against schema.

    Returns:
        DataFrame of factor returns in decimals, one row per date.
    """
    return FactorLoader(config, monthly=monthly).load(validate=validate)


def load_liquidity_factor(config: PipelineConfig, *, validate: bool = True) -> pd.DataFrame:
    """Convenience function to load aggregate liquidity innovations."""
    return LiquidityFactorLoader(config).load(validate=validate)
