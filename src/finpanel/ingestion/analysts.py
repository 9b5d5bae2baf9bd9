"""
Analyst forecast ingestion.

Loads IBES detail-style forecast records and the ticker-to-PERMNO link.
"""

import pandas as pd

from finpanel.config.settings import PipelineConfig
from finpanel.ingestion.base import DataLoader, coerce_numeric
from finpanel.normalization.columns import validate_required_columns
from finpanel.normalization.temporal import parse_dates
from finpanel.schemas.analysts import AnalystForecastSchema, AnalystLinkSchema
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

# Open-ended link ranges are stored as missing end dates
OPEN_LINK_END = pd.Timestamp("2099-12-31")


def _as_clean_string(values: pd.Series) -> pd.Series:
    """Convert identifiers to stripped strings, dropping float artefacts."""
    return (
        values.astype("string")
        .str.strip()
        .str.replace(r"\.0$", "", regex=True)
    )


class AnalystForecastLoader(DataLoader[AnalystForecastSchema]):
    """Loader for individual analyst forecasts."""

    path_attr = "analyst_forecasts"

    def __init__(self, config: PipelineConfig) -> None:
        """Initialize analyst forecast loader."""
        super().__init__(config, AnalystForecastSchema)

    def _transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse dates, identifiers and forecast values."""
        validate_required_columns(df, ["ticker", "analyst", "anndats", "fpedats", "value"])

        df["ticker"] = _as_clean_string(df["ticker"])
        df["analyst"] = _as_clean_string(df["analyst"])
        if "fpi" in df.columns:
            df["fpi"] = _as_clean_string(df["fpi"])
        df["anndats"] = parse_dates(df["anndats"])
        df["fpedats"] = parse_dates(df["fpedats"])
        df = coerce_numeric(df, ["value"])

        n_before = len(df)
        df = df.dropna(subset=["ticker", "analyst", "anndats", "fpedats"])
        if len(df) < n_before:
            log.warning("Dropped incomplete forecast records", dropped=n_before - len(df))

        return df.reset_index(drop=True)


class AnalystLinkLoader(DataLoader[AnalystLinkSchema]):
    """Loader for the IBES ticker to PERMNO link table."""

    path_attr = "analyst_link"

    def __init__(self, config: PipelineConfig) -> None:
        """Initialize link loader."""
        super().__init__(config, AnalystLinkSchema)

    def _transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse link validity dates; a missing end date means still active."""
        validate_required_columns(df, ["ticker", "permno", "sdate", "edate"])

        df["ticker"] = _as_clean_string(df["ticker"])
        df = coerce_numeric(df, ["permno"])
        df = df.dropna(subset=["ticker", "permno"])
        df["permno"] = df["permno"].astype("int64")
        df["sdate"] = parse_dates(df["sdate"]).fillna(pd.Timestamp("1900-01-01"))
        df["edate"] = parse_dates(df["edate"]).fillna(OPEN_LINK_END)

        return df.reset_index(drop=True)


def load_analyst_forecasts(
    config: PipelineConfig, *, validate: bool = True
) -> pd.DataFrame:
    """
    Convenience function to load analyst forecasts.

    Args:
        config: Pipeline configuration.
        validate: Whether to validate against schema.

    Returns:
        DataFrame with one row per forecast announcement.
    """
    return AnalystForecastLoader(config).load(validate=validate)


def load_analyst_link(config: PipelineConfig, *, validate: bool = True) -> pd.DataFrame:
    """Convenience function to load the ticker to PERMNO link."""
    return AnalystLinkLoader(config).load(validate=validate)
