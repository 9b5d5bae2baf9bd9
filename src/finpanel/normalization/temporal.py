"""
Date parsing and calendar alignment.

Monthly panels are keyed by month-end dates. Calendar arithmetic on months
uses an integer month index (year * 12 + month - 1) so that lags and holding
periods are exact regardless of the day of month in the source data.
"""

import pandas as pd

from finpanel.config.settings import SampleConfig
from finpanel.utils.logging import get_logger

log = get_logger(__name__)


def parse_dates(values: pd.Series) -> pd.Series:
    """
    Parse a date column from common research-data encodings.

    Supports datetime values, ISO strings and integer-like YYYYMM or
    YYYYMMDD codes (as used by the Fama-French data library).

    Args:
        values: Raw date column.

    Returns:
        Series of datetime64 values (unparseable entries are NaT).
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        return values

    as_text = values.astype("string").str.strip().str.replace(r"\.0$", "", regex=True)

    # Integer codes: rows not matching the dominant width (e.g. annual
    # summary rows in Fama-French files) become NaT
    is_yyyymm = as_text.str.fullmatch(r"\d{6}").fillna(False).astype(bool)
    is_yyyymmdd = as_text.str.fullmatch(r"\d{8}").fillna(False).astype(bool)
    if len(as_text) > 0 and is_yyyymm.mean() > 0.5:
        parsed = pd.to_datetime(as_text.where(is_yyyymm), format="%Y%m", errors="coerce")
        return to_month_end(parsed)
    if len(as_text) > 0 and is_yyyymmdd.mean() > 0.5:
        return pd.to_datetime(as_text.where(is_yyyymmdd), format="%Y%m%d", errors="coerce")

    return pd.to_datetime(as_text, errors="coerce")


def to_month_end(dates: pd.Series) -> pd.Series:
    """
    Align dates to the last calendar day of their month.

    Args:
        dates: Datetime series.

    Returns:
        Series of month-end timestamps (time component dropped).
    """
    dates = pd.to_datetime(dates)
    return (dates.dt.normalize() + pd.offsets.MonthEnd(0)).dt.normalize()


def month_index(dates: pd.Series) -> pd.Series:
    """
    Convert dates to an integer month index.

    Args:
        dates: Datetime series.

    Returns:
        Integer series equal to year * 12 + month - 1.
    """
    dates = pd.to_datetime(dates)
    return dates.dt.year * 12 + dates.dt.month - 1


def from_month_index(index: pd.Series) -> pd.Series:
    """
    Convert an integer month index back to month-end dates.

    Args:
        index: Integer series as produced by month_index().

    Returns:
        Series of month-end timestamps.
    """
    index = pd.Series(index).astype("int64")
    first_days = pd.to_datetime(
        pd.DataFrame({"year": index // 12, "month": index % 12 + 1, "day": 1})
    )
    return to_month_end(first_days)


def filter_to_sample(
    df: pd.DataFrame,
    sample: SampleConfig,
    date_column: str = "date",
) -> pd.DataFrame:
    """
    Filter DataFrame to the configured sample period.

    Args:
        df: DataFrame with date column.
        sample: Sample period configuration.
        date_column: Name of date column.

    Returns:
        Filtered DataFrame.
    """
    if date_column not in df.columns:
        log.warning("Date column not found, skipping filter", column=date_column)
        return df

    start = pd.Timestamp(sample.start)
    end = pd.Timestamp(sample.end)

    dates = pd.to_datetime(df[date_column], errors="coerce")
    mask = (dates >= start) & (dates <= end)
    filtered = df[mask]

    log.info(
        "Filtered to sample period",
        start=str(start.date()),
        end=str(end.date()),
        rows_before=len(df),
        rows_after=len(filtered),
    )

    return filtered
