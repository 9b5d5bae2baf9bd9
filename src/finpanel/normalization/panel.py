"""
Panel ordering, lags and universe filters.

All lag computations assume a stock-month panel and are calendar-exact:
a missing month yields NaN instead of silently reaching back to an
older observation.
"""

import numpy as np
import pandas as pd

from finpanel.normalization.columns import validate_required_columns
from finpanel.normalization.temporal import month_index
from finpanel.utils.logging import get_logger

log = get_logger(__name__)


def sort_panel(
    df: pd.DataFrame,
    id_col: str = "permno",
    date_col: str = "date",
) -> pd.DataFrame:
    """Sort a panel by entity then date and reset the index."""
    return df.sort_values([id_col, date_col], kind="mergesort").reset_index(drop=True)


def deduplicate_panel(
    df: pd.DataFrame,
    id_col: str = "permno",
    date_col: str = "date",
) -> pd.DataFrame:
    """
    Drop duplicate entity-date rows, keeping the last occurrence.

    Args:
        df: Panel DataFrame.
        id_col: Entity identifier column.
        date_col: Date column.

    Returns:
        Sorted panel with unique (id, date) keys.
    """
    n_before = len(df)
    df = sort_panel(df, id_col, date_col)
    df = df.drop_duplicates(subset=[id_col, date_col], keep="last").reset_index(drop=True)
    if len(df) < n_before:
        log.warning("Dropped duplicate panel rows", dropped=n_before - len(df))
    return df


def lag_by_month(
    df: pd.DataFrame,
    column: str,
    months: int = 1,
    id_col: str = "permno",
    date_col: str = "date",
    name: str | None = None,
) -> pd.DataFrame:
    """
    Add the value of a column from exactly `months` calendar months earlier.

    Args:
        df: Monthly panel with unique (id, month) keys.
        column: Column to lag.
        months: Lag length in months.
        id_col: Entity identifier column.
        date_col: Date column.
        name: Name of the lagged column (default: "{column}_lag{months}").

    Returns:
        Panel sorted by entity then date with the lagged column added.
    """
    validate_required_columns(df, [id_col, date_col, column])
    name = name or f"{column}_lag{months}"

    df = sort_panel(df, id_col, date_col)
    keys = pd.DataFrame(
        {
            id_col: df[id_col].to_numpy(),
            "_month": month_index(df[date_col]).to_numpy(),
        }
    )
    shifted = keys.assign(**{name: df[column].to_numpy()})
    shifted["_month"] = shifted["_month"] + months
    shifted = shifted.drop_duplicates(subset=[id_col, "_month"], keep="last")

    lagged = keys.merge(shifted, on=[id_col, "_month"], how="left")
    df[name] = lagged[name].to_numpy()
    return df


def add_market_equity(df: pd.DataFrame, name: str = "me") -> pd.DataFrame:
    """
    Add market equity as |price| times shares outstanding.

    CRSP reports a negative price when it is a bid/ask midpoint, hence the
    absolute value. Non-positive results are set to NaN.
    """
    validate_required_columns(df, ["prc", "shrout"])
    df = df.copy()
    me = df["prc"].abs() * df["shrout"]
    df[name] = me.where(me > 0, np.nan)
    return df


def apply_universe_filters(
    df: pd.DataFrame,
    *,
    share_codes: list[int] | None = None,
    exchange_codes: list[int] | None = None,
    min_price: float | None = None,
) -> pd.DataFrame:
    """
    Restrict a stock panel to an investable universe.

    Filters are skipped (with a warning) when the needed column is absent.

    Args:
        df: Stock panel.
        share_codes: Allowed CRSP share codes (e.g. [10, 11] for common stock).
        exchange_codes: Allowed CRSP exchange codes (e.g. [1, 2, 3]).
        min_price: Minimum absolute price.

    Returns:
        Filtered panel.
    """
    n_before = len(df)
    mask = pd.Series(True, index=df.index)

    filters = (
        ("shrcd", share_codes, lambda s, v: s.isin(v)),
        ("exchcd", exchange_codes, lambda s, v: s.isin(v)),
        ("prc", min_price, lambda s, v: s.abs() >= v),
    )
    for column, value, predicate in filters:
        if value is None:
            continue
        if column not in df.columns:
            log.warning("Universe filter column missing, skipping", column=column)
            continue
        mask &= predicate(df[column], value)

    filtered = df[mask]
    log.info("Applied universe filters", rows_before=n_before, rows_after=len(filtered))
    return filtered
