"""
Monthly consensus statistics from individual analyst forecasts.

A forecast stays in the consensus from the month it is announced until the
analyst revises it, until it turns stale, or until the forecast period ends,
whichever comes first. Each month the consensus is computed over the
analysts still active for the selected fiscal period.
"""

from collections.abc import Sequence

import numpy as np
import pandas as pd

from finpanel.normalization.columns import validate_required_columns
from finpanel.normalization.panel import lag_by_month
from finpanel.normalization.temporal import from_month_index, month_index
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

CONSENSUS_COLUMNS = [
    "ticker",
    "statpers",
    "fpedats",
    "numest",
    "meanest",
    "medest",
    "stdev",
    "highest",
    "lowest",
    "dispersion",
    "revision",
]

FORECAST_KEY = ["ticker", "analyst", "fpedats"]


def _active_forecasts(df: pd.DataFrame, stale_months: int) -> pd.DataFrame:
    """
    Expand each forecast to one row per month in which it is active.

    Args:
        df: Forecasts with 'month' and 'fpe_month' index columns, one row
            per analyst, firm, fiscal period and announcement month.
        stale_months: Months a forecast survives without revision.

    Returns:
        One row per forecast and active month, with 'stat_month' added.
    """
    df = df.sort_values([*FORECAST_KEY, "month"], kind="mergesort").reset_index(drop=True)

    next_revision = df.groupby(FORECAST_KEY, sort=False)["month"].shift(-1)
    last_active = pd.concat(
        [
            next_revision - 1,
            df["month"] + stale_months - 1,
            df["fpe_month"] - 1,
        ],
        axis=1,
    ).min(axis=1)

    n_months = (last_active - df["month"] + 1).astype("int64")
    keep = n_months > 0
    if not keep.all():
        log.debug("Dropped forecasts announced after period end", dropped=int((~keep).sum()))
    df = df[keep].reset_index(drop=True)
    n_months = n_months[keep].reset_index(drop=True)

    expanded = df.loc[df.index.repeat(n_months)]
    offset = expanded.groupby(level=0).cumcount()
    expanded = expanded.assign(stat_month=expanded["month"] + offset)
    return expanded.reset_index(drop=True)


def _empty_consensus() -> pd.DataFrame:
    """Typed empty consensus table."""
    return pd.DataFrame(
        {
            "ticker": pd.Series(dtype="string"),
            "statpers": pd.Series(dtype="datetime64[ns]"),
            "fpedats": pd.Series(dtype="datetime64[ns]"),
            "numest": pd.Series(dtype="int64"),
            **{
                col: pd.Series(dtype=float)
                for col in CONSENSUS_COLUMNS
                if col not in {"ticker", "statpers", "fpedats", "numest"}
            },
        }
    )


def build_consensus(
    forecasts: pd.DataFrame,
    *,
    stale_months: int = 3,
    horizon: int = 1,
    min_analysts: int = 1,
    fpi: Sequence[str] | None = None,
) -> pd.DataFrame:
    """
    Aggregate individual analyst forecasts into monthly consensus statistics.

    Args:
        forecasts: Forecast records with ticker, analyst, anndats, fpedats,
            value and optionally fpi.
        stale_months: Months a forecast stays active without revision.
        horizon: Which future fiscal period to report (1 = nearest).
        min_analysts: Minimum number of active analysts per consensus.
        fpi: Forecast period indicators to keep (None keeps all).

    Returns:
        One row per ticker and statistical month with numest, meanest,
        medest, stdev, highest, lowest, dispersion and revision.
    """
    validate_required_columns(forecasts, ["ticker", "analyst", "anndats", "fpedats", "value"])

    df = forecasts.dropna(subset=["value", "anndats", "fpedats"])
    if fpi is not None:
        if "fpi" in df.columns:
            df = df[df["fpi"].isin(list(fpi))]
        else:
            log.warning("No 'fpi' column, ignoring period indicator filter", fpi=list(fpi))

    log.info("Building analyst consensus", forecasts=len(df), stale_months=stale_months)
    if df.empty:
        return _empty_consensus()

    df = df.assign(
        month=month_index(df["anndats"]),
        fpe_month=month_index(df["fpedats"]),
        fpedats=pd.to_datetime(df["fpedats"]).dt.normalize(),
    )

    # An analyst's last word within a month replaces earlier ones
    df = df.sort_values([*FORECAST_KEY, "anndats"], kind="mergesort")
    df = df.drop_duplicates(subset=[*FORECAST_KEY, "month"], keep="last")

    active = _active_forecasts(df, stale_months)
    if active.empty:
        return _empty_consensus()

    period_rank = active.groupby(["ticker", "stat_month"])["fpe_month"].rank(method="dense")
    active = active[period_rank == horizon]

    grouped = active.groupby(["ticker", "stat_month", "fpedats"], sort=True)["value"]
    consensus = grouped.agg(
        numest="count",
        meanest="mean",
        medest="median",
        stdev="std",
        highest="max",
        lowest="min",
    ).reset_index()

    n_before = len(consensus)
    consensus = consensus[consensus["numest"] >= min_analysts].copy()
    if len(consensus) < n_before:
        log.info(
            "Dropped thin consensus rows",
            dropped=n_before - len(consensus),
            min_analysts=min_analysts,
        )
    if consensus.empty:
        return _empty_consensus()

    consensus["statpers"] = from_month_index(consensus["stat_month"]).to_numpy()
    consensus = consensus.drop(columns="stat_month")

    abs_mean = consensus["meanest"].abs()
    consensus["dispersion"] = np.where(abs_mean > 0, consensus["stdev"] / abs_mean, np.nan)

    consensus = lag_by_month(
        consensus, "meanest", id_col="ticker", date_col="statpers", name="meanest_prev"
    )
    consensus = lag_by_month(
        consensus, "fpedats", id_col="ticker", date_col="statpers", name="fpedats_prev"
    )
    same_period = consensus["fpedats_prev"] == consensus["fpedats"]
    consensus["revision"] = (consensus["meanest"] - consensus["meanest_prev"]).where(same_period)

    consensus["numest"] = consensus["numest"].astype("int64")
    consensus = consensus.sort_values(["ticker", "statpers"]).reset_index(drop=True)

    log.info(
        "Consensus built",
        rows=len(consensus),
        tickers=int(consensus["ticker"].nunique()),
    )
    return consensus[CONSENSUS_COLUMNS]


def link_to_permno(consensus: pd.DataFrame, link: pd.DataFrame) -> pd.DataFrame:
    """
    Attach PERMNOs to consensus rows using a dated ticker link.

    A link applies when statpers lies within [sdate, edate]. Rows without a
    valid link keep a missing permno.

    Args:
        consensus: Output of build_consensus().
        link: Link table with ticker, permno, sdate, edate.

    Returns:
        Consensus table with a 'permno' column added.
    """
    validate_required_columns(link, ["ticker", "permno", "sdate", "edate"])

    merged = consensus.merge(
        link[["ticker", "permno", "sdate", "edate"]], on="ticker", how="left"
    )
    valid = (merged["statpers"] >= merged["sdate"]) & (merged["statpers"] <= merged["edate"])
    merged["permno"] = merged["permno"].where(valid).astype(float)

    # One row per consensus observation, preferring a valid link
    merged = merged.assign(_valid=valid).sort_values(
        ["ticker", "statpers", "_valid", "sdate"],
        ascending=[True, True, False, False],
        kind="mergesort",
    )
    merged = merged.drop_duplicates(subset=["ticker", "statpers"], keep="first")
    merged = merged.drop(columns=["sdate", "edate", "_valid"]).reset_index(drop=True)

    log.info(
        "Linked consensus to PERMNO",
        rows=len(merged),
        linked=int(merged["permno"].notna().sum()),
    )
    return merged
