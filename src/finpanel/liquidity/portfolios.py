"""
Cross-sectional portfolio sorts.

Stocks are ranked on a signal each formation month, assigned to groups
1..n (1 = lowest signal), and held over the following months. Portfolio
returns are equal-weighted or weighted by the previous month's market
equity.
"""

import numpy as np
import pandas as pd

from finpanel.config.settings import Weighting
from finpanel.normalization.columns import validate_required_columns
from finpanel.normalization.temporal import from_month_index, month_index
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

SPREAD_COLUMN = "spread"


def _group_label(group: int) -> str:
    return f"P{group}"


def assign_groups(
    signal: pd.DataFrame,
    n_groups: int,
    *,
    value_col: str,
    id_col: str = "permno",
    date_col: str = "date",
    breakpoint_mask: pd.Series | None = None,
    min_stocks: int | None = None,
) -> pd.DataFrame:
    """
    Assign stocks to signal groups separately for every date.

    Without a breakpoint mask, stocks are split into equal-sized groups by
    rank. With a mask, quantile breakpoints are computed from the masked
    stocks only (e.g. NYSE) and applied to all stocks.

    Args:
        signal: Panel with id_col, date_col and value_col.
        n_groups: Number of groups.
        value_col: Sorting variable.
        id_col: Entity identifier column.
        date_col: Date column.
        breakpoint_mask: Boolean series aligned with `signal` selecting the
            stocks used for breakpoints.
        min_stocks: Dates with fewer valid stocks are skipped
            (default and floor: n_groups).

    Returns:
        DataFrame with id_col, date_col, value_col and 'group' (int, 1..n).
    """
    if n_groups < 2:
        msg = f"n_groups must be at least 2, got {n_groups}"
        raise ValueError(msg)
    validate_required_columns(signal, [id_col, date_col, value_col])
    min_stocks = n_groups if min_stocks is None else max(min_stocks, n_groups)

    df = signal[[id_col, date_col, value_col]].copy()
    df["_bp"] = True if breakpoint_mask is None else breakpoint_mask.reindex(df.index).fillna(False)
    df = df.dropna(subset=[value_col])

    assigned: list[pd.DataFrame] = []
    skipped: list[str] = []
    for date, cross_section in df.groupby(date_col, sort=True):
        if len(cross_section) < min_stocks:
            skipped.append(str(pd.Timestamp(date).date()))
            continue

        values = cross_section[value_col]
        if breakpoint_mask is None:
            ranks = values.rank(method="first")
            groups = pd.qcut(ranks, n_groups, labels=False) + 1
        else:
            bp_values = values[cross_section["_bp"].astype(bool)]
            if len(bp_values) < n_groups:
                skipped.append(str(pd.Timestamp(date).date()))
                continue
            quantiles = np.linspace(0, 1, n_groups + 1)[1:-1]
            breakpoints = np.quantile(bp_values.to_numpy(), quantiles)
            groups = pd.Series(
                np.searchsorted(breakpoints, values.to_numpy(), side="left") + 1,
                index=values.index,
            )

        assigned.append(cross_section[[id_col, date_col, value_col]].assign(group=groups))

    if skipped:
        log.warning(
            "Skipped sort dates with too few stocks",
            dates=len(skipped),
            first=skipped[0],
            min_stocks=min_stocks,
        )

    if not assigned:
        empty = df[[id_col, date_col, value_col]].iloc[0:0].copy()
        empty["group"] = pd.Series(dtype="int64")
        return empty

    result = pd.concat(assigned, ignore_index=True)
    result["group"] = result["group"].astype("int64")
    log.info(
        "Assigned portfolio groups",
        dates=int(result[date_col].nunique()),
        rows=len(result),
        n_groups=n_groups,
    )
    return result


def form_portfolios(
    returns: pd.DataFrame,
    assignments: pd.DataFrame,
    *,
    formation_lag: int = 1,
    rebalance_month: int | None = None,
    id_col: str = "permno",
    date_col: str = "date",
) -> pd.DataFrame:
    """
    Attach group assignments to the returns of the holding period.

    A group formed in month f is held in months f + lag .. f + lag + h - 1,
    where h is 12 with annual rebalancing and 1 otherwise.

    Args:
        returns: Monthly stock panel with id_col, date_col and 'ret'
            (plus any weight column).
        assignments: Output of assign_groups().
        formation_lag: Months between formation and the first holding month.
        rebalance_month: Calendar month of the annual sort (None = monthly).
        id_col: Entity identifier column.
        date_col: Date column.

    Returns:
        Returns panel restricted to held stocks, with 'group' and
        'formation_date' added.
    """
    if formation_lag < 1:
        msg = f"formation_lag must be at least 1, got {formation_lag}"
        raise ValueError(msg)
    validate_required_columns(returns, [id_col, date_col, "ret"])
    validate_required_columns(assignments, [id_col, date_col, "group"])

    holding = 1
    if rebalance_month is not None:
        assignments = assignments[pd.to_datetime(assignments[date_col]).dt.month == rebalance_month]
        holding = 12

    formed = pd.DataFrame(
        {
            id_col: assignments[id_col].to_numpy(),
            "group": assignments["group"].to_numpy(),
            "_formation": month_index(assignments[date_col]).to_numpy(),
        }
    )
    offsets = np.arange(formation_lag, formation_lag + holding)
    held = formed.loc[formed.index.repeat(len(offsets))].reset_index(drop=True)
    held["_month"] = held["_formation"] + np.tile(offsets, len(formed))

    panel = returns.assign(_month=month_index(returns[date_col]).to_numpy())
    merged = panel.merge(held, on=[id_col, "_month"], how="inner")
    merged["formation_date"] = (
        from_month_index(merged["_formation"]).to_numpy()
        if len(merged)
        else pd.Series(dtype="datetime64[ns]")
    )
    merged = merged.drop(columns=["_month", "_formation"])

    log.info(
        "Formed portfolios",
        holding_months=holding,
        formation_lag=formation_lag,
        stock_months=len(merged),
    )
    return merged.sort_values([date_col, "group", id_col]).reset_index(drop=True)


def portfolio_returns(
    panel: pd.DataFrame,
    weighting: Weighting | str = Weighting.EQUAL,
    *,
    weight_col: str = "me_lag",
    date_col: str = "date",
) -> pd.DataFrame:
    """
    Aggregate stock returns to portfolio returns per date and group.

    Args:
        panel: Output of form_portfolios() with 'ret' and 'group'.
        weighting: Equal or value weighting.
        weight_col: Lagged market equity used for value weights.
        date_col: Date column.

    Returns:
        DataFrame with date, group, ret, n_stocks.
    """
    weighting = Weighting(weighting)
    validate_required_columns(panel, [date_col, "group", "ret"])
    df = panel.dropna(subset=["ret"])

    if weighting is Weighting.VALUE:
        validate_required_columns(df, [weight_col])
        weights = df[weight_col]
        n_unweighted = int((~(weights > 0)).sum())
        if n_unweighted:
            log.debug("Excluded stocks without lagged market equity", rows=n_unweighted)
        df = df[weights > 0].assign(_w=weights[weights > 0])
        df = df.assign(_wret=df["ret"] * df["_w"])
        grouped = df.groupby([date_col, "group"], sort=True)
        result = grouped[["_wret", "_w"]].sum()
        result["ret"] = result["_wret"] / result["_w"]
        result["n_stocks"] = grouped.size()
        result = result[["ret", "n_stocks"]].reset_index()
    else:
        result = (
            df.groupby([date_col, "group"], sort=True)["ret"]
            .agg(ret="mean", n_stocks="count")
            .reset_index()
        )

    result["group"] = result["group"].astype("int64")
    result["n_stocks"] = result["n_stocks"].astype("int64")
    log.info(
        "Computed portfolio returns",
        weighting=weighting.value,
        periods=int(result[date_col].nunique()),
    )
    return result


def to_wide(
    returns: pd.DataFrame,
    n_groups: int | None = None,
    *,
    date_col: str = "date",
) -> pd.DataFrame:
    """
    Pivot portfolio returns to one column per group plus the spread.

    Args:
        returns: Output of portfolio_returns().
        n_groups: Number of groups (default: highest group observed).
        date_col: Date column.

    Returns:
        DataFrame indexed by date with columns P1..Pn and 'spread'
        (highest minus lowest group).
    """
    wide = returns.pivot(index=date_col, columns="group", values="ret").sort_index()
    if n_groups is None:
        n_groups = int(returns["group"].max()) if len(returns) else 0

    wide = wide.reindex(columns=range(1, n_groups + 1))
    wide.columns = [_group_label(g) for g in wide.columns]
    wide.index.name = date_col
    wide.columns.name = None

    if n_groups >= 2:
        wide[SPREAD_COLUMN] = wide[_group_label(n_groups)] - wide[_group_label(1)]
    return wide
