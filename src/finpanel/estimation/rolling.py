"""
Rolling-window OLS on stock panels.

For each entity the regression of y on a constant and the regressors is
re-estimated over the trailing window ending at (and including) each
observation. Windows expand until `window` periods are available.
Missing observations inside a window are dropped, and a window with fewer
than `min_obs` valid observations yields NaN estimates.

Monthly windows span calendar months: each entity is placed on a complete
month grid before fitting, so a gap in its history counts against the
window instead of pulling in older observations. Daily windows count
trading days (rows).

Estimation uses statsmodels RollingOLS per entity.
"""

from collections.abc import Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.regression.rolling import RollingOLS

from finpanel.config.settings import Frequency
from finpanel.normalization.columns import validate_required_columns
from finpanel.normalization.panel import sort_panel
from finpanel.normalization.temporal import month_index
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

CONST = "const"


def _empty_estimates(
    index: pd.Index, regressors: Sequence[str]
) -> pd.DataFrame:
    """NaN estimates for an entity with too little history."""
    columns = ["alpha", *regressors, "resid_std", "r2"]
    out = pd.DataFrame(np.nan, index=index, columns=columns)
    out["nobs"] = 0
    return out


def _empty_result(id_col: str, date_col: str, regressors: Sequence[str]) -> pd.DataFrame:
    """Typed empty output table."""
    return pd.DataFrame(
        {
            id_col: pd.Series(dtype="int64"),
            date_col: pd.Series(dtype="datetime64[ns]"),
            **{
                col: pd.Series(dtype=float)
                for col in ["alpha", *regressors, "resid_std", "r2"]
            },
            "nobs": pd.Series(dtype="int64"),
        }
    )


def _fit_entity(
    group: pd.DataFrame,
    y: str,
    x: Sequence[str],
    window: int,
    min_obs: int,
    months: pd.Series | None = None,
) -> pd.DataFrame:
    """
    Run the rolling regression for a single entity.

    Args:
        group: Rows of one entity, sorted by date.
        y: Dependent variable column.
        x: Regressor columns.
        window: Maximum trailing window length.
        min_obs: Minimum number of valid observations per estimate.
        months: Month index of each row. When given, the window is measured
            in calendar months rather than rows.

    Returns:
        DataFrame aligned with `group.index` holding the estimates.
    """
    valid = group[[y, *x]].notna().all(axis=1)
    if int(valid.sum()) < min_obs:
        return _empty_estimates(group.index, x)

    data = group[[y, *x]].astype(float)
    if months is not None:
        keys = months.to_numpy()
        grid = np.arange(keys.min(), keys.max() + 1)
        data = data.set_axis(keys).reindex(grid)
    else:
        data = data.reset_index(drop=True)

    endog = data[y]
    exog = sm.add_constant(data[list(x)], has_constant="add")

    # Histories shorter than the window are estimated on an expanding basis
    effective_window = min(window, len(data))
    model = RollingOLS(
        endog,
        exog,
        window=effective_window,
        min_nobs=min_obs,
        missing="drop",
        expanding=True,
    )
    res = model.fit(params_only=False)

    params = pd.DataFrame(np.asarray(res.params), index=data.index, columns=exog.columns)
    nobs = np.asarray(res.nobs, dtype=float)
    ssr = np.asarray(res.ssr, dtype=float)
    dof = nobs - exog.shape[1]

    with np.errstate(divide="ignore", invalid="ignore"):
        resid_std = np.where(dof > 0, np.sqrt(ssr / dof), np.nan)

    out = params.rename(columns={CONST: "alpha"})
    out["resid_std"] = resid_std
    out["r2"] = np.asarray(res.rsquared, dtype=float)
    out["nobs"] = nobs

    # Back from the month grid to the entity's own rows
    if months is not None:
        out = out.loc[keys]
    out.index = group.index

    # Windows below min_obs carry no estimate; report their count as zero
    has_estimate = out["alpha"].notna().to_numpy()
    out["nobs"] = np.where(has_estimate, np.nan_to_num(out["nobs"]), 0).astype("int64")
    out.loc[~has_estimate, "resid_std"] = np.nan
    out.loc[~has_estimate, "r2"] = np.nan
    return out


def rolling_regression(
    panel: pd.DataFrame,
    y: str,
    x: Sequence[str],
    *,
    window: int,
    min_obs: int,
    frequency: Frequency | str = Frequency.MONTHLY,
    id_col: str = "permno",
    date_col: str = "date",
) -> pd.DataFrame:
    """
    Estimate trailing-window OLS regressions for every entity in a panel.

    Args:
        panel: Long panel with one row per entity-date.
        y: Dependent variable column.
        x: Regressor columns (a constant is always added).
        window: Maximum trailing window, in months for monthly panels and
            in observations for daily panels.
        min_obs: Minimum valid observations required for an estimate.
        frequency: Observation frequency of the panel.
        id_col: Entity identifier column.
        date_col: Date column.

    Returns:
        DataFrame with id_col, date_col, alpha, one column per regressor,
        resid_std, r2 and nobs, sorted by entity then date.

    Raises:
        ValueError: If columns are missing, window parameters are invalid
            or a monthly panel has more than one row per entity-month.
    """
    x = list(x)
    frequency = Frequency(frequency)
    validate_required_columns(panel, [id_col, date_col, y, *x])
    n_params = len(x) + 1
    if min_obs <= n_params:
        msg = f"min_obs ({min_obs}) must exceed the number of parameters ({n_params})"
        raise ValueError(msg)
    if min_obs > window:
        msg = f"min_obs ({min_obs}) must not exceed window ({window})"
        raise ValueError(msg)

    columns = [id_col, date_col, "alpha", *x, "resid_std", "r2", "nobs"]
    if panel.empty:
        return _empty_result(id_col, date_col, x)

    panel = sort_panel(panel[[id_col, date_col, y, *x]], id_col, date_col)

    months = None
    if frequency == Frequency.MONTHLY:
        months = month_index(panel[date_col])
        n_dupes = int(pd.concat([panel[id_col], months], axis=1).duplicated().sum())
        if n_dupes:
            msg = f"Monthly panel has {n_dupes} duplicate {id_col}-month rows"
            raise ValueError(msg)

    log.info(
        "Running rolling regressions",
        entities=int(panel[id_col].nunique()),
        rows=len(panel),
        y=y,
        x=x,
        window=window,
        min_obs=min_obs,
        frequency=frequency.value,
    )

    estimates: list[pd.DataFrame] = []
    n_skipped = 0
    for _, group in panel.groupby(id_col, sort=False):
        group_months = months.loc[group.index] if months is not None else None
        est = _fit_entity(group, y, x, window, min_obs, group_months)
        if int(est["nobs"].max()) == 0:
            n_skipped += 1
        estimates.append(est)

    result = pd.concat([panel[[id_col, date_col]], pd.concat(estimates)], axis=1)
    result["nobs"] = result["nobs"].astype("int64")

    log.info(
        "Rolling regressions complete",
        estimates=int(result["alpha"].notna().sum()),
        entities_without_estimates=n_skipped,
    )
    return result[columns]


def align_with_market(
    returns: pd.DataFrame,
    market: pd.DataFrame,
    market_column: str,
    *,
    excess: bool = False,
    date_col: str = "date",
) -> pd.DataFrame:
    """
    Attach market returns to a stock panel by date.

    Args:
        returns: Stock panel with 'permno', date and 'ret'.
        market: Market series with date, market_column and optionally 'rf'.
        market_column: Market return column to use.
        excess: Subtract 'rf' from both stock and market returns.
        date_col: Date column shared by both frames.

    Returns:
        Panel with 'ret' and 'mkt' columns ready for estimation.
    """
    validate_required_columns(market, [date_col, market_column])
    cols = [date_col, market_column]
    if excess:
        validate_required_columns(market, ["rf"])
        cols.append("rf")

    merged = returns[["permno", date_col, "ret"]].merge(
        market[cols].rename(columns={market_column: "mkt"}),
        on=date_col,
        how="left",
    )
    if excess:
        merged["ret"] = merged["ret"] - merged["rf"]
        merged["mkt"] = merged["mkt"] - merged["rf"]
        merged = merged.drop(columns="rf")

    n_unmatched = int(merged["mkt"].isna().sum())
    if n_unmatched:
        log.warning("Stock dates without market return", rows=n_unmatched)
    return merged


def rolling_beta(
    returns: pd.DataFrame,
    market: pd.DataFrame,
    *,
    window: int = 60,
    min_obs: int = 24,
    market_column: str = "vwretd",
    excess: bool = False,
    frequency: Frequency | str = Frequency.MONTHLY,
) -> pd.DataFrame:
    """
    Estimate rolling market-model betas for every stock.

    Each estimate is the slope of a bivariate OLS of the stock return on the
    market return over the trailing window, together with the intercept and
    the residual standard deviation (idiosyncratic volatility).

    Args:
        returns: Stock panel with 'permno', 'date' and 'ret'.
        market: Market returns with 'date' and market_column.
        window: Maximum trailing window length.
        min_obs: Minimum valid observations per estimate.
        market_column: Market return column in `market`.
        excess: Use returns in excess of the risk-free rate.
        frequency: Observation frequency; monthly windows span calendar months.

    Returns:
        DataFrame with permno, date, alpha, beta, resid_std, r2, nobs.
    """
    panel = align_with_market(returns, market, market_column, excess=excess)
    estimates = rolling_regression(
        panel, "ret", ["mkt"], window=window, min_obs=min_obs, frequency=frequency
    )
    return estimates.rename(columns={"mkt": "beta"})
