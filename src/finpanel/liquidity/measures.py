"""
Stock-level liquidity measures.

- Amihud (2002) illiquidity: average absolute return per dollar traded.
- Liquidity beta: loading of stock excess returns on innovations in
  aggregate liquidity (Pastor-Stambaugh style), controlling for the
  Fama-French factors.
"""

from collections.abc import Sequence

import numpy as np
import pandas as pd

from finpanel.estimation.rolling import rolling_regression
from finpanel.normalization.columns import validate_required_columns
from finpanel.normalization.temporal import to_month_end
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

# Scale so that the measure reads as price impact per million dollars
AMIHUD_SCALE = 1e6

LIQUIDITY_BETA_COLUMNS = ["permno", "date", "liq_beta", "resid_std", "nobs"]


def amihud_illiquidity(daily: pd.DataFrame, min_days: int = 15) -> pd.DataFrame:
    """
    Monthly Amihud illiquidity from a daily stock panel.

    Daily illiquidity is |ret| / (|prc| * vol). Days with zero volume or a
    missing return or price are ignored. The monthly value is the mean over
    valid days, scaled by 1e6, and is NaN when fewer than `min_days` valid
    days are available.

    Args:
        daily: Daily panel with permno, date, ret, prc, vol.
        min_days: Minimum valid trading days per stock-month.

    Returns:
        DataFrame with permno, date (month end), amihud, n_days.
    """
    validate_required_columns(daily, ["permno", "date", "ret", "prc", "vol"])

    dollar_volume = daily["prc"].abs() * daily["vol"]
    valid = daily["ret"].notna() & (dollar_volume > 0)
    days = daily.loc[valid, ["permno", "date"]].copy()
    days["illiq"] = daily.loc[valid, "ret"].abs() / dollar_volume[valid]
    days["date"] = to_month_end(days["date"])

    log.info(
        "Computing Amihud illiquidity",
        rows=len(daily),
        valid_days=len(days),
        min_days=min_days,
    )

    monthly = (
        days.groupby(["permno", "date"], sort=True)["illiq"]
        .agg(amihud="mean", n_days="count")
        .reset_index()
    )
    monthly["amihud"] = (monthly["amihud"] * AMIHUD_SCALE).where(
        monthly["n_days"] >= min_days, np.nan
    )
    monthly["n_days"] = monthly["n_days"].astype("int64")

    log.info(
        "Amihud illiquidity complete",
        stock_months=len(monthly),
        with_estimate=int(monthly["amihud"].notna().sum()),
    )
    return monthly


def liquidity_beta(
    returns: pd.DataFrame,
    factors: pd.DataFrame,
    liq: pd.DataFrame,
    *,
    window: int = 60,
    min_obs: int = 36,
    controls: Sequence[str] = ("mktrf", "smb", "hml"),
) -> pd.DataFrame:
    """
    Rolling liquidity betas for every stock.

    Regresses the stock excess return on the aggregate liquidity innovation
    and the control factors over a trailing window.

    Args:
        returns: Monthly stock panel with permno, date, ret.
        factors: Factor returns with date, rf and the control factors.
        liq: Aggregate liquidity series with date and liq.
        window: Maximum trailing window length in months.
        min_obs: Minimum valid months per estimate.
        controls: Factor columns used as controls.

    Returns:
        DataFrame with permno, date, liq_beta, resid_std, nobs.
    """
    controls = list(controls)
    validate_required_columns(returns, ["permno", "date", "ret"])
    validate_required_columns(factors, ["date", "rf", *controls])
    validate_required_columns(liq, ["date", "liq"])

    panel = returns[["permno", "date", "ret"]].merge(
        factors[["date", "rf", *controls]], on="date", how="left"
    )
    panel = panel.merge(liq[["date", "liq"]], on="date", how="left")
    panel["exret"] = panel["ret"] - panel["rf"]

    n_unmatched = int(panel["liq"].isna().sum())
    if n_unmatched:
        log.warning("Stock months without liquidity innovation", rows=n_unmatched)

    estimates = rolling_regression(
        panel, "exret", ["liq", *controls], window=window, min_obs=min_obs
    )
    return estimates.rename(columns={"liq": "liq_beta"})[LIQUIDITY_BETA_COLUMNS]
