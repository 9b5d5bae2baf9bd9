"""
Summary tables for job outputs.
"""

import numpy as np
import pandas as pd

from finpanel.estimation.factor_models import ZERO_COST_PORTFOLIOS

MONTHS_PER_YEAR = 12


def summarize_betas(betas: pd.DataFrame, column: str = "beta") -> pd.DataFrame:
    """
    Cross-sectional distribution of estimated betas per date.

    Args:
        betas: Output of rolling_beta() or liquidity_beta().
        column: Coefficient column to summarize.

    Returns:
        DataFrame with date, mean, median, std, count.
    """
    estimated = betas.dropna(subset=[column])
    return (
        estimated.groupby("date", sort=True)[column]
        .agg(mean="mean", median="median", std="std", count="count")
        .reset_index()
    )


def summarize_consensus(consensus: pd.DataFrame) -> pd.DataFrame:
    """
    Monthly coverage of the analyst consensus.

    Returns:
        DataFrame with statpers, n_firms, mean_numest, median_dispersion.
    """
    return (
        consensus.groupby("statpers", sort=True)
        .agg(
            n_firms=("ticker", "nunique"),
            mean_numest=("numest", "mean"),
            median_dispersion=("dispersion", "median"),
        )
        .reset_index()
    )


def summarize_portfolios(
    wide: pd.DataFrame,
    periods_per_year: int = MONTHS_PER_YEAR,
    rf: pd.Series | None = None,
) -> pd.DataFrame:
    """
    Mean, volatility and annualised Sharpe ratio per portfolio column.

    Mean and volatility describe the raw returns. The Sharpe ratio uses
    returns in excess of `rf` (aligned on the date index), except for
    zero-cost portfolios such as the spread, which are already excess
    returns. Without `rf` the Sharpe ratio is computed on raw returns.

    Args:
        wide: Date-indexed table with one column per portfolio.
        periods_per_year: Observations per year used for annualisation.
        rf: Date-indexed risk-free rate.

    Returns:
        DataFrame with portfolio, mean, std, sharpe, n_periods.
    """
    rf_aligned = rf.reindex(wide.index) if rf is not None else None

    rows = []
    for col in wide.columns:
        series = wide[col].dropna()
        mean = float(series.mean()) if len(series) else np.nan
        std = float(series.std()) if len(series) > 1 else np.nan

        excess = wide[col]
        if rf_aligned is not None and str(col) not in ZERO_COST_PORTFOLIOS:
            excess = excess - rf_aligned
        excess = excess.dropna()
        excess_std = float(excess.std()) if len(excess) > 1 else np.nan
        sharpe = (
            float(excess.mean()) / excess_std * np.sqrt(periods_per_year)
            if excess_std and excess_std > 0
            else np.nan
        )
        rows.append(
            {
                "portfolio": str(col),
                "mean": mean,
                "std": std,
                "sharpe": sharpe,
                "n_periods": len(series),
            }
        )
    return pd.DataFrame(rows, columns=["portfolio", "mean", "std", "sharpe", "n_periods"])
