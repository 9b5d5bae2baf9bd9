"""
Time-series factor models and alpha estimation.

Portfolio excess returns are regressed on factor returns with OLS; the
intercept is the alpha. Standard errors are Newey-West (HAC). The GRS test
checks whether the alphas of a set of portfolios are jointly zero.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats

from finpanel.normalization.columns import validate_required_columns
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

# Intercept-only model: average (excess) return and its t-statistic
MEAN_MODEL = "mean"

# Zero-cost long-short portfolios are not adjusted by the risk-free rate
ZERO_COST_PORTFOLIOS = frozenset({"spread"})

ALPHA_COLUMNS = ["portfolio", "model", "alpha", "alpha_t", "alpha_p", "r2", "nobs"]


@dataclass(frozen=True)
class FactorModel:
    """
    A named set of factors for time-series regressions.

    Attributes:
        name: Model identifier (e.g. 'ff3').
        factors: Factor column names, without the constant.
    """

    name: str
    factors: tuple[str, ...]

    @classmethod
    def from_mapping(cls, models: Mapping[str, Sequence[str]]) -> list["FactorModel"]:
        """Build models from a name -> factor list mapping."""
        return [cls(name=name, factors=tuple(factors)) for name, factors in models.items()]


@dataclass(frozen=True)
class GRSResult:
    """
    Gibbons-Ross-Shanken test result.

    Attributes:
        model: Factor model name.
        statistic: F statistic.
        p_value: p-value under F(N, T - N - L).
        n_portfolios: Number of test portfolios (N).
        n_periods: Number of periods (T).
    """

    model: str
    statistic: float
    p_value: float
    n_portfolios: int
    n_periods: int

    def to_dict(self) -> dict[str, float | int | str]:
        """Convert to dictionary."""
        return {
            "model": self.model,
            "grs": self.statistic,
            "p_value": self.p_value,
            "n_portfolios": self.n_portfolios,
            "n_periods": self.n_periods,
        }


def newey_west_lags(n_periods: int) -> int:
    """
    Automatic Newey-West lag length: floor(4 * (T / 100) ** (2 / 9)).

    Args:
        n_periods: Number of time-series observations.

    Returns:
        Non-negative lag count.
    """
    if n_periods <= 0:
        return 0
    return int(np.floor(4 * (n_periods / 100) ** (2 / 9)))


def grs_test(
    factors: np.ndarray,
    residuals: np.ndarray,
    alphas: np.ndarray,
) -> tuple[float, float]:
    """
    Gibbons-Ross-Shanken (1989) test of jointly zero alphas.

    Args:
        factors: T x L matrix of factor returns.
        residuals: T x N matrix of regression residuals.
        alphas: N vector of intercepts.

    Returns:
        Tuple of (F statistic, p-value).

    Raises:
        ValueError: If there are too few periods for the test.
    """
    factors = np.asarray(factors, dtype=float)
    residuals = np.asarray(residuals, dtype=float)
    alphas = np.asarray(alphas, dtype=float).reshape(-1, 1)
    if factors.ndim == 1:
        factors = factors.reshape(-1, 1)

    n_periods, n_assets = residuals.shape
    n_factors = factors.shape[1]
    if n_periods - n_assets - n_factors <= 0:
        msg = (
            f"GRS test needs T > N + L (T={n_periods}, N={n_assets}, L={n_factors})"
        )
        raise ValueError(msg)

    # Residual covariance with T - L - 1 degrees of freedom
    cov_resid = residuals.T @ residuals / (n_periods - n_factors - 1)

    factor_mean = factors.mean(axis=0).reshape(-1, 1)
    demeaned = factors - factor_mean.T
    cov_factor = demeaned.T @ demeaned / (n_periods - 1)

    quad_alpha = float(alphas.T @ np.linalg.inv(cov_resid) @ alphas)
    quad_factor = float(factor_mean.T @ np.linalg.inv(cov_factor) @ factor_mean)

    statistic = (
        (n_periods / n_assets)
        * ((n_periods - n_assets - n_factors) / (n_periods - n_factors - 1))
        * quad_alpha
        / (1 + quad_factor)
    )
    p_value = float(stats.f.sf(statistic, n_assets, n_periods - n_assets - n_factors))
    return float(statistic), p_value


def _with_constant(regressors: pd.DataFrame) -> pd.DataFrame:
    """Prepend a constant column named 'const'."""
    exog = regressors.copy()
    exog.insert(0, "const", 1.0)
    return exog


def _excess_returns(
    portfolios: pd.DataFrame, factors: pd.DataFrame
) -> pd.DataFrame:
    """Subtract rf from every non zero-cost portfolio column."""
    excess = portfolios.copy()
    rf = factors["rf"].reindex(excess.index)
    for col in excess.columns:
        if str(col) not in ZERO_COST_PORTFOLIOS:
            excess[col] = excess[col] - rf
    return excess


def _fit_one(
    y: pd.Series,
    factor_data: pd.DataFrame,
    factors: Sequence[str],
    hac_lags: int | None,
) -> sm.regression.linear_model.RegressionResultsWrapper | None:
    """Fit a single HAC time-series regression, or None without data."""
    data = pd.concat([y.rename("y"), factor_data[list(factors)]], axis=1).dropna()
    n_params = len(factors) + 1
    if len(data) <= n_params:
        return None

    exog = _with_constant(data[list(factors)])
    lags = hac_lags if hac_lags is not None else newey_west_lags(len(data))
    return sm.OLS(data["y"], exog).fit(cov_type="HAC", cov_kwds={"maxlags": lags})


def estimate_alphas(
    portfolios: pd.DataFrame,
    factors: pd.DataFrame,
    models: Sequence[FactorModel],
    *,
    hac_lags: int | None = None,
    include_mean: bool = True,
) -> pd.DataFrame:
    """
    Estimate factor-model alphas for every portfolio and model.

    Args:
        portfolios: Wide table indexed by date, one column per portfolio
            (raw returns; a 'spread' column is treated as zero-cost).
        factors: Factor returns with a 'date' column or DatetimeIndex,
            including 'rf'.
        models: Factor models to estimate.
        hac_lags: Newey-West lags (None = automatic rule per regression).
        include_mean: Also report the intercept-only 'mean' model.

    Returns:
        Long table with portfolio, model, alpha, alpha_t, alpha_p, r2, nobs
        and one beta_<factor> column per factor used by any model.
    """
    if "date" in factors.columns:
        factors = factors.set_index("date")
    required = sorted({f for m in models for f in m.factors} | {"rf"})
    validate_required_columns(factors, required)

    excess = _excess_returns(portfolios, factors)
    factor_data = factors.reindex(excess.index)

    all_models = list(models)
    if include_mean:
        all_models.insert(0, FactorModel(name=MEAN_MODEL, factors=()))

    rows: list[dict[str, object]] = []
    for model in all_models:
        for col in excess.columns:
            res = _fit_one(excess[col], factor_data, model.factors, hac_lags)
            row: dict[str, object] = {"portfolio": str(col), "model": model.name}
            if res is None:
                log.warning(
                    "Too few observations for regression",
                    portfolio=str(col),
                    model=model.name,
                )
                row.update(alpha=np.nan, alpha_t=np.nan, alpha_p=np.nan, r2=np.nan, nobs=0)
            else:
                row.update(
                    alpha=float(res.params["const"]),
                    alpha_t=float(res.tvalues["const"]),
                    alpha_p=float(res.pvalues["const"]),
                    r2=float(res.rsquared) if model.factors else np.nan,
                    nobs=int(res.nobs),
                )
                row.update({f"beta_{f}": float(res.params[f]) for f in model.factors})
            rows.append(row)

    result = pd.DataFrame(rows, columns=None if rows else ALPHA_COLUMNS)
    log.info(
        "Estimated factor-model alphas",
        portfolios=len(excess.columns),
        models=[m.name for m in all_models],
    )
    return result


def grs_by_model(
    portfolios: pd.DataFrame,
    factors: pd.DataFrame,
    models: Sequence[FactorModel],
) -> pd.DataFrame:
    """
    Run the GRS test for each model across the test portfolios.

    Zero-cost portfolios (e.g. 'spread') are excluded because they are
    linear combinations of the others.

    Args:
        portfolios: Wide table of raw portfolio returns indexed by date.
        factors: Factor returns including 'rf' (date column or index).
        models: Factor models to test.

    Returns:
        One row per model with the GRS statistic and p-value. Models that
        cannot be tested (T <= N + L) are reported with NaN.
    """
    if "date" in factors.columns:
        factors = factors.set_index("date")

    test_cols = [c for c in portfolios.columns if str(c) not in ZERO_COST_PORTFOLIOS]
    excess = _excess_returns(portfolios[test_cols], factors)

    rows: list[dict[str, float | int | str]] = []
    for model in models:
        factor_cols = list(model.factors)
        data = pd.concat([excess, factors[factor_cols].reindex(excess.index)], axis=1).dropna()
        n_periods = len(data)

        try:
            exog = _with_constant(data[factor_cols]).to_numpy()
            coefs, *_ = np.linalg.lstsq(exog, data[test_cols].to_numpy(), rcond=None)
            residuals = data[test_cols].to_numpy() - exog @ coefs
            statistic, p_value = grs_test(data[factor_cols].to_numpy(), residuals, coefs[0])
        except (ValueError, np.linalg.LinAlgError) as e:
            log.warning("GRS test not computable", model=model.name, error=str(e))
            statistic, p_value = np.nan, np.nan

        rows.append(
            GRSResult(
                model=model.name,
                statistic=statistic,
                p_value=p_value,
                n_portfolios=len(test_cols),
                n_periods=n_periods,
            ).to_dict()
        )

    return pd.DataFrame(rows)
