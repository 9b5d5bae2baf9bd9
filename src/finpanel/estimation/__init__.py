"""
Regression estimators: rolling-window OLS and time-series factor models.
"""

from finpanel.estimation.factor_models import (
    FactorModel,
    estimate_alphas,
    grs_by_model,
    grs_test,
    newey_west_lags,
)
from finpanel.estimation.rolling import rolling_beta, rolling_regression

__all__ = [
    "FactorModel",
    "estimate_alphas",
    "grs_by_model",
    "grs_test",
    "newey_west_lags",
    "rolling_beta",
    "rolling_regression",
]
