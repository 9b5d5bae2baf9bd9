"""Tests for rolling-window regressions."""

import numpy as np
import pandas as pd
import pytest

from finpanel.estimation.rolling import align_with_market, rolling_beta, rolling_regression

from conftest import TRUE_ALPHA, TRUE_BETAS, month_ends


def _linear_panel(n: int = 30, a: float = 0.01, b: float = 1.2) -> pd.DataFrame:
    x = np.linspace(-0.05, 0.05, n) + np.sin(np.arange(n)) * 0.01
    return pd.DataFrame(
        {"permno": 1, "date": month_ends(n), "x": x, "y": a + b * x}
    )


class TestRollingRegression:
    """Tests for rolling_regression()."""

    def test_recovers_known_coefficients(self) -> None:
        """Noise-free data reproduce intercept and slope exactly."""
        result = rolling_regression(_linear_panel(), "y", ["x"], window=12, min_obs=6)

        estimated = result.dropna(subset=["x"])
        assert np.allclose(estimated["x"], 1.2, atol=1e-8)
        assert np.allclose(estimated["alpha"], 0.01, atol=1e-8)
        assert np.allclose(estimated["resid_std"], 0.0, atol=1e-8)

    def test_expanding_until_window_is_full(self) -> None:
        """Early rows use all history; later rows are capped at the window."""
        result = rolling_regression(_linear_panel(), "y", ["x"], window=12, min_obs=6)

        assert result["x"].iloc[:5].isna().all()
        assert result["nobs"].iloc[:5].eq(0).all()
        assert result["nobs"].iloc[5] == 6
        assert result["nobs"].iloc[8] == 9
        assert result["nobs"].iloc[20] == 12

    def test_window_includes_current_observation(self) -> None:
        """A break in the current row already changes the estimate."""
        panel = _linear_panel(n=20)
        panel.loc[19, "y"] = panel.loc[19, "y"] + 1.0

        result = rolling_regression(panel, "y", ["x"], window=12, min_obs=6)

        assert result["x"].iloc[18] == pytest.approx(1.2, abs=1e-8)
        assert result["x"].iloc[19] != pytest.approx(1.2, abs=1e-3)

    def test_missing_observations_are_dropped(self) -> None:
        """NaNs inside a window reduce nobs without breaking the estimate."""
        panel = _linear_panel()
        panel.loc[15, "y"] = np.nan

        result = rolling_regression(panel, "y", ["x"], window=12, min_obs=6)

        assert result["nobs"].iloc[20] == 11
        assert result["x"].iloc[20] == pytest.approx(1.2, abs=1e-8)
        assert result["nobs"].iloc[27] == 12

    def test_too_little_history_gives_nan(self) -> None:
        """An entity with fewer than min_obs observations has no estimates."""
        panel = _linear_panel(n=4)
        result = rolling_regression(panel, "y", ["x"], window=12, min_obs=6)

        assert result["alpha"].isna().all()
        assert (result["nobs"] == 0).all()

    def test_entities_are_estimated_separately(self) -> None:
        """Each entity gets its own slope."""
        first = _linear_panel(b=0.5)
        second = _linear_panel(b=2.0).assign(permno=2)
        panel = pd.concat([second, first], ignore_index=True)

        result = rolling_regression(panel, "y", ["x"], window=12, min_obs=6)
        last = result.groupby("permno")["x"].last()

        assert last[1] == pytest.approx(0.5, abs=1e-8)
        assert last[2] == pytest.approx(2.0, abs=1e-8)

    def test_output_sorted_by_entity_then_date(self) -> None:
        """Rows come back sorted by id then date."""
        panel = _linear_panel().sample(frac=1.0, random_state=0)
        result = rolling_regression(panel, "y", ["x"], window=12, min_obs=6)

        assert result["date"].is_monotonic_increasing

    def test_empty_panel(self) -> None:
        """Empty input returns a typed empty frame with all output columns."""
        empty = _linear_panel().iloc[0:0]
        result = rolling_regression(empty, "y", ["x"], window=12, min_obs=6)

        assert result.empty
        assert list(result.columns) == [
            "permno", "date", "alpha", "x", "resid_std", "r2", "nobs"
        ]
        assert result["permno"].dtype == "int64"
        assert pd.api.types.is_datetime64_any_dtype(result["date"])
        for col in ("alpha", "x", "resid_std", "r2"):
            assert result[col].dtype == "float64"
        assert result["nobs"].dtype == "int64"

    def test_window_spans_calendar_months(self) -> None:
        """A gap in the history does not pull older months into the window."""
        early = _linear_panel(n=12, b=2.0)
        late = _linear_panel(n=6, b=3.0).assign(date=month_ends(6, start="2010-01-31"))
        panel = pd.concat([early, late], ignore_index=True)

        result = rolling_regression(panel, "y", ["x"], window=12, min_obs=6)

        assert result["x"].iloc[11] == pytest.approx(2.0, abs=1e-8)
        # 2010-01 to 2010-05 see fewer than six months inside their window
        assert result["x"].iloc[12:17].isna().all()
        assert result["nobs"].iloc[12:17].eq(0).all()
        assert result["nobs"].iloc[17] == 6
        assert result["x"].iloc[17] == pytest.approx(3.0, abs=1e-8)

    def test_daily_window_counts_rows(self) -> None:
        """Daily panels keep trading-day windows across calendar gaps."""
        panel = _linear_panel(n=20)
        panel["date"] = pd.bdate_range("2001-01-01", periods=20)

        result = rolling_regression(
            panel, "y", ["x"], window=12, min_obs=6, frequency="daily"
        )

        assert result["nobs"].iloc[19] == 12
        assert result["x"].iloc[19] == pytest.approx(1.2, abs=1e-8)

    def test_duplicate_months_rejected(self) -> None:
        """Two rows for one stock-month are ambiguous for a monthly window."""
        panel = _linear_panel(n=10)
        panel.loc[1, "date"] = pd.Timestamp("2000-01-15")

        with pytest.raises(ValueError, match="duplicate permno-month"):
            rolling_regression(panel, "y", ["x"], window=12, min_obs=6)

    def test_min_obs_must_exceed_parameters(self) -> None:
        """min_obs not larger than the parameter count is rejected."""
        with pytest.raises(ValueError, match="must exceed the number of parameters"):
            rolling_regression(_linear_panel(), "y", ["x"], window=12, min_obs=2)

    def test_min_obs_above_window(self) -> None:
        """min_obs larger than the window is rejected."""
        with pytest.raises(ValueError, match="must not exceed window"):
            rolling_regression(_linear_panel(), "y", ["x"], window=12, min_obs=13)

    def test_missing_column(self) -> None:
        """A missing regressor raises a descriptive error."""
        with pytest.raises(ValueError, match="Missing required columns"):
            rolling_regression(_linear_panel(), "y", ["z"], window=12, min_obs=6)


class TestRollingBeta:
    """Tests for the market-model wrapper."""

    def test_recovers_stock_betas(
        self, stock_panel: pd.DataFrame, market_returns: pd.DataFrame
    ) -> None:
        """Every synthetic stock's beta and alpha are recovered."""
        result = rolling_beta(stock_panel, market_returns, window=36, min_obs=24)
        last = result.groupby("permno").last()

        for permno, beta in TRUE_BETAS.items():
            assert last.loc[permno, "beta"] == pytest.approx(beta, abs=1e-8)
            assert last.loc[permno, "alpha"] == pytest.approx(TRUE_ALPHA, abs=1e-8)

        assert list(result.columns) == [
            "permno", "date", "alpha", "beta", "resid_std", "r2", "nobs"
        ]

    def test_excess_returns(
        self, stock_panel: pd.DataFrame, market_returns: pd.DataFrame
    ) -> None:
        """With a constant rf the slope is unchanged and alpha absorbs rf*(beta-1)."""
        result = rolling_beta(
            stock_panel, market_returns, window=36, min_obs=24, excess=True
        )
        last = result.groupby("permno").last()

        # ret - rf = alpha + beta*mkt - rf = alpha + (beta - 1)*rf + beta*(mkt - rf)
        rf = 0.003
        for permno, beta in TRUE_BETAS.items():
            assert last.loc[permno, "beta"] == pytest.approx(beta, abs=1e-8)
            expected_alpha = TRUE_ALPHA + (beta - 1) * rf
            assert last.loc[permno, "alpha"] == pytest.approx(expected_alpha, abs=1e-8)

    def test_unmatched_dates_are_missing(
        self, stock_panel: pd.DataFrame, market_returns: pd.DataFrame
    ) -> None:
        """Stock dates without a market return carry a NaN market value."""
        merged = align_with_market(stock_panel, market_returns.iloc[:-1], "vwretd")
        last_date = market_returns["date"].iloc[-1]

        assert merged.loc[merged["date"] == last_date, "mkt"].isna().all()
