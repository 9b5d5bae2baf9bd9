"""Tests for configuration system."""

import os
from collections.abc import Callable
from datetime import date
from pathlib import Path

import pytest

from finpanel.config import (
    DataPathsConfig,
    LiquidityConfig,
    PipelineConfig,
    RollingConfig,
    SampleConfig,
    load_config,
)
from finpanel.config.settings import FactorModelConfig, OutputFormat, Weighting


class TestSampleConfig:
    """Tests for SampleConfig."""

    def test_valid_config(self) -> None:
        config = SampleConfig(start=date(1990, 1, 1), end=date(1990, 12, 31))
        assert config.n_months == 12

    def test_end_before_start(self) -> None:
        with pytest.raises(ValueError, match="sample end must be after sample start"):
            SampleConfig(start=date(2000, 1, 1), end=date(1999, 1, 1))


class TestDataPathsConfig:
    """Tests for DataPathsConfig."""

    def test_resolve(self) -> None:
        paths = DataPathsConfig(data_root=Path("/data"), stock_returns=Path("msf.csv"))
        assert paths.resolve("stock_returns") == Path("/data/msf.csv")

    def test_resolve_unconfigured(self) -> None:
        paths = DataPathsConfig(stock_returns=Path("msf.csv"))
        with pytest.raises(ValueError, match="'factors' is not configured"):
            paths.resolve("factors")

    def test_require(self) -> None:
        paths = DataPathsConfig(stock_returns=Path("msf.csv"), factors=Path("ff.csv"))
        paths.require("factors", job="liquidity")

        with pytest.raises(ValueError, match="Job 'liquidity' requires: liquidity_factor"):
            paths.require("factors", "liquidity_factor", job="liquidity")


class TestEstimationConfigs:
    """Tests for window settings."""

    def test_rolling_defaults(self) -> None:
        config = RollingConfig()
        assert config.window == 60
        assert config.min_obs == 24
        assert config.market_column == "vwretd"

    def test_min_obs_above_window(self) -> None:
        with pytest.raises(ValueError, match="must not exceed window"):
            RollingConfig(window=12, min_obs=24)

    def test_liquidity_holding_period(self) -> None:
        assert LiquidityConfig().holding_months == 1
        assert LiquidityConfig(rebalance_month=12).holding_months == 12

    def test_liquidity_min_stocks_default(self) -> None:
        assert LiquidityConfig(n_groups=5).effective_min_stocks == 5
        assert LiquidityConfig(n_groups=5, min_stocks=50).effective_min_stocks == 50

    def test_invalid_rebalance_month(self) -> None:
        with pytest.raises(ValueError):
            LiquidityConfig(rebalance_month=13)

    def test_factor_models(self) -> None:
        config = FactorModelConfig()
        assert set(config.models) == {"capm", "ff3", "carhart4"}
        assert config.required_factors == ["mktrf", "smb", "hml", "umd"]

    def test_empty_factor_model(self) -> None:
        with pytest.raises(ValueError, match="without factors"):
            FactorModelConfig(models={"bad": []})


class TestBuildConfig:
    """Tests for building configs from dictionaries."""

    def test_defaults(self, make_config: Callable[..., PipelineConfig]) -> None:
        config = make_config()

        assert config.project == "test-project"
        assert config.liquidity.weighting == Weighting.VALUE
        assert config.output.format == OutputFormat.CSV
        assert config.job_dir("betas") == config.output.output_root / "test-project" / "betas"

    def test_overrides(self, make_config: Callable[..., PipelineConfig]) -> None:
        config = make_config(
            liquidity={"n_groups": 5, "weighting": "equal"},
            output={"format": "parquet"},
        )

        assert config.liquidity.n_groups == 5
        assert config.liquidity.weighting == Weighting.EQUAL
        assert config.output.format == OutputFormat.PARQUET


class TestConfigLoader:
    """Tests for YAML loading."""

    def test_minimal_config(self, tmp_path: Path) -> None:
        config_file = tmp_path / "project.yaml"
        config_file.write_text(
            """
project: minimal
sample:
  start: "1990-01-01"
  end: "1995-12-31"
data:
  stock_returns: msf.csv
"""
        )

        config = load_config(config_file)

        assert config.project == "minimal"
        assert config.sample.start == date(1990, 1, 1)
        assert config.data_paths.stock_returns == Path("msf.csv")
        assert config.data_paths.factors is None

    def test_base_inheritance(self, tmp_path: Path) -> None:
        (tmp_path / "base.yaml").write_text(
            """
rolling:
  window: 36
  min_obs: 12
liquidity:
  n_groups: 5
"""
        )
        config_file = tmp_path / "project.yaml"
        config_file.write_text(
            """
project: inherited
sample: {start: "1990-01-01", end: "1995-12-31"}
data: {stock_returns: msf.csv}
liquidity:
  weighting: equal
"""
        )

        config = load_config(config_file)

        assert config.rolling.window == 36
        assert config.liquidity.n_groups == 5
        assert config.liquidity.weighting == Weighting.EQUAL

    def test_env_interpolation(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FINPANEL_TEST_ROOT", "/mnt/wrds")
        config_file = tmp_path / "project.yaml"
        config_file.write_text(
            """
project: env
sample: {start: "1990-01-01", end: "1995-12-31"}
data:
  root: ${FINPANEL_TEST_ROOT}
  stock_returns: msf.csv
output:
  root: ${FINPANEL_UNSET_VARIABLE:./results}
"""
        )

        config = load_config(config_file)

        assert config.data_paths.data_root == Path("/mnt/wrds")
        assert config.output.output_root == Path("./results")
        assert "FINPANEL_UNSET_VARIABLE" not in os.environ

    def test_missing_project(self, tmp_path: Path) -> None:
        config_file = tmp_path / "project.yaml"
        config_file.write_text('sample: {start: "1990-01-01", end: "1995-12-31"}\n')

        with pytest.raises(ValueError, match="'project'"):
            load_config(config_file)

    def test_missing_stock_returns(self, tmp_path: Path) -> None:
        config_file = tmp_path / "project.yaml"
        config_file.write_text(
            'project: x\nsample: {start: "1990-01-01", end: "1995-12-31"}\n'
        )

        with pytest.raises(ValueError, match="data.stock_returns"):
            load_config(config_file)

    def test_shipped_configs_load(self, project_root: Path) -> None:
        """The example project config in configs/ is valid."""
        config = load_config(project_root / "configs" / "liquidity-1968-2020.yaml")

        assert config.liquidity.rebalance_month == 12
        assert config.liquidity.breakpoint_exchanges == [1]
        assert config.rolling.window == 60
