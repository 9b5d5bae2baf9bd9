"""Basic package tests to verify installation."""


def test_package_imports() -> None:
    """Verify the main package can be imported."""
    import finpanel

    assert finpanel.__version__


def test_config_module_imports() -> None:
    """Verify config module structure is correct."""
    from finpanel.config import (
        AnalystConfig,
        DataPathsConfig,
        LiquidityConfig,
        PipelineConfig,
        RollingConfig,
        SampleConfig,
        load_config,
    )

    assert PipelineConfig is not None
    assert SampleConfig is not None
    assert DataPathsConfig is not None
    assert RollingConfig is not None
    assert AnalystConfig is not None
    assert LiquidityConfig is not None
    assert load_config is not None


def test_job_modules_import() -> None:
    """Verify the job entry points are exposed."""
    from finpanel.estimation import estimate_alphas, rolling_beta
    from finpanel.forecasts import build_consensus
    from finpanel.liquidity import assign_groups, liquidity_beta
    from finpanel.pipelines import run_all, run_consensus, run_liquidity, run_rolling_betas

    assert callable(rolling_beta)
    assert callable(estimate_alphas)
    assert callable(build_consensus)
    assert callable(assign_groups)
    assert callable(liquidity_beta)
    assert callable(run_all)
    assert callable(run_consensus)
    assert callable(run_liquidity)
    assert callable(run_rolling_betas)
