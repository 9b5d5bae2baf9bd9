"""
Liquidity portfolio job.

Computes a stock-level liquidity measure, sorts stocks into groups, builds
group portfolio returns, and tests them against factor models.
"""

from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from finpanel.config.settings import LiquidityMeasure, PipelineConfig, Weighting
from finpanel.estimation.factor_models import FactorModel, estimate_alphas, grs_by_model
from finpanel.ingestion.factors import load_factors, load_liquidity_factor
from finpanel.ingestion.returns import load_daily_stock, load_stock_returns
from finpanel.liquidity.measures import amihud_illiquidity, liquidity_beta
from finpanel.liquidity.portfolios import (
    assign_groups,
    form_portfolios,
    portfolio_returns,
    to_wide,
)
from finpanel.normalization.panel import add_market_equity, apply_universe_filters, lag_by_month
from finpanel.normalization.temporal import filter_to_sample
from finpanel.reporting.export import save_table
from finpanel.reporting.summary import summarize_portfolios
from finpanel.schemas.registry import SchemaRegistry
from finpanel.utils.logging import get_logger, log_context

log = get_logger(__name__)

JOB_NAME = "liquidity"

# Sorting column produced by each measure
SIGNAL_COLUMNS: dict[LiquidityMeasure, str] = {
    LiquidityMeasure.LIQUIDITY_BETA: "liq_beta",
    LiquidityMeasure.AMIHUD: "amihud",
}

# Inputs needed by each measure on top of the monthly stock panel
MEASURE_INPUTS: dict[LiquidityMeasure, tuple[str, ...]] = {
    LiquidityMeasure.LIQUIDITY_BETA: ("factors", "liquidity_factor"),
    LiquidityMeasure.AMIHUD: ("daily_stock",),
}


@dataclass
class LiquidityResult:
    """
    Result of the liquidity portfolio job.

    Attributes:
        signal: Stock-level liquidity measure per month.
        portfolio_returns: Long table (date, group, ret, n_stocks).
        wide: Date-indexed table with P1..Pn and spread.
        alphas: Factor-model alphas (empty without factor data).
        grs: GRS test per factor model (empty without factor data).
        summary: Mean, volatility and Sharpe ratio per portfolio.
        output_dir: Directory the tables were written to (if saved).
    """

    signal: pd.DataFrame
    portfolio_returns: pd.DataFrame
    wide: pd.DataFrame
    alphas: pd.DataFrame = field(default_factory=pd.DataFrame)
    grs: pd.DataFrame = field(default_factory=pd.DataFrame)
    summary: pd.DataFrame = field(default_factory=pd.DataFrame)
    output_dir: Path | None = None


class LiquidityPipeline:
    """Liquidity-sorted portfolios and their factor-model alphas."""

    def __init__(self, config: PipelineConfig) -> None:
        """
        Initialize liquidity pipeline.

        Args:
            config: Pipeline configuration.
        """
        self.config = config
        self.settings = config.liquidity

    def run(self, *, save: bool = True) -> LiquidityResult:
        """
        Run the liquidity portfolio job.

        Args:
            save: Write result tables to the job output directory.

        Returns:
            LiquidityResult with signal, portfolio returns and alphas.
        """
        measure = self.settings.measure
        self.config.data_paths.require(*MEASURE_INPUTS[measure], job=JOB_NAME)

        with log_context(project=self.config.project, job=JOB_NAME, measure=measure.value):
            log.info(
                "Starting liquidity job",
                n_groups=self.settings.n_groups,
                weighting=self.settings.weighting.value,
                rebalance_month=self.settings.rebalance_month,
            )

            panel = self._load_panel()
            universe = self._investable(panel)
            factors = self._load_factors()
            signal = self._compute_signal(panel, universe, factors)
            value_col = SIGNAL_COLUMNS[measure]

            assignments = assign_groups(
                signal,
                self.settings.n_groups,
                value_col=value_col,
                breakpoint_mask=self._breakpoint_mask(signal),
                min_stocks=self.settings.effective_min_stocks,
            )
            # Holding-period returns come from the unfiltered panel
            held = form_portfolios(
                panel,
                assignments,
                formation_lag=self.settings.formation_lag,
                rebalance_month=self.settings.rebalance_month,
            )
            returns = portfolio_returns(held, self.settings.weighting)
            returns = SchemaRegistry.validate(returns, "portfolio_returns")
            wide = to_wide(returns, self.settings.n_groups)

            result = LiquidityResult(
                signal=signal,
                portfolio_returns=returns,
                wide=wide,
                summary=summarize_portfolios(wide, rf=self._risk_free(factors)),
            )

            if factors is not None and not wide.empty:
                models = self._available_models(factors)
                if models:
                    alphas = estimate_alphas(
                        wide, factors, models, hac_lags=self.config.factor_models.hac_lags
                    )
                    result.alphas = SchemaRegistry.validate(alphas, "alphas")
                    result.grs = grs_by_model(wide, factors, models)
            else:
                log.warning("Skipping alpha estimation", reason="no factor returns or portfolios")

            if save:
                result.output_dir = self._save(result)

            log.info(
                "Liquidity job complete",
                periods=len(wide),
                alphas=len(result.alphas),
            )
            return result

    def _load_panel(self) -> pd.DataFrame:
        """Load the monthly panel over the sample and add lagged market equity."""
        stocks = load_stock_returns(self.config)
        stocks = filter_to_sample(stocks, self.config.sample)
        if {"prc", "shrout"}.issubset(stocks.columns):
            stocks = add_market_equity(stocks)
            stocks = lag_by_month(stocks, "me", name="me_lag")
        elif self.settings.weighting == Weighting.VALUE:
            msg = "Value weighting requires 'prc' and 'shrout' in the stock returns file"
            raise ValueError(msg)
        return stocks

    def _investable(self, panel: pd.DataFrame) -> pd.DataFrame:
        """Stock-months eligible for sorting at formation."""
        return apply_universe_filters(
            panel,
            share_codes=self.settings.share_codes,
            exchange_codes=self.settings.exchange_codes,
            min_price=self.settings.min_price,
        )

    def _load_factors(self) -> pd.DataFrame | None:
        """Load monthly factor returns if configured."""
        if not self.config.data_paths.is_configured("factors"):
            return None
        factors = load_factors(self.config, monthly=True)
        return filter_to_sample(factors, self.config.sample)

    def _compute_signal(
        self,
        stocks: pd.DataFrame,
        universe: pd.DataFrame,
        factors: pd.DataFrame | None,
    ) -> pd.DataFrame:
        """
        Compute the configured liquidity measure for each formation month.

        Estimation uses each stock's full return history; only the
        stock-months in `universe` are kept as sorting candidates.
        """
        if self.settings.measure == LiquidityMeasure.AMIHUD:
            daily = filter_to_sample(load_daily_stock(self.config), self.config.sample)
            signal = amihud_illiquidity(daily, min_days=self.settings.amihud_min_days)
        else:
            liq = filter_to_sample(load_liquidity_factor(self.config), self.config.sample)
            signal = liquidity_beta(
                stocks,
                factors,
                liq,
                window=self.settings.window,
                min_obs=self.settings.min_obs,
                controls=self.settings.controls,
            )

        # Sort only stocks in the investable universe that month
        keys = [c for c in ("permno", "date", "exchcd") if c in universe.columns]
        return signal.merge(universe[keys], on=["permno", "date"], how="inner")

    @staticmethod
    def _risk_free(factors: pd.DataFrame | None) -> pd.Series | None:
        """Date-indexed risk-free rate, if the factor file carries one."""
        if factors is None or "rf" not in factors.columns:
            return None
        return factors.set_index("date")["rf"]

    def _breakpoint_mask(self, signal: pd.DataFrame) -> pd.Series | None:
        """Select the stocks used for breakpoints, if restricted."""
        exchanges = self.settings.breakpoint_exchanges
        if exchanges is None:
            return None
        if "exchcd" not in signal.columns:
            log.warning("No 'exchcd' column, using all stocks for breakpoints")
            return None
        return signal["exchcd"].isin(exchanges)

    def _available_models(self, factors: pd.DataFrame) -> list[FactorModel]:
        """Factor models whose factors are all present in the factor file."""
        models = FactorModel.from_mapping(self.config.factor_models.models)
        available = [m for m in models if set(m.factors).issubset(factors.columns)]
        skipped = [m.name for m in models if m not in available]
        if skipped:
            log.warning("Skipping factor models with missing factors", models=skipped)
        return available

    def _save(self, result: LiquidityResult) -> Path:
        """Write all result tables to the job directory."""
        output_dir = self.config.job_dir(JOB_NAME)
        fmt = self.config.output.format
        save_table(result.signal, output_dir / "liquidity_measure", fmt)
        save_table(result.portfolio_returns, output_dir / "portfolio_returns", fmt)
        save_table(result.wide, output_dir / "portfolio_returns_wide", fmt, index=True)
        save_table(result.summary, output_dir / "portfolio_summary", fmt)
        if not result.alphas.empty:
            save_table(result.alphas, output_dir / "alphas", fmt)
            save_table(result.grs, output_dir / "grs", fmt)
        return output_dir


def run_liquidity(config: PipelineConfig, *, save: bool = True) -> LiquidityResult:
    """
    Convenience function to run the liquidity portfolio job.

    Args:
        config: Pipeline configuration.
        save: Write result tables to the job output directory.

    Returns:
        LiquidityResult with signal, portfolio returns and alphas.
    """
    return LiquidityPipeline(config).run(save=save)
