"""
Rolling market-beta job.

Loads stock and market returns, estimates rolling market-model regressions
per stock, and writes the estimates with a per-date summary.
"""

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from finpanel.config.settings import Frequency, PipelineConfig
from finpanel.estimation.rolling import rolling_beta
from finpanel.ingestion.returns import load_daily_stock, load_market_returns, load_stock_returns
from finpanel.normalization.temporal import filter_to_sample
from finpanel.reporting.export import save_table
from finpanel.reporting.summary import summarize_betas
from finpanel.schemas.registry import SchemaRegistry
from finpanel.utils.logging import get_logger, log_context

log = get_logger(__name__)

JOB_NAME = "betas"


@dataclass
class BetaResult:
    """
    Result of the rolling-beta job.

    Attributes:
        betas: Estimates per stock-date (permno, date, alpha, beta,
            resid_std, r2, nobs).
        summary: Cross-sectional beta distribution per date.
        n_stocks: Number of stocks in the input panel.
        n_estimates: Number of stock-dates with an estimate.
        output_dir: Directory the tables were written to (if saved).
    """

    betas: pd.DataFrame
    summary: pd.DataFrame
    n_stocks: int
    n_estimates: int
    output_dir: Path | None = None


class RollingBetaPipeline:
    """Rolling market-model regressions for every stock in the panel."""

    def __init__(self, config: PipelineConfig) -> None:
        """
        Initialize rolling-beta pipeline.

        Args:
            config: Pipeline configuration.
        """
        self.config = config

    def run(self, *, save: bool = True) -> BetaResult:
        """
        Run the rolling-beta job.

        Args:
            save: Write result tables to the job output directory.

        Returns:
            BetaResult with estimates and summary.
        """
        self.config.data_paths.require("market_returns", job=JOB_NAME)
        rolling = self.config.rolling

        with log_context(project=self.config.project, job=JOB_NAME):
            log.info(
                "Starting rolling-beta job",
                window=rolling.window,
                min_obs=rolling.min_obs,
                frequency=rolling.frequency.value,
            )

            returns = self._load_returns()
            market = load_market_returns(self.config, frequency=rolling.frequency)
            market = filter_to_sample(market, self.config.sample)

            betas = rolling_beta(
                returns,
                market,
                window=rolling.window,
                min_obs=rolling.min_obs,
                market_column=rolling.market_column,
                excess=rolling.excess_returns,
                frequency=rolling.frequency,
            )
            betas = SchemaRegistry.validate(betas, "rolling_betas")
            summary = summarize_betas(betas)

            result = BetaResult(
                betas=betas,
                summary=summary,
                n_stocks=int(returns["permno"].nunique()),
                n_estimates=int(betas["beta"].notna().sum()),
            )

            if save:
                result.output_dir = self._save(result)

            log.info(
                "Rolling-beta job complete",
                stocks=result.n_stocks,
                estimates=result.n_estimates,
            )
            return result

    def _load_returns(self) -> pd.DataFrame:
        """Load the stock panel matching the configured frequency."""
        if self.config.rolling.frequency == Frequency.DAILY:
            self.config.data_paths.require("daily_stock", job=JOB_NAME)
            returns = load_daily_stock(self.config)
        else:
            returns = load_stock_returns(self.config)
        return filter_to_sample(returns, self.config.sample)

    def _save(self, result: BetaResult) -> Path:
        """Write estimates and summary to the job directory."""
        output_dir = self.config.job_dir(JOB_NAME)
        fmt = self.config.output.format
        save_table(result.betas, output_dir / "rolling_betas", fmt)
        save_table(result.summary, output_dir / "beta_summary", fmt)
        return output_dir


def run_rolling_betas(config: PipelineConfig, *, save: bool = True) -> BetaResult:
    """
    Convenience function to run the rolling-beta job.

    Args:
        config: Pipeline configuration.
        save: Write result tables to the job output directory.

    Returns:
        BetaResult with estimates and summary.
    """
    return RollingBetaPipeline(config).run(save=save)
