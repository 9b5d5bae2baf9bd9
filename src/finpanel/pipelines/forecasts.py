"""
Analyst consensus job.
"""

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from finpanel.config.settings import PipelineConfig
from finpanel.forecasts.consensus import build_consensus, link_to_permno
from finpanel.ingestion.analysts import load_analyst_forecasts, load_analyst_link
from finpanel.normalization.temporal import filter_to_sample
from finpanel.reporting.export import save_table
from finpanel.reporting.summary import summarize_consensus
from finpanel.schemas.registry import SchemaRegistry
from finpanel.utils.logging import get_logger, log_context

log = get_logger(__name__)

JOB_NAME = "forecasts"


@dataclass
class ConsensusResult:
    """
    Result of the analyst consensus job.

    Attributes:
        consensus: Monthly consensus per ticker (with permno if linked).
        summary: Monthly coverage statistics.
        n_forecasts: Number of forecast records used.
        linked: Whether a PERMNO link was applied.
        output_dir: Directory the tables were written to (if saved).
    """

    consensus: pd.DataFrame
    summary: pd.DataFrame
    n_forecasts: int
    linked: bool = False
    output_dir: Path | None = None


class ConsensusPipeline:
    """Builds monthly consensus statistics from analyst forecasts."""

    def __init__(self, config: PipelineConfig) -> None:
        """
        Initialize consensus pipeline.

        Args:
            config: Pipeline configuration.
        """
        self.config = config

    def run(self, *, save: bool = True) -> ConsensusResult:
        """
        Run the consensus job.

        Forecasts announced before the sample start remain eligible, so the
        first sample months see the analysts already active. The consensus
        itself is restricted to the sample.

        Args:
            save: Write result tables to the job output directory.

        Returns:
            ConsensusResult with consensus and summary.
        """
        self.config.data_paths.require("analyst_forecasts", job=JOB_NAME)
        analysts = self.config.analysts

        with log_context(project=self.config.project, job=JOB_NAME):
            log.info(
                "Starting consensus job",
                stale_months=analysts.stale_months,
                horizon=analysts.horizon,
                min_analysts=analysts.min_analysts,
            )

            forecasts = load_analyst_forecasts(self.config)
            sample_end = pd.Timestamp(self.config.sample.end)
            forecasts = forecasts[forecasts["anndats"] <= sample_end]

            consensus = build_consensus(
                forecasts,
                stale_months=analysts.stale_months,
                horizon=analysts.horizon,
                min_analysts=analysts.min_analysts,
                fpi=analysts.fpi,
            )
            consensus = filter_to_sample(consensus, self.config.sample, date_column="statpers")

            linked = self.config.data_paths.is_configured("analyst_link")
            if linked:
                consensus = link_to_permno(consensus, load_analyst_link(self.config))

            consensus = SchemaRegistry.validate(consensus, "consensus")

            result = ConsensusResult(
                consensus=consensus,
                summary=summarize_consensus(consensus),
                n_forecasts=len(forecasts),
                linked=linked,
            )
            if save:
                result.output_dir = self._save(result)

            log.info("Consensus job complete", rows=len(consensus), linked=linked)
            return result

    def _save(self, result: ConsensusResult) -> Path:
        """Write consensus and summary to the job directory."""
        output_dir = self.config.job_dir(JOB_NAME)
        fmt = self.config.output.format
        save_table(result.consensus, output_dir / "consensus", fmt)
        save_table(result.summary, output_dir / "consensus_summary", fmt)
        return output_dir


def run_consensus(config: PipelineConfig, *, save: bool = True) -> ConsensusResult:
    """Convenience function to run the consensus job."""
    return ConsensusPipeline(config).run(save=save)
