"""
Run every job whose inputs are configured.
"""

from collections.abc import Callable
from typing import Any

from finpanel.config.settings import PipelineConfig
from finpanel.pipelines.betas import run_rolling_betas
from finpanel.pipelines.forecasts import run_consensus
from finpanel.pipelines.liquidity import MEASURE_INPUTS, run_liquidity
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

JOBS: dict[str, Callable[..., Any]] = {
    "betas": run_rolling_betas,
    "forecasts": run_consensus,
    "liquidity": run_liquidity,
}


def available_jobs(config: PipelineConfig) -> list[str]:
    """
    Jobs whose required inputs are all configured.

    Args:
        config: Pipeline configuration.

    Returns:
        Job names in execution order.
    """
    paths = config.data_paths
    required: dict[str, tuple[str, ...]] = {
        "betas": ("market_returns",),
        "forecasts": ("analyst_forecasts",),
        "liquidity": MEASURE_INPUTS[config.liquidity.measure],
    }
    return [
        job
        for job, inputs in required.items()
        if all(paths.is_configured(attr) for attr in inputs)
    ]


def run_all(config: PipelineConfig, *, save: bool = True) -> dict[str, Any]:
    """
    Run all configured jobs in sequence.

    Args:
        config: Pipeline configuration.
        save: Write result tables for each job.

    Returns:
        Mapping of job name to its result object.
    """
    jobs = available_jobs(config)
    if not jobs:
        log.warning("No job has all of its inputs configured")
    log.info("Running jobs", jobs=jobs)
    return {job: JOBS[job](config, save=save) for job in jobs}
