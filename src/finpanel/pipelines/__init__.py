"""
Batch jobs: each loads its inputs, estimates, and writes result tables to
{output_root}/{project}/{job}/.
"""

from finpanel.pipelines.betas import BetaResult, RollingBetaPipeline, run_rolling_betas
from finpanel.pipelines.forecasts import ConsensusPipeline, ConsensusResult, run_consensus
from finpanel.pipelines.liquidity import LiquidityPipeline, LiquidityResult, run_liquidity
from finpanel.pipelines.runner import available_jobs, run_all

__all__ = [
    "BetaResult",
    "ConsensusPipeline",
    "ConsensusResult",
    "LiquidityPipeline",
    "LiquidityResult",
    "RollingBetaPipeline",
    "available_jobs",
    "run_all",
    "run_consensus",
    "run_liquidity",
    "run_rolling_betas",
]
