"""
Configuration management with typed Pydantic models.

Provides explicit sample-period and estimation parameterization
with environment-aware configuration loading.
"""

from finpanel.config.loader import load_config
from finpanel.config.settings import (
    AnalystConfig,
    DataPathsConfig,
    FactorModelConfig,
    Frequency,
    LiquidityConfig,
    LiquidityMeasure,
    OutputConfig,
    PipelineConfig,
    RollingConfig,
    SampleConfig,
    Weighting,
)

__all__ = [
    "AnalystConfig",
    "DataPathsConfig",
    "FactorModelConfig",
    "Frequency",
    "LiquidityConfig",
    "LiquidityMeasure",
    "OutputConfig",
    "PipelineConfig",
    "RollingConfig",
    "SampleConfig",
    "Weighting",
    "load_config",
]
