"""
Configuration loading utilities.

Supports environment variable interpolation and config inheritance.
Minimal configs only need: project, sample.start, sample.end, data.stock_returns
"""

import os
import re
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from finpanel.config.settings import (
    AnalystConfig,
    DataPathsConfig,
    FactorModelConfig,
    LiquidityConfig,
    OutputConfig,
    PipelineConfig,
    RollingConfig,
    SampleConfig,
)

_OPTIONAL_DATA_KEYS = (
    "market_returns",
    "daily_stock",
    "analyst_forecasts",
    "analyst_link",
    "factors",
    "liquidity_factor",
)


def _interpolate_env_vars(value: str) -> str:
    """
    Interpolate environment variables in string values.

    Supports ${VAR} and ${VAR:default} syntax.
    """
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return re.sub(pattern, replacer, value)


def _process_config_values(obj: Any) -> Any:
    """Recursively process config values for env var interpolation."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _process_config_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_process_config_values(item) for item in obj]
    return obj


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _parse_date(value: Any) -> date:
    """Parse a date from string or return as-is if already a date."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    msg = f"Cannot parse date from {type(value)}: {value}"
    raise ValueError(msg)


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and process environment variables."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return _process_config_values(data) if data else {}


def build_config(merged: dict[str, Any]) -> PipelineConfig:
    """
    Build a validated PipelineConfig from a merged config dictionary.

    Args:
        merged: Raw configuration (already merged with base and interpolated).

    Returns:
        Fully validated PipelineConfig instance.
    """
    project = merged.get("project")
    if not project:
        msg = "Config must specify 'project' name"
        raise ValueError(msg)

    sample_data = merged.get("sample", {})
    if "start" not in sample_data or "end" not in sample_data:
        msg = "Config must specify 'sample.start' and 'sample.end'"
        raise ValueError(msg)
    sample = SampleConfig(
        start=_parse_date(sample_data["start"]),
        end=_parse_date(sample_data["end"]),
    )

    data_data = merged.get("data", {})
    stock_returns = data_data.get("stock_returns")
    if not stock_returns:
        msg = "Config must specify 'data.stock_returns'"
        raise ValueError(msg)

    optional_paths = {
        key: Path(data_data[key]) for key in _OPTIONAL_DATA_KEYS if data_data.get(key)
    }
    data_paths = DataPathsConfig(
        data_root=Path(data_data.get("root", "./data")),
        stock_returns=Path(stock_returns),
        factors_in_percent=data_data.get("factors_in_percent", True),
        **optional_paths,
    )

    # Job sections map one-to-one onto their models
    rolling = RollingConfig(**(merged.get("rolling") or {}))
    analysts = AnalystConfig(**(merged.get("analysts") or {}))
    liquidity = LiquidityConfig(**(merged.get("liquidity") or {}))
    factor_models = FactorModelConfig(**(merged.get("factor_models") or {}))

    output_data = merged.get("output") or {}
    output = OutputConfig(
        output_root=Path(output_data.get("root", "./output")),
        format=output_data.get("format", "csv"),
    )

    return PipelineConfig(
        project=project,
        sample=sample,
        data_paths=data_paths,
        rolling=rolling,
        analysts=analysts,
        liquidity=liquidity,
        factor_models=factor_models,
        output=output,
    )


def load_config(
    config_path: Path,
    base_path: Path | None = None,
) -> PipelineConfig:
    """
    Load pipeline configuration from YAML file(s).

    Minimal config requires only:
        - project: str
        - sample.start, sample.end: date strings
        - data.stock_returns: path

    Args:
        config_path: Path to the main configuration file.
        base_path: Optional path to base configuration for inheritance.

    Returns:
        Fully validated PipelineConfig instance.
    """
    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        potential_base = config_path.parent / "base.yaml"
        is_self = potential_base.resolve() == config_path.resolve()
        base_data = (
            load_yaml(potential_base)
            if potential_base.exists() and not is_self
            else {}
        )

    main_data = load_yaml(config_path)
    merged = _deep_merge(base_data, main_data)

    return build_config(merged)
