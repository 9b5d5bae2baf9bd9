"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import pytest

from finpanel.config.loader import build_config
from finpanel.config.settings import PipelineConfig

# Market-model slopes of the synthetic stocks
TRUE_BETAS = {10001: 0.5, 10002: 1.0, 10003: 1.5}
TRUE_ALPHA = 0.002


def month_ends(n: int, start: str = "2000-01-31") -> pd.DatetimeIndex:
    """n consecutive month-end dates."""
    return pd.date_range(start, periods=n, freq="ME")


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def market_returns(rng: np.random.Generator) -> pd.DataFrame:
    """48 months of market and risk-free returns."""
    dates = month_ends(48)
    return pd.DataFrame(
        {
            "date": dates,
            "vwretd": rng.normal(0.008, 0.045, len(dates)),
            "rf": np.full(len(dates), 0.003),
        }
    )


@pytest.fixture
def stock_panel(market_returns: pd.DataFrame) -> pd.DataFrame:
    """Noise-free stock returns generated by ret = alpha + beta * vwretd."""
    frames = []
    for permno, beta in TRUE_BETAS.items():
        frames.append(
            pd.DataFrame(
                {
                    "permno": permno,
                    "date": market_returns["date"],
                    "ret": TRUE_ALPHA + beta * market_returns["vwretd"],
                }
            )
        )
    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def factor_returns(rng: np.random.Generator) -> pd.DataFrame:
    """Monthly factor returns in decimals."""
    dates = month_ends(48)
    n = len(dates)
    return pd.DataFrame(
        {
            "date": dates,
            "mktrf": rng.normal(0.006, 0.045, n),
            "smb": rng.normal(0.002, 0.03, n),
            "hml": rng.normal(0.003, 0.03, n),
            "rf": np.full(n, 0.003),
        }
    )


@pytest.fixture
def base_config_dict(tmp_path: Path) -> dict[str, Any]:
    """Minimal configuration dictionary rooted in a temporary directory."""
    return {
        "project": "test-project",
        "sample": {"start": "2000-01-01", "end": "2003-12-31"},
        "data": {
            "root": str(tmp_path / "data"),
            "stock_returns": "msf.csv",
        },
        "output": {"root": str(tmp_path / "output"), "format": "csv"},
    }


@pytest.fixture
def make_config(base_config_dict: dict[str, Any]) -> Callable[..., PipelineConfig]:
    """Build a PipelineConfig from the base dictionary plus overrides."""

    def _make(**sections: dict[str, Any]) -> PipelineConfig:
        merged = {key: dict(value) for key, value in base_config_dict.items() if isinstance(value, dict)}
        merged["project"] = base_config_dict["project"]
        for key, value in sections.items():
            merged[key] = {**merged.get(key, {}), **value}
        return build_config(merged)

    return _make
