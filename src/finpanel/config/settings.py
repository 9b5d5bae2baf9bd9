"""
Typed configuration models using Pydantic.

All job parameters are defined here with explicit typing and validation.
No hardcoded sample periods or window lengths in processing code.
"""

from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Frequency(str, Enum):
    """Observation frequency of a return panel."""

    MONTHLY = "monthly"
    DAILY = "daily"


class LiquidityMeasure(str, Enum):
    """Sorting variable for liquidity portfolios."""

    LIQUIDITY_BETA = "liquidity_beta"  # loading on aggregate liquidity innovations
    AMIHUD = "amihud"  # |ret| / dollar volume


class Weighting(str, Enum):
    """Portfolio weighting scheme."""

    EQUAL = "equal"
    VALUE = "value"


class OutputFormat(str, Enum):
    """Tabular output format."""

    CSV = "csv"
    PARQUET = "parquet"


class SampleConfig(BaseModel):
    """Analysis period."""

    model_config = ConfigDict(frozen=True)

    start: date = Field(description="First date of the sample (inclusive)")
    end: date = Field(description="Last date of the sample (inclusive)")

    @field_validator("end")
    @classmethod
    def validate_period_dates(cls, v: date, info: Any) -> date:
        """Ensure end is after start."""
        if "start" in info.data and v <= info.data["start"]:
            msg = "sample end must be after sample start"
            raise ValueError(msg)
        return v

    @property
    def n_months(self) -> int:
        """Number of calendar months touched by the sample."""
        return (self.end.year - self.start.year) * 12 + self.end.month - self.start.month + 1


class DataPathsConfig(BaseModel):
    """Input file paths.

    All paths are relative to data_root. Use resolve() to get full paths.

    Required for every job:
        - stock_returns: monthly stock return panel (CRSP MSF style)

    Optional, per job:
        - market_returns: market index returns (rolling betas)
        - daily_stock: daily stock panel (Amihud illiquidity)
        - analyst_forecasts: individual analyst forecasts (IBES detail style)
        - analyst_link: IBES ticker to PERMNO link table
        - factors: Fama-French factor returns
        - liquidity_factor: aggregate liquidity innovations
    """

    model_config = ConfigDict(frozen=True)

    data_root: Path = Field(
        default=Path("./data"), description="Root directory for all data files"
    )

    stock_returns: Path = Field(description="Path to monthly stock returns")

    market_returns: Path | None = Field(default=None)
    daily_stock: Path | None = Field(default=None)
    analyst_forecasts: Path | None = Field(default=None)
    analyst_link: Path | None = Field(default=None)
    factors: Path | None = Field(default=None)
    liquidity_factor: Path | None = Field(default=None)

    factors_in_percent: bool = Field(
        default=True,
        description="Factor files quote returns in percent (Ken French library)",
    )

    def resolve(self, path_attr: str) -> Path:
        """Resolve a relative path against data_root."""
        rel_path = getattr(self, path_attr)
        if rel_path is None:
            msg = f"Path '{path_attr}' is not configured"
            raise ValueError(msg)
        return self.data_root / rel_path

    def is_configured(self, path_attr: str) -> bool:
        """Whether an optional input has been configured."""
        return getattr(self, path_attr) is not None

    def require(self, *path_attrs: str, job: str) -> None:
        """Validate that all inputs needed by a job are configured."""
        missing = [attr for attr in path_attrs if getattr(self, attr) is None]
        if missing:
            msg = f"Job '{job}' requires: {', '.join(missing)}"
            raise ValueError(msg)


class RollingConfig(BaseModel):
    """Rolling market-beta estimation."""

    model_config = ConfigDict(frozen=True)

    window: int = Field(default=60, ge=3, description="Trailing window length")
    min_obs: int = Field(default=24, ge=3, description="Minimum valid observations")
    frequency: Frequency = Field(default=Frequency.MONTHLY)
    market_column: str = Field(default="vwretd")
    excess_returns: bool = Field(
        default=False, description="Regress returns in excess of the risk-free rate"
    )

    @model_validator(mode="after")
    def validate_min_obs(self) -> "RollingConfig":
        """Ensure min_obs fits inside the window."""
        if self.min_obs > self.window:
            msg = f"min_obs ({self.min_obs}) must not exceed window ({self.window})"
            raise ValueError(msg)
        return self


class AnalystConfig(BaseModel):
    """Analyst forecast consensus construction."""

    model_config = ConfigDict(frozen=True)

    stale_months: int = Field(
        default=3, ge=1, description="Months a forecast stays active without revision"
    )
    horizon: int = Field(
        default=1, ge=1, description="1 = nearest future fiscal period end"
    )
    min_analysts: int = Field(default=1, ge=1)
    fpi: list[str] | None = Field(
        default=None, description="Keep only these forecast period indicators"
    )


class LiquidityConfig(BaseModel):
    """Liquidity measure and portfolio formation."""

    model_config = ConfigDict(frozen=True)

    measure: LiquidityMeasure = Field(default=LiquidityMeasure.LIQUIDITY_BETA)
    n_groups: int = Field(default=10, ge=2, le=100)
    weighting: Weighting = Field(default=Weighting.VALUE)
    window: int = Field(default=60, ge=3)
    min_obs: int = Field(default=36, ge=3)
    controls: list[str] = Field(
        default_factory=lambda: ["mktrf", "smb", "hml"],
        description="Factor controls in the liquidity-beta regression",
    )
    formation_lag: int = Field(default=1, ge=1, description="Months between sort and holding")
    rebalance_month: int | None = Field(
        default=None, ge=1, le=12, description="Sort once a year in this month"
    )
    min_stocks: int | None = Field(
        default=None, description="Minimum stocks per sort date (defaults to n_groups)"
    )
    min_price: float | None = Field(default=None, ge=0)
    share_codes: list[int] | None = Field(default=None)
    exchange_codes: list[int] | None = Field(default=None)
    breakpoint_exchanges: list[int] | None = Field(
        default=None, description="Compute breakpoints from these exchanges only"
    )
    amihud_min_days: int = Field(default=15, ge=1)

    @model_validator(mode="after")
    def validate_min_obs(self) -> "LiquidityConfig":
        """Ensure min_obs fits inside the window."""
        if self.min_obs > self.window:
            msg = f"min_obs ({self.min_obs}) must not exceed window ({self.window})"
            raise ValueError(msg)
        return self

    @property
    def effective_min_stocks(self) -> int:
        """Minimum stocks per date used for sorting."""
        return self.min_stocks if self.min_stocks is not None else self.n_groups

    @property
    def holding_months(self) -> int:
        """Months a portfolio assignment is held."""
        return 12 if self.rebalance_month is not None else 1


DEFAULT_FACTOR_MODELS: dict[str, list[str]] = {
    "capm": ["mktrf"],
    "ff3": ["mktrf", "smb", "hml"],
    "carhart4": ["mktrf", "smb", "hml", "umd"],
}


class FactorModelConfig(BaseModel):
    """Time-series factor models used for alpha estimation."""

    model_config = ConfigDict(frozen=True)

    models: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_FACTOR_MODELS.items()}
    )
    hac_lags: int | None = Field(
        default=None, ge=0, description="Newey-West lags (None = automatic rule)"
    )

    @field_validator("models")
    @classmethod
    def validate_models(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        """Ensure every model names at least one factor."""
        empty = [name for name, factors in v.items() if not factors]
        if empty:
            msg = f"Factor models without factors: {empty}"
            raise ValueError(msg)
        return v

    @property
    def required_factors(self) -> list[str]:
        """Union of all factors, in first-seen order."""
        seen: list[str] = []
        for factors in self.models.values():
            seen.extend(f for f in factors if f not in seen)
        return seen


class OutputConfig(BaseModel):
    """Output paths configuration.

    Structure: ./output/{project}/{job}/
    """

    model_config = ConfigDict(frozen=True)

    output_root: Path = Field(
        default=Path("./output"), description="Root directory for all outputs"
    )
    format: OutputFormat = Field(default=OutputFormat.CSV)


class PipelineConfig(BaseModel):
    """Complete configuration for all batch jobs.

    The project name drives the output directory structure.
    """

    model_config = ConfigDict(frozen=True)

    project: str = Field(description="Project identifier (e.g., 'liq-1966-2020')")

    sample: SampleConfig
    data_paths: DataPathsConfig
    rolling: RollingConfig = Field(default_factory=RollingConfig)
    analysts: AnalystConfig = Field(default_factory=AnalystConfig)
    liquidity: LiquidityConfig = Field(default_factory=LiquidityConfig)
    factor_models: FactorModelConfig = Field(default_factory=FactorModelConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @property
    def project_dir(self) -> Path:
        """Root output directory for this project."""
        return self.output.output_root / self.project

    def job_dir(self, job: str) -> Path:
        """Output directory for a single job."""
        return self.project_dir / job
