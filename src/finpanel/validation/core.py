"""
Core validation logic for input files.

Each configured input is read through its loader (so column names, dates
and codes are normalised exactly as in the jobs) and checked against its
registered Pandera schema.
"""

from dataclasses import dataclass
from pathlib import Path

import pandas as pd
from pandera.errors import SchemaError

from finpanel.config.settings import PipelineConfig
from finpanel.ingestion.analysts import AnalystForecastLoader, AnalystLinkLoader
from finpanel.ingestion.base import DataLoader
from finpanel.ingestion.factors import FactorLoader, LiquidityFactorLoader
from finpanel.ingestion.returns import DailyStockLoader, MarketReturnLoader, StockReturnLoader
from finpanel.schemas.registry import SchemaRegistry
from finpanel.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of validating a single input file."""

    dataset_name: str
    schema_name: str | None
    file_path: Path | None
    exists: bool
    schema_valid: bool | None
    row_count: int | None
    error_message: str | None


# Registered input name (also the DataPathsConfig attribute) -> loader
DATASET_LOADERS: dict[str, type[DataLoader]] = {
    "stock_returns": StockReturnLoader,
    "daily_stock": DailyStockLoader,
    "market_returns": MarketReturnLoader,
    "factors": FactorLoader,
    "liquidity_factor": LiquidityFactorLoader,
    "analyst_forecasts": AnalystForecastLoader,
    "analyst_link": AnalystLinkLoader,
}


class ValidationRunner:
    """
    Runs validation for all configured inputs.

    Inputs that are not configured are reported as skipped.
    """

    def __init__(self, config: PipelineConfig) -> None:
        """
        Initialize validation runner.

        Args:
            config: Pipeline configuration containing data paths.
        """
        self.config = config

    def run(self) -> list[ValidationResult]:
        """
        Run validation for all inputs.

        Returns:
            List of validation results, one per input.
        """
        return [self._validate_dataset(name) for name in SchemaRegistry.inputs()]

    def _validate_dataset(self, dataset_attr: str) -> ValidationResult:
        """Validate a single input through its loader."""
        schema_name = SchemaRegistry.get_info(dataset_attr).schema_name

        if not self.config.data_paths.is_configured(dataset_attr):
            return ValidationResult(
                dataset_name=dataset_attr,
                schema_name=schema_name,
                file_path=None,
                exists=False,
                schema_valid=None,
                row_count=None,
                error_message="Not configured",
            )

        file_path = self.config.data_paths.resolve(dataset_attr)
        if not file_path.exists():
            log.warning("Data file not found", dataset=dataset_attr, path=str(file_path))
            return ValidationResult(
                dataset_name=dataset_attr,
                schema_name=schema_name,
                file_path=file_path,
                exists=False,
                schema_valid=None,
                row_count=None,
                error_message="File not found",
            )

        loader = DATASET_LOADERS[dataset_attr](self.config)
        try:
            df = loader.load(validate=False)
        except (ValueError, KeyError, OSError) as e:
            error_msg = f"{type(e).__name__}: {e!s}"
            log.error("Could not read input", dataset=dataset_attr, error=error_msg)
            return ValidationResult(
                dataset_name=dataset_attr,
                schema_name=schema_name,
                file_path=file_path,
                exists=True,
                schema_valid=False,
                row_count=None,
                error_message=error_msg,
            )

        try:
            SchemaRegistry.validate(df, dataset_attr)
        except SchemaError as e:
            error_msg = self._format_schema_error(e)
            log.error(
                "Schema validation failed",
                dataset=dataset_attr,
                schema=schema_name,
                error=error_msg,
            )
            return ValidationResult(
                dataset_name=dataset_attr,
                schema_name=schema_name,
                file_path=file_path,
                exists=True,
                schema_valid=False,
                row_count=len(df),
                error_message=error_msg,
            )

        log.info("Validation passed", dataset=dataset_attr, schema=schema_name, rows=len(df))
        return ValidationResult(
            dataset_name=dataset_attr,
            schema_name=schema_name,
            file_path=file_path,
            exists=True,
            schema_valid=True,
            row_count=len(df),
            error_message=None,
        )

    @staticmethod
    def _format_schema_error(error: SchemaError, max_cases: int = 5) -> str:
        """Summarise a schema error with its first failure cases."""
        failures = getattr(error, "failure_cases", None)
        if isinstance(failures, pd.DataFrame):
            n_failures = len(failures)
            if n_failures > max_cases:
                shown = failures.head(max_cases).to_string(index=False)
                return f"{n_failures} validation errors (showing first {max_cases}):\n{shown}"
            return f"{n_failures} validation error(s):\n{failures.to_string(index=False)}"
        return str(error).split("\n")[0][:200]
