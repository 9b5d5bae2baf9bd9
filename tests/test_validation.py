"""Tests for validation module."""

from collections.abc import Callable
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from finpanel.config.settings import PipelineConfig
from finpanel.validation import ConsoleReporter, ValidationResult, ValidationRunner
from finpanel.validation.core import DATASET_LOADERS


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


def _by_name(results: list[ValidationResult]) -> dict[str, ValidationResult]:
    return {r.dataset_name: r for r in results}


class TestValidationRunner:
    """Tests for ValidationRunner."""

    def test_one_result_per_input(self, make_config: Callable[..., PipelineConfig]) -> None:
        results = ValidationRunner(make_config()).run()

        assert [r.dataset_name for r in results] == list(DATASET_LOADERS)

    def test_not_configured(self, make_config: Callable[..., PipelineConfig]) -> None:
        result = _by_name(ValidationRunner(make_config()).run())["factors"]

        assert result.file_path is None
        assert result.schema_valid is None
        assert result.error_message == "Not configured"

    def test_missing_file(self, make_config: Callable[..., PipelineConfig]) -> None:
        result = _by_name(ValidationRunner(make_config()).run())["stock_returns"]

        assert result.file_path is not None
        assert not result.exists
        assert result.error_message == "File not found"

    def test_valid_file(
        self, data_dir: Path, make_config: Callable[..., PipelineConfig]
    ) -> None:
        (data_dir / "msf.csv").write_text(
            "permno,date,ret\n10001,2001-01-31,0.01\n10001,2001-02-28,-0.02\n"
        )

        result = _by_name(ValidationRunner(make_config()).run())["stock_returns"]

        assert result.exists
        assert result.schema_valid is True
        assert result.row_count == 2
        assert result.error_message is None

    def test_schema_failure(
        self, data_dir: Path, make_config: Callable[..., PipelineConfig]
    ) -> None:
        """A return below -100% fails validation."""
        (data_dir / "msf.csv").write_text("permno,date,ret\n10001,2001-01-31,-1.5\n")

        result = _by_name(ValidationRunner(make_config()).run())["stock_returns"]

        assert result.exists
        assert result.schema_valid is False
        assert result.row_count == 1
        assert result.error_message

    def test_unreadable_layout(
        self, data_dir: Path, make_config: Callable[..., PipelineConfig]
    ) -> None:
        """Missing columns are reported instead of raised."""
        (data_dir / "msf.csv").write_text("permno,date\n10001,2001-01-31\n")

        result = _by_name(ValidationRunner(make_config()).run())["stock_returns"]

        assert result.schema_valid is False
        assert result.row_count is None
        assert "Missing required columns" in (result.error_message or "")


class TestConsoleReporter:
    """Tests for ConsoleReporter."""

    def _render(self, results: list[ValidationResult]) -> str:
        buffer = StringIO()
        ConsoleReporter(Console(file=buffer, width=200)).print_results(results)
        return buffer.getvalue()

    def test_statuses(self, tmp_path: Path) -> None:
        results = [
            ValidationResult("stock_returns", "stock_returns", tmp_path / "a.csv", True, True, 10, None),
            ValidationResult("factors", "factors", tmp_path / "b.csv", False, None, None, "File not found"),
            ValidationResult("analyst_link", "analyst_link", None, False, None, None, "Not configured"),
        ]

        output = self._render(results)

        assert "Pass" in output
        assert "Missing" in output
        assert "Not configured" in output
        assert "Configured inputs: 2" in output
        assert "Validation Errors" not in output

    def test_error_details(self, tmp_path: Path) -> None:
        results = [
            ValidationResult(
                "stock_returns", "stock_returns", tmp_path / "a.csv", True, False, 3, "ret < -1"
            ),
        ]

        output = self._render(results)

        assert "Fail" in output
        assert "Validation Errors" in output
        assert "ret < -1" in output
