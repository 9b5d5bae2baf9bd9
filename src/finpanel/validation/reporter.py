"""
Console reporter for validation results.
"""

from rich.console import Console
from rich.table import Table

from finpanel.validation.core import ValidationResult


class ConsoleReporter:
    """Formats and displays validation results to the console."""

    def __init__(self, console: Console) -> None:
        """
        Initialize console reporter.

        Args:
            console: Rich Console instance for output.
        """
        self.console = console

    def print_results(self, results: list[ValidationResult]) -> None:
        """
        Print validation results as a table, a summary and error details.

        Args:
            results: List of validation results to display.
        """
        table = Table(title="Input Validation Results", show_header=True)
        table.add_column("Input", style="cyan", no_wrap=True)
        table.add_column("Schema", style="blue")
        table.add_column("Status", justify="center")
        table.add_column("Rows", justify="right")
        table.add_column("Details", style="dim")

        for result in results:
            table.add_row(
                result.dataset_name,
                result.schema_name or "-",
                self._format_status(result),
                str(result.row_count) if result.row_count is not None else "-",
                self._format_details(result),
            )

        self.console.print(table)
        self._print_summary(results)
        self._print_detailed_errors(results)

    def _format_status(self, result: ValidationResult) -> str:
        """Validation status with color markup."""
        if result.file_path is None:
            return "[dim]Not configured[/dim]"
        if not result.exists:
            return "[yellow]Missing[/yellow]"
        if result.schema_valid:
            return "[green]Pass[/green]"
        return "[red]Fail[/red]"

    def _format_details(self, result: ValidationResult) -> str:
        if result.file_path is None:
            return "-"
        if not result.exists:
            return str(result.file_path)
        if result.schema_valid:
            return "OK"
        return "See errors below"

    def _print_summary(self, results: list[ValidationResult]) -> None:
        """Print counts of passed, failed and missing inputs."""
        configured = [r for r in results if r.file_path is not None]
        passed = sum(1 for r in configured if r.schema_valid is True)
        failed = sum(1 for r in configured if r.schema_valid is False)
        missing = sum(1 for r in configured if not r.exists)

        self.console.print()
        self.console.print("[bold]Summary:[/bold]")
        self.console.print(f"  Configured inputs: {len(configured)}")
        self.console.print(f"  [green]Passed: {passed}[/green]")
        self.console.print(f"  [red]Failed: {failed}[/red]")
        self.console.print(f"  [yellow]Missing: {missing}[/yellow]")

    def _print_detailed_errors(self, results: list[ValidationResult]) -> None:
        """Print error messages for failed validations."""
        failed = [r for r in results if r.schema_valid is False]
        if not failed:
            return

        self.console.print()
        self.console.print("[bold red]Validation Errors:[/bold red]")
        for result in failed:
            self.console.print()
            self.console.print(
                f"[bold]{result.dataset_name}[/bold] (schema: {result.schema_name}):"
            )
            self.console.print(f"  File: {result.file_path}")
            for line in (result.error_message or "").split("\n"):
                self.console.print(f"  {line}")
