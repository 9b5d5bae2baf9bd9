"""Command-line interface for the finpanel batch jobs."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    import pandas as pd

    from finpanel.config.settings import PipelineConfig

app = typer.Typer(
    name="finpanel",
    help="Empirical-finance batch jobs: rolling betas, analyst consensus, liquidity portfolios.",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]

NoSaveOption = Annotated[
    bool,
    typer.Option("--no-save", help="Run without writing result tables."),
]


@app.callback()
def main(
    log_level: Annotated[
        str,
        typer.Option("--log-level", "-l", help="Log level (DEBUG, INFO, WARNING, ERROR)."),
    ] = "INFO",
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs", help="Emit logs as JSON lines."),
    ] = False,
) -> None:
    """Configure logging for all commands."""
    from finpanel.utils.logging import configure_logging

    configure_logging(level=log_level, json_output=json_logs)


def _load(config: Path) -> "PipelineConfig":
    from finpanel.config.loader import load_config

    console.print(f"[blue]Loading configuration from {config}[/blue]")
    try:
        return load_config(config)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1) from e


def _print_metrics(title: str, rows: list[tuple[str, str]]) -> None:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for name, value in rows:
        table.add_row(name, value)
    console.print(table)


def _print_frame(title: str, df: "pd.DataFrame", float_format: str = "{:.4f}") -> None:
    """Render a small DataFrame as a rich table."""
    table = Table(title=title)
    for col in df.columns:
        table.add_column(str(col), justify="right" if df[col].dtype.kind in "fiu" else "left")
    for _, row in df.iterrows():
        table.add_row(
            *[float_format.format(v) if isinstance(v, float) else str(v) for v in row]
        )
    console.print(table)


@app.command()
def validate(config: ConfigOption) -> None:
    """Validate configured input files against their schemas."""
    from finpanel.validation import ConsoleReporter, ValidationRunner

    pipeline_config = _load(config)
    console.print("[blue]Running schema validation...[/blue]")

    results = ValidationRunner(pipeline_config).run()
    ConsoleReporter(console).print_results(results)

    has_failures = any(
        r.schema_valid is False or (r.file_path is not None and not r.exists) for r in results
    )
    if has_failures:
        raise typer.Exit(code=1)


@app.command()
def betas(config: ConfigOption, no_save: NoSaveOption = False) -> None:
    """Estimate rolling market betas for every stock."""
    from finpanel.pipelines import run_rolling_betas

    pipeline_config = _load(config)
    rolling = pipeline_config.rolling
    console.print(
        f"[blue]Rolling betas: window={rolling.window}, min_obs={rolling.min_obs}, "
        f"market={rolling.market_column}[/blue]"
    )

    try:
        result = run_rolling_betas(pipeline_config, save=not no_save)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e
    except Exception as e:
        console.print(f"[red]Rolling-beta job failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    _print_metrics(
        "Rolling Beta Results",
        [
            ("Stocks", str(result.n_stocks)),
            ("Stock-dates", str(len(result.betas))),
            ("Estimates", str(result.n_estimates)),
            ("Mean beta", f"{result.betas['beta'].mean():.3f}"),
        ],
    )
    if result.output_dir:
        console.print(f"\n[green]Saved to: {result.output_dir}[/green]")


@app.command()
def forecasts(config: ConfigOption, no_save: NoSaveOption = False) -> None:
    """Build monthly analyst consensus statistics."""
    from finpanel.pipelines import run_consensus

    pipeline_config = _load(config)

    try:
        result = run_consensus(pipeline_config, save=not no_save)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e
    except Exception as e:
        console.print(f"[red]Consensus job failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    consensus = result.consensus
    rows = [
        ("Forecast records", str(result.n_forecasts)),
        ("Consensus rows", str(len(consensus))),
        ("Firms", str(consensus["ticker"].nunique())),
        ("Months", str(consensus["statpers"].nunique())),
        ("Mean analysts", f"{consensus['numest'].mean():.2f}"),
    ]
    if result.linked:
        rows.append(("Linked to PERMNO", str(int(consensus["permno"].notna().sum()))))
    _print_metrics("Analyst Consensus Results", rows)
    if result.output_dir:
        console.print(f"\n[green]Saved to: {result.output_dir}[/green]")


@app.command()
def liquidity(config: ConfigOption, no_save: NoSaveOption = False) -> None:
    """Form liquidity-sorted portfolios and estimate their alphas."""
    from finpanel.pipelines import run_liquidity

    pipeline_config = _load(config)
    settings = pipeline_config.liquidity
    console.print(
        f"[blue]Liquidity portfolios: measure={settings.measure.value}, "
        f"groups={settings.n_groups}, weighting={settings.weighting.value}[/blue]"
    )

    try:
        result = run_liquidity(pipeline_config, save=not no_save)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e
    except Exception as e:
        console.print(f"[red]Liquidity job failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    _print_frame("Portfolio Returns", result.summary)
    if not result.alphas.empty:
        spread = result.alphas[result.alphas["portfolio"] == "spread"]
        _print_frame("Spread Portfolio Alphas", spread[["model", "alpha", "alpha_t", "nobs"]])
        _print_frame("GRS Tests", result.grs)
    if result.output_dir:
        console.print(f"\n[green]Saved to: {result.output_dir}[/green]")


@app.command()
def run(config: ConfigOption, no_save: NoSaveOption = False) -> None:
    """Run every job whose inputs are configured."""
    from finpanel.pipelines import available_jobs, run_all

    pipeline_config = _load(config)
    jobs = available_jobs(pipeline_config)
    if not jobs:
        console.print("[yellow]No job has all of its inputs configured[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[blue]Running jobs: {', '.join(jobs)}[/blue]")
    try:
        results = run_all(pipeline_config, save=not no_save)
    except Exception as e:
        console.print(f"[red]Run failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    for job, result in results.items():
        location = str(result.output_dir) if result.output_dir else "not saved"
        console.print(f"[green]✓ {job}[/green] [dim]{location}[/dim]")


@app.command()
def version() -> None:
    """Show version information."""
    from finpanel import __version__

    console.print(f"finpanel version {__version__}")


if __name__ == "__main__":
    app()
