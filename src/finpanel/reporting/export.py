"""Writing result tables to disk."""

from pathlib import Path

import pandas as pd

from finpanel.config.settings import OutputFormat
from finpanel.utils.logging import get_logger

log = get_logger(__name__)


def save_table(
    df: pd.DataFrame,
    path: Path,
    output_format: OutputFormat | str = OutputFormat.CSV,
    *,
    index: bool = False,
) -> Path:
    """
    Write a table as CSV or parquet, creating parent directories.

    Args:
        df: Table to write.
        path: Target path without suffix; the suffix follows the format.
        output_format: 'csv' or 'parquet'.
        index: Whether to write the index (for wide, date-indexed tables).

    Returns:
        Path of the written file.
    """
    output_format = OutputFormat(output_format)
    target = path.with_suffix(f".{output_format.value}")
    target.parent.mkdir(parents=True, exist_ok=True)

    if output_format is OutputFormat.PARQUET:
        df.to_parquet(target, index=index)
    else:
        df.to_csv(target, index=index)

    log.info("Saved table", path=str(target), rows=len(df))
    return target
