"""
Column name normalization.

Provides canonical column naming to ensure consistency throughout the jobs.
Source names are lower-cased and stripped before the mapping is applied.
"""

import pandas as pd

from finpanel.utils.logging import get_logger

log = get_logger(__name__)

# Canonical column names, keyed by lower-cased source spellings
COLUMN_MAPPING: dict[str, str] = {
    # Dates
    "caldt": "date",
    "datadate": "date",
    "yyyymm": "date",
    # CRSP security panel
    "lpermno": "permno",
    "prccm": "prc",
    "exchange_code": "exchcd",
    "share_code": "shrcd",
    # Fama-French factors
    "mkt-rf": "mktrf",
    "mkt_rf": "mktrf",
    "mkt rf": "mktrf",
    "mom": "umd",
    "wml": "umd",
    # Aggregate liquidity (Pastor-Stambaugh file)
    "ps_innov": "liq",
    "innov": "liq",
    "agg_liq_innov": "liq",
    # IBES detail
    "analys": "analyst",
    "estimator": "analyst",
    "oftic": "ticker",
}


def normalize_columns(
    df: pd.DataFrame,
    mapping: dict[str, str] | None = None,
) -> pd.DataFrame:
    """
    Normalize column names to canonical form.

    Args:
        df: DataFrame to normalize.
        mapping: Optional custom mapping (defaults to COLUMN_MAPPING).

    Returns:
        DataFrame with normalized column names.
    """
    mapping = mapping or COLUMN_MAPPING

    lowered = {col: str(col).strip().lower() for col in df.columns}
    df = df.rename(columns=lowered)

    rename_dict = {
        k: v for k, v in mapping.items() if k in df.columns and v not in df.columns
    }

    if rename_dict:
        log.debug("Normalizing columns", renamed=list(rename_dict.keys()))
        df = df.rename(columns=rename_dict)

    return df


def validate_required_columns(
    df: pd.DataFrame,
    required: list[str],
    *,
    raise_on_missing: bool = True,
) -> list[str]:
    """
    Check that required columns are present.

    Args:
        df: DataFrame to check.
        required: List of required column names.
        raise_on_missing: Whether to raise error if columns missing.

    Returns:
        List of missing columns.

    Raises:
        ValueError: If raise_on_missing and columns are missing.
    """
    missing = [col for col in required if col not in df.columns]

    if missing and raise_on_missing:
        msg = f"Missing required columns: {missing}"
        raise ValueError(msg)

    if missing:
        log.warning("Missing columns", missing=missing)

    return missing
