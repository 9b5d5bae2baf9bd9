"""
Base classes and utilities for data ingestion.

Provides common functionality for all data loaders.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Generic, TypeVar

import pandas as pd
import pandera.pandas as pa

from finpanel.config.settings import PipelineConfig
from finpanel.normalization.columns import normalize_columns
from finpanel.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T", bound=pa.DataFrameModel)

PARQUET_SUFFIXES = {".parquet", ".pq"}
CSV_SUFFIXES = {".csv", ".gz"}
# Whitespace-delimited text with '%' comment lines (e.g. the Pastor-Stambaugh file)
TEXT_SUFFIXES = {".txt", ".dat"}
COMMENT_CHAR = "%"


def _has_header(path: Path) -> bool:
    """Whether the first non-comment line of a text table holds column names."""
    with path.open() as fh:
        for line in fh:
            tokens = line.split()
            if not tokens or tokens[0].startswith(COMMENT_CHAR):
                continue
            return bool(pd.to_numeric(pd.Series(tokens), errors="coerce").isna().any())
    return False


def read_table(path: Path, names: list[str] | None = None) -> pd.DataFrame:
    """
    Read a tabular file, dispatching on its suffix.

    Args:
        path: Path to a CSV (optionally gzipped), whitespace-delimited text
            or parquet file.
        names: Column names for a text file without a header row.

    Returns:
        Raw DataFrame.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the suffix is not supported.
    """
    if not path.exists():
        msg = f"Data file not found: {path}"
        raise FileNotFoundError(msg)

    suffix = path.suffix.lower()
    if suffix in PARQUET_SUFFIXES:
        return pd.read_parquet(path)
    if suffix in CSV_SUFFIXES:
        return pd.read_csv(path, low_memory=False)
    if suffix in TEXT_SUFFIXES:
        if _has_header(path):
            return pd.read_csv(path, sep=r"\s+", comment=COMMENT_CHAR)
        df = pd.read_csv(path, sep=r"\s+", comment=COMMENT_CHAR, header=None)
        if names:
            df = df.rename(columns=dict(enumerate(names)))
        return df

    msg = f"Unsupported file format '{suffix}' for {path}"
    raise ValueError(msg)


def coerce_numeric(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """
    Coerce columns to float, turning non-numeric codes into NaN.

    CRSP stores special return codes such as 'B' or 'C' in the return
    column; these become missing values.
    """
    for col in columns:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    return df


class DataLoader(ABC, Generic[T]):
    """
    Abstract base class for data loaders.

    All data loaders inherit from this class to ensure consistent
    schema validation at system boundaries.
    """

    #: DataPathsConfig attribute holding this loader's input path
    path_attr: str = ""
    #: Column names for headerless text files
    text_columns: list[str] | None = None

    def __init__(self, config: PipelineConfig, schema: type[T]) -> None:
        """
        Initialize data loader.

        Args:
            config: Pipeline configuration.
            schema: Pandera schema for validation.
        """
        self.config = config
        self.schema = schema

    @abstractmethod
    def _transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Bring normalized raw data into canonical form. Implemented by subclasses."""
        ...

    @property
    def path(self) -> Path:
        """Resolved input path."""
        return self.config.data_paths.resolve(self.path_attr)

    def _load_raw(self) -> pd.DataFrame:
        """Load the raw file and normalize its column names."""
        log.info("Reading file", path=str(self.path))
        return normalize_columns(read_table(self.path, names=self.text_columns))

    def load(self, *, validate: bool = True) -> pd.DataFrame:
        """
        Load and optionally validate data.

        Args:
            validate: Whether to validate against schema.

        Returns:
            Loaded (and optionally validated) DataFrame.

        Raises:
            FileNotFoundError: If data file not found.
            pandera.errors.SchemaError: If validation fails.
        """
        log.info("Loading data", loader=self.__class__.__name__)

        df = self._transform(self._load_raw())
        log.info("Loaded raw data", rows=len(df), columns=list(df.columns))

        if validate:
            df = self._validate(df)
            log.info("Schema validation passed", schema=self.schema.__name__)

        return df

    def _validate(self, df: pd.DataFrame) -> pd.DataFrame:
        """Validate DataFrame against schema."""
        return self.schema.validate(df)
