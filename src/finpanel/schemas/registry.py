"""
Schema lookup by dataset name.

Input datasets share their names with the DataPathsConfig attributes, so
the validation command and the loaders find their schema by the same key.
Job outputs are registered alongside and checked before they are saved.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

import pandera.pandas as pa

from finpanel.schemas.analysts import AnalystForecastSchema, AnalystLinkSchema
from finpanel.schemas.factors import FactorReturnSchema, LiquidityFactorSchema
from finpanel.schemas.output import (
    AlphaSchema,
    ConsensusSchema,
    PortfolioReturnSchema,
    RollingBetaSchema,
)
from finpanel.schemas.returns import (
    DailyStockSchema,
    MarketReturnSchema,
    StockReturnSchema,
)

if TYPE_CHECKING:
    import pandas as pd


class DataRole(Enum):
    """Whether a dataset is read by the jobs or written by them."""

    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class SchemaInfo:
    schema: type[pa.DataFrameModel]
    role: DataRole

    @property
    def schema_name(self) -> str:
        return self.schema.__name__


class SchemaRegistry:
    """Registered schemas for every input file and job output."""

    _schemas: ClassVar[dict[str, SchemaInfo]] = {
        # Inputs, in the order `finpanel validate` reports them
        "stock_returns": SchemaInfo(StockReturnSchema, DataRole.INPUT),
        "daily_stock": SchemaInfo(DailyStockSchema, DataRole.INPUT),
        "market_returns": SchemaInfo(MarketReturnSchema, DataRole.INPUT),
        "factors": SchemaInfo(FactorReturnSchema, DataRole.INPUT),
        "liquidity_factor": SchemaInfo(LiquidityFactorSchema, DataRole.INPUT),
        "analyst_forecasts": SchemaInfo(AnalystForecastSchema, DataRole.INPUT),
        "analyst_link": SchemaInfo(AnalystLinkSchema, DataRole.INPUT),
        # Job outputs, checked before saving
        "rolling_betas": SchemaInfo(RollingBetaSchema, DataRole.OUTPUT),
        "consensus": SchemaInfo(ConsensusSchema, DataRole.OUTPUT),
        "portfolio_returns": SchemaInfo(PortfolioReturnSchema, DataRole.OUTPUT),
        "alphas": SchemaInfo(AlphaSchema, DataRole.OUTPUT),
    }

    @classmethod
    def get_info(cls, name: str) -> SchemaInfo:
        """
        Look up a registered dataset.

        Raises:
            KeyError: If the name is not registered.
        """
        if name not in cls._schemas:
            available = ", ".join(cls._schemas)
            msg = f"Unknown schema '{name}'. Available: {available}"
            raise KeyError(msg)
        return cls._schemas[name]

    @classmethod
    def inputs(cls) -> list[str]:
        """Names of all input datasets."""
        return [name for name, info in cls._schemas.items() if info.role is DataRole.INPUT]

    @classmethod
    def validate(cls, df: "pd.DataFrame", name: str) -> "pd.DataFrame":
        """
        Validate a DataFrame against the schema registered under `name`.

        Raises:
            KeyError: If the name is not registered.
            pandera.errors.SchemaError: If validation fails.
        """
        return cls.get_info(name).schema.validate(df)
