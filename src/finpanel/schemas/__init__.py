"""
Schema definitions using Pandera for data validation.

All data contracts are defined here to ensure explicit,
validated data structures at every job boundary.
"""

from finpanel.schemas.analysts import AnalystForecastSchema, AnalystLinkSchema
from finpanel.schemas.factors import FactorReturnSchema, LiquidityFactorSchema
from finpanel.schemas.output import (
    AlphaSchema,
    ConsensusSchema,
    PortfolioReturnSchema,
    RollingBetaSchema,
)
from finpanel.schemas.registry import SchemaRegistry
from finpanel.schemas.returns import (
    MARKET_COLUMNS,
    DailyStockSchema,
    MarketReturnSchema,
    StockReturnSchema,
)

__all__ = [
    "MARKET_COLUMNS",
    "AlphaSchema",
    "AnalystForecastSchema",
    "AnalystLinkSchema",
    "ConsensusSchema",
    "DailyStockSchema",
    "FactorReturnSchema",
    "LiquidityFactorSchema",
    "MarketReturnSchema",
    "PortfolioReturnSchema",
    "RollingBetaSchema",
    "SchemaRegistry",
    "StockReturnSchema",
]
