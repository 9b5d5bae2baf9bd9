"""Tests for Pandera schemas and the schema registry."""

import numpy as np
import pandas as pd
import pytest
from pandera.errors import SchemaError

from finpanel.schemas import (
    ConsensusSchema,
    FactorReturnSchema,
    MarketReturnSchema,
    PortfolioReturnSchema,
    SchemaRegistry,
    StockReturnSchema,
)
from finpanel.schemas.registry import DataRole
from finpanel.validation.core import DATASET_LOADERS


class TestStockReturnSchema:
    """Tests for StockReturnSchema."""

    def test_valid_panel(self) -> None:
        df = pd.DataFrame(
            {
                "permno": [10001, 10001],
                "date": pd.to_datetime(["2001-01-31", "2001-02-28"]),
                "ret": [0.01, np.nan],
                "prc": [-12.5, 13.0],
                "ticker": ["AAA", "AAA"],
            }
        )
        validated = StockReturnSchema.validate(df)

        assert len(validated) == 2
        assert "ticker" in validated.columns

    def test_return_below_minus_one(self) -> None:
        df = pd.DataFrame(
            {
                "permno": [10001],
                "date": pd.to_datetime(["2001-01-31"]),
                "ret": [-1.5],
            }
        )

        with pytest.raises(SchemaError):
            StockReturnSchema.validate(df)

    def test_missing_required_column(self) -> None:
        df = pd.DataFrame({"permno": [1], "date": pd.to_datetime(["2001-01-31"])})

        with pytest.raises(SchemaError):
            StockReturnSchema.validate(df)


class TestMarketReturnSchema:
    """Tests for MarketReturnSchema."""

    def test_any_market_column(self) -> None:
        df = pd.DataFrame({"date": pd.to_datetime(["2001-01-31"]), "sprtrn": [0.01]})
        MarketReturnSchema.validate(df)

    def test_without_market_column(self) -> None:
        df = pd.DataFrame({"date": pd.to_datetime(["2001-01-31"]), "rf": [0.003]})

        with pytest.raises(SchemaError):
            MarketReturnSchema.validate(df)

    def test_duplicate_dates(self) -> None:
        df = pd.DataFrame(
            {"date": pd.to_datetime(["2001-01-31", "2001-01-31"]), "vwretd": [0.01, 0.02]}
        )

        with pytest.raises(SchemaError):
            MarketReturnSchema.validate(df)


class TestOutputSchemas:
    """Tests for output schemas."""

    def test_factor_returns_optional_columns(self) -> None:
        df = pd.DataFrame(
            {"date": pd.to_datetime(["2001-01-31"]), "mktrf": [0.01], "rf": [0.003]}
        )
        FactorReturnSchema.validate(df)

    def test_consensus_requires_analysts(self) -> None:
        df = pd.DataFrame(
            {
                "ticker": ["AAA"],
                "statpers": pd.to_datetime(["2001-01-31"]),
                "fpedats": pd.to_datetime(["2001-12-31"]),
                "numest": [0],
                "meanest": [1.0],
                "medest": [1.0],
                "stdev": [np.nan],
                "highest": [1.0],
                "lowest": [1.0],
                "dispersion": [np.nan],
                "revision": [np.nan],
            }
        )

        with pytest.raises(SchemaError):
            ConsensusSchema.validate(df)

    def test_portfolio_groups_start_at_one(self) -> None:
        df = pd.DataFrame(
            {
                "date": pd.to_datetime(["2001-01-31"]),
                "group": [0],
                "ret": [0.01],
                "n_stocks": [10],
            }
        )

        with pytest.raises(SchemaError):
            PortfolioReturnSchema.validate(df)


class TestSchemaRegistry:
    """Tests for SchemaRegistry."""

    def test_inputs_match_loaders(self) -> None:
        """Every input schema has a loader for `finpanel validate`."""
        assert SchemaRegistry.inputs() == list(DATASET_LOADERS)

    def test_outputs_are_not_inputs(self) -> None:
        assert "consensus" not in SchemaRegistry.inputs()
        assert SchemaRegistry.get_info("alphas").role is DataRole.OUTPUT

    def test_unknown_schema(self) -> None:
        with pytest.raises(KeyError, match="Unknown schema"):
            SchemaRegistry.get_info("nonexistent")

    def test_schema_info(self) -> None:
        info = SchemaRegistry.get_info("portfolio_returns")

        assert info.schema is PortfolioReturnSchema
        assert info.schema_name == "PortfolioReturnSchema"

    def test_validate_by_name(self) -> None:
        df = pd.DataFrame(
            {"date": pd.to_datetime(["2001-01-31"]), "liq": [-0.02]}
        )
        result = SchemaRegistry.validate(df, "liquidity_factor")

        assert len(result) == 1
