"""Tests for column, date and panel normalization."""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from finpanel.config.settings import SampleConfig
from finpanel.normalization.columns import normalize_columns, validate_required_columns
from finpanel.normalization.panel import (
    add_market_equity,
    apply_universe_filters,
    deduplicate_panel,
    lag_by_month,
)
from finpanel.normalization.temporal import (
    filter_to_sample,
    from_month_index,
    month_index,
    parse_dates,
    to_month_end,
)


class TestColumns:
    """Tests for column normalization."""

    def test_source_spellings(self) -> None:
        df = pd.DataFrame(columns=["PERMNO", "DATE", "RET", "Mkt-RF", " ESTIMATOR "])
        result = normalize_columns(df)

        assert list(result.columns) == ["permno", "date", "ret", "mktrf", "analyst"]

    def test_existing_target_not_overwritten(self) -> None:
        df = pd.DataFrame(columns=["date", "caldt"])
        result = normalize_columns(df)

        assert list(result.columns) == ["date", "caldt"]

    def test_missing_columns(self) -> None:
        df = pd.DataFrame(columns=["permno"])

        with pytest.raises(ValueError, match="Missing required columns"):
            validate_required_columns(df, ["permno", "ret"])
        assert validate_required_columns(df, ["ret"], raise_on_missing=False) == ["ret"]


class TestDates:
    """Tests for date parsing and month arithmetic."""

    def test_yyyymm(self) -> None:
        parsed = parse_dates(pd.Series([192607, 192608]))
        assert list(parsed) == [pd.Timestamp("1926-07-31"), pd.Timestamp("1926-08-31")]

    def test_yyyymmdd(self) -> None:
        parsed = parse_dates(pd.Series(["20010131", "20010215"]))
        assert list(parsed) == [pd.Timestamp("2001-01-31"), pd.Timestamp("2001-02-15")]

    def test_annual_rows_become_missing(self) -> None:
        """Fama-French annual rows inside a monthly file are not parsed."""
        parsed = parse_dates(pd.Series(["192607", "192608", "192609", "1927"]))
        assert parsed.iloc[:3].notna().all()
        assert pd.isna(parsed.iloc[3])

    def test_iso_strings(self) -> None:
        parsed = parse_dates(pd.Series(["2001-01-31", "not a date"]))
        assert parsed.iloc[0] == pd.Timestamp("2001-01-31")
        assert pd.isna(parsed.iloc[1])

    def test_month_end(self) -> None:
        result = to_month_end(pd.Series(pd.to_datetime(["2001-02-01", "2000-02-15 13:00"])))
        assert list(result) == [pd.Timestamp("2001-02-28"), pd.Timestamp("2000-02-29")]

    def test_month_index_round_trip(self) -> None:
        dates = pd.Series(pd.to_datetime(["1999-12-31", "2000-01-31"]))
        index = month_index(dates)

        assert index.iloc[1] - index.iloc[0] == 1
        assert list(from_month_index(index)) == list(dates)

    def test_filter_to_sample(self) -> None:
        df = pd.DataFrame({"date": pd.to_datetime(["1999-12-31", "2000-06-30", "2001-01-31"])})
        sample = SampleConfig(start=date(2000, 1, 1), end=date(2000, 12, 31))

        assert len(filter_to_sample(df, sample)) == 1


class TestPanel:
    """Tests for panel helpers."""

    def test_lag_is_calendar_exact(self) -> None:
        """A gap month yields NaN instead of the previous row."""
        df = pd.DataFrame(
            {
                "permno": [1, 1, 1, 2],
                "date": pd.to_datetime(["2001-01-31", "2001-02-28", "2001-04-30", "2001-02-28"]),
                "me": [10.0, 20.0, 40.0, 5.0],
            }
        )

        result = lag_by_month(df, "me")

        assert np.isnan(result["me_lag1"].iloc[0])
        assert result["me_lag1"].iloc[1] == 10.0
        assert np.isnan(result["me_lag1"].iloc[2])
        assert np.isnan(result["me_lag1"].iloc[3])

    def test_lag_sorts_unsorted_input(self) -> None:
        df = pd.DataFrame(
            {
                "permno": [1, 1],
                "date": pd.to_datetime(["2001-02-28", "2001-01-31"]),
                "me": [20.0, 10.0],
            }
        )

        result = lag_by_month(df, "me", name="prev")

        assert list(result["prev"].fillna(-1)) == [-1, 10.0]

    def test_market_equity(self) -> None:
        df = pd.DataFrame({"prc": [-10.0, 5.0, 0.0], "shrout": [100.0, 10.0, 10.0]})
        result = add_market_equity(df)

        assert list(result["me"].iloc[:2]) == [1000.0, 50.0]
        assert np.isnan(result["me"].iloc[2])

    def test_universe_filters(self) -> None:
        df = pd.DataFrame(
            {
                "shrcd": [10, 11, 12, 10],
                "exchcd": [1, 3, 1, 4],
                "prc": [10.0, -3.0, 20.0, 8.0],
            }
        )

        result = apply_universe_filters(
            df, share_codes=[10, 11], exchange_codes=[1, 2, 3], min_price=5.0
        )

        assert list(result.index) == [0]

    def test_universe_filter_missing_column(self) -> None:
        df = pd.DataFrame({"prc": [1.0, 10.0]})
        result = apply_universe_filters(df, share_codes=[10], min_price=5.0)

        assert len(result) == 1

    def test_deduplicate_keeps_last(self) -> None:
        df = pd.DataFrame(
            {
                "permno": [1, 1],
                "date": pd.to_datetime(["2001-01-31", "2001-01-31"]),
                "ret": [0.01, 0.02],
            }
        )
        result = deduplicate_panel(df)

        assert len(result) == 1
        assert result["ret"].iloc[0] == 0.02
