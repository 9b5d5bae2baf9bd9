"""
Pandera schemas for analyst forecast data.

Detail records follow the IBES detail file layout: one row per analyst
forecast announcement.
"""

from typing import Optional

import pandera.pandas as pa
from pandera.typing import Series


class AnalystForecastSchema(pa.DataFrameModel):
    """Schema for individual analyst forecasts."""

    ticker: Series[str] = pa.Field(description="IBES ticker")
    analyst: Series[str] = pa.Field(description="Analyst (estimator) code")
    anndats: Series[pa.DateTime] = pa.Field(description="Announcement date")
    fpedats: Series[pa.DateTime] = pa.Field(description="Forecast period end date")
    value: Series[float] = pa.Field(nullable=True, description="Forecast value")
    fpi: Optional[Series[str]] = pa.Field(
        nullable=True,
        description="Forecast period indicator",
    )

    class Config:
        """Schema configuration."""

        name = "AnalystForecastSchema"
        strict = False
        coerce = True


class AnalystLinkSchema(pa.DataFrameModel):
    """Schema for the IBES ticker to PERMNO link table."""

    ticker: Series[str] = pa.Field()
    permno: Series[int] = pa.Field()
    sdate: Series[pa.DateTime] = pa.Field(description="First valid date")
    edate: Series[pa.DateTime] = pa.Field(description="Last valid date")

    class Config:
        """Schema configuration."""

        name = "AnalystLinkSchema"
        strict = False
        coerce = True
