# schemas.py
"""Data validation schemas for the air quality and respiratory health dashboard."""

import pandera as pa
from pandera.typing import Series

from config import POLLUTANTS


class RespiratorySchema(pa.DataFrameModel):
    """Schema for the raw respiratory illness activity table."""
    STATE: Series[str] = pa.Field(nullable=False)
    YEAR: Series[int] = pa.Field(nullable=False, coerce=True)
    LEVEL: Series[float] = pa.Field(nullable=True, coerce=True)


class InfluenzaSchema(pa.DataFrameModel):
    """Schema for the raw influenza surveillance table."""
    COUNTRY_CODE: Series[str] = pa.Field(nullable=False)
    ISO_YEAR: Series[int] = pa.Field(nullable=False, coerce=True)
    INF_ALL: Series[float] = pa.Field(nullable=True, coerce=True)


class AirQualityMapSchema(pa.DataFrameModel):
    """Schema for the long-format air quality map table."""
    State: Series[str] = pa.Field(nullable=False, str_length={"min_value": 2, "max_value": 2})
    Pollutant: Series[str] = pa.Field(isin=POLLUTANTS)
    Year: Series[int] = pa.Field(nullable=False, coerce=True)
    Value: Series[float] = pa.Field(nullable=False, coerce=True)


class ObservationSchema(pa.DataFrameModel):
    """Schema for long (state, year, metric, value) observation tables."""
    state: Series[str] = pa.Field(nullable=False)
    year: Series[int] = pa.Field(nullable=False, coerce=True)
    metric: Series[str] = pa.Field(nullable=False)
    value: Series[float] = pa.Field(nullable=True, coerce=True)


class StateSummarySchema(pa.DataFrameModel):
    """Schema for the combined per-state indicator table."""
    state: Series[str] = pa.Field(nullable=False)
    description: Series[str] = pa.Field(nullable=False)
    year: Series[int] = pa.Field(nullable=False, coerce=True)
    respiratory_index: Series[float] = pa.Field(nullable=True, coerce=True)
    respiratory_category: Series[str] = pa.Field(nullable=False)
    air_quality_value: Series[float] = pa.Field(nullable=True, coerce=True)
    air_quality: Series[str] = pa.Field(nullable=False)
    influenza_value: Series[float] = pa.Field(nullable=True, coerce=True)
    influenza_rate: Series[str] = pa.Field(nullable=False)
