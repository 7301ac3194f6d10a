import logging
import os
import time
from io import StringIO
from typing import Iterable, List, Optional

import geopandas as gpd
import numpy as np
import pandas as pd
import requests
import streamlit as st

from config import (
    AIR_QUALITY_BREAKPOINTS,
    DATA_SOURCES,
    DEFAULT_POLLUTANT,
    INFLUENZA_PANDEMIC_MULTIPLIERS,
    INFLUENZA_PANDEMIC_YEARS,
    INFLUENZA_REGION_MULTIPLIERS,
    INFLUENZA_TIERS,
    RESPIRATORY_METRIC,
    RESPIRATORY_TIERS,
    STATES_GEOJSON_PATH,
    YEARS,
)
from regions import CENSUS_REGIONS, get_state_code, get_state_name
from schemas import AirQualityMapSchema, InfluenzaSchema, ObservationSchema, RespiratorySchema, StateSummarySchema

logger = logging.getLogger(__name__)

NO_DATA = "No data"

SUMMARY_COLUMNS = [
    "state", "description", "year",
    "respiratory_index", "respiratory_category",
    "air_quality_value", "air_quality",
    "influenza_value", "influenza_rate",
]


class DataSourceError(RuntimeError):
    """Raised when a CSV source cannot be read."""


# --- Classification ---

def classify_value(value: float, tiers: List[dict]) -> str:
    """
    Returns the label of the first tier whose upper bound exceeds the value.
    Missing values are labelled "No data".
    """
    if value is None or pd.isna(value):
        return NO_DATA
    for tier in tiers:
        if value < tier["max"]:
            return tier["label"]
    return tiers[-1]["label"]


def classify_air_quality(value: float, pollutant: str = DEFAULT_POLLUTANT) -> str:
    good_max, moderate_max = AIR_QUALITY_BREAKPOINTS[pollutant]
    tiers = [
        {"label": "Good", "max": good_max},
        {"label": "Moderate", "max": moderate_max},
        {"label": "Unhealthy", "max": float("inf")},
    ]
    return classify_value(value, tiers)


# --- Source reading ---

def read_csv_source(location: str, retries: int = 3, retry_delay: float = 5, timeout: int = 60) -> pd.DataFrame:
    """
    Reads a CSV from a local path or an http(s) URL.

    URL downloads are retried up to `retries` times before a DataSourceError
    is raised.
    """
    if not location.startswith(("http://", "https://")):
        if not os.path.exists(location):
            raise DataSourceError(f"Data file not found: {location}")
        logger.info(f"Reading {location}")
        return pd.read_csv(location, skip_blank_lines=True)

    last_error = None
    for attempt in range(retries):
        try:
            response = requests.get(location, timeout=timeout)
            response.raise_for_status()
            logger.info(f"Downloaded {location} ({len(response.text)} bytes)")
            return pd.read_csv(StringIO(response.text), skip_blank_lines=True)
        except requests.RequestException as e:
            last_error = e
            logger.warning(f"Attempt {attempt + 1} of {retries} failed for {location}: {e}")
            if attempt < retries - 1:
                time.sleep(retry_delay)

    raise DataSourceError(f"Could not download {location} after {retries} attempts: {last_error}")


# Raw tables checked on load; the air quality table is wide and checked after melting
SOURCE_SCHEMAS = {
    "respiratory": RespiratorySchema,
    "influenza": InfluenzaSchema,
}


def read_source(name: str) -> pd.DataFrame:
    """Reads one of the configured CSV sources by name and validates it where a schema exists."""
    df = read_csv_source(DATA_SOURCES[name])
    schema = SOURCE_SCHEMAS.get(name)
    return schema.validate(df) if schema is not None else df


@st.cache_data(show_spinner=False)
def load_source(name: str) -> pd.DataFrame:
    """Cached read_source for the app session."""
    return read_source(name)


# --- Per-year processing ---

def process_respiratory_for_year(df: pd.DataFrame, year: int) -> pd.DataFrame:
    """
    Average respiratory activity level per state for one year.

    Returns a frame indexed by state code with respiratory_index and
    respiratory_category columns.
    """
    year_df = df[df["YEAR"] == year].copy()
    year_df["state"] = year_df["STATE"].map(get_state_code)
    unmapped = year_df.loc[year_df["state"].isna(), "STATE"].unique()
    if len(unmapped):
        logger.info(f"Skipping {len(unmapped)} unmapped jurisdictions for {year}: {list(unmapped)}")
    year_df = year_df.dropna(subset=["state"])
    year_df["LEVEL"] = pd.to_numeric(year_df["LEVEL"], errors="coerce")

    result = year_df.groupby("state")["LEVEL"].mean().to_frame("respiratory_index")
    result["respiratory_category"] = result["respiratory_index"].map(
        lambda level: classify_value(level, RESPIRATORY_TIERS)
    )
    return result


def process_air_quality_for_year(df: pd.DataFrame, year: int, pollutant: str = DEFAULT_POLLUTANT) -> pd.DataFrame:
    """
    Pollutant reading per state for one year from the wide air quality table
    (State, Pollutant, one column per year). States without a reading are omitted.
    """
    year_col = str(year)
    columns = {str(col): col for col in df.columns}
    if year_col not in columns:
        logger.warning(f"Air quality table has no column for {year}")
        return pd.DataFrame(columns=["air_quality_value", "air_quality"], index=pd.Index([], name="state"))

    subset = df[df["Pollutant"] == pollutant].copy()
    subset["air_quality_value"] = pd.to_numeric(subset[columns[year_col]], errors="coerce")
    subset = subset.dropna(subset=["State", "air_quality_value"])
    subset["state"] = subset["State"].astype(str).str.strip()

    result = subset.groupby("state")["air_quality_value"].mean().to_frame()
    result["air_quality"] = result["air_quality_value"].map(lambda value: classify_air_quality(value, pollutant))
    return result


def process_influenza_for_year(df: pd.DataFrame, year: int) -> Optional[float]:
    """
    Mean national influenza rate (INF_ALL) for the US in one ISO year.
    Returns None when the year has no reported values.
    """
    rates = pd.to_numeric(
        df.loc[(df["COUNTRY_CODE"] == "USA") & (df["ISO_YEAR"] == year), "INF_ALL"],
        errors="coerce",
    ).dropna()
    if rates.empty:
        logger.info(f"No influenza data reported for {year}")
        return None
    return float(rates.mean())


def influenza_state_factor(state_code: str, year: int) -> float:
    """Deterministic per-state spread in [0.85, 1.14] so estimates are stable across reruns."""
    spread = (ord(state_code[0]) + ord(state_code[1]) + year) % 30
    return 0.85 + spread / 100


def distribute_influenza_by_state(national_rate: Optional[float], year: int) -> pd.DataFrame:
    """
    Estimates state-level influenza rates from the national rate.

    Influenza surveillance is only reported nationally, so each state gets the
    national rate scaled by its Census region multiplier and a fixed per-state
    factor. These are estimates, not observations.
    """
    if national_rate is None:
        return pd.DataFrame(columns=["influenza_value", "influenza_rate"], index=pd.Index([], name="state"))

    if year in INFLUENZA_PANDEMIC_YEARS:
        multipliers = INFLUENZA_PANDEMIC_MULTIPLIERS
    else:
        multipliers = INFLUENZA_REGION_MULTIPLIERS

    rates = {}
    for region, states in CENSUS_REGIONS.items():
        for state_code in states:
            rates[state_code] = national_rate * multipliers[region] * influenza_state_factor(state_code, year)

    result = pd.Series(rates, dtype=float).to_frame("influenza_value")
    result.index.name = "state"
    result["influenza_rate"] = result["influenza_value"].map(lambda rate: classify_value(rate, INFLUENZA_TIERS))
    return result


def combine_state_data(
    respiratory: pd.DataFrame,
    air_quality: pd.DataFrame,
    influenza: pd.DataFrame,
    year: int,
) -> pd.DataFrame:
    """
    Joins the per-state frames into one row per state.

    Every state present in any input appears once; indicators a state lacks
    stay NaN with a "No data" category.
    """
    combined = pd.concat([respiratory, air_quality, influenza], axis=1, join="outer")
    combined = combined.reindex(columns=SUMMARY_COLUMNS[3:])
    combined.index.name = "state"
    combined = combined.reset_index().sort_values("state", ignore_index=True)

    for category_col in ["respiratory_category", "air_quality", "influenza_rate"]:
        combined[category_col] = combined[category_col].fillna(NO_DATA).astype(str)
    for value_col in ["respiratory_index", "air_quality_value", "influenza_value"]:
        combined[value_col] = combined[value_col].astype(float)

    combined["state"] = combined["state"].astype(str)
    combined["description"] = combined["state"].map(get_state_name).astype(str)
    combined["year"] = year
    return StateSummarySchema.validate(combined[SUMMARY_COLUMNS])


def process_data_for_year(
    respiratory_df: pd.DataFrame,
    air_quality_df: pd.DataFrame,
    influenza_df: pd.DataFrame,
    year: int,
    pollutant: str = DEFAULT_POLLUTANT,
) -> pd.DataFrame:
    return combine_state_data(
        process_respiratory_for_year(respiratory_df, year),
        process_air_quality_for_year(air_quality_df, year, pollutant),
        distribute_influenza_by_state(process_influenza_for_year(influenza_df, year), year),
        year,
    )


def build_time_series(
    respiratory_df: pd.DataFrame,
    air_quality_df: pd.DataFrame,
    influenza_df: pd.DataFrame,
    years: Iterable[int] = YEARS,
    pollutant: str = DEFAULT_POLLUTANT,
) -> pd.DataFrame:
    """Combined per-state indicators for every year, stacked into one frame."""
    frames = [
        process_data_for_year(respiratory_df, air_quality_df, influenza_df, year, pollutant)
        for year in years
    ]
    if not frames:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)
    return pd.concat(frames, ignore_index=True)


def influenza_by_year(df: pd.DataFrame, years: Iterable[int] = YEARS) -> pd.DataFrame:
    """National influenza rate per year; years without data keep a NaN rate."""
    years = list(years)
    rates = [process_influenza_for_year(df, year) for year in years]
    return pd.DataFrame({
        "year": years,
        "rate": [np.nan if rate is None else rate for rate in rates],
    })


# --- Observation tables for the statistics engine ---

def respiratory_observations(df: pd.DataFrame) -> pd.DataFrame:
    """Long (state, year, metric, value) table of mean respiratory level."""
    obs = df[["STATE", "YEAR", "LEVEL"]].copy()
    obs["state"] = obs["STATE"].map(get_state_code)
    obs["value"] = pd.to_numeric(obs["LEVEL"], errors="coerce")
    obs = obs.dropna(subset=["state"])
    obs = obs.groupby(["state", "YEAR"], as_index=False)["value"].mean()
    obs = obs.rename(columns={"YEAR": "year"})
    obs["metric"] = RESPIRATORY_METRIC
    return ObservationSchema.validate(obs[["state", "year", "metric", "value"]])


def air_quality_observations(df: pd.DataFrame) -> pd.DataFrame:
    """Melts the wide air quality table into a long (state, year, metric, value) table."""
    year_cols = [col for col in df.columns if str(col).strip().isdigit()]
    long_df = df.melt(
        id_vars=["State", "Pollutant"],
        value_vars=year_cols,
        var_name="year",
        value_name="value",
    )
    long_df = long_df.dropna(subset=["State", "Pollutant"])
    long_df["state"] = long_df["State"].astype(str).str.strip()
    long_df["metric"] = long_df["Pollutant"].astype(str).str.strip()
    long_df["year"] = long_df["year"].astype(str).str.strip().astype(int)
    long_df["value"] = pd.to_numeric(long_df["value"], errors="coerce")
    return ObservationSchema.validate(long_df[["state", "year", "metric", "value"]].reset_index(drop=True))


def build_observations(respiratory_df: pd.DataFrame, air_quality_df: pd.DataFrame) -> pd.DataFrame:
    return pd.concat(
        [air_quality_observations(air_quality_df), respiratory_observations(respiratory_df)],
        ignore_index=True,
    )


# --- Map data ---

def clean_aq_map_data(df: pd.DataFrame) -> pd.DataFrame:
    """Drops incomplete rows from the long air quality map table and coerces types."""
    df = df.dropna(subset=["State", "Pollutant", "Year", "Value"]).copy()
    df["State"] = df["State"].astype(str).str.strip()
    df["Pollutant"] = df["Pollutant"].astype(str).str.strip()
    df["Year"] = pd.to_numeric(df["Year"], errors="coerce")
    df["Value"] = pd.to_numeric(df["Value"], errors="coerce")
    df = df.dropna(subset=["Year", "Value"])
    df = df[df["State"] != ""]
    df["Year"] = df["Year"].astype(int)
    logger.info(f"Processed {len(df)} air quality map rows")
    return AirQualityMapSchema.validate(df[["State", "Pollutant", "Year", "Value"]].reset_index(drop=True))


@st.cache_data(show_spinner=False)
def load_aq_map_data() -> pd.DataFrame:
    try:
        return clean_aq_map_data(load_source("aq_map"))
    except DataSourceError as e:
        st.error(f"Could not load the air quality map data: {e}")
        return pd.DataFrame(columns=["State", "Pollutant", "Year", "Value"])


@st.cache_data(show_spinner=False)
def get_geojson() -> gpd.GeoDataFrame | None:
    """
    Loads the GeoJSON file for state boundaries.
    Cached indefinitely as it's a static file.
    """
    if not os.path.exists(STATES_GEOJSON_PATH):
        st.error(f"Fatal Error: The GeoJSON file was not found at {STATES_GEOJSON_PATH}")
        return None
    gdf = gpd.read_file(STATES_GEOJSON_PATH)
    gdf.rename(columns={"id": "state"}, inplace=True)
    return gdf
