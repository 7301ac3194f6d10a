# config.py

"""
Central configuration file for the Air Quality & Respiratory Health dashboard.
This file stores constants and settings to make the application more maintainable.
"""

from typing import Dict, Final, List, Tuple

# Locations of the source CSVs. Entries may be local paths or http(s) URLs.
DATA_SOURCES: Final[Dict[str, str]] = {
    "respiratory": "data/data.csv",
    "air_quality": "data/data3.csv",
    "influenza": "data/InfluenzaChart.csv",
    "aq_map": "data/aq-map-data.csv",
}

# File paths for local data assets
STATES_GEOJSON_PATH: Final[str] = "data/us-states.geojson"
# Precomputed combined per-state table, written by build_state_summary.py
STATE_SUMMARY_PATH: Final[str] = "state_summary.parquet"

YEARS: Final[List[int]] = [2016, 2017, 2018, 2019, 2020, 2021, 2022]
DEFAULT_YEAR: Final[int] = 2022

POLLUTANTS: Final[List[str]] = ["PM2.5", "O3", "CO", "PM10", "SO2", "NO2"]
DEFAULT_POLLUTANT: Final[str] = "PM2.5"

# Metric name used for the respiratory index in observation tables
RESPIRATORY_METRIC: Final[str] = "respiratory_index"

# --- Statistics ---
# Minimum |slope| of correlation-per-period before a trend is reported
TREND_SIGNIFICANCE_THRESHOLD: Final[float] = 0.03
TREND_MIN_POINTS: Final[int] = 3
# Upper bounds on |r| for very-weak, weak, moderate, strong
CORRELATION_STRENGTH_BREAKPOINTS: Final[Tuple[float, float, float, float]] = (0.2, 0.4, 0.6, 0.8)

# --- Indicator tiers ---
# Each tier covers values below "max"; the last tier is open-ended.
RESPIRATORY_TIERS: Final[List[dict]] = [
    {"label": "Very Good", "max": 2.0},
    {"label": "Good", "max": 3.5},
    {"label": "Moderate", "max": 5.0},
    {"label": "Poor", "max": 6.5},
    {"label": "Very Poor", "max": float("inf")},
]

INFLUENZA_TIERS: Final[List[dict]] = [
    {"label": "Low", "max": 5.0},
    {"label": "Moderate", "max": 15.0},
    {"label": "High", "max": float("inf")},
]

# Annual-mean breakpoints per pollutant (good upper bound, moderate upper bound)
AIR_QUALITY_BREAKPOINTS: Final[Dict[str, Tuple[float, float]]] = {
    "PM2.5": (12.0, 35.5),
    "PM10": (55.0, 155.0),
    "O3": (0.055, 0.071),
    "CO": (4.5, 9.5),
    "SO2": (36.0, 76.0),
    "NO2": (54.0, 101.0),
}

# Influenza is only reported nationally; these spread the national rate over states.
INFLUENZA_REGION_MULTIPLIERS: Final[Dict[str, float]] = {
    "northeast": 1.1,
    "midwest": 0.9,
    "south": 1.2,
    "west": 0.8,
}
# 2020-2021 influenza activity was suppressed during the COVID-19 pandemic
INFLUENZA_PANDEMIC_YEARS: Final[List[int]] = [2020, 2021]
INFLUENZA_PANDEMIC_MULTIPLIERS: Final[Dict[str, float]] = {
    "northeast": 0.6,
    "midwest": 0.5,
    "south": 0.7,
    "west": 0.4,
}

# --- Map ---
DEFAULT_MAP_LOCATION: Final[List[float]] = [39.8283, -98.5795]
DEFAULT_ZOOM: Final[int] = 4
NO_DATA_COLOR: Final[str] = "#808080"

POLLUTANT_COLOR_SCALES: Final[Dict[str, Dict[str, str]]] = {
    "PM2.5": {"good": "#4CAF50", "moderate": "#FFC107", "unhealthy": "#F44336"},
    "O3": {"good": "#82ca9d", "moderate": "#ffc658", "unhealthy": "#d32f2f"},
    "CO": {"good": "#81c784", "moderate": "#ffb74d", "unhealthy": "#e53935"},
    "PM10": {"good": "#66bb6a", "moderate": "#ffa726", "unhealthy": "#d50000"},
    "SO2": {"good": "#26a69a", "moderate": "#ff8f00", "unhealthy": "#c62828"},
    "NO2": {"good": "#00897b", "moderate": "#ef6c00", "unhealthy": "#b71c1c"},
}

RESPIRATORY_COLOR_SCALE: Final[List[str]] = ["#1a9641", "#a6d96a", "#ffffbf", "#fdae61", "#d7191c"]
