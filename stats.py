# stats.py
"""
Statistics engine for the dashboard.

Pure functions over paired numeric samples: Pearson correlation, ordinary
least squares, trend slope of a correlation series and correlation strength
classification. Helpers at the bottom pair per-state indicator tables and
build the (pollutant x year) correlation matrix shown in the app.

Conventions:
  * Fewer than two paired samples is "no result" and is returned as None.
  * Zero variance in an input is "no detectable relationship" and gives 0.0.
  * Sequences of unequal length are a caller error and raise
    InputLengthMismatchError.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from config import (
    CORRELATION_STRENGTH_BREAKPOINTS,
    TREND_MIN_POINTS,
    TREND_SIGNIFICANCE_THRESHOLD,
)

logger = logging.getLogger(__name__)

MIN_CORRELATION_SAMPLES = 2


class InputLengthMismatchError(ValueError):
    """Raised when paired sequences do not have the same length."""


class CorrelationStrength(str, Enum):
    VERY_WEAK = "very-weak"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"
    VERY_STRONG = "very-strong"


class CorrelationSign(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NONE = "none"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"


@dataclass(frozen=True)
class LinearFit:
    slope: float
    intercept: float

    def predict(self, x: Sequence[float]) -> np.ndarray:
        return self.slope * np.asarray(x, dtype=float) + self.intercept


@dataclass(frozen=True)
class CorrelationSample:
    independent_metric: str
    year: int
    coefficient: float
    sample_size: int


@dataclass(frozen=True)
class TrendResult:
    metric: str
    slope: float
    direction: TrendDirection
    start_year: int
    end_year: int


@dataclass(frozen=True)
class CorrelationCategory:
    strength: CorrelationStrength
    sign: CorrelationSign


def _paired_arrays(x: Sequence[float], y: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.ndim != 1 or y_arr.ndim != 1:
        raise ValueError("Paired samples must be one-dimensional sequences.")
    if len(x_arr) != len(y_arr):
        raise InputLengthMismatchError(
            f"Paired samples must have equal length, got {len(x_arr)} and {len(y_arr)}."
        )
    if not (np.all(np.isfinite(x_arr)) and np.all(np.isfinite(y_arr))):
        raise ValueError("Paired samples must not contain NaN or infinite values.")
    return x_arr, y_arr


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> Optional[float]:
    """
    Pearson correlation coefficient of two equal-length samples.

    Returns None when fewer than two pairs are given, and 0.0 when either
    sample has no variance.
    """
    x_arr, y_arr = _paired_arrays(x, y)
    if len(x_arr) < MIN_CORRELATION_SAMPLES:
        return None
    # Checked on the raw values; a float mean of a constant series is not exact.
    if np.ptp(x_arr) == 0 or np.ptp(y_arr) == 0:
        return 0.0

    dx = x_arr - x_arr.mean()
    dy = y_arr - y_arr.mean()
    sum_sq_x = float(np.sum(dx * dx))
    sum_sq_y = float(np.sum(dy * dy))
    if sum_sq_x == 0 or sum_sq_y == 0:
        return 0.0

    r = float(np.sum(dx * dy)) / np.sqrt(sum_sq_x * sum_sq_y)
    return float(np.clip(r, -1.0, 1.0))


def linear_regression(x: Sequence[float], y: Sequence[float]) -> Optional[LinearFit]:
    """
    Ordinary least squares fit of y on x.

    Returns None when fewer than two pairs are given. When x has no
    variance the slope is 0 and the intercept is the mean of y.
    """
    x_arr, y_arr = _paired_arrays(x, y)
    if len(x_arr) < MIN_CORRELATION_SAMPLES:
        return None

    x_mean = x_arr.mean()
    y_mean = y_arr.mean()
    dx = x_arr - x_mean
    denominator = float(np.sum(dx * dx))
    if np.ptp(x_arr) == 0 or denominator == 0:
        slope = 0.0
    else:
        slope = float(np.sum(dx * (y_arr - y_mean))) / denominator
    return LinearFit(slope=slope, intercept=float(y_mean - slope * x_mean))


def trend_slope(
    series: Iterable[Tuple[int, float]],
    metric: str,
    threshold: float = TREND_SIGNIFICANCE_THRESHOLD,
    min_points: int = TREND_MIN_POINTS,
) -> Optional[TrendResult]:
    """
    Detects a strengthening or weakening correlation across years.

    The correlations are regressed against their position 0..n-1 rather than
    the calendar year, so slopes are comparable between metrics with gaps in
    their year coverage. Returns None when there are fewer than `min_points`
    points or when |slope| does not exceed `threshold`.
    """
    points = sorted(series, key=lambda point: point[0])
    if len(points) < min_points:
        return None

    years = [int(year) for year, _ in points]
    correlations = [float(value) for _, value in points]
    fit = linear_regression(np.arange(len(points)), correlations)
    if fit is None or abs(fit.slope) <= threshold:
        return None

    direction = TrendDirection.INCREASING if fit.slope > 0 else TrendDirection.DECREASING
    return TrendResult(
        metric=metric,
        slope=fit.slope,
        direction=direction,
        start_year=years[0],
        end_year=years[-1],
    )


def categorize_correlation(
    r: float,
    breakpoints: Sequence[float] = CORRELATION_STRENGTH_BREAKPOINTS,
) -> CorrelationCategory:
    """Buckets a coefficient by the magnitude breakpoints and its sign."""
    if len(breakpoints) != 4:
        raise ValueError("Exactly four strength breakpoints are required.")

    strengths = [
        CorrelationStrength.VERY_WEAK,
        CorrelationStrength.WEAK,
        CorrelationStrength.MODERATE,
        CorrelationStrength.STRONG,
    ]
    magnitude = abs(r)
    strength = CorrelationStrength.VERY_STRONG
    for bound, label in zip(breakpoints, strengths):
        if magnitude < bound:
            strength = label
            break

    if r == 0:
        sign = CorrelationSign.NONE
    elif r > 0:
        sign = CorrelationSign.POSITIVE
    else:
        sign = CorrelationSign.NEGATIVE
    return CorrelationCategory(strength=strength, sign=sign)


def describe_correlation(r: Optional[float]) -> str:
    """Short sentence fragment for a coefficient, e.g. 'moderate positive correlation'."""
    if r is None:
        return "insufficient data"
    category = categorize_correlation(r)
    strength = category.strength.value.replace("-", " ")
    if category.sign is CorrelationSign.NONE:
        return f"{strength} correlation (no direction)"
    return f"{strength} {category.sign.value} correlation"


# --- Pairing helpers ---

def pair_by_state(
    independent: Mapping[str, float], dependent: Mapping[str, float]
) -> pd.DataFrame:
    """Inner-joins two state -> value mappings, dropping states missing either value."""
    frame = pd.DataFrame({
        "x": pd.Series(dict(independent), dtype=float),
        "y": pd.Series(dict(dependent), dtype=float),
    })
    frame.index.name = "state"
    return frame.dropna().sort_index()


def correlate_metrics(
    independent: Mapping[str, float],
    dependent: Mapping[str, float],
    year: int,
    metric: str,
) -> Optional[CorrelationSample]:
    pairs = pair_by_state(independent, dependent)
    coefficient = pearson_correlation(pairs["x"], pairs["y"])
    if coefficient is None:
        logger.debug(f"No correlation for {metric} in {year}: {len(pairs)} paired states")
        return None
    return CorrelationSample(
        independent_metric=metric,
        year=int(year),
        coefficient=coefficient,
        sample_size=len(pairs),
    )


def state_values(observations: pd.DataFrame, metric: str, year: int) -> Dict[str, float]:
    subset = observations[(observations["metric"] == metric) & (observations["year"] == year)]
    return subset.dropna(subset=["value"]).groupby("state")["value"].mean().to_dict()


def correlation_matrix(
    observations: pd.DataFrame,
    dependent_metric: str,
    years: Sequence[int],
    metrics: Sequence[str],
) -> pd.DataFrame:
    """
    Correlates each metric against `dependent_metric` for every year.

    `observations` is a long table with columns state, year, metric, value.
    Returns one row per (metric, year) that produced a result, with columns
    metric, year, coefficient, sample_size.
    """
    rows = []
    for metric in metrics:
        for year in years:
            sample = correlate_metrics(
                state_values(observations, metric, year),
                state_values(observations, dependent_metric, year),
                year,
                metric,
            )
            if sample is not None:
                rows.append({
                    "metric": sample.independent_metric,
                    "year": sample.year,
                    "coefficient": sample.coefficient,
                    "sample_size": sample.sample_size,
                })
    return pd.DataFrame(rows, columns=["metric", "year", "coefficient", "sample_size"])


def detect_trends(
    matrix: pd.DataFrame, threshold: float = TREND_SIGNIFICANCE_THRESHOLD
) -> List[TrendResult]:
    """Runs trend_slope over each metric of a correlation matrix."""
    trends = []
    if matrix.empty:
        return trends
    for metric, group in matrix.groupby("metric", sort=False):
        points = list(zip(group["year"], group["coefficient"]))
        trend = trend_slope(points, metric, threshold=threshold)
        if trend is not None:
            trends.append(trend)
    return trends
