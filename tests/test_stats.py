import numpy as np
import pandas as pd
import pytest
from stats import (
    CorrelationSign,
    CorrelationStrength,
    InputLengthMismatchError,
    TrendDirection,
    categorize_correlation,
    correlate_metrics,
    correlation_matrix,
    describe_correlation,
    detect_trends,
    linear_regression,
    pearson_correlation,
    trend_slope,
)


@pytest.fixture
def random_pairs():
    """Reproducible random samples of assorted lengths."""
    rng = np.random.default_rng(42)
    return [(rng.normal(size=n), rng.normal(size=n)) for n in (2, 3, 10, 50)]


def test_pearson_perfect_negative():
    assert pearson_correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)


def test_pearson_self_correlation_is_one():
    x = [4.2, 1.0, 7.5, 3.3, 9.9]
    assert pearson_correlation(x, x) == pytest.approx(1.0)


def test_pearson_is_symmetric(random_pairs):
    for x, y in random_pairs:
        assert pearson_correlation(x, y) == pytest.approx(pearson_correlation(y, x))


def test_pearson_within_bounds(random_pairs):
    for x, y in random_pairs:
        assert -1.0 <= pearson_correlation(x, y) <= 1.0


def test_pearson_matches_numpy(random_pairs):
    x, y = random_pairs[-1]
    assert np.isclose(pearson_correlation(x, y), np.corrcoef(x, y)[0, 1])


def test_pearson_zero_variance_returns_zero():
    """Every state reporting the same value means no attributable correlation."""
    assert pearson_correlation([5, 5, 5, 5], [1, 7, 2, 9]) == 0.0
    assert pearson_correlation([1, 7, 2, 9], [3, 3, 3, 3]) == 0.0


@pytest.mark.parametrize("x, y", [
    ([0.1] * 7, [1, 5, 2, 8, 3, 9, 4]),
    ([1, 5, 2, 8, 3, 9, 4], [0.1] * 7),
    ([0.1] * 7, [0.7] * 7),
    ([0.055] * 5, [3.3] * 5),
])
def test_pearson_constant_float_series_returns_zero(x, y):
    """A float mean of a constant series is inexact; it must still count as zero variance."""
    r = pearson_correlation(x, y)
    assert r == 0.0
    assert categorize_correlation(r).sign is CorrelationSign.NONE


def test_pearson_insufficient_samples_is_none():
    assert pearson_correlation([1.0], [2.0]) is None
    assert pearson_correlation([], []) is None


def test_pearson_length_mismatch_raises():
    with pytest.raises(InputLengthMismatchError):
        pearson_correlation([1, 2, 3], [1, 2])


def test_pearson_rejects_nan():
    with pytest.raises(ValueError):
        pearson_correlation([1, 2, np.nan], [1, 2, 3])


def test_linear_regression_literal():
    fit = linear_regression([1, 2, 3, 4], [2, 4, 6, 8])
    assert fit.slope == pytest.approx(2.0)
    assert fit.intercept == pytest.approx(0.0)


def test_linear_regression_refit_on_prediction_is_stable():
    x = [0.5, 1.5, 2.0, 4.0, 7.0]
    y = [1.1, 2.9, 3.2, 6.8, 12.5]
    fit = linear_regression(x, y)
    refit = linear_regression(x, fit.predict(x))
    assert refit.slope == pytest.approx(fit.slope)
    assert refit.intercept == pytest.approx(fit.intercept)


def test_linear_regression_zero_variance_x():
    fit = linear_regression([3, 3, 3], [1, 2, 6])
    assert fit.slope == 0.0
    assert fit.intercept == pytest.approx(3.0)


def test_linear_regression_constant_float_x():
    fit = linear_regression([0.1] * 7, [1, 5, 2, 8, 3, 9, 4])
    assert fit.slope == 0.0
    assert fit.intercept == pytest.approx(32 / 7)


def test_linear_regression_guards():
    assert linear_regression([1], [1]) is None
    with pytest.raises(InputLengthMismatchError):
        linear_regression([1, 2], [1, 2, 3])


def test_trend_slope_needs_three_points():
    assert trend_slope([(2016, 0.1), (2017, 0.9)], "PM2.5") is None
    assert trend_slope([], "PM2.5") is None


def test_trend_slope_increasing():
    series = [(2016, 0.1), (2017, 0.2), (2018, 0.3), (2019, 0.4)]
    trend = trend_slope(series, "PM2.5")
    assert trend.metric == "PM2.5"
    assert trend.slope == pytest.approx(0.1)
    assert trend.direction is TrendDirection.INCREASING
    assert (trend.start_year, trend.end_year) == (2016, 2019)


def test_trend_slope_uses_index_not_calendar_year():
    """A gap between years must not shrink the slope."""
    series = [(2016, 0.5), (2019, 0.3), (2022, 0.1)]
    trend = trend_slope(series, "O3")
    assert trend.slope == pytest.approx(-0.2)
    assert trend.direction is TrendDirection.DECREASING


def test_trend_slope_sorts_by_year():
    series = [(2018, 0.3), (2016, 0.1), (2017, 0.2)]
    assert trend_slope(series, "CO").direction is TrendDirection.INCREASING


def test_trend_slope_below_threshold_is_none():
    series = [(2016, 0.10), (2017, 0.12), (2018, 0.14)]
    assert trend_slope(series, "NO2") is None
    assert trend_slope(series, "NO2", threshold=0.01) is not None


@pytest.mark.parametrize("r, strength, sign", [
    (0.75, CorrelationStrength.STRONG, CorrelationSign.POSITIVE),
    (-0.1, CorrelationStrength.VERY_WEAK, CorrelationSign.NEGATIVE),
    (0, CorrelationStrength.VERY_WEAK, CorrelationSign.NONE),
    (0.2, CorrelationStrength.WEAK, CorrelationSign.POSITIVE),
    (-0.5, CorrelationStrength.MODERATE, CorrelationSign.NEGATIVE),
    (0.8, CorrelationStrength.VERY_STRONG, CorrelationSign.POSITIVE),
    (-1.0, CorrelationStrength.VERY_STRONG, CorrelationSign.NEGATIVE),
])
def test_categorize_correlation(r, strength, sign):
    category = categorize_correlation(r)
    assert category.strength is strength
    assert category.sign is sign


def test_categorize_correlation_custom_breakpoints():
    assert categorize_correlation(0.3, breakpoints=(0.1, 0.2, 0.5, 0.9)).strength is CorrelationStrength.MODERATE


def test_describe_correlation():
    assert describe_correlation(0.75) == "strong positive correlation"
    assert describe_correlation(None) == "insufficient data"


def test_correlate_metrics_pairs_on_shared_states():
    pm25 = {"CA": 12.0, "TX": 9.0, "NY": 8.0, "WA": 6.0}
    respiratory = {"CA": 5.0, "TX": 4.0, "NY": 3.5, "FL": 2.0}
    sample = correlate_metrics(pm25, respiratory, 2022, "PM2.5")
    assert sample.sample_size == 3
    assert sample.year == 2022
    assert sample.independent_metric == "PM2.5"
    assert sample.coefficient == pytest.approx(pearson_correlation([12, 9, 8], [5, 4, 3.5]))


def test_correlate_metrics_single_shared_state_is_none():
    assert correlate_metrics({"CA": 1.0, "TX": 2.0}, {"CA": 3.0}, 2020, "CO") is None


def test_correlate_metrics_ignores_missing_values():
    sample = correlate_metrics({"CA": 1.0, "TX": np.nan, "NY": 3.0}, {"CA": 2.0, "TX": 5.0, "NY": 6.0}, 2019, "SO2")
    assert sample.sample_size == 2


@pytest.fixture
def observations():
    rows = []
    states = ["CA", "TX", "NY", "WA"]
    for offset, year in enumerate([2016, 2017, 2018, 2019]):
        for i, state in enumerate(states):
            rows.append({"state": state, "year": year, "metric": "respiratory_index", "value": float(i)})
            # PM2.5 tracks the respiratory index more closely each year
            noise = [0.9, -0.9, 0.9, -0.9][i] * (3 - offset)
            rows.append({"state": state, "year": year, "metric": "PM2.5", "value": float(i) + noise})
        rows.append({"state": "CA", "year": year, "metric": "O3", "value": 0.05})
    return pd.DataFrame(rows)


def test_correlation_matrix_shape(observations):
    matrix = correlation_matrix(observations, "respiratory_index", [2016, 2017, 2018, 2019], ["PM2.5", "O3"])
    assert list(matrix.columns) == ["metric", "year", "coefficient", "sample_size"]
    # O3 only has one state per year, so it never produces a result
    assert set(matrix["metric"]) == {"PM2.5"}
    assert len(matrix) == 4
    assert (matrix["sample_size"] == 4).all()
    assert matrix["coefficient"].between(-1, 1).all()


def test_detect_trends(observations):
    matrix = correlation_matrix(observations, "respiratory_index", [2016, 2017, 2018, 2019], ["PM2.5"])
    trends = detect_trends(matrix)
    assert len(trends) == 1
    assert trends[0].metric == "PM2.5"
    assert trends[0].direction is TrendDirection.INCREASING


def test_detect_trends_empty_matrix():
    assert detect_trends(pd.DataFrame(columns=["metric", "year", "coefficient", "sample_size"])) == []
