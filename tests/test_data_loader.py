# -*- coding: utf-8 -*-
import numpy as np
import pandas as pd
import pytest
import requests
from unittest.mock import patch, MagicMock
from data_loader import (
    NO_DATA,
    DataSourceError,
    air_quality_observations,
    build_time_series,
    classify_air_quality,
    classify_value,
    clean_aq_map_data,
    combine_state_data,
    distribute_influenza_by_state,
    influenza_by_year,
    influenza_state_factor,
    process_air_quality_for_year,
    process_data_for_year,
    process_influenza_for_year,
    process_respiratory_for_year,
    read_csv_source,
    read_source,
    respiratory_observations,
)
from config import INFLUENZA_TIERS, RESPIRATORY_TIERS


@pytest.fixture
def respiratory_df():
    return pd.DataFrame({
        "STATE": ["California", "California", "Texas", "New York City", "New York", "Guam", "WA"],
        "YEAR": [2022, 2022, 2022, 2022, 2022, 2022, 2021],
        "LEVEL": [4.0, 6.0, 1.5, 3.0, 5.0, 7.0, 2.0],
    })


@pytest.fixture
def air_quality_df():
    return pd.DataFrame({
        "State": ["CA", "TX", "NY", "CA"],
        "Pollutant": ["PM2.5", "PM2.5", "PM2.5", "O3"],
        "2021": [11.0, 9.5, np.nan, 0.06],
        "2022": [13.2, 8.1, 40.0, 0.07],
    })


@pytest.fixture
def influenza_df():
    return pd.DataFrame({
        "COUNTRY_CODE": ["USA", "USA", "USA", "CAN"],
        "ISO_YEAR": [2022, 2022, 2021, 2022],
        "ISO_WEEK": [1, 2, 1, 1],
        "INF_ALL": [10.0, np.nan, 4.0, 100.0],
    })


@pytest.mark.parametrize("level, label", [
    (0.0, "Very Good"), (1.99, "Very Good"), (2.0, "Good"), (3.5, "Moderate"),
    (5.0, "Poor"), (6.5, "Very Poor"), (8.0, "Very Poor"), (np.nan, NO_DATA),
])
def test_classify_respiratory_levels(level, label):
    assert classify_value(level, RESPIRATORY_TIERS) == label


def test_classify_influenza_and_air_quality():
    assert classify_value(4.9, INFLUENZA_TIERS) == "Low"
    assert classify_value(5.0, INFLUENZA_TIERS) == "Moderate"
    assert classify_value(15.0, INFLUENZA_TIERS) == "High"
    assert classify_air_quality(11.9) == "Good"
    assert classify_air_quality(12.0) == "Moderate"
    assert classify_air_quality(35.5) == "Unhealthy"
    assert classify_air_quality(None) == NO_DATA


def test_process_respiratory_for_year(respiratory_df):
    result = process_respiratory_for_year(respiratory_df, 2022)
    assert result.loc["CA", "respiratory_index"] == pytest.approx(5.0)
    assert result.loc["CA", "respiratory_category"] == "Poor"
    # New York City and New York both report under NY
    assert result.loc["NY", "respiratory_index"] == pytest.approx(4.0)
    assert "Guam" not in result.index
    assert "WA" not in result.index


def test_process_air_quality_for_year(air_quality_df):
    result = process_air_quality_for_year(air_quality_df, 2021)
    assert set(result.index) == {"CA", "TX"}
    assert result.loc["CA", "air_quality_value"] == pytest.approx(11.0)
    assert result.loc["CA", "air_quality"] == "Good"

    o3 = process_air_quality_for_year(air_quality_df, 2022, "O3")
    assert o3.loc["CA", "air_quality"] == "Moderate"


def test_process_air_quality_missing_year(air_quality_df):
    assert process_air_quality_for_year(air_quality_df, 2016).empty


def test_process_influenza_for_year(influenza_df):
    assert process_influenza_for_year(influenza_df, 2022) == pytest.approx(10.0)
    assert process_influenza_for_year(influenza_df, 2021) == pytest.approx(4.0)


def test_process_influenza_without_data_is_none(influenza_df):
    """A year with no reports stays missing instead of falling back to a default rate."""
    assert process_influenza_for_year(influenza_df, 2016) is None
    assert distribute_influenza_by_state(None, 2016).empty


def test_distribute_influenza_by_state():
    normal = distribute_influenza_by_state(10.0, 2019)
    pandemic = distribute_influenza_by_state(10.0, 2020)
    assert len(normal) == 51
    assert normal.loc["TX", "influenza_value"] == pytest.approx(10.0 * 1.2 * influenza_state_factor("TX", 2019))
    assert (pandemic["influenza_value"] < normal["influenza_value"]).all()
    assert normal.loc["TX", "influenza_rate"] in {"Low", "Moderate", "High"}


def test_influenza_state_factor_range():
    for code in ["AL", "WY", "NY", "DC"]:
        for year in range(2016, 2023):
            assert 0.85 <= influenza_state_factor(code, year) <= 1.14


def test_combine_state_data_keeps_missing_values(respiratory_df, air_quality_df):
    combined = combine_state_data(
        process_respiratory_for_year(respiratory_df, 2022),
        process_air_quality_for_year(air_quality_df, 2021),
        distribute_influenza_by_state(None, 2022),
        2022,
    )
    ny = combined[combined["state"] == "NY"].iloc[0]
    assert ny["description"] == "New York"
    assert np.isnan(ny["air_quality_value"])
    assert ny["air_quality"] == NO_DATA
    assert np.isnan(ny["influenza_value"])
    assert ny["influenza_rate"] == NO_DATA
    assert (combined["year"] == 2022).all()


def test_process_data_for_year(respiratory_df, air_quality_df, influenza_df):
    summary = process_data_for_year(respiratory_df, air_quality_df, influenza_df, 2022)
    assert summary["state"].is_unique
    ca = summary[summary["state"] == "CA"].iloc[0]
    assert ca["air_quality_value"] == pytest.approx(13.2)
    assert ca["respiratory_category"] == "Poor"
    assert not np.isnan(ca["influenza_value"])


def test_build_time_series(respiratory_df, air_quality_df, influenza_df):
    series = build_time_series(respiratory_df, air_quality_df, influenza_df, years=[2021, 2022])
    assert set(series["year"]) == {2021, 2022}


def test_influenza_by_year(influenza_df):
    rates = influenza_by_year(influenza_df, years=[2020, 2021, 2022])
    assert np.isnan(rates.loc[0, "rate"])
    assert rates.loc[2, "rate"] == pytest.approx(10.0)


def test_observation_tables(respiratory_df, air_quality_df):
    aq = air_quality_observations(air_quality_df)
    assert list(aq.columns) == ["state", "year", "metric", "value"]
    assert len(aq) == 8
    assert aq[(aq["state"] == "CA") & (aq["metric"] == "O3") & (aq["year"] == 2022)]["value"].iloc[0] == pytest.approx(0.07)

    resp = respiratory_observations(respiratory_df)
    assert set(resp["metric"]) == {"respiratory_index"}
    assert resp[(resp["state"] == "WA") & (resp["year"] == 2021)]["value"].iloc[0] == pytest.approx(2.0)


def test_clean_aq_map_data():
    raw = pd.DataFrame({
        "State": ["CA", "TX", None, "NY"],
        "Pollutant": ["PM2.5", "O3", "CO", "NO2"],
        "Year": ["2020", 2021, 2022, 2022],
        "Value": [9.1, "0.06", 1.0, None],
    })
    cleaned = clean_aq_map_data(raw)
    assert list(cleaned["State"]) == ["CA", "TX"]
    assert cleaned["Year"].tolist() == [2020, 2021]


def test_read_csv_source_local(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("STATE,YEAR,LEVEL\nTexas,2022,3.5\n\n")
    df = read_csv_source(str(path))
    assert len(df) == 1
    assert df["LEVEL"].iloc[0] == 3.5


def test_read_csv_source_missing_file(tmp_path):
    with pytest.raises(DataSourceError):
        read_csv_source(str(tmp_path / "missing.csv"))


def test_read_csv_source_url():
    mock_response = MagicMock()
    mock_response.text = "State,Pollutant,2022\nCA,PM2.5,12.5\n"
    mock_response.raise_for_status = MagicMock()
    with patch("requests.get", return_value=mock_response) as mock_get:
        df = read_csv_source("https://example.org/data3.csv")
    assert mock_get.called
    assert df["State"].iloc[0] == "CA"


def test_read_csv_source_url_retries_then_fails():
    with patch("requests.get", side_effect=requests.ConnectionError("down")) as mock_get, \
         patch("time.sleep") as mock_sleep:
        with pytest.raises(DataSourceError):
            read_csv_source("https://example.org/data.csv", retries=3, retry_delay=0)
    assert mock_get.call_count == 3
    assert mock_sleep.call_count == 2


def test_read_source_validates_respiratory_table():
    raw = pd.DataFrame({"STATE": ["Texas"], "YEAR": ["2022"], "LEVEL": ["3.5"]})
    with patch("data_loader.read_csv_source", return_value=raw):
        df = read_source("respiratory")
    assert df["YEAR"].iloc[0] == 2022
    assert df["LEVEL"].iloc[0] == pytest.approx(3.5)


def test_read_source_rejects_malformed_table():
    from pandera.errors import SchemaError
    raw = pd.DataFrame({"COUNTRY_CODE": ["USA"], "ISO_YEAR": ["not a year"], "INF_ALL": [1.0]})
    with patch("data_loader.read_csv_source", return_value=raw):
        with pytest.raises(SchemaError):
            read_source("influenza")
