# -*- coding: utf-8 -*-
import logging

import streamlit as st
from pandera.errors import SchemaError

# --- Custom Modules ---
from config import POLLUTANTS, RESPIRATORY_METRIC, YEARS
from data_loader import (
    DataSourceError,
    build_observations,
    get_geojson,
    influenza_by_year,
    load_aq_map_data,
    load_source,
    process_data_for_year,
)
from map_view import create_state_map
from plotting import (
    plot_influenza_trend,
    plot_air_quality_trend,
    plot_respiratory_by_state,
    plot_correlation_scatter,
    plot_correlation_over_years,
    plot_correlation_heatmap,
    plot_state_choropleth,
    display_correlation_insights,
    display_state_insights,
)
from stats import correlate_metrics, correlation_matrix, detect_trends, linear_regression, pair_by_state, state_values
from ui import setup_page_config, display_header_and_about, display_sidebar, display_download_button

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

RESPIRATORY_LABEL = "Respiratory Index"


def main() -> None:
    """Main function to run the Streamlit application."""
    setup_page_config()
    display_header_and_about()

    try:
        respiratory_df = load_source("respiratory")
        air_quality_df = load_source("air_quality")
        influenza_df = load_source("influenza")
        observations = build_observations(respiratory_df, air_quality_df)
    except (DataSourceError, SchemaError, KeyError) as e:
        st.error(f"Failed to load data. Please try again later. Details: {e}")
        st.stop()

    state_codes = sorted(observations["state"].unique().tolist())
    year_choice, pollutant_choice, selected_states = display_sidebar(state_codes)

    summary = process_data_for_year(respiratory_df, air_quality_df, influenza_df, year_choice, pollutant_choice)

    tabs = st.tabs(["Correlation Analysis", "Air Quality", "Respiratory Illness", "Influenza", "U.S. Map"])

    with tabs[0]:
        handle_correlation_view(observations, year_choice, pollutant_choice)
    with tabs[1]:
        focus_states = selected_states or state_codes[:5]
        fig = plot_air_quality_trend(observations, pollutant_choice, focus_states)
        st.plotly_chart(fig, use_container_width=True)
        fig = plot_state_choropleth(summary, "air_quality_value", f"{pollutant_choice} Level")
        st.plotly_chart(fig, use_container_width=True)
    with tabs[2]:
        fig = plot_respiratory_by_state(summary)
        st.plotly_chart(fig, use_container_width=True)
        for state in selected_states:
            display_state_insights(summary, state, "respiratory_index", RESPIRATORY_LABEL)
    with tabs[3]:
        fig = plot_influenza_trend(influenza_by_year(influenza_df))
        st.plotly_chart(fig, use_container_width=True)
        st.caption("State-level influenza values are regional estimates derived from the national rate.")
        fig = plot_state_choropleth(summary, "influenza_value", "Estimated Influenza Rate")
        st.plotly_chart(fig, use_container_width=True)
    with tabs[4]:
        handle_map_view(pollutant_choice, year_choice)

    display_download_button(summary, year_choice)
    st.markdown("---")
    st.markdown("Data Sources: U.S. EPA air quality statistics, CDC respiratory illness activity, WHO FluNet.")


def handle_correlation_view(observations, year_choice, pollutant_choice):
    """Handles the UI and logic for the pollutant vs. respiratory correlation view."""
    st.header(f"{pollutant_choice} vs. {RESPIRATORY_LABEL}")

    independent = state_values(observations, pollutant_choice, year_choice)
    dependent = state_values(observations, RESPIRATORY_METRIC, year_choice)
    pairs = pair_by_state(independent, dependent)
    sample = correlate_metrics(independent, dependent, year_choice, pollutant_choice)
    fit = linear_regression(pairs["x"], pairs["y"])

    fig = plot_correlation_scatter(pairs, fit, sample, pollutant_choice, RESPIRATORY_LABEL)
    st.plotly_chart(fig, use_container_width=True)

    matrix = correlation_matrix(observations, RESPIRATORY_METRIC, YEARS, POLLUTANTS)
    trends = detect_trends(matrix)
    display_correlation_insights(sample, trends, pollutant_choice, RESPIRATORY_LABEL)

    if matrix.empty:
        st.warning("Not enough paired data to compare correlations across years.")
        return
    st.plotly_chart(plot_correlation_over_years(matrix, RESPIRATORY_LABEL), use_container_width=True)
    st.plotly_chart(plot_correlation_heatmap(matrix, RESPIRATORY_LABEL), use_container_width=True)


def handle_map_view(pollutant_choice, year_choice):
    """Handles the interactive folium state map."""
    st.header(f"U.S. {pollutant_choice} Map ({year_choice})")
    gdf = get_geojson()
    if gdf is None:
        st.error("Could not load geospatial data for the map.")
        return
    aq_map = load_aq_map_data()
    clicked_state = create_state_map(gdf, aq_map, pollutant_choice, year_choice)
    if clicked_state:
        st.info(f"Selected state: {clicked_state}")
    st.caption(f"Loaded {len(aq_map)} air quality data points.")


if __name__ == "__main__":
    main()
