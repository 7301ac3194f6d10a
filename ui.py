# -*- coding: utf-8 -*-
"""
This module contains the UI components for the Streamlit application.
"""
import streamlit as st
from datetime import datetime

from config import DEFAULT_POLLUTANT, DEFAULT_YEAR, POLLUTANTS, YEARS
from regions import get_state_name


def setup_page_config():
    """Sets the Streamlit page configuration."""
    st.set_page_config(
        page_title="Air Quality & Respiratory Health Dashboard",
        page_icon="🫁",
        layout="wide",
    )


def display_header_and_about():
    """Displays the main title and the 'About' expander."""
    st.title("Air Quality & Respiratory Health Dashboard")
    st.markdown(
        "Explore how state air pollution levels relate to respiratory illness and influenza activity "
        "across the United States from 2016 to 2022."
    )
    with st.expander("About the Data"):
        st.markdown(
            """
            - **Air Quality:** Annual state readings for PM2.5, PM10, O3, CO, SO2 and NO2.
            - **Respiratory Illness Index:** Weekly activity level on a 0-8 scale, averaged per state and year.
            - **Influenza:** National weekly surveillance (INF_ALL). State values are estimates derived
              from the national rate by Census region and are not reported observations.
            - **Correlation:** Pearson's r across states for the selected year. Fewer than two paired states
              is reported as insufficient data.
            """
        )


def display_sidebar(state_codes):
    """
    Renders the sidebar controls.

    Args:
        state_codes (list): Two-letter codes of the states present in the data.

    Returns:
        tuple: The selected year, pollutant and list of state codes.
    """
    with st.sidebar:
        st.header("Dashboard Controls")
        st.info(f"Last refresh: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

        if not state_codes:
            st.error("State list could not be loaded. The dashboard cannot be displayed.")
            st.stop()

        year_choice = st.select_slider(
            "1. Select Year:",
            options=YEARS,
            value=DEFAULT_YEAR,
            key="year_slider",
        )

        pollutant_choice = st.selectbox(
            "2. Select Pollutant:",
            options=POLLUTANTS,
            index=POLLUTANTS.index(DEFAULT_POLLUTANT),
            key="pollutant_selectbox",
        )

        selected_states = st.multiselect(
            "3. Focus on States (optional):",
            options=state_codes,
            format_func=lambda code: f"{get_state_name(code)} ({code})",
            key="state_multiselect",
            help="Selected states are highlighted in the trend charts and insights.",
        )

        return year_choice, pollutant_choice, selected_states


def display_download_button(summary, year_choice):
    """
    Renders the download button in the sidebar.

    Args:
        summary (pd.DataFrame): The dataframe to be downloaded.
        year_choice (int): The selected year.
    """
    if not summary.empty:
        st.sidebar.download_button(
            label="Download State Summary (CSV)",
            data=summary.to_csv(index=False).encode("utf-8"),
            file_name=f"state_summary_{year_choice}.csv",
            mime="text/csv",
            key="download_button",
        )
