from typing import List, Optional, Sequence

import pandas as pd
import streamlit as st
import plotly.graph_objects as go
import plotly.express as px
from scipy.stats import percentileofscore

from config import RESPIRATORY_COLOR_SCALE
from stats import CorrelationSample, LinearFit, TrendDirection, TrendResult, categorize_correlation, describe_correlation

INSUFFICIENT_DATA_MESSAGE = "Insufficient data to compute a correlation for this selection."


def _apply_layout(fig: go.Figure, title: str, xaxis_title: str, yaxis_title: str) -> go.Figure:
    fig.update_layout(
        title=title,
        xaxis_title=xaxis_title,
        yaxis_title=yaxis_title,
        legend=dict(x=0.01, y=0.99, bordercolor="Black", borderwidth=1),
        template="plotly_white",
        font=dict(size=14),
        height=600,
    )
    return fig


def plot_influenza_trend(rates: pd.DataFrame) -> go.Figure:
    """National influenza rate per year. Years without data leave a gap."""
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=rates["year"],
            y=rates["rate"],
            mode="lines+markers",
            name="Influenza Rate (INF_ALL)",
            line=dict(color="firebrick", width=2.5),
            connectgaps=False,
        )
    )
    start, end = rates["year"].min(), rates["year"].max()
    return _apply_layout(fig, f"Influenza Trend ({start}-{end})", "Year", "Average Weekly Positive Specimens")


def plot_air_quality_trend(observations: pd.DataFrame, pollutant: str, states: Sequence[str]) -> go.Figure:
    fig = go.Figure()
    pollutant_obs = observations[observations["metric"] == pollutant]
    for state in states:
        state_obs = pollutant_obs[pollutant_obs["state"] == state].sort_values("year")
        if state_obs.empty:
            continue
        fig.add_trace(
            go.Scatter(x=state_obs["year"], y=state_obs["value"], mode="lines+markers", name=state)
        )
    fig.update_layout(legend_title="States")
    return _apply_layout(fig, f"{pollutant} Annual Levels", "Year", f"{pollutant} Value")


def plot_respiratory_by_state(summary: pd.DataFrame) -> go.Figure:
    data = summary.dropna(subset=["respiratory_index"]).sort_values("respiratory_index", ascending=False)
    fig = px.bar(
        data,
        x="state",
        y="respiratory_index",
        color="respiratory_category",
        hover_name="description",
        category_orders={"respiratory_category": ["Very Good", "Good", "Moderate", "Poor", "Very Poor"]},
        color_discrete_sequence=RESPIRATORY_COLOR_SCALE,
        labels={"respiratory_index": "Respiratory Index (0-8)", "respiratory_category": "Category"},
    )
    year = int(summary["year"].iloc[0]) if not summary.empty else ""
    return _apply_layout(fig, f"Respiratory Illness Activity by State ({year})", "State", "Respiratory Index (0-8)")


def plot_correlation_scatter(
    pairs: pd.DataFrame,
    fit: Optional[LinearFit],
    sample: Optional[CorrelationSample],
    x_label: str,
    y_label: str,
) -> go.Figure:
    """
    Scatter of paired state values (columns x and y, indexed by state) with the
    fitted least squares line.
    """
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=pairs["x"],
            y=pairs["y"],
            mode="markers+text",
            text=pairs.index,
            textposition="top center",
            name="States",
            marker=dict(color="dodgerblue", size=9),
        )
    )
    if fit is not None and not pairs.empty:
        x_range = [pairs["x"].min(), pairs["x"].max()]
        fig.add_trace(
            go.Scatter(
                x=x_range,
                y=fit.predict(x_range),
                mode="lines",
                name=f"Fit: y = {fit.slope:.3f}x + {fit.intercept:.3f}",
                line=dict(color="navy", width=2.5),
            )
        )

    if sample is None:
        title = f"{x_label} vs. {y_label} (insufficient data)"
    else:
        title = f"{x_label} vs. {y_label} ({sample.year}): r = {sample.coefficient:.2f}, n = {sample.sample_size}"
    return _apply_layout(fig, title, x_label, y_label)


def plot_correlation_over_years(matrix: pd.DataFrame, dependent_label: str) -> go.Figure:
    """One line per pollutant showing its correlation coefficient by year."""
    fig = go.Figure()
    for metric, group in matrix.groupby("metric", sort=False):
        group = group.sort_values("year")
        fig.add_trace(
            go.Scatter(
                x=group["year"],
                y=group["coefficient"],
                mode="lines+markers",
                name=metric,
                customdata=group["sample_size"],
                hovertemplate="%{x}: r = %{y:.2f} (n = %{customdata})",
            )
        )
    fig.add_hline(y=0, line=dict(color="gray", dash="dash"))
    fig.update_yaxes(range=[-1, 1])
    fig.update_layout(legend_title="Pollutant")
    return _apply_layout(fig, f"Correlation with {dependent_label} by Year", "Year", "Pearson r")


def plot_correlation_heatmap(matrix: pd.DataFrame, dependent_label: str) -> go.Figure:
    pivot = matrix.pivot(index="metric", columns="year", values="coefficient")
    fig = px.imshow(
        pivot,
        text_auto=".2f",
        aspect="auto",
        labels=dict(color="Correlation"),
        color_continuous_scale="RdBu_r",
        zmin=-1,
        zmax=1,
    )
    fig.update_layout(title=f"Pollutant Correlation with {dependent_label}")
    return fig


def plot_state_choropleth(summary: pd.DataFrame, column: str, label: str) -> go.Figure:
    """
    Generates a state choropleth of one indicator column of the summary table.
    """
    fig = px.choropleth(
        summary,
        locations="state",
        locationmode="USA-states",
        color=column,
        hover_name="description",
        scope="usa",
        color_continuous_scale="RdYlGn_r",
        labels={column: label},
    )
    fig.update_layout(
        margin={"r": 0, "t": 40, "l": 0, "b": 0},
        title=f"{label} by State ({int(summary['year'].iloc[0])})" if not summary.empty else label,
    )
    return fig


def display_correlation_insights(sample: Optional[CorrelationSample], trends: List[TrendResult], x_label: str, y_label: str):
    """
    Displays the correlation for the current selection and any detected trends.
    """
    st.subheader("Correlation Insights")

    if sample is None:
        st.warning(INSUFFICIENT_DATA_MESSAGE)
    else:
        category = categorize_correlation(sample.coefficient)
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric(label="Pearson r", value=f"{sample.coefficient:.2f}")
        with col2:
            st.metric(label="Strength", value=category.strength.value.replace("-", " ").title())
        with col3:
            st.metric(label="States Paired", value=sample.sample_size)
        st.markdown(
            f"In {sample.year}, {x_label} and {y_label} show a **{describe_correlation(sample.coefficient)}** "
            f"across {sample.sample_size} states."
        )

    if not trends:
        st.info("No pollutant shows a notable change in correlation across years.")
        return
    for trend in trends:
        arrow = "↑" if trend.direction is TrendDirection.INCREASING else "↓"
        st.markdown(
            f"- {arrow} **{trend.metric}**: correlation {trend.direction.value} from {trend.start_year} to "
            f"{trend.end_year} (slope {trend.slope:+.3f} per period)."
        )


def display_state_insights(summary: pd.DataFrame, state: str, column: str, label: str):
    """
    Displays a state's value for one indicator with its rank among all states.
    """
    st.subheader("State Insights")

    values = summary[column].dropna()
    row = summary[summary["state"] == state]
    if row.empty or pd.isna(row[column].iloc[0]) or values.empty:
        st.warning(f"No {label.lower()} data reported for {state}.")
        return

    value = row[column].iloc[0]
    percentile = percentileofscore(values, value)
    diff_from_avg = value - values.mean()

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric(label=f"{row['description'].iloc[0]} {label}", value=f"{value:.2f}")
    with col2:
        st.metric(
            label="Percentile Among States",
            value=f"{percentile:.1f}%",
            help="The percentage of states whose value is less than or equal to this state's value."
        )
    with col3:
        st.metric(label="vs. National Average", value=f"{diff_from_avg:+.2f}")
