import streamlit as st
import pandas as pd
import folium
from folium.features import GeoJson, GeoJsonTooltip, GeoJsonPopup
import branca.colormap as cm
from streamlit_folium import st_folium
from geopandas import GeoDataFrame
from typing import Optional, Dict, Any

from config import (
    AIR_QUALITY_BREAKPOINTS,
    DEFAULT_MAP_LOCATION,
    DEFAULT_ZOOM,
    NO_DATA_COLOR,
    POLLUTANT_COLOR_SCALES,
)
from data_loader import classify_air_quality
from regions import get_state_name

# --- Helper Functions ---

def get_colormap(pollutant: str) -> cm.StepColormap:
    """Creates a three-step branca colormap (good/moderate/unhealthy) for the map legend."""
    colors = POLLUTANT_COLOR_SCALES[pollutant]
    good_max, moderate_max = AIR_QUALITY_BREAKPOINTS[pollutant]
    return cm.StepColormap(
        colors=[colors["good"], colors["moderate"], colors["unhealthy"]],
        index=[0, good_max, moderate_max, moderate_max * 2],
        vmin=0,
        vmax=moderate_max * 2,
        caption=f"Annual {pollutant} level",
    )


def style_function(feature: Dict[str, Any], pollutant: str) -> Dict[str, Any]:
    """
    Colours a state by its air quality category for the pollutant.
    States without a reading get the no-data colour.
    """
    value = feature["properties"].get("Value")
    category = classify_air_quality(value, pollutant)
    fill = POLLUTANT_COLOR_SCALES[pollutant].get(category.lower(), NO_DATA_COLOR)
    return {
        "fillColor": fill,
        "color": "black",
        "weight": 0.5,
        "fillOpacity": 0.7,
    }


def prepare_map_frame(gdf: GeoDataFrame, aq_map: pd.DataFrame, pollutant: str, year: int) -> GeoDataFrame:
    """Joins the selected pollutant/year readings onto the state geometries."""
    map_data = aq_map[(aq_map["Pollutant"] == pollutant) & (aq_map["Year"] == year)]
    map_data = map_data.groupby("State", as_index=False)["Value"].mean().rename(columns={"State": "state"})
    merged_gdf = gdf.merge(map_data, on="state", how="left")
    # The tooltip needs a name even when the boundary file carries none.
    names = merged_gdf["state"].map(get_state_name)
    merged_gdf["name"] = merged_gdf["name"].fillna(names) if "name" in merged_gdf else names
    merged_gdf["category"] = merged_gdf["Value"].map(lambda value: classify_air_quality(value, pollutant))
    return merged_gdf


# --- Main Map Creation Function ---

def create_state_map(
    gdf: GeoDataFrame,
    aq_map: pd.DataFrame,
    pollutant: str,
    year: int,
) -> Optional[str]:
    """
    Creates and displays an interactive Folium map of state air quality.

    Args:
        gdf: A GeoDataFrame containing state geometries keyed by two-letter code.
        aq_map: The long State/Pollutant/Year/Value air quality table.
        pollutant: The pollutant to colour the states by.
        year: The year to display.

    Returns:
        The code of the last clicked state, or None if no state was clicked.
    """
    if aq_map.empty:
        st.warning("No air quality data available to display on the map.")
        return None

    merged_gdf = prepare_map_frame(gdf, aq_map, pollutant, year)

    m = folium.Map(location=DEFAULT_MAP_LOCATION, zoom_start=DEFAULT_ZOOM, tiles="cartodbpositron")
    m.add_child(get_colormap(pollutant))

    tooltip = GeoJsonTooltip(
        fields=["name", "Value", "category"],
        aliases=["State:", f"{pollutant} ({year}):", "Air Quality:"],
        localize=True,
        sticky=False,
        style="""
            background-color: #F0EFEF;
            border: 2px solid black;
            border-radius: 3px;
            box-shadow: 3px;
        """
    )
    popup = GeoJsonPopup(fields=["state"], aliases=[""], localize=True)

    GeoJson(
        merged_gdf,
        style_function=lambda feature: style_function(feature, pollutant),
        tooltip=tooltip,
        popup=popup,
        name="states",
    ).add_to(m)

    map_output = st_folium(m, width="100%", height=500, returned_objects=["last_object_clicked_popup"])

    if map_output and map_output.get("last_object_clicked_popup"):
        clicked = str(map_output["last_object_clicked_popup"]).strip()
        if clicked in set(merged_gdf["state"]):
            return clicked
    return None
