# build_aq_map_data.py
import logging
import sys

import pandas as pd

from config import DATA_SOURCES
from data_loader import DataSourceError, air_quality_observations, clean_aq_map_data, read_source

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def build_aq_map_table(air_quality_df: pd.DataFrame) -> pd.DataFrame:
    """Converts the wide air quality table into the long State/Pollutant/Year/Value map table."""
    observations = air_quality_observations(air_quality_df).dropna(subset=["value"])
    map_df = observations.rename(
        columns={"state": "State", "metric": "Pollutant", "year": "Year", "value": "Value"}
    )
    map_df = clean_aq_map_data(map_df)
    return map_df.sort_values(["State", "Pollutant", "Year"], ignore_index=True)


def main():
    """
    Main function to regenerate the air quality map table from the wide
    air quality source.
    """
    logger.info("--- Starting Air Quality Map Build ---")

    try:
        air_quality_df = read_source("air_quality")
    except DataSourceError as e:
        logger.error(f"--- FATAL: {e}. Aborting. ---")
        sys.exit(1)

    map_df = build_aq_map_table(air_quality_df)
    if map_df.empty:
        logger.error("--- FATAL: No air quality readings found. Aborting. ---")
        sys.exit(1)

    output_path = DATA_SOURCES["aq_map"]
    map_df.to_csv(output_path, index=False)

    logger.info("--- Air Quality Map Build Complete ---")
    logger.info(f"Saved {len(map_df)} rows for {map_df['State'].nunique()} states to {output_path}")


if __name__ == "__main__":
    main()
