# build_state_summary.py
import logging
import sys

from config import DEFAULT_POLLUTANT, STATE_SUMMARY_PATH, YEARS
from data_loader import DataSourceError, build_time_series, read_source

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def main(output_path: str = STATE_SUMMARY_PATH):
    """
    Main function to build the combined per-state indicator table for every year.
    This script is designed to be run by an automated process like a GitHub Action.
    """
    logger.info("--- Starting State Summary Build ---")

    try:
        respiratory_df = read_source("respiratory")
        air_quality_df = read_source("air_quality")
        influenza_df = read_source("influenza")
    except DataSourceError as e:
        logger.error(f"--- FATAL: Build failed. {e}. Aborting. ---")
        sys.exit(1)

    summary = build_time_series(respiratory_df, air_quality_df, influenza_df, YEARS, DEFAULT_POLLUTANT)
    if summary.empty:
        logger.error("--- FATAL: Build produced no rows. Aborting. ---")
        sys.exit(1)

    summary.to_parquet(output_path)

    logger.info("--- State Summary Build Complete ---")
    logger.info(f"Data saved to {output_path}")
    logger.info(f"Total rows: {len(summary)} ({summary['state'].nunique()} states, {len(YEARS)} years)")


if __name__ == "__main__":
    main()
