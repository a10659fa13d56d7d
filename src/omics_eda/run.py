"""
Omics count-table exploration
----------------------------------------------------------------------------------------
Loads a counts matrix (16S amplicon, Kraken2 metagenomic or bulk RNA-seq), its sample
metadata and taxonomy, then aggregates, filters and normalizes it and runs the enabled
downstream analyses (alpha diversity, PCoA, DESeq2). Every run is driven by one YAML
config; see references/config.yaml.
"""
# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Third-Party Imports
import pandas as pd

# Local Imports
from omics_eda import constants
from omics_eda.config import PipelineConfig, get_config
from omics_eda.errors import OmicsTableError
from omics_eda.logger import setup_logging
from omics_eda.pipeline import run_pipeline

# ========================== INITIALIZATION & CONFIGURATION ========================== #

pd.set_option('display.max_colwidth', None)

# =================================== MAIN WORKFLOW ================================== #

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="omics-eda",
        description="Aggregate, filter and explore an omics count table."
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help="Path to the YAML config (default: %(default)s)",
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Override the config's output_dir",
    )
    parser.add_argument(
        "--no-write",
        action="store_true",
        help="Run without writing result tables",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show DEBUG messages on the console",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = setup_logging(
        console_level=logging.DEBUG if args.verbose else logging.INFO
    )

    try:
        raw_config = get_config(args.config)
        if args.output_dir is not None:
            raw_config["output_dir"] = args.output_dir
        config = PipelineConfig.from_dict(raw_config)
        if config.log_dir is not None:
            logger = setup_logging(
                config.log_dir,
                console_level=logging.DEBUG if args.verbose else logging.INFO
            )
        logger.info(f"Config: {args.config} (data type: {config.data_type})")
        run_pipeline(config, write_outputs=not args.no_write)
    except FileNotFoundError as e:
        logger.error(f"Input file not found: {e}")
        return 1
    except OmicsTableError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
