# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from typing import Optional

# Third-Party Imports
import pandas as pd

# ================================== LOCAL IMPORTS =================================== #

from omics_eda import constants
from omics_eda.config import FilterConfig
from omics_eda.errors import DegenerateInputError, preview_ids
from omics_eda.utils.table_processing import relative_abundance

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

# ================================ TABLE FILTERING =================================== #

def filter_table(
    counts: pd.DataFrame,
    cfg: Optional[FilterConfig] = None
) -> pd.DataFrame:
    """Filter samples, then features.

    Applies two-step filtering:
    1. Sample filtering (total counts > min_sample_count)
    2. Feature filtering (prevalence above min_feature_abundance in more than
       min_feature_fraction of the samples that survived step 1)

    Feature decisions use relative abundances of the sample-filtered matrix.

    Args:
        counts: Features × samples count matrix.
        cfg:    Filter thresholds; package defaults when None.

    Returns:
        Filtered count matrix.

    Raises:
        DegenerateInputError: If either step removes everything, or the feature
                              step leaves a retained sample with no counts.
    """
    cfg = cfg or FilterConfig()
    cfg.validate()
    table = filter_samples(counts, cfg.min_sample_count)
    table = filter_features(table, cfg.min_feature_abundance, cfg.min_feature_fraction)

    emptied = table.columns[table.sum(axis=0) == 0]
    if len(emptied):
        raise DegenerateInputError(
            f"Feature filter (relative abundance > {cfg.min_feature_abundance} in more "
            f"than {cfg.min_feature_fraction:.0%} of samples) removed every feature "
            f"counted in {len(emptied)} retained samples, e.g. {preview_ids(emptied)}"
        )
    return table


def filter_samples(
    counts: pd.DataFrame,
    min_count: int = constants.DEFAULT_MIN_SAMPLE_COUNT
) -> pd.DataFrame:
    """Keep samples whose total count is strictly greater than ``min_count``.

    Raises:
        DegenerateInputError: If no sample passes.
    """
    totals = counts.sum(axis=0)
    keep = totals > min_count
    if not keep.any():
        raise DegenerateInputError(
            f"Sample filter (total counts > {min_count}) removed all "
            f"{counts.shape[1]} samples; largest sample total is "
            f"{totals.max() if len(totals) else 0}"
        )
    dropped = totals.index[~keep]
    if len(dropped):
        logger.info(
            f"Sample filter (total counts > {min_count}): dropped {len(dropped)} of "
            f"{counts.shape[1]} samples {list(dropped)[:10]}"
        )
    return counts.loc[:, keep]


def filter_features(
    counts: pd.DataFrame,
    min_abundance: float = constants.DEFAULT_MIN_FEATURE_ABUNDANCE,
    min_fraction: float = constants.DEFAULT_MIN_FEATURE_FRACTION
) -> pd.DataFrame:
    """Filter features based on prevalence at a minimum relative abundance.

    A feature is kept iff the fraction of samples in which its relative
    abundance exceeds ``min_abundance`` itself exceeds ``min_fraction``.

    Args:
        counts:        Features × samples count matrix (already sample-filtered).
        min_abundance: Relative abundance (0–1) a feature must exceed in a sample.
        min_fraction:  Fraction of samples (0–1) that must pass.

    Raises:
        DegenerateInputError: If the matrix has no samples or no feature passes.
    """
    if counts.shape[1] == 0:
        raise DegenerateInputError("Feature filter received a matrix with no samples")

    # All-zero samples count as absence for every feature
    rel = relative_abundance(counts, on_zero="nan")
    prevalence = (rel > min_abundance).mean(axis=1)
    keep = prevalence > min_fraction
    if not keep.any():
        raise DegenerateInputError(
            f"Feature filter (relative abundance > {min_abundance} in more than "
            f"{min_fraction:.0%} of samples) removed all {counts.shape[0]} features"
        )
    logger.info(
        f"Feature filter: kept {int(keep.sum())} of {counts.shape[0]} features "
        f"(relative abundance > {min_abundance} in more than {min_fraction:.0%} "
        f"of {counts.shape[1]} samples)"
    )
    return counts.loc[keep]
