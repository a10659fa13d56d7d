# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from typing import Dict, List, Sequence, Set

# Third-Party Imports
import numpy as np
import pandas as pd
from skbio.diversity import alpha_diversity as skbio_alpha_diversity
from skbio.diversity import get_alpha_diversity_metrics

# Local Imports
from omics_eda import constants
from omics_eda.errors import DegenerateInputError

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

# Extra keyword arguments per scikit-bio metric
METRIC_KWARGS: Dict[str, Dict] = {
    "shannon": {"base": np.e},
}
INTEGER_METRICS = {"chao1", "ace", "goods_coverage", "robbins", "doubles", "singles"}
# Need a phylogeny, which count tables do not carry
PHYLOGENETIC_METRICS = {"faith_pd", "phydiv"}

# ==================================== FUNCTIONS ===================================== #

def available_metrics() -> Set[str]:
    return set(get_alpha_diversity_metrics()) - PHYLOGENETIC_METRICS


def alpha_diversity(
    counts: pd.DataFrame,
    metrics: Sequence[str] = tuple(constants.DEFAULT_ALPHA_METRICS)
) -> pd.DataFrame:
    """
    Calculate per-sample alpha diversity with scikit-bio.

    Args:
        counts:  Features × samples count matrix (raw counts, not proportions).
        metrics: scikit-bio alpha metric names. Shannon uses the natural log.

    Returns:
        DataFrame with alpha diversity values (samples × metrics).
    """
    if counts.shape[1] == 0:
        raise DegenerateInputError("Alpha diversity needs at least one sample")

    data = counts.T.to_numpy()
    sample_ids = [str(s) for s in counts.columns]
    is_integral = bool(np.all(np.mod(data, 1) == 0))
    if is_integral:
        data = data.astype(int)

    results: Dict[str, List[float]] = {}
    for metric in metrics:
        if metric in INTEGER_METRICS and not is_integral:
            logger.warning(
                f"Non-integer values detected for {metric}. "
                "Requires integer counts. Returning NaN."
            )
            results[metric] = [np.nan] * len(sample_ids)
            continue
        values = skbio_alpha_diversity(
            metric, data, ids=sample_ids, **METRIC_KWARGS.get(metric, {})
        )
        results[metric] = values.to_numpy(dtype=float)

    alpha = pd.DataFrame(results, index=pd.Index(sample_ids, name="sample"))
    logger.info(f"Alpha diversity: {list(metrics)} for {len(sample_ids)} samples")
    return alpha
