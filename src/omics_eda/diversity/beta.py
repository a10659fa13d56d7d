# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from typing import Optional, Set

# Third-Party Imports
import numpy as np
import pandas as pd
from skbio.stats.distance import DistanceMatrix
from skbio.stats.ordination import OrdinationResults, pcoa as PCoA
from sklearn.metrics import pairwise_distances
from sklearn.metrics.pairwise import distance_metrics

# Local Imports
from omics_eda import constants
from omics_eda.errors import DegenerateInputError

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

# Distances scikit-learn hands over to scipy.spatial.distance
SCIPY_METRICS = (
    "braycurtis", "canberra", "chebyshev", "correlation", "dice", "hamming",
    "jaccard", "mahalanobis", "minkowski", "rogerstanimoto", "russellrao",
    "seuclidean", "sokalsneath", "sqeuclidean", "yule",
)

# =============================== HELPER FUNCTIONS =================================== #

def available_metrics() -> Set[str]:
    """Sample distance metrics usable by `distance_matrix`."""
    return (set(distance_metrics()) | set(SCIPY_METRICS)) - {"precomputed"}


def validate_input_data(df: pd.DataFrame, min_samples: int = 2) -> None:
    if df.shape[1] < min_samples:
        raise DegenerateInputError(
            f"At least {min_samples} samples required, got {df.shape[1]}"
        )
    values = df.to_numpy(dtype=float)
    if np.isnan(values).any():
        raise DegenerateInputError("Input data contains NaN values")
    if np.isinf(values).any():
        raise DegenerateInputError("Input data contains infinite values")


# ==================================== FUNCTIONS ===================================== #

def distance_matrix(
    table: pd.DataFrame,
    metric: str = constants.DEFAULT_METRIC
) -> DistanceMatrix:
    """Compute the pairwise distance matrix between samples.

    Args:
        table:  Features × samples matrix, usually relative abundances.
        metric: Distance metric name understood by scikit-learn / scipy.

    Returns:
        DistanceMatrix over the sample IDs.
    """
    validate_input_data(table)
    sample_ids = [str(s) for s in table.columns]
    dist_array = pairwise_distances(table.T.to_numpy(dtype=float), metric=metric)

    # DistanceMatrix rejects asymmetry from floating-point round-off in the
    # dot-product metrics (euclidean, cosine)
    dist_array = (dist_array + dist_array.T) / 2
    np.fill_diagonal(dist_array, 0.0)

    return DistanceMatrix(dist_array, ids=sample_ids)


def pcoa(
    table: pd.DataFrame,
    metric: str = constants.DEFAULT_METRIC,
    n_dimensions: Optional[int] = constants.DEFAULT_N_PCOA
) -> OrdinationResults:
    """Principal Coordinate Analysis of the samples in ``table``.

    Args:
        table:        Features × samples matrix, usually relative abundances.
        metric:       Distance metric (default Bray-Curtis).
        n_dimensions: Number of leading axes to keep; all when None.

    Returns:
        OrdinationResults whose ``samples`` frame holds per-sample coordinates
        (PC1, PC2, ...) and ``proportion_explained`` the variance per axis.
    """
    dm = distance_matrix(table, metric=metric)
    result = PCoA(dm)

    max_dims = dm.shape[0] - 1
    n_dimensions = min(n_dimensions, max_dims) if n_dimensions else max_dims
    result.samples = result.samples.iloc[:, :n_dimensions]
    result.eigvals = result.eigvals.iloc[:n_dimensions]
    result.proportion_explained = result.proportion_explained.iloc[:n_dimensions]

    logger.info(
        f"PCoA ({metric}) on {dm.shape[0]} samples: "
        + ", ".join(
            f"{axis} {share:.1%}"
            for axis, share in result.proportion_explained.items()
        )
    )
    return result
