# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from typing import Tuple

# Third-Party Imports
import pandas as pd

# Local Imports
from omics_eda.errors import IdentifierMismatchError, MalformedInputError, preview_ids

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

# ==================================== FUNCTIONS ===================================== #

def align_samples(
    counts: pd.DataFrame,
    metadata: pd.DataFrame
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Align a count matrix with sample metadata.

    Every count sample must have a metadata record; metadata records without a
    count column are dropped. Metadata rows are returned in count-column order.

    Args:
        counts:   Features × samples count matrix.
        metadata: Metadata indexed by sample ID.

    Returns:
        Tuple of (counts, aligned metadata).

    Raises:
        IdentifierMismatchError: If any count sample has no metadata record.
    """
    sample_ids = counts.columns.astype(str)
    meta_ids = metadata.index.astype(str)

    missing = sample_ids.difference(meta_ids, sort=False)
    if len(missing):
        raise IdentifierMismatchError(
            f"{len(missing)} of {len(sample_ids)} count-matrix samples have no "
            f"metadata record, e.g. {preview_ids(missing)}\n"
            f"Metadata IDs look like: {preview_ids(meta_ids)}"
        )

    extra = meta_ids.difference(sample_ids, sort=False)
    if len(extra):
        logger.info(
            f"Ignoring {len(extra)} metadata records with no counts, "
            f"e.g. {preview_ids(extra)}"
        )

    aligned = metadata.copy()
    aligned.index = meta_ids
    aligned = aligned.loc[list(sample_ids)]
    aligned.index.name = metadata.index.name
    return counts, aligned


def align_features(
    counts: pd.DataFrame,
    taxonomy: pd.DataFrame
) -> pd.DataFrame:
    """Return the taxonomy records of the count-matrix features, in row order.

    Raises:
        IdentifierMismatchError: If any count feature has no taxonomy record.
    """
    missing = counts.index.difference(taxonomy.index, sort=False)
    if len(missing):
        raise IdentifierMismatchError(
            f"{len(missing)} of {len(counts.index)} count-matrix features have no "
            f"taxonomy record, e.g. {preview_ids(missing)}"
        )
    extra = len(taxonomy.index) - len(counts.index)
    if extra > 0:
        logger.debug(f"Ignoring {extra} taxonomy records with no counts")
    return taxonomy.loc[counts.index]


def require_columns(metadata: pd.DataFrame, columns, purpose: str) -> None:
    """Raise if any of ``columns`` is absent from ``metadata`` or holds missing values."""
    absent = [col for col in columns if col not in metadata.columns]
    if absent:
        raise MalformedInputError(
            f"Metadata column(s) {absent} required for {purpose} not found "
            f"(columns: {list(metadata.columns)[:10]})"
        )
    for col in columns:
        missing = metadata.index[metadata[col].isna()]
        if len(missing):
            raise MalformedInputError(
                f"Metadata column '{col}' required for {purpose} is empty for "
                f"{len(missing)} samples, e.g. {preview_ids(missing)}"
            )
