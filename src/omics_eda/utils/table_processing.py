# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging

# Third-Party Imports
import numpy as np
import pandas as pd
from skbio.stats.composition import clr as CLR

# ================================== LOCAL IMPORTS =================================== #

from omics_eda import constants
from omics_eda.errors import DegenerateInputError, preview_ids
from omics_eda.utils.alignment import align_features

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

# ================================ TAXONOMIC COLLAPSE ================================ #

def collapse_taxa(
    counts: pd.DataFrame,
    taxonomy: pd.DataFrame,
    target_level: str = constants.DEFAULT_RANK
) -> pd.DataFrame:
    """Collapse a count matrix to one row per label at a taxonomic rank.

    Counts of features sharing the rank label are summed per sample. Features
    unresolved at the rank (empty label) form their own row labelled ``""``;
    they are never merged into a resolved label. Rows come out sorted by label.

    Args:
        counts:       Features × samples count matrix.
        taxonomy:     Taxonomy table indexed by feature ID with one column per rank.
        target_level: Rank to collapse to (kingdom ... species).

    Returns:
        Collapsed features × samples matrix indexed by rank label.

    Raises:
        ValueError:              For an unknown ``target_level``.
        IdentifierMismatchError: If a count feature has no taxonomy record.
    """
    if target_level not in constants.RANKS:
        raise ValueError(
            f"Invalid `target_level`: {target_level}. "
            f"Expected one of {list(constants.RANKS)}")

    labels = align_features(counts, taxonomy)[target_level]
    labels = labels.fillna(constants.UNRESOLVED).astype(str)

    collapsed = counts.groupby(labels.to_numpy(), sort=True).sum()
    collapsed.index.name = target_level

    n_unresolved = int((labels == constants.UNRESOLVED).sum())
    logger.info(
        f"Collapsed {counts.shape[0]} features to {collapsed.shape[0]} "
        f"{target_level} groups ({n_unresolved} features unresolved at this rank)"
    )
    return collapsed


# ========================== TABLE NORMALIZATION & TRANSFORM ========================= #

def relative_abundance(
    table: pd.DataFrame,
    on_zero: str = "raise"
) -> pd.DataFrame:
    """Normalize every sample (column) to sum to 1.

    Args:
        table:   Features × samples matrix.
        on_zero: What to do with all-zero samples: ``"raise"`` raises
                 DegenerateInputError, ``"nan"`` marks the whole column NaN.

    Returns:
        New relative-abundance matrix.

    Raises:
        ValueError:           For an unknown ``on_zero`` policy.
        DegenerateInputError: For all-zero samples under ``on_zero="raise"``.
    """
    if on_zero not in ("raise", "nan"):
        raise ValueError(f"Invalid on_zero: {on_zero!r}. Must be 'raise' or 'nan'")

    totals = table.sum(axis=0)
    empty = totals.index[totals == 0]
    if len(empty) and on_zero == "raise":
        raise DegenerateInputError(
            f"Relative abundance is undefined for {len(empty)} samples with zero "
            f"total counts, e.g. {preview_ids(empty)}"
        )
    return table.astype(float).div(totals.replace(0, np.nan), axis=1)


def clr(
    table: pd.DataFrame,
    pseudocount: float = constants.DEFAULT_PSEUDOCOUNT
) -> pd.DataFrame:
    """Apply centered log-ratio (CLR) transformation per sample.

    Args:
        table:       Features × samples matrix.
        pseudocount: Small value to add to avoid log(0).

    Returns:
        CLR-transformed features × samples matrix.
    """
    # skbio expects compositions as rows
    clr_data = CLR(table.T.to_numpy(dtype=float) + pseudocount)
    return pd.DataFrame(clr_data.T, index=table.index, columns=table.columns)
