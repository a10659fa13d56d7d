# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from typing import Optional, Sequence, Tuple

# Third-Party Imports
import numpy as np
import pandas as pd
from pydeseq2.dds import DeseqDataSet
from pydeseq2.ds import DeseqStats

# Local Imports
from omics_eda import constants
from omics_eda.errors import ConfigurationError, DegenerateInputError
from omics_eda.utils.alignment import align_samples, require_columns

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

RESULT_COLUMNS = ["baseMean", "log2FoldChange", "lfcSE", "stat", "pvalue", "padj"]

# =============================== HELPER FUNCTIONS =================================== #

def _prepare_inputs(
    counts: pd.DataFrame,
    metadata: pd.DataFrame,
    design: Sequence[str],
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Return (samples × features integer counts, design metadata) for PyDESeq2.
    Design columns keep their loaded dtypes."""
    counts, metadata = align_samples(counts, metadata)
    require_columns(metadata, design, "the DESeq2 design")

    if counts.shape[1] < 2:
        raise DegenerateInputError(
            f"DESeq2 needs at least two samples, got {counts.shape[1]}"
        )

    values = counts.to_numpy(dtype=float)
    if not np.all(np.mod(values, 1) == 0):
        logger.warning("Rounding non-integer counts to the nearest integer for DESeq2")
    samples_by_features = pd.DataFrame(
        np.rint(values).astype(int).T,
        index=[str(s) for s in counts.columns],
        columns=[str(f) for f in counts.index],
    )

    design_meta = metadata[list(design)].copy()
    design_meta.index = samples_by_features.index
    return samples_by_features, design_meta


def _encode_factors(design_meta: pd.DataFrame, factor: str) -> pd.DataFrame:
    """Cast ``factor`` and every non-numeric design column to string levels.
    Other numeric columns stay continuous covariates."""
    encoded = design_meta.copy()
    for col in encoded.columns:
        if col == factor or not pd.api.types.is_numeric_dtype(encoded[col]):
            encoded[col] = encoded[col].astype(str)
    return encoded


def _design_formula(design: Sequence[str]) -> str:
    return "~" + " + ".join(design)


def _default_contrast(metadata: pd.DataFrame, design: Sequence[str]) -> Tuple[str, str, str]:
    """Compare the last level of the first design column against its first level.
    Levels sort in their loaded type, so numeric codes sort numerically."""
    column = design[0]
    levels = sorted(metadata[column].dropna().unique())
    if len(levels) < 2:
        raise DegenerateInputError(
            f"Design column '{column}' has a single level {[str(level) for level in levels]}; "
            "nothing to compare"
        )
    return column, str(levels[-1]), str(levels[0])


# ==================================== FUNCTIONS ===================================== #

def deseq2(
    counts: pd.DataFrame,
    metadata: pd.DataFrame,
    design: Sequence[str],
    contrast: Optional[Sequence[str]] = None,
    alpha: float = constants.DEFAULT_DE_ALPHA,
) -> pd.DataFrame:
    """
    Negative-binomial differential abundance with PyDESeq2.

    Args:
        counts:   Features × samples raw count matrix.
        metadata: Metadata indexed by sample ID.
        design:   Metadata columns explaining variation, e.g. ``["batch", "condition"]``.
        contrast: ``[column, tested level, reference level]``; defaults to the last
                  versus the first (sorted) level of the first design column.
        alpha:    Significance level used for independent filtering.

    Returns:
        DataFrame indexed by feature with baseMean, log2FoldChange (effect size),
        lfcSE, stat, pvalue and padj (Benjamini-Hochberg), sorted by padj.
    """
    samples_by_features, design_meta = _prepare_inputs(counts, metadata, design)
    if contrast is None:
        contrast = _default_contrast(design_meta, design)
    contrast = [str(c) for c in contrast]
    if contrast[0] not in design:
        raise ConfigurationError(
            f"Contrast column '{contrast[0]}' is not part of the design {list(design)}"
        )
    design_meta = _encode_factors(design_meta, contrast[0])

    logger.info(
        f"Running DESeq2 ({_design_formula(design)}, {contrast[1]} vs {contrast[2]}) on "
        f"{samples_by_features.shape[1]} features × {samples_by_features.shape[0]} samples"
    )
    dds = DeseqDataSet(
        counts=samples_by_features,
        metadata=design_meta,
        design=_design_formula(design),
        refit_cooks=True,
        quiet=True,
    )
    dds.deseq2()

    stat_res = DeseqStats(
        dds,
        contrast=contrast,
        alpha=alpha,
        cooks_filter=True,
        independent_filter=True,
        quiet=True,
    )
    stat_res.summary()

    results = stat_res.results_df[RESULT_COLUMNS].copy()
    results.index.name = counts.index.name or "feature"
    results = results.sort_values("padj", na_position="last")

    n_significant = int((results["padj"] < alpha).sum())
    logger.info(f"DESeq2: {n_significant} features with padj < {alpha}")
    return results


def variance_stabilize(
    counts: pd.DataFrame,
    metadata: pd.DataFrame,
    design: Sequence[str],
) -> pd.DataFrame:
    """Variance-stabilizing transform of raw counts (features × samples)."""
    samples_by_features, design_meta = _prepare_inputs(counts, metadata, design)
    design_meta = _encode_factors(design_meta, design[0])
    dds = DeseqDataSet(
        counts=samples_by_features,
        metadata=design_meta,
        design=_design_formula(design),
        quiet=True,
    )
    dds.vst()
    vst = pd.DataFrame(
        dds.layers["vst_counts"],
        index=samples_by_features.index,
        columns=samples_by_features.columns,
    ).T
    vst.index.name = counts.index.name
    return vst
