"""Tests for taxonomic collapse, normalization and alignment."""

import numpy as np
import pandas as pd
import pytest

from omics_eda.errors import (
    DegenerateInputError,
    IdentifierMismatchError,
    MalformedInputError,
)
from omics_eda.utils.alignment import align_features, align_samples, require_columns
from omics_eda.utils.table_processing import clr, collapse_taxa, relative_abundance

from conftest import taxonomy_frame


# -------------------------------- taxonomic collapse ------------------------------- #

def test_collapse_taxa_sums_shared_labels(scenario_counts, scenario_taxonomy):
    collapsed = collapse_taxa(scenario_counts, scenario_taxonomy, "genus")
    assert collapsed.index.name == "genus"
    assert list(collapsed.index) == ["genus1", "genus2"]
    assert collapsed.loc["genus1"].tolist() == [10, 20]
    assert collapsed.loc["genus2"].tolist() == [5, 5]


def test_collapse_taxa_conserves_totals(scenario_counts, scenario_taxonomy):
    collapsed = collapse_taxa(scenario_counts, scenario_taxonomy, "genus")
    assert collapsed.to_numpy().sum() == scenario_counts.to_numpy().sum()
    pd.testing.assert_series_equal(collapsed.sum(), scenario_counts.sum())


def test_collapse_taxa_keeps_unresolved_group_separate():
    """Test that unresolved features form one '' row and never join a named one."""
    counts = pd.DataFrame(
        {"s1": [1, 2, 3, 4], "s2": [5, 6, 7, 8]}, index=["a", "b", "c", "d"])
    taxonomy = taxonomy_frame({"a": "Bacillus", "b": "", "c": "", "d": "Alistipes"})

    collapsed = collapse_taxa(counts, taxonomy, "genus")
    assert len(collapsed) == taxonomy["genus"].nunique()
    assert list(collapsed.index) == ["", "Alistipes", "Bacillus"]
    assert collapsed.loc[""].tolist() == [5, 13]
    assert collapsed.loc["Bacillus"].tolist() == [1, 5]


def test_collapse_taxa_ignores_extra_taxonomy_records(scenario_counts):
    taxonomy = taxonomy_frame(
        {"A": "genus1", "B": "genus1", "C": "genus2", "Z": "genus9"})
    collapsed = collapse_taxa(scenario_counts, taxonomy, "genus")
    assert "genus9" not in collapsed.index


def test_collapse_taxa_does_not_modify_inputs(scenario_counts, scenario_taxonomy):
    before = scenario_counts.copy()
    collapse_taxa(scenario_counts, scenario_taxonomy, "genus")
    pd.testing.assert_frame_equal(scenario_counts, before)


def test_collapse_taxa_invalid_rank(scenario_counts, scenario_taxonomy):
    with pytest.raises(ValueError, match="target_level"):
        collapse_taxa(scenario_counts, scenario_taxonomy, "strain")


def test_collapse_taxa_missing_taxonomy(scenario_counts):
    taxonomy = taxonomy_frame({"A": "genus1", "B": "genus1"})
    with pytest.raises(IdentifierMismatchError, match="no taxonomy record"):
        collapse_taxa(scenario_counts, taxonomy, "genus")


# ------------------------------- relative abundance -------------------------------- #

def test_relative_abundance_divides_by_column_sum():
    table = pd.DataFrame({"s": [10, 20]}, index=["f1", "f2"])
    rel = relative_abundance(table)
    np.testing.assert_allclose(rel["s"].to_numpy(), [1 / 3, 2 / 3])


def test_relative_abundance_is_idempotent(scenario_counts):
    rel = relative_abundance(scenario_counts)
    np.testing.assert_allclose(rel.sum().to_numpy(), 1.0)
    pd.testing.assert_frame_equal(relative_abundance(rel), rel)


def test_relative_abundance_zero_sample_raises():
    table = pd.DataFrame({"s1": [1, 3], "s2": [0, 0]}, index=["f1", "f2"])
    with pytest.raises(DegenerateInputError, match="zero total counts"):
        relative_abundance(table)


def test_relative_abundance_zero_sample_nan():
    table = pd.DataFrame({"s1": [1, 3], "s2": [0, 0]}, index=["f1", "f2"])
    rel = relative_abundance(table, on_zero="nan")
    assert rel["s2"].isna().all()
    np.testing.assert_allclose(rel["s1"].to_numpy(), [0.25, 0.75])


def test_relative_abundance_unknown_policy(scenario_counts):
    with pytest.raises(ValueError, match="on_zero"):
        relative_abundance(scenario_counts, on_zero="drop")


def test_clr_centers_each_sample(scenario_counts):
    transformed = clr(scenario_counts)
    assert transformed.shape == scenario_counts.shape
    np.testing.assert_allclose(transformed.sum().to_numpy(), 0.0, atol=1e-9)
    # Larger counts sit above the sample's geometric mean
    assert transformed.loc["A", "s1"] > transformed.loc["B", "s1"]


# ------------------------------------ alignment ------------------------------------ #

def test_align_samples_orders_metadata_like_counts(scenario_counts):
    metadata = pd.DataFrame(
        {"group": ["b", "extra", "a"]},
        index=pd.Index(["s2", "s7", "s1"], name="sample-id"),
    )
    counts, aligned = align_samples(scenario_counts, metadata)
    assert counts is scenario_counts
    assert list(aligned.index) == ["s1", "s2"]
    assert aligned.index.name == "sample-id"
    assert aligned["group"].tolist() == ["a", "b"]


def test_align_samples_missing_metadata(scenario_counts):
    metadata = pd.DataFrame({"group": ["a"]}, index=["s1"])
    with pytest.raises(IdentifierMismatchError, match=r"\['s2'\]"):
        align_samples(scenario_counts, metadata)


def test_align_features_returns_count_order(scenario_counts, scenario_taxonomy):
    shuffled = scenario_taxonomy.loc[["C", "A", "B"]]
    aligned = align_features(scenario_counts, shuffled)
    assert list(aligned.index) == ["A", "B", "C"]


def test_require_columns():
    metadata = pd.DataFrame({"condition": ["a", None]}, index=["s1", "s2"])
    with pytest.raises(MalformedInputError, match="batch"):
        require_columns(metadata, ["batch"], "the DESeq2 design")
    with pytest.raises(MalformedInputError, match="empty for 1 samples"):
        require_columns(metadata, ["condition"], "the DESeq2 design")
