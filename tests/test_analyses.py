"""Tests for the alpha diversity, ordination and DESeq2 adapters."""

import numpy as np
import pandas as pd
import pytest

from omics_eda.diversity import alpha as alpha_metrics, beta as beta_metrics
from omics_eda.diversity.alpha import alpha_diversity
from omics_eda.diversity.beta import distance_matrix, pcoa
from omics_eda.errors import ConfigurationError, DegenerateInputError, MalformedInputError
from omics_eda.stats.differential_abundance import (
    RESULT_COLUMNS,
    _default_contrast,
    deseq2,
    variance_stabilize,
)
from omics_eda.utils.io import load_metadata_tsv
from omics_eda.utils.table_processing import relative_abundance

from conftest import simulate_rnaseq, write_tsv


@pytest.fixture
def community() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "even": [5, 5, 5, 5],
            "pair": [10, 10, 0, 0],
            "mixed": [20, 3, 7, 1],
            "skewed": [90, 5, 3, 2],
        },
        index=["f1", "f2", "f3", "f4"],
    )


@pytest.fixture
def rnaseq_counts():
    counts = simulate_rnaseq()
    condition = ["control"] * 3 + ["treated"] * 3
    metadata = pd.DataFrame({"condition": condition}, index=counts.columns)
    return counts, metadata


# ---------------------------------- alpha diversity -------------------------------- #

def test_alpha_diversity_values(community):
    alpha = alpha_diversity(community[["even", "pair"]])
    assert alpha.index.name == "sample"
    assert list(alpha.index) == ["even", "pair"]
    assert list(alpha.columns) == ["observed_features", "shannon", "simpson", "chao1"]
    assert alpha.loc["even", "observed_features"] == 4
    assert alpha.loc["pair", "observed_features"] == 2
    assert alpha.loc["even", "shannon"] == pytest.approx(np.log(4))
    assert alpha.loc["pair", "shannon"] == pytest.approx(np.log(2))
    assert alpha.loc["even", "simpson"] == pytest.approx(0.75)
    assert alpha.loc["even", "chao1"] == pytest.approx(4)


def test_alpha_diversity_integer_metric_on_fractional_counts(community):
    """Test that chao1 is NaN for non-integer counts instead of failing."""
    alpha = alpha_diversity(community / 3.0, metrics=["chao1"])
    assert alpha["chao1"].isna().all()


def test_alpha_diversity_no_samples():
    with pytest.raises(DegenerateInputError):
        alpha_diversity(pd.DataFrame(index=["f1"]))


# ------------------------------------- ordination ---------------------------------- #

def test_distance_matrix_properties(community):
    dm = distance_matrix(relative_abundance(community.assign(copy=community["mixed"])))
    assert dm.shape == (5, 5)
    assert list(dm.ids) == ["even", "pair", "mixed", "skewed", "copy"]
    data = dm.data
    np.testing.assert_allclose(data, data.T)
    np.testing.assert_allclose(np.diag(data), 0.0)
    assert dm["mixed", "copy"] == pytest.approx(0.0)
    assert 0 < dm["even", "skewed"] <= 1


def test_distance_matrix_needs_two_samples(community):
    with pytest.raises(DegenerateInputError, match="At least 2 samples"):
        distance_matrix(community[["even"]])


def test_distance_matrix_rejects_nan(community):
    rel = relative_abundance(community.assign(empty=0), on_zero="nan")
    with pytest.raises(DegenerateInputError, match="NaN"):
        distance_matrix(rel)


def test_pcoa_dimensions(community):
    result = pcoa(relative_abundance(community), n_dimensions=2)
    assert result.samples.shape == (4, 2)
    assert list(result.samples.index) == ["even", "pair", "mixed", "skewed"]
    assert len(result.proportion_explained) == 2
    assert result.proportion_explained.iloc[0] >= result.proportion_explained.iloc[1]


def test_pcoa_caps_dimensions_at_samples_minus_one(community):
    result = pcoa(relative_abundance(community), n_dimensions=10)
    assert result.samples.shape == (4, 3)


# -------------------------------------- DESeq2 ------------------------------------- #

def test_default_contrast():
    metadata = pd.DataFrame({"condition": ["wt", "ko", "wt"]})
    assert _default_contrast(metadata, ["condition"]) == ("condition", "wt", "ko")
    with pytest.raises(DegenerateInputError, match="single level"):
        _default_contrast(metadata.assign(condition="wt"), ["condition"])


def test_deseq2_finds_induced_gene(rnaseq_counts):
    counts, metadata = rnaseq_counts
    results = deseq2(
        counts, metadata, design=["condition"],
        contrast=["condition", "treated", "control"],
    )
    assert list(results.columns) == RESULT_COLUMNS
    assert set(results.index) == set(counts.index)
    assert results.index.name == "gene_id"
    assert results.index[0] == "g0"
    assert results.loc["g0", "log2FoldChange"] > 2
    assert results.loc["g0", "padj"] < 0.05


def test_deseq2_missing_design_column(rnaseq_counts):
    counts, metadata = rnaseq_counts
    with pytest.raises(MalformedInputError, match="batch"):
        deseq2(counts, metadata, design=["batch"])


def test_deseq2_needs_two_samples(rnaseq_counts):
    counts, metadata = rnaseq_counts
    with pytest.raises(DegenerateInputError, match="at least two samples"):
        deseq2(counts[["S0"]], metadata, design=["condition"])


def test_variance_stabilize_shape(rnaseq_counts):
    counts, metadata = rnaseq_counts
    vst = variance_stabilize(counts, metadata, design=["condition"])
    assert vst.shape == counts.shape
    assert list(vst.index) == list(counts.index)
    assert list(vst.columns) == list(counts.columns)
    assert np.isfinite(vst.to_numpy()).all()


@pytest.fixture
def numeric_group_metadata(tmp_path, rnaseq_counts) -> pd.DataFrame:
    """Metadata whose grouping column is coded as numbers, as loaded from disk."""
    counts, _ = rnaseq_counts
    path = write_tsv(tmp_path / "metadata.tsv", [
        "sample-id\tgroup\ttimepoint",
        *(f"{sample}\t{group}\t{day}" for sample, group, day in zip(
            counts.columns, [1, 1, 1, 2, 2, 2], [0, 7, 0, 7, 0, 7])),
    ])
    return load_metadata_tsv(path)


def test_default_contrast_sorts_numeric_levels():
    metadata = pd.DataFrame({"group": [2, 10, 2]})
    assert _default_contrast(metadata, ["group"]) == ("group", "10", "2")


def test_deseq2_numeric_group_codes(rnaseq_counts, numeric_group_metadata):
    """Test that a numerically coded grouping column is compared as levels."""
    counts, _ = rnaseq_counts
    assert pd.api.types.is_integer_dtype(numeric_group_metadata["group"])

    explicit = deseq2(
        counts, numeric_group_metadata, design=["group"], contrast=["group", "2", "1"])
    assert explicit.index[0] == "g0"
    assert explicit.loc["g0", "log2FoldChange"] > 2

    default = deseq2(counts, numeric_group_metadata, design=["group"])
    assert default.index[0] == "g0"
    assert default.loc["g0", "log2FoldChange"] > 2


def test_deseq2_numeric_covariate_stays_continuous(rnaseq_counts, numeric_group_metadata):
    counts, _ = rnaseq_counts
    results = deseq2(
        counts, numeric_group_metadata, design=["timepoint", "group"],
        contrast=["group", "2", "1"],
    )
    assert list(results.columns) == RESULT_COLUMNS
    assert results.loc["g0", "log2FoldChange"] > 2


def test_deseq2_contrast_outside_design(rnaseq_counts):
    counts, metadata = rnaseq_counts
    with pytest.raises(ConfigurationError, match="not part of the design"):
        deseq2(counts, metadata.assign(batch="b1"), design=["batch"],
               contrast=["condition", "treated", "control"])


def test_distance_matrix_dot_product_metric_is_symmetric():
    rng = np.random.RandomState(1)
    table = pd.DataFrame(rng.uniform(size=(30, 6)), columns=[f"s{i}" for i in range(6)])
    dm = distance_matrix(table, metric="euclidean")
    np.testing.assert_array_equal(dm.data, dm.data.T)
    np.testing.assert_array_equal(np.diag(dm.data), 0.0)


def test_available_metrics():
    assert {"observed_features", "shannon", "simpson", "chao1"} <= alpha_metrics.available_metrics()
    assert "faith_pd" not in alpha_metrics.available_metrics()
    assert {"braycurtis", "jaccard", "euclidean", "cityblock"} <= beta_metrics.available_metrics()
    assert "precomputed" not in beta_metrics.available_metrics()
