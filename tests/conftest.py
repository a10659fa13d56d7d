"""Shared fixtures: small count, metadata and taxonomy tables."""

from pathlib import Path
from typing import List

import numpy as np
import pandas as pd
import pytest

from omics_eda.constants import RANKS


def write_tsv(path: Path, lines: List[str]) -> Path:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def simulate_rnaseq(n_genes: int = 60, n_per_group: int = 3, seed: int = 0) -> pd.DataFrame:
    """Poisson gene counts for a control group followed by a treated group;
    g0 is induced eightfold in the treated samples."""
    rng = np.random.RandomState(seed)
    means = rng.uniform(50, 500, size=n_genes)
    induced = means * np.r_[8.0, np.ones(n_genes - 1)]
    values = np.column_stack(
        [rng.poisson(means) for _ in range(n_per_group)]
        + [rng.poisson(induced) for _ in range(n_per_group)]
    )
    return pd.DataFrame(
        values,
        index=pd.Index([f"g{i}" for i in range(n_genes)], name="gene_id"),
        columns=[f"S{i}" for i in range(2 * n_per_group)],
    )


def taxonomy_frame(genera: dict) -> pd.DataFrame:
    """Taxonomy table with only the genus rank filled in."""
    records = {
        feature: {rank: (genus if rank == "genus" else "") for rank in RANKS}
        for feature, genus in genera.items()
    }
    return pd.DataFrame.from_dict(records, orient="index", columns=list(RANKS))


@pytest.fixture
def scenario_counts() -> pd.DataFrame:
    return pd.DataFrame(
        {"s1": [10, 0, 5], "s2": [0, 20, 5]},
        index=pd.Index(["A", "B", "C"], name="feature"),
    )


@pytest.fixture
def scenario_taxonomy() -> pd.DataFrame:
    return taxonomy_frame({"A": "genus1", "B": "genus1", "C": "genus2"})


@pytest.fixture
def amplicon_files(tmp_path: Path) -> dict:
    """QIIME2-style exports: feature table, sample metadata and taxonomy."""
    counts = write_tsv(tmp_path / "feature-table.tsv", [
        "# Constructed from biom file",
        "#OTU ID\ts1\ts2\ts3\ts4\ts5",
        "f1\t100\t80\t90\t110\t1",
        "f2\t50\t40\t60\t30\t0",
        "f3\t200\t220\t180\t210\t1",
        "f4\t30\t60\t40\t50\t0",
        "f5\t20\t10\t30\t20\t0",
        "f6\t0\t0\t1\t0\t0",
    ])
    metadata = write_tsv(tmp_path / "sample-metadata.tsv", [
        "sample-id\tcondition\tph",
        "#q2:types\tcategorical\tnumeric",
        "s1\tcontrol\t6.5",
        "s2\tcontrol\t6.8",
        "s3\ttreated\t7.1",
        "s4\ttreated\t7.4",
        "s5\ttreated\t7.0",
        "s9\tcontrol\t6.9",
    ])
    taxonomy = write_tsv(tmp_path / "taxonomy.tsv", [
        "Feature ID\tTaxon\tConfidence",
        "f1\tk__Bacteria; p__Firmicutes; c__Bacilli; o__Bacillales; f__Bacillaceae; g__Bacillus\t0.99",
        "f2\tk__Bacteria; p__Firmicutes; c__Bacilli; o__Bacillales; f__Bacillaceae; g__Bacillus; s__subtilis\t0.97",
        "f3\tk__Bacteria; p__Proteobacteria; c__Gammaproteobacteria; o__Enterobacterales; f__Enterobacteriaceae; g__Escherichia\t0.99",
        "f4\tk__Bacteria; p__Proteobacteria; c__Gammaproteobacteria; o__Pseudomonadales; f__Pseudomonadaceae; g__Pseudomonas\t0.95",
        "f5\tk__Bacteria; p__Firmicutes\t0.80",
        "f6\tk__Bacteria; p__Actinobacteriota; c__Actinomycetia; o__Rarales; f__Raraceae; g__Rarus\t0.70",
    ])
    return {"counts": counts, "metadata": metadata, "taxonomy": taxonomy}


@pytest.fixture
def rnaseq_files(tmp_path: Path) -> dict:
    """featureCounts-style gene table whose sample columns carry a suffix."""
    counts = write_tsv(tmp_path / "gene_counts.tsv", [
        "gene_id\tA_counts\tB_counts\tC_counts\tD_counts",
        "ENSG01\t500\t450\t520\t480",
        "ENSG02\t300\t350\t280\t320",
        "ENSG03\t0\t0\t0\t2",
        "ENSG04\t150\t120\t170\t160",
    ])
    metadata = write_tsv(tmp_path / "samples.tsv", [
        "sample\tcondition",
        "A\tcontrol",
        "B\tcontrol",
        "C\ttreated",
        "D\ttreated",
    ])
    return {"counts": counts, "metadata": metadata}
