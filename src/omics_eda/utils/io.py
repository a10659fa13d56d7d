# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

# Third‑Party Imports
import numpy as np
import pandas as pd
from biom import load_table
from biom.util import biom_open

# Local Imports
from omics_eda import constants
from omics_eda.constants import COMMENT_PREFIX, RANKS, UNRESOLVED
from omics_eda.errors import MalformedInputError, preview_ids
from omics_eda.utils.table_conversion import table_to_df, to_biom
from omics_eda.utils.taxonomy import LineageFormat, parse_lineages

# ========================== INITIALISATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

RANK_ALIASES = {"domain": "kingdom", "superkingdom": "kingdom"}

# ================================== RAW TSV READING ================================= #

def _strip_comment(name: str) -> str:
    return name.strip().lstrip(COMMENT_PREFIX).strip()


def _read_tsv_rows(
    path: Union[str, Path],
    table_name: str,
    drop_comment_rows: bool = False
) -> Tuple[List[str], List[List[str]]]:
    """Read a tab-separated file into a header and rectangular rows.

    Whole-line comments before the header (lines starting with ``#`` that hold no
    tab, e.g. ``# Constructed from biom file``) are skipped and a ``#`` prefixing
    the header line itself (``#OTU ID``) is stripped. QIIME2 ``#q2:`` directive
    rows are dropped, as are any other ``#`` rows when ``drop_comment_rows``.

    Raises:
        FileNotFoundError:   If the path does not exist.
        MalformedInputError: If the file has no header or a row's field count
                             differs from the header's.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{table_name} file not found: {path}")

    header: Optional[List[str]] = None
    rows: List[List[str]] = []
    with open(path, "r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            if header is None:
                if line.startswith(COMMENT_PREFIX) and "\t" not in line:
                    continue
                header = [_strip_comment(name) for name in line.split("\t")]
                n_fields = len(header)
                continue
            if line.startswith(constants.QIIME2_DIRECTIVE_PREFIX):
                continue
            if drop_comment_rows and line.startswith(COMMENT_PREFIX):
                continue
            fields = line.split("\t")
            if len(fields) != n_fields:
                raise MalformedInputError(
                    f"{table_name} table {path}: line {line_no} has {len(fields)} "
                    f"fields but the header has {n_fields}"
                )
            rows.append([field.strip() for field in fields])

    if header is None:
        raise MalformedInputError(f"{table_name} table {path}: no header row found")
    return header, rows


def _check_unique(ids: pd.Index, table_name: str, axis_name: str, path: Path) -> None:
    duplicated = ids[ids.duplicated()]
    if len(duplicated):
        raise MalformedInputError(
            f"{table_name} table {path}: {len(duplicated.unique())} duplicate "
            f"{axis_name} IDs, e.g. {preview_ids(duplicated.unique())}"
        )


def _resolve_column(
    header: List[str],
    column: Optional[str],
    table_name: str,
    path: Path
) -> str:
    if column is None:
        return header[0]
    column = _strip_comment(column)
    if column not in header:
        raise MalformedInputError(
            f"{table_name} table {path}: identifier column '{column}' not found "
            f"(columns: {header[:10]})"
        )
    return column


def _as_counts(
    values: pd.DataFrame,
    table_name: str,
    path: Union[str, Path]
) -> pd.DataFrame:
    """Coerce count cells to numbers, rejecting non-numeric and negative values."""
    numeric = values.apply(pd.to_numeric, errors="coerce")
    bad = numeric.isna() | np.isinf(numeric)
    if bad.any().any():
        feature, sample = bad.stack()[lambda s: s].index[0]
        raise MalformedInputError(
            f"{table_name} table {path}: non-numeric count "
            f"{values.at[feature, sample]!r} for feature '{feature}' in sample '{sample}'"
        )
    negative = numeric < 0
    if negative.any().any():
        feature, sample = negative.stack()[lambda s: s].index[0]
        raise MalformedInputError(
            f"{table_name} table {path}: negative count "
            f"{numeric.at[feature, sample]} for feature '{feature}' in sample '{sample}'"
        )
    if np.all(np.mod(numeric.to_numpy(dtype=float), 1) == 0):
        return numeric.astype("int64")
    logger.warning(
        f"{table_name} table {path} holds non-integer counts; keeping them as floats"
    )
    return numeric.astype("float64")


# ================================== COUNT MATRICES ================================== #

def load_counts_tsv(
    tsv_path: Union[str, Path],
    id_column: Optional[str] = None,
    sample_suffix: Optional[str] = None,
    lineage_column: Optional[str] = None,
) -> Tuple[pd.DataFrame, Optional[pd.Series]]:
    """Load a features × samples count matrix from a TSV file.

    Args:
        tsv_path:       Path to the counts TSV.
        id_column:      Column holding feature IDs; the first column when None.
        sample_suffix:  Tag appended to every sample column name by the exporter
                        (e.g. ``"_counts"``), removed to recover bare sample IDs.
        lineage_column: In-table lineage column (kraken-biom / QIIME1 ``taxonomy``)
                        to split off from the counts.

    Returns:
        Tuple of (count matrix, lineage Series indexed by feature ID or None).

    Raises:
        MalformedInputError: Missing identifier column, ragged rows, non-numeric
                             or negative counts, duplicate IDs.
    """
    tsv_path = Path(tsv_path)
    header, rows = _read_tsv_rows(tsv_path, "Counts")
    id_column = _resolve_column(header, id_column, "Counts", tsv_path)

    df = pd.DataFrame(rows, columns=header, dtype=str)
    _check_unique(pd.Index(header), "Counts", "column", tsv_path)
    df = df.set_index(id_column)
    _check_unique(df.index, "Counts", "feature", tsv_path)

    lineage = None
    if lineage_column is not None:
        lineage_column = _strip_comment(lineage_column)
        if lineage_column not in df.columns:
            raise MalformedInputError(
                f"Counts table {tsv_path}: lineage column '{lineage_column}' not found"
            )
        lineage = df.pop(lineage_column)

    if df.shape[1] == 0:
        raise MalformedInputError(f"Counts table {tsv_path}: no sample columns")

    if sample_suffix:
        df.columns = [
            col[: -len(sample_suffix)] if col.endswith(sample_suffix) else col
            for col in df.columns
        ]
        _check_unique(df.columns, "Counts", f"sample (after removing '{sample_suffix}')",
                      tsv_path)

    counts = _as_counts(df, "Counts", tsv_path)
    counts.columns.name = None
    logger.info(
        f"Loaded counts {tsv_path.name}: {counts.shape[0]} features × "
        f"{counts.shape[1]} samples"
    )
    return counts, lineage


def load_counts_biom(biom_path: Union[str, Path]) -> pd.DataFrame:
    """Load a features × samples count matrix from a BIOM file (e.g. a QIIME2
    ``feature-table.biom`` export)."""
    biom_path = Path(biom_path)
    if not biom_path.exists():
        raise FileNotFoundError(f"Counts file not found: {biom_path}")
    counts = _as_counts(table_to_df(load_table(str(biom_path))), "Counts", biom_path)
    counts.index.name = "feature-id"
    logger.info(
        f"Loaded counts {biom_path.name}: {counts.shape[0]} features × "
        f"{counts.shape[1]} samples"
    )
    return counts


def load_counts(
    path: Union[str, Path],
    id_column: Optional[str] = None,
    sample_suffix: Optional[str] = None,
    lineage_column: Optional[str] = None,
) -> Tuple[pd.DataFrame, Optional[pd.Series]]:
    """Dispatch on file extension: ``.biom`` files are read with biom, anything
    else as TSV."""
    if Path(path).suffix.lower() == ".biom":
        return load_counts_biom(path), None
    return load_counts_tsv(path, id_column, sample_suffix, lineage_column)


# ===================================== METADATA ===================================== #

def _infer_column_types(df: pd.DataFrame) -> pd.DataFrame:
    """Turn all-numeric string columns into numbers; empty cells become NaN."""
    df = df.replace("", np.nan)
    for col in df.columns:
        converted = pd.to_numeric(df[col], errors="coerce")
        if converted.notna().sum() == df[col].notna().sum():
            df[col] = converted
    return df


def load_metadata_tsv(
    tsv_path: Union[str, Path],
    sample_id_column: str = constants.DEFAULT_META_ID_COLUMN
) -> pd.DataFrame:
    """Load a sample metadata TSV indexed by sample ID.

    Args:
        tsv_path:         Path to metadata TSV file.
        sample_id_column: Column holding sample IDs (a leading ``#`` is ignored,
                          so ``#SampleID`` and ``SampleID`` match alike).

    Returns:
        Metadata DataFrame with sample IDs (str) as index.

    Raises:
        MalformedInputError: Missing ID column, ragged rows, empty or duplicate IDs.
    """
    tsv_path = Path(tsv_path)
    header, rows = _read_tsv_rows(tsv_path, "Metadata", drop_comment_rows=True)
    sample_id_column = _resolve_column(header, sample_id_column, "Metadata", tsv_path)

    df = pd.DataFrame(rows, columns=header, dtype=str)
    ids = df.pop(sample_id_column)
    if (ids == "").any():
        raise MalformedInputError(f"Metadata table {tsv_path}: empty sample ID")

    df = _infer_column_types(df)
    df.index = pd.Index(ids, name=sample_id_column)
    _check_unique(df.index, "Metadata", "sample", tsv_path)

    logger.info(f"Loaded metadata {tsv_path.name}: {len(df)} samples, {df.shape[1]} columns")
    return df


# ===================================== TAXONOMY ===================================== #

def load_taxonomy_tsv(
    tsv_path: Union[str, Path],
    id_column: str = constants.DEFAULT_TAXONOMY_ID_COLUMN,
    lineage_column: str = constants.DEFAULT_LINEAGE_COLUMN,
    lineage_format: Union[str, LineageFormat] = constants.DEFAULT_LINEAGE_FORMAT
) -> pd.DataFrame:
    """Load a taxonomy table with one row per feature and one column per rank.

    Accepts either a raw lineage column (QIIME2 ``taxonomy.tsv``: Feature ID,
    Taxon, Confidence) or already-split rank columns (matched
    case-insensitively; ``domain`` counts as kingdom).

    Raises:
        MalformedInputError: Missing ID column, duplicate IDs, or neither a lineage
                             column nor any rank column.
    """
    tsv_path = Path(tsv_path)
    header, rows = _read_tsv_rows(tsv_path, "Taxonomy")
    id_column = _resolve_column(header, id_column, "Taxonomy", tsv_path)

    df = pd.DataFrame(rows, columns=header, dtype=str).set_index(id_column)
    _check_unique(df.index, "Taxonomy", "feature", tsv_path)

    lineage_column = _strip_comment(lineage_column) if lineage_column else None
    if lineage_column and lineage_column in df.columns:
        taxonomy = parse_lineages(df[lineage_column], lineage_format)
    else:
        rank_columns = {}
        for col in df.columns:
            rank = RANK_ALIASES.get(col.lower(), col.lower())
            if rank in RANKS and rank not in rank_columns:
                rank_columns[rank] = col
        if not rank_columns:
            raise MalformedInputError(
                f"Taxonomy table {tsv_path}: neither lineage column '{lineage_column}' "
                f"nor any of the rank columns {list(RANKS)} found"
            )
        taxonomy = pd.DataFrame(index=df.index)
        for rank in RANKS:
            taxonomy[rank] = (
                df[rank_columns[rank]].fillna(UNRESOLVED).str.strip()
                if rank in rank_columns else UNRESOLVED
            )

    logger.info(f"Loaded taxonomy {tsv_path.name}: {len(taxonomy)} features")
    return taxonomy


# ===================================== WRITING ====================================== #

def write_table_tsv(df: pd.DataFrame, tsv_path: Union[str, Path]) -> Path:
    tsv_path = Path(tsv_path)
    tsv_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(tsv_path, sep="\t", index=True)
    logger.debug(f"Wrote {tsv_path}")
    return tsv_path


def write_table_biom(
    df: pd.DataFrame,
    biom_path: Union[str, Path],
    generated_by: str = "omics_eda"
) -> Path:
    """Export a features × samples count matrix as an HDF5 BIOM table."""
    biom_path = Path(biom_path)
    biom_path.parent.mkdir(parents=True, exist_ok=True)
    with biom_open(str(biom_path), "w") as f:
        to_biom(df).to_hdf5(f, generated_by)
    logger.debug(f"Wrote {biom_path}")
    return biom_path
