"""
Exploration toolkit for omics count tables (16S amplicon, shotgun metagenomic and
bulk RNA-seq).

Usage:
    from omics_eda import load_counts_tsv, parse_lineages, collapse_taxa, ...
"""

from .errors import (
    OmicsTableError,
    MalformedInputError,
    IdentifierMismatchError,
    DegenerateInputError,
    ConfigurationError
)

from .config import (
    FilterConfig,
    PipelineConfig,
    load_pipeline_config
)

from .utils.io import (
    load_counts,
    load_counts_biom,
    load_counts_tsv,
    load_metadata_tsv,
    load_taxonomy_tsv
)

from .utils.taxonomy import (
    parse_lineage,
    parse_lineages
)

from .utils.alignment import (
    align_features,
    align_samples
)

from .utils.table_processing import (
    collapse_taxa,
    relative_abundance,
    clr
)

from .utils.table_filtering import (
    filter_features,
    filter_samples,
    filter_table
)

from .pipeline import (
    PipelineResult,
    run_pipeline
)

__all__ = [
    'OmicsTableError',
    'MalformedInputError',
    'IdentifierMismatchError',
    'DegenerateInputError',
    'ConfigurationError',
    'FilterConfig',
    'PipelineConfig',
    'load_pipeline_config',
    'load_counts',
    'load_counts_biom',
    'load_counts_tsv',
    'load_metadata_tsv',
    'load_taxonomy_tsv',
    'parse_lineage',
    'parse_lineages',
    'align_features',
    'align_samples',
    'collapse_taxa',
    'relative_abundance',
    'clr',
    'filter_features',
    'filter_samples',
    'filter_table',
    'PipelineResult',
    'run_pipeline'
]
