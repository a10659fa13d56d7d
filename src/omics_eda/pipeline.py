# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

# Third-Party Imports
import pandas as pd

# Local Imports
from omics_eda import constants
from omics_eda.config import PipelineConfig
from omics_eda.diversity.alpha import alpha_diversity
from omics_eda.diversity.beta import pcoa
from omics_eda.errors import MalformedInputError
from omics_eda.stats.differential_abundance import deseq2
from omics_eda.utils.alignment import align_features, align_samples
from omics_eda.utils.io import (
    load_counts, load_metadata_tsv, load_taxonomy_tsv, write_table_biom, write_table_tsv
)
from omics_eda.utils.progress import get_progress_bar, _format_task_desc
from omics_eda.utils.table_filtering import filter_table
from omics_eda.utils.table_processing import collapse_taxa, relative_abundance
from omics_eda.utils.taxonomy import parse_lineages

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

# ===================================== RESULTS ====================================== #

@dataclass(frozen=True)
class PipelineResult:
    """Every table derived in one pipeline run. Each is a separate DataFrame;
    none is modified after it is produced."""
    counts: pd.DataFrame
    metadata: pd.DataFrame
    taxonomy: Optional[pd.DataFrame]
    aggregated: pd.DataFrame
    filtered: pd.DataFrame
    relative: pd.DataFrame
    alpha: Optional[pd.DataFrame] = None
    ordination: Optional[pd.DataFrame] = None
    differential: Optional[pd.DataFrame] = None

    def tables(self) -> Dict[str, pd.DataFrame]:
        named = {
            "counts_aggregated": self.aggregated,
            "counts_filtered": self.filtered,
            "relative_abundance": self.relative,
            "taxonomy": self.taxonomy,
            "alpha_diversity": self.alpha,
            "pcoa_samples": self.ordination,
            "deseq2_results": self.differential,
        }
        return {name: df for name, df in named.items() if df is not None}


# ==================================== PIPELINE ====================================== #

def _load_taxonomy(
    config: PipelineConfig,
    lineage: Optional[pd.Series]
) -> pd.DataFrame:
    inputs = config.inputs
    if inputs.taxonomy is not None:
        if lineage is not None:
            logger.debug(
                f"Using {inputs.taxonomy} for taxonomy; ignoring in-table lineage column"
            )
        return load_taxonomy_tsv(
            inputs.taxonomy,
            id_column=inputs.taxonomy_id_column,
            lineage_column=inputs.taxonomy_lineage_column,
            lineage_format=inputs.lineage_format,
        )
    if lineage is None:
        raise MalformedInputError(
            f"Counts table {inputs.counts}: no lineage column to build the taxonomy from"
        )
    return parse_lineages(lineage, inputs.lineage_format)


def run_pipeline(
    config: PipelineConfig,
    write_outputs: bool = True
) -> PipelineResult:
    """Run load → taxonomy → aggregate → filter → relative abundance, then the
    enabled analyses.

    Args:
        config:        Validated pipeline configuration.
        write_outputs: Write every derived table to ``config.output_dir``.

    Returns:
        PipelineResult holding every derived table.
    """
    config.validate()
    inputs = config.inputs
    analyses = config.analyses
    steps = 5 + sum([analyses.alpha_diversity, analyses.ordination,
                     analyses.differential_abundance, write_outputs])

    alpha = ordination = differential = None
    taxonomy = None

    with get_progress_bar() as progress:
        task = progress.add_task(_format_task_desc("Loading tables"), total=steps)

        counts, lineage = load_counts(
            inputs.counts,
            id_column=inputs.counts_id_column,
            sample_suffix=inputs.sample_suffix,
            lineage_column=inputs.lineage_column,
        )
        metadata = load_metadata_tsv(inputs.metadata, inputs.metadata_id_column)
        counts, metadata = align_samples(counts, metadata)
        progress.update(task, advance=1)

        if config.is_taxonomic:
            progress.update(task, description=_format_task_desc("Parsing taxonomy"))
            taxonomy = align_features(counts, _load_taxonomy(config, lineage))
            progress.update(task, advance=1)

            progress.update(
                task, description=_format_task_desc(f"Collapsing to {config.rank}"))
            aggregated = collapse_taxa(counts, taxonomy, config.rank)
            if config.drop_unresolved and constants.UNRESOLVED in aggregated.index:
                logger.info(f"Dropping features unresolved at {config.rank}")
                aggregated = aggregated.drop(index=constants.UNRESOLVED)
            progress.update(task, advance=1)
        else:
            aggregated = counts
            progress.update(task, advance=2)

        progress.update(task, description=_format_task_desc("Filtering"))
        filtered = filter_table(aggregated, config.filtering)
        _, metadata = align_samples(filtered, metadata)
        progress.update(task, advance=1)

        progress.update(task, description=_format_task_desc("Relative abundance"))
        relative = relative_abundance(filtered)
        progress.update(task, advance=1)

        if analyses.alpha_diversity:
            progress.update(task, description=_format_task_desc("Alpha diversity"))
            # Retained samples, all features
            alpha = alpha_diversity(
                aggregated.loc[:, filtered.columns], analyses.alpha_metrics)
            progress.update(task, advance=1)

        if analyses.ordination:
            progress.update(task, description=_format_task_desc("PCoA"))
            ordination = pcoa(
                relative,
                metric=analyses.ordination_metric,
                n_dimensions=analyses.ordination_dimensions,
            ).samples
            ordination.index.name = "sample"
            progress.update(task, advance=1)

        if analyses.differential_abundance:
            progress.update(task, description=_format_task_desc("DESeq2"))
            differential = deseq2(
                filtered,
                metadata,
                design=analyses.design,
                contrast=analyses.contrast,
                alpha=analyses.de_alpha,
            )
            progress.update(task, advance=1)

        result = PipelineResult(
            counts=counts,
            metadata=metadata,
            taxonomy=taxonomy,
            aggregated=aggregated,
            filtered=filtered,
            relative=relative,
            alpha=alpha,
            ordination=ordination,
            differential=differential,
        )

        if write_outputs:
            progress.update(task, description=_format_task_desc("Writing outputs"))
            write_results(result, config.output_dir)
            progress.update(task, advance=1)

    logger.info(
        f"Pipeline finished: {filtered.shape[0]} features × {filtered.shape[1]} samples "
        "retained"
    )
    return result


def write_results(result: PipelineResult, output_dir: Path) -> Dict[str, Path]:
    output_dir = Path(output_dir)
    written = {
        name: write_table_tsv(df, output_dir / f"{name}.tsv")
        for name, df in result.tables().items()
    }
    written["counts_filtered_biom"] = write_table_biom(
        result.filtered, output_dir / "counts_filtered.biom")
    logger.info(f"Wrote {len(written)} tables to {output_dir}")
    return written
