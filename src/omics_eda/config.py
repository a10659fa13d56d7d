# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import numbers
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

# Third-Party Imports
import yaml

# Local Imports
from omics_eda import constants
from omics_eda.diversity import alpha, beta
from omics_eda.errors import ConfigurationError

# ================================= CONFIG SECTIONS ================================== #

@dataclass(frozen=True)
class InputConfig:
    """Where the input tables live and how their identifiers are spelled."""
    counts: Path
    metadata: Path
    taxonomy: Optional[Path] = None
    counts_id_column: Optional[str] = None
    sample_suffix: Optional[str] = None
    lineage_column: Optional[str] = None
    metadata_id_column: str = constants.DEFAULT_META_ID_COLUMN
    taxonomy_id_column: str = constants.DEFAULT_TAXONOMY_ID_COLUMN
    taxonomy_lineage_column: str = constants.DEFAULT_LINEAGE_COLUMN
    lineage_format: str = constants.DEFAULT_LINEAGE_FORMAT


@dataclass(frozen=True)
class FilterConfig:
    """Thresholds for the sample and feature filters.

    min_sample_count:     a sample is kept iff its total count is strictly greater.
    min_feature_abundance: relative abundance a feature must exceed in a sample to
                           count as present there.
    min_feature_fraction: a feature is kept iff the fraction of samples where it is
                          present strictly exceeds this value.
    """
    min_sample_count: int = constants.DEFAULT_MIN_SAMPLE_COUNT
    min_feature_abundance: float = constants.DEFAULT_MIN_FEATURE_ABUNDANCE
    min_feature_fraction: float = constants.DEFAULT_MIN_FEATURE_FRACTION

    def validate(self) -> None:
        if (
            isinstance(self.min_sample_count, bool)
            or not isinstance(self.min_sample_count, numbers.Integral)
            or self.min_sample_count < 0
        ):
            raise ConfigurationError(
                f"filtering.min_sample_count must be a non-negative integer, "
                f"got {self.min_sample_count!r}"
            )
        for name in ("min_feature_abundance", "min_feature_fraction"):
            value = getattr(self, name)
            if (
                isinstance(value, bool)
                or not isinstance(value, numbers.Real)
                or not 0 <= value < 1
            ):
                raise ConfigurationError(
                    f"filtering.{name} must be a number in [0, 1), got {value!r}"
                )


@dataclass(frozen=True)
class AnalysisConfig:
    """Which downstream analyses run and with what parameters."""
    alpha_diversity: bool = True
    alpha_metrics: Tuple[str, ...] = tuple(constants.DEFAULT_ALPHA_METRICS)
    ordination: bool = True
    ordination_metric: str = constants.DEFAULT_METRIC
    ordination_dimensions: int = constants.DEFAULT_N_PCOA
    differential_abundance: bool = False
    design: Tuple[str, ...] = ()
    contrast: Optional[Tuple[str, str, str]] = None
    de_alpha: float = constants.DEFAULT_DE_ALPHA

    def validate(self) -> None:
        if self.alpha_diversity:
            if not self.alpha_metrics:
                raise ConfigurationError("alpha_diversity.metrics must name at least one metric")
            unknown = [m for m in self.alpha_metrics if m not in alpha.available_metrics()]
            if unknown:
                raise ConfigurationError(
                    f"alpha_diversity.metrics: unknown metric(s) {unknown}; expected "
                    f"scikit-bio names such as {list(constants.DEFAULT_ALPHA_METRICS)}"
                )
        if self.ordination:
            if self.ordination_metric not in beta.available_metrics():
                raise ConfigurationError(
                    f"ordination.metric: unknown distance {self.ordination_metric!r}; "
                    f"expected one of {sorted(beta.available_metrics())}"
                )
            if (
                isinstance(self.ordination_dimensions, bool)
                or not isinstance(self.ordination_dimensions, numbers.Integral)
                or self.ordination_dimensions < 1
            ):
                raise ConfigurationError(
                    f"ordination.n_dimensions must be an integer ≥ 1, "
                    f"got {self.ordination_dimensions!r}"
                )
        if self.differential_abundance:
            if not self.design:
                raise ConfigurationError(
                    "differential_abundance.design must name at least one metadata column"
                )
            if self.contrast is not None and len(self.contrast) != 3:
                raise ConfigurationError(
                    "differential_abundance.contrast must be [column, tested level, "
                    f"reference level], got {list(self.contrast)!r}"
                )
            if self.contrast is not None and self.contrast[0] not in self.design:
                raise ConfigurationError(
                    f"Contrast column '{self.contrast[0]}' is not part of the design "
                    f"{list(self.design)}"
                )
            if (
                isinstance(self.de_alpha, bool)
                or not isinstance(self.de_alpha, numbers.Real)
                or not 0 < self.de_alpha < 1
            ):
                raise ConfigurationError(
                    f"differential_abundance.alpha must be a number in (0, 1), "
                    f"got {self.de_alpha!r}"
                )


@dataclass(frozen=True)
class PipelineConfig:
    inputs: InputConfig
    data_type: str = constants.DEFAULT_DATA_TYPE
    rank: Optional[str] = constants.DEFAULT_RANK
    drop_unresolved: bool = False
    filtering: FilterConfig = field(default_factory=FilterConfig)
    analyses: AnalysisConfig = field(default_factory=AnalysisConfig)
    output_dir: Path = Path(constants.DEFAULT_OUTPUT_DIR)
    log_dir: Optional[Path] = None

    @property
    def is_taxonomic(self) -> bool:
        return self.data_type in constants.TAXONOMIC_DATA_TYPES

    def validate(self) -> "PipelineConfig":
        """Reject out-of-range values before any computation runs."""
        if self.data_type not in constants.DATA_TYPES:
            raise ConfigurationError(
                f"data_type must be one of {list(constants.DATA_TYPES)}, "
                f"got {self.data_type!r}"
            )
        if self.is_taxonomic:
            if self.rank not in constants.RANKS:
                raise ConfigurationError(
                    f"aggregation.rank must be one of {list(constants.RANKS)}, "
                    f"got {self.rank!r}"
                )
            if self.inputs.taxonomy is None and self.inputs.lineage_column is None:
                raise ConfigurationError(
                    f"data_type '{self.data_type}' needs inputs.taxonomy or "
                    "inputs.lineage_column"
                )
            if self.inputs.lineage_format not in constants.LINEAGE_FORMAT_NAMES:
                raise ConfigurationError(
                    f"inputs.lineage_format must be one of "
                    f"{list(constants.LINEAGE_FORMAT_NAMES)}, "
                    f"got {self.inputs.lineage_format!r}"
                )
        self.filtering.validate()
        self.analyses.validate()
        return self

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "PipelineConfig":
        """Build (and validate) a PipelineConfig from a loaded YAML mapping."""
        inputs = config.get("inputs")
        if not inputs or "counts" not in inputs or "metadata" not in inputs:
            raise ConfigurationError("inputs.counts and inputs.metadata are required")

        input_cfg = InputConfig(
            counts=Path(inputs["counts"]),
            metadata=Path(inputs["metadata"]),
            taxonomy=_optional_path(inputs.get("taxonomy")),
            counts_id_column=inputs.get("counts_id_column"),
            sample_suffix=inputs.get("sample_suffix"),
            lineage_column=inputs.get("lineage_column"),
            metadata_id_column=inputs.get(
                "metadata_id_column", constants.DEFAULT_META_ID_COLUMN),
            taxonomy_id_column=inputs.get(
                "taxonomy_id_column", constants.DEFAULT_TAXONOMY_ID_COLUMN),
            taxonomy_lineage_column=inputs.get(
                "taxonomy_lineage_column", constants.DEFAULT_LINEAGE_COLUMN),
            lineage_format=inputs.get("lineage_format", constants.DEFAULT_LINEAGE_FORMAT),
        )

        filtering = config.get("filtering", {}) or {}
        filter_cfg = FilterConfig(
            min_sample_count=filtering.get(
                "min_sample_count", constants.DEFAULT_MIN_SAMPLE_COUNT),
            min_feature_abundance=filtering.get(
                "min_feature_abundance", constants.DEFAULT_MIN_FEATURE_ABUNDANCE),
            min_feature_fraction=filtering.get(
                "min_feature_fraction", constants.DEFAULT_MIN_FEATURE_FRACTION),
        )

        alpha_section = config.get("alpha_diversity", {}) or {}
        ordination = config.get("ordination", {}) or {}
        de = config.get("differential_abundance", {}) or {}
        contrast = de.get("contrast")
        analysis_cfg = AnalysisConfig(
            alpha_diversity=is_enabled(alpha_section, default=True),
            alpha_metrics=tuple(_as_list(
                alpha_section.get("metrics", constants.DEFAULT_ALPHA_METRICS))),
            ordination=is_enabled(ordination, default=True),
            ordination_metric=ordination.get("metric", constants.DEFAULT_METRIC),
            ordination_dimensions=ordination.get("n_dimensions", constants.DEFAULT_N_PCOA),
            differential_abundance=is_enabled(de, default=False),
            design=tuple(_as_list(de.get("design"))),
            contrast=tuple(contrast) if contrast is not None else None,
            de_alpha=de.get("alpha", constants.DEFAULT_DE_ALPHA),
        )

        aggregation = config.get("aggregation", {}) or {}
        return cls(
            inputs=input_cfg,
            data_type=config.get("data_type", constants.DEFAULT_DATA_TYPE),
            rank=aggregation.get("rank", constants.DEFAULT_RANK),
            drop_unresolved=bool(aggregation.get("drop_unresolved", False)),
            filtering=filter_cfg,
            analyses=analysis_cfg,
            output_dir=Path(config.get("output_dir", constants.DEFAULT_OUTPUT_DIR)),
            log_dir=_optional_path(config.get("log_dir")),
        ).validate()


# ==================================== FUNCTIONS ===================================== #

def is_enabled(section: Dict, default: bool = False) -> bool:
    return bool(section.get("enabled", default))


def _optional_path(value: Optional[Union[str, Path]]) -> Optional[Path]:
    return Path(value) if value is not None else None


def _as_list(value: Any) -> List:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def resolve_relative_paths(config: Dict, config_dir: Path) -> Dict:
    """Converts any relative paths in the configuration to absolute paths based on
    the directory of the config file."""
    for key, value in config.items():
        if isinstance(value, str):
            if value.startswith("./") or value.startswith("../"):
                config[key] = (config_dir / value).resolve()
        elif isinstance(value, dict):
            config[key] = resolve_relative_paths(value, config_dir)
    return config


def get_config(
    config_path: Union[str, Path] = constants.DEFAULT_CONFIG_PATH
) -> Dict:
    with open(config_path, "r") as file:
        config = yaml.safe_load(file) or {}

    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {config_path} does not hold a mapping")

    config_dir = Path(config_path).resolve().parent
    return resolve_relative_paths(config, config_dir)


def load_pipeline_config(
    config_path: Union[str, Path] = constants.DEFAULT_CONFIG_PATH
) -> PipelineConfig:
    return PipelineConfig.from_dict(get_config(config_path))
