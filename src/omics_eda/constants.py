from pathlib import Path

# ==================================================================================== #
# PROGRESS BAR
# ==================================================================================== #
# See supported colors at: https://www.w3schools.com/colors/colors_x11.asp

# Total character width of the progress bar text
DEFAULT_N: int = 45
# Color of the progress bar description text
DEFAULT_DESCRIPTION_STYLE: str = "white"
# Width of the progress bar
DEFAULT_BAR_WIDTH: int = 40
# Color of the filled/complete portion of the progress bar
DEFAULT_BAR_COLUMN_COMPLETE_STYLE: str = "honeydew2"
# Color used when the progress bar is finished
DEFAULT_FINISHED_STYLE: str = "dark_cyan"
# Color of the "X of Y complete" text (e.g., "3/5")
DEFAULT_M_OF_N_COMPLETE_STYLE: str = "honeydew2"
# Color of the time elapsed display (e.g., "0:00:04")
DEFAULT_TIME_ELAPSED_STYLE: str = "light_sky_blue1"

# ==================================================================================== #
# SETTINGS
# ==================================================================================== #
# Go up two levels
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "references" / "config.yaml"
DEFAULT_OUTPUT_DIR = "results"

DATA_TYPES = ("amplicon", "metagenomic", "rnaseq")
TAXONOMIC_DATA_TYPES = ("amplicon", "metagenomic")
DEFAULT_DATA_TYPE = "amplicon"

# ==================================================================================== #
# INPUT TABLES
# ==================================================================================== #
COMMENT_PREFIX = "#"

DEFAULT_META_ID_COLUMN = "sample-id"
# QIIME2 metadata files may carry directive rows (#q2:types) directly under the header
QIIME2_DIRECTIVE_PREFIX = "#q2:"

DEFAULT_TAXONOMY_ID_COLUMN = "Feature ID"
DEFAULT_LINEAGE_COLUMN = "Taxon"

# ==================================================================================== #
# TAXONOMY
# ==================================================================================== #
RANKS = ("kingdom", "phylum", "class", "order", "family", "genus", "species")
UNRESOLVED = ""
UNASSIGNED_LINEAGES = {"unassigned", "unclassified", "unknown"}

# One-letter rank prefixes (k__Bacteria, p__Firmicutes, ...). GTDB uses d__ for domain.
RANK_PREFIXES = {
    "k": 0, "d": 0,
    "p": 1,
    "c": 2,
    "o": 3,
    "f": 4,
    "g": 5,
    "s": 6,
}
LINEAGE_FORMAT_NAMES = ("qiime", "silva")
DEFAULT_LINEAGE_FORMAT = "qiime"
DEFAULT_RANK = "genus"

# ==================================================================================== #
# FILTERING
# ==================================================================================== #
DEFAULT_MIN_SAMPLE_COUNT = 1000
DEFAULT_MIN_FEATURE_ABUNDANCE = 0.001
DEFAULT_MIN_FEATURE_FRACTION = 0.1

# ==================================================================================== #
# ANALYSES
# ==================================================================================== #
DEFAULT_ALPHA_METRICS = ["observed_features", "shannon", "simpson", "chao1"]
DEFAULT_METRIC = "braycurtis"
DEFAULT_N_PCOA = 3
DEFAULT_PSEUDOCOUNT = 1e-5
DEFAULT_DE_ALPHA = 0.05
