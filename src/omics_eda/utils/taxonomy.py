# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional, Union

# Third-Party Imports
import pandas as pd

# Local Imports
from omics_eda import constants
from omics_eda.constants import RANKS, UNRESOLVED

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

# ================================= LINEAGE FORMATS ================================== #

@dataclass(frozen=True)
class LineageFormat:
    """How rank tokens are delimited and prefixed in a lineage string.

    Attributes:
        name:      Preset name.
        separator: Regex splitting the lineage into rank tokens.
        prefix:    Regex matching a token's rank prefix. Its ``rank`` group names
                   the rank, either a one-letter code or a zero-based level number.
    """
    name: str
    separator: re.Pattern
    prefix: re.Pattern

    def rank_index(self, key: str) -> Optional[int]:
        if key.isdigit():
            index = int(key)
            return index if index < len(RANKS) else None
        return constants.RANK_PREFIXES.get(key.lower())


LINEAGE_FORMATS: Dict[str, LineageFormat] = {
    # k__Bacteria; p__Firmicutes; c__Bacilli   (QIIME2 / Greengenes / GTDB, Kraken2 via kraken-biom)
    "qiime": LineageFormat(
        name="qiime",
        separator=re.compile(r"\s*;\s*"),
        prefix=re.compile(r"^(?P<rank>[a-zA-Z])__"),
    ),
    # D_0__Bacteria;D_1__Firmicutes;D_2__Bacilli   (SILVA 132 and older)
    "silva": LineageFormat(
        name="silva",
        separator=re.compile(r"\s*;\s*"),
        prefix=re.compile(r"^D_(?P<rank>\d+)__"),
    ),
}


def get_lineage_format(fmt: Union[str, LineageFormat]) -> LineageFormat:
    if isinstance(fmt, LineageFormat):
        return fmt
    try:
        return LINEAGE_FORMATS[fmt]
    except KeyError:
        raise ValueError(
            f"Unknown lineage format: {fmt!r}. Expected one of {sorted(LINEAGE_FORMATS)}"
        ) from None


# ===================================== PARSING ====================================== #

def parse_lineage(
    lineage: Optional[str],
    fmt: Union[str, LineageFormat] = constants.DEFAULT_LINEAGE_FORMAT
) -> Dict[str, str]:
    """
    Split one lineage string into the fixed rank columns.

    Prefixed tokens land on the rank their prefix names; a token without a
    recognised prefix takes the next rank after the previous token. Ranks the
    lineage does not reach are left unresolved (empty string).

    Args:
        lineage: Raw lineage string, e.g. ``"k__Bacteria; p__Firmicutes"``.
        fmt:     Lineage format preset name or LineageFormat.

    Returns:
        Mapping of every rank in ``RANKS`` to its label or ``""``.
    """
    fmt = get_lineage_format(fmt)
    ranks = {rank: UNRESOLVED for rank in RANKS}

    if lineage is None or pd.isna(lineage):
        return ranks
    lineage = str(lineage).strip()
    if not lineage or lineage.lower() in constants.UNASSIGNED_LINEAGES:
        return ranks

    position = 0
    for token in fmt.separator.split(lineage):
        token = token.strip()
        if not token:
            continue
        match = fmt.prefix.match(token)
        if match:
            index = fmt.rank_index(match.group("rank"))
            label = token[match.end():].strip()
        else:
            index = position
            label = token
        if index is None or index >= len(RANKS):
            logger.debug(f"Ignoring lineage token '{token}' beyond the species rank")
            continue
        ranks[RANKS[index]] = label
        position = index + 1

    return ranks


def parse_lineages(
    lineages: pd.Series,
    fmt: Union[str, LineageFormat] = constants.DEFAULT_LINEAGE_FORMAT
) -> pd.DataFrame:
    """
    Parse a Series of lineage strings (indexed by feature ID) into a taxonomy table.

    Returns:
        DataFrame indexed like ``lineages`` with one column per rank.
    """
    fmt = get_lineage_format(fmt)
    records = [parse_lineage(lineage, fmt) for lineage in lineages]
    taxonomy = pd.DataFrame.from_records(records, index=lineages.index, columns=list(RANKS))
    taxonomy.index.name = lineages.index.name
    return taxonomy
