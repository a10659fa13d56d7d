# ===================================== IMPORTS ====================================== #

# Standard Library Imports
from typing import Iterable, List

# ==================================== EXCEPTIONS ==================================== #

class OmicsTableError(ValueError):
    """Base class for every fatal input or configuration problem."""


class MalformedInputError(OmicsTableError):
    """A table is structurally broken: missing identifier column, ragged rows,
    non-numeric or negative counts, duplicated identifiers."""


class IdentifierMismatchError(OmicsTableError):
    """Identifiers present in one table are missing from another."""


class DegenerateInputError(OmicsTableError):
    """A step would leave nothing (or something undefined) to compute on."""


class ConfigurationError(OmicsTableError):
    """A configuration value is missing or out of range."""


# ==================================== FUNCTIONS ===================================== #

def preview_ids(ids: Iterable, n: int = 5) -> List[str]:
    """First `n` identifiers, as strings, for error messages."""
    return [str(i) for i in list(ids)[:n]]
