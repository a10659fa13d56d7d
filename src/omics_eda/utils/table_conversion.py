# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import logging
from typing import Union

# Third-Party Imports
import pandas as pd
from biom import Table

# ========================== INITIALIZATION & CONFIGURATION ========================== #

logger = logging.getLogger("omics_eda")

# ================================ TABLE CONVERSION ================================== #

def table_to_df(table: Union[Table, pd.DataFrame]) -> pd.DataFrame:
    """Convert a BIOM Table or DataFrame to a features × samples DataFrame.

    Args:
        table: Input table.

    Returns:
        DataFrame in features × samples orientation.

    Raises:
        TypeError: For unsupported input types.
    """
    if isinstance(table, pd.DataFrame):  # features × samples
        return table
    if isinstance(table, Table):         # features × samples
        df = table.to_dataframe(dense=True)
        df.index = df.index.astype(str)
        df.columns = df.columns.astype(str)
        return df
    raise TypeError("Input must be BIOM Table or DataFrame.")


def to_biom(table: Union[Table, pd.DataFrame]) -> Table:
    """Convert a features × samples DataFrame to a BIOM Table.

    Args:
        table: Input table.

    Returns:
        BIOM Table object.

    Raises:
        TypeError: For unsupported input types.
    """
    if isinstance(table, Table):
        return table
    if isinstance(table, pd.DataFrame):
        return Table(
            table.values,
            observation_ids=[str(i) for i in table.index],
            sample_ids=[str(c) for c in table.columns],
        )
    raise TypeError("Input must be BIOM Table or DataFrame.")
