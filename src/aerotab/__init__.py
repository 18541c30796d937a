"""aerotab - Table-driven function evaluation for DAVE-ML datasets."""

from aerotab.babel import DatasetRecords, read_daveml
from aerotab.config import EngineSettings, load_settings
from aerotab.core import (
    BreakpointSet,
    ExtrapolateMethod,
    Function,
    GriddedTable,
    IdentifierIndex,
    InterpolateMethod,
    UngriddedTable,
    VariableBinding,
)
from aerotab.dataset import Dataset
from aerotab.version import __version__

__all__ = [
    "__version__",
    "Dataset",
    "DatasetRecords",
    "read_daveml",
    "EngineSettings",
    "load_settings",
    "IdentifierIndex",
    "BreakpointSet",
    "GriddedTable",
    "UngriddedTable",
    "Function",
    "VariableBinding",
    "ExtrapolateMethod",
    "InterpolateMethod",
]
