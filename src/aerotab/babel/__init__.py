"""
aerotab.babel - Dataset records and document readers.

Supports:
- DAVE-ML (table functions, breakpoints, provenance)
- Direct construction of records from Python
"""

from aerotab.babel.daveml import parse_daveml, read_daveml, read_daveml_string
from aerotab.babel.records import (
    BreakpointRecord,
    DatasetRecords,
    FunctionRecord,
    GriddedTableRecord,
    ModificationRecord,
    ProvenanceRecord,
    UngriddedTableRecord,
    VariablePointsRecord,
    VariableRecord,
    VariableRefRecord,
)

__all__ = [
    "read_daveml",
    "read_daveml_string",
    "parse_daveml",
    "BreakpointRecord",
    "DatasetRecords",
    "FunctionRecord",
    "GriddedTableRecord",
    "ModificationRecord",
    "ProvenanceRecord",
    "UngriddedTableRecord",
    "VariablePointsRecord",
    "VariableRecord",
    "VariableRefRecord",
]
