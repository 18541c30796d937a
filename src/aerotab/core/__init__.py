"""Core data model for aerotab.

This package provides the load-time building blocks of a dataset:
- Identifier index: string identifiers to dense positions, per element kind
- Breakpoint sets: monotonic axes shared by gridded tables
- Variable bindings: per-dimension bounding and interpolation policy
- Gridded and ungridded tables
- Functions: a dependent variable bound to one table
- Variable store: current variable values read during evaluation
"""

from aerotab.core.bindings import ExtrapolateMethod, InterpolateMethod, VariableBinding
from aerotab.core.breakpoints import BreakpointSet
from aerotab.core.functions import Function, TableKind, TableRef
from aerotab.core.gridded import GriddedTable
from aerotab.core.index import ElementKind, IdentifierIndex
from aerotab.core.ungridded import SearchOutcome, SimplexCache, UngriddedTable
from aerotab.core.variables import Variable, VariableStore

__all__ = [
    # Cross-references
    "ElementKind",
    "IdentifierIndex",
    # Tables and axes
    "BreakpointSet",
    "GriddedTable",
    "UngriddedTable",
    "SearchOutcome",
    "SimplexCache",
    # Functions
    "ExtrapolateMethod",
    "InterpolateMethod",
    "VariableBinding",
    "Function",
    "TableKind",
    "TableRef",
    # Variables
    "Variable",
    "VariableStore",
]
