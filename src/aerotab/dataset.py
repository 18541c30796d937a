"""
Dataset: owner of every loaded element and entry point for evaluation.

All breakpoint sets, tables and functions live in flat lists owned by one
:class:`Dataset`. Cross-references between them are positions into those
lists, resolved once through the identifier index while loading. Nothing
holds a reference back to the dataset; evaluation reads it explicitly.

Loading happens in dependency order (variables, breakpoints, tables,
functions) and stops at the first structural fault. After loading, the
only mutable state is the variable store and each ungridded table's
simplex cache.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import numpy as np
from pydantic import ValidationError

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
from aerotab.config import EngineSettings
from aerotab.core.bindings import VariableBinding
from aerotab.core.breakpoints import BreakpointSet
from aerotab.core.functions import Function, TableKind, TableRef
from aerotab.core.gridded import GriddedTable
from aerotab.core.index import ElementKind, IdentifierIndex
from aerotab.core.ungridded import SearchOutcome, UngriddedTable
from aerotab.core.variables import Variable, VariableStore
from aerotab.errors import (
    DimensionMismatchError,
    DuplicateIdError,
    InvalidRecordError,
    LoadError,
    OutOfHullError,
    UnresolvedVariableError,
)
from aerotab.interpolation import (
    linear_interpolation,
    polynomial_interpolation,
    ungridded_interpolation,
)

logger = logging.getLogger(__name__)


class Dataset:
    """
    Arena of dataset elements plus the evaluation dispatcher.

    Example:
        >>> ds = Dataset.from_records(records)
        >>> ds.set_value("alpha", 5.0)
        >>> ds.evaluate("CL_fn")
        0.42
    """

    def __init__(self, name: str = "", settings: EngineSettings | None = None) -> None:
        """
        Initialize an empty dataset.

        Args:
            name: Dataset name
            settings: Engine settings (defaults when omitted)
        """
        self.name = name
        self.settings = settings or EngineSettings()
        self.index = IdentifierIndex()
        self.variables = VariableStore()
        self.breakpoints: list[BreakpointSet] = []
        self.gridded_tables: list[GriddedTable] = []
        self.ungridded_tables: list[UngriddedTable] = []
        self.functions: list[Function] = []
        self.provenances: list[ProvenanceRecord] = []
        self.modifications: list[ModificationRecord] = []
        # variable position -> position of the function that defines it
        self._definitions: dict[int, int] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_records(
        cls, records: DatasetRecords, settings: EngineSettings | None = None
    ) -> Dataset:
        """Build a dataset from parsed records."""
        dataset = cls(name=records.name, settings=settings)
        dataset.load(records)
        return dataset

    def load(self, records: DatasetRecords) -> None:
        """
        Load all records in dependency order.

        Raises:
            LoadError: On the first structural fault
        """
        for provenance in records.provenances:
            self.add_provenance(provenance)
        for modification in records.modifications:
            self.add_modification(modification)
        for variable in records.variables:
            self.add_variable(variable)
        for breakpoint_record in records.breakpoints:
            self.add_breakpoints(breakpoint_record)
        for gridded in records.gridded_tables:
            self.add_gridded_table(gridded)
        for ungridded in records.ungridded_tables:
            self.add_ungridded_table(ungridded)
        for function in records.functions:
            self.add_function(function)

        logger.info(
            "Loaded dataset '%s': %d variables, %d breakpoint sets, %d gridded tables, "
            "%d ungridded tables, %d functions",
            self.name,
            len(self.variables),
            len(self.breakpoints),
            len(self.gridded_tables),
            len(self.ungridded_tables),
            len(self.functions),
        )

    def add_provenance(self, record: ProvenanceRecord) -> int:
        """Register a provenance record."""
        position = self.index.register(ElementKind.PROVENANCE, record.prov_id)
        self.provenances.append(record)
        return position

    def add_modification(self, record: ModificationRecord) -> int:
        """Register a modification record."""
        position = self.index.register(ElementKind.MODIFICATION, record.mod_id)
        self.modifications.append(record)
        return position

    def add_variable(self, record: VariableRecord) -> int:
        """Register a variable and give it its initial value."""
        position = self.index.register(ElementKind.VARIABLE, record.var_id)
        self.variables.add(Variable(**record.model_dump()))
        logger.debug("Variable '%s' at %d", record.var_id, position)
        return position

    def add_breakpoints(self, record: BreakpointRecord) -> int:
        """
        Register a breakpoint set.

        Raises:
            DuplicateIdError: If the identifier is taken
            NonMonotonicBreakpointsError: If the values do not increase
        """
        breakpoints = BreakpointSet(**record.model_dump())
        position = self.index.register(ElementKind.BREAKPOINT, record.bp_id)
        self.breakpoints.append(breakpoints)
        logger.debug("Breakpoint set '%s' at %d (%d values)", record.bp_id, position, len(breakpoints))
        return position

    def add_gridded_table(self, record: GriddedTableRecord) -> int:
        """
        Register a gridded table after checking its shape.

        Raises:
            UnresolvedReferenceError: If a breakpoint set is unknown
            ShapeMismatchError: If the data length disagrees with the breakpoints
        """
        gt_id = record.gt_id or self.index.unique_id(ElementKind.GRIDDED_TABLE, "gridded_table")
        refs = tuple(
            self.index.resolve_or_fail(ElementKind.BREAKPOINT, bp_id, gt_id)
            for bp_id in record.breakpoint_refs
        )
        table = _build(
            GriddedTable,
            gt_id,
            gt_id=gt_id,
            name=record.name,
            units=record.units,
            description=record.description,
            breakpoint_refs=refs,
            data=record.data,
            string_data=tuple(record.string_data) if record.string_data is not None else None,
        )
        table.check_shape(self.breakpoints)
        position = self.index.register(ElementKind.GRIDDED_TABLE, gt_id)
        self.gridded_tables.append(table)
        logger.debug("Gridded table '%s' at %d, shape %s", gt_id, position, table.shape(self.breakpoints))
        return position

    def add_ungridded_table(self, record: UngriddedTableRecord) -> int:
        """
        Register and triangulate an ungridded table.

        Raises:
            InvalidRecordError: If the points are malformed or cannot be
                triangulated
        """
        ut_id = record.ut_id or self.index.unique_id(ElementKind.UNGRIDDED_TABLE, "ungridded_table")
        table = _build(
            UngriddedTable,
            ut_id,
            ut_id=ut_id,
            name=record.name,
            units=record.units,
            description=record.description,
            independent_var_count=record.independent_var_count,
            points=record.data_points,
        )
        try:
            table.triangulate(
                normalise=self.settings.normalise_triangulation,
                qhull_options=self.settings.qhull_options,
            )
        except ValueError as exc:
            raise InvalidRecordError(ut_id, str(exc)) from exc
        position = self.index.register(ElementKind.UNGRIDDED_TABLE, ut_id)
        self.ungridded_tables.append(table)
        logger.debug("%r at %d", table, position)
        return position

    def add_function(self, record: FunctionRecord) -> int:
        """
        Resolve a function record and register it.

        Point-form functions get an implicit breakpoint set per dimension
        and an implicit gridded table. Inline tables are registered first.

        Raises:
            UnresolvedReferenceError: If a variable or table is unknown
            InvalidRecordError: If bindings and table disagree, or the
                dependent data column does not exist
        """
        if self.index.contains(ElementKind.FUNCTION, record.name):
            # fail before any implicit elements are registered
            raise DuplicateIdError(ElementKind.FUNCTION, record.name)

        if record.uses_points:
            independents, dependent, table = self._implicit_table(record)
        else:
            independents = tuple(self._bind(ref, record.name) for ref in record.independent_refs)
            dependent = self._bind(record.dependent_ref, record.name)
            table = self._table_ref(record)

        ndim = self._table_ndim(table)
        if ndim != len(independents):
            raise InvalidRecordError(
                record.name,
                f"binds {len(independents)} independent variables, table has {ndim} dimensions",
            )

        if table.kind is TableKind.UNGRIDDED:
            ungridded = self.ungridded_tables[table.index]
            if record.dependent_data_column >= ungridded.dependent_column_count:
                raise InvalidRecordError(
                    record.name,
                    f"dependent data column {record.dependent_data_column} does not exist in "
                    f"'{ungridded.ut_id}' ({ungridded.dependent_column_count} dependent columns)",
                )

        function = _build(
            Function,
            record.name,
            name=record.name,
            description=record.description,
            dependent=dependent,
            independents=independents,
            table=table,
            dependent_data_column=record.dependent_data_column,
            output_scale_factor=record.output_scale_factor,
        )
        return self.register_function(function)

    def register_function(self, function: Function) -> int:
        """
        Register an already-built function.

        Bindings without a variable index are resolved by identifier when
        the variable exists; others stay unresolved and fail at evaluation.
        A scaled copy of the table data is attached when the function has
        an output scale factor.

        Raises:
            DuplicateIdError: If the function name is taken
            InvalidRecordError: If the dependent data column does not exist
        """
        if self.index.contains(ElementKind.FUNCTION, function.name):
            raise DuplicateIdError(ElementKind.FUNCTION, function.name)

        # nothing is registered until the table data is known to be readable
        source = None
        if function.output_scale_factor is not None or not function.is_gridded:
            source = self._table_values(function)

        position = self.index.register(ElementKind.FUNCTION, function.name)
        for binding in (*function.independents, function.dependent):
            if binding.variable_index is None:
                binding.variable_index = self.index.resolve(ElementKind.VARIABLE, binding.var_id)

        if function.output_scale_factor is not None and source is not None:
            function.attach_scaled_data(source)

        if function.dependent.variable_index is not None:
            self._definitions[function.dependent.variable_index] = position
        self.functions.append(function)
        logger.debug("%r at %d", function, position)
        return position

    def _bind(self, ref: VariableRefRecord, referrer: str) -> VariableBinding:
        position = self.index.resolve_or_fail(ElementKind.VARIABLE, ref.var_id, referrer)
        return VariableBinding(
            var_id=ref.var_id,
            variable_index=position,
            min=ref.min,
            max=ref.max,
            extrapolate=ref.extrapolate,
            interpolate=ref.interpolate,
        )

    def _bind_points(self, points: VariablePointsRecord, referrer: str) -> VariableBinding:
        position = self.index.resolve_or_fail(ElementKind.VARIABLE, points.var_id, referrer)
        return VariableBinding(
            var_id=points.var_id,
            variable_index=position,
            extrapolate=points.extrapolate,
            interpolate=points.interpolate,
        )

    def _table_ref(self, record: FunctionRecord) -> TableRef:
        if record.gridded_table_ref is not None:
            index = self.index.resolve_or_fail(
                ElementKind.GRIDDED_TABLE, record.gridded_table_ref, record.name
            )
            return TableRef(kind=TableKind.GRIDDED, index=index)
        if record.ungridded_table_ref is not None:
            index = self.index.resolve_or_fail(
                ElementKind.UNGRIDDED_TABLE, record.ungridded_table_ref, record.name
            )
            return TableRef(kind=TableKind.UNGRIDDED, index=index)
        if record.gridded_table is not None:
            inline = _with_default_id(record.gridded_table, "gt_id", self._unique(
                ElementKind.GRIDDED_TABLE, record.name))
            return TableRef(kind=TableKind.GRIDDED, index=self.add_gridded_table(inline))
        inline = _with_default_id(record.ungridded_table, "ut_id", self._unique(
            ElementKind.UNGRIDDED_TABLE, record.name))
        return TableRef(kind=TableKind.UNGRIDDED, index=self.add_ungridded_table(inline))

    def _implicit_table(
        self, record: FunctionRecord
    ) -> tuple[tuple[VariableBinding, ...], VariableBinding, TableRef]:
        independents: list[VariableBinding] = []
        bp_ids: list[str] = []
        for points in record.independent_points:
            independents.append(self._bind_points(points, record.name))
            bp_id = self._unique(ElementKind.BREAKPOINT, f"{record.name}_{points.var_id}")
            self.add_breakpoints(
                BreakpointRecord(
                    bp_id=bp_id,
                    name=points.name or points.var_id,
                    units=points.units,
                    description=f"{record.name} {points.var_id}",
                    values=points.values,
                )
            )
            bp_ids.append(bp_id)

        dependent_points = record.dependent_points
        dependent = self._bind_points(dependent_points, record.name)
        gt_id = self._unique(ElementKind.GRIDDED_TABLE, f"{record.name}_{dependent_points.var_id}")
        index = self.add_gridded_table(
            GriddedTableRecord(
                gt_id=gt_id,
                name=dependent_points.name or dependent_points.var_id,
                units=dependent_points.units,
                description=f"{record.name} {dependent_points.var_id}",
                breakpoint_refs=bp_ids,
                data=dependent_points.values,
            )
        )
        return tuple(independents), dependent, TableRef(kind=TableKind.GRIDDED, index=index)

    def _unique(self, kind: ElementKind, stem: str) -> str:
        return self.index.unique_id(kind, stem)

    def _table_ndim(self, table: TableRef) -> int:
        if table.kind is TableKind.GRIDDED:
            return self.gridded_tables[table.index].ndim
        return self.ungridded_tables[table.index].ndim

    def _table_values(self, function: Function) -> np.ndarray | None:
        """Numeric values the function reads, or None for string tables.

        Raises:
            InvalidRecordError: If the dependent data column does not exist
        """
        if function.is_gridded:
            return self.gridded_tables[function.table.index].data
        table = self.ungridded_tables[function.table.index]
        try:
            return table.dependent_column(function.dependent_data_column)
        except IndexError as exc:
            raise InvalidRecordError(function.name, str(exc)) from exc

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def set_value(self, var_id: str, value: float) -> None:
        """Set the current value of a variable by identifier."""
        position = self.index.resolve_or_fail(ElementKind.VARIABLE, var_id)
        self.variables.set_value(position, value)

    def get_value(self, var_id: str) -> float:
        """Return the current value of a variable by identifier."""
        position = self.index.resolve_or_fail(ElementKind.VARIABLE, var_id)
        return self.variables.current_value(position)

    def set_values(self, values: dict[str, float]) -> None:
        """Set several variables at once."""
        for var_id, value in values.items():
            self.set_value(var_id, value)

    def defining_function(self, var_id: str) -> Function | None:
        """Return the function whose dependent variable is ``var_id``, if any."""
        position = self.index.resolve_or_fail(ElementKind.VARIABLE, var_id)
        function = self._definitions.get(position)
        return None if function is None else self.functions[function]

    def evaluate_variable(self, var_id: str, *, strict: bool | None = None) -> float:
        """
        Evaluate the function defining ``var_id`` and store the result.

        Variables not defined by a function keep and return their current
        value.
        """
        position = self.index.resolve_or_fail(ElementKind.VARIABLE, var_id)
        function = self._definitions.get(position)
        if function is None:
            return self.variables.current_value(position)
        value = self.evaluate(function, strict=strict)
        self.variables.set_value(position, value)
        return value

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def function(self, function: int | str) -> Function:
        """Return a function by position or identifier."""
        return self.functions[self._function_position(function)]

    def _function_position(self, function: int | str) -> int:
        if isinstance(function, str):
            return self.index.resolve_or_fail(ElementKind.FUNCTION, function)
        if not 0 <= function < len(self.functions):
            raise IndexError(f"No function at position {function}")
        return function

    def evaluate(self, function: int | str, *, strict: bool | None = None) -> float:
        """
        Evaluate one function at the current variable values.

        Gridded functions whose dimensions are all linear, discrete, floor
        or ceiling take the multilinear path; other gridded functions take
        the polynomial path; ungridded functions take the simplex search.
        The dependent binding's bounds are applied to the result.

        Args:
            function: Function position or identifier
            strict: Raise instead of returning NaN for points outside an
                ungridded table's hull (defaults to the engine setting)

        Returns:
            The function value; NaN when an ungridded query is out of hull

        Raises:
            UnresolvedVariableError: If a binding, the dependent one included,
                has no variable index
            DimensionMismatchError: If bindings and table disagree
            UnsupportedPolynomialOrderError: If an order above 3 is requested
            OutOfHullError: In strict mode, for an out-of-hull query
        """
        fn = self.function(function)
        if strict is None:
            strict = self.settings.strict_out_of_hull

        for dimension, binding in enumerate(fn.independents):
            if binding.variable_index is None:
                raise UnresolvedVariableError(fn.name, dimension)
        if fn.dependent.variable_index is None:
            raise UnresolvedVariableError(fn.name, None)

        ndim = self._table_ndim(fn.table)
        if ndim != fn.ndim:
            raise DimensionMismatchError(fn.name, ndim, fn.ndim)

        inputs = [self.variables.current_value(b.variable_index) for b in fn.independents]

        if fn.is_gridded:
            table = self.gridded_tables[fn.table.index]
            if not table.is_numeric:
                # string tables do not yield a numeric value
                return self.variables.current_value(fn.dependent.variable_index)
            axes = [self.breakpoints[ref] for ref in table.breakpoint_refs]
            data = fn.scaled_data if fn.scaled_data is not None else table.data
            if fn.is_all_interpolation_linear:
                value = linear_interpolation(inputs, fn.independents, axes, data)
            else:
                value = polynomial_interpolation(inputs, fn.independents, axes, data, fn.name)
        else:
            table = self.ungridded_tables[fn.table.index]
            column = (
                fn.scaled_data
                if fn.scaled_data is not None
                else table.dependent_column(fn.dependent_data_column)
            )
            value, outcome = ungridded_interpolation(
                inputs,
                fn.independents,
                table,
                column,
                discrete=fn.is_all_discrete,
                tolerance=self.settings.barycentric_tolerance,
                coincidence=self.settings.coincidence_tolerance,
                use_cache=self.settings.cache_simplex,
            )
            if outcome is SearchOutcome.OUT_OF_HULL and strict:
                raise OutOfHullError(fn.name, tuple(inputs))

        return fn.dependent.bound(value)

    def evaluate_all(self, functions: Iterable[int | str] | None = None) -> dict[str, float]:
        """Evaluate several functions (all by default), keyed by function name."""
        targets = range(len(self.functions)) if functions is None else functions
        return {self.function(f).name: self.evaluate(f) for f in targets}

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def summary(self) -> dict[str, Any]:
        """Return element counts and per-function table information."""
        return {
            "name": self.name,
            "counts": self.index.summary(),
            "functions": {
                fn.name: {
                    "table": fn.table.kind.value,
                    "dimensions": fn.ndim,
                    "output": fn.dependent.var_id,
                }
                for fn in self.functions
            },
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Dataset {self.name!r} ({len(self.variables)} variables, "
            f"{len(self.functions)} functions)"
        )


def _build(model: type, element_id: str, **fields: Any) -> Any:
    """Construct a model, reporting validation faults as load errors."""
    try:
        return model(**fields)
    except ValidationError as exc:
        raise InvalidRecordError(element_id, _first_error(exc)) from exc
    except LoadError:
        raise
    except ValueError as exc:
        raise InvalidRecordError(element_id, str(exc)) from exc


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


def _with_default_id(record: Any, field: str, default: str) -> Any:
    if getattr(record, field):
        return record
    return record.model_copy(update={field: default})
