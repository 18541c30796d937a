"""
Raw element records handed from the parsing layer to the dataset loader.

Records carry string identifiers and attribute values exactly as read from
a document. Cross-references are resolved later, when a
:class:`~aerotab.dataset.Dataset` loads them.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from aerotab.core.bindings import ExtrapolateMethod, InterpolateMethod


class VariableRecord(BaseModel):
    """A ``variableDef`` element."""

    var_id: str = Field(..., min_length=1, description="Variable identifier")
    name: str = Field("", description="Human-readable name")
    units: str = Field("", description="Units")
    description: str = Field("", description="Free-text description")
    initial_value: float = Field(0.0, description="Initial value")


class BreakpointRecord(BaseModel):
    """
    A ``breakpointDef`` element.

    Example:
        >>> BreakpointRecord(bp_id="ALPHA1", values=[-10.0, 0.0, 10.0])
        BreakpointRecord(bp_id='ALPHA1', name='', units='', description='', values=[-10.0, 0.0, 10.0])
    """

    bp_id: str = Field(..., min_length=1, description="Breakpoint set identifier")
    name: str = Field("", description="Human-readable name")
    units: str = Field("", description="Units")
    description: str = Field("", description="Free-text description")
    values: list[float] = Field(..., min_length=1, description="Breakpoint values")


class GriddedTableRecord(BaseModel):
    """
    A ``griddedTableDef`` element.

    An inline table may omit ``gt_id``; the loader then generates one.
    """

    gt_id: str = Field("", description="Gridded table identifier")
    name: str = Field("", description="Human-readable name")
    units: str = Field("", description="Units")
    description: str = Field("", description="Free-text description")
    breakpoint_refs: list[str] = Field(..., min_length=1, description="Breakpoint identifiers")
    data: list[float] | None = Field(None, description="Row-major numeric values")
    string_data: list[str] | None = Field(None, description="Row-major categorical values")

    @model_validator(mode="after")
    def check_payload(self) -> GriddedTableRecord:
        """Exactly one of ``data`` and ``string_data`` must be given."""
        if (self.data is None) == (self.string_data is None):
            raise ValueError("exactly one of data or string_data is required")
        return self


class UngriddedTableRecord(BaseModel):
    """An ``ungriddedTableDef`` element: one row per data point."""

    ut_id: str = Field("", description="Ungridded table identifier")
    name: str = Field("", description="Human-readable name")
    units: str = Field("", description="Units")
    description: str = Field("", description="Free-text description")
    independent_var_count: int = Field(0, ge=0, description="Coordinate columns (0: all but last)")
    data_points: list[list[float]] = Field(..., min_length=1, description="Data point rows")


class VariableRefRecord(BaseModel):
    """
    An ``independentVarRef`` or ``dependentVarRef`` element.

    Unset bounds are infinite. The legacy ``interpolationType`` attribute
    is not accepted.
    """

    var_id: str = Field(..., min_length=1, description="Referenced variable")
    min: float = Field(-math.inf, description="Lower bound")
    max: float = Field(math.inf, description="Upper bound")
    extrapolate: ExtrapolateMethod = Field(ExtrapolateMethod.NEITHER)
    interpolate: InterpolateMethod = Field(InterpolateMethod.LINEAR)

    @model_validator(mode="before")
    @classmethod
    def reject_legacy_attributes(cls, data: Any) -> Any:
        if isinstance(data, dict) and "interpolationType" in data:
            raise ValueError("interpolationType is no longer supported, use interpolate")
        return data

    @field_validator("extrapolate", mode="before")
    @classmethod
    def normalize_extrapolate(cls, v: Any) -> ExtrapolateMethod:  # noqa: N805
        if isinstance(v, ExtrapolateMethod):
            return v
        return ExtrapolateMethod.from_alias(v)

    @field_validator("interpolate", mode="before")
    @classmethod
    def normalize_interpolate(cls, v: Any) -> InterpolateMethod:  # noqa: N805
        if isinstance(v, InterpolateMethod):
            return v
        return InterpolateMethod.from_alias(v)


class VariablePointsRecord(BaseModel):
    """An ``independentVarPts`` or ``dependentVarPts`` element."""

    var_id: str = Field(..., min_length=1, description="Referenced variable")
    name: str = Field("", description="Human-readable name")
    units: str = Field("", description="Units")
    values: list[float] = Field(..., min_length=1, description="Point values")
    extrapolate: ExtrapolateMethod = Field(ExtrapolateMethod.NEITHER)
    interpolate: InterpolateMethod = Field(InterpolateMethod.LINEAR)

    @field_validator("extrapolate", mode="before")
    @classmethod
    def normalize_extrapolate(cls, v: Any) -> ExtrapolateMethod:  # noqa: N805
        if isinstance(v, ExtrapolateMethod):
            return v
        return ExtrapolateMethod.from_alias(v)

    @field_validator("interpolate", mode="before")
    @classmethod
    def normalize_interpolate(cls, v: Any) -> InterpolateMethod:  # noqa: N805
        if isinstance(v, InterpolateMethod):
            return v
        return InterpolateMethod.from_alias(v)


class FunctionRecord(BaseModel):
    """
    A ``function`` element.

    Either the reference form (``independent_refs`` and ``dependent_ref``
    plus one table reference or inline table) or the simple point form
    (``independent_points`` and ``dependent_points``) is given.

    Example:
        >>> FunctionRecord(
        ...     name="CL_fn",
        ...     independent_refs=[VariableRefRecord(var_id="alpha")],
        ...     dependent_ref=VariableRefRecord(var_id="CL"),
        ...     gridded_table_ref="CL_table",
        ... ).uses_points
        False
    """

    name: str = Field(..., min_length=1, description="Function identifier")
    description: str = Field("", description="Free-text description")
    independent_refs: list[VariableRefRecord] = Field(default_factory=list)
    dependent_ref: VariableRefRecord | None = None
    independent_points: list[VariablePointsRecord] = Field(default_factory=list)
    dependent_points: VariablePointsRecord | None = None
    gridded_table_ref: str | None = None
    ungridded_table_ref: str | None = None
    gridded_table: GriddedTableRecord | None = None
    ungridded_table: UngriddedTableRecord | None = None
    dependent_data_column: int = Field(0, ge=0, description="Ungridded dependent column")
    output_scale_factor: float | None = Field(None, description="Output scale factor")

    @model_validator(mode="after")
    def check_form(self) -> FunctionRecord:
        """Check that exactly one definition form is complete."""
        if self.uses_points:
            if self.independent_refs or self.dependent_ref is not None:
                raise ValueError("point lists and variable references cannot be mixed")
            if not self.independent_points or self.dependent_points is None:
                raise ValueError("point form needs independent and dependent points")
            sources = [self.gridded_table_ref, self.ungridded_table_ref,
                       self.gridded_table, self.ungridded_table]
            if any(s is not None for s in sources):
                raise ValueError("point form cannot also name a table")
            return self

        if not self.independent_refs or self.dependent_ref is None:
            raise ValueError("independent and dependent variable references are required")
        sources = [self.gridded_table_ref, self.ungridded_table_ref,
                   self.gridded_table, self.ungridded_table]
        given = sum(s is not None for s in sources)
        if given != 1:
            raise ValueError(f"exactly one table source is required, got {given}")
        return self

    @property
    def uses_points(self) -> bool:
        """True for the simple point-list form."""
        return bool(self.independent_points) or self.dependent_points is not None


class ProvenanceRecord(BaseModel):
    """A ``provenance`` element."""

    prov_id: str = Field(..., min_length=1, description="Provenance identifier")
    author: str = Field("", description="Author name")
    description: str = Field("", description="Free-text description")


class ModificationRecord(BaseModel):
    """A ``modificationRecord`` element."""

    mod_id: str = Field(..., min_length=1, description="Modification identifier")
    description: str = Field("", description="Free-text description")


class DatasetRecords(BaseModel):
    """All records of one document, each list in document order."""

    name: str = Field("", description="Dataset name")
    provenances: list[ProvenanceRecord] = Field(default_factory=list)
    modifications: list[ModificationRecord] = Field(default_factory=list)
    variables: list[VariableRecord] = Field(default_factory=list)
    breakpoints: list[BreakpointRecord] = Field(default_factory=list)
    gridded_tables: list[GriddedTableRecord] = Field(default_factory=list)
    ungridded_tables: list[UngriddedTableRecord] = Field(default_factory=list)
    functions: list[FunctionRecord] = Field(default_factory=list)
