"""Functions: one dependent variable bound to one table."""

from __future__ import annotations

from enum import Enum

import numpy as np
from pydantic import BaseModel, Field, PrivateAttr

from aerotab.core.bindings import InterpolateMethod, VariableBinding


class TableKind(str, Enum):
    """Kinds of table a function can be bound to."""

    GRIDDED = "gridded"
    UNGRIDDED = "ungridded"


class TableRef(BaseModel):
    """Position of a function's table within its kind's collection."""

    kind: TableKind
    index: int = Field(..., ge=0)

    model_config = {"frozen": True}


class Function(BaseModel):
    """The unit of evaluation dispatch.

    A function reads its independent variables through ``independents``,
    interpolates the table named by ``table`` and yields a value for the
    variable named by ``dependent``.

    Attributes:
        name: Identifier unique among functions
        description: Free-text description
        dependent: Binding of the output variable
        independents: One binding per table dimension, in dimension order
        table: Reference to the gridded or ungridded table
        dependent_data_column: Dependent column read from an ungridded table
        output_scale_factor: Factor applied to a local copy of the table data

    Example:
        >>> f = Function(
        ...     name="CL_fn",
        ...     dependent=VariableBinding(var_id="CL"),
        ...     independents=(VariableBinding(var_id="alpha"),),
        ...     table=TableRef(kind=TableKind.GRIDDED, index=0),
        ... )
        >>> f.is_all_interpolation_linear
        True
    """

    name: str = Field(..., min_length=1, description="Function identifier")
    description: str = Field(default="", description="Free-text description")
    dependent: VariableBinding = Field(..., description="Output binding")
    independents: tuple[VariableBinding, ...] = Field(..., min_length=1, description="Input bindings")
    table: TableRef = Field(..., description="Bound table")
    dependent_data_column: int = Field(default=0, ge=0, description="Ungridded dependent column")
    output_scale_factor: float | None = Field(default=None, description="Output scale factor")

    model_config = {"frozen": True}

    _scaled_data: np.ndarray | None = PrivateAttr(default=None)

    @property
    def ndim(self) -> int:
        """Number of independent dimensions."""
        return len(self.independents)

    @property
    def is_gridded(self) -> bool:
        return self.table.kind is TableKind.GRIDDED

    @property
    def is_all_interpolation_linear(self) -> bool:
        """True when no dimension asks for a polynomial order above one."""
        return all(b.interpolate.is_linear_family for b in self.independents)

    @property
    def is_all_discrete(self) -> bool:
        """True when every dimension uses discrete interpolation."""
        return all(b.interpolate is InterpolateMethod.DISCRETE for b in self.independents)

    @property
    def scaled_data(self) -> np.ndarray | None:
        """Locally scaled copy of the table values, if a scale factor applies."""
        return self._scaled_data

    def attach_scaled_data(self, source: np.ndarray) -> None:
        """Store ``source * output_scale_factor`` as the function's own data.

        The shared table is never modified; ``source`` is copied.
        """
        if self.output_scale_factor is None:
            return
        scaled = np.array(source, dtype=float) * self.output_scale_factor
        scaled.setflags(write=False)
        self._scaled_data = scaled

    def __repr__(self) -> str:
        """String representation."""
        inputs = ", ".join(b.var_id for b in self.independents)
        return f"Function {self.name}: {self.dependent.var_id} = f({inputs}) [{self.table.kind.value}]"
