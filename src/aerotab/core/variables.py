"""Current values of dataset variables.

The evaluation engine reads inputs only through :meth:`VariableStore.current_value`,
addressed by the dense variable position handed out by the identifier index.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import numpy as np
from pydantic import BaseModel, Field


class Variable(BaseModel):
    """Identity and initial value of one dataset variable.

    Attributes:
        var_id: Identifier unique among variables
        name: Human-readable name
        units: Units of the value
        description: Free-text description
        initial_value: Value held before any input is set
    """

    var_id: str = Field(..., min_length=1, description="Variable identifier")
    name: str = Field(default="", description="Human-readable name")
    units: str = Field(default="", description="Units of the value")
    description: str = Field(default="", description="Free-text description")
    initial_value: float = Field(default=0.0, description="Initial value")

    model_config = {"frozen": True}


class VariableStore:
    """Dense array of variable values, one slot per registered variable.

    Example:
        >>> store = VariableStore()
        >>> store.add(Variable(var_id="alpha", initial_value=2.0))
        0
        >>> store.current_value(0)
        2.0
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._variables: list[Variable] = []
        self._values = np.empty(0, dtype=float)

    def add(self, variable: Variable) -> int:
        """Append a variable and return its position."""
        self._variables.append(variable)
        self._values = np.append(self._values, variable.initial_value)
        return len(self._variables) - 1

    def __len__(self) -> int:
        return len(self._variables)

    def __iter__(self) -> Iterator[Variable]:
        return iter(self._variables)

    def __getitem__(self, position: int) -> Variable:
        return self._variables[position]

    def current_value(self, position: int) -> float:
        """Return the current value of the variable at ``position``."""
        return float(self._values[position])

    def set_value(self, position: int, value: float) -> None:
        """Overwrite the current value of the variable at ``position``."""
        self._values[position] = value

    def reset(self) -> None:
        """Restore every variable to its initial value."""
        self._values = np.array([v.initial_value for v in self._variables], dtype=float)

    def values(self) -> np.ndarray:
        """Return a copy of all current values."""
        return self._values.copy()

    def summary(self) -> dict[str, Any]:
        """Return identifiers mapped to current values."""
        return {v.var_id: float(x) for v, x in zip(self._variables, self._values)}
