"""Breakpoint sets: the monotonic axes of gridded tables.

A breakpoint set is owned by the dataset and shared by position across any
number of gridded tables. Its values are strictly increasing.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from pydantic import BaseModel, Field, field_validator

from aerotab.errors import NonMonotonicBreakpointsError


class BreakpointSet(BaseModel):
    """Ordered, strictly increasing values for one table dimension.

    Attributes:
        bp_id: Identifier unique among breakpoint sets
        name: Human-readable name
        units: Units of the values
        description: Free-text description
        values: Strictly increasing breakpoint values

    Example:
        >>> alpha = BreakpointSet(bp_id="ALPHA1", values=[0.0, 5.0, 10.0])
        >>> alpha.locate(7.5)
        (1, 0.5)
    """

    bp_id: str = Field(..., min_length=1, description="Breakpoint set identifier")
    name: str = Field(default="", description="Human-readable name")
    units: str = Field(default="", description="Units of the values")
    description: str = Field(default="", description="Free-text description")
    values: np.ndarray = Field(..., description="Strictly increasing values")

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    def __init__(self, **data: Any) -> None:
        """Build the set and check monotonicity."""
        super().__init__(**data)
        self.validate_values()

    @field_validator("values", mode="before")
    @classmethod
    def ensure_numpy_array(cls, v: Any) -> np.ndarray:  # noqa: N805
        """Convert input to a one-dimensional float array."""
        array = np.array(v, dtype=float).reshape(-1)
        if array.size == 0:
            raise ValueError("a breakpoint set needs at least one value")
        array.setflags(write=False)
        return array

    def validate_values(self) -> None:
        """Check that values are strictly increasing.

        Raises:
            NonMonotonicBreakpointsError: On the first adjacent pair that
                does not increase
        """
        values = self.values
        steps = np.diff(values)
        bad = np.flatnonzero(~(steps > 0.0))
        if bad.size:
            i = int(bad[0]) + 1
            raise NonMonotonicBreakpointsError(
                self.bp_id, i, float(values[i]), float(values[i - 1])
            )

    def __len__(self) -> int:
        """Return the number of breakpoints."""
        return int(self.values.size)

    @property
    def lower(self) -> float:
        """Lowest breakpoint value."""
        return float(self.values[0])

    @property
    def upper(self) -> float:
        """Highest breakpoint value."""
        return float(self.values[-1])

    def lower_index(self, x: float) -> int:
        """Return the index of the interval holding ``x``.

        The index comes from a lower-bound search, so a value equal to an
        interior breakpoint lands in the interval below it. The result is
        clamped to ``[0, len - 2]``; queries outside the range map to the
        first or last interval.
        """
        n = self.values.size
        if n < 2:
            return 0
        index = int(np.searchsorted(self.values, x, side="left"))
        if index > 0:
            index -= 1
        return min(index, n - 2)

    def locate(self, x: float) -> tuple[int, float]:
        """Find the straddling interval and the fractional position of ``x``.

        Args:
            x: Query value

        Returns:
            ``(i, fraction)`` with ``fraction = (x - v[i]) / (v[i+1] - v[i])``.
            The fraction leaves [0, 1] when ``x`` is outside the range. A
            single-valued set always yields ``(0, 0.0)``.
        """
        if self.values.size < 2:
            return 0, 0.0
        i = self.lower_index(x)
        lo = float(self.values[i])
        hi = float(self.values[i + 1])
        return i, (x - lo) / (hi - lo)

    def __repr__(self) -> str:
        """String representation."""
        return f"BreakpointSet {self.bp_id} ({len(self)} values, {self.lower}..{self.upper})"
