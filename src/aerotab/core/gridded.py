"""Gridded tables: dense row-major data over breakpoint axes."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

from aerotab.core.breakpoints import BreakpointSet
from aerotab.errors import ShapeMismatchError


class GriddedTable(BaseModel):
    """A dense table addressed by one breakpoint index per dimension.

    Data is stored flat in row-major order with the last dimension varying
    fastest. A table holds either numeric ``data`` or categorical
    ``string_data``, never both.

    Attributes:
        gt_id: Identifier unique among gridded tables
        name: Human-readable name
        units: Units of the tabulated values
        description: Free-text description
        breakpoint_refs: Positions of the breakpoint sets, in dimension order
        data: Flat numeric values
        string_data: Flat categorical values
    """

    gt_id: str = Field(..., min_length=1, description="Gridded table identifier")
    name: str = Field(default="", description="Human-readable name")
    units: str = Field(default="", description="Units of the values")
    description: str = Field(default="", description="Free-text description")
    breakpoint_refs: tuple[int, ...] = Field(..., min_length=1, description="Breakpoint positions")
    data: np.ndarray | None = Field(default=None, description="Flat numeric data")
    string_data: tuple[str, ...] | None = Field(default=None, description="Flat categorical data")

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    @field_validator("data", mode="before")
    @classmethod
    def ensure_numpy_array(cls, v: Any) -> np.ndarray | None:  # noqa: N805
        """Convert numeric input to a read-only flat float array."""
        if v is None:
            return None
        array = np.array(v, dtype=float).reshape(-1)
        array.setflags(write=False)
        return array

    @model_validator(mode="after")
    def validate_payload(self) -> GriddedTable:
        """Exactly one of ``data`` and ``string_data`` must be present."""
        if (self.data is None) == (self.string_data is None):
            raise ValueError(
                f"Gridded table '{self.gt_id}' needs exactly one of data or string_data"
            )
        return self

    @property
    def is_numeric(self) -> bool:
        """True for numeric tables."""
        return self.data is not None

    @property
    def ndim(self) -> int:
        """Number of dimensions."""
        return len(self.breakpoint_refs)

    def __len__(self) -> int:
        """Number of stored entries."""
        if self.data is not None:
            return int(self.data.size)
        return len(self.string_data or ())

    def shape(self, breakpoints: Sequence[BreakpointSet]) -> tuple[int, ...]:
        """Return the table shape given the dataset's breakpoint sets."""
        return tuple(len(breakpoints[ref]) for ref in self.breakpoint_refs)

    def check_shape(self, breakpoints: Sequence[BreakpointSet]) -> None:
        """Check entry count against the product of breakpoint lengths.

        Raises:
            ShapeMismatchError: If the counts differ
        """
        expected = int(np.prod(self.shape(breakpoints), dtype=np.int64))
        if expected != len(self):
            raise ShapeMismatchError(self.gt_id, expected, len(self))

    def offset(self, indices: Sequence[int], breakpoints: Sequence[BreakpointSet]) -> int:
        """Return the flat position of one grid point."""
        offset = 0
        for ref, index in zip(self.breakpoint_refs, indices):
            offset = offset * len(breakpoints[ref]) + index
        return offset

    def as_array(self, breakpoints: Sequence[BreakpointSet]) -> np.ndarray:
        """Return numeric data reshaped to the table shape."""
        if self.data is None:
            raise ValueError(f"Gridded table '{self.gt_id}' holds string data")
        return self.data.reshape(self.shape(breakpoints))

    def __repr__(self) -> str:
        """String representation."""
        kind = "numeric" if self.is_numeric else "string"
        return f"GriddedTable {self.gt_id} ({self.ndim}-D, {len(self)} {kind} entries)"
