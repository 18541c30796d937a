"""Per-dimension variable bindings of a function.

A binding ties one dimension of a function to a dataset variable and carries
the function-local bounding, extrapolation and interpolation policy for that
dimension.
"""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, Field


class ExtrapolateMethod(str, Enum):
    """Directions in which evaluation may leave the breakpoint range."""

    NEITHER = "neither"
    MIN = "min"
    MAX = "max"
    BOTH = "both"

    @classmethod
    def from_alias(cls, value: str | None) -> ExtrapolateMethod:
        """Normalize an ``extrapolate`` attribute into ``ExtrapolateMethod``."""
        normalized = str(value or cls.NEITHER.value).strip().lower()
        aliases: dict[str, ExtrapolateMethod] = {
            "neither": cls.NEITHER,
            "none": cls.NEITHER,
            "min": cls.MIN,
            "max": cls.MAX,
            "both": cls.BOTH,
        }
        if normalized not in aliases:
            allowed = [m.value for m in cls]
            raise ValueError(f"Unsupported extrapolate '{value}'. Allowed: {allowed}")
        return aliases[normalized]

    @property
    def below(self) -> bool:
        """True when values under the lowest breakpoint may be extrapolated."""
        return self in (ExtrapolateMethod.MIN, ExtrapolateMethod.BOTH)

    @property
    def above(self) -> bool:
        """True when values over the highest breakpoint may be extrapolated."""
        return self in (ExtrapolateMethod.MAX, ExtrapolateMethod.BOTH)


class InterpolateMethod(str, Enum):
    """Blending rule applied along one dimension."""

    DISCRETE = "discrete"
    FLOOR = "floor"
    CEILING = "ceiling"
    LINEAR = "linear"
    QUADRATIC_SPLINE = "quadraticSpline"
    CUBIC_SPLINE = "cubicSpline"

    @classmethod
    def from_alias(cls, value: str | None) -> InterpolateMethod:
        """Normalize an ``interpolate`` attribute into ``InterpolateMethod``."""
        normalized = str(value or cls.LINEAR.value).strip().lower()
        aliases: dict[str, InterpolateMethod] = {
            "discrete": cls.DISCRETE,
            "nearest": cls.DISCRETE,
            "floor": cls.FLOOR,
            "ceiling": cls.CEILING,
            "linear": cls.LINEAR,
            "quadraticspline": cls.QUADRATIC_SPLINE,
            "quadratic": cls.QUADRATIC_SPLINE,
            "cubicspline": cls.CUBIC_SPLINE,
            "cubic": cls.CUBIC_SPLINE,
        }
        if normalized not in aliases:
            allowed = [m.value for m in cls]
            raise ValueError(f"Unsupported interpolate '{value}'. Allowed: {allowed}")
        return aliases[normalized]

    @property
    def order(self) -> int:
        """Nominal polynomial order.

        Discrete is 0; floor and ceiling use the sentinels -1 and -2.
        """
        return _ORDERS[self]

    @property
    def is_linear_family(self) -> bool:
        """True for rules the multilinear fast path can handle."""
        return self.order <= 1


_ORDERS: dict[InterpolateMethod, int] = {
    InterpolateMethod.DISCRETE: 0,
    InterpolateMethod.FLOOR: -1,
    InterpolateMethod.CEILING: -2,
    InterpolateMethod.LINEAR: 1,
    InterpolateMethod.QUADRATIC_SPLINE: 2,
    InterpolateMethod.CUBIC_SPLINE: 3,
}


class VariableBinding(BaseModel):
    """Binding of one function dimension to a dataset variable.

    Attributes:
        var_id: Identifier of the bound variable
        variable_index: Position of the variable, set at load time
        min: Lower bound applied to the value (``-inf`` when unset)
        max: Upper bound applied to the value (``+inf`` when unset)
        extrapolate: Extrapolation policy beyond the table range
        interpolate: Interpolation rule along this dimension

    Example:
        >>> b = VariableBinding(var_id="alpha", min=-10.0, max=40.0)
        >>> b.bound(55.0)
        40.0
    """

    var_id: str = Field(..., min_length=1, description="Bound variable identifier")
    variable_index: int | None = Field(default=None, ge=0, description="Resolved position")
    min: float = Field(default=-math.inf, description="Lower value bound")
    max: float = Field(default=math.inf, description="Upper value bound")
    extrapolate: ExtrapolateMethod = ExtrapolateMethod.NEITHER
    interpolate: InterpolateMethod = InterpolateMethod.LINEAR

    @property
    def is_resolved(self) -> bool:
        """True once the variable index has been resolved."""
        return self.variable_index is not None

    @property
    def has_bounds(self) -> bool:
        """True when ``min`` or ``max`` was set."""
        return not (math.isinf(self.min) and math.isinf(self.max))

    def bound(self, x: float) -> float:
        """Clamp ``x`` to ``[min, max]``. NaN passes through."""
        if x < self.min:
            return self.min
        if x > self.max:
            return self.max
        return x
