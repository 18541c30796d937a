"""Error taxonomy for aerotab.

Load-time structural faults derive from :class:`LoadError` and abort loading
of the dataset. Evaluation-time faults derive from :class:`EvaluationError`.
Every exception keeps the offending identifiers as attributes so callers can
decide how to present them.
"""

from __future__ import annotations

from typing import Any


class AerotabError(Exception):
    """Base class for all aerotab errors."""

    pass


class LoadError(AerotabError):
    """Raised when a dataset cannot be loaded."""

    pass


class NonMonotonicBreakpointsError(LoadError, ValueError):
    """Raised when breakpoint values are not strictly increasing."""

    def __init__(self, bp_id: str, index: int, value: float, previous: float) -> None:
        self.bp_id = bp_id
        self.index = index
        self.value = value
        self.previous = previous
        super().__init__(
            f"Breakpoint values must increase for '{bp_id}': "
            f"value {value!r} at position {index} follows {previous!r}"
        )


class ShapeMismatchError(LoadError, ValueError):
    """Raised when table data does not match its breakpoint product."""

    def __init__(self, table_id: str, expected: int, actual: int) -> None:
        self.table_id = table_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Table '{table_id}' has {actual} entries, "
            f"breakpoints require {expected}"
        )


class DuplicateIdError(LoadError, KeyError):
    """Raised when an identifier is registered twice for the same kind."""

    def __init__(self, kind: Any, element_id: str) -> None:
        self.kind = kind
        self.element_id = element_id
        super().__init__(f"Duplicate {_kind_label(kind)} identifier '{element_id}'")

    def __str__(self) -> str:
        return str(self.args[0])


class UnresolvedReferenceError(LoadError, KeyError):
    """Raised when a cross-reference names an identifier never registered."""

    def __init__(self, kind: Any, element_id: str, referrer: str | None = None) -> None:
        self.kind = kind
        self.element_id = element_id
        self.referrer = referrer
        where = f" (referenced from '{referrer}')" if referrer else ""
        super().__init__(
            f"Unresolved {_kind_label(kind)} reference '{element_id}'{where}"
        )

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidRecordError(LoadError, ValueError):
    """Raised when a raw element record is malformed."""

    def __init__(self, element_id: str, reason: str) -> None:
        self.element_id = element_id
        self.reason = reason
        super().__init__(f"Invalid record '{element_id}': {reason}")


class EvaluationError(AerotabError):
    """Raised when a function cannot be evaluated."""

    pass


class UnresolvedVariableError(EvaluationError):
    """Raised when a binding was never resolved to a variable index."""

    def __init__(self, function_id: str, dimension: int | None) -> None:
        self.function_id = function_id
        self.dimension = dimension
        where = "its output" if dimension is None else f"dimension {dimension}"
        super().__init__(f"Function '{function_id}' has an unresolved variable in {where}")


class DimensionMismatchError(EvaluationError):
    """Raised when binding count disagrees with table dimensionality."""

    def __init__(self, function_id: str, expected: int, actual: int) -> None:
        self.function_id = function_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Function '{function_id}' binds {actual} independent variables, "
            f"table has {expected} dimensions"
        )


class UnsupportedPolynomialOrderError(EvaluationError):
    """Raised when a dimension asks for a polynomial order above 3."""

    def __init__(self, function_id: str, dimension: int, order: int) -> None:
        self.function_id = function_id
        self.dimension = dimension
        self.order = order
        super().__init__(
            f"Polynomial order {order} too high in dimension {dimension} "
            f"of function '{function_id}'"
        )


class OutOfHullError(EvaluationError):
    """Raised in strict mode when an ungridded query lies outside the data hull."""

    def __init__(self, function_id: str, point: tuple[float, ...]) -> None:
        self.function_id = function_id
        self.point = point
        super().__init__(
            f"Point {point} lies outside the convex hull of function '{function_id}'"
        )


def _kind_label(kind: Any) -> str:
    label = getattr(kind, "value", kind)
    return str(label).replace("_", " ")
