"""Multilinear interpolation over gridded tables.

This is the fast path used when every dimension of a function is linear,
discrete, floor or ceiling. The result is a weighted sum over the ``2**n``
corners of the grid cell holding the query point. Corners are visited in
binary order with the last dimension in the lowest bit, and offsets follow
the table's row-major storage, so summation order is fixed.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from aerotab.core.bindings import InterpolateMethod, VariableBinding
from aerotab.core.breakpoints import BreakpointSet
from aerotab.interpolation.bounds import effective_input


def cell_fraction(x: float, binding: VariableBinding, axis: BreakpointSet) -> tuple[int, float]:
    """Locate one dimension and apply its interpolation rule.

    Discrete snaps the fraction to 0 or 1 (a tie at 0.5 goes to 0), floor
    forces 0 and ceiling forces 1.

    Returns:
        ``(lower_index, fraction)`` for the dimension
    """
    lower, fraction = axis.locate(effective_input(x, binding, axis))
    method = binding.interpolate
    if method is InterpolateMethod.DISCRETE:
        fraction = 0.0 if fraction <= 0.5 else 1.0
    elif method is InterpolateMethod.FLOOR:
        fraction = 0.0
    elif method is InterpolateMethod.CEILING:
        fraction = 1.0
    return lower, fraction


def linear_interpolation(
    inputs: Sequence[float],
    bindings: Sequence[VariableBinding],
    axes: Sequence[BreakpointSet],
    data: np.ndarray,
) -> float:
    """Interpolate a gridded table multilinearly.

    Args:
        inputs: Current value of each independent variable
        bindings: Policy of each dimension
        axes: Breakpoint set of each dimension
        data: Flat row-major table values

    Returns:
        The interpolated (or extrapolated) value
    """
    n = len(axes)
    sizes = [len(axis) for axis in axes]
    lower: list[int] = []
    factors: list[tuple[float, float]] = []
    for x, binding, axis in zip(inputs, bindings, axes):
        i, f = cell_fraction(x, binding, axis)
        lower.append(i)
        factors.append((1.0 - f, f))

    result = 0.0
    for corner in range(1 << n):
        offset = 0
        weight = 1.0
        for j in range(n):
            bit = (corner >> (n - 1 - j)) & 1
            # single-breakpoint axes have no upper neighbour
            index = min(lower[j] + bit, sizes[j] - 1)
            offset = offset * sizes[j] + index
            weight *= factors[j][bit]
        result += float(data[offset]) * weight
    return result
