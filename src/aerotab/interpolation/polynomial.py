"""Mixed-order polynomial interpolation over gridded tables.

Used whenever some dimension of a function asks for an order above one.
Each dimension gets an effective order: linear 1, discrete 0, floor -1,
ceiling -2, quadratic 2, cubic 3. The order drops when the axis has too
few breakpoints. A window of ``order + 1`` breakpoints is chosen around
the query (centred for odd orders, low side of centre for even ones,
kept inside the axis) and Lagrange basis weights are evaluated on
positions normalised to the window span. The result is the weighted sum
over the ``prod(order_j + 1)`` window points.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from aerotab.core.bindings import VariableBinding
from aerotab.core.breakpoints import BreakpointSet
from aerotab.errors import UnsupportedPolynomialOrderError
from aerotab.interpolation.bounds import effective_input

MAX_ORDER: int = 3


@dataclass
class AxisWindow:
    """Interpolation window along one dimension."""

    order: int
    start: int
    fraction: float
    weights: list[float]

    @property
    def width(self) -> int:
        """Number of window points."""
        return max(self.order, 0) + 1


def effective_order(binding: VariableBinding, axis: BreakpointSet) -> int:
    """Return the order used along one dimension, reduced to fit the axis."""
    order = binding.interpolate.order
    if order + 1 > len(axis):
        order = len(axis) - 1
    return order


def lagrange_weights(order: int, fraction: float, nodes: Sequence[float]) -> list[float]:
    """Basis weights of the window points at ``fraction``.

    ``nodes`` are the window positions normalised so that the first is 0
    and the last is 1. Orders of one or less blend the lower point with
    its neighbour linearly; only the first weight is used for orders
    below one.
    """
    x = fraction
    if order <= 1:
        return [1.0 - x, x]

    xx2 = x * x
    if order == 2:
        b1 = nodes[1]
        x12 = b1 * b1
        denominator = b1 - x12
        return [
            (x * (x12 - 1.0) + xx2 * (1.0 - b1) + denominator) / denominator,
            (x - xx2) / denominator,
            (xx2 * b1 - x * x12) / denominator,
        ]

    b1 = nodes[1]
    b2 = nodes[2]
    x12 = b1 * b1
    x22 = b2 * b2
    x13 = b1 * x12
    x23 = b2 * x22
    xx3 = x * xx2
    denominator = b1 * (x22 - x23) - x12 * (b2 - x23) + x13 * (b2 - x22)
    return [
        (
            x * (x23 + x12 * (1.0 - x23) - x22 - x13 * (1.0 - x22))
            + xx2 * (-x23 - b1 * (1.0 - x23) + b2 + x13 * (1.0 - b2))
            + xx3 * (x22 + b1 * (1.0 - x22) - b2 - x12 * (1.0 - b2))
            + denominator
        )
        / denominator,
        (xx2 * (x23 - b2) + x * (x22 - x23) + xx3 * (b2 - x22)) / denominator,
        (x * (x13 - x12) + xx2 * (b1 - x13) + xx3 * (x12 - b1)) / denominator,
        (x * (x12 * x23 - x13 * x22) + xx2 * (x13 * b2 - b1 * x23) + xx3 * (b1 * x22 - x12 * b2))
        / denominator,
    ]


def axis_window(
    x: float, binding: VariableBinding, axis: BreakpointSet, function_id: str, dimension: int
) -> AxisWindow:
    """Choose the window and weights for one dimension.

    Raises:
        UnsupportedPolynomialOrderError: If the effective order exceeds 3
    """
    values = axis.values
    nbp = len(axis)
    order = effective_order(binding, axis)
    if order > MAX_ORDER:
        raise UnsupportedPolynomialOrderError(function_id, dimension, order)

    x = effective_input(x, binding, axis)
    if nbp < 2:
        return AxisWindow(order=order, start=0, fraction=0.0, weights=[1.0, 0.0])

    width = max(order, 0)
    start = axis.lower_index(x)
    start = max(start - max(width - 1, 0) // 2, 0)
    start = min(start, nbp - width - 1)

    # discrete rules measure the fraction over the interval above the start
    reach = order if order > 0 else 1
    span = float(values[start + reach] - values[start])

    origin = float(values[start])
    fraction = (x - origin) / span
    nodes = [float(values[start + j] - origin) / span for j in range(order + 1)]

    if order == 0:
        # nearest of the two interval ends, a tie at 0.5 goes low
        if fraction > 0.5:
            start += 1
        fraction = 0.0
    elif order == -1:
        fraction = 0.0
    elif order == -2:
        fraction = 0.0
        start += 1

    return AxisWindow(
        order=order,
        start=start,
        fraction=fraction,
        weights=lagrange_weights(order, fraction, nodes),
    )


def polynomial_interpolation(
    inputs: Sequence[float],
    bindings: Sequence[VariableBinding],
    axes: Sequence[BreakpointSet],
    data: np.ndarray,
    function_id: str = "",
) -> float:
    """Interpolate a gridded table with per-dimension polynomial orders.

    Args:
        inputs: Current value of each independent variable
        bindings: Policy of each dimension
        axes: Breakpoint set of each dimension
        data: Flat row-major table values
        function_id: Name used in error reports

    Returns:
        The interpolated value

    Raises:
        UnsupportedPolynomialOrderError: If some order exceeds 3
    """
    windows = [
        axis_window(x, binding, axis, function_id, j)
        for j, (x, binding, axis) in enumerate(zip(inputs, bindings, axes))
    ]
    sizes = [len(axis) for axis in axes]
    n = len(windows)

    n_evals = 1
    for w in windows:
        n_evals *= w.width

    result = 0.0
    picks = [0] * n
    for k in range(n_evals):
        rest = k
        for j in range(n - 1, -1, -1):
            picks[j] = rest % windows[j].width
            rest //= windows[j].width

        offset = 0
        weight = 1.0
        for j in range(n):
            offset = offset * sizes[j] + windows[j].start + picks[j]
            weight *= windows[j].weights[picks[j]]
        result += float(data[offset]) * weight
    return result
