"""Tests for mixed-order polynomial interpolation."""

import numpy as np
import pytest

from aerotab.core import BreakpointSet, InterpolateMethod, VariableBinding
from aerotab.core import bindings as bindings_module
from aerotab.errors import EvaluationError, UnsupportedPolynomialOrderError
from aerotab.interpolation import (
    axis_window,
    lagrange_weights,
    linear_interpolation,
    polynomial_interpolation,
)
from aerotab.interpolation.polynomial import effective_order


def _axis(values, bp_id="X"):
    return BreakpointSet(bp_id=bp_id, values=values)


class TestLagrangeWeights:
    """Tests for the closed-form basis weights."""

    def test_weights_sum_to_one(self):
        """Basis weights form a partition of unity."""
        assert sum(lagrange_weights(2, 0.3, [0.0, 0.4, 1.0])) == pytest.approx(1.0)
        assert sum(lagrange_weights(3, 0.7, [0.0, 0.2, 0.6, 1.0])) == pytest.approx(1.0)

    def test_cubic_centre(self):
        """Uniform cubic weights at the centre match the textbook values."""
        weights = lagrange_weights(3, 0.5, [0.0, 1 / 3, 2 / 3, 1.0])
        np.testing.assert_allclose(weights, [-1 / 16, 9 / 16, 9 / 16, -1 / 16], atol=1e-12)

    def test_nodes_are_reproduced(self):
        """At a node the weight is one there and zero elsewhere."""
        nodes = [0.0, 0.25, 1.0]
        np.testing.assert_allclose(lagrange_weights(2, 0.25, nodes), [0.0, 1.0, 0.0], atol=1e-12)


class TestScenario:
    """Fixed scenarios."""

    def test_quadratic_square(self):
        """Order 2 over x**2 at 1.5 gives 2.25."""
        axes = [_axis([0.0, 1.0, 2.0])]
        binding = [VariableBinding(var_id="x", interpolate="quadraticSpline")]
        result = polynomial_interpolation([1.5], binding, axes, np.array([0.0, 1.0, 4.0]))
        assert result == pytest.approx(2.25)

    def test_quadratic_window_shifts(self):
        """The window stays inside the axis near its upper end."""
        values = np.arange(5.0)
        axes = [_axis(values)]
        binding = [VariableBinding(var_id="x", interpolate="quadraticSpline")]
        result = polynomial_interpolation([3.7], binding, axes, values**2)
        assert result == pytest.approx(3.7**2)
        window = axis_window(3.7, binding[0], axes[0], "f", 0)
        assert window.start == 2
        assert window.width == 3

    def test_cubic_reproduces_cubic(self):
        """Order 3 is exact for cubic data on uneven breakpoints."""
        values = np.array([0.0, 0.5, 1.5, 2.0, 3.5])
        axes = [_axis(values)]
        binding = [VariableBinding(var_id="x", interpolate="cubicSpline")]
        for x in (0.2, 1.0, 1.8, 3.0):
            result = polynomial_interpolation([x], binding, axes, values**3 - 2 * values)
            assert result == pytest.approx(x**3 - 2 * x, rel=1e-9, abs=1e-9)

    def test_two_dimensional_quadratic(self):
        """Tensor-product quadratic is exact for x**2 * y**2."""
        x = np.array([0.0, 1.0, 2.0])
        y = np.array([0.0, 2.0, 4.0])
        axes = [_axis(x, "X"), _axis(y, "Y")]
        data = np.outer(x**2, y**2).ravel()
        bindings = [
            VariableBinding(var_id="x", interpolate="quadraticSpline"),
            VariableBinding(var_id="y", interpolate="quadraticSpline"),
        ]
        result = polynomial_interpolation([1.5, 3.0], bindings, axes, data)
        assert result == pytest.approx(2.25 * 9.0)


class TestOrders:
    """Order reduction and mixed rules."""

    def test_order_reduced_to_fit_axis(self):
        """A cubic request over two breakpoints becomes linear."""
        axis = _axis([0.0, 10.0])
        binding = VariableBinding(var_id="x", interpolate="cubicSpline")
        assert effective_order(binding, axis) == 1
        result = polynomial_interpolation([2.5], [binding], [axis], np.array([0.0, 10.0]))
        assert result == pytest.approx(2.5)

    def test_mixed_with_discrete(self):
        """A discrete dimension selects one breakpoint; ties go low."""
        x = np.array([0.0, 1.0, 2.0, 3.0])
        y = np.array([0.0, 10.0])
        axes = [_axis(x, "X"), _axis(y, "Y")]
        data = (x[:, None] ** 3 + y[None, :]).ravel()
        bindings = [
            VariableBinding(var_id="x", interpolate="cubicSpline"),
            VariableBinding(var_id="y", interpolate="discrete"),
        ]
        assert polynomial_interpolation([1.5, 6.0], bindings, axes, data) == pytest.approx(13.375)
        assert polynomial_interpolation([1.5, 5.0], bindings, axes, data) == pytest.approx(3.375)

    def test_mixed_with_floor_and_ceiling(self):
        """Floor and ceiling pick the lower and upper breakpoints."""
        x = np.array([0.0, 1.0, 2.0])
        y = np.array([0.0, 10.0, 20.0])
        axes = [_axis(x, "X"), _axis(y, "Y")]
        data = (x[:, None] ** 2 + y[None, :]).ravel()
        floor = [
            VariableBinding(var_id="x", interpolate="quadraticSpline"),
            VariableBinding(var_id="y", interpolate="floor"),
        ]
        ceiling = [floor[0], VariableBinding(var_id="y", interpolate="ceiling")]
        assert polynomial_interpolation([1.5, 12.0], floor, axes, data) == pytest.approx(12.25)
        assert polynomial_interpolation([1.5, 12.0], ceiling, axes, data) == pytest.approx(22.25)

    def test_discrete_extrapolation_picks_end_value(self):
        """A discrete dimension past its range yields the end breakpoint's value."""
        x = np.array([0.0, 1.0, 2.0, 3.0])
        y = np.array([0.0, 10.0])
        axes = [_axis(x, "X"), _axis(y, "Y")]
        data = np.tile([1.0, 2.0], len(x))
        bindings = [
            VariableBinding(var_id="x", interpolate="cubicSpline"),
            VariableBinding(var_id="y", interpolate="discrete", extrapolate="both"),
        ]
        linear = [VariableBinding(var_id="x"), bindings[1]]
        for y_query, expected in ((25.0, 2.0), (-25.0, 1.0), (4.0, 1.0), (6.0, 2.0)):
            result = polynomial_interpolation([1.5, y_query], bindings, axes, data)
            assert result == pytest.approx(expected)
            assert linear_interpolation([1.5, y_query], linear, axes, data) == pytest.approx(expected)

    def test_bounds_apply(self):
        """Attribute bounds hold on the polynomial path too."""
        axes = [_axis([0.0, 1.0, 2.0])]
        binding = [VariableBinding(var_id="x", max=1.5, interpolate="quadraticSpline")]
        data = np.array([0.0, 1.0, 4.0])
        assert polynomial_interpolation([9.0], binding, axes, data) == pytest.approx(2.25)

    def test_unsupported_order(self, monkeypatch):
        """Orders above cubic are rejected with the offending dimension."""
        monkeypatch.setitem(bindings_module._ORDERS, InterpolateMethod.CUBIC_SPLINE, 4)
        axes = [_axis(np.arange(6.0))]
        binding = [VariableBinding(var_id="x", interpolate="cubicSpline")]
        with pytest.raises(UnsupportedPolynomialOrderError) as excinfo:
            polynomial_interpolation([1.0], binding, axes, np.arange(6.0), "CL_fn")
        assert excinfo.value.order == 4
        assert excinfo.value.dimension == 0
        assert excinfo.value.function_id == "CL_fn"
        assert isinstance(excinfo.value, EvaluationError)
