"""Tests for breakpoint sets and variable bindings."""

import math

import numpy as np
import pytest

from aerotab.core import BreakpointSet, ExtrapolateMethod, InterpolateMethod, VariableBinding
from aerotab.errors import NonMonotonicBreakpointsError


class TestBreakpointSet:
    """Tests for BreakpointSet."""

    def test_creation(self):
        """Values are stored as a read-only float array."""
        bp = BreakpointSet(bp_id="ALPHA1", values=[0, 5, 10], units="deg")
        assert len(bp) == 3
        assert bp.values.dtype == float
        assert bp.lower == 0.0
        assert bp.upper == 10.0
        with pytest.raises(ValueError):
            bp.values[0] = 1.0

    def test_non_monotonic(self):
        """A decreasing pair is reported with its position."""
        with pytest.raises(NonMonotonicBreakpointsError) as excinfo:
            BreakpointSet(bp_id="ALPHA1", values=[0.0, 5.0, 4.0, 10.0])
        assert excinfo.value.bp_id == "ALPHA1"
        assert excinfo.value.index == 2
        assert excinfo.value.value == 4.0
        assert excinfo.value.previous == 5.0

    def test_repeated_value(self):
        """Equal neighbours are not strictly increasing."""
        with pytest.raises(NonMonotonicBreakpointsError):
            BreakpointSet(bp_id="MACH1", values=[0.2, 0.4, 0.4])

    def test_empty(self):
        """At least one value is required."""
        with pytest.raises(ValueError):
            BreakpointSet(bp_id="EMPTY", values=[])

    def test_locate_interior(self):
        """Interior queries get their interval and fraction."""
        bp = BreakpointSet(bp_id="X", values=[0.0, 5.0, 10.0])
        assert bp.locate(7.5) == (1, 0.5)
        assert bp.locate(2.0) == (0, pytest.approx(0.4))

    def test_locate_on_breakpoint(self):
        """A query on an interior breakpoint lands at the top of the interval below."""
        bp = BreakpointSet(bp_id="X", values=[0.0, 5.0, 10.0])
        i, fraction = bp.locate(5.0)
        assert i == 0
        assert fraction == 1.0

    def test_locate_outside(self):
        """Queries outside the range use the end intervals."""
        bp = BreakpointSet(bp_id="X", values=[0.0, 5.0, 10.0])
        assert bp.locate(-5.0) == (0, -1.0)
        assert bp.locate(15.0) == (1, 2.0)

    def test_single_value(self):
        """A single breakpoint always locates at its own index."""
        bp = BreakpointSet(bp_id="X", values=[3.0])
        assert bp.locate(100.0) == (0, 0.0)
        assert bp.lower_index(-1.0) == 0


class TestVariableBinding:
    """Tests for VariableBinding and its policy enums."""

    def test_defaults(self):
        """Unset bounds are infinite; policies default to neither/linear."""
        b = VariableBinding(var_id="alpha")
        assert b.min == -math.inf
        assert b.max == math.inf
        assert b.extrapolate is ExtrapolateMethod.NEITHER
        assert b.interpolate is InterpolateMethod.LINEAR
        assert not b.has_bounds
        assert not b.is_resolved

    def test_bound(self):
        """Values are clamped to the attribute bounds; NaN passes."""
        b = VariableBinding(var_id="alpha", min=2.0, max=8.0)
        assert b.bound(100.0) == 8.0
        assert b.bound(-1.0) == 2.0
        assert b.bound(5.0) == 5.0
        assert math.isnan(b.bound(math.nan))

    def test_extrapolate_aliases(self):
        """Attribute spellings map onto extrapolation policies."""
        assert ExtrapolateMethod.from_alias("BOTH") is ExtrapolateMethod.BOTH
        assert ExtrapolateMethod.from_alias(None) is ExtrapolateMethod.NEITHER
        assert ExtrapolateMethod.MIN.below and not ExtrapolateMethod.MIN.above
        with pytest.raises(ValueError):
            ExtrapolateMethod.from_alias("sideways")

    @pytest.mark.parametrize(
        ("name", "order"),
        [
            ("discrete", 0),
            ("floor", -1),
            ("ceiling", -2),
            ("linear", 1),
            ("quadraticSpline", 2),
            ("cubicSpline", 3),
        ],
    )
    def test_interpolate_orders(self, name, order):
        """Each interpolation rule has its nominal order."""
        method = InterpolateMethod.from_alias(name)
        assert method.order == order
        assert method.is_linear_family == (order <= 1)

    def test_unknown_interpolate(self):
        """Unknown interpolation rules are rejected."""
        with pytest.raises(ValueError):
            InterpolateMethod.from_alias("quintic")

    def test_array_conversion(self):
        """Numpy input is accepted for breakpoint values."""
        bp = BreakpointSet(bp_id="X", values=np.arange(4))
        np.testing.assert_array_equal(bp.values, [0.0, 1.0, 2.0, 3.0])
