"""Tests for barycentric interpolation over ungridded tables.

Covers the fixed triangle scenario, exact data-point hits, the simplex
cache, exhaustive search, extrapolation, out-of-hull results and the
discrete rule.
"""

import math

import numpy as np
import pytest

from aerotab.core import SearchOutcome, UngriddedTable, VariableBinding
from aerotab.interpolation import barycentric_weights, ungridded_interpolation
from aerotab.interpolation.simplex import snap_to_vertex


def _table(points, ut_id="U"):
    return UngriddedTable(ut_id=ut_id, points=points).triangulate()


def _bindings(n, **policy):
    return [VariableBinding(var_id=f"x{i}", **policy) for i in range(n)]


@pytest.fixture
def triangle():
    return _table([[0.0, 0.0, 0.0], [1.0, 0.0, 1.0], [0.0, 1.0, 1.0]])


@pytest.fixture
def square():
    # f(x, y) = x + y
    return _table(
        [
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 1.0],
            [0.0, 1.0, 1.0],
            [1.0, 1.0, 2.0],
            [0.5, 0.5, 1.0],
        ]
    )


class TestScenario:
    """Fixed scenarios."""

    def test_triangle_interior(self, triangle):
        """(0.25, 0.25) in the unit triangle gives 0.5."""
        value, outcome = ungridded_interpolation(
            [0.25, 0.25], _bindings(2), triangle, triangle.dependent_column(0)
        )
        assert value == pytest.approx(0.5)
        assert outcome is SearchOutcome.CONNECTIVITY

    def test_barycentric_weights(self, triangle):
        """Weights are (0.5, 0.25, 0.25) on vertices (0,0), (1,0), (0,1)."""
        simplex = triangle.simplices[0]
        weights = barycentric_weights(
            triangle.independent_coordinates, simplex, np.array([1.0, 0.25, 0.25])
        )
        by_vertex = dict(zip(simplex.tolist(), weights))
        assert by_vertex[0] == pytest.approx(0.5)
        assert by_vertex[1] == pytest.approx(0.25)
        assert by_vertex[2] == pytest.approx(0.25)


class TestSearch:
    """Point location paths."""

    def test_exact_point(self, square):
        """Data points return their stored value exactly."""
        column = square.dependent_column(0)
        bindings = _bindings(2)
        for row in square.points:
            value, outcome = ungridded_interpolation(list(row[:2]), bindings, square, column)
            assert value == row[2]
            assert outcome is SearchOutcome.EXACT_POINT

    def test_exact_point_after_cached_simplex(self, square):
        """A warm cache does not disturb exact hits."""
        column = square.dependent_column(0)
        bindings = _bindings(2)
        ungridded_interpolation([0.9, 0.6], bindings, square, column)
        value, outcome = ungridded_interpolation([1.0, 1.0], bindings, square, column)
        assert value == 2.0
        assert outcome is SearchOutcome.EXACT_POINT

    def test_cache_hit_on_repeat(self, square):
        """A repeated query is resolved by the last used simplex."""
        column = square.dependent_column(0)
        bindings = _bindings(2)
        first, first_outcome = ungridded_interpolation([0.8, 0.3], bindings, square, column)
        hint = square.cache.get()
        second, second_outcome = ungridded_interpolation([0.8, 0.3], bindings, square, column)
        assert first_outcome is SearchOutcome.CONNECTIVITY
        assert second_outcome is SearchOutcome.CACHE_HIT
        assert square.cache.get() == hint
        assert first == second == pytest.approx(1.1)
        assert square.cache.outcomes[SearchOutcome.CACHE_HIT] == 1

    def test_cache_disabled(self, square):
        """Without the cache every query searches afresh."""
        column = square.dependent_column(0)
        bindings = _bindings(2)
        for _ in range(2):
            _, outcome = ungridded_interpolation(
                [0.8, 0.3], bindings, square, column, use_cache=False
            )
            assert outcome is SearchOutcome.CONNECTIVITY
        assert square.cache.get() is None

    def test_stale_cache_is_harmless(self, square):
        """Any hint value yields the same result."""
        column = square.dependent_column(0)
        bindings = _bindings(2)
        expected, _ = ungridded_interpolation([0.2, 0.7], bindings, square, column, use_cache=False)
        for hint in range(len(square.simplices)):
            square.cache.set(hint)
            value, _ = ungridded_interpolation([0.2, 0.7], bindings, square, column)
            assert value == pytest.approx(expected)

    def test_exhaustive_search(self, square, monkeypatch):
        """Without usable connectivity every simplex is scanned."""
        empty = tuple(() for _ in range(square.point_count))
        monkeypatch.setattr(UngriddedTable, "connectivity", property(lambda self: empty))
        value, outcome = ungridded_interpolation(
            [0.3, 0.6], _bindings(2), square, square.dependent_column(0)
        )
        assert value == pytest.approx(0.9)
        assert outcome is SearchOutcome.EXHAUSTIVE

    def test_linear_data_reproduced(self, square):
        """Affine data is reproduced anywhere inside the hull."""
        column = square.dependent_column(0)
        bindings = _bindings(2)
        rng = np.random.default_rng(7)
        for x, y in rng.uniform(0.0, 1.0, size=(20, 2)):
            value, _ = ungridded_interpolation([x, y], bindings, square, column)
            assert value == pytest.approx(x + y)


class TestOutsideHull:
    """Queries outside the convex hull."""

    def test_out_of_hull_is_nan(self, triangle):
        """Without extrapolation the result is NaN."""
        value, outcome = ungridded_interpolation(
            [2.0, 2.0], _bindings(2), triangle, triangle.dependent_column(0)
        )
        assert math.isnan(value)
        assert outcome is SearchOutcome.OUT_OF_HULL
        assert triangle.cache.outcomes[SearchOutcome.OUT_OF_HULL] == 1

    def test_partial_extrapolation_is_not_enough(self, triangle):
        """Every dimension must extrapolate both ways."""
        bindings = [
            VariableBinding(var_id="x", extrapolate="both"),
            VariableBinding(var_id="y", extrapolate="max"),
        ]
        value, _ = ungridded_interpolation([2.0, 2.0], bindings, triangle, triangle.dependent_column(0))
        assert math.isnan(value)

    def test_extrapolation(self, triangle):
        """With both-way extrapolation everywhere the affine fit is extended."""
        value, outcome = ungridded_interpolation(
            [2.0, 2.0], _bindings(2, extrapolate="both"), triangle, triangle.dependent_column(0)
        )
        assert value == pytest.approx(4.0)
        assert outcome is SearchOutcome.EXTRAPOLATED

    def test_bounds_bring_point_inside(self, triangle):
        """Attribute bounds apply before the hull test."""
        bindings = _bindings(2, min=0.0, max=0.25)
        value, _ = ungridded_interpolation([3.0, 3.0], bindings, triangle, triangle.dependent_column(0))
        assert value == pytest.approx(0.5)

    def test_nan_input(self, triangle):
        """A NaN input yields NaN."""
        value, outcome = ungridded_interpolation(
            [math.nan, 0.1], _bindings(2), triangle, triangle.dependent_column(0)
        )
        assert math.isnan(value)
        assert outcome is SearchOutcome.OUT_OF_HULL


class TestDiscrete:
    """Discrete lookups on ungridded data."""

    def test_snap_to_vertex(self):
        """All weight goes to the entry closest to one."""
        np.testing.assert_array_equal(snap_to_vertex(np.array([0.3, 0.6, 0.1])), [0.0, 1.0, 0.0])

    def test_discrete_picks_vertex_value(self, triangle):
        """The dominant vertex's value is returned."""
        column = np.array([5.0, 7.0, 9.0])
        value, _ = ungridded_interpolation(
            [0.6, 0.1], _bindings(2, interpolate="discrete"), triangle, column, discrete=True
        )
        assert value == 7.0

    def test_discrete_outside_hull(self, triangle):
        """Discrete lookups return a vertex value even outside the hull."""
        column = np.array([5.0, 7.0, 9.0])
        value, outcome = ungridded_interpolation(
            [3.0, 0.0], _bindings(2, interpolate="discrete"), triangle, column, discrete=True
        )
        assert value in (5.0, 7.0, 9.0)
        assert outcome is SearchOutcome.EXTRAPOLATED


class TestOneDimensional:
    """Ungridded data along a single axis."""

    def test_interval_interpolation(self):
        """Scattered 1-D points interpolate linearly between neighbours."""
        table = _table([[2.0, 20.0], [0.0, 0.0], [1.0, 10.0]])
        value, _ = ungridded_interpolation(
            [1.5], _bindings(1), table, table.dependent_column(0)
        )
        assert value == pytest.approx(15.0)
