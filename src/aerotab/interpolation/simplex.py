"""Barycentric interpolation over ungridded tables.

Point location runs through a fixed sequence of searches, stopping at the
first that succeeds:

1. an exact hit on a data point, returned without interpolation,
2. the table's last used simplex (cache hit),
3. the simplices touching the nearest data point,
4. every simplex, remembering the one whose most negative weight is
   closest to zero,
5. least-squares extrapolation from that simplex, allowed only when every
   dimension extrapolates both ways or the lookup is discrete. Otherwise
   the point is out of hull and the value is NaN.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from aerotab.config import DEFAULT_TOLERANCE
from aerotab.core.bindings import ExtrapolateMethod, VariableBinding
from aerotab.core.triangulation import simplex_matrix
from aerotab.core.ungridded import SearchOutcome, UngriddedTable

logger = logging.getLogger(__name__)


def barycentric_weights(
    coordinates: np.ndarray, simplex: np.ndarray, target: np.ndarray
) -> np.ndarray | None:
    """Solve for the weights of ``target`` relative to one simplex.

    ``target`` is the query point prefixed with 1.0. Returns None when the
    simplex is degenerate.
    """
    try:
        return np.linalg.solve(simplex_matrix(coordinates, simplex), target)
    except np.linalg.LinAlgError:
        return None


def least_squares_weights(
    coordinates: np.ndarray, simplex: np.ndarray, target: np.ndarray
) -> np.ndarray:
    """Rank-tolerant (SVD) weights of ``target`` relative to one simplex."""
    weights, *_ = np.linalg.lstsq(simplex_matrix(coordinates, simplex), target, rcond=None)
    return weights


def snap_to_vertex(weights: np.ndarray) -> np.ndarray:
    """Give all weight to the vertex whose weight is closest to one."""
    snapped = np.zeros_like(weights)
    snapped[int(np.argmin(np.abs(weights - 1.0)))] = 1.0
    return snapped


def ungridded_interpolation(
    inputs: Sequence[float],
    bindings: Sequence[VariableBinding],
    table: UngriddedTable,
    column: np.ndarray,
    *,
    discrete: bool = False,
    tolerance: float = DEFAULT_TOLERANCE,
    coincidence: float = DEFAULT_TOLERANCE,
    use_cache: bool = True,
) -> tuple[float, SearchOutcome]:
    """Interpolate one dependent column of an ungridded table.

    Args:
        inputs: Current value of each independent variable
        bindings: Policy of each dimension
        table: Triangulated table
        column: Dependent values, one per data point
        discrete: Snap to the nearest simplex vertex instead of blending
        tolerance: Weights at or above ``-tolerance`` count as inside
        coincidence: Distance below which the query is a data point
        use_cache: Try the table's last used simplex first

    Returns:
        ``(value, outcome)``; value is NaN when the outcome is
        ``SearchOutcome.OUT_OF_HULL``
    """
    x = np.array([b.bound(v) for v, b in zip(inputs, bindings)], dtype=float)
    cache = table.cache
    if np.isnan(x).any():
        cache.record(SearchOutcome.OUT_OF_HULL)
        return math.nan, SearchOutcome.OUT_OF_HULL

    coordinates = table.independent_coordinates
    simplices = table.simplices
    target = np.concatenate(([1.0], x))

    found: int | None = None
    weights: np.ndarray | None = None
    outcome = SearchOutcome.CACHE_HIT

    distances = np.sqrt(((coordinates - x) ** 2).sum(axis=1))
    nearest = int(np.argmin(distances))
    if distances[nearest] < coincidence:
        cache.record(SearchOutcome.EXACT_POINT)
        return float(column[nearest]), SearchOutcome.EXACT_POINT

    last = cache.get() if use_cache else None
    if last is not None and last < len(simplices):
        w = barycentric_weights(coordinates, simplices[last], target)
        if w is not None and w.min() >= -tolerance:
            found, weights = last, w

    if found is None:
        outcome = SearchOutcome.CONNECTIVITY
        for s in table.connectivity[nearest]:
            w = barycentric_weights(coordinates, simplices[s], target)
            if w is not None and w.min() >= -tolerance:
                found, weights = s, w
                break

    if found is None:
        outcome = SearchOutcome.EXHAUSTIVE
        least: int | None = None
        least_violation = math.inf
        for s in range(len(simplices)):
            w = barycentric_weights(coordinates, simplices[s], target)
            if w is None:
                continue
            w_min = float(w.min())
            if w_min >= -tolerance:
                found, weights = s, w
                break
            if abs(w_min) < least_violation:
                least_violation = abs(w_min)
                least = s

        if found is None:
            # discrete lookups snap to a vertex of the nearest simplex regardless
            extrapolate = discrete or all(b.extrapolate is ExtrapolateMethod.BOTH for b in bindings)
            if not extrapolate or least is None:
                logger.debug("Ungridded table '%s': point %s outside hull", table.ut_id, tuple(x))
                cache.record(SearchOutcome.OUT_OF_HULL)
                return math.nan, SearchOutcome.OUT_OF_HULL
            outcome = SearchOutcome.EXTRAPOLATED
            found = least
            weights = least_squares_weights(coordinates, simplices[least], target)

    if use_cache:
        cache.set(found)
    cache.record(outcome)

    if discrete:
        weights = snap_to_vertex(weights)

    result = 0.0
    for vertex, weight in zip(simplices[found], weights):
        result += float(column[vertex]) * float(weight)
    logger.debug("Ungridded table '%s': %s via simplex %d", table.ut_id, outcome.value, found)
    return result, outcome
