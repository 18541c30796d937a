"""Delaunay triangulation of scattered independent-variable coordinates.

Thin adapter over ``scipy.spatial.Delaunay``. Coordinates are optionally
min-max normalised per column first so that axes with very different scales
triangulate sensibly. One-dimensional data is split into consecutive
intervals directly, since Qhull needs at least two dimensions.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.spatial import Delaunay, QhullError

logger = logging.getLogger(__name__)


def normalise_columns(points: np.ndarray) -> np.ndarray:
    """Scale each column to [0, 1]; constant columns are left untouched."""
    scaled = np.array(points, dtype=float, copy=True)
    lo = scaled.min(axis=0)
    span = scaled.max(axis=0) - lo
    for j in range(scaled.shape[1]):
        if abs(span[j]) >= 100.0 * np.finfo(float).eps:
            scaled[:, j] = (scaled[:, j] - lo[j]) / span[j]
    return scaled


def triangulate(
    points: np.ndarray,
    *,
    normalise: bool = True,
    qhull_options: str | None = None,
) -> np.ndarray:
    """Return Delaunay simplices as rows of point indices.

    Args:
        points: ``(n_points, n_dims)`` coordinate matrix
        normalise: Min-max scale each column before triangulating
        qhull_options: Extra Qhull options

    Returns:
        Integer array of shape ``(n_simplices, n_dims + 1)``

    Raises:
        ValueError: If there are too few points or Qhull rejects the input
    """
    points = np.asarray(points, dtype=float)
    n_points, n_dims = points.shape
    if n_points < n_dims + 1:
        raise ValueError(
            f"{n_points} points cannot span a {n_dims}-dimensional simplex"
        )

    if n_dims == 1:
        order = np.argsort(points[:, 0], kind="stable")
        return np.column_stack([order[:-1], order[1:]]).astype(np.intp)

    data = normalise_columns(points) if normalise else points
    try:
        tri = Delaunay(data, qhull_options=qhull_options)
    except QhullError as exc:
        raise ValueError(f"Delaunay triangulation failed: {exc}") from exc

    # scipy already drops upper-Delaunay facets
    simplices = np.asarray(tri.simplices, dtype=np.intp)
    logger.debug("Triangulated %d points into %d simplices", n_points, len(simplices))
    return simplices


def simplex_matrix(coordinates: np.ndarray, simplex: np.ndarray) -> np.ndarray:
    """Build the barycentric system matrix of one simplex.

    Row 0 is all ones (weights sum to one); row ``k + 1`` holds coordinate
    ``k`` of every vertex, one vertex per column.
    """
    vertices = coordinates[simplex]
    n_vertices = vertices.shape[0]
    matrix = np.empty((n_vertices, n_vertices), dtype=float)
    matrix[0, :] = 1.0
    matrix[1:, :] = vertices.T
    return matrix


def is_degenerate(coordinates: np.ndarray, simplex: np.ndarray) -> bool:
    """True when the simplex has no volume (rank-deficient system)."""
    matrix = simplex_matrix(coordinates, simplex)
    return int(np.linalg.matrix_rank(matrix)) < matrix.shape[0]
