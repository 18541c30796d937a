"""Ungridded tables: scattered data points and their simplicial complex."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np
from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from aerotab.core.triangulation import is_degenerate, triangulate

logger = logging.getLogger(__name__)


class SearchOutcome(str, Enum):
    """How an ungridded evaluation found (or failed to find) its simplex."""

    CACHE_HIT = "cache_hit"
    EXACT_POINT = "exact_point"
    CONNECTIVITY = "connectivity"
    EXHAUSTIVE = "exhaustive"
    EXTRAPOLATED = "extrapolated"
    OUT_OF_HULL = "out_of_hull"


@dataclass
class SimplexCache:
    """Last-used-simplex hint for one ungridded table.

    The hint only speeds up point location; any value, including a stale
    one, yields the same results. ``outcomes`` counts how each evaluation
    was resolved.
    """

    last_used: int | None = None
    outcomes: Counter = field(default_factory=Counter)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self) -> int | None:
        with self.lock:
            return self.last_used

    def set(self, simplex: int) -> None:
        with self.lock:
            self.last_used = simplex

    def record(self, outcome: SearchOutcome) -> None:
        with self.lock:
            self.outcomes[outcome] += 1

    def reset(self) -> None:
        with self.lock:
            self.last_used = None
            self.outcomes.clear()


class UngriddedTable(BaseModel):
    """Scattered ``(coordinates, values...)`` points.

    Each row of ``points`` holds ``independent_var_count`` coordinates
    followed by one or more dependent values. Call :meth:`triangulate`
    once after construction to build the simplices, the per-point
    connectivity and the simplex centroids.

    Attributes:
        ut_id: Identifier unique among ungridded tables
        name: Human-readable name
        units: Units of the dependent values
        description: Free-text description
        independent_var_count: Number of coordinate columns
        points: ``(n_points, n_columns)`` data matrix
    """

    ut_id: str = Field(..., min_length=1, description="Ungridded table identifier")
    name: str = Field(default="", description="Human-readable name")
    units: str = Field(default="", description="Units of the values")
    description: str = Field(default="", description="Free-text description")
    independent_var_count: int = Field(default=0, ge=0, description="Coordinate columns")
    points: np.ndarray = Field(..., description="Data point matrix")

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    _simplices: np.ndarray | None = PrivateAttr(default=None)
    _connectivity: tuple[tuple[int, ...], ...] = PrivateAttr(default=())
    _centroids: np.ndarray | None = PrivateAttr(default=None)
    _cache: SimplexCache = PrivateAttr(default_factory=SimplexCache)

    @field_validator("points", mode="before")
    @classmethod
    def ensure_matrix(cls, v: Any) -> np.ndarray:  # noqa: N805
        """Convert rows to a read-only 2-D float array."""
        array = np.array(v, dtype=float)
        if array.ndim != 2 or array.shape[0] == 0:
            raise ValueError("points must be a non-empty list of equal-length rows")
        array.setflags(write=False)
        return array

    @model_validator(mode="after")
    def validate_columns(self) -> UngriddedTable:
        """Default the coordinate count and check room for dependent values."""
        n_columns = self.points.shape[1]
        if self.independent_var_count == 0:
            object.__setattr__(self, "independent_var_count", n_columns - 1)
        if self.independent_var_count < 1:
            raise ValueError(f"Ungridded table '{self.ut_id}' needs at least one coordinate column")
        if self.independent_var_count >= n_columns:
            raise ValueError(
                f"Ungridded table '{self.ut_id}' has {n_columns} columns, "
                f"leaving no dependent values after {self.independent_var_count} coordinates"
            )
        return self

    @property
    def ndim(self) -> int:
        """Number of independent dimensions."""
        return self.independent_var_count

    @property
    def point_count(self) -> int:
        return int(self.points.shape[0])

    @property
    def column_count(self) -> int:
        return int(self.points.shape[1])

    @property
    def dependent_column_count(self) -> int:
        return self.column_count - self.independent_var_count

    @property
    def independent_coordinates(self) -> np.ndarray:
        """``(n_points, n_dims)`` coordinate matrix."""
        return self.points[:, : self.independent_var_count]

    def dependent_column(self, column: int = 0) -> np.ndarray:
        """Return one dependent column as a vector.

        Raises:
            IndexError: If the column does not exist
        """
        if not 0 <= column < self.dependent_column_count:
            msg = (
                f"Ungridded table '{self.ut_id}' has {self.dependent_column_count} "
                f"dependent columns, no column {column}"
            )
            raise IndexError(msg)
        return self.points[:, self.independent_var_count + column]

    @property
    def dependent_columns(self) -> list[np.ndarray]:
        return [self.dependent_column(i) for i in range(self.dependent_column_count)]

    def triangulate(
        self, *, normalise: bool = True, qhull_options: str | None = None
    ) -> UngriddedTable:
        """Build simplices, connectivity and centroids.

        Degenerate simplices reported by the triangulation are dropped.

        Returns:
            The table itself, for chaining
        """
        coordinates = self.independent_coordinates
        simplices = triangulate(coordinates, normalise=normalise, qhull_options=qhull_options)
        keep = [i for i, s in enumerate(simplices) if not is_degenerate(coordinates, s)]
        skipped = len(simplices) - len(keep)
        if skipped:
            logger.info("Ungridded table '%s': skipped %d degenerate simplices", self.ut_id, skipped)
        simplices = simplices[keep]
        simplices.setflags(write=False)

        touching: list[list[int]] = [[] for _ in range(self.point_count)]
        for s, vertices in enumerate(simplices):
            for v in vertices:
                touching[int(v)].append(s)

        centroids = coordinates[simplices].mean(axis=1) if len(simplices) else np.empty((0, self.ndim))

        self._simplices = simplices
        self._connectivity = tuple(tuple(t) for t in touching)
        self._centroids = centroids
        self._cache.reset()
        logger.debug(
            "Ungridded table '%s': %d points, %d simplices", self.ut_id, self.point_count, len(simplices)
        )
        return self

    @property
    def is_triangulated(self) -> bool:
        return self._simplices is not None

    def _require_triangulated(self) -> None:
        if self._simplices is None:
            raise RuntimeError(f"Ungridded table '{self.ut_id}' has not been triangulated")

    @property
    def simplices(self) -> np.ndarray:
        """``(n_simplices, n_dims + 1)`` vertex indices."""
        self._require_triangulated()
        return self._simplices

    @property
    def connectivity(self) -> tuple[tuple[int, ...], ...]:
        """For each point, the simplices having it as a vertex."""
        self._require_triangulated()
        return self._connectivity

    @property
    def centroids(self) -> np.ndarray:
        """One centroid per simplex."""
        self._require_triangulated()
        return self._centroids

    @property
    def cache(self) -> SimplexCache:
        """Mutable last-used-simplex hint and search statistics."""
        return self._cache

    def __repr__(self) -> str:
        """String representation."""
        n_simplices = len(self._simplices) if self._simplices is not None else "?"
        return (
            f"UngriddedTable {self.ut_id} ({self.point_count} points, {self.ndim}-D, "
            f"{n_simplices} simplices)"
        )
