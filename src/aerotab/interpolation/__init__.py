"""Interpolation algorithms.

- Linear: multilinear blend for linear/discrete/floor/ceiling dimensions
- Polynomial: mixed orders up to cubic on gridded tables
- Simplex: barycentric interpolation on triangulated ungridded tables
"""

from aerotab.interpolation.bounds import effective_input
from aerotab.interpolation.linear import cell_fraction, linear_interpolation
from aerotab.interpolation.polynomial import (
    MAX_ORDER,
    axis_window,
    lagrange_weights,
    polynomial_interpolation,
)
from aerotab.interpolation.simplex import barycentric_weights, ungridded_interpolation

__all__ = [
    "effective_input",
    "cell_fraction",
    "linear_interpolation",
    "MAX_ORDER",
    "axis_window",
    "lagrange_weights",
    "polynomial_interpolation",
    "barycentric_weights",
    "ungridded_interpolation",
]
