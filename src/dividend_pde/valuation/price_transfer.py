"""Remap a price array from one grid onto another across an ex-dividend date."""

from __future__ import annotations

import numpy as np
from scipy.interpolate import CubicSpline

from ..exceptions import DegenerateGridError, ValidationError

__all__ = ["transfer_prices"]


def transfer_prices(prices, old_grid, new_grid) -> np.ndarray:
    """Interpolate ``prices`` known on ``old_grid`` onto ``new_grid``.

    A natural cubic spline is fitted through the prices as a function of
    ``log(old_grid)``, using only the strictly positive old grid points.

    Tail points are clamped: every ``j`` with ``new_grid[j]`` at or above
    ``old_grid[n - 2]`` (``n = len(old_grid)``) is evaluated at
    ``new_grid[n - 2]`` instead. The cap index comes from the old grid's
    length and is applied to the new grid.

    Parameters
    ----------
    prices
        Values on ``old_grid``, same length.
    old_grid
        Strictly increasing grid the prices are known on.
    new_grid
        Grid to evaluate on.

    Returns
    -------
    np.ndarray
        Array of ``len(new_grid)`` transferred prices.

    Raises
    ------
    DegenerateGridError
        Fewer than two strictly positive points on ``old_grid``.
    """
    prices = np.asarray(prices, dtype=float)
    old_grid = np.asarray(old_grid, dtype=float)
    new_grid = np.asarray(new_grid, dtype=float)
    if prices.ndim != 1 or old_grid.ndim != 1 or new_grid.ndim != 1:
        raise ValidationError("prices and grids must be 1D arrays")
    if prices.shape != old_grid.shape:
        raise ValidationError("prices and old_grid must have the same length")

    usable = old_grid > 0.0
    usable_points = int(np.count_nonzero(usable))
    if usable_points < 2:
        raise DegenerateGridError(usable_points=usable_points, grid_size=old_grid.size)

    spline = CubicSpline(np.log(old_grid[usable]), prices[usable], bc_type="natural")

    cap = old_grid.size - 2
    j = np.arange(new_grid.size)
    j_grid = np.where(new_grid < old_grid[cap], j, cap)
    if np.any(j_grid >= new_grid.size):
        raise ValidationError(
            f"clamp index {cap} falls outside a new grid of {new_grid.size} points"
        )
    points = new_grid[j_grid]
    if np.any(points <= 0.0):
        raise ValidationError("new grid must be strictly positive where it is evaluated")

    return np.asarray(spline(np.log(points)), dtype=float)
