"""Utility functions: timing logs and grid read-outs at the centre node."""

from __future__ import annotations
import time
from contextlib import contextmanager
from typing import Iterator

import numpy as np

from .exceptions import ConfigurationError, ValidationError

__all__ = [
    "log_timing",
    "coerce_float",
    "value_at_center",
    "first_derivative_at_center",
    "second_derivative_at_center",
]


@contextmanager
def log_timing(logger, label: str, enabled: bool) -> Iterator[None]:
    """Log timing for a code block when enabled is True."""
    if not enabled:
        yield
        return
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("Timing %s: %.6fs", label, elapsed)


def coerce_float(value, name: str) -> float:
    """``float(value)``, raising ConfigurationError for non-numeric input."""
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc


def value_at_center(values: np.ndarray) -> float:
    """Value at the centre of a log-symmetric grid.

    Odd-sized arrays return the middle node; even-sized arrays average the
    two nodes straddling the centre.
    """
    size = values.size
    if size == 0:
        raise ValidationError("cannot read the centre of an empty array")
    jmid = size // 2
    if size % 2 == 1:
        return float(values[jmid])
    return float(0.5 * (values[jmid] + values[jmid - 1]))


def first_derivative_at_center(values: np.ndarray, grid: np.ndarray) -> float:
    """Centred first derivative dV/dS at the grid centre."""
    size = values.size
    if size < 3:
        raise ValidationError("first derivative at centre requires at least 3 grid points")
    if grid.size != size:
        raise ValidationError("values and grid must have the same length")
    jmid = size // 2
    if size % 2 == 1:
        return float((values[jmid + 1] - values[jmid - 1]) / (grid[jmid + 1] - grid[jmid - 1]))
    return float((values[jmid] - values[jmid - 1]) / (grid[jmid] - grid[jmid - 1]))


def second_derivative_at_center(values: np.ndarray, grid: np.ndarray) -> float:
    """Second derivative d2V/dS2 at the grid centre on a non-uniform grid."""
    size = values.size
    if size < 4:
        raise ValidationError("second derivative at centre requires at least 4 grid points")
    if grid.size != size:
        raise ValidationError("values and grid must have the same length")
    jmid = size // 2
    if size % 2 == 1:
        delta_plus = (values[jmid + 1] - values[jmid]) / (grid[jmid + 1] - grid[jmid])
        delta_minus = (values[jmid] - values[jmid - 1]) / (grid[jmid] - grid[jmid - 1])
        ds = 0.5 * (grid[jmid + 1] - grid[jmid - 1])
    else:
        delta_plus = (values[jmid + 1] - values[jmid - 1]) / (grid[jmid + 1] - grid[jmid - 1])
        delta_minus = (values[jmid] - values[jmid - 2]) / (grid[jmid] - grid[jmid - 2])
        ds = 0.5 * (grid[jmid + 1] + grid[jmid - 1] - grid[jmid] - grid[jmid - 2])
    return float((delta_plus - delta_minus) / ds)
