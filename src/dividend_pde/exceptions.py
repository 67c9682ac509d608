"""Custom exception hierarchy for the dividend_pde library.

All library-specific exceptions inherit from :class:`DividendPDEError`,
enabling callers to catch *any* library error with a single ``except`` clause::

    try:
        option = DividendOption(...)
        pv = option.present_value()
    except DividendPDEError as exc:
        log.error("Library error: %s", exc)
"""

from __future__ import annotations


class DividendPDEError(Exception):
    """Base exception for all library errors."""


# ── Input validation ────────────────────────────────────────────────


class ValidationError(DividendPDEError):
    """Invalid internal inputs (array shapes, grid bounds, solver sizes, etc.)."""


class ConfigurationError(DividendPDEError):
    """Contract inputs that cannot describe a valid valuation.

    ``details`` holds the offending counts or sums, e.g.
    ``{"dividends": 2, "dates": 3}`` for a dividend/date count mismatch.
    """

    def __init__(self, message: str, **details: float | int) -> None:
        super().__init__(message)
        self.details = details


# ── Numerical issues ────────────────────────────────────────────────


class NumericalError(DividendPDEError):
    """Base for errors arising from numerical computation."""


class DegenerateGridError(NumericalError):
    """Too few strictly positive grid points survive to build a log-space spline."""

    def __init__(self, usable_points: int, grid_size: int) -> None:
        super().__init__(
            f"only {usable_points} of {grid_size} grid points are strictly positive; "
            "at least 2 are needed to transfer prices"
        )
        self.usable_points = usable_points
        self.grid_size = grid_size
