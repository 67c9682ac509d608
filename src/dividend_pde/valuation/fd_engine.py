"""Finite difference machinery for the dividend option engine.

The engine owns the price grid, the payoff on that grid, the Black-Scholes
differential operator and the time-marching model. Everything is rebuilt from
declarative state: calling the ``initialize_*`` methods again with the same
bounds reproduces the same grid and operator, which is what lets the
dividend orchestrator rebuild freely at each ex-dividend date.

Current scope
-------------
- log-uniform price grid between the bounds chosen by the grid manager
- constant-coefficient operator in log-spot with Neumann boundaries
  taken from the payoff slope
- implicit or Crank-Nicolson time stepping with Rannacher start-up
"""

from __future__ import annotations
from typing import TYPE_CHECKING

import logging
import math

import numpy as np

from ..enums import OptionType, PDEMethod
from ..exceptions import ValidationError
from .grid_manager import CenterAndBounds

if TYPE_CHECKING:
    from .step_conditions import StepCondition


logger = logging.getLogger(__name__)

MIN_GRID_POINTS = 10
GRID_POINTS_PER_YEAR = 2


def safe_grid_points(grid_points: int, residual_time: float) -> int:
    """Raise ``grid_points`` to a maturity-dependent minimum."""
    minimum = MIN_GRID_POINTS
    if residual_time > 1.0:
        minimum = int(MIN_GRID_POINTS + (residual_time - 1.0) * GRID_POINTS_PER_YEAR)
    return max(int(grid_points), minimum)


def _solve_tridiagonal_thomas(
    lower: np.ndarray,
    diag: np.ndarray,
    upper: np.ndarray,
    rhs: np.ndarray,
) -> np.ndarray:
    """Solve a tridiagonal system Ax = rhs via the Thomas algorithm.

    A has:
      - lower: subdiagonal (length n-1)  -> A[i, i-1]
      - diag:  main diagonal (length n)  -> A[i, i]
      - upper: superdiagonal (length n-1)-> A[i, i+1]
    """
    n = diag.size
    if rhs.size != n:
        raise ValidationError("rhs length must match diag length")
    if lower.size != n - 1 or upper.size != n - 1:
        raise ValidationError("lower/upper must have length n-1")

    # Copy to avoid mutating inputs
    c: np.ndarray = upper.astype(float, copy=True)
    d: np.ndarray = diag.astype(float, copy=True)
    b: np.ndarray = lower.astype(float, copy=True)
    y: np.ndarray = rhs.astype(float, copy=True)

    # Forward elimination
    for i in range(1, n):
        w = b[i - 1] / d[i - 1]
        d[i] -= w * c[i - 1]
        y[i] -= w * y[i - 1]

    # Back substitution
    x: np.ndarray = np.empty(n, dtype=float)
    x[-1] = y[-1] / d[-1]
    for i in range(n - 2, -1, -1):
        x[i] = (y[i] - c[i] * x[i + 1]) / d[i]
    return x


def _log_operator_coeffs(
    *,
    dz: float,
    risk_free_rate: float,
    dividend_rate: float,
    volatility: float,
) -> tuple[float, float, float]:
    """Spatial operator coefficients on the log-spot grid.

    Returns ``(gamma, beta, alpha)``, the weights of ``V[j-1]``, ``V[j]`` and
    ``V[j+1]`` in ``0.5 sigma^2 V_zz + mu V_z - r V``.
    """
    mu = risk_free_rate - dividend_rate - 0.5 * volatility**2
    diffusion = (volatility**2) / (dz**2)
    drift = mu / dz
    gamma = 0.5 * (diffusion - drift)
    beta = -(diffusion + risk_free_rate)
    alpha = 0.5 * (diffusion + drift)
    return gamma, beta, alpha


def _build_time_step_schedule(
    times: np.ndarray,
    method: PDEMethod,
    rannacher_steps: int,
) -> list[tuple[float, float, PDEMethod]]:
    """Build the time-step schedule from a decreasing calendar-time grid.

    For Crank-Nicolson with Rannacher smoothing (Pooley-Vetzal-Forsyth 2003),
    the first *rannacher_steps* intervals are each replaced by two implicit
    (backward Euler) half-steps. This damps payoff non-smoothness while
    preserving the overall time-grid structure.
    """
    steps: list[tuple[float, float, PDEMethod]] = []
    for n in range(1, times.size):
        t_start = float(times[n - 1])
        t_end = float(times[n])
        if method is PDEMethod.CRANK_NICOLSON and n <= rannacher_steps:
            t_mid = 0.5 * (t_start + t_end)
            steps.append((t_start, t_mid, PDEMethod.IMPLICIT))
            steps.append((t_mid, t_end, PDEMethod.IMPLICIT))
        else:
            steps.append((t_start, t_end, method))
    return steps


def _payoff(option_type: OptionType, strike: float, spots: np.ndarray) -> np.ndarray:
    if option_type is OptionType.PUT:
        return np.maximum(strike - spots, 0.0)
    return np.maximum(spots - strike, 0.0)


class FiniteDifferenceEngine:
    """Grid, operator and theta-scheme model for a Black-Scholes option.

    The engine is stateful: ``grid``, ``initial_prices`` and the operator are
    replaced wholesale by the ``initialize_*`` calls, and ``rollback`` only
    reads them.
    """

    def __init__(
        self,
        *,
        option_type: OptionType,
        strike: float,
        dividend_yield: float,
        risk_free_rate: float,
        volatility: float,
        residual_time: float,
        grid_points: int,
        method: PDEMethod = PDEMethod.CRANK_NICOLSON,
    ) -> None:
        self.option_type = option_type
        self.strike = float(strike)
        self.dividend_yield = float(dividend_yield)
        self.risk_free_rate = float(risk_free_rate)
        self.volatility = float(volatility)
        self.residual_time = float(residual_time)
        self.grid_points = safe_grid_points(grid_points, residual_time)
        self.method = method

        self.bounds: CenterAndBounds | None = None
        self.grid: np.ndarray | None = None
        self.initial_prices: np.ndarray | None = None
        self._coeffs: tuple[float, float, float] | None = None
        self._boundary_slopes: tuple[float, float] | None = None
        self._theta: float | None = None

    def initialize_grid(self, bounds: CenterAndBounds) -> np.ndarray:
        """Log-uniform grid of ``grid_points`` nodes from ``s_min`` to ``s_max``."""
        self.bounds = bounds
        log_spacing = (math.log(bounds.s_max) - math.log(bounds.s_min)) / (self.grid_points - 1)
        self.grid = bounds.s_min * np.exp(log_spacing * np.arange(self.grid_points))
        self.grid[-1] = bounds.s_max
        return self.grid

    def initialize_initial_condition(self) -> np.ndarray:
        """Payoff on the current grid."""
        self.initial_prices = _payoff(self.option_type, self.strike, self._require_grid())
        return self.initial_prices

    def initialize_operator(self) -> None:
        grid = self._require_grid()
        if self.initial_prices is None:
            raise ValidationError("initial condition must be built before the operator")
        dz = (math.log(grid[-1]) - math.log(grid[0])) / (grid.size - 1)
        self._coeffs = _log_operator_coeffs(
            dz=dz,
            risk_free_rate=self.risk_free_rate,
            dividend_rate=self.dividend_yield,
            volatility=self.volatility,
        )
        payoff = self.initial_prices
        self._boundary_slopes = (
            float(payoff[1] - payoff[0]),
            float(payoff[-1] - payoff[-2]),
        )

    def initialize_model(self) -> None:
        if self.method is PDEMethod.IMPLICIT:
            self._theta = 1.0
        else:
            self._theta = 0.5

    def rollback(
        self,
        prices: np.ndarray,
        from_time: float,
        to_time: float,
        steps: int,
        condition: StepCondition | None = None,
        *,
        smoothing_steps: int = 0,
    ) -> np.ndarray:
        """March ``prices`` backward from ``from_time`` to ``to_time``.

        ``condition`` is applied after every step at the step's end time.
        Returns a new array; ``prices`` itself is left untouched.
        """
        if self._coeffs is None or self._theta is None:
            raise ValidationError("operator and model must be initialised before rollback")
        if to_time > from_time:
            raise ValidationError("rollback runs backward in time: to_time must be <= from_time")
        values = np.array(prices, dtype=float, copy=True)
        if steps <= 0 or from_time == to_time:
            return values

        times = np.linspace(from_time, to_time, steps + 1)
        schedule = _build_time_step_schedule(times, self.method, smoothing_steps)
        for t_start, t_end, method_used in schedule:
            theta = 1.0 if method_used is PDEMethod.IMPLICIT else self._theta
            values = self._step(values, t_start - t_end, theta)
            if condition is not None:
                condition.apply_to(values, t_end)
        return values

    def _step(self, values: np.ndarray, d_t: float, theta: float) -> np.ndarray:
        gamma, beta, alpha = self._coeffs  # type: ignore[misc]
        lower_slope, upper_slope = self._boundary_slopes  # type: ignore[misc]
        n = values.size

        lower = np.full(n - 1, -theta * d_t * gamma)
        diag = np.full(n, 1.0 - theta * d_t * beta)
        upper = np.full(n - 1, -theta * d_t * alpha)

        rhs = values.copy()
        explicit = (1.0 - theta) * d_t
        if explicit > 0.0:
            rhs[1:-1] = values[1:-1] + explicit * (
                gamma * values[:-2] + beta * values[1:-1] + alpha * values[2:]
            )

        # Neumann rows: V[1] - V[0] and V[-1] - V[-2] follow the payoff slope
        diag[0] = -1.0
        upper[0] = 1.0
        rhs[0] = lower_slope
        lower[-1] = -1.0
        diag[-1] = 1.0
        rhs[-1] = upper_slope

        return _solve_tridiagonal_thomas(lower, diag, upper, rhs)

    def _require_grid(self) -> np.ndarray:
        if self.grid is None:
            raise ValidationError("grid has not been initialised")
        return self.grid
