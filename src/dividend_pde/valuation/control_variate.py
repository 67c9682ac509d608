"""Control variate tracking for the dividend finite-difference engine.

The control array is the numerical solution for the European-equivalent
option, whose value is also known in closed form. It is marched with the same
model and remapped with the same grid pairs as the primary array, but never
receives the exercise condition. The bias shared by both numerical solutions
then cancels in ``primary - control + analytic``.
"""

from __future__ import annotations

import logging

import numpy as np

from ..exceptions import ValidationError
from .bsm import DividendEuropeanAnalytic
from .fd_engine import FiniteDifferenceEngine
from .price_transfer import transfer_prices

__all__ = ["ControlVariateCoordinator"]


logger = logging.getLogger(__name__)


class ControlVariateCoordinator:
    """Numerical control array paired with its closed-form reference."""

    def __init__(self, reference: DividendEuropeanAnalytic) -> None:
        self.reference = reference
        self.prices: np.ndarray | None = None
        self._analytic_value: float | None = None

    @property
    def analytic_value(self) -> float:
        if self._analytic_value is None:
            self._analytic_value = self.reference.value()
        return self._analytic_value

    def initialize(self, initial_prices: np.ndarray) -> np.ndarray:
        self.prices = np.array(initial_prices, dtype=float, copy=True)
        return self.prices

    def rollback(
        self,
        engine: FiniteDifferenceEngine,
        from_time: float,
        to_time: float,
        steps: int,
        *,
        smoothing_steps: int = 0,
    ) -> np.ndarray:
        self.prices = engine.rollback(
            self._require_prices(),
            from_time,
            to_time,
            steps,
            condition=None,
            smoothing_steps=smoothing_steps,
        )
        return self.prices

    def transfer(self, old_grid: np.ndarray, new_grid: np.ndarray) -> np.ndarray:
        self.prices = transfer_prices(self._require_prices(), old_grid, new_grid)
        return self.prices

    def correct(self, primary: float, control: float, analytic: float | None = None) -> float:
        """``primary - control + analytic``; ``analytic`` defaults to the reference value."""
        if analytic is None:
            analytic = self.analytic_value
        corrected = primary - control + analytic
        logger.debug(
            "Control variate primary=%.8g control=%.8g analytic=%.8g corrected=%.8g",
            primary,
            control,
            analytic,
            corrected,
        )
        return corrected

    def _require_prices(self) -> np.ndarray:
        if self.prices is None:
            raise ValidationError("control prices have not been initialised")
        return self.prices
