"""Grid support bookkeeping across ex-dividend dates.

Stepping backward through an ex-dividend date reinstates the dividend into
the modelled reference level, so the grid centre moves up by the dividend
amount. The lower bound may move up with it; the upper bound then follows so
that the grid stays log-symmetric about the new centre.
"""

from __future__ import annotations
from dataclasses import dataclass

import logging
import math

from ..exceptions import ValidationError

__all__ = ["CenterAndBounds", "GridManager"]


logger = logging.getLogger(__name__)

SAFETY_ZONE_FACTOR = 1.1


@dataclass(frozen=True, slots=True)
class CenterAndBounds:
    """Grid support: ``s_min < center < s_max``."""

    center: float
    s_min: float
    s_max: float

    def __post_init__(self) -> None:
        if not (0.0 < self.s_min < self.center < self.s_max):
            raise ValidationError(
                "grid bounds must satisfy 0 < s_min < center < s_max, got "
                f"s_min={self.s_min}, center={self.center}, s_max={self.s_max}"
            )


class GridManager:
    """Owns the current grid centre and bounds for one valuation."""

    def __init__(
        self,
        *,
        strike: float,
        volatility: float,
        safety_zone_factor: float = SAFETY_ZONE_FACTOR,
    ) -> None:
        self.strike = float(strike)
        self.volatility = float(volatility)
        self.safety_zone_factor = float(safety_zone_factor)
        self.bounds: CenterAndBounds | None = None

    def _limits(self, center: float, time_delay: float) -> tuple[float, float]:
        vol_sqrt_time = max(self.volatility * math.sqrt(max(time_delay, 0.0)), 1.0e-4)
        # the prefactor widens the grid at small volatilities
        prefactor = 1.0 + 0.02 / vol_sqrt_time
        min_max_factor = math.exp(4.0 * prefactor * vol_sqrt_time)
        s_min = center / min_max_factor
        s_max = center * min_max_factor

        # keep the strike inside the grid
        if s_min > self.strike / self.safety_zone_factor:
            s_min = self.strike / self.safety_zone_factor
            s_max = center / (s_min / center)
        if s_max < self.strike * self.safety_zone_factor:
            s_max = self.strike * self.safety_zone_factor
            s_min = center / (s_max / center)
        return s_min, s_max

    def set_grid_limits(self, center: float, time_delay: float) -> CenterAndBounds:
        """Log-symmetric bounds wide enough for ``time_delay`` years of diffusion."""
        s_min, s_max = self._limits(center, time_delay)
        self.bounds = CenterAndBounds(center=float(center), s_min=s_min, s_max=s_max)
        return self.bounds

    def on_dividend_event(
        self,
        center: float,
        dividend_amount: float,
        time_delay: float | None = None,
    ) -> CenterAndBounds:
        """Reinstate ``dividend_amount`` into the centre and update the bounds.

        Without ``time_delay`` the previous bounds are the reference; with it,
        fresh limits for the new centre are computed first. Either way the
        lower bound is raised to the previous ``s_min + dividend_amount`` when
        that is higher, so the rebuilt grid does not reach below the shifted
        old one.
        """
        previous = self.bounds
        if previous is None:
            raise ValidationError("grid limits must be set before a dividend event")

        new_center = float(center) + float(dividend_amount)
        candidate = previous.s_min + float(dividend_amount)

        if time_delay is None:
            s_min, s_max = previous.s_min, previous.s_max
        else:
            s_min, s_max = self._limits(new_center, time_delay)

        if candidate > s_min:
            s_min = candidate
            s_max = new_center * new_center / s_min

        self.bounds = CenterAndBounds(center=new_center, s_min=s_min, s_max=s_max)
        logger.debug(
            "Grid limits center=%.6g s_min=%.6g s_max=%.6g (dividend %.6g)",
            new_center,
            s_min,
            s_max,
            dividend_amount,
        )
        return self.bounds

    @staticmethod
    def bounds_changed(previous: CenterAndBounds | None, current: CenterAndBounds) -> bool:
        return previous != current
