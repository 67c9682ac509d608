"""Discrete cash dividend schedules.

Times are year fractions from today and amounts are cash per share. A
schedule is validated against the spot it will be removed from: the modelled
reference level at maturity is ``underlying - total()``, which must stay
strictly positive.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

from .exceptions import ConfigurationError
from .utils import coerce_float

__all__ = ["DividendEvent", "DividendSchedule"]


@dataclass(frozen=True, slots=True)
class DividendEvent:
    """Single cash dividend paid at ``time`` (year fraction from today)."""

    time: float
    amount: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "time", coerce_float(self.time, "dividend time"))
        object.__setattr__(self, "amount", coerce_float(self.amount, "dividend amount"))
        if not np.isfinite(self.time) or self.time < 0.0:
            raise ConfigurationError(
                f"dividend time must be finite and non-negative, got {self.time}",
                time=self.time,
            )
        if not np.isfinite(self.amount) or self.amount <= 0.0:
            raise ConfigurationError(
                f"dividend amount must be finite and positive, got {self.amount}",
                amount=self.amount,
            )


@dataclass(frozen=True, slots=True)
class DividendSchedule:
    """Ordered cash dividends removed from ``underlying``.

    Attributes
    ==========
    dividends:
        Cash amounts, one per ex-dividend date.
    ex_dates:
        Ex-dividend times in years, strictly increasing.
    underlying:
        Spot including all future dividends.
    residual_time:
        Option maturity. When given, every ex-date must fall strictly before it.
    """

    dividends: tuple[float, ...]
    ex_dates: tuple[float, ...]
    underlying: float
    residual_time: float | None = None

    def __post_init__(self) -> None:
        try:
            dividends = tuple(self.dividends)
            ex_dates = tuple(self.ex_dates)
        except TypeError as exc:
            raise ConfigurationError("dividends and ex_dates must be sequences") from exc
        dividends = tuple(coerce_float(d, "dividend amount") for d in dividends)
        ex_dates = tuple(coerce_float(t, "ex-dividend date") for t in ex_dates)
        object.__setattr__(self, "dividends", dividends)
        object.__setattr__(self, "ex_dates", ex_dates)
        object.__setattr__(self, "underlying", coerce_float(self.underlying, "underlying"))
        if self.residual_time is not None:
            object.__setattr__(
                self, "residual_time", coerce_float(self.residual_time, "residual_time")
            )

        if len(dividends) != len(ex_dates):
            raise ConfigurationError(
                f"the number of dividends ({len(dividends)}) is different "
                f"from the number of dates ({len(ex_dates)})",
                dividends=len(dividends),
                dates=len(ex_dates),
            )

        total = float(sum(dividends))
        if not self.underlying > total:
            raise ConfigurationError(
                f"dividends ({total:g}) cannot exceed underlying ({self.underlying:g})",
                dividends=total,
                underlying=float(self.underlying),
            )

        # DividendEvent checks sign and finiteness of each pair
        events = tuple(DividendEvent(t, d) for t, d in zip(ex_dates, dividends))
        if any(later.time <= earlier.time for earlier, later in zip(events, events[1:])):
            raise ConfigurationError("ex-dividend dates must be strictly increasing")
        if self.residual_time is not None and events and events[-1].time >= self.residual_time:
            raise ConfigurationError(
                f"last ex-dividend date ({events[-1].time:g}) must precede "
                f"residual time ({self.residual_time:g})",
                date=events[-1].time,
                residual_time=float(self.residual_time),
            )

    @classmethod
    def from_events(
        cls,
        events: Sequence[DividendEvent],
        *,
        underlying: float,
        residual_time: float | None = None,
    ) -> "DividendSchedule":
        return cls(
            dividends=tuple(e.amount for e in events),
            ex_dates=tuple(e.time for e in events),
            underlying=underlying,
            residual_time=residual_time,
        )

    @property
    def events(self) -> tuple[DividendEvent, ...]:
        return tuple(DividendEvent(t, d) for t, d in zip(self.ex_dates, self.dividends))

    def __len__(self) -> int:
        return len(self.dividends)

    def __iter__(self) -> Iterator[DividendEvent]:
        return iter(self.events)

    def backward(self) -> tuple[DividendEvent, ...]:
        """Events in the order a backward sweep from maturity meets them."""
        return self.events[::-1]

    def total(self) -> float:
        return float(sum(self.dividends))

    def cumulative(self) -> np.ndarray:
        """Running dividend totals in ascending ex-date order."""
        return np.cumsum(np.asarray(self.dividends, dtype=float))

    def net_underlying(self) -> float:
        """Spot with every future dividend removed."""
        return float(self.underlying) - self.total()

    def riskless_value(self, risk_free_rate: float) -> float:
        """Present value of the dividends discounted at a flat rate."""
        if not self.dividends:
            return 0.0
        amounts = np.asarray(self.dividends, dtype=float)
        times = np.asarray(self.ex_dates, dtype=float)
        return float(np.sum(amounts * np.exp(-risk_free_rate * times)))
