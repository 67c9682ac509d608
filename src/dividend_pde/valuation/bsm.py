"""Black-Scholes-Merton European valuation with riskless discrete dividends.

The spot is reduced by the present value of the cash dividends paid before
maturity (escrowed-dividend model) and then priced with the usual
continuous-yield formula. This closed form anchors the control variate of the
finite-difference dividend engine.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import NamedTuple, Sequence

import numpy as np
from scipy.stats import norm

from ..dividends import DividendSchedule
from ..enums import OptionType
from ..exceptions import ConfigurationError, ValidationError

__all__ = ["DividendEuropeanAnalytic", "dividend_european_value"]


class _BSMInputs(NamedTuple):
    """Pre-computed inputs shared across all BSM Greek calculations."""

    spot: float
    strike: float
    volatility: float
    time_to_maturity: float
    df_r: float
    df_q: float
    d1: float
    d2: float


def _calculate_d_values(
    spot: float,
    strike: float,
    time_to_maturity: float,
    volatility: float,
    df_r: float,
    df_q: float,
) -> tuple[float, float]:
    """Calculate d1 and d2 for BSM model.

    Parameters
    ----------
    spot
        Dividend-adjusted spot price.
    strike
        Strike price.
    time_to_maturity
        Time to maturity in years.
    volatility
        Volatility (annualized).
    df_r
        Risk-free discount factor $P(0,T)$.
    df_q
        Dividend-yield discount factor $D_q(0,T)$.

    Returns
    -------
    tuple[float, float]
        Pair ``(d1, d2)``.
    """
    if time_to_maturity <= 0:
        raise ValidationError("time_to_maturity must be positive")

    forward = spot * df_q / df_r
    denominator = volatility * np.sqrt(time_to_maturity)

    if denominator < 1e-300:
        # Zero (or near-zero) vol: deterministic limit.
        if forward > strike:
            return np.inf, np.inf
        elif forward < strike:
            return -np.inf, -np.inf
        else:
            return 0.0, 0.0

    numerator = np.log(forward / strike) + 0.5 * volatility**2 * time_to_maturity
    d1 = numerator / denominator
    d2 = d1 - denominator

    return d1, d2


@dataclass(frozen=True, slots=True)
class DividendEuropeanAnalytic:
    """Closed-form European option on a spot paying riskless cash dividends.

    ``underlying`` is the quoted spot, i.e. with every future dividend still
    included. Theta is the annualised calendar-time derivative dV/dt.
    """

    option_type: OptionType
    underlying: float
    strike: float
    dividend_yield: float
    risk_free_rate: float
    residual_time: float
    volatility: float
    schedule: DividendSchedule

    @classmethod
    def from_arrays(
        cls,
        option_type: OptionType,
        underlying: float,
        strike: float,
        dividend_yield: float,
        risk_free_rate: float,
        residual_time: float,
        volatility: float,
        dividends: Sequence[float],
        ex_dates: Sequence[float],
    ) -> "DividendEuropeanAnalytic":
        schedule = DividendSchedule(
            dividends=tuple(dividends),
            ex_dates=tuple(ex_dates),
            underlying=underlying,
            residual_time=residual_time,
        )
        return cls(
            option_type=OptionType(option_type),
            underlying=float(underlying),
            strike=float(strike),
            dividend_yield=float(dividend_yield),
            risk_free_rate=float(risk_free_rate),
            residual_time=float(residual_time),
            volatility=float(volatility),
            schedule=schedule,
        )

    def _dividend_pv(self) -> float:
        return self.schedule.riskless_value(self.risk_free_rate)

    def _bsm_inputs(self) -> _BSMInputs:
        spot = self.underlying - self._dividend_pv()
        if spot <= 0.0:
            raise ConfigurationError(
                "present value of dividends exceeds underlying",
                dividends=self._dividend_pv(),
                underlying=self.underlying,
            )
        df_r = float(np.exp(-self.risk_free_rate * self.residual_time))
        df_q = float(np.exp(-self.dividend_yield * self.residual_time))
        d1, d2 = _calculate_d_values(
            spot, self.strike, self.residual_time, self.volatility, df_r, df_q
        )
        return _BSMInputs(
            spot=spot,
            strike=self.strike,
            volatility=self.volatility,
            time_to_maturity=self.residual_time,
            df_r=df_r,
            df_q=df_q,
            d1=d1,
            d2=d2,
        )

    def value(self) -> float:
        inp = self._bsm_inputs()
        if self.option_type is OptionType.CALL:
            option_value = inp.spot * inp.df_q * norm.cdf(
                inp.d1
            ) - inp.strike * inp.df_r * norm.cdf(inp.d2)
        else:  # PUT
            option_value = inp.strike * inp.df_r * norm.cdf(
                -inp.d2
            ) - inp.spot * inp.df_q * norm.cdf(-inp.d1)
        return float(option_value)

    def delta(self) -> float:
        """dV/dS; the dividend PV does not depend on spot, so this is the BSM delta."""
        inp = self._bsm_inputs()
        if self.option_type is OptionType.CALL:
            return float(inp.df_q * norm.cdf(inp.d1))
        return float(inp.df_q * (norm.cdf(inp.d1) - 1))

    def gamma(self) -> float:
        inp = self._bsm_inputs()
        n_prime_d1 = norm.pdf(inp.d1)
        return float(
            inp.df_q * n_prime_d1 / (inp.spot * inp.volatility * np.sqrt(inp.time_to_maturity))
        )

    def theta(self) -> float:
        """Annual theta.

        The BSM theta of the adjusted spot, plus the drift of the adjusted
        spot itself: the dividend PV accretes at ``r``, so
        ``theta = theta_BSM - r * PV(dividends) * delta``.
        """
        inp = self._bsm_inputs()
        r = self.risk_free_rate
        q = self.dividend_yield
        n_prime_d1 = norm.pdf(inp.d1)

        term1 = -(
            inp.spot * inp.df_q * n_prime_d1 * inp.volatility / (2 * np.sqrt(inp.time_to_maturity))
        )
        if self.option_type is OptionType.CALL:
            term2 = -r * inp.strike * inp.df_r * norm.cdf(inp.d2)
            term3 = q * inp.spot * inp.df_q * norm.cdf(inp.d1)
            delta = inp.df_q * norm.cdf(inp.d1)
        else:  # PUT
            term2 = r * inp.strike * inp.df_r * norm.cdf(-inp.d2)
            term3 = -q * inp.spot * inp.df_q * norm.cdf(-inp.d1)
            delta = inp.df_q * (norm.cdf(inp.d1) - 1)

        return float(term1 + term2 + term3 - r * self._dividend_pv() * delta)


def dividend_european_value(
    option_type: OptionType | str,
    underlying: float,
    strike: float,
    dividend_yield: float,
    risk_free_rate: float,
    residual_time: float,
    volatility: float,
    dividends: Sequence[float],
    ex_dates: Sequence[float],
) -> float:
    """Closed-form value of a European option with riskless cash dividends."""
    return DividendEuropeanAnalytic.from_arrays(
        OptionType(option_type),
        underlying,
        strike,
        dividend_yield,
        risk_free_rate,
        residual_time,
        volatility,
        dividends,
        ex_dates,
    ).value()
