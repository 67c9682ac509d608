import numpy as np
from scipy.stats import norm

from dividend_pde.enums import ExerciseType, OptionType
from dividend_pde.valuation import DividendOption, PDEParams

SPOT = 100.0
STRIKE = 100.0
RATE = 0.05
DIVIDEND_YIELD = 0.0
VOL = 0.20
RESIDUAL_TIME = 1.0


def make_option(
    *,
    option_type: OptionType = OptionType.PUT,
    exercise_type: ExerciseType = ExerciseType.AMERICAN,
    underlying: float = SPOT,
    strike: float = STRIKE,
    dividends: tuple[float, ...] = (),
    ex_dates: tuple[float, ...] = (),
    params: PDEParams | None = None,
) -> DividendOption:
    return DividendOption(
        option_type,
        underlying,
        strike,
        DIVIDEND_YIELD,
        RATE,
        RESIDUAL_TIME,
        VOL,
        dividends,
        ex_dates,
        exercise_type=exercise_type,
        params=params,
    )


def _bs_call(spot: np.ndarray, strike: float, rate: float, vol: float, tau: float) -> np.ndarray:
    vol_sqrt = vol * np.sqrt(tau)
    d1 = (np.log(spot / strike) + (rate + 0.5 * vol**2) * tau) / vol_sqrt
    d2 = d1 - vol_sqrt
    return spot * norm.cdf(d1) - strike * np.exp(-rate * tau) * norm.cdf(d2)


def american_call_one_dividend(
    spot: float,
    strike: float,
    rate: float,
    vol: float,
    residual_time: float,
    *,
    dividend: float,
    ex_date: float,
    exercise: bool = True,
    nodes: int = 16001,
) -> float:
    """Call on a spot that drops by ``dividend`` at ``ex_date``, by quadrature.

    With a single dividend the only possible early exercise is just before the
    drop, so the value is the discounted expectation at ``ex_date`` of
    ``max(S - K, BS call on S - D)``. ``exercise=False`` gives the European value.
    """
    z = np.linspace(-8.0, 8.0, nodes)
    s_ex = spot * np.exp((rate - 0.5 * vol**2) * ex_date + vol * np.sqrt(ex_date) * z)
    held = _bs_call(s_ex - dividend, strike, rate, vol, residual_time - ex_date)
    payoff = np.maximum(s_ex - strike, held) if exercise else held
    dz = z[1] - z[0]
    return float(np.exp(-rate * ex_date) * np.sum(payoff * norm.pdf(z)) * dz)
