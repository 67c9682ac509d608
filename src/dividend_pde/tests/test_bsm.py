"""Tests for the closed-form European pricer with riskless cash dividends."""

import numpy as np
import pytest

from dividend_pde.enums import OptionType
from dividend_pde.exceptions import ConfigurationError
from dividend_pde.valuation import DividendEuropeanAnalytic, dividend_european_value


def _analytic(option_type, *, underlying=100.0, residual_time=1.0, dividends=(), ex_dates=()):
    return DividendEuropeanAnalytic.from_arrays(
        option_type, underlying, 100.0, 0.0, 0.05, residual_time, 0.2, dividends, ex_dates
    )


@pytest.mark.parametrize(
    "option_type,expected",
    [(OptionType.CALL, 10.450584), (OptionType.PUT, 5.573526)],
)
def test_no_dividend_textbook_values(option_type, expected):
    assert np.isclose(_analytic(option_type).value(), expected, atol=1e-5)


def test_string_option_type_accepted():
    value = dividend_european_value("call", 100.0, 100.0, 0.0, 0.05, 1.0, 0.2, [], [])
    assert np.isclose(value, 10.450584, atol=1e-5)


def test_dividends_reduce_call_and_raise_put():
    plain_call = _analytic(OptionType.CALL).value()
    plain_put = _analytic(OptionType.PUT).value()
    call = _analytic(OptionType.CALL, dividends=(5.0,), ex_dates=(0.5,)).value()
    put = _analytic(OptionType.PUT, dividends=(5.0,), ex_dates=(0.5,)).value()
    assert call < plain_call
    assert put > plain_put


def test_put_call_parity_with_dividends():
    kwargs = dict(dividends=(2.0, 3.0), ex_dates=(0.3, 0.8))
    call = _analytic(OptionType.CALL, **kwargs).value()
    put = _analytic(OptionType.PUT, **kwargs).value()
    pv_divs = 2.0 * np.exp(-0.05 * 0.3) + 3.0 * np.exp(-0.05 * 0.8)
    assert np.isclose(call - put, 100.0 - pv_divs - 100.0 * np.exp(-0.05), atol=1e-10)


@pytest.mark.parametrize("option_type", [OptionType.CALL, OptionType.PUT])
def test_delta_and_gamma_match_bumps(option_type):
    h = 1e-3
    kwargs = dict(dividends=(5.0,), ex_dates=(0.5,))
    base = _analytic(option_type, **kwargs)
    up = _analytic(option_type, underlying=100.0 + h, **kwargs).value()
    down = _analytic(option_type, underlying=100.0 - h, **kwargs).value()

    assert np.isclose(base.delta(), (up - down) / (2 * h), atol=1e-6)
    assert np.isclose(base.gamma(), (up - 2 * base.value() + down) / h**2, atol=1e-4)


@pytest.mark.parametrize("option_type", [OptionType.CALL, OptionType.PUT])
def test_theta_matches_calendar_time_bump(option_type):
    # moving today forward by h shortens maturity and every ex-date by h
    h = 1e-4
    base = _analytic(option_type, dividends=(5.0,), ex_dates=(0.5,))
    later = _analytic(option_type, residual_time=1.0 - h, dividends=(5.0,), ex_dates=(0.5 - h,))
    earlier = _analytic(option_type, residual_time=1.0 + h, dividends=(5.0,), ex_dates=(0.5 + h,))

    bumped = (later.value() - earlier.value()) / (2 * h)
    assert np.isclose(base.theta(), bumped, rtol=1e-4, atol=1e-6)


def test_schedule_validation_applies():
    with pytest.raises(ConfigurationError):
        _analytic(OptionType.CALL, dividends=(150.0,), ex_dates=(0.5,))
