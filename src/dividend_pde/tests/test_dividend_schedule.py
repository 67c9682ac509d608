"""Tests for DividendSchedule validation and queries."""

import numpy as np
import pytest

from dividend_pde.dividends import DividendEvent, DividendSchedule
from dividend_pde.exceptions import ConfigurationError


def test_count_mismatch_carries_counts():
    with pytest.raises(ConfigurationError) as excinfo:
        DividendSchedule(dividends=(1.0, 2.0), ex_dates=(0.25, 0.5, 0.75), underlying=100.0)
    assert excinfo.value.details == {"dividends": 2, "dates": 3}


@pytest.mark.parametrize("dividends", [(150.0,), (100.0,), (60.0, 40.0)])
def test_dividends_must_stay_below_underlying(dividends):
    ex_dates = tuple(0.1 * (i + 1) for i in range(len(dividends)))
    with pytest.raises(ConfigurationError) as excinfo:
        DividendSchedule(dividends=dividends, ex_dates=ex_dates, underlying=100.0)
    assert excinfo.value.details["dividends"] == pytest.approx(sum(dividends))
    assert excinfo.value.details["underlying"] == 100.0


@pytest.mark.parametrize(
    "dividends,ex_dates",
    [
        ((-1.0,), (0.5,)),  # negative amount
        ((0.0,), (0.5,)),  # zero amount
        ((1.0,), (-0.1,)),  # negative time
        ((1.0, 1.0), (0.5, 0.5)),  # repeated date
        ((1.0, 1.0), (0.6, 0.3)),  # descending dates
        ((1.0,), (float("nan"),)),
    ],
)
def test_invalid_events_rejected(dividends, ex_dates):
    with pytest.raises(ConfigurationError):
        DividendSchedule(dividends=dividends, ex_dates=ex_dates, underlying=100.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"dividends": ("one",), "ex_dates": (0.5,), "underlying": 100.0},
        {"dividends": (1.0,), "ex_dates": (None,), "underlying": 100.0},
        {"dividends": (1.0,), "ex_dates": (0.5,), "underlying": "spot"},
        {"dividends": 1.0, "ex_dates": 0.5, "underlying": 100.0},
        {"dividends": (1.0,), "ex_dates": (0.5,), "underlying": 100.0, "residual_time": "1y"},
    ],
)
def test_non_numeric_inputs_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        DividendSchedule(**kwargs)


def test_numeric_strings_coerced():
    schedule = DividendSchedule(dividends=("1.5",), ex_dates=("0.5",), underlying="100")
    assert schedule.dividends == (1.5,)
    assert schedule.underlying == 100.0
    with pytest.raises(ConfigurationError):
        DividendEvent(time="soon", amount=1.0)


def test_ex_date_must_precede_maturity():
    with pytest.raises(ConfigurationError):
        DividendSchedule(dividends=(1.0,), ex_dates=(1.0,), underlying=100.0, residual_time=1.0)


def test_valid_schedule_queries():
    schedule = DividendSchedule(
        dividends=[2.0, 3.0, 1.5], ex_dates=[0.25, 0.5, 0.75], underlying=100.0
    )

    assert len(schedule) == 3
    assert [e.time for e in schedule] == [0.25, 0.5, 0.75]
    assert [e.amount for e in schedule.backward()] == [1.5, 3.0, 2.0]
    assert schedule.total() == pytest.approx(6.5)
    np.testing.assert_allclose(schedule.cumulative(), [2.0, 5.0, 6.5])
    assert schedule.net_underlying() == pytest.approx(93.5)
    assert schedule.total() < schedule.underlying


def test_riskless_value_discounts_each_dividend():
    schedule = DividendSchedule(dividends=(2.0, 3.0), ex_dates=(0.25, 0.75), underlying=50.0)
    expected = 2.0 * np.exp(-0.05 * 0.25) + 3.0 * np.exp(-0.05 * 0.75)
    assert np.isclose(schedule.riskless_value(0.05), expected)


def test_empty_schedule_is_valid():
    schedule = DividendSchedule(dividends=(), ex_dates=(), underlying=100.0)
    assert len(schedule) == 0
    assert schedule.backward() == ()
    assert schedule.net_underlying() == 100.0
    assert schedule.riskless_value(0.05) == 0.0


def test_from_events_round_trips_fields():
    events = [DividendEvent(0.2, 1.0), DividendEvent(0.7, 2.0)]
    schedule = DividendSchedule.from_events(events, underlying=80.0, residual_time=1.0)
    assert schedule.events == tuple(events)
    assert schedule.ex_dates == (0.2, 0.7)
