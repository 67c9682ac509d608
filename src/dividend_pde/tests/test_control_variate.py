"""Tests for the control variate correction."""

import logging

import numpy as np
import pytest

from dividend_pde.enums import ExerciseType, OptionType
from dividend_pde.exceptions import ValidationError
from dividend_pde.utils import value_at_center
from dividend_pde.valuation import ControlVariateCoordinator, DividendEuropeanAnalytic, PDEParams

from dividend_pde.tests.helpers import make_option


def _reference() -> DividendEuropeanAnalytic:
    return DividendEuropeanAnalytic.from_arrays(
        OptionType.PUT, 100.0, 100.0, 0.0, 0.05, 1.0, 0.2, [5.0], [0.5]
    )


def test_correct_combines_three_terms(caplog):
    coordinator = ControlVariateCoordinator(_reference())
    with caplog.at_level(logging.DEBUG, logger="dividend_pde.valuation.control_variate"):
        assert coordinator.correct(1.0, 0.8, 0.9) == pytest.approx(1.1)
    assert any("Control variate" in r.getMessage() for r in caplog.records)


def test_correct_defaults_to_reference_value():
    reference = _reference()
    coordinator = ControlVariateCoordinator(reference)
    assert coordinator.analytic_value == reference.value()
    assert coordinator.correct(2.0, 2.0) == pytest.approx(reference.value())


def test_prices_required_before_use():
    coordinator = ControlVariateCoordinator(_reference())
    with pytest.raises(ValidationError):
        coordinator.transfer(np.arange(1.0, 5.0), np.arange(1.0, 5.0))


def test_initialize_copies_initial_condition():
    coordinator = ControlVariateCoordinator(_reference())
    initial = np.array([3.0, 2.0, 1.0])
    prices = coordinator.initialize(initial)
    prices[0] = 99.0
    assert initial[0] == 3.0


@pytest.mark.parametrize("option_type", [OptionType.CALL, OptionType.PUT])
def test_zero_dividend_european_cancels_exactly(option_type, fine_params):
    option = make_option(
        option_type=option_type, exercise_type=ExerciseType.EUROPEAN, params=fine_params
    )
    result = option.solve()

    # without dividends or exercise, primary and control follow identical operations
    np.testing.assert_array_equal(result.prices, result.control_prices)
    primary = value_at_center(result.prices)
    control = value_at_center(result.control_prices)
    assert abs(primary - control) < 1e-6
    assert np.isclose(result.value, result.analytic_control_value, atol=1e-12)
    # the uncorrected PDE price is close to, but not exactly, the analytic one
    assert np.isclose(primary, result.analytic_control_value, atol=0.05)


def test_control_never_receives_exercise_condition():
    params = PDEParams(time_steps=60, grid_points=61)
    american = make_option(dividends=(5.0,), ex_dates=(0.5,), params=params).solve()
    european = make_option(
        exercise_type=ExerciseType.EUROPEAN, dividends=(5.0,), ex_dates=(0.5,), params=params
    ).solve()

    np.testing.assert_array_equal(american.control_prices, european.control_prices)
    np.testing.assert_array_equal(european.prices, european.control_prices)
    assert np.any(american.prices > american.control_prices + 1e-6)
