"""Shared pytest fixtures for dividend_pde tests."""

import pytest

from dividend_pde.valuation import DividendOption, PDEParams

from dividend_pde.tests.helpers import RATE, SPOT, STRIKE, VOL, make_option


# ---------------------------------------------------------------------------
# Scalar constants
# ---------------------------------------------------------------------------


@pytest.fixture()
def spot() -> float:
    return SPOT


@pytest.fixture()
def strike() -> float:
    return STRIKE


@pytest.fixture()
def risk_free_rate() -> float:
    return RATE


@pytest.fixture()
def vol() -> float:
    return VOL


# ---------------------------------------------------------------------------
# Discretisation
# ---------------------------------------------------------------------------


@pytest.fixture()
def coarse_params() -> PDEParams:
    """Small grid for structural tests that do not check accuracy."""
    return PDEParams(time_steps=40, grid_points=41)


@pytest.fixture()
def fine_params() -> PDEParams:
    return PDEParams(time_steps=200, grid_points=201)


# ---------------------------------------------------------------------------
# Instruments
# ---------------------------------------------------------------------------


@pytest.fixture()
def scenario_a_option(coarse_params: PDEParams) -> DividendOption:
    """S=100, one dividend of 5 at t=0.5, K=100, r=5%, vol=20%, T=1."""
    return make_option(dividends=(5.0,), ex_dates=(0.5,), params=coarse_params)
