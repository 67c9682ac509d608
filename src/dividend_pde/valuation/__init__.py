"""Finite difference valuation of options on spots paying cash dividends.

Public API
----------
Instrument:
    DividendOption: Dividend-adjusted FD pricer with control-variate correction
    DividendOptionResult: Corrected value and Greeks with the final grid state

Engine components:
    StepOrchestrator: Backward sweep through the ex-dividend dates
    GridManager, CenterAndBounds: Grid support across dividend events
    transfer_prices: Log-domain spline remap between grids
    ControlVariateCoordinator: Numerical control array and its analytic anchor
    FiniteDifferenceEngine: Grid, operator and time-marching model

Step conditions:
    AmericanCondition, ShoutCondition, step_condition_builder

Analytic pricing:
    DividendEuropeanAnalytic, dividend_european_value

Parameter classes:
    PDEParams: Configuration for the finite difference scheme
"""

from .bsm import DividendEuropeanAnalytic, dividend_european_value
from .control_variate import ControlVariateCoordinator
from .dividend_option import (
    DividendEventRecord,
    DividendOption,
    DividendOptionResult,
    OrchestratorResult,
    StepOrchestrator,
)
from .fd_engine import FiniteDifferenceEngine
from .grid_manager import CenterAndBounds, GridManager
from .params import PDEParams
from .price_transfer import transfer_prices
from .step_conditions import AmericanCondition, ShoutCondition, step_condition_builder

__all__ = [
    # Instrument
    "DividendOption",
    "DividendOptionResult",
    # Engine components
    "StepOrchestrator",
    "OrchestratorResult",
    "DividendEventRecord",
    "GridManager",
    "CenterAndBounds",
    "transfer_prices",
    "ControlVariateCoordinator",
    "FiniteDifferenceEngine",
    # Step conditions
    "AmericanCondition",
    "ShoutCondition",
    "step_condition_builder",
    # Analytic pricing
    "DividendEuropeanAnalytic",
    "dividend_european_value",
    # Parameter classes
    "PDEParams",
]
