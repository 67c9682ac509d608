"""Finite difference valuation of options on a spot paying cash dividends.

The modelled reference level at maturity is the spot net of every future
dividend. Marching backward, each ex-dividend date reinstates its dividend:
the grid is shifted, rebuilt around the new centre, and both the primary and
the control price arrays are remapped onto it before the exercise condition
is re-applied to the primary array. The control variate then removes the
discretisation bias common to both arrays.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence

import logging
import math

import numpy as np

from ..dividends import DividendEvent, DividendSchedule
from ..enums import ExerciseType, OptionType, OrchestratorState
from ..exceptions import ConfigurationError, ValidationError
from ..utils import (
    coerce_float,
    first_derivative_at_center,
    log_timing,
    second_derivative_at_center,
    value_at_center,
)
from .bsm import DividendEuropeanAnalytic
from .control_variate import ControlVariateCoordinator
from .fd_engine import FiniteDifferenceEngine
from .grid_manager import CenterAndBounds, GridManager
from .params import PDEParams
from .price_transfer import transfer_prices
from .step_conditions import StepCondition, StepConditionBuilder, step_condition_builder

__all__ = [
    "DividendEventRecord",
    "OrchestratorResult",
    "StepOrchestrator",
    "DividendOptionResult",
    "DividendOption",
]


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DividendEventRecord:
    """What happened to the grid at one ex-dividend date."""

    schedule_index: int
    visit_index: int
    time: float
    amount: float
    bounds: CenterAndBounds
    rebuilt: bool
    grid_size: int


@dataclass(frozen=True, slots=True)
class OrchestratorResult:
    """Slices at today plus one step further back, for the time derivative."""

    grid: np.ndarray
    prices: np.ndarray
    control_prices: np.ndarray
    lagged_prices: np.ndarray
    lagged_control_prices: np.ndarray
    theta_step: float
    bounds: CenterAndBounds
    history: tuple[DividendEventRecord, ...]


class StepOrchestrator:
    """Backward sweep from maturity through every ex-dividend date.

    ``run`` walks the states AT_MATURITY -> (BETWEEN_EVENTS <->
    AT_DIVIDEND_EVENT) -> DONE. An orchestrator performs one valuation only.
    """

    def __init__(
        self,
        *,
        engine: FiniteDifferenceEngine,
        grid_manager: GridManager,
        control: ControlVariateCoordinator,
        schedule: DividendSchedule,
        step_condition_builder: StepConditionBuilder,
        residual_time: float,
        time_steps: int,
        rannacher_steps: int = 0,
    ) -> None:
        self.engine = engine
        self.grid_manager = grid_manager
        self.control = control
        self.schedule = schedule
        self.step_condition_builder = step_condition_builder
        self.residual_time = float(residual_time)
        self.time_steps = int(time_steps)
        self.rannacher_steps = int(rannacher_steps)

        self.state = OrchestratorState.AT_MATURITY
        self.prices: np.ndarray | None = None
        self.step_condition: StepCondition | None = None
        self.history: list[DividendEventRecord] = []

    def _period_steps(self, length: float) -> int:
        if length <= 0.0:
            return 0
        return max(1, int(round(self.time_steps * length / self.residual_time)))

    def _initialize_at_maturity(self) -> None:
        bounds = self.grid_manager.set_grid_limits(
            self.schedule.net_underlying(), self.residual_time
        )
        self.engine.initialize_grid(bounds)
        initial_prices = self.engine.initialize_initial_condition()
        self.engine.initialize_operator()
        self.engine.initialize_model()
        self.step_condition = self.step_condition_builder(initial_prices)
        self.prices = initial_prices.copy()
        self.control.initialize(initial_prices)

    def _rollback(self, from_time: float, to_time: float, smoothing_steps: int) -> None:
        steps = self._period_steps(from_time - to_time)
        self.prices = self.engine.rollback(
            self.prices,
            from_time,
            to_time,
            steps,
            self.step_condition,
            smoothing_steps=smoothing_steps,
        )
        self.control.rollback(
            self.engine, from_time, to_time, steps, smoothing_steps=smoothing_steps
        )

    def _execute_dividend_event(self, visit_index: int, event: DividendEvent) -> None:
        engine = self.engine
        # the values now sit on a grid shifted up by the reinstated dividend
        old_grid = engine.grid + event.amount

        previous = self.grid_manager.bounds
        bounds = self.grid_manager.on_dividend_event(
            previous.center, event.amount, time_delay=event.time
        )
        rebuilt = self.grid_manager.bounds_changed(previous, bounds)
        if rebuilt:
            engine.initialize_grid(bounds)
            engine.initialize_initial_condition()
        new_grid = engine.grid

        self.prices = transfer_prices(self.prices, old_grid, new_grid)
        self.control.transfer(old_grid, new_grid)

        engine.initialize_operator()
        engine.initialize_model()
        self.step_condition = self.step_condition_builder(engine.initial_prices)
        if self.step_condition is not None:
            self.step_condition.apply_to(self.prices, event.time)

        record = DividendEventRecord(
            schedule_index=len(self.schedule) - 1 - visit_index,
            visit_index=visit_index,
            time=event.time,
            amount=event.amount,
            bounds=bounds,
            rebuilt=rebuilt,
            grid_size=int(new_grid.size),
        )
        self.history.append(record)
        logger.debug(
            "Dividend event %d (visit %d) t=%.6g amount=%.6g center=%.6g s_min=%.6g "
            "s_max=%.6g rebuilt=%s",
            record.schedule_index,
            visit_index,
            event.time,
            event.amount,
            bounds.center,
            bounds.s_min,
            bounds.s_max,
            rebuilt,
        )

    def run(self) -> OrchestratorResult:
        if self.state is not OrchestratorState.AT_MATURITY:
            raise ValidationError("orchestrator has already run; build a new one per valuation")
        self._initialize_at_maturity()

        smoothing_steps = self.rannacher_steps
        t_prev = self.residual_time
        for visit_index, event in enumerate(self.schedule.backward()):
            self._rollback(t_prev, event.time, smoothing_steps)
            smoothing_steps = 0
            self.state = OrchestratorState.AT_DIVIDEND_EVENT
            self._execute_dividend_event(visit_index, event)
            self.state = OrchestratorState.BETWEEN_EVENTS
            t_prev = event.time

        self._rollback(t_prev, 0.0, smoothing_steps)

        # one more step on the same grid, with today's exercise condition
        theta_step = self.residual_time / self.time_steps
        lagged_prices = self.engine.rollback(
            self.prices, 0.0, -theta_step, 1, self.step_condition
        )
        lagged_control_prices = self.engine.rollback(self.control.prices, 0.0, -theta_step, 1)
        self.state = OrchestratorState.DONE

        return OrchestratorResult(
            grid=self.engine.grid.copy(),
            prices=self.prices.copy(),
            control_prices=self.control.prices.copy(),
            lagged_prices=lagged_prices,
            lagged_control_prices=lagged_control_prices,
            theta_step=theta_step,
            bounds=self.grid_manager.bounds,
            history=tuple(self.history),
        )


@dataclass(frozen=True, slots=True)
class DividendOptionResult:
    """Control-variate corrected value and Greeks at today's spot.

    ``theta`` is annualised and measured in calendar time (dV/dt).
    """

    value: float
    delta: float
    gamma: float
    theta: float
    analytic_control_value: float
    grid: np.ndarray = field(repr=False)
    prices: np.ndarray = field(repr=False)
    control_prices: np.ndarray = field(repr=False)
    history: tuple[DividendEventRecord, ...] = field(repr=False)


def _coerce_enum(enum_cls, value, name: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a {enum_cls.__name__}, got {value!r}") from exc


class DividendOption:
    """Option on a spot paying discrete cash dividends, priced by finite differences.

    Parameters
    ----------
    option_type
        CALL or PUT.
    underlying
        Spot including every dividend paid before maturity.
    strike
        Strike price.
    dividend_yield
        Continuous dividend yield on top of the cash dividends.
    risk_free_rate
        Continuously compounded risk-free rate.
    residual_time
        Time to maturity in years.
    volatility
        Annualised volatility.
    dividends, ex_dates
        Cash amounts and their ex-dividend times (years from today).
    exercise_type
        EUROPEAN, AMERICAN or SHOUT. Only the primary array sees the exercise
        condition; the control array always follows the European solution.
    params
        Discretisation settings, :class:`PDEParams` defaults when omitted.
    """

    def __init__(
        self,
        option_type: OptionType | str,
        underlying: float,
        strike: float,
        dividend_yield: float,
        risk_free_rate: float,
        residual_time: float,
        volatility: float,
        dividends: Sequence[float],
        ex_dates: Sequence[float],
        *,
        exercise_type: ExerciseType | str = ExerciseType.AMERICAN,
        params: PDEParams | None = None,
    ) -> None:
        self.option_type = _coerce_enum(OptionType, option_type, "option_type")
        self.exercise_type = _coerce_enum(ExerciseType, exercise_type, "exercise_type")
        if params is None:
            params = PDEParams()
        if not isinstance(params, PDEParams):
            raise ConfigurationError(f"params must be PDEParams, got {type(params).__name__}")
        self.params = params

        inputs = {
            name: coerce_float(value, name)
            for name, value in (
                ("underlying", underlying),
                ("strike", strike),
                ("dividend_yield", dividend_yield),
                ("risk_free_rate", risk_free_rate),
                ("residual_time", residual_time),
                ("volatility", volatility),
            )
        }
        for name in ("underlying", "strike", "residual_time", "volatility"):
            value = inputs[name]
            if not math.isfinite(value) or value <= 0.0:
                raise ConfigurationError(f"{name} must be positive, got {value}", **{name: value})
        for name in ("dividend_yield", "risk_free_rate"):
            value = inputs[name]
            if not math.isfinite(value):
                raise ConfigurationError(f"{name} must be finite, got {value}", **{name: value})

        self.underlying = inputs["underlying"]
        self.strike = inputs["strike"]
        self.dividend_yield = inputs["dividend_yield"]
        self.risk_free_rate = inputs["risk_free_rate"]
        self.residual_time = inputs["residual_time"]
        self.volatility = inputs["volatility"]
        self.schedule = DividendSchedule(
            dividends=dividends,
            ex_dates=ex_dates,
            underlying=self.underlying,
            residual_time=self.residual_time,
        )
        self._result: DividendOptionResult | None = None

    def analytic_control(self) -> DividendEuropeanAnalytic:
        """European option with the dividends reinstated into the spot."""
        return DividendEuropeanAnalytic(
            option_type=self.option_type,
            underlying=self.underlying,
            strike=self.strike,
            dividend_yield=self.dividend_yield,
            risk_free_rate=self.risk_free_rate,
            residual_time=self.residual_time,
            volatility=self.volatility,
            schedule=self.schedule,
        )

    def _orchestrator(self, control: ControlVariateCoordinator) -> StepOrchestrator:
        params = self.params
        engine = FiniteDifferenceEngine(
            option_type=self.option_type,
            strike=self.strike,
            dividend_yield=self.dividend_yield,
            risk_free_rate=self.risk_free_rate,
            volatility=self.volatility,
            residual_time=self.residual_time,
            grid_points=params.grid_points,
            method=params.method,
        )
        return StepOrchestrator(
            engine=engine,
            grid_manager=GridManager(strike=self.strike, volatility=self.volatility),
            control=control,
            schedule=self.schedule,
            step_condition_builder=step_condition_builder(
                self.exercise_type,
                residual_time=self.residual_time,
                risk_free_rate=self.risk_free_rate,
            ),
            residual_time=self.residual_time,
            time_steps=params.time_steps,
            rannacher_steps=params.rannacher_steps,
        )

    @staticmethod
    def _calendar_theta(prices: np.ndarray, lagged_prices: np.ndarray, step: float) -> float:
        """dV/dt from today's slice and the slice one step further from maturity."""
        return (value_at_center(prices) - value_at_center(lagged_prices)) / step

    def _calculate(self) -> DividendOptionResult:
        logger.debug(
            "PDE dividend option type=%s exercise=%s method=%s grid_points=%d time_steps=%d "
            "dividends=%d",
            self.option_type.value,
            self.exercise_type.value,
            self.params.method.value,
            self.params.grid_points,
            self.params.time_steps,
            len(self.schedule),
        )
        analytic = self.analytic_control()
        control = ControlVariateCoordinator(analytic)
        out = self._orchestrator(control).run()

        grid = out.grid
        primary_value = value_at_center(out.prices)
        control_value = value_at_center(out.control_prices)
        primary_delta = first_derivative_at_center(out.prices, grid)
        control_delta = first_derivative_at_center(out.control_prices, grid)
        primary_gamma = second_derivative_at_center(out.prices, grid)
        control_gamma = second_derivative_at_center(out.control_prices, grid)
        primary_theta = self._calendar_theta(out.prices, out.lagged_prices, out.theta_step)
        control_theta = self._calendar_theta(
            out.control_prices, out.lagged_control_prices, out.theta_step
        )

        return DividendOptionResult(
            value=control.correct(primary_value, control_value),
            delta=control.correct(primary_delta, control_delta, analytic.delta()),
            gamma=control.correct(primary_gamma, control_gamma, analytic.gamma()),
            theta=control.correct(primary_theta, control_theta, analytic.theta()),
            analytic_control_value=control.analytic_value,
            grid=grid,
            prices=out.prices,
            control_prices=out.control_prices,
            history=out.history,
        )

    def solve(self) -> DividendOptionResult:
        """Run the valuation once and cache the result."""
        if self._result is None:
            with log_timing(logger, "PDE dividend option solve", self.params.log_timings):
                self._result = self._calculate()
        return self._result

    def present_value(self) -> float:
        return self.solve().value

    def delta(self) -> float:
        return self.solve().delta

    def gamma(self) -> float:
        return self.solve().gamma

    def theta(self) -> float:
        return self.solve().theta
