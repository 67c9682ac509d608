"""Exercise constraints applied to the primary price array after each step.

Each instrument variant supplies a builder that turns the payoff on the
current grid into a :class:`StepCondition`. The orchestrator calls the
builder again after every grid rebuild, since the intrinsic values move
with the grid.
"""

from __future__ import annotations
from typing import Callable, Protocol

import numpy as np

from ..enums import ExerciseType

__all__ = [
    "StepCondition",
    "StepConditionBuilder",
    "AmericanCondition",
    "ShoutCondition",
    "step_condition_builder",
]


class StepCondition(Protocol):
    def apply_to(self, prices: np.ndarray, time: float) -> None: ...


StepConditionBuilder = Callable[[np.ndarray], "StepCondition | None"]


class AmericanCondition:
    """Early exercise: the value never falls below the payoff."""

    def __init__(self, intrinsic: np.ndarray) -> None:
        self.intrinsic = np.asarray(intrinsic, dtype=float)

    def apply_to(self, prices: np.ndarray, time: float) -> None:
        np.maximum(prices, self.intrinsic, out=prices)


class ShoutCondition:
    """Shout: the holder may lock in the payoff, received at maturity."""

    def __init__(self, intrinsic: np.ndarray, residual_time: float, risk_free_rate: float) -> None:
        self.intrinsic = np.asarray(intrinsic, dtype=float)
        self.residual_time = float(residual_time)
        self.risk_free_rate = float(risk_free_rate)

    def apply_to(self, prices: np.ndarray, time: float) -> None:
        discount = np.exp(-self.risk_free_rate * (self.residual_time - time))
        np.maximum(prices, discount * self.intrinsic, out=prices)


def step_condition_builder(
    exercise_type: ExerciseType,
    *,
    residual_time: float,
    risk_free_rate: float,
) -> StepConditionBuilder:
    """Builder for ``exercise_type``; European exercise yields no condition."""
    if exercise_type is ExerciseType.AMERICAN:
        return AmericanCondition
    if exercise_type is ExerciseType.SHOUT:

        def build_shout(intrinsic: np.ndarray) -> ShoutCondition:
            return ShoutCondition(intrinsic, residual_time, risk_free_rate)

        return build_shout

    def build_european(intrinsic: np.ndarray) -> None:
        return None

    return build_european
