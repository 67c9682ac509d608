"""Enums for dividend option valuation."""

from enum import Enum

__all__ = [
    "OptionType",
    "ExerciseType",
    "PDEMethod",
    "OrchestratorState",
]


class OptionType(Enum):
    CALL = "call"
    PUT = "put"


class ExerciseType(Enum):
    EUROPEAN = "european"
    AMERICAN = "american"
    SHOUT = "shout"


class PDEMethod(Enum):
    IMPLICIT = "implicit"
    CRANK_NICOLSON = "crank_nicolson"


class OrchestratorState(Enum):
    AT_MATURITY = "at_maturity"
    BETWEEN_EVENTS = "between_events"
    AT_DIVIDEND_EVENT = "at_dividend_event"
    DONE = "done"
