from .dividends import DividendEvent, DividendSchedule
from .enums import ExerciseType, OptionType, PDEMethod
from .exceptions import (
    ConfigurationError,
    DegenerateGridError,
    DividendPDEError,
    ValidationError,
)
from .valuation import DividendOption, PDEParams, dividend_european_value


__all__ = [
    "DividendEvent",
    "DividendSchedule",
    "ExerciseType",
    "OptionType",
    "PDEMethod",
    "ConfigurationError",
    "DegenerateGridError",
    "DividendPDEError",
    "ValidationError",
    "DividendOption",
    "PDEParams",
    "dividend_european_value",
]
