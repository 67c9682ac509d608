"""Parameter class for finite-difference dividend option valuation.

The parameters explicitly document the discretisation choices; market and
contract inputs live on :class:`~dividend_pde.valuation.DividendOption`.
"""

from dataclasses import dataclass

from ..enums import PDEMethod
from ..exceptions import ConfigurationError


@dataclass(frozen=True, slots=True)
class PDEParams:
    """Parameters for PDE finite difference option valuation.

    Attributes:
        time_steps: Total number of time steps between today and maturity.
                    Steps are spread over the periods between ex-dividend
                    dates in proportion to their length. Default: 200.
        grid_points: Number of nodes in the log-uniform price grid. Raised to
                     a safe minimum for long maturities. An odd count puts a
                     node exactly on the centre. Default: 201.
        method: Time-stepping scheme for the FD solver.
        rannacher_steps: Number of initial Crank-Nicolson steps replaced by
                         two implicit half-steps each to damp the payoff kink.
                         Ignored for the implicit scheme. Default: 2.
        log_timings: Log the wall time of each valuation at DEBUG level.
    """

    time_steps: int = 200
    grid_points: int = 201
    method: PDEMethod | str = PDEMethod.CRANK_NICOLSON
    rannacher_steps: int = 2
    log_timings: bool = False

    def __post_init__(self):
        if isinstance(self.method, str):
            try:
                object.__setattr__(self, "method", PDEMethod(self.method))
            except ValueError as exc:
                raise ConfigurationError(f"unknown PDE method {self.method!r}") from exc
        if self.time_steps < 1:
            raise ConfigurationError(
                f"time_steps must be >= 1, got {self.time_steps}", time_steps=self.time_steps
            )
        if self.grid_points < 1:
            raise ConfigurationError(
                f"grid_points must be >= 1, got {self.grid_points}",
                grid_points=self.grid_points,
            )
        if self.rannacher_steps < 0:
            raise ConfigurationError(
                f"rannacher_steps must be >= 0, got {self.rannacher_steps}",
                rannacher_steps=self.rannacher_steps,
            )
        if not isinstance(self.method, PDEMethod):
            raise ConfigurationError(f"method must be a PDEMethod, got {self.method}")
