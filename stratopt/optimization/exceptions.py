"""
Exceptions raised by the optimization engine.

Cancellation is not represented here: a cancelled run is a normal terminal
state (see ``RunState.CANCELLED``) carrying its partial results.
"""

from typing import Any, Optional


class OptimizationError(Exception):
    """Base exception for all optimization errors."""

    pass


class InvalidConfigurationError(OptimizationError):
    """Raised when a run request, config or parameter space is invalid.

    Always raised before any evaluation starts. ``field`` names the offending
    input so a caller can point the user at it.
    """

    def __init__(self, field: str, details: str = "") -> None:
        self.field = field
        self.details = details
        message = f"Invalid configuration for '{field}'"
        if details:
            message += f": {details}"
        super().__init__(message)


class InvalidParameterError(InvalidConfigurationError):
    """Raised when a parameter's bounds, step or default are invalid."""

    def __init__(self, param_name: str, reason: str = "", attribute: Optional[str] = None) -> None:
        self.param_name = param_name
        self.attribute = attribute
        field = f"{param_name}.{attribute}" if attribute else param_name
        super().__init__(field, reason)


class EvaluationError(OptimizationError):
    """Raised when a backtest evaluation fails; aborts the whole run."""

    def __init__(self, assignment: Any = None, reason: str = "") -> None:
        self.assignment = assignment
        self.reason = reason
        message = "Backtest evaluation failed"
        if assignment is not None:
            message += f" for {dict(assignment)}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RunnerBusyError(OptimizationError):
    """Raised when a run is requested while another one is still running."""

    pass
