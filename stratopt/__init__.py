"""
Strategy parameter optimizer.

Searches a discrete space of trading-strategy parameters for the combinations
that maximise a performance metric, evaluating each combination with a
backtest over historical data.
"""

# Import order matters: the optimization package pulls in the configs
from stratopt.optimization import (
    OptimizationRunner,
    OptimizationOutcome,
    Parameter,
    ParameterSpace,
    PerformanceMetric,
    PerformanceMetrics,
    RunState,
)
from stratopt.configs.optimization.orchestrator import DivideAndConquerConfig, OptimizationConfig
from stratopt.configs.optimization.run_request import DateRange, RunRequest, SearchMethod

__all__ = [
    'OptimizationRunner',
    'OptimizationOutcome',
    'OptimizationConfig',
    'DivideAndConquerConfig',
    'Parameter',
    'ParameterSpace',
    'PerformanceMetric',
    'PerformanceMetrics',
    'RunRequest',
    'DateRange',
    'SearchMethod',
    'RunState',
]
__version__ = "1.0.0"
