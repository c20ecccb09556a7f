"""
Optimization module for strategy parameter search.

This module provides the search engine that sits above the backtester: it
enumerates or prunes the parameter space, evaluates combinations concurrently,
and ranks the results.
"""

from .algorithms import DivideAndConquerSearch, ExhaustiveSearch, SearchStrategy
from .cancellation import CancellationToken
from .evaluator import BacktestEvaluator, FunctionEvaluator
from .exceptions import (
    EvaluationError,
    InvalidConfigurationError,
    InvalidParameterError,
    OptimizationError,
    RunnerBusyError,
)
from .orchestrator import OptimizationOutcome, OptimizationRunner, RunState
from .results import OptimizationResult, PerformanceMetric, PerformanceMetrics, ResultSet, metrics_from_trades
from .search_space import Assignment, CombinationEnumerator, Parameter, ParameterSpace

__all__ = [
    'OptimizationRunner',
    'OptimizationOutcome',
    'RunState',
    'SearchStrategy',
    'ExhaustiveSearch',
    'DivideAndConquerSearch',
    'CancellationToken',
    'BacktestEvaluator',
    'FunctionEvaluator',
    'OptimizationError',
    'InvalidConfigurationError',
    'InvalidParameterError',
    'EvaluationError',
    'RunnerBusyError',
    'OptimizationResult',
    'PerformanceMetric',
    'PerformanceMetrics',
    'ResultSet',
    'metrics_from_trades',
    'Assignment',
    'CombinationEnumerator',
    'Parameter',
    'ParameterSpace',
]
