import abc
from typing import Any, Callable, Mapping, Optional, Union

from stratopt.optimization.results.metrics import PerformanceMetrics
from stratopt.optimization.search_space.assignment import Assignment


class BacktestEvaluator(abc.ABC):
    """
    Turns one parameter assignment plus a historical data window into performance numbers.

    Implementations wrap the backtest engine. They must be pure with respect to a
    run: the same assignment, data source and date range always give the same
    metrics, and evaluations must not share mutable trading state, because the
    runner calls ``evaluate`` concurrently from several worker threads.
    """

    @abc.abstractmethod
    def evaluate(self, assignment: Assignment, data_source: Any, date_range: Optional[Any]) -> PerformanceMetrics:
        """
        Run one backtest.

        Args:
            assignment (Assignment): Parameter values to backtest with.
            data_source (HistoricalDataSource): Read-only historical data handle shared by all workers.
            date_range (DateRange, optional): Window to replay, or None to use all data.

        Returns:
            PerformanceMetrics: Trade statistics of the backtest.

        Raises:
            EvaluationError: Or any other exception, when the backtest cannot be completed.
        """
        pass


class FunctionEvaluator(BacktestEvaluator):
    """Adapts a plain ``func(assignment, data_source, date_range)`` callable."""

    def __init__(self, func: Callable[..., Union[PerformanceMetrics, Mapping[str, Any]]]):
        self.func = func

    def evaluate(self, assignment, data_source, date_range) -> PerformanceMetrics:
        return coerce_metrics(self.func(assignment, data_source, date_range))


def coerce_metrics(value: Union[PerformanceMetrics, Mapping[str, Any]]) -> PerformanceMetrics:
    """Accept either a PerformanceMetrics instance or a mapping of its fields."""
    if isinstance(value, PerformanceMetrics):
        return value
    if isinstance(value, Mapping):
        return PerformanceMetrics(**value)
    raise TypeError(f"Evaluator returned {type(value).__name__}, expected PerformanceMetrics or a mapping")
