from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

from stratopt.optimization.results.metrics import PerformanceMetric
from stratopt.optimization.results.result import OptimizationResult
from stratopt.optimization.results.result_set import ranking_key
from stratopt.optimization.search_space.assignment import Assignment
from stratopt.optimization.search_space.space import ParameterSpace


@dataclass
class SearchPass:
    """
    A batch of assignments a strategy wants evaluated before it can plan further.

    ``assignments`` is consumed lazily by the runner; ``size`` is the exact number
    of assignments it yields.
    """
    label: str
    assignments: Iterable[Assignment]
    size: int


class SearchStrategy(ABC):
    """
    Abstract base class for all search strategies.

    The runner drives a strategy pass by pass: it asks for the next pass,
    records every result as it completes, and reports the end of the pass,
    until the strategy is finished or the run is cancelled.

    Strategies that plan from earlier results keep them in ``history``; the
    others set ``keeps_history = False`` and only track the best result.
    """

    name = "search"
    keeps_history = True

    def __init__(self):
        self.space: Optional[ParameterSpace] = None
        self.metric: PerformanceMetric = PerformanceMetric.PF
        self.min_trades: int = 2
        self.history: List[OptimizationResult] = []
        self._best: Optional[OptimizationResult] = None
        self.is_initialized = False

    def initialize(self, space: ParameterSpace, metric: PerformanceMetric, min_trades: int = 2):
        """
        Prepare the strategy for a run over ``space`` ranked by ``metric``.
        """
        self.space = space
        self.metric = PerformanceMetric.from_name(metric)
        self.min_trades = min_trades
        self.history = []
        self._best = None
        self._initialize()
        self.is_initialized = True

    @abstractmethod
    def _initialize(self):
        pass

    @abstractmethod
    def next_pass(self) -> Optional[SearchPass]:
        """
        The next batch of assignments to evaluate, or None when there is nothing left.
        """
        pass

    def record(self, result: OptimizationResult):
        """
        Take note of one completed evaluation.
        """
        if self._best is None or self._best_key(result) < self._best_key(self._best):
            self._best = result
        if self.keeps_history:
            self.history.append(result)

    def end_pass(self, results: List[OptimizationResult]):
        """
        Close the current pass. ``results`` holds its results when ``keeps_history`` is set.
        """
        self._update(results)

    def update_with_results(self, results: List[OptimizationResult]):
        """
        Record the results of the last pass and close it.
        """
        for result in results:
            self.record(result)
        self.end_pass(results)

    @abstractmethod
    def _update(self, results: List[OptimizationResult]):
        pass

    @abstractmethod
    def is_finished(self) -> bool:
        """
        Whether the strategy has evaluated everything it planned to.
        """
        pass

    @abstractmethod
    def get_total_evaluations(self) -> Optional[int]:
        """
        Number of evaluations the whole search will take, when known upfront.
        """
        pass

    def _best_key(self, result: OptimizationResult):
        # Results meeting the minimum trade count rank ahead of all others
        return (result.trade_count < self.min_trades,) + ranking_key(self.metric)(result)

    def get_best_result(self) -> Optional[OptimizationResult]:
        """
        Best result seen so far, preferring results that meet the minimum trade count.
        """
        return self._best

    def get_optimization_history(self) -> List[OptimizationResult]:
        return self.history.copy()
