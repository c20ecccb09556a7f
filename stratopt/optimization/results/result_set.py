"""
Thread-safe collection of optimization results with ranking and filtering views.
"""

import math
import threading
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

import pandas as pd

from .metrics import PerformanceMetric, PerformanceMetrics
from .result import OptimizationResult


def ranking_key(metric: PerformanceMetric):
    """
    Sort key ranking results descending on ``metric``.

    Ties are broken by ascending assignment ordinal, i.e. by the enumeration
    order of the space, so earlier-declared parameter values win. NaN values rank last.
    """
    metric = PerformanceMetric.from_name(metric)

    def key(result: OptimizationResult):
        value = result.value(metric)
        is_nan = math.isnan(value)
        return (is_nan, 0.0 if is_nan else -value, result.assignment.ordinal)

    return key


class ResultSet:
    """
    Ordered collection of OptimizationResult.

    Append-only while a run is in progress; all appends go through one lock so
    readers on other threads only ever see a growing list. ``freeze()`` ends the
    append phase. Sorting and filtering return new frozen ResultSets that share
    the (immutable) result objects.
    """

    def __init__(self, results: Iterable[OptimizationResult] = (), parameter_names: Optional[Sequence[str]] = None):
        self._lock = threading.Lock()
        self._results: List[OptimizationResult] = list(results)
        self._frozen = False
        self.parameter_names = list(parameter_names) if parameter_names is not None else None

    def append(self, result: OptimizationResult) -> None:
        with self._lock:
            if self._frozen:
                raise RuntimeError("Cannot append to a frozen ResultSet")
            self._results.append(result)

    def freeze(self) -> "ResultSet":
        with self._lock:
            self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def snapshot(self) -> List[OptimizationResult]:
        """Copy of the results accumulated so far, in insertion order."""
        with self._lock:
            return list(self._results)

    def _derive(self, results: Iterable[OptimizationResult]) -> "ResultSet":
        return ResultSet(results, parameter_names=self.parameter_names).freeze()

    def sorted_by(self, metric: PerformanceMetric) -> "ResultSet":
        """New frozen ResultSet ordered descending by ``metric``."""
        return self._derive(sorted(self.snapshot(), key=ranking_key(metric)))

    def filter_min_trades(self, min_trades: int) -> "ResultSet":
        """New frozen ResultSet without the results having fewer than ``min_trades`` trades."""
        return self._derive(r for r in self.snapshot() if r.trade_count >= min_trades)

    def best(self, metric: PerformanceMetric) -> Optional[OptimizationResult]:
        results = self.snapshot()
        if not results:
            return None
        return min(results, key=ranking_key(metric))

    def to_records(self) -> List[Dict[str, Any]]:
        return [result.to_record() for result in self.snapshot()]

    def to_dataframe(self) -> pd.DataFrame:
        """One row per result: parameter columns in declaration order, then metric columns."""
        results = self.snapshot()
        names = self.parameter_names
        if names is None:
            names = list(results[0].assignment.names) if results else []
        columns = names + list(PerformanceMetrics.model_fields)
        return pd.DataFrame([r.to_record() for r in results], columns=columns)

    def to_grid(self, x_param: str, y_param: str, metric: PerformanceMetric) -> pd.DataFrame:
        """
        Pivot the results onto two parameter axes.

        Each cell holds the best ``metric`` value among the results sharing that
        (x, y) pair; rows are ``y_param`` values and columns ``x_param`` values.
        """
        metric = PerformanceMetric.from_name(metric)
        df = self.to_dataframe()
        for name in (x_param, y_param):
            if name not in df.columns:
                raise KeyError(f"Parameter '{name}' not found in results")
        return df.pivot_table(index=y_param, columns=x_param, values=metric.field, aggfunc='max')

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __iter__(self) -> Iterator[OptimizationResult]:
        return iter(self.snapshot())

    def __getitem__(self, index):
        with self._lock:
            return self._results[index]

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"ResultSet({len(self)} results, {state})"
