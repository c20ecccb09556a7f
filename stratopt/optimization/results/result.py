from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

from stratopt.optimization.search_space.assignment import Assignment
from .metrics import PerformanceMetric, PerformanceMetrics


class OptimizationResult(BaseModel):
    """
    Outcome of evaluating one parameter assignment. Immutable once produced.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    assignment: Assignment
    metrics: PerformanceMetrics

    @property
    def trade_count(self) -> int:
        return self.metrics.trade_count

    def value(self, metric: PerformanceMetric) -> float:
        return self.metrics.get(metric)

    def to_record(self) -> Dict[str, Any]:
        """Flat ``{parameter..., metric...}`` dictionary, parameters first in declaration order."""
        return {**self.assignment.to_dict(), **self.metrics.model_dump()}
