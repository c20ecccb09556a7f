"""
Result aggregation, ranking and export.
"""

from .metrics import PerformanceMetric, PerformanceMetrics, metrics_from_trades
from .result import OptimizationResult
from .result_set import ResultSet, ranking_key

__all__ = [
    'OptimizationResult',
    'PerformanceMetric',
    'PerformanceMetrics',
    'ResultSet',
    'metrics_from_trades',
    'ranking_key',
]
