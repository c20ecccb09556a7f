"""
Shared fixtures for optimizer tests.
"""

import threading
from pathlib import Path

import pandas as pd
import pytest

from stratopt.configs.optimization.orchestrator import OptimizationConfig
from stratopt.configs.optimization.run_request import RunRequest
from stratopt.optimization.orchestrator import OptimizationRunner
from stratopt.optimization.results.metrics import PerformanceMetric, PerformanceMetrics
from stratopt.optimization.results.result import OptimizationResult
from stratopt.optimization.search_space.parameter import Parameter
from stratopt.optimization.search_space.space import ParameterSpace


@pytest.fixture
def data_file(tmp_path) -> Path:
    """Small historical data CSV, one row per hour."""
    timestamps = pd.date_range("2024-01-01 00:00:00", periods=48, freq="60min")
    df = pd.DataFrame({
        "timestamp": timestamps,
        "close": [100 + i * 0.5 for i in range(48)],
    })
    path = tmp_path / "history.csv"
    df.to_csv(path, index=False)
    return path


@pytest.fixture
def two_param_space() -> ParameterSpace:
    """21 x 6 = 126 combinations."""
    return ParameterSpace([
        Parameter(name="period", min=5, max=25, step=1, default=10),
        Parameter(name="offset", min=0, max=10, step=2, default=4),
    ])


@pytest.fixture
def sample_space() -> ParameterSpace:
    """Parameters of a velocity-based sample strategy."""
    return ParameterSpace.from_specs([
        ("Period", 2200, 3600, 5, 3515),
        ("Scale", 5, 25, 1, 25),
        ("Entry", 55, 120, 1, 95),
        ("Exit", -50, 0, 1, 0),
    ])


@pytest.fixture
def make_request(data_file):
    def _make(**overrides) -> RunRequest:
        fields = {
            "data_file": data_file,
            "metric": PerformanceMetric.NET_PROFIT,
            "min_trades": 2,
        }
        fields.update(overrides)
        return RunRequest(**fields)
    return _make


@pytest.fixture
def make_runner():
    def _make(**overrides) -> OptimizationRunner:
        fields = {"max_workers": 2, "poll_interval": 0.01}
        fields.update(overrides)
        return OptimizationRunner(OptimizationConfig(**fields))
    return _make


class RecordingEvaluator:
    """Callable evaluator that records every assignment it sees, thread-safely."""

    def __init__(self, score=None, trade_count=10):
        self.score = score or (lambda a: float(sum(a.values())))
        self.trade_count = trade_count
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, assignment, data_source, date_range):
        with self._lock:
            self.calls.append(assignment)
        trades = self.trade_count(assignment) if callable(self.trade_count) else self.trade_count
        return PerformanceMetrics(
            net_profit=self.score(assignment),
            profit_factor=1.5,
            kelly=10.0,
            profit_index=0.5,
            trade_count=trades,
        )


@pytest.fixture
def recording_evaluator():
    return RecordingEvaluator


def result_for(assignment, trade_count=10, **metrics) -> OptimizationResult:
    return OptimizationResult(
        assignment=assignment,
        metrics=PerformanceMetrics(trade_count=trade_count, **metrics),
    )
