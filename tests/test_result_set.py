import threading

import pytest

from conftest import result_for
from stratopt.optimization.results.metrics import PerformanceMetric
from stratopt.optimization.results.result_set import ResultSet
from stratopt.optimization.search_space.enumerator import CombinationEnumerator


@pytest.fixture
def assignments(two_param_space):
    return list(CombinationEnumerator(two_param_space))


class TestRanking:
    def test_sorted_descending(self, assignments):
        results = ResultSet([
            result_for(assignments[0], net_profit=10.0),
            result_for(assignments[1], net_profit=30.0),
            result_for(assignments[2], net_profit=20.0),
        ])
        ranked = results.sorted_by(PerformanceMetric.NET_PROFIT)
        assert [r.metrics.net_profit for r in ranked] == [30.0, 20.0, 10.0]
        assert ranked.frozen
        assert not results.frozen

    def test_ties_broken_by_enumeration_order(self, assignments):
        results = ResultSet([
            result_for(assignments[7], profit_factor=2.0),
            result_for(assignments[3], profit_factor=2.0),
            result_for(assignments[5], profit_factor=2.0),
        ])
        ranked = results.sorted_by(PerformanceMetric.PF)
        assert [r.assignment.ordinal for r in ranked] == [3, 5, 7]

    def test_nan_ranks_last(self, assignments):
        results = ResultSet([
            result_for(assignments[0], kelly=float("nan")),
            result_for(assignments[1], kelly=-5.0),
            result_for(assignments[2], kelly=float("inf")),
        ])
        ranked = list(results.sorted_by("kelly"))
        assert [r.assignment.ordinal for r in ranked] == [2, 1, 0]

    def test_sorting_is_idempotent(self, assignments):
        results = ResultSet(result_for(a, profit_index=float(a.ordinal % 7)) for a in assignments[:30])
        once = results.sorted_by(PerformanceMetric.PI)
        twice = once.sorted_by(PerformanceMetric.PI)
        assert once.snapshot() == twice.snapshot()

    def test_best(self, assignments):
        results = ResultSet([
            result_for(assignments[0], net_profit=1.0),
            result_for(assignments[1], net_profit=5.0),
        ])
        assert results.best(PerformanceMetric.NET_PROFIT).assignment == assignments[1]
        assert ResultSet().best(PerformanceMetric.NET_PROFIT) is None


class TestFiltering:
    def test_filter_min_trades(self, assignments):
        results = ResultSet([
            result_for(assignments[0], trade_count=1),
            result_for(assignments[1], trade_count=2),
            result_for(assignments[2], trade_count=8),
        ])
        filtered = results.filter_min_trades(2)
        assert [r.trade_count for r in filtered] == [2, 8]
        assert len(results) == 3


class TestAppend:
    def test_frozen_rejects_append(self, assignments):
        results = ResultSet()
        results.append(result_for(assignments[0]))
        results.freeze()
        with pytest.raises(RuntimeError):
            results.append(result_for(assignments[1]))
        assert len(results) == 1

    def test_concurrent_appends(self, assignments):
        results = ResultSet()

        def worker(chunk):
            for a in chunk:
                results.append(result_for(a))

        threads = [threading.Thread(target=worker, args=(assignments[i::4],)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == len(assignments)
        assert {r.assignment for r in results} == set(assignments)

    def test_snapshot_is_a_copy(self, assignments):
        results = ResultSet([result_for(assignments[0])])
        snapshot = results.snapshot()
        results.append(result_for(assignments[1]))
        assert len(snapshot) == 1


class TestExport:
    def test_to_dataframe_columns(self, assignments):
        results = ResultSet([result_for(assignments[0], net_profit=3.0)], parameter_names=["period", "offset"])
        df = results.to_dataframe()
        assert list(df.columns) == [
            "period", "offset", "net_profit", "profit_factor", "kelly", "profit_index", "trade_count",
        ]
        assert df.iloc[0]["period"] == 5
        assert df.iloc[0]["net_profit"] == 3.0

    def test_empty_dataframe(self):
        df = ResultSet(parameter_names=["a"]).to_dataframe()
        assert df.empty
        assert list(df.columns)[0] == "a"

    def test_to_grid(self, assignments):
        results = ResultSet(result_for(a, net_profit=a["period"] * 10 + a["offset"]) for a in assignments)
        grid = results.to_grid("period", "offset", PerformanceMetric.NET_PROFIT)
        assert grid.shape == (6, 21)
        assert grid.loc[4, 7] == 74

    def test_to_grid_unknown_parameter(self, assignments):
        results = ResultSet([result_for(assignments[0])])
        with pytest.raises(KeyError):
            results.to_grid("period", "missing", PerformanceMetric.PF)
