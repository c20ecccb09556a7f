from datetime import datetime

import pytest
from pydantic import ValidationError

from stratopt.configs.optimization.orchestrator import DivideAndConquerConfig, OptimizationConfig
from stratopt.configs.optimization.run_request import DateRange, RunRequest, SearchMethod
from stratopt.optimization.exceptions import InvalidConfigurationError
from stratopt.optimization.results.metrics import PerformanceMetric


class TestDateRange:
    def test_parses_strings(self):
        date_range = DateRange(start="2024-01-01 00:00:00", end="2024-02-01 12:30:00")
        assert date_range.start == datetime(2024, 1, 1)
        assert date_range.end == datetime(2024, 2, 1, 12, 30)

    def test_blank_bounds_are_open(self):
        date_range = DateRange(start=" ", end="")
        assert date_range.start is None
        assert date_range.end is None
        assert date_range.contains(datetime(1999, 1, 1))

    def test_bad_format(self):
        with pytest.raises(ValidationError, match="yyyy-MM-dd HH:mm:ss"):
            DateRange(start="01/02/2024")

    def test_start_after_end(self):
        with pytest.raises(ValidationError, match="must not be after"):
            DateRange(start="2024-02-01 00:00:00", end="2024-01-01 00:00:00")

    def test_contains_is_inclusive(self):
        date_range = DateRange(start="2024-01-01 00:00:00", end="2024-01-02 00:00:00")
        assert date_range.contains(datetime(2024, 1, 1))
        assert date_range.contains(datetime(2024, 1, 2))
        assert not date_range.contains(datetime(2024, 1, 2, 0, 0, 1))


class TestRunRequest:
    def test_defaults(self, data_file):
        request = RunRequest(data_file=data_file)
        assert request.metric == PerformanceMetric.PF
        assert request.min_trades == 2
        assert request.search_method == SearchMethod.EXHAUSTIVE
        assert request.date_range is None

    def test_names_are_parsed(self, data_file):
        request = RunRequest.parse(data_file=data_file, metric="Kelly", search_method="Divide & Conquer")
        assert request.metric == PerformanceMetric.KELLY
        assert request.search_method == SearchMethod.DIVIDE_AND_CONQUER

    def test_nested_date_range(self, data_file):
        request = RunRequest.parse(data_file=data_file, date_range={"start": "2024-01-01 05:00:00"})
        assert request.date_range.start == datetime(2024, 1, 1, 5)
        assert request.date_range.end is None

    def test_unknown_metric(self, data_file):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            RunRequest.parse(data_file=data_file, metric="sharpe")
        assert exc_info.value.field == "metric"
        assert '"Selection criteria"' in str(exc_info.value)

    def test_non_integer_min_trades(self, data_file):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            RunRequest.parse(data_file=data_file, min_trades="two")
        assert exc_info.value.field == "min_trades"
        assert exc_info.value.details == '"Minimum trades" must be an integer.'

    def test_bad_date_reports_nested_field(self, data_file):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            RunRequest.parse(data_file=data_file, date_range={"end": "tomorrow"})
        assert exc_info.value.field == "date_range.end"

    def test_frozen(self, data_file):
        request = RunRequest(data_file=data_file)
        with pytest.raises(ValidationError):
            request.min_trades = 5


class TestSearchMethod:
    @pytest.mark.parametrize("name", ["exhaustive", "Brute force", "EXHAUSTIVE"])
    def test_exhaustive_names(self, name):
        assert SearchMethod.from_name(name) is SearchMethod.EXHAUSTIVE

    def test_unknown(self):
        with pytest.raises(ValueError):
            SearchMethod.from_name("genetic")


class TestOptimizationConfig:
    def test_defaults(self):
        config = OptimizationConfig()
        assert config.worker_count >= 1
        assert config.divide_and_conquer.coarsen_factor == 4
        assert config.divide_and_conquer.max_iterations == 10

    def test_explicit_workers(self):
        assert OptimizationConfig(max_workers=3).worker_count == 3

    @pytest.mark.parametrize("kwargs, field", [
        ({"max_workers": 0}, "max_workers"),
        ({"timeout_per_evaluation": 0}, "timeout_per_evaluation"),
        ({"poll_interval": -1}, "poll_interval"),
    ])
    def test_invalid(self, kwargs, field):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            OptimizationConfig(**kwargs)
        assert exc_info.value.field == field

    def test_invalid_divide_and_conquer(self):
        with pytest.raises(InvalidConfigurationError):
            DivideAndConquerConfig(coarsen_factor=1)
