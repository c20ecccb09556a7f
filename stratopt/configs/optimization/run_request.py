from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from stratopt.optimization.exceptions import InvalidConfigurationError
from stratopt.optimization.results.metrics import PerformanceMetric

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT_DISPLAY = "yyyy-MM-dd HH:mm:ss"


class SearchMethod(str, Enum):
    EXHAUSTIVE = "exhaustive"
    DIVIDE_AND_CONQUER = "divide_and_conquer"

    @property
    def display_name(self) -> str:
        return "Brute force" if self is SearchMethod.EXHAUSTIVE else "Divide & Conquer"

    @classmethod
    def from_name(cls, name: str) -> "SearchMethod":
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        for method in cls:
            if key in (method.value, method.name.lower(), method.display_name.lower()):
                return method
        raise ValueError(f"Unknown search method: {name!r}")


class DateRange(BaseModel):
    """
    Inclusive window of historical data to replay. A missing bound is open ended.
    """
    model_config = ConfigDict(frozen=True)

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator('start', 'end', mode='before')
    @classmethod
    def parse_date(cls, v):
        """Accept datetimes or strings in yyyy-MM-dd HH:mm:ss format; blank means open ended."""
        if v is None or isinstance(v, datetime):
            return v
        if isinstance(v, str):
            if not v.strip():
                return None
            try:
                return datetime.strptime(v.strip(), DATE_FORMAT)
            except ValueError:
                raise ValueError(f"'{v}' does not match the date format {DATE_FORMAT_DISPLAY}")
        return v

    @model_validator(mode='after')
    def validate_order(self) -> 'DateRange':
        if self.start and self.end and self.start > self.end:
            raise ValueError(f"start ({self.start}) must not be after end ({self.end})")
        return self

    def contains(self, timestamp: datetime) -> bool:
        if self.start is not None and timestamp < self.start:
            return False
        if self.end is not None and timestamp > self.end:
            return False
        return True


_FIELD_LABELS = {
    'data_file': "Historical data file",
    'min_trades': "Minimum trades",
    'metric': "Selection criteria",
    'search_method': "Search method",
    'date_range': "Date range",
}


class RunRequest(BaseModel):
    """
    Everything a caller chooses for one optimization run.

    Attributes:
        data_file (Path): Historical data file the evaluator replays.
        date_range (DateRange, optional): Window to replay; None uses all data.
        metric (PerformanceMetric): Metric to rank the results by.
        min_trades (int): Results with fewer trades are excluded; must be at least 2.
        search_method (SearchMethod): Exhaustive or divide-and-conquer search.
    """
    model_config = ConfigDict(frozen=True)

    data_file: Path
    date_range: Optional[DateRange] = None
    metric: PerformanceMetric = PerformanceMetric.PF
    min_trades: int = 2
    search_method: SearchMethod = SearchMethod.EXHAUSTIVE

    @field_validator('metric', mode='before')
    @classmethod
    def parse_metric(cls, v):
        return PerformanceMetric.from_name(v)

    @field_validator('search_method', mode='before')
    @classmethod
    def parse_search_method(cls, v):
        return SearchMethod.from_name(v)

    @classmethod
    def parse(cls, **fields) -> "RunRequest":
        """
        Build a request, reporting the first invalid field as InvalidConfigurationError.
        """
        try:
            return cls(**fields)
        except ValidationError as e:
            error = e.errors()[0]
            loc = [str(part) for part in error['loc']]
            field = ".".join(loc) or "request"
            label = _FIELD_LABELS.get(loc[0] if loc else "", field)
            if loc and loc[0] == 'min_trades' and error['type'].startswith('int'):
                details = f'"{label}" must be an integer.'
            else:
                details = f'"{label}": {error["msg"]}'
            raise InvalidConfigurationError(field, details) from e
