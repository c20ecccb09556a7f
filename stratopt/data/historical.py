# Read-only access to a historical data file, shared by every worker of a run.

import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd

from utils.logger import get_logger

logger = get_logger(__name__)


class HistoricalDataSource:
    """
    Handle to a historical market data CSV file.

    The file is read once and every date window is cached, so concurrent
    evaluations share the same frames. Callers must treat returned frames as
    read-only.

    Args:
        path: Path to the CSV file.
        timestamp_column: Column used for date range filtering.
    """

    def __init__(self, path, timestamp_column: str = 'timestamp'):
        self.path = Path(path)
        self.timestamp_column = timestamp_column
        self._cache: Dict[Optional[Tuple], pd.DataFrame] = {}
        self._lock = threading.Lock()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self, date_range=None) -> pd.DataFrame:
        """
        Load the data, optionally restricted to a date range (inclusive bounds).

        Args:
            date_range (DateRange, optional): Window to keep; None keeps all rows.
        """
        key = None if date_range is None else (date_range.start, date_range.end)
        with self._lock:
            if key in self._cache:
                return self._cache[key]

            full = self._read()
            if key is None:
                return full

            if self.timestamp_column not in full.columns:
                raise ValueError(f"Historical data has no '{self.timestamp_column}' column to filter on")

            mask = pd.Series(True, index=full.index)
            if date_range.start is not None:
                mask &= full[self.timestamp_column] >= date_range.start
            if date_range.end is not None:
                mask &= full[self.timestamp_column] <= date_range.end
            window = full[mask].reset_index(drop=True)

            logger.info(f"Date range {date_range.start} - {date_range.end}: {len(window)} of {len(full)} rows")
            self._cache[key] = window
            return window

    def _read(self) -> pd.DataFrame:
        # Caller holds the lock
        if None not in self._cache:
            df = pd.read_csv(self.path)
            if self.timestamp_column in df.columns:
                df[self.timestamp_column] = pd.to_datetime(df[self.timestamp_column])
                df = df.sort_values(by=self.timestamp_column).reset_index(drop=True)
            logger.info(f"Loaded historical data {self.path} with shape {df.shape}")
            self._cache[None] = df
        return self._cache[None]

    def __repr__(self) -> str:
        return f"HistoricalDataSource({self.path})"
