"""
Progress tracking with estimated remaining time.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

ProgressCallback = Callable[[int, int, str], None]


@dataclass(frozen=True)
class ProgressReport:
    completed: int
    total: int
    label: str
    elapsed_seconds: float

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return int(100 * (self.completed / self.total))

    @property
    def remaining_seconds(self) -> Optional[float]:
        """Linear estimate from the average duration so far; None until something completed."""
        if self.completed <= 0 or self.total <= 0:
            return None
        rate = self.elapsed_seconds / self.completed
        return max(0.0, rate * (self.total - self.completed))

    @property
    def status_text(self) -> str:
        text = f"{self.label}: {self.percent}% completed"
        remaining = self.remaining_seconds
        if remaining is not None:
            text += f", estimated remaining time {format_duration(remaining)}"
        return text


def format_duration(seconds: float) -> str:
    seconds = int(round(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class ProgressTracker:
    """
    Counts completed evaluations against the planned total.

    Only the runner's coordinating thread touches a tracker, so it needs no lock.
    ``completed`` never decreases; ``total`` may grow when a strategy plans
    another pass.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._started = clock()
        self.completed = 0
        self.total = 0
        self.label = "Optimizing"

    def plan(self, additional: int, label: Optional[str] = None):
        self.total += additional
        if label:
            self.label = label

    def advance(self, count: int = 1):
        self.completed += count

    @property
    def elapsed_seconds(self) -> float:
        return self._clock() - self._started

    def report(self) -> ProgressReport:
        return ProgressReport(
            completed=self.completed,
            total=self.total,
            label=self.label,
            elapsed_seconds=self.elapsed_seconds,
        )
