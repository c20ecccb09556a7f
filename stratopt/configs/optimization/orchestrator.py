import os
from dataclasses import dataclass, field
from typing import Optional

from stratopt.optimization.exceptions import InvalidConfigurationError


@dataclass
class DivideAndConquerConfig:
    """Tuning of the divide-and-conquer search."""
    coarsen_factor: int = 4    # declared steps per sample on the first pass
    max_iterations: int = 10   # bound on refinement passes

    def __post_init__(self):
        if self.coarsen_factor < 2:
            raise InvalidConfigurationError("coarsen_factor", f"must be at least 2, got {self.coarsen_factor}")
        if self.max_iterations < 1:
            raise InvalidConfigurationError("max_iterations", f"must be at least 1, got {self.max_iterations}")


@dataclass
class OptimizationConfig:
    """Configuration for optimization runs."""
    max_workers: Optional[int] = None                 # defaults to the number of CPUs
    timeout_per_evaluation: Optional[float] = None    # seconds; a slower evaluation fails the run
    enable_progress_tracking: bool = True
    poll_interval: float = 0.05                       # seconds between timeout checks
    large_space_warning: int = 100_000
    divide_and_conquer: DivideAndConquerConfig = field(default_factory=DivideAndConquerConfig)

    def __post_init__(self):
        if self.max_workers is not None and self.max_workers < 1:
            raise InvalidConfigurationError("max_workers", f"must be at least 1, got {self.max_workers}")
        if self.timeout_per_evaluation is not None and self.timeout_per_evaluation <= 0:
            raise InvalidConfigurationError(
                "timeout_per_evaluation", f"must be positive, got {self.timeout_per_evaluation}"
            )
        if self.poll_interval <= 0:
            raise InvalidConfigurationError("poll_interval", f"must be positive, got {self.poll_interval}")

    @property
    def worker_count(self) -> int:
        return self.max_workers or os.cpu_count() or 1
