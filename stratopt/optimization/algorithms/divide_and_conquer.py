"""
Divide-and-conquer search: evaluate a coarse grid, then repeatedly narrow
the grid around the best combination found so far.
"""

from typing import Dict, List, Optional, Tuple

from stratopt.optimization.exceptions import InvalidConfigurationError
from stratopt.optimization.results.result import OptimizationResult
from stratopt.optimization.search_space.enumerator import CombinationEnumerator
from utils.logger import get_logger
from .base import SearchPass, SearchStrategy

logger = get_logger(__name__)

DEFAULT_COARSEN_FACTOR = 4
DEFAULT_MAX_ITERATIONS = 10


class DivideAndConquerSearch(SearchStrategy):
    """
    Successive grid-narrowing search.

    Works on value indices so every evaluated point lies on the declared grid:

    1. Each parameter starts with a stride of ``coarsen_factor`` declared steps,
       clamped so that at least two samples remain, over its full range.
    2. The grid is evaluated and the best combination so far is picked.
    3. Each parameter's window shrinks to one old stride on either side of the
       best value and its stride halves, but never drops below one declared step.
    4. Steps 2-3 repeat until a pass has run with every stride at one declared
       step, or ``max_iterations`` passes have run.

    Combinations already evaluated in an earlier pass are not evaluated again,
    so the search never costs more than ``ExhaustiveSearch`` on the same space.
    The surface is assumed to be locally smooth; an optimum hidden between
    coarse samples of a non-unimodal region can be missed.
    """

    name = "divide_and_conquer"

    def __init__(self, coarsen_factor: int = DEFAULT_COARSEN_FACTOR, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        super().__init__()
        if coarsen_factor < 2:
            raise InvalidConfigurationError("coarsen_factor", f"must be at least 2, got {coarsen_factor}")
        if max_iterations < 1:
            raise InvalidConfigurationError("max_iterations", f"must be at least 1, got {max_iterations}")
        self.coarsen_factor = coarsen_factor
        self.max_iterations = max_iterations
        self.iteration = 0
        self._counts: List[int] = []
        self._strides: List[int] = []
        self._windows: List[Tuple[int, int]] = []
        self._evaluated: Dict[Tuple[int, ...], OptimizationResult] = {}
        self._finished = False

    def _initialize(self):
        self._counts = self.space.value_counts()
        self._strides = [max(1, min(self.coarsen_factor, n - 1)) for n in self._counts]
        self._windows = [(0, n - 1) for n in self._counts]
        self._evaluated = {}
        self.iteration = 0
        self._finished = False

    @property
    def strides(self) -> List[int]:
        return list(self._strides)

    @property
    def windows(self) -> List[Tuple[int, int]]:
        return list(self._windows)

    def next_pass(self) -> Optional[SearchPass]:
        if self._finished:
            return None

        ranges = {
            name: range(lo, hi + 1, stride)
            for name, (lo, hi), stride in zip(self.space.names, self._windows, self._strides)
        }
        enumerator = CombinationEnumerator(self.space, ranges)
        self.iteration += 1

        already = sum(1 for indices in self._evaluated
                      if all(i in r for i, r in zip(indices, enumerator.ranges)))
        size = enumerator.cardinality() - already

        logger.info(f"Pass {self.iteration}: strides {self._strides}, "
                    f"{enumerator.cardinality()} grid points, {size} new")

        assignments = (a for a in enumerator if a.indices not in self._evaluated)
        return SearchPass(label=f"Divide & Conquer pass {self.iteration}", assignments=assignments, size=size)

    def _update(self, results: List[OptimizationResult]):
        for result in results:
            self._evaluated[result.assignment.indices] = result

        if all(stride == 1 for stride in self._strides):
            self._finished = True
            return
        if self.iteration >= self.max_iterations:
            logger.warning(f"Stopping after {self.iteration} passes without reaching the declared step sizes")
            self._finished = True
            return

        best = self.get_best_result()
        if best is None:
            self._finished = True
            return

        self._refine(best.assignment.indices)

    def _refine(self, center: Tuple[int, ...]):
        windows = []
        strides = []
        for index, stride, count in zip(center, self._strides, self._counts):
            windows.append((max(0, index - stride), min(count - 1, index + stride)))
            strides.append(max(1, stride // 2))
        self._windows = windows
        self._strides = strides

    def is_finished(self) -> bool:
        return self._finished

    def get_total_evaluations(self) -> Optional[int]:
        # Depends on where the optimum lands in each pass
        return None

    @property
    def evaluated_count(self) -> int:
        return len(self._evaluated)
