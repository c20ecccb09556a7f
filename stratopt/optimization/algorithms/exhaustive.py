from typing import List, Optional

from stratopt.optimization.results.result import OptimizationResult
from stratopt.optimization.search_space.enumerator import CombinationEnumerator
from .base import SearchPass, SearchStrategy


class ExhaustiveSearch(SearchStrategy):
    """
    Brute force search: evaluates every combination of the space exactly once.

    Guaranteed to find the best combination of the discretized space, at the
    cost of ``space.cardinality()`` evaluations.
    """

    name = "exhaustive"
    keeps_history = False

    def __init__(self):
        super().__init__()
        self.enumerator: Optional[CombinationEnumerator] = None
        self._issued = False
        self._finished = False

    def _initialize(self):
        self.enumerator = CombinationEnumerator(self.space)
        self._issued = False
        self._finished = False

    def next_pass(self) -> Optional[SearchPass]:
        if self._issued:
            return None
        self._issued = True
        return SearchPass(label="Brute force", assignments=self.enumerator, size=self.enumerator.cardinality())

    def _update(self, results: List[OptimizationResult]):
        self._finished = True

    def is_finished(self) -> bool:
        return self._finished

    def get_total_evaluations(self) -> Optional[int]:
        return self.enumerator.cardinality() if self.enumerator else None
