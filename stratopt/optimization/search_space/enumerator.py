"""
Deterministic enumeration of parameter combinations.
"""

import itertools
from math import prod
from typing import Iterator, List, Mapping, Optional

from stratopt.optimization.exceptions import InvalidParameterError
from .assignment import Assignment
from .space import ParameterSpace


class CombinationEnumerator:
    """
    Lazy, restartable sequence of Assignments over a space or a sub-space.

    Combinations are produced in mixed-radix order: the last declared parameter
    varies fastest, like the lowest digit of a counter whose radix for each digit
    is that parameter's value count. Two enumerators over the same space always
    yield the same sequence.

    A sub-space is described by ``ranges``, mapping a parameter name to a
    ``range`` of value indices (e.g. ``range(4, 13, 2)`` for every second value
    between the 5th and the 13th). Parameters without an entry use their full
    range. Ordinals always refer to the full space.
    """

    def __init__(self, space: ParameterSpace, ranges: Optional[Mapping[str, range]] = None):
        self.space = space
        ranges = dict(ranges or {})

        unknown = set(ranges) - set(space.names)
        if unknown:
            raise InvalidParameterError("ranges", f"unknown parameters: {sorted(unknown)}")

        self._names = tuple(space.names)
        self._counts = space.value_counts()
        self._ranges: List[range] = []
        self._values: List[list] = []

        for param, count in zip(space, self._counts):
            index_range = ranges.get(param.name, range(count))
            if len(index_range) == 0 or index_range.step <= 0:
                raise InvalidParameterError(param.name, f"empty or descending index range {index_range}")
            if index_range[0] < 0 or index_range[-1] >= count:
                raise InvalidParameterError(
                    param.name, f"index range {index_range} outside [0, {count})"
                )
            self._ranges.append(index_range)
            self._values.append([param.value_at(i) for i in index_range])

    @property
    def ranges(self) -> List[range]:
        return list(self._ranges)

    def cardinality(self) -> int:
        """Exact number of combinations this enumerator yields."""
        return prod(len(r) for r in self._ranges)

    def __len__(self) -> int:
        return self.cardinality()

    def __iter__(self) -> Iterator[Assignment]:
        positions = [range(len(r)) for r in self._ranges]
        for combo in itertools.product(*positions):
            indices = tuple(r[p] for r, p in zip(self._ranges, combo))
            values = tuple(vals[p] for vals, p in zip(self._values, combo))
            yield Assignment(self._names, values, indices, self._ordinal(indices))

    def _ordinal(self, indices) -> int:
        ordinal = 0
        for index, count in zip(indices, self._counts):
            ordinal = ordinal * count + index
        return ordinal

    def contains(self, assignment: Assignment) -> bool:
        """Whether the assignment is one of the combinations of this (sub-)space."""
        if assignment.names != self._names:
            return False
        return all(index in r for index, r in zip(assignment.indices, self._ranges))

    def __repr__(self) -> str:
        return f"CombinationEnumerator({self.cardinality():,} combinations)"
