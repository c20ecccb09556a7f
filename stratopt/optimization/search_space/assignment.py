from collections.abc import Mapping
from typing import Any, Dict, Iterator, Tuple


class Assignment(Mapping):
    """
    One concrete value per parameter, i.e. one point of the search space.

    Behaves as a read-only ``{name: value}`` mapping. It also remembers the value
    index of every parameter and its ``ordinal``, the position of the point in the
    full space's enumeration order, which is used for deterministic tie-breaking.
    """

    __slots__ = ('_names', '_values', '_indices', '_ordinal')

    def __init__(self, names: Tuple[str, ...], values: Tuple[Any, ...], indices: Tuple[int, ...], ordinal: int):
        if not len(names) == len(values) == len(indices):
            raise ValueError("names, values and indices must have the same length")
        self._names = tuple(names)
        self._values = tuple(values)
        self._indices = tuple(indices)
        self._ordinal = ordinal

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    @property
    def indices(self) -> Tuple[int, ...]:
        return self._indices

    @property
    def ordinal(self) -> int:
        return self._ordinal

    def __getitem__(self, name: str) -> Any:
        try:
            return self._values[self._names.index(name)]
        except ValueError:
            raise KeyError(name) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Assignment):
            return self._names == other._names and self._values == other._values
        return super().__eq__(other)

    def __hash__(self) -> int:
        return hash((self._names, self._values))

    def to_dict(self) -> Dict[str, Any]:
        return dict(zip(self._names, self._values))

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={value}" for name, value in zip(self._names, self._values))
        return f"Assignment({values})"
