"""
Definition of a single tunable strategy parameter using Pydantic.
"""

from decimal import Decimal
from typing import Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from stratopt.optimization.exceptions import InvalidParameterError

Number = Union[int, float]


def _dec(value: Number) -> Decimal:
    # str() first so 0.1 becomes Decimal("0.1") rather than its binary expansion
    return Decimal(str(value))


class Parameter(BaseModel):
    """
    One tunable strategy input with a bounded, stepped numeric range.

    Args:
        name: Name of the parameter, unique within a space
        min: Lowest value of the range
        max: Highest value of the range
        step: Spacing between consecutive values, must be positive
        default: Value used when the parameter is not optimized (defaults to ``min``)

    Values are ``min + k * step`` for ``k = 0 .. floor((max - min) / step)``. When the
    range is not an exact multiple of ``step`` it is truncated, so the last value
    may be smaller than ``max``. Integer ``min`` and ``step`` produce integer values.

    Bounds are not checked on construction; ``ParameterSpace.validate()`` reports
    them as ``InvalidParameterError`` before a run starts.

    Examples:
        Parameter(name="Period", min=2200, max=3600, step=5, default=3515)
        Parameter(name="Threshold", min=0.1, max=0.5, step=0.05, default=0.2)
    """

    model_config = ConfigDict(frozen=True)

    name: str
    min: Number
    max: Number
    step: Number
    default: Optional[Number] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Names are used as mapping keys and column labels."""
        if not v or not v.strip():
            raise ValueError("Parameter name must be a non-empty string")
        return v

    @model_validator(mode='before')
    @classmethod
    def fill_default(cls, values):
        if isinstance(values, dict) and values.get('default') is None and 'min' in values:
            values = {**values, 'default': values['min']}
        return values

    @property
    def is_integer(self) -> bool:
        """Whether every value of this parameter is an integer."""
        return isinstance(self.min, int) and isinstance(self.step, int)

    def check(self) -> None:
        """
        Check the range invariants.

        Raises:
            InvalidParameterError: If ``step <= 0``, ``min > max`` or ``default`` lies outside ``[min, max]``
        """
        if self.step <= 0:
            raise InvalidParameterError(self.name, f"step must be positive, got {self.step}", attribute="step")
        if self.min > self.max:
            raise InvalidParameterError(
                self.name, f"min ({self.min}) must be <= max ({self.max})", attribute="min"
            )
        if not self.min <= self.default <= self.max:
            raise InvalidParameterError(
                self.name,
                f"default ({self.default}) must lie within [{self.min}, {self.max}]",
                attribute="default",
            )

    def value_count(self) -> int:
        """Number of distinct values, ``floor((max - min) / step) + 1``."""
        self.check()
        return int((_dec(self.max) - _dec(self.min)) // _dec(self.step)) + 1

    def value_at(self, index: int) -> Number:
        """
        Get the value at a position of the stepped range.

        Args:
            index: Position in ``[0, value_count())``

        Returns:
            ``min + index * step``, exact for decimal steps
        """
        if not 0 <= index < self.value_count():
            raise IndexError(f"Index {index} out of range for parameter '{self.name}'")
        value = _dec(self.min) + index * _dec(self.step)
        return int(value) if self.is_integer else float(value)

    def index_of(self, value: Number) -> int:
        """
        Get the position of a value in the stepped range.

        Raises:
            InvalidParameterError: If the value is not on the parameter's grid
        """
        offset = (_dec(value) - _dec(self.min)) / _dec(self.step)
        if offset != offset.to_integral_value() or not 0 <= offset < self.value_count():
            raise InvalidParameterError(self.name, f"value {value} is not on the parameter grid")
        return int(offset)

    def values(self) -> Iterator[Number]:
        """Lazily iterate over all values in ascending order."""
        for index in range(self.value_count()):
            yield self.value_at(index)

    @property
    def last_value(self) -> Number:
        """Highest reachable value after truncation."""
        return self.value_at(self.value_count() - 1)

    def __repr__(self) -> str:
        return f"Parameter({self.name}: {self.min} to {self.max} step {self.step}, default {self.default})"
