"""
Parameter space management for strategy optimization.
"""

from math import prod
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Sequence, Union

from pydantic import ValidationError

from stratopt.optimization.exceptions import InvalidParameterError
from .assignment import Assignment
from .parameter import Parameter


class ParameterSpace:
    """
    Ordered set of tunable parameters.

    Declaration order is significant: it fixes the enumeration order (the last
    parameter varies fastest) and the column order of exported results.

    Example:
        space = ParameterSpace([
            Parameter(name="Period", min=2200, max=3600, step=5, default=3515),
            Parameter(name="Scale", min=5, max=25, step=1, default=25),
            Parameter(name="Entry", min=55, max=120, step=1, default=95),
            Parameter(name="Exit", min=-50, max=0, step=1, default=0),
        ])
    """

    def __init__(self, parameters: Iterable[Parameter]):
        """
        Initialize the space with parameter definitions.

        Args:
            parameters: Parameter objects in declaration order
        """
        self._parameters: List[Parameter] = list(parameters)
        self._validate_structure()

    @classmethod
    def from_specs(cls, specs: Iterable[Union[Sequence[Any], Mapping[str, Any]]]) -> "ParameterSpace":
        """
        Build a space from ``(name, min, max, step, default)`` tuples or dicts.

        Raises:
            InvalidParameterError: If a spec cannot be turned into a Parameter
        """
        parameters = []
        for i, spec in enumerate(specs):
            try:
                if isinstance(spec, Mapping):
                    parameters.append(Parameter(**spec))
                else:
                    parameters.append(Parameter(**dict(zip(("name", "min", "max", "step", "default"), spec))))
            except (ValidationError, TypeError) as e:
                raise InvalidParameterError(f"param[{i}]", str(e)) from e
        return cls(parameters)

    def _validate_structure(self):
        """Validate the space is non-empty and its names are unique."""
        if not self._parameters:
            raise InvalidParameterError("parameters", "parameter space must contain at least one parameter")

        names = [param.name for param in self._parameters]
        if len(names) != len(set(names)):
            duplicates = sorted({name for name in names if names.count(name) > 1})
            raise InvalidParameterError("parameters", f"duplicate parameter names found: {duplicates}")

    def validate(self) -> None:
        """
        Validate every parameter's bounds, step and default.

        Raises:
            InvalidParameterError: For the first offending parameter, in declaration order
        """
        for param in self._parameters:
            param.check()

    def add_parameter(self, parameter: Parameter):
        """Append a parameter to the end of the declaration order."""
        if parameter.name in self.names:
            raise InvalidParameterError(parameter.name, "parameter already exists in space")
        self._parameters.append(parameter)

    def get_parameter(self, name: str) -> Parameter:
        for param in self._parameters:
            if param.name == name:
                return param
        raise KeyError(f"Parameter '{name}' not found in space")

    @property
    def parameters(self) -> List[Parameter]:
        return list(self._parameters)

    @property
    def names(self) -> List[str]:
        return [param.name for param in self._parameters]

    def value_counts(self) -> List[int]:
        return [param.value_count() for param in self._parameters]

    def cardinality(self) -> int:
        """
        Exact number of combinations in the space.

        Python integers are arbitrary precision, so spaces with billions of
        combinations are counted exactly.
        """
        return prod(self.value_counts())

    def default_assignment(self) -> Assignment:
        """Assignment holding every parameter's default value."""
        indices = tuple(param.index_of(param.default) for param in self._parameters)
        values = tuple(param.value_at(i) for param, i in zip(self._parameters, indices))
        return Assignment(tuple(self.names), values, indices, self.ordinal_of(indices))

    def ordinal_of(self, indices: Sequence[int]) -> int:
        """Position of the given value indices in mixed-radix enumeration order."""
        ordinal = 0
        for index, count in zip(indices, self.value_counts()):
            ordinal = ordinal * count + index
        return ordinal

    def describe(self) -> str:
        lines = [f"{param.name}: {param.min} to {param.last_value} step {param.step} ({param.value_count()} values)"
                 for param in self._parameters]
        lines.append(f"{self.cardinality():,} combinations")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {param.name: param.model_dump(exclude={'name'}) for param in self._parameters}

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._parameters)

    def __len__(self) -> int:
        """Get number of parameters in the space."""
        return len(self._parameters)

    def __repr__(self) -> str:
        param_info = [f"{p.name}[{p.min}, {p.max}] step {p.step}" for p in self._parameters]
        return f"ParameterSpace({', '.join(param_info)})"
