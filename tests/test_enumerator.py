import itertools

import pytest

from stratopt.optimization.exceptions import InvalidParameterError
from stratopt.optimization.search_space.enumerator import CombinationEnumerator
from stratopt.optimization.search_space.parameter import Parameter
from stratopt.optimization.search_space.space import ParameterSpace


@pytest.fixture
def small_space():
    return ParameterSpace([
        Parameter(name="a", min=1, max=2, step=1),
        Parameter(name="b", min=0.5, max=1.5, step=0.5),
    ])


def test_last_parameter_varies_fastest(small_space):
    combos = [a.to_dict() for a in CombinationEnumerator(small_space)]
    assert combos == [
        {"a": 1, "b": 0.5},
        {"a": 1, "b": 1.0},
        {"a": 1, "b": 1.5},
        {"a": 2, "b": 0.5},
        {"a": 2, "b": 1.0},
        {"a": 2, "b": 1.5},
    ]


def test_ordinals_follow_enumeration_order(two_param_space):
    ordinals = [a.ordinal for a in CombinationEnumerator(two_param_space)]
    assert ordinals == list(range(126))


def test_yields_cardinality_distinct_assignments(two_param_space):
    assignments = list(CombinationEnumerator(two_param_space))
    assert len(assignments) == two_param_space.cardinality()
    assert len(set(assignments)) == len(assignments)


def test_restartable(two_param_space):
    enumerator = CombinationEnumerator(two_param_space)
    assert list(enumerator) == list(enumerator)
    assert list(enumerator) == list(CombinationEnumerator(two_param_space))


def test_lazy_over_huge_space():
    space = ParameterSpace([Parameter(name=f"p{i}", min=0, max=999, step=1) for i in range(7)])
    enumerator = CombinationEnumerator(space)
    assert len(enumerator) == 10 ** 21
    first = list(itertools.islice(enumerator, 3))
    assert [a["p6"] for a in first] == [0, 1, 2]
    assert first[2].ordinal == 2


def test_sub_range_keeps_full_space_ordinals(two_param_space):
    enumerator = CombinationEnumerator(two_param_space, {"period": range(2, 5, 2), "offset": range(1, 3)})
    assignments = list(enumerator)
    assert len(enumerator) == 4
    assert [a.to_dict() for a in assignments] == [
        {"period": 7, "offset": 2},
        {"period": 7, "offset": 4},
        {"period": 9, "offset": 2},
        {"period": 9, "offset": 4},
    ]
    assert [a.ordinal for a in assignments] == [13, 14, 25, 26]
    assert assignments[0].indices == (2, 1)


@pytest.mark.parametrize("ranges", [
    {"missing": range(1)},
    {"period": range(0)},
    {"period": range(3, 0, -1)},
    {"period": range(0, 22)},
])
def test_invalid_ranges(two_param_space, ranges):
    with pytest.raises(InvalidParameterError):
        CombinationEnumerator(two_param_space, ranges)


def test_invalid_space_fails_before_enumeration():
    space = ParameterSpace([Parameter(name="a", min=0, max=10, step=0)])
    with pytest.raises(InvalidParameterError):
        CombinationEnumerator(space)


def test_contains(two_param_space):
    sub = CombinationEnumerator(two_param_space, {"period": range(0, 21, 4)})
    full = list(CombinationEnumerator(two_param_space))
    inside = [a for a in full if sub.contains(a)]
    assert inside == list(sub)


def test_assignment_mapping_behaviour(two_param_space):
    first = next(iter(CombinationEnumerator(two_param_space)))
    assert first["period"] == 5
    assert list(first) == ["period", "offset"]
    assert dict(first) == {"period": 5, "offset": 0}
    with pytest.raises(KeyError):
        first["missing"]
