# Copyright (c) 2023 David Boetius
# Licensed under the MIT license
from math import prod

import pytest

from torchdbn import (
    PartialFactors,
    PartialFactorsEnumerator,
    factor_space_partial,
    merge,
    to_factors_partial,
    to_index_partial,
)
from torchdbn.factors import check_keys


@pytest.mark.parametrize(
    "keys,space,expected",
    [
        ((), (2, 3, 4), 1),
        ((0,), (2, 3, 4), 2),
        ((1, 2), (2, 3, 4), 12),
        ((0, 1, 2), (2, 3, 4), 24),
        ((0, 2), (5, 1, 7), 35),
    ],
)
def test_factor_space_partial(keys, space, expected):
    assert factor_space_partial(keys, space) == expected


@pytest.mark.parametrize(
    "lhs,rhs,expected",
    [
        ((), (), ()),
        ((0, 2), (), (0, 2)),
        ((), (1,), (1,)),
        ((0, 2), (1, 2, 5), (0, 1, 2, 5)),
        ((3, 4), (0, 1), (0, 1, 3, 4)),
        ((1, 2), (1, 2), (1, 2)),
    ],
)
def test_merge(lhs, rhs, expected):
    assert merge(lhs, rhs) == expected


def test_check_keys():
    check_keys((), 3)
    check_keys((0, 2), 3)
    with pytest.raises(ValueError):
        check_keys((1, 0), 3)
    with pytest.raises(ValueError):
        check_keys((1, 1), 3)
    with pytest.raises(ValueError):
        check_keys((0, 3), 3)
    with pytest.raises(ValueError):
        check_keys((-1, 2), 3)


@pytest.mark.parametrize(
    "space,keys",
    [
        ((2, 3, 4), ()),
        ((2, 3, 4), (1,)),
        ((2, 3, 4), (0, 2)),
        ((2, 3, 4), (0, 1, 2)),
        ((3, 1, 2, 5), (0, 1, 3)),
    ],
)
def test_enumerator_little_endian(space, keys):
    domain = PartialFactorsEnumerator(space, keys)
    assert len(domain) == prod(space[k] for k in keys)

    count = 0
    while domain.is_valid():
        current = domain.get()
        assert current.keys == keys
        assert domain.index == count
        # mixed-radix decomposition with the first key varying fastest
        index = count
        for key, value in zip(keys, current.values):
            assert value == index % space[key]
            index //= space[key]
        assert to_index_partial(keys, space, current) == count
        assert to_factors_partial(keys, space, count) == current
        count += 1
        domain.advance()
    assert count == factor_space_partial(keys, space)
    assert not domain.is_valid()


def test_enumerator_reset():
    domain = PartialFactorsEnumerator((2, 3), (0, 1))
    first = domain.get()
    domain.advance()
    domain.advance()
    assert domain.get() == PartialFactors((0, 1), (0, 1))
    domain.reset()
    assert domain.index == 0
    assert domain.get() == first


def test_enumerator_iter_matches_advance():
    space = (3, 2, 4)
    keys = (0, 2)
    domain = PartialFactorsEnumerator(space, keys)
    iterated = list(domain)

    advanced = []
    while domain.is_valid():
        advanced.append(domain.get())
        domain.advance()
    assert iterated == advanced
    assert iterated[:4] == [
        PartialFactors(keys, (0, 0)),
        PartialFactors(keys, (1, 0)),
        PartialFactors(keys, (2, 0)),
        PartialFactors(keys, (0, 1)),
    ]


def test_enumerator_empty_tag():
    domain = PartialFactorsEnumerator((2, 2), ())
    assert list(domain) == [PartialFactors((), ())]
    assert domain.is_valid()
    domain.advance()
    assert not domain.is_valid()


def test_to_index_partial_full_factors():
    space = (2, 3, 4)
    assert to_index_partial((0, 2), space, (1, 2, 3)) == 1 + 3 * 2
    assert to_index_partial((1,), space, (1, 2, 3)) == 2
    assert to_index_partial((), space, (1, 2, 3)) == 0


def test_to_index_partial_superset():
    space = (2, 3, 4)
    factors = PartialFactors((0, 1, 2), (1, 2, 3))
    assert to_index_partial((1, 2), space, factors) == 2 + 3 * 3


def test_to_index_partial_not_covered():
    space = (2, 3, 4)
    with pytest.raises(ValueError):
        to_index_partial((0, 1), space, PartialFactors((1,), (2,)))
    with pytest.raises(ValueError):
        to_index_partial((2,), space, PartialFactors((0, 1), (1, 2)))


@pytest.mark.parametrize(
    "factors",
    [(2, 0, 0), (0, 3, 0), (0, 0, -1), PartialFactors((0, 1, 2), (1, 5, 0))],
)
def test_to_index_partial_outside_domain(factors):
    space = (2, 3, 4)
    with pytest.raises(ValueError):
        to_index_partial((0, 1, 2), space, factors)


if __name__ == "__main__":
    pytest.main()
