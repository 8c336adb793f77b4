#  Copyright (c) 2024. David Boetius
#  Licensed under the MIT License
import itertools
from math import prod
from typing import Iterator, NamedTuple, Sequence

__all__ = [
    "Factors",
    "PartialKeys",
    "PartialFactors",
    "PartialFactorsEnumerator",
    "factor_space_partial",
    "merge",
    "check_keys",
    "to_index_partial",
    "to_factors_partial",
]


# A full assignment of values to factors, or the domain sizes of all factors
# when used as a factor space.
Factors = Sequence[int]
# A strictly increasing sequence of factor indices (a tag).
PartialKeys = tuple[int, ...]


class PartialFactors(NamedTuple):
    """
    An assignment of values to a subset of the factors of a factor space.

    - keys is the (strictly increasing) tag of the assigned factors
    - values contains the value of each factor in keys
    """

    keys: PartialKeys
    values: tuple[int, ...]


def factor_space_partial(keys: Sequence[int], space: Factors) -> int:
    """
    The number of joint assignments of the factors in :code:`keys`.
    One for an empty tag.
    """
    return prod(space[key] for key in keys)


def merge(lhs: Sequence[int], rhs: Sequence[int]) -> PartialKeys:
    """
    Merges two tags into a single sorted tag without duplicates.
    """
    return tuple(sorted(set(lhs).union(rhs)))


def check_keys(keys: Sequence[int], num_factors: int):
    """
    Checks that :code:`keys` is a valid tag for a factor space
    with :code:`num_factors` factors.

    :raises ValueError: If :code:`keys` is not strictly increasing or
     contains indices outside of :code:`[0, num_factors)`.
    """
    for prev, key in zip(keys, keys[1:]):
        if prev >= key:
            raise ValueError(f"Tag {tuple(keys)} is not strictly increasing.")
    if len(keys) > 0 and (keys[0] < 0 or keys[-1] >= num_factors):
        raise ValueError(
            f"Tag {tuple(keys)} references factors outside of [0, {num_factors})."
        )


def to_index_partial(
    keys: Sequence[int], space: Factors, factors: "Factors | PartialFactors"
) -> int:
    """
    Computes the index of the projection of :code:`factors` onto :code:`keys`.
    Indices are little-endian: the value of the first factor in :code:`keys`
    varies fastest.

    :param keys: The tag to project onto.
    :param space: The factor space.
    :param factors: Either a full assignment or a :code:`PartialFactors`
     that assigns values to (at least) all factors in :code:`keys`.
    :return: The index of the assignment in :code:`[0, factor_space_partial(keys, space))`.
    :raises ValueError: If :code:`factors` is partial and does not cover :code:`keys`,
     or if a value lies outside of the domain of its factor.
    """
    if isinstance(factors, PartialFactors):
        values = []
        j = 0
        for key in keys:
            # both tags are sorted, so we can walk them in lockstep
            while j < len(factors.keys) and factors.keys[j] < key:
                j += 1
            if j == len(factors.keys) or factors.keys[j] != key:
                raise ValueError(
                    f"Partial factors with tag {factors.keys} do not cover "
                    f"factor {key} of tag {tuple(keys)}."
                )
            values.append(factors.values[j])
    else:
        values = [factors[key] for key in keys]

    index = 0
    multiplier = 1
    for key, value in zip(keys, values):
        if not 0 <= value < space[key]:
            raise ValueError(
                f"Value {value} of factor {key} is outside of its domain "
                f"[0, {space[key]})."
            )
        index += value * multiplier
        multiplier *= space[key]
    return index


def to_factors_partial(
    keys: Sequence[int], space: Factors, index: int
) -> PartialFactors:
    """
    The inverse of :code:`to_index_partial`.
    Decomposes :code:`index` into the values of the factors in :code:`keys`.
    """
    values = []
    for key in keys:
        index, value = divmod(index, space[key])
        values.append(value)
    return PartialFactors(tuple(keys), tuple(values))


class PartialFactorsEnumerator:
    """
    Enumerates all joint assignments of a subset of factors.

    Assignments are produced in little-endian order: the first factor
    of the tag varies fastest.
    Therefore, the :code:`index` of the current assignment always
    equals its :code:`to_index_partial`.

    Usage::

        domain = PartialFactorsEnumerator(space, keys)
        while domain.is_valid():
            current = domain.get()
            ...
            domain.advance()

    Alternatively, iterate over the enumerator, which makes a separate
    pass without affecting :code:`get` and :code:`index`.
    """

    def __init__(self, space: Factors, keys: Sequence[int]):
        self.__space = tuple(space)
        self.__keys = tuple(keys)
        self.__size = factor_space_partial(self.__keys, self.__space)
        self.__values = [0] * len(self.__keys)
        self.__index = 0

    @property
    def keys(self) -> PartialKeys:
        return self.__keys

    @property
    def index(self) -> int:
        """The number of times this enumerator was advanced since the last reset."""
        return self.__index

    def is_valid(self) -> bool:
        return self.__index < self.__size

    def advance(self):
        """
        Moves to the next assignment.
        After the last assignment, the enumerator becomes invalid.
        """
        self.__index += 1
        for i, key in enumerate(self.__keys):
            self.__values[i] += 1
            if self.__values[i] < self.__space[key]:
                return
            self.__values[i] = 0

    def reset(self):
        self.__values = [0] * len(self.__keys)
        self.__index = 0

    def get(self) -> PartialFactors:
        """The current assignment."""
        return PartialFactors(self.__keys, tuple(self.__values))

    def __len__(self):
        return self.__size

    def __iter__(self) -> Iterator[PartialFactors]:
        # itertools.product varies the last position fastest
        ranges = (range(self.__space[key]) for key in reversed(self.__keys))
        for values in itertools.product(*ranges):
            yield PartialFactors(self.__keys, values[::-1])
