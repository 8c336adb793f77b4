#  Copyright (c) 2024. David Boetius
#  Licensed under the MIT License
from typing import Iterable, Iterator, Sequence

import torch

from .factors import (
    Factors,
    PartialFactors,
    PartialKeys,
    factor_space_partial,
    to_index_partial,
)
from .utils import TENSOR_LIKE, to_tensor


__all__ = ["BasisFunction", "FactoredVector", "BasisMatrix", "Factored2DMatrix"]


def _to_tag(keys: Sequence[int]) -> PartialKeys:
    tag = tuple(int(key) for key in keys)
    for prev, key in zip(tag, tag[1:]):
        if prev >= key:
            raise ValueError(f"Tag {tag} is not strictly increasing.")
    return tag


class BasisFunction:
    """
    A function that depends only on the factors in :code:`tag`.

    The function is stored densely: :code:`values` contains the value
    for each joint assignment of the factors in :code:`tag`
    (little-endian: the first factor varies fastest).
    """

    def __init__(
        self,
        tag: Sequence[int],
        values: TENSOR_LIKE,
        dtype: torch.dtype = torch.double,
    ):
        self.__tag = _to_tag(tag)
        self.__values = to_tensor(values, dtype).flatten()

    @property
    def tag(self) -> PartialKeys:
        return self.__tag

    @property
    def values(self) -> torch.Tensor:
        return self.__values

    def check_space(self, space: Factors):
        """
        :raises ValueError: If the number of values does not match the
         number of joint assignments of :code:`tag` in :code:`space`.
        """
        expected = factor_space_partial(self.__tag, space)
        if self.__values.size(0) != expected:
            raise ValueError(
                f"Basis function with tag {self.__tag} needs {expected} values. "
                f"Got: {self.__values.size(0)}"
            )

    def value(self, space: Factors, s: Factors | PartialFactors) -> float:
        """
        The value of this function for the factors :code:`s`.
        Partial factors need to cover :code:`tag`.
        """
        return float(self.__values[to_index_partial(self.__tag, space, s)])

    def __repr__(self):
        return f"BasisFunction(tag={self.__tag}, values={self.__values})"


class FactoredVector:
    """
    A sum of :code:`BasisFunction`s.
    """

    def __init__(self, bases: Iterable[BasisFunction] = ()):
        self.__bases = list(bases)

    @property
    def bases(self) -> list[BasisFunction]:
        return self.__bases

    def plus_equal(self, space: Factors, basis: BasisFunction) -> "FactoredVector":
        """
        Adds :code:`basis` to this vector in place.
        If a basis with the same tag is already present, the values of
        :code:`basis` are added to it, otherwise :code:`basis` is appended.

        :return: This vector.
        """
        basis.check_space(space)
        for i, existing in enumerate(self.__bases):
            if existing.tag == basis.tag:
                self.__bases[i] = BasisFunction(
                    existing.tag,
                    existing.values + basis.values.to(existing.values.dtype),
                    existing.values.dtype,
                )
                return self
        self.__bases.append(basis)
        return self

    def value(self, space: Factors, s: Factors | PartialFactors) -> float:
        """
        The value of this vector (the sum of its bases) for the factors :code:`s`.
        """
        return sum((basis.value(space, s) for basis in self.__bases), 0.0)

    def __getitem__(self, i: int) -> BasisFunction:
        return self.__bases[i]

    def __len__(self):
        return len(self.__bases)

    def __iter__(self) -> Iterator[BasisFunction]:
        return iter(self.__bases)

    def __repr__(self):
        return f"FactoredVector({self.__bases})"


class BasisMatrix:
    """
    A function that depends only on the state factors in :code:`tag`
    and the action factors in :code:`action_tag`.

    Rows of :code:`values` correspond to the joint assignments of :code:`tag`
    and columns to the joint assignments of :code:`action_tag`.
    """

    def __init__(
        self,
        tag: Sequence[int],
        action_tag: Sequence[int],
        values: TENSOR_LIKE,
        dtype: torch.dtype = torch.double,
    ):
        values = to_tensor(values, dtype)
        if values.ndim != 2:
            raise ValueError(
                f"Values of a basis matrix need to be two-dimensional. "
                f"Got shape: {tuple(values.shape)}"
            )
        self.__tag = _to_tag(tag)
        self.__action_tag = _to_tag(action_tag)
        self.__values = values

    @property
    def tag(self) -> PartialKeys:
        return self.__tag

    @property
    def action_tag(self) -> PartialKeys:
        return self.__action_tag

    @property
    def values(self) -> torch.Tensor:
        return self.__values

    def check_space(self, space: Factors, actions: Factors):
        expected = (
            factor_space_partial(self.__tag, space),
            factor_space_partial(self.__action_tag, actions),
        )
        if tuple(self.__values.shape) != expected:
            raise ValueError(
                f"Basis matrix with tag {self.__tag} and action tag "
                f"{self.__action_tag} needs shape {expected}. "
                f"Got: {tuple(self.__values.shape)}"
            )

    def value(
        self,
        space: Factors,
        actions: Factors,
        s: Factors | PartialFactors,
        a: Factors | PartialFactors,
    ) -> float:
        """
        The value of this function for the state :code:`s` and action :code:`a`.
        """
        row = to_index_partial(self.__tag, space, s)
        col = to_index_partial(self.__action_tag, actions, a)
        return float(self.__values[row, col])

    def __repr__(self):
        return (
            f"BasisMatrix(tag={self.__tag}, action_tag={self.__action_tag}, "
            f"values={self.__values})"
        )


class Factored2DMatrix:
    """
    A sum of :code:`BasisMatrix`es.
    """

    def __init__(self, bases: Iterable[BasisMatrix] = ()):
        self.__bases = list(bases)

    @property
    def bases(self) -> list[BasisMatrix]:
        return self.__bases

    def plus_equal(
        self, space: Factors, actions: Factors, basis: BasisMatrix
    ) -> "Factored2DMatrix":
        """
        Adds :code:`basis` to this matrix in place.
        If a basis with the same tag and action tag is already present,
        the values of :code:`basis` are added to it, otherwise
        :code:`basis` is appended.

        :return: This matrix.
        """
        basis.check_space(space, actions)
        for i, existing in enumerate(self.__bases):
            if existing.tag == basis.tag and existing.action_tag == basis.action_tag:
                self.__bases[i] = BasisMatrix(
                    existing.tag,
                    existing.action_tag,
                    existing.values + basis.values.to(existing.values.dtype),
                    existing.values.dtype,
                )
                return self
        self.__bases.append(basis)
        return self

    def value(
        self,
        space: Factors,
        actions: Factors,
        s: Factors | PartialFactors,
        a: Factors | PartialFactors,
    ) -> float:
        return sum((basis.value(space, actions, s, a) for basis in self.__bases), 0.0)

    def __getitem__(self, i: int) -> BasisMatrix:
        return self.__bases[i]

    def __len__(self):
        return len(self.__bases)

    def __iter__(self) -> Iterator[BasisMatrix]:
        return iter(self.__bases)

    def __repr__(self):
        return f"Factored2DMatrix({self.__bases})"
