#  Copyright (c) 2024. David Boetius
#  Licensed under the MIT License
from abc import abstractmethod
from typing import Protocol, runtime_checkable

import torch

from .factors import Factors, PartialFactors, PartialKeys


__all__ = ["TransitionNode", "TransitionModel"]


@runtime_checkable
class TransitionNode(Protocol):
    """
    The conditional probability table of a single child factor.
    """

    @property
    @abstractmethod
    def tag(self) -> PartialKeys:
        """The parents of the child factor."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def matrix(self) -> torch.Tensor:
        """
        The conditional probability table, indexed by
        :code:`[parent assignment, child value]`.
        """
        raise NotImplementedError()


@runtime_checkable
class TransitionModel(Protocol):
    """
    A factored transition model over a state space.

    Back-projection works with any transition model that
    can look up the node of a child factor and that computes
    transition probabilities for partial assignments.
    """

    @abstractmethod
    def __getitem__(self, i: int) -> TransitionNode:
        """
        The node describing the i-th child factor.
        """
        raise NotImplementedError()

    @abstractmethod
    def __len__(self) -> int:
        """The number of state factors."""
        raise NotImplementedError()

    @abstractmethod
    def get_transition_probability(
        self,
        space: Factors,
        s: Factors | PartialFactors,
        s1: Factors | PartialFactors,
    ) -> float:
        """
        Computes the probability of transitioning from :code:`s` to :code:`s1`.

        If :code:`s` and :code:`s1` are :code:`PartialFactors`, only the
        children in :code:`s1` contribute to the probability and :code:`s`
        needs to assign values to all parents of these children.

        :param space: The factor space.
        :param s: The initial factors.
        :param s1: The factors to end up with.
        :return: The probability of the transition.
        """
        raise NotImplementedError()
