#  Copyright (c) 2024. David Boetius
#  Licensed under the MIT License
import logging
from dataclasses import InitVar, dataclass
from math import prod
from typing import Iterator, Sequence

import numpy as np
import torch

from .factors import (
    Factors,
    PartialFactors,
    PartialKeys,
    check_keys,
    to_factors_partial,
    to_index_partial,
)
from .transition_model import TransitionModel
from .utils import (
    STOCHASTIC_ATOL,
    TENSOR_LIKE,
    check_stochastic,
    copy_to_tensor,
    to_tensor,
)


__all__ = [
    "DynamicBayesianNetwork",
    "DBN",
    "DynamicBayesianNetworkRef",
    "DBNRef",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class _DynamicBayesianNode:
    """
    A transition node of a :code:`DynamicBayesianNetwork`.

    The node contains the parents and the conditional probability table
    of a single child factor.
    The child itself is not stored, as it is given by the position of the
    node in the network.

    The rows of the conditional probability table correspond to the joint
    assignments of the parents (little-endian: the first parent varies fastest),
    while the columns correspond to the values of the child.
    Every row sums to one, and all entries lie in [0.0, 1.0].

    The conditional probability table is copied on construction.
    It is validated in the precision it is given in and then converted
    to :code:`dtype`.
    For floating point types less precise than double, the tolerance
    :code:`atol` for the rows summing to one is widened to the precision
    of the given table.
    """

    tag: PartialKeys
    matrix: torch.Tensor
    dtype: InitVar[torch.dtype] = torch.double
    atol: InitVar[float] = STOCHASTIC_ATOL

    def __post_init__(self, dtype: torch.dtype, atol: float):
        tag = tuple(int(parent) for parent in self.tag)
        for prev, parent in zip(tag, tag[1:]):
            if prev >= parent:
                raise ValueError(f"Parent tag {tag} is not strictly increasing.")
        if isinstance(self.matrix, (torch.Tensor, np.ndarray)):
            matrix = copy_to_tensor(self.matrix)
        else:
            matrix = torch.tensor(self.matrix, dtype=dtype)
        # check in the precision the table was given in
        check_stochastic(matrix, atol)
        matrix = matrix.to(dtype)
        object.__setattr__(self, "tag", tag)
        object.__setattr__(self, "matrix", matrix)

    @property
    def num_parent_values(self) -> int:
        """The number of joint assignments of the parents (rows of :code:`matrix`)."""
        return self.matrix.size(0)

    @property
    def num_values(self) -> int:
        """The domain size of the child factor (columns of :code:`matrix`)."""
        return self.matrix.size(1)

    def __repr__(self):
        return (
            f"DynamicBayesianNetwork.Node(tag={self.tag}, "
            f"shape={tuple(self.matrix.shape)}, id={id(self)})"
        )


def _transition_probability(
    network: TransitionModel,
    space: Factors,
    s: Factors | PartialFactors,
    s1: Factors | PartialFactors,
) -> float:
    if isinstance(s1, PartialFactors):
        children = zip(s1.keys, s1.values)
    else:
        if len(s1) != len(network):
            raise ValueError(
                f"Expected a full assignment of {len(network)} factors. Got: {s1}"
            )
        children = enumerate(s1)
    if not isinstance(s, PartialFactors) and len(s) != len(network):
        raise ValueError(
            f"Expected a full assignment of {len(network)} factors. Got: {s}"
        )

    probability = 1.0
    for child, value in children:
        if not 0 <= child < len(network):
            raise IndexError(f"Factor {child} outside of [0, {len(network)}).")
        node = network[child]
        if not 0 <= value < node.matrix.size(1):
            raise ValueError(
                f"Value {value} of factor {child} is outside of its domain "
                f"[0, {node.matrix.size(1)})."
            )
        row = to_index_partial(node.tag, space, s)
        probability *= float(node.matrix[row, value])
    return probability


class DynamicBayesianNetwork(TransitionModel):
    """
    A Dynamic Bayesian Network.

    The network contains one :code:`DynamicBayesianNetwork.Node` per state factor.
    The i-th node contains the conditional probability table of the
    i-th factor given its parents in the previous time step.
    """

    Node = _DynamicBayesianNode

    def __init__(self, nodes: Sequence[_DynamicBayesianNode]):
        """
        Creates a new :code:`DynamicBayesianNetwork`.

        :param nodes: The nodes of the network, one per state factor.
         The i-th node describes the i-th factor.
        """
        if len(nodes) == 0:
            raise ValueError("A DynamicBayesianNetwork needs to have at least one node.")
        nodes = tuple(nodes)
        space = tuple(node.num_values for node in nodes)
        for child, node in enumerate(nodes):
            check_keys(node.tag, len(nodes))
            expected_rows = prod(space[parent] for parent in node.tag)
            if node.num_parent_values != expected_rows:
                raise ValueError(
                    f"Conditional probability table of factor {child} has "
                    f"{node.num_parent_values} rows, but its parents {node.tag} "
                    f"have {expected_rows} joint values."
                )
        self.__nodes = nodes
        self.__space = space
        logger.debug(f"Created DynamicBayesianNetwork over factor space {space}")

    @property
    def nodes(self) -> tuple[_DynamicBayesianNode, ...]:
        return self.__nodes

    @property
    def space(self) -> tuple[int, ...]:
        """
        The factor space of this network, as given by the number of
        columns of the conditional probability tables.
        """
        return self.__space

    def get_transition_probability(
        self,
        space: Factors,
        s: Factors | PartialFactors,
        s1: Factors | PartialFactors,
    ) -> float:
        return _transition_probability(self, space, s, s1)

    def __getitem__(self, i: int) -> _DynamicBayesianNode:
        return self.__nodes[i]

    def __len__(self):
        return len(self.__nodes)

    def __iter__(self) -> Iterator[_DynamicBayesianNode]:
        return iter(self.__nodes)

    class Factory:
        """
        Create Dynamic Bayesian Networks row by row.

        For each child factor, set the parents and then one
        conditional probability distribution for every joint
        assignment of the parents.
        """

        class Node:
            def __init__(self, child: int, space: tuple[int, ...]):
                self.__child = child
                self.__space = space
                self.__parents: tuple[int, ...] = ()
                self.__rows: dict[int, torch.Tensor] | None = None

            @property
            def child(self) -> int:
                return self.__child

            @property
            def parents(self) -> PartialKeys:
                """The parents of this node, in ascending order."""
                return self.__parents

            def add_parent(
                self,
                parent: int,
                reset_conditional_probabilities=False,
            ):
                """
                Add a parent factor to this node.

                By default, the parents of a node can not be modified once
                the conditional probability table was created.
                Use :code:`reset_conditional_probabilities=True` to clear
                a previously set conditional probability table
                when modifying the parents.
                """
                if parent in self.__parents:
                    raise ValueError(
                        f"Factor {parent} already is a parent of factor {self.__child}."
                    )
                self.set_parents(
                    *self.__parents,
                    parent,
                    reset_conditional_probabilities=reset_conditional_probabilities,
                )

            def set_parents(
                self,
                *parents: int,
                reset_conditional_probabilities=False,
            ):
                """
                Set the parent factors of this node.

                By default, the parents of a node can not be modified once
                the conditional probability table was created.
                Use :code:`reset_conditional_probabilities=True` to clear
                a previously set conditional probability table
                when modifying the parents.
                """
                if reset_conditional_probabilities:
                    self.__rows = None
                else:
                    self._check_cond_prob_table_not_created()
                parents = tuple(sorted(parents))
                check_keys(parents, len(self.__space))
                self.__parents = parents

            def set_conditional_probability(
                self,
                condition: dict[int, int],
                probabilities: TENSOR_LIKE,
            ):
                """
                Set the distribution of the child factor for the case
                when the parents take on the values in :code:`condition`.

                :param condition: A mapping from every parent to its value.
                :param probabilities: The probability of each value of the child.
                """
                if set(condition) != set(self.__parents):
                    raise ValueError(
                        f"Condition {condition} does not assign exactly the "
                        f"parents {self.__parents} of factor {self.__child}."
                    )
                for parent, value in condition.items():
                    if not 0 <= value < self.__space[parent]:
                        raise ValueError(
                            f"Value {value} of parent {parent} is outside of its "
                            f"domain [0, {self.__space[parent]})."
                        )
                probabilities = to_tensor(probabilities, torch.double).flatten()
                if probabilities.size(0) != self.__space[self.__child]:
                    raise ValueError(
                        f"Expected {self.__space[self.__child]} probabilities for "
                        f"factor {self.__child}. Got: {probabilities}"
                    )

                row = to_index_partial(
                    self.__parents,
                    self.__space,
                    PartialFactors(
                        self.__parents, tuple(condition[p] for p in self.__parents)
                    ),
                )
                if self.__rows is None:
                    self.__rows = {}
                if row in self.__rows:
                    raise ValueError(
                        f"Condition {condition} in conditional probability table of "
                        f"factor {self.__child} was already set."
                    )
                self.__rows[row] = probabilities

            def create_node(
                self, dtype: torch.dtype = torch.double
            ) -> _DynamicBayesianNode:
                """
                Assembles the conditional probability table of this node.

                :raises ValueError: If the conditional probability table does not
                 cover all joint assignments of the parents.
                """
                rows = self.__rows if self.__rows is not None else {}
                num_rows = prod(self.__space[p] for p in self.__parents)
                missing = [
                    to_factors_partial(self.__parents, self.__space, row)
                    for row in range(num_rows)
                    if row not in rows
                ]
                if len(missing) > 0:
                    raise ValueError(
                        f"Conditional probability table does not cover all joint "
                        f"values of the parents of factor {self.__child}. "
                        f"Not covered: {missing}."
                    )
                matrix = torch.stack([rows[row] for row in range(num_rows)])
                return DynamicBayesianNetwork.Node(self.__parents, matrix, dtype)

            def _check_cond_prob_table_not_created(self):
                if self.__rows is not None:
                    raise ValueError(
                        "The node parents can not be changed after the conditional "
                        "probability table was created."
                    )

        def __init__(self, space: Factors):
            """
            :param space: The domain sizes of the state factors.
            """
            self.__space = tuple(space)
            self.__nodes = tuple(
                DynamicBayesianNetwork.Factory.Node(i, self.__space)
                for i in range(len(self.__space))
            )
            self.dtype = torch.double

        @property
        def space(self) -> tuple[int, ...]:
            return self.__space

        def node(self, child: int) -> "DynamicBayesianNetwork.Factory.Node":
            """
            Retrieves the node of factor :code:`child`.
            """
            return self.__nodes[child]

        def __getitem__(self, child: int) -> "DynamicBayesianNetwork.Factory.Node":
            return self.__nodes[child]

        def create(self) -> "DynamicBayesianNetwork":
            """
            Creates a Dynamic Bayesian Network with the previously
            configured nodes.

            This method does not change the state of the factory or the nodes.

            :return: A new :code:`DynamicBayesianNetwork`.
            """
            return DynamicBayesianNetwork(
                [node.create_node(self.dtype) for node in self.__nodes]
            )


DBN = DynamicBayesianNetwork


class DynamicBayesianNetworkRef(TransitionModel):
    """
    A non-owning Dynamic Bayesian Network.

    Assembles a network from pre-existing :code:`DynamicBayesianNetwork.Node`s
    without copying them, for example, to create the network of a single
    action of a :code:`CompactDynamicDecisionNetwork`.
    The interface is the same as that of :code:`DynamicBayesianNetwork`.
    The referenced nodes must not be modified while this view is in use.
    """

    def __init__(self, nodes: Sequence[_DynamicBayesianNode]):
        self.__nodes = tuple(nodes)

    @property
    def nodes(self) -> tuple[_DynamicBayesianNode, ...]:
        return self.__nodes

    def get_transition_probability(
        self,
        space: Factors,
        s: Factors | PartialFactors,
        s1: Factors | PartialFactors,
    ) -> float:
        return _transition_probability(self, space, s, s1)

    def __getitem__(self, i: int) -> _DynamicBayesianNode:
        return self.__nodes[i]

    def __len__(self):
        return len(self.__nodes)

    def __iter__(self) -> Iterator[_DynamicBayesianNode]:
        return iter(self.__nodes)


DBNRef = DynamicBayesianNetworkRef
