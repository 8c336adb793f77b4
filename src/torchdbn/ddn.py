#  Copyright (c) 2024. David Boetius
#  Licensed under the MIT License
import logging
from dataclasses import dataclass
from math import prod
from typing import Iterator, NamedTuple, Sequence

from .dbn import DBN, DBNRef
from .factors import (
    Factors,
    PartialFactors,
    PartialKeys,
    check_keys,
    factor_space_partial,
    to_index_partial,
)


__all__ = [
    "CompactDynamicDecisionNetwork",
    "CompactDDN",
    "FactoredDynamicDecisionNetwork",
    "FactoredDDN",
]

logger = logging.getLogger(__name__)


def _check_node_shape(node: DBN.Node, child: int, space: Sequence[int]):
    check_keys(node.tag, len(space))
    if node.num_values != space[child]:
        raise ValueError(
            f"Conditional probability table of factor {child} has "
            f"{node.num_values} columns, but factor {child} has {space[child]} values."
        )
    expected_rows = prod(space[parent] for parent in node.tag)
    if node.num_parent_values != expected_rows:
        raise ValueError(
            f"Conditional probability table of factor {child} has "
            f"{node.num_parent_values} rows, but its parents {node.tag} "
            f"have {expected_rows} joint values."
        )


class _DiffNode(NamedTuple):
    """
    Replaces the node of factor :code:`id` in the default transition model.
    """

    id: int
    node: DBN.Node


class CompactDynamicDecisionNetwork:
    """
    A Dynamic Decision Network, represented compactly.

    Usually, each action has its own :code:`DynamicBayesianNetwork`.
    However, the networks of different actions usually closely resemble
    each other, as each action only affects a few factors.
    Therefore, this class stores a default transition model and, for each
    action, only the nodes that differ from the default transition model.

    The network of an action is assembled on the fly as a
    :code:`DynamicBayesianNetworkRef` that refers to the nodes stored
    in this class, which does not copy any conditional probability table.
    """

    Node = _DiffNode

    def __init__(
        self,
        diffs: Sequence[Sequence[_DiffNode]],
        default_transition: DBN,
    ):
        """
        Creates a new :code:`CompactDynamicDecisionNetwork`.

        :param diffs: For each action, the nodes that replace the nodes of
         :code:`default_transition`. Within one action, each factor may be
         replaced at most once.
        :param default_transition: The default transition model.
        """
        space = default_transition.space
        checked_diffs = []
        for action, action_diffs in enumerate(diffs):
            seen = set()
            action_diffs = tuple(_DiffNode(*diff) for diff in action_diffs)
            for diff in action_diffs:
                if not 0 <= diff.id < len(space):
                    raise ValueError(
                        f"Diff of action {action} refers to factor {diff.id}, "
                        f"which is outside of [0, {len(space)})."
                    )
                if diff.id in seen:
                    raise ValueError(
                        f"Action {action} replaces factor {diff.id} more than once."
                    )
                seen.add(diff.id)
                _check_node_shape(diff.node, diff.id, space)
            checked_diffs.append(action_diffs)

        self.__diffs = tuple(checked_diffs)
        self.__default_transition = default_transition
        logger.debug(
            f"Created CompactDynamicDecisionNetwork with {len(self.__diffs)} actions "
            f"and {sum(map(len, self.__diffs))} diff nodes"
        )

    def make_diff_transition(self, a: int) -> DBNRef:
        """
        Creates the network of action :code:`a`.

        The network contains references to the nodes of this
        :code:`CompactDynamicDecisionNetwork`.

        :param a: The action.
        :return: A :code:`DynamicBayesianNetworkRef` for action :code:`a`.
        :raises IndexError: If :code:`a` is not an action of this network.
        """
        if not 0 <= a < len(self.__diffs):
            raise IndexError(
                f"Action {a} outside of [0, {len(self.__diffs)})."
            )
        nodes = list(self.__default_transition.nodes)
        for diff in self.__diffs[a]:
            nodes[diff.id] = diff.node
        return DBNRef(nodes)

    @property
    def default_transition(self) -> DBN:
        return self.__default_transition

    @property
    def diff_nodes(self) -> tuple[tuple[_DiffNode, ...], ...]:
        """The diff nodes of all actions."""
        return self.__diffs

    @property
    def num_actions(self) -> int:
        return len(self.__diffs)


CompactDDN = CompactDynamicDecisionNetwork


@dataclass(frozen=True, eq=False)
class _FactoredDecisionNode:
    """
    The transition nodes of a single factor of a
    :code:`FactoredDynamicDecisionNetwork`.

    As the parents of the factor depend on a subset of the action factors
    (the :code:`action_tag`), this class stores one
    :code:`DynamicBayesianNetwork.Node` for each joint assignment of the
    action factors in :code:`action_tag` (little-endian: the first action
    factor varies fastest).
    """

    action_tag: PartialKeys
    nodes: tuple[DBN.Node, ...]

    def __post_init__(self):
        action_tag = tuple(int(action) for action in self.action_tag)
        for prev, action in zip(action_tag, action_tag[1:]):
            if prev >= action:
                raise ValueError(f"Action tag {action_tag} is not strictly increasing.")
        nodes = tuple(self.nodes)
        if len(nodes) == 0:
            raise ValueError("A factor needs at least one transition node.")
        for node in nodes[1:]:
            if node.num_values != nodes[0].num_values:
                raise ValueError(
                    f"All transition nodes of a factor need the same number of "
                    f"child values. Got {node.num_values} and {nodes[0].num_values}."
                )
        object.__setattr__(self, "action_tag", action_tag)
        object.__setattr__(self, "nodes", nodes)

    @property
    def num_values(self) -> int:
        return self.nodes[0].num_values

    def __repr__(self):
        return (
            f"FactoredDynamicDecisionNetwork.Node(action_tag={self.action_tag}, "
            f"nodes={list(self.nodes)})"
        )


class FactoredDynamicDecisionNetwork:
    """
    A Dynamic Decision Network with factored actions.

    For each state factor, the parents and the conditional probability
    table depend on a subset of the action factors.
    """

    Node = _FactoredDecisionNode

    def __init__(self, nodes: Sequence[_FactoredDecisionNode]):
        """
        Creates a new :code:`FactoredDynamicDecisionNetwork`.

        :param nodes: The nodes of the network, one per state factor.
         The i-th node describes the i-th factor.
        """
        if len(nodes) == 0:
            raise ValueError(
                "A FactoredDynamicDecisionNetwork needs to have at least one node."
            )
        nodes = tuple(nodes)
        space = tuple(node.num_values for node in nodes)
        for child, node in enumerate(nodes):
            for dbn_node in node.nodes:
                _check_node_shape(dbn_node, child, space)
        self.__nodes = nodes
        self.__space = space

    @property
    def nodes(self) -> tuple[_FactoredDecisionNode, ...]:
        return self.__nodes

    @property
    def space(self) -> tuple[int, ...]:
        """
        The state factor space of this network, as given by the number of
        columns of the conditional probability tables.
        """
        return self.__space

    def validate(self, space: Factors, actions: Factors):
        """
        Checks that this network matches a state and an action space.

        :param space: The domain sizes of the state factors.
        :param actions: The domain sizes of the action factors.
        :raises ValueError: If the network does not fit :code:`space`
         and :code:`actions`.
        """
        if tuple(space) != self.__space:
            raise ValueError(
                f"Network has state space {self.__space}. Got: {tuple(space)}"
            )
        for child, node in enumerate(self.__nodes):
            check_keys(node.action_tag, len(actions))
            expected = factor_space_partial(node.action_tag, actions)
            if len(node.nodes) != expected:
                raise ValueError(
                    f"Factor {child} has {len(node.nodes)} transition nodes, but its "
                    f"action tag {node.action_tag} has {expected} joint values."
                )

    def get_transition_probability(
        self,
        space: Factors,
        actions: Factors,
        s: Factors | PartialFactors,
        a: Factors | PartialFactors,
        s1: Factors | PartialFactors,
    ) -> float:
        """
        Computes the probability of transitioning from :code:`s` to :code:`s1`
        when taking action :code:`a`.

        If :code:`s1` is a :code:`PartialFactors`, only the children in :code:`s1`
        contribute to the probability.
        In this case, :code:`s` needs to assign values to all parents of these
        children and :code:`a` to all action factors these children depend on.

        :param space: The state factor space.
        :param actions: The action factor space.
        :param s: The initial factors.
        :param a: The action.
        :param s1: The factors to end up with.
        :return: The probability of the transition.
        """
        if isinstance(s1, PartialFactors):
            children = zip(s1.keys, s1.values)
        else:
            if len(s1) != len(self.__nodes):
                raise ValueError(
                    f"Expected a full assignment of {len(self.__nodes)} factors. "
                    f"Got: {s1}"
                )
            children = enumerate(s1)
        if not isinstance(s, PartialFactors) and len(s) != len(self.__nodes):
            raise ValueError(
                f"Expected a full assignment of {len(self.__nodes)} factors. Got: {s}"
            )
        if not isinstance(a, PartialFactors) and len(a) != len(actions):
            raise ValueError(
                f"Expected a full assignment of {len(actions)} action factors. "
                f"Got: {a}"
            )

        probability = 1.0
        for child, value in children:
            if not 0 <= child < len(self.__nodes):
                raise IndexError(f"Factor {child} outside of [0, {len(self.__nodes)}).")
            node = self.__nodes[child]
            if not 0 <= value < node.num_values:
                raise ValueError(
                    f"Value {value} of factor {child} is outside of its domain "
                    f"[0, {node.num_values})."
                )
            dbn_node = node.nodes[to_index_partial(node.action_tag, actions, a)]
            row = to_index_partial(dbn_node.tag, space, s)
            probability *= float(dbn_node.matrix[row, value])
        return probability

    def __getitem__(self, i: int) -> _FactoredDecisionNode:
        return self.__nodes[i]

    def __len__(self):
        return len(self.__nodes)

    def __iter__(self) -> Iterator[_FactoredDecisionNode]:
        return iter(self.__nodes)


FactoredDDN = FactoredDynamicDecisionNetwork
