# Copyright (c) 2023 David Boetius
# Licensed under the MIT license
import random
from typing import Sequence

import numpy as np
import pytest
import torch

from torchdbn import DBN, FactoredDDN, PartialFactors, factor_space_partial


@pytest.fixture(autouse=True)
def seed_rngs():
    """
    Reproducibility fallback.
    Tests should still seed the RNGs they use to avoid testing
    always with the same random numbers.
    """
    torch.manual_seed(0)
    np.random.seed(0)
    random.seed(0)


def random_stochastic_matrix(rows: int, cols: int, rng: torch.Generator) -> torch.Tensor:
    matrix = torch.rand((rows, cols), generator=rng, dtype=torch.double)
    return matrix / matrix.sum(dim=-1, keepdim=True)


def random_node(
    tag: Sequence[int], child: int, space: Sequence[int], rng: torch.Generator
) -> DBN.Node:
    rows = factor_space_partial(tag, space)
    return DBN.Node(tag, random_stochastic_matrix(rows, space[child], rng))


def random_dbn(
    space: Sequence[int], tags: Sequence[Sequence[int]], seed: int
) -> DBN:
    rng = torch.Generator()
    rng.manual_seed(seed)
    return DBN([random_node(tag, i, space, rng) for i, tag in enumerate(tags)])


def random_factored_ddn(
    space: Sequence[int],
    actions: Sequence[int],
    action_tags: Sequence[Sequence[int]],
    tags: Sequence[Sequence[Sequence[int]]],
    seed: int,
) -> FactoredDDN:
    """
    :param tags: For each factor, the parent tag of each joint
     value of the factor's action tag.
    """
    rng = torch.Generator()
    rng.manual_seed(seed)
    nodes = []
    for child, (action_tag, child_tags) in enumerate(zip(action_tags, tags)):
        assert len(child_tags) == factor_space_partial(action_tag, actions)
        dbn_nodes = [random_node(tag, child, space, rng) for tag in child_tags]
        nodes.append(FactoredDDN.Node(action_tag, dbn_nodes))
    return FactoredDDN(nodes)


def full(*values: int) -> PartialFactors:
    """A :code:`PartialFactors` assigning all factors."""
    return PartialFactors(tuple(range(len(values))), tuple(values))


def create_deterministic_dbn():
    """
    Two binary factors.
    x0 always becomes 0, x1 becomes the negation of x0.
    """
    return DBN(
        [
            DBN.Node((), [[1.0, 0.0]]),
            DBN.Node((0,), [[0.0, 1.0], [1.0, 0.0]]),
        ]
    )


deterministic_dbn = pytest.fixture(create_deterministic_dbn)
