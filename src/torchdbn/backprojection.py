#  Copyright (c) 2024. David Boetius
#  Licensed under the MIT License
import logging

import torch

from .basis import BasisFunction, BasisMatrix, Factored2DMatrix, FactoredVector
from .ddn import FactoredDynamicDecisionNetwork
from .factors import Factors, PartialFactorsEnumerator, merge
from .transition_model import TransitionModel


__all__ = [
    "back_project",
    "back_project_basis",
    "back_project_vector",
    "back_project_ddn_basis",
    "back_project_ddn_vector",
]

logger = logging.getLogger(__name__)


def back_project_basis(
    space: Factors, network: TransitionModel, basis: BasisFunction
) -> BasisFunction:
    """
    Back-projects a basis function through a transition model.

    Computes the expected value of :code:`basis` after a transition,
    as a function of the factors before the transition:

    .. math::
        g(x) = \\sum_{x'} h(x') \\cdot P(x' | x)

    where the sum ranges over the assignments of the factors in
    :code:`basis.tag`.
    The result depends on the parents of the factors in :code:`basis.tag`.

    :param space: The factor space.
    :param network: The transition model, for example, a
     :code:`DynamicBayesianNetwork` or a :code:`DynamicBayesianNetworkRef`.
    :param basis: The basis function :math:`h` over the factors after the transition.
    :return: The back-projected basis function :math:`g`.
    """
    # The two inputs have the form
    #     network: [parents, child] -> probability
    #     basis: [children] -> value
    basis.check_space(space)
    tag = ()
    for child in basis.tag:
        tag = merge(tag, network[child].tag)

    domain = PartialFactorsEnumerator(space, tag)
    rhs_domain = PartialFactorsEnumerator(space, basis.tag)
    logger.debug(
        f"Back-projecting basis over {basis.tag} onto {tag} "
        f"({len(domain)} x {len(rhs_domain)} terms)"
    )

    # The output is dense, so we iterate over the entire domain.
    # Children outside of basis.tag contribute a factor of one, so it suffices
    # to enumerate the (dense) values of the basis.
    weights = basis.values.tolist()
    values = [
        sum(
            (
                weight * network.get_transition_probability(space, s, s1)
                for weight, s1 in zip(weights, rhs_domain)
            ),
            0.0,
        )
        for s in domain
    ]
    dtype = basis.values.dtype
    return BasisFunction(tag, torch.tensor(values, dtype=dtype), dtype)


def back_project_vector(
    space: Factors, network: TransitionModel, vector: FactoredVector
) -> FactoredVector:
    """
    Back-projects each basis of :code:`vector` through a transition model
    and sums the results.

    :param space: The factor space.
    :param network: The transition model.
    :param vector: The function over the factors after the transition.
    :return: The back-projected function.
    """
    result = FactoredVector()
    for basis in vector:
        result.plus_equal(space, back_project_basis(space, network, basis))
    return result


def back_project_ddn_basis(
    space: Factors,
    actions: Factors,
    ddn: FactoredDynamicDecisionNetwork,
    basis: BasisFunction,
) -> BasisMatrix:
    """
    Back-projects a basis function through a Dynamic Decision Network with
    factored actions.

    The result depends on the parents of the factors in :code:`basis.tag`
    under any action, and on the action factors these factors depend on.

    :param space: The state factor space.
    :param actions: The action factor space.
    :param ddn: The transition model.
    :param basis: The basis function over the factors after the transition.
    :return: A :code:`BasisMatrix` with rows for the joint assignments of the
     parent factors and columns for the joint assignments of the action factors.
    """
    basis.check_space(space)
    tag = ()
    action_tag = ()
    for child in basis.tag:
        action_tag = merge(action_tag, ddn[child].action_tag)
        for node in ddn[child].nodes:
            tag = merge(tag, node.tag)

    s_domain = PartialFactorsEnumerator(space, tag)
    a_domain = PartialFactorsEnumerator(actions, action_tag)
    rhs_domain = PartialFactorsEnumerator(space, basis.tag)
    logger.debug(
        f"Back-projecting basis over {basis.tag} onto {tag} x actions {action_tag} "
        f"({len(s_domain)} x {len(a_domain)} x {len(rhs_domain)} terms)"
    )

    weights = basis.values.tolist()
    values = [
        [
            sum(
                (
                    weight * ddn.get_transition_probability(space, actions, s, a, s1)
                    for weight, s1 in zip(weights, rhs_domain)
                ),
                0.0,
            )
            for a in a_domain
        ]
        for s in s_domain
    ]
    dtype = basis.values.dtype
    values = torch.tensor(values, dtype=dtype).reshape(len(s_domain), len(a_domain))
    return BasisMatrix(tag, action_tag, values, dtype)


def back_project_ddn_vector(
    space: Factors,
    actions: Factors,
    ddn: FactoredDynamicDecisionNetwork,
    vector: FactoredVector,
) -> Factored2DMatrix:
    """
    Back-projects each basis of :code:`vector` through a Dynamic Decision
    Network with factored actions and sums the results.
    """
    result = Factored2DMatrix()
    for basis in vector:
        result.plus_equal(
            space, actions, back_project_ddn_basis(space, actions, ddn, basis)
        )
    return result


def back_project(space: Factors, *args):
    """
    Back-projects a function through a transition model.

    Supported calls:

    - :code:`back_project(space, network, basis)` with a
      :code:`BasisFunction` gives a :code:`BasisFunction`.
    - :code:`back_project(space, network, vector)` with a
      :code:`FactoredVector` gives a :code:`FactoredVector`.
    - :code:`back_project(space, actions, ddn, basis)` with a
      :code:`FactoredDynamicDecisionNetwork` gives a :code:`BasisMatrix`.
    - :code:`back_project(space, actions, ddn, vector)` gives a
      :code:`Factored2DMatrix`.

    :raises TypeError: For other arguments.
    """
    match args:
        case (actions, FactoredDynamicDecisionNetwork() as ddn, BasisFunction() as basis):
            return back_project_ddn_basis(space, actions, ddn, basis)
        case (actions, FactoredDynamicDecisionNetwork() as ddn, FactoredVector() as vector):
            return back_project_ddn_vector(space, actions, ddn, vector)
        case (network, BasisFunction() as basis):
            return back_project_basis(space, network, basis)
        case (network, FactoredVector() as vector):
            return back_project_vector(space, network, vector)
        case _:
            raise TypeError(
                f"Unsupported arguments for back_project: "
                f"{tuple(type(arg).__name__ for arg in args)}"
            )
