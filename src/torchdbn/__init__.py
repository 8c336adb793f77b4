# Copyright (c) 2025 David Boetius
# Licensed under the MIT license
"""Factored transition models (DBNs and DDNs) and back-projection, in PyTorch."""

__version__ = "0.1.0"

from .factors import (
    Factors,
    PartialKeys,
    PartialFactors,
    PartialFactorsEnumerator,
    factor_space_partial,
    merge,
    to_index_partial,
    to_factors_partial,
)
from .transition_model import TransitionModel, TransitionNode
from .dbn import DynamicBayesianNetwork, DBN, DynamicBayesianNetworkRef, DBNRef
from .ddn import (
    CompactDynamicDecisionNetwork,
    CompactDDN,
    FactoredDynamicDecisionNetwork,
    FactoredDDN,
)
from .basis import BasisFunction, FactoredVector, BasisMatrix, Factored2DMatrix
from .backprojection import (
    back_project,
    back_project_basis,
    back_project_vector,
    back_project_ddn_basis,
    back_project_ddn_vector,
)


__all__ = [
    "Factors",
    "PartialKeys",
    "PartialFactors",
    "PartialFactorsEnumerator",
    "factor_space_partial",
    "merge",
    "to_index_partial",
    "to_factors_partial",
    "TransitionModel",
    "TransitionNode",
    "DynamicBayesianNetwork",
    "DBN",
    "DynamicBayesianNetworkRef",
    "DBNRef",
    "CompactDynamicDecisionNetwork",
    "CompactDDN",
    "FactoredDynamicDecisionNetwork",
    "FactoredDDN",
    "BasisFunction",
    "FactoredVector",
    "BasisMatrix",
    "Factored2DMatrix",
    "back_project",
    "back_project_basis",
    "back_project_vector",
    "back_project_ddn_basis",
    "back_project_ddn_vector",
]
