#  Copyright (c) 2024. David Boetius
#  Licensed under the MIT License
import pytest
import torch

from torchdbn import (
    BasisFunction,
    BasisMatrix,
    Factored2DMatrix,
    FactoredVector,
    PartialFactors,
)


def test_basis_function_value():
    space = (2, 3, 2)
    basis = BasisFunction((0, 1), torch.arange(6))
    assert basis.values.dtype == torch.double
    assert basis.value(space, (1, 2, 0)) == 5.0
    assert basis.value(space, PartialFactors((0, 1), (0, 1))) == 2.0
    with pytest.raises(ValueError):
        basis.value(space, PartialFactors((1,), (1,)))


def test_basis_function_check_space():
    BasisFunction((1,), [1.0, 2.0, 3.0]).check_space((2, 3))
    with pytest.raises(ValueError):
        BasisFunction((1,), [1.0, 2.0]).check_space((2, 3))
    with pytest.raises(ValueError):
        BasisFunction((1, 0), [1.0, 2.0])


def test_factored_vector_plus_equal():
    space = (2, 3)
    vector = FactoredVector()
    vector.plus_equal(space, BasisFunction((0,), [1.0, 2.0]))
    vector.plus_equal(space, BasisFunction((1,), [0.5, 0.25, 0.125]))
    vector.plus_equal(space, BasisFunction((0,), [3.0, 4.0]))
    assert len(vector) == 2
    assert vector[0].tag == (0,)
    assert torch.allclose(vector[0].values, torch.tensor([4.0, 6.0]).double())
    assert vector.value(space, (1, 2)) == pytest.approx(6.125)

    with pytest.raises(ValueError):
        vector.plus_equal(space, BasisFunction((1,), [1.0]))


def test_factored_vector_plus_equal_does_not_modify_input():
    space = (2,)
    first = BasisFunction((0,), [1.0, 2.0])
    vector = FactoredVector([first])
    vector.plus_equal(space, BasisFunction((0,), [1.0, 1.0]))
    assert torch.allclose(first.values, torch.tensor([1.0, 2.0]).double())


def test_basis_matrix_value():
    space = (2, 2)
    actions = (3,)
    matrix = BasisMatrix((1,), (0,), torch.arange(6).reshape(2, 3))
    matrix.check_space(space, actions)
    assert matrix.value(space, actions, (0, 1), (2,)) == 5.0
    assert matrix.value(space, actions, PartialFactors((1,), (0,)), (1,)) == 1.0
    with pytest.raises(ValueError):
        matrix.check_space(space, (2,))
    with pytest.raises(ValueError):
        BasisMatrix((1,), (0,), [1.0, 2.0])


def test_factored_2d_matrix_plus_equal():
    space = (2, 2)
    actions = (2,)
    matrix = Factored2DMatrix()
    matrix.plus_equal(space, actions, BasisMatrix((0,), (0,), torch.ones(2, 2)))
    matrix.plus_equal(space, actions, BasisMatrix((0,), (), torch.ones(2, 1)))
    matrix.plus_equal(space, actions, BasisMatrix((0,), (0,), torch.eye(2)))
    assert len(matrix) == 2
    assert torch.allclose(matrix[0].values, torch.tensor([[2.0, 1.0], [1.0, 2.0]]).double())
    assert matrix.value(space, actions, (1, 0), (1,)) == 3.0


if __name__ == "__main__":
    pytest.main()
