#  Copyright (c) 2024. David Boetius
#  Licensed under the MIT License
import numpy as np
import torch

__all__ = [
    "TENSOR_LIKE",
    "STOCHASTIC_ATOL",
    "to_tensor",
    "copy_to_tensor",
    "check_stochastic",
]


TENSOR_LIKE = (
    torch.Tensor
    | np.ndarray
    | list[float | int]
    | list[list[float | int]]
    | float
    | int
)

# Tolerance for rows of conditional probability tables summing to one.
STOCHASTIC_ATOL = 1e-9


def to_tensor(
    array_like: TENSOR_LIKE, dtype: torch.dtype | None = None
) -> torch.Tensor:
    """
    Transforms an array like (torch.Tensor, np.ndarray, list, ...)
    into a tensor.
    Tensors are returned as-is (converted to :code:`dtype`).
    Numpy arrays are converted using `torch.as_tensor`.
    The tensor uses the same storage as the numpy array.
    Other objects are converted using `torch.tensor`.
    """
    if isinstance(array_like, torch.Tensor):
        return array_like.to(dtype)
    elif isinstance(array_like, np.ndarray):
        return torch.as_tensor(array_like, dtype=dtype)
    else:
        return torch.tensor(array_like, dtype=dtype)


def copy_to_tensor(array_like: TENSOR_LIKE) -> torch.Tensor:
    """
    Transforms an array like (torch.Tensor, np.ndarray, list, ...)
    into a tensor.
    Tensors as input are copied.
    Equally so for numpy arrays.
    The returned tensor won't refer to the same storage.
    Data in lists is copied anyway when creating a tensor.
    """
    if isinstance(array_like, torch.Tensor):
        return array_like.detach().clone()
    elif isinstance(array_like, np.ndarray):
        return torch.as_tensor(array_like).clone()
    else:
        return torch.tensor(array_like)


def check_stochastic(matrix: torch.Tensor, atol: float = STOCHASTIC_ATOL):
    """
    Checks that :code:`matrix` is a row-stochastic matrix:
    all entries lie in [0.0, 1.0] and every row sums to one.

    Row sums are computed in double precision.
    For floating point types less precise than double, the tolerance
    grows with the machine epsilon of :code:`matrix.dtype` and the number
    of columns.

    :param matrix: A two-dimensional tensor.
    :param atol: The absolute tolerance for the row sums.
    :raises ValueError: If :code:`matrix` is not row-stochastic.
    """
    if matrix.ndim != 2:
        raise ValueError(f"Expected a two-dimensional matrix. Got shape: {matrix.shape}")
    if not torch.all((0.0 <= matrix) & (matrix <= 1.0)):
        raise ValueError(
            f"All entries of a conditional probability table must lie in [0.0, 1.0]. "
            f"Got: {matrix}"
        )
    if matrix.is_floating_point():
        atol = max(atol, matrix.size(-1) * torch.finfo(matrix.dtype).eps)
    row_sums = torch.sum(matrix.double(), dim=-1)
    if not torch.allclose(row_sums, torch.ones_like(row_sums), rtol=0.0, atol=atol):
        raise ValueError(
            f"Rows of a conditional probability table must sum to one. "
            f"Got row sums: {row_sums}"
        )
