"""
Second-order tensor reorientation.

Two mappings are provided:

- Preservation of principal direction (PPD) for 3D diffusion tensors. The
  tensor is eigen-decomposed, its two leading eigenvectors are pushed through
  the linear part of the inverse Jacobian and re-orthonormalized, and the
  tensor is rebuilt from the new frame with its original eigenvalues. The
  result stays symmetric positive semi-definite under shear.
- Congruent conjugation ``J @ T @ J_inv`` for general symmetric tensors of
  any dimension.

Diffusion tensors travel either as a (3, 3) matrix or as the six
upper-triangular entries ``(xx, xy, xz, yy, yz, zz)``.
"""

from __future__ import annotations

from typing import Tuple, TYPE_CHECKING

import numpy as np

from .exceptions import SizeMismatchError
from .linalg import normalize, symmetric_eigen

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

DIFFUSION_TENSOR_SIZE = 6

# Row/column of each packed entry inside the 3x3 matrix
_UPPER_TRIANGLE = np.triu_indices(3)


def unpack_diffusion_tensor(values: "ArrayLike") -> "NDArray[np.floating]":
    """Expand six upper-triangular entries into a symmetric 3x3 matrix."""
    packed = np.asarray(values, dtype=float).ravel()
    if packed.size != DIFFUSION_TENSOR_SIZE:
        raise SizeMismatchError(
            f"Diffusion tensor must have {DIFFUSION_TENSOR_SIZE} elements, got {packed.size}"
        )
    matrix = np.zeros((3, 3), dtype=float)
    matrix[_UPPER_TRIANGLE] = packed
    matrix.T[_UPPER_TRIANGLE] = packed
    return matrix


def pack_diffusion_tensor(matrix: "NDArray[np.floating]") -> "NDArray[np.floating]":
    """Collapse a symmetric 3x3 matrix to its six upper-triangular entries."""
    return np.asarray(matrix, dtype=float)[_UPPER_TRIANGLE].copy()


def as_diffusion_tensor_matrix(tensor: "ArrayLike") -> Tuple["NDArray[np.floating]", bool]:
    """Normalize a diffusion tensor argument.

    Returns:
        Tuple of (3x3 matrix, True if the input was in packed 6-entry form)
    """
    arr = np.asarray(tensor, dtype=float)
    if arr.shape == (3, 3):
        return arr.copy(), False
    if arr.ndim == 1:
        return unpack_diffusion_tensor(arr), True
    raise SizeMismatchError(
        f"Diffusion tensor must be a 3x3 matrix or have {DIFFUSION_TENSOR_SIZE} elements, "
        f"got shape {arr.shape}"
    )


def as_square_tensor(tensor: "ArrayLike", dimension: int) -> Tuple["NDArray[np.floating]", bool]:
    """Normalize a symmetric second-rank tensor argument.

    Accepts a (dimension, dimension) matrix or a flattened row-major array of
    dimension**2 entries.

    Returns:
        Tuple of (matrix, True if the input was flattened)
    """
    arr = np.asarray(tensor, dtype=float)
    if arr.ndim == 1:
        if arr.size != dimension * dimension:
            raise SizeMismatchError(
                f"Input tensor does not have {dimension * dimension} elements, got {arr.size}"
            )
        return arr.reshape(dimension, dimension).copy(), True
    if arr.shape != (dimension, dimension):
        raise SizeMismatchError(
            f"Input tensor must have shape ({dimension}, {dimension}), got {arr.shape}"
        )
    return arr.copy(), False


def ppd_linear_block(inverse_jacobian: "NDArray[np.floating]") -> "NDArray[np.floating]":
    """Upper-left 3x3 block of the inverse Jacobian, identity-filled where it is smaller."""
    block = np.eye(3, dtype=float)
    rows = min(inverse_jacobian.shape[0], 3)
    cols = min(inverse_jacobian.shape[1], 3)
    block[:rows, :cols] = inverse_jacobian[:rows, :cols]
    return block


def reorient_diffusion_tensor_ppd(
    tensor: "NDArray[np.floating]",
    inverse_jacobian: "NDArray[np.floating]",
) -> "NDArray[np.floating]":
    """Reorient a 3x3 diffusion tensor preserving its principal direction.

    Args:
        tensor: Symmetric 3x3 tensor
        inverse_jacobian: (input_dim, output_dim) inverse Jacobian at the tensor's location

    Returns:
        Reoriented symmetric 3x3 tensor
    """
    block = ppd_linear_block(inverse_jacobian)

    eigenvalues, eigenvectors = symmetric_eigen(tensor)
    primary = eigenvectors[:, 2]
    secondary = eigenvectors[:, 1]

    e1, _ = normalize(block @ primary)

    # Keep only the part of the mapped secondary direction perpendicular to e1
    e2 = block @ secondary
    dp = float(e2 @ e1)
    if dp < 0.0:
        e2 = -e2
        dp = -dp
    e2, _ = normalize(e2 - e1 * dp)

    e3 = np.cross(e1, e2)

    return (
        eigenvalues[2] * np.outer(e1, e1)
        + eigenvalues[1] * np.outer(e2, e2)
        + eigenvalues[0] * np.outer(e3, e3)
    )


def conjugate_tensor(
    tensor: "NDArray[np.floating]",
    jacobian: "NDArray[np.floating]",
    inverse_jacobian: "NDArray[np.floating]",
) -> "NDArray[np.floating]":
    """Map a (in, in) tensor to (out, out) as ``jacobian @ tensor @ inverse_jacobian``."""
    return jacobian @ tensor @ inverse_jacobian
