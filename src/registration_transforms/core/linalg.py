"""
Dense linear-algebra helpers shared by the Jacobian engine and the tensor code.
"""

from __future__ import annotations

from typing import Tuple, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def pseudo_inverse(matrix: "ArrayLike", rcond: float = 1e-15) -> "NDArray[np.floating]":
    """Moore-Penrose pseudo-inverse computed through a singular value decomposition.

    For a square, well-conditioned matrix this is the ordinary inverse. For
    non-square or rank-deficient input the reciprocal is taken only for
    singular values above ``rcond * max(singular_values)``; the others are
    zeroed, so singular input degrades to a least-squares inverse instead of
    raising.

    Args:
        matrix: (m, n) matrix
        rcond: Relative cutoff for small singular values

    Returns:
        (n, m) pseudo-inverse
    """
    a = np.asarray(matrix, dtype=float)
    if a.ndim != 2:
        raise ValueError(f"Expected a 2D matrix, got shape {a.shape}")
    if a.size == 0:
        return np.zeros((a.shape[1], a.shape[0]), dtype=float)

    U, s, Vt = np.linalg.svd(a, full_matrices=False)

    cutoff = rcond * (s.max() if s.size else 0.0)
    s_inv = np.zeros_like(s)
    nonzero = s > cutoff
    s_inv[nonzero] = 1.0 / s[nonzero]

    return (Vt.T * s_inv) @ U.T


def normalize(vector: "NDArray[np.floating]") -> Tuple["NDArray[np.floating]", float]:
    """Return (unit vector, original norm). A zero vector is returned unchanged."""
    norm = float(np.linalg.norm(vector))
    if norm > 0.0:
        return vector / norm, norm
    return vector.copy(), norm


def symmetric_eigen(matrix: "NDArray[np.floating]") -> Tuple["NDArray[np.floating]", "NDArray[np.floating]"]:
    """Eigen-decomposition of a symmetric matrix.

    Returns:
        Tuple of (eigenvalues ascending, eigenvectors as columns)
    """
    sym = 0.5 * (matrix + matrix.T)
    return np.linalg.eigh(sym)
