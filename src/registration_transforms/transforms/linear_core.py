"""
Matrix + offset core shared by the linear transform variants.

A linear (affine-type) transform is stored as

    x' = M (x - c) + c + t = M x + offset,   offset = t + c - M c

where M is the matrix, c the center of rotation and t the translation. The
variants hold one MatrixOffsetCore each instead of inheriting a common
matrix-offset base class.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np

from ..core.exceptions import SizeMismatchError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


@dataclass
class MatrixOffsetCore:
    matrix: "NDArray[np.floating]"
    translation: "NDArray[np.floating]"
    center: "NDArray[np.floating]"

    def __post_init__(self) -> None:
        self.matrix = np.array(self.matrix, dtype=float)
        self.translation = np.array(self.translation, dtype=float).ravel()
        self.center = np.array(self.center, dtype=float).ravel()
        if self.matrix.ndim != 2 or self.matrix.shape[0] != self.matrix.shape[1]:
            raise SizeMismatchError(f"Matrix must be square, got shape {self.matrix.shape}")
        dim = self.matrix.shape[0]
        if self.translation.shape != (dim,):
            raise SizeMismatchError(
                f"Translation must have shape ({dim},), got {self.translation.shape}"
            )
        if self.center.shape != (dim,):
            raise SizeMismatchError(f"Center must have shape ({dim},), got {self.center.shape}")

    @classmethod
    def identity(cls, dimension: int) -> "MatrixOffsetCore":
        return cls(
            matrix=np.eye(dimension),
            translation=np.zeros(dimension),
            center=np.zeros(dimension),
        )

    @classmethod
    def from_homogeneous(
        cls,
        homogeneous: "ArrayLike",
        center: Optional["ArrayLike"] = None,
    ) -> "MatrixOffsetCore":
        """Build from a (d+1, d+1) homogeneous matrix such as a 4x4 rigid transform.

        The last column of the homogeneous matrix is the offset; the
        translation is derived from it for the requested center.
        """
        h = np.asarray(homogeneous, dtype=float)
        if h.ndim != 2 or h.shape[0] != h.shape[1] or h.shape[0] < 2:
            raise SizeMismatchError(f"Expected a square homogeneous matrix, got shape {h.shape}")
        dim = h.shape[0] - 1
        matrix = h[:dim, :dim]
        offset = h[:dim, dim]
        c = np.zeros(dim) if center is None else np.asarray(center, dtype=float)
        return cls(matrix=matrix, translation=offset - c + matrix @ c, center=c)

    @property
    def dimension(self) -> int:
        return int(self.matrix.shape[0])

    @property
    def offset(self) -> "NDArray[np.floating]":
        return self.translation + self.center - self.matrix @ self.center

    def apply(self, points: "NDArray[np.floating]") -> "NDArray[np.floating]":
        """Map a single point (d,) or an (N, d) array of points."""
        return points @ self.matrix.T + self.offset

    def to_homogeneous(self) -> "NDArray[np.floating]":
        dim = self.dimension
        h = np.eye(dim + 1)
        h[:dim, :dim] = self.matrix
        h[:dim, dim] = self.offset
        return h

    def inverse(self) -> Optional["MatrixOffsetCore"]:
        """Core of the inverse mapping, keeping the same center; None if M is singular."""
        try:
            matrix_inv = np.linalg.inv(self.matrix)
        except np.linalg.LinAlgError:
            return None
        offset_inv = -matrix_inv @ self.offset
        translation_inv = offset_inv - self.center + matrix_inv @ self.center
        return MatrixOffsetCore(matrix=matrix_inv, translation=translation_inv, center=self.center)
