"""
Affine transform: x' = A (x - c) + c + t.

Parameters are the matrix A in row-major order followed by the translation t
(d*d + d values). The fixed parameters are the center c (d values).
"""

from __future__ import annotations

from typing import Any, Dict, Optional, TYPE_CHECKING

import numpy as np

from ..core.exceptions import SizeMismatchError
from ..core.transform import Transform
from ..utils.config import NumericsConfig
from ..utils.logging import setup_logger
from .linear_core import MatrixOffsetCore
from .registry import register_transform

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = setup_logger(__name__)


@register_transform
class AffineTransform(Transform):

    def __init__(self, dimension: int = 3, *, numerics: Optional[NumericsConfig] = None):
        super().__init__(dimension, dimension, dimension * dimension + dimension, dimension, numerics=numerics)
        self._core = MatrixOffsetCore.identity(dimension)
        self._sync_buffers()

    @classmethod
    def from_homogeneous(
        cls,
        homogeneous: "ArrayLike",
        center: Optional["ArrayLike"] = None,
        *,
        numerics: Optional[NumericsConfig] = None,
    ) -> "AffineTransform":
        """Create from a (d+1, d+1) homogeneous matrix (e.g. a 4x4 ICP result)."""
        core = MatrixOffsetCore.from_homogeneous(homogeneous, center)
        transform = cls(core.dimension, numerics=numerics)
        transform._set_core(core)
        return transform

    # ------------------------ Core accessors ------------------------
    @property
    def matrix(self) -> "NDArray[np.floating]":
        return self._core.matrix.copy()

    @property
    def translation(self) -> "NDArray[np.floating]":
        return self._core.translation.copy()

    @property
    def center(self) -> "NDArray[np.floating]":
        return self._core.center.copy()

    @property
    def offset(self) -> "NDArray[np.floating]":
        return self._core.offset

    def set_matrix(self, matrix: "ArrayLike") -> None:
        self._set_core(MatrixOffsetCore(matrix, self._core.translation, self._core.center))

    def set_translation(self, translation: "ArrayLike") -> None:
        self._set_core(MatrixOffsetCore(self._core.matrix, translation, self._core.center))

    def set_center(self, center: "ArrayLike") -> None:
        self._set_core(MatrixOffsetCore(self._core.matrix, self._core.translation, center))

    def to_homogeneous(self) -> "NDArray[np.floating]":
        return self._core.to_homogeneous()

    def _set_core(self, core: MatrixOffsetCore) -> None:
        if core.dimension != self.input_dimension:
            raise SizeMismatchError(
                f"Core of dimension {core.dimension} does not fit a "
                f"{self.input_dimension}D affine transform"
            )
        self._core = core
        self._sync_buffers()
        self.modified()

    def _sync_buffers(self) -> None:
        d = self.input_dimension
        self._parameters[: d * d] = self._core.matrix.ravel()
        self._parameters[d * d:] = self._core.translation
        self._fixed_parameters[:] = self._core.center

    # ------------------------ Parameters ------------------------
    def get_parameters(self) -> "NDArray[np.floating]":
        # The core is authoritative; refresh the raw buffer from it
        self._sync_buffers()
        return super().get_parameters()

    def set_parameters(self, parameters: "ArrayLike") -> None:
        stored = self._store_parameters(parameters)
        d = self.input_dimension
        self._core = MatrixOffsetCore(
            matrix=stored[: d * d].reshape(d, d),
            translation=stored[d * d:],
            center=self._core.center,
        )
        self.modified()

    def set_fixed_parameters(self, fixed_parameters: "ArrayLike") -> None:
        values = np.asarray(fixed_parameters)
        if values.ndim != 1 or values.size != self.input_dimension:
            raise SizeMismatchError(
                f"The number of fixed parameters ({values.size}) must equal "
                f"the transform dimension ({self.input_dimension})"
            )
        stored = self._store_fixed_parameters(values)
        self._core = MatrixOffsetCore(self._core.matrix, self._core.translation, stored)
        self.modified()

    # ------------------------ Capabilities ------------------------
    def transform_point(self, point: "ArrayLike") -> "NDArray[np.floating]":
        return self._core.apply(self._as_input_point(point))

    def transform_points(self, points: "ArrayLike") -> "NDArray[np.floating]":
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2 or pts.shape[1] != self.input_dimension:
            return super().transform_points(pts)
        return self._core.apply(pts)

    def compute_jacobian_with_respect_to_position(self, point: "ArrayLike") -> "NDArray[np.floating]":
        self._as_input_point(point)
        return self._core.matrix.copy()

    def is_linear(self) -> bool:
        return True

    def get_inverse_transform(self) -> Optional["AffineTransform"]:
        core = self._core.inverse()
        if core is None:
            logger.warning("Affine matrix is singular; no inverse transform exists.")
            return None
        inverse = self.create_another()
        inverse._set_core(core)
        return inverse

    def compose(self, other: "AffineTransform", *, pre: bool = False) -> None:
        """Compose with another affine transform of the same dimension, in place.

        With pre=False the result applies ``self`` first and then ``other``;
        with pre=True it applies ``other`` first. The center is kept.
        """
        if other.input_dimension != self.input_dimension:
            raise SizeMismatchError(
                f"Cannot compose {self.input_dimension}D and {other.input_dimension}D transforms"
            )
        if pre:
            h = self.to_homogeneous() @ other.to_homogeneous()
        else:
            h = other.to_homogeneous() @ self.to_homogeneous()
        self._set_core(MatrixOffsetCore.from_homogeneous(h, self._core.center))

    def _constructor_kwargs(self) -> Dict[str, Any]:
        kwargs = super()._constructor_kwargs()
        kwargs["dimension"] = self.input_dimension
        return kwargs
