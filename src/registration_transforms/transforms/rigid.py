"""
2D rigid transform: rotation by an angle about a center, then translation.

Parameters are ``[angle, tx, ty]`` (angle in radians); the fixed parameters
are the center ``[cx, cy]``.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import numpy as np

from ..core.exceptions import SizeMismatchError
from ..core.transform import Transform
from ..utils.config import NumericsConfig
from .linear_core import MatrixOffsetCore
from .registry import register_transform

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def rotation_matrix_2d(angle: float) -> "NDArray[np.floating]":
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s], [s, c]])


@register_transform
class Rigid2DTransform(Transform):

    def __init__(self, *, numerics: Optional[NumericsConfig] = None):
        super().__init__(2, 2, 3, 2, numerics=numerics)
        self._angle = 0.0
        self._core = MatrixOffsetCore.identity(2)

    @property
    def angle(self) -> float:
        return self._angle

    @property
    def translation(self) -> "NDArray[np.floating]":
        return self._core.translation.copy()

    @property
    def center(self) -> "NDArray[np.floating]":
        return self._core.center.copy()

    @property
    def matrix(self) -> "NDArray[np.floating]":
        return self._core.matrix.copy()

    def set_angle(self, angle: float) -> None:
        self._angle = float(angle)
        self._core = MatrixOffsetCore(rotation_matrix_2d(self._angle), self._core.translation, self._core.center)
        self.modified()

    def set_translation(self, translation: "ArrayLike") -> None:
        self._core = MatrixOffsetCore(self._core.matrix, translation, self._core.center)
        self.modified()

    def set_center(self, center: "ArrayLike") -> None:
        self.set_fixed_parameters(np.asarray(center, dtype=float))

    def get_parameters(self) -> "NDArray[np.floating]":
        self._parameters[0] = self._angle
        self._parameters[1:] = self._core.translation
        return super().get_parameters()

    def set_parameters(self, parameters: "ArrayLike") -> None:
        stored = self._store_parameters(parameters)
        self._angle = float(stored[0])
        self._core = MatrixOffsetCore(rotation_matrix_2d(self._angle), stored[1:], self._core.center)
        self.modified()

    def set_fixed_parameters(self, fixed_parameters: "ArrayLike") -> None:
        values = np.asarray(fixed_parameters)
        if values.ndim != 1 or values.size != 2:
            raise SizeMismatchError(f"Rigid2DTransform expects 2 fixed parameters, got {values.size}")
        stored = self._store_fixed_parameters(values)
        self._core = MatrixOffsetCore(self._core.matrix, self._core.translation, stored)
        self.modified()

    def transform_point(self, point: "ArrayLike") -> "NDArray[np.floating]":
        return self._core.apply(self._as_input_point(point))

    def compute_jacobian_with_respect_to_position(self, point: "ArrayLike") -> "NDArray[np.floating]":
        self._as_input_point(point)
        return self._core.matrix.copy()

    def is_linear(self) -> bool:
        return True

    def get_inverse_transform(self) -> "Rigid2DTransform":
        core = self._core.inverse()
        inverse = self.create_another()
        inverse.set_fixed_parameters(self._core.center)
        inverse.set_parameters(np.concatenate([[-self._angle], core.translation]))
        return inverse
