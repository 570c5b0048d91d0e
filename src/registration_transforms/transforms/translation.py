"""
Translation transform: x' = x + t.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, TYPE_CHECKING

import numpy as np

from ..core.transform import Transform
from ..utils.config import NumericsConfig
from .registry import register_transform

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


@register_transform
class TranslationTransform(Transform):
    """Pure translation. Parameters are the offset; there are no fixed parameters."""

    def __init__(self, dimension: int = 3, *, numerics: Optional[NumericsConfig] = None):
        super().__init__(dimension, dimension, dimension, 0, numerics=numerics)
        self._offset = np.zeros(dimension)

    @property
    def offset(self) -> "NDArray[np.floating]":
        return self._offset.copy()

    def set_offset(self, offset: "ArrayLike") -> None:
        self.set_parameters(np.asarray(offset, dtype=float))

    def set_parameters(self, parameters: "ArrayLike") -> None:
        stored = self._store_parameters(parameters)
        self._offset = stored.astype(float)
        self.modified()

    def transform_point(self, point: "ArrayLike") -> "NDArray[np.floating]":
        return self._as_input_point(point) + self._offset

    def transform_points(self, points: "ArrayLike") -> "NDArray[np.floating]":
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2 or pts.shape[1] != self.input_dimension:
            return super().transform_points(pts)
        return pts + self._offset

    def compute_jacobian_with_respect_to_position(self, point: "ArrayLike") -> "NDArray[np.floating]":
        self._as_input_point(point)
        return np.eye(self.output_dimension, self.input_dimension)

    def is_linear(self) -> bool:
        return True

    def get_inverse_transform(self) -> "TranslationTransform":
        inverse = self.create_another()
        inverse.set_offset(-self._offset)
        return inverse

    def _constructor_kwargs(self) -> Dict[str, Any]:
        kwargs = super()._constructor_kwargs()
        kwargs["dimension"] = self.input_dimension
        return kwargs
