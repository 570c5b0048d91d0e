"""
Numerical Jacobian estimates used to verify closed-form variant Jacobians.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray
    from .transform import Transform


def central_difference_jacobian(
    transform: "Transform",
    point: "ArrayLike",
    step: Optional[float] = None,
) -> "NDArray[np.floating]":
    """Estimate d(transform_point)/d(point) by central differences.

    Args:
        transform: Transform to differentiate
        point: Input-space point
        step: Finite-difference step; defaults to transform.numerics.finite_difference_step

    Returns:
        (output_dimension, input_dimension) Jacobian estimate
    """
    h = transform.numerics.finite_difference_step if step is None else float(step)
    x = np.asarray(point, dtype=float)
    jacobian = np.empty((transform.output_dimension, transform.input_dimension))
    for j in range(transform.input_dimension):
        dx = np.zeros_like(x)
        dx[j] = h
        forward = transform.transform_point(x + dx)
        backward = transform.transform_point(x - dx)
        jacobian[:, j] = (forward - backward) / (2.0 * h)
    return jacobian


def directional_derivative(
    transform: "Transform",
    point: "ArrayLike",
    direction: "ArrayLike",
    step: Optional[float] = None,
) -> "NDArray[np.floating]":
    """Central-difference derivative of transform_point at ``point`` along ``direction``."""
    h = transform.numerics.finite_difference_step if step is None else float(step)
    x = np.asarray(point, dtype=float)
    v = np.asarray(direction, dtype=float)
    return (transform.transform_point(x + h * v) - transform.transform_point(x - h * v)) / (2.0 * h)
