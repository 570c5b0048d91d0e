"""
Image geometry descriptors and their projection through a transform.

An image's physical placement is described by its origin, the spacing along
each grid axis and a direction-cosine matrix whose columns are the unit axis
directions. Projecting that geometry through the inverse of a linear
transform resamples nothing; only the header changes, so the pixels end up
where the transform would have put them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, TYPE_CHECKING

import numpy as np

from .exceptions import SizeMismatchError, TransformError
from .linalg import normalize
from ..utils.logging import setup_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray
    from .transform import Transform

logger = setup_logger(__name__)


class ImageGeometry(Protocol):
    """Anything exposing read/write origin, spacing and direction."""

    origin: "NDArray[np.floating]"
    spacing: "NDArray[np.floating]"
    direction: "NDArray[np.floating]"


@dataclass
class ImageMetadata:
    """Geometric header of an N-dimensional image.

    Attributes:
        origin: Physical coordinate of the first voxel, shape (N,)
        spacing: Physical voxel size along each grid axis, shape (N,)
        direction: Direction cosines, shape (N, N); column i is grid axis i
    """

    origin: "NDArray[np.floating]"
    spacing: Optional["NDArray[np.floating]"] = None
    direction: Optional["NDArray[np.floating]"] = None

    def __post_init__(self) -> None:
        self.origin = np.asarray(self.origin, dtype=float).copy()
        dim = self.origin.size
        if self.spacing is None:
            self.spacing = np.ones(dim)
        if self.direction is None:
            self.direction = np.eye(dim)
        self.spacing = np.asarray(self.spacing, dtype=float).copy()
        self.direction = np.asarray(self.direction, dtype=float).copy()

        if self.spacing.shape != (dim,):
            raise SizeMismatchError(f"Spacing must have shape ({dim},), got {self.spacing.shape}")
        if self.direction.shape != (dim, dim):
            raise SizeMismatchError(
                f"Direction must have shape ({dim}, {dim}), got {self.direction.shape}"
            )

    @property
    def dimension(self) -> int:
        return int(self.origin.size)

    def index_to_physical_point(self, index: "NDArray[np.floating]") -> "NDArray[np.floating]":
        """Physical location of a (continuous) grid index."""
        return self.origin + self.direction @ (self.spacing * np.asarray(index, dtype=float))


def apply_to_image_metadata(
    transform: "Transform",
    image: ImageGeometry,
    *,
    warn_on_nonlinear: bool = True,
) -> None:
    """Move an image's geometry through the inverse of ``transform``, in place.

    Args:
        transform: Transform whose input and output dimensions match the image
        image: Descriptor exposing origin, spacing and direction
        warn_on_nonlinear: Log a warning when the transform is not linear

    Raises:
        SizeMismatchError: If the image dimension differs from the transform's
        TransformError: If the transform has no inverse
    """
    origin = np.asarray(image.origin, dtype=float)
    dim = origin.size
    if dim != transform.input_dimension or dim != transform.output_dimension:
        raise SizeMismatchError(
            f"Image dimension {dim} does not match transform dimensions "
            f"({transform.input_dimension} -> {transform.output_dimension})"
        )

    if warn_on_nonlinear and not transform.is_linear():
        logger.warning(
            "apply_to_image_metadata was invoked with non-linear transform of type %s. "
            "This might produce unexpected results.",
            transform.get_transform_type_as_string(),
        )

    inverse = transform.get_inverse_transform()
    if inverse is None:
        raise TransformError(
            f"{type(transform).__name__} has no inverse; cannot project image metadata"
        )

    new_origin = inverse.transform_point(origin)

    spacing = np.asarray(image.spacing, dtype=float).copy()
    direction = np.asarray(image.direction, dtype=float).copy()
    for i in range(dim):
        axis = direction[:, i] * spacing[i]
        axis = inverse.transform_vector(axis, origin)
        axis, spacing[i] = normalize(axis)
        direction[:, i] = axis

    image.origin = new_origin
    image.direction = direction
    image.spacing = spacing

    logger.debug("Projected image metadata: origin=%s spacing=%s", new_origin, spacing)
