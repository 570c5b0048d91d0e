"""
Core Transform Module

The generic transform contract and the machinery built on its Jacobian:
- Parameter store, copy-in and update protocol
- Jacobian pseudo-inverse via SVD
- Vector and covariant-vector transport
- Diffusion tensor (PPD) and symmetric tensor reorientation
- Projection of image geometry through a transform
"""

from .exceptions import TransformError, SizeMismatchError, CloneError
from .transform import Transform
from .metadata import ImageGeometry, ImageMetadata, apply_to_image_metadata
from .jacobian import central_difference_jacobian, directional_derivative
from .linalg import pseudo_inverse
from .tensors import (
    pack_diffusion_tensor,
    unpack_diffusion_tensor,
    reorient_diffusion_tensor_ppd,
)

__all__ = [
    "TransformError",
    "SizeMismatchError",
    "CloneError",
    "Transform",
    "ImageGeometry",
    "ImageMetadata",
    "apply_to_image_metadata",
    "central_difference_jacobian",
    "directional_derivative",
    "pseudo_inverse",
    "pack_diffusion_tensor",
    "unpack_diffusion_tensor",
    "reorient_diffusion_tensor_ppd",
]
