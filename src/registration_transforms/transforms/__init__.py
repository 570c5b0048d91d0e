"""
Transform Variants

Concrete implementations of the Transform contract, registered by class name:
- TranslationTransform: x' = x + t
- Rigid2DTransform: rotation about a center plus translation (2D)
- AffineTransform: general matrix about a center plus translation
"""

from .registry import (
    register_transform,
    available_transforms,
    get_transform_class,
    create_transform,
    parse_transform_type,
)
from .linear_core import MatrixOffsetCore
from .translation import TranslationTransform
from .rigid import Rigid2DTransform
from .affine import AffineTransform

__all__ = [
    "register_transform",
    "available_transforms",
    "get_transform_class",
    "create_transform",
    "parse_transform_type",
    "MatrixOffsetCore",
    "TranslationTransform",
    "Rigid2DTransform",
    "AffineTransform",
]
