"""
Registration Transforms Package

Spatial transforms for image registration pipelines. A transform holds a
mutable parameter vector describing a coordinate mapping, evaluates the
Jacobian of that mapping at arbitrary points, and uses it to carry points,
vectors, covariant vectors, diffusion tensors, symmetric tensors and image
geometry from one space to another.
"""

__version__ = "0.1.0"

from .core import *
from .transforms import *
from .io import *
from .utils import *

__all__ = [
    "core",
    "transforms",
    "io",
    "utils",
]
