"""
Transform I/O Module

Save and load transforms as YAML documents.
"""

from .transform_io import (
    transform_to_dict,
    transform_from_dict,
    save_transform,
    load_transform,
)

__all__ = [
    "transform_to_dict",
    "transform_from_dict",
    "save_transform",
    "load_transform",
]
