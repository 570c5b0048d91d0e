"""
Transform variant registry.

Variants register their class under their class name. Registration setup
code and the transform file loader select the active variant through this
table instead of hard-coding class references.
"""

from __future__ import annotations

from typing import Dict, Tuple, Type, TypeVar

from ..core.exceptions import TransformError
from ..core.transform import Transform

T = TypeVar("T", bound=Type[Transform])

_REGISTRY: Dict[str, Type[Transform]] = {}

_PRECISIONS = {"double": "float64", "float": "float32"}


def register_transform(cls: T) -> T:
    """Class decorator adding a Transform variant to the registry."""
    name = cls.__name__
    existing = _REGISTRY.get(name)
    if existing is not None and existing is not cls:
        raise TransformError(f"A different transform is already registered as '{name}'")
    _REGISTRY[name] = cls
    return cls


def available_transforms() -> Tuple[str, ...]:
    return tuple(sorted(_REGISTRY))


def get_transform_class(name: str) -> Type[Transform]:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise TransformError(
            f"Unknown transform type '{name}'. Available: {', '.join(available_transforms())}"
        ) from None


def create_transform(name: str, **kwargs) -> Transform:
    """Instantiate a registered variant by name, forwarding constructor arguments."""
    return get_transform_class(name)(**kwargs)


def parse_transform_type(type_string: str) -> Tuple[str, str, int, int]:
    """Split ``<ClassName>_<double|float>_<in>_<out>`` into its parts.

    Returns:
        Tuple of (class name, numpy dtype name, input dimension, output dimension)
    """
    parts = type_string.rsplit("_", 3)
    if len(parts) != 4 or parts[1] not in _PRECISIONS:
        raise TransformError(f"Malformed transform type string '{type_string}'")
    name, precision, n_in, n_out = parts
    try:
        return name, _PRECISIONS[precision], int(n_in), int(n_out)
    except ValueError:
        raise TransformError(f"Malformed transform type string '{type_string}'") from None
