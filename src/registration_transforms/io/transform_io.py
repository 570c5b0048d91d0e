"""
Transform persistence

Transforms are stored as YAML documents holding the type string, the
parameters and the fixed parameters:

    transform_type: AffineTransform_double_3_3
    fixed_parameters: [0.0, 0.0, 0.0]
    parameters: [1.0, 0.0, ...]

Loading resolves the class through the transform registry and restores the
fixed parameters before the parameters, so variants that derive state from
the center see it when the parameters arrive.
"""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Any, Dict, List, Union

import numpy as np
import yaml

from ..core.exceptions import SizeMismatchError, TransformError
from ..core.transform import Transform
from ..transforms.registry import get_transform_class, parse_transform_type
from ..utils.config import NumericsConfig
from ..utils.logging import setup_logger

logger = setup_logger(__name__)


def transform_to_dict(transform: Transform) -> Dict[str, Any]:
    """Serialize a transform to plain Python types."""
    return {
        "transform_type": transform.get_transform_type_as_string(),
        "fixed_parameters": [float(v) for v in transform.get_fixed_parameters()],
        "parameters": [float(v) for v in transform.get_parameters()],
    }


def transform_from_dict(data: Dict[str, Any]) -> Transform:
    """Rebuild a transform from transform_to_dict output.

    Raises:
        TransformError: Unknown or malformed transform type
        SizeMismatchError: Parameter lengths do not fit the transform
    """
    try:
        type_string = data["transform_type"]
    except KeyError:
        raise TransformError("Transform document has no 'transform_type'") from None

    name, dtype_name, n_in, n_out = parse_transform_type(type_string)
    cls = get_transform_class(name)
    numerics = NumericsConfig(parameter_dtype=dtype_name)

    if n_in == n_out and "dimension" in inspect.signature(cls).parameters:
        transform = cls(dimension=n_in, numerics=numerics)
    else:
        transform = cls(numerics=numerics)

    if (transform.input_dimension, transform.output_dimension) != (n_in, n_out):
        raise SizeMismatchError(
            f"{name} cannot be built with dimensions {n_in} -> {n_out}"
        )

    fixed = np.asarray(data.get("fixed_parameters", []), dtype=float)
    params = np.asarray(data.get("parameters", []), dtype=float)
    if params.size != transform.get_number_of_parameters():
        raise SizeMismatchError(
            f"{type_string} expects {transform.get_number_of_parameters()} parameters, "
            f"got {params.size}"
        )

    if fixed.size or transform.get_number_of_fixed_parameters():
        transform.set_fixed_parameters(fixed)
    transform.set_parameters(params)
    return transform


def save_transform(transform: Union[Transform, List[Transform]], output_file: Union[str, Path]) -> None:
    """Write one transform, or a list of transforms, to a YAML file.

    Args:
        transform: Transform or list of transforms (e.g. one per pyramid level)
        output_file: Path to output file
    """
    transforms = transform if isinstance(transform, list) else [transform]
    documents = [transform_to_dict(t) for t in transforms]

    path = Path(output_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump({"transforms": documents}, f, sort_keys=False)
    logger.info("Saved %d transform(s) to %s", len(documents), path)


def load_transform(input_file: Union[str, Path]) -> List[Transform]:
    """Read every transform stored in a YAML file written by save_transform.

    Returns:
        List of transforms in file order
    """
    path = Path(input_file)
    if not path.exists():
        raise FileNotFoundError(f"Transform file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    documents = raw.get("transforms")
    if not isinstance(documents, list):
        raise TransformError(f"Invalid transform file {path}: expected a 'transforms' list")

    transforms = [transform_from_dict(doc) for doc in documents]
    logger.info("Loaded %d transform(s) from %s", len(transforms), path)
    return transforms
