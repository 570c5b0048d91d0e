"""
Configuration management for registration-transforms.

Provides a typed pydantic model and YAML loader with sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Literal, Any, Dict

from pydantic import BaseModel, Field, ValidationError
import numpy as np
import yaml


# -----------------------
# Typed config structures
# -----------------------


class NumericsConfig(BaseModel):
    pinv_rcond: float = Field(
        default=1e-15,
        ge=0.0,
        description="Relative cutoff for small singular values in the Jacobian pseudo-inverse",
    )
    finite_difference_step: float = Field(
        default=1e-6,
        gt=0.0,
        description="Step used by central-difference Jacobian estimates",
    )
    parameter_dtype: Literal["float64", "float32"] = Field(
        default="float64",
        description="Storage type of parameter and fixed parameter arrays",
    )

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.parameter_dtype)


class MetadataConfig(BaseModel):
    # Projecting image geometry through a non-linear transform is only an
    # approximation; a warning is emitted unless disabled here.
    warn_on_nonlinear: bool = Field(default=True)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    file: Optional[str] = Field(default=None)


class AppConfig(BaseModel):
    numerics: NumericsConfig = Field(default_factory=NumericsConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# -----------------------
# Loader
# -----------------------


def _project_root() -> Path:
    # src/registration_transforms/utils/config.py -> repository root
    return Path(__file__).resolve().parents[3]


def load_config(path: Optional[str | Path] = None, *, allow_missing: bool = True) -> AppConfig:
    """Read a YAML file into AppConfig.

    With no path, config/default.yaml under the repository root is used. A
    missing file yields the model defaults unless allow_missing is False.

    Raises:
        FileNotFoundError: File missing and allow_missing is False
        ValueError: The file does not validate
    """
    cfg_path: Path
    if path is None:
        cfg_path = _project_root() / "config" / "default.yaml"
    else:
        cfg_path = Path(path)

    if not cfg_path.exists():
        if allow_missing:
            return AppConfig()
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {cfg_path}: {e}")
