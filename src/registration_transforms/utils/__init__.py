"""
Utility Functions Module

This module provides common utilities used across the package.
- Logging setup
- Typed configuration loading
"""

from .logging import setup_logger, configure_logging
from .config import AppConfig, NumericsConfig, MetadataConfig, LoggingConfig, load_config

__all__ = [
    "setup_logger",
    "configure_logging",
    "AppConfig",
    "NumericsConfig",
    "MetadataConfig",
    "LoggingConfig",
    "load_config",
]
