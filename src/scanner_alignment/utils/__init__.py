"""
Utility Functions Module

This module provides common utility functions used across the scanner alignment project.
- Logging setup
- Typed YAML configuration
- JSON export of alignment results
"""

from .logging import setup_logger, set_package_log_level
from .config import AppConfig, load_config
from .export import (
    alignment_to_dict,
    default_export_path,
    export_alignment_json,
    load_alignment_json,
)

__all__ = [
    "setup_logger",
    "set_package_log_level",
    "AppConfig",
    "load_config",
    "alignment_to_dict",
    "default_export_path",
    "export_alignment_json",
    "load_alignment_json",
]
