"""
Configuration loading.
"""

from .config_loader import ConfigLoader, load_config, validate_config

__all__ = [
    "ConfigLoader",
    "load_config",
    "validate_config",
]
