"""
Configuration management for the chainbench package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

# Main configuration interface
from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    load_config,
    set_config_path,
)

# For advanced usage - direct access to loaders and validators
from .loader import expand_env_in, expand_env_vars, load_env_file, load_main_config, load_toml_file
from .validators import (
    validate_general_config,
    validate_load_config,
    validate_monitor_config,
    validate_networks_config,
    validate_storage_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    "load_config",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "load_env_file",
    "expand_env_vars",
    "expand_env_in",
    "validate_general_config",
    "validate_load_config",
    "validate_monitor_config",
    "validate_networks_config",
    "validate_storage_config",
]
