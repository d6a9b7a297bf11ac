"""
Configuration management and singleton pattern.

This module provides the main configuration loading interface, caching the
validated AppConfig so the files are read only once per process.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import load_env_file, load_main_config
from .validators import (
    validate_general_config,
    validate_load_config,
    validate_monitor_config,
    validate_networks_config,
    validate_storage_config,
)

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Default path of the main configuration file; overridable with set_config_path().
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path and drop the cached configuration.

    Args:
        config_path: Path to the main config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the application configuration without caching it.

    The `.env` file (see ``load_env_file``) is loaded first so that its
    variables are available for `${VAR}` expansion in RPC URLs.

    Args:
        config_path: Path to the main config.toml file

    Returns:
        Fully validated AppConfig instance

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the file is malformed
    """
    config_path = Path(config_path)
    try:
        config_dir = config_path.parent
        load_env_file(config_dir)
        data = load_main_config(config_path)

        app_config = AppConfig(
            general=validate_general_config(data.get("general", {}), base_dir=config_dir),
            load=validate_load_config(data.get("load", {})),
            monitor=validate_monitor_config(data.get("monitor", {})),
            storage=validate_storage_config(data.get("storage", {})),
            networks=validate_networks_config(data.get("networks", [])),
        )

        logger.info(
            f"Successfully loaded configuration with {len(app_config.networks)} network(s), "
            f"load mode '{app_config.load.mode.value}'"
        )
        return app_config

    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the file is malformed
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "networks_count": len(_CONFIG.networks) if _CONFIG else 0,
        "load_mode": _CONFIG.load.mode.value if _CONFIG else None,
    }
