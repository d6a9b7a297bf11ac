"""
Configuration file loading utilities.

This module handles the low-level loading of the TOML configuration file,
the optional `.env` file next to it, and `${VAR}` expansion from the
environment.
"""

import logging
import os
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..validation import ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)

ENV_FILE_VARIABLE = "CHAINBENCH_ENV_FILE"

_ENV_REFERENCE_RE = re.compile(r"\$\{([^}]+)\}")


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    return load_toml_file(config_path, "main configuration file")


def load_env_file(config_dir: Path) -> Optional[Path]:
    """
    Load environment variables from a `.env` file.

    The file named by ``CHAINBENCH_ENV_FILE`` takes precedence over a `.env`
    next to the configuration file. Variables already present in the
    environment are never overridden.

    Returns:
        The loaded file, or None if there was none
    """
    env_file = Path(os.getenv(ENV_FILE_VARIABLE, config_dir / ".env"))
    if not env_file.exists():
        logger.debug(f"No environment file at {env_file}")
        return None

    load_dotenv(env_file, override=False)
    logger.info(f"Loaded environment variables from: {env_file}")
    return env_file


def expand_env_vars(value: str) -> str:
    """
    Replace `${VAR}` references with environment values.

    References to unset variables are left in place so that callers can
    detect and reject them.
    """
    return _ENV_REFERENCE_RE.sub(
        lambda match: os.environ.get(match.group(1), match.group(0)), value
    )


def expand_env_in(value: Any) -> Any:
    """Apply ``expand_env_vars`` to every string inside nested lists and tables."""
    if isinstance(value, str):
        return expand_env_vars(value)
    if isinstance(value, list):
        return [expand_env_in(item) for item in value]
    if isinstance(value, dict):
        return {key: expand_env_in(item) for key, item in value.items()}
    return value
