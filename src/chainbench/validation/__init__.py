"""
Validation and error handling for the chainbench package.

This module provides input validation and error handling with consistent
error reporting across the application.
"""

from .exceptions import (
    ConfigurationError,
    ErrorSeverity,
    ValidationError,
    handle_config_error,
    handle_error,
)
from .validators import (
    validate_ascending_levels,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_rpc_url,
    validate_weights,
)

__all__ = [
    # Core functionality
    "ConfigurationError",
    "ErrorSeverity",
    "ValidationError",
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_ascending_levels",
    "validate_enum_choice",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_rpc_url",
    "validate_weights",
]
