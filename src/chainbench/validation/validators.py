"""
Value validation functions.

Each validator returns the normalised value or raises ValidationError with
the dotted configuration field name in the message.
"""

import re
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

from .exceptions import ValidationError

_UNRESOLVED_VAR_RE = re.compile(r"\$\{[^}]*\}")


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is a positive integer.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a positive float.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "choice",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: List of valid choices
        field_name: Name of the field being validated
        case_sensitive: Whether comparison should be case-sensitive

    Returns:
        The matching choice from valid_choices

    Raises:
        ValidationError: If value is not in valid_choices
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be a string, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )

    for choice in valid_choices:
        if value == choice or (not case_sensitive and value.lower() == choice.lower()):
            return choice

    raise ValidationError(
        f"{field_name} must be one of {valid_choices}, got '{value}'",
        field_name=field_name,
        value=value
    )


def validate_ascending_levels(value: Any, field_name: str = "levels") -> List[int]:
    """
    Validate a strictly ascending, non-empty list of positive integers.

    Used for the concurrency levels of the progressive drive mode.
    """
    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError(
            f"{field_name} must be a non-empty list",
            field_name=field_name,
            value=value
        )

    levels = [
        validate_positive_integer(level, min_value=1, field_name=f"{field_name}[{i}]")
        for i, level in enumerate(value)
    ]
    for previous, current in zip(levels, levels[1:]):
        if current <= previous:
            raise ValidationError(
                f"{field_name} must be strictly ascending, got {levels}",
                field_name=field_name,
                value=value
            )
    return levels


def validate_weights(value: Any, field_name: str = "weights") -> Dict[str, float]:
    """
    Validate a mapping of names to non-negative weights with a positive sum.

    Returns:
        A new dictionary with float weights
    """
    if not isinstance(value, Mapping) or not value:
        raise ValidationError(
            f"{field_name} must be a non-empty table of name = weight",
            field_name=field_name,
            value=value
        )

    weights = {}
    for name, weight in value.items():
        weights[str(name)] = validate_positive_float(
            weight, min_value=0.0, field_name=f"{field_name}.{name}"
        )
    if sum(weights.values()) <= 0:
        raise ValidationError(
            f"{field_name} must sum to > 0",
            field_name=field_name,
            value=value
        )
    return weights


def validate_rpc_url(url: Any, field_name: str = "rpc_url") -> str:
    """
    Validate an HTTP(S) RPC endpoint URL.

    Raises:
        ValidationError: If the URL is empty, still contains an unresolved
            ``${VAR}`` reference, or is not an http/https URL with a host
    """
    if not isinstance(url, str) or not url.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=url
        )

    url = url.strip()
    if _UNRESOLVED_VAR_RE.search(url):
        raise ValidationError(
            f"{field_name} references an unset environment variable: {url}",
            field_name=field_name,
            value=url
        )

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(
            f"{field_name} must be an http(s) URL, got '{url}'",
            field_name=field_name,
            value=url
        )
    return url
