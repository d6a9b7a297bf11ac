"""
Configuration validation utilities.

Each function validates one section of the raw TOML data and builds the
corresponding frozen configuration object. Failures raise ValidationError
naming the dotted field (e.g. ``load.batch_size``).
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.config import (
    GeneralConfig,
    LoadConfig,
    LoadMode,
    MonitorConfig,
    NetworkConfig,
    OperationSpec,
    StorageConfig,
    TargetSelection,
)
from ..validation import (
    ConfigurationError,
    ValidationError,
    validate_ascending_levels,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_rpc_url,
    validate_weights,
)
from .loader import expand_env_in, expand_env_vars

logger = logging.getLogger(__name__)

DEFAULT_SUSTAINED_DURATION_MS = 300000


def _require_table(value: Any, field_name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{field_name} must be a table", field_name=field_name, value=value)
    return value


def _require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean", field_name=field_name, value=value)
    return value


def validate_general_config(general_data: Dict[str, Any], base_dir: Optional[Path] = None) -> GeneralConfig:
    """
    Validate the `[general]` table.

    A relative ``output_dir`` is resolved against ``base_dir`` (the directory
    of the configuration file) when given.
    """
    general_data = _require_table(general_data, "general")

    log_level = validate_enum_choice(
        general_data.get("log_level", "INFO"),
        valid_choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        field_name="general.log_level",
        case_sensitive=False,
    )

    output_dir_value = general_data.get("output_dir", "reports")
    if not isinstance(output_dir_value, str) or not output_dir_value.strip():
        raise ValidationError(
            "general.output_dir must be a non-empty string",
            field_name="general.output_dir",
            value=output_dir_value,
        )
    output_dir = Path(output_dir_value)
    if base_dir is not None and not output_dir.is_absolute():
        output_dir = base_dir / output_dir

    return GeneralConfig(log_level=log_level, output_dir=output_dir)


def validate_load_config(load_data: Dict[str, Any]) -> LoadConfig:
    """
    Validate the `[load]` table.

    ``concurrency`` defaults to ``batch_size``; an omitted
    ``total_duration_ms`` defaults to five minutes in the sustained mode and
    to no time bound otherwise.
    """
    load_data = _require_table(load_data, "load")

    mode = LoadMode(
        validate_enum_choice(
            load_data.get("mode", LoadMode.SUSTAINED.value),
            valid_choices=[m.value for m in LoadMode],
            field_name="load.mode",
            case_sensitive=False,
        )
    )

    batch_size = validate_positive_integer(
        load_data.get("batch_size", 5), min_value=1, max_value=10000, field_name="load.batch_size"
    )
    concurrency = validate_positive_integer(
        load_data.get("concurrency", batch_size),
        min_value=1,
        max_value=10000,
        field_name="load.concurrency",
    )
    concurrency_levels = validate_ascending_levels(
        load_data.get("concurrency_levels", [5, 10, 20]), field_name="load.concurrency_levels"
    )
    batch_interval_ms = validate_positive_integer(
        load_data.get("batch_interval_ms", 2000), min_value=0, field_name="load.batch_interval_ms"
    )

    if "total_duration_ms" in load_data:
        total_duration_ms = validate_positive_integer(
            load_data["total_duration_ms"], min_value=1, field_name="load.total_duration_ms"
        )
    elif mode is LoadMode.SUSTAINED:
        total_duration_ms = DEFAULT_SUSTAINED_DURATION_MS
    else:
        total_duration_ms = None

    total_operations = validate_positive_integer(
        load_data.get("total_operations", 100), min_value=1, field_name="load.total_operations"
    )
    operation_mix = validate_weights(
        load_data.get("operation_mix", {"read": 0.8, "create": 0.2}),
        field_name="load.operation_mix",
    )
    target_selection = TargetSelection(
        validate_enum_choice(
            load_data.get("target_selection", TargetSelection.RANDOM_PER_BATCH.value),
            valid_choices=[s.value for s in TargetSelection],
            field_name="load.target_selection",
        )
    )
    operation_timeout = validate_positive_float(
        load_data.get("operation_timeout_seconds", 60.0),
        min_value=0.001,
        field_name="load.operation_timeout_seconds",
    )
    progress_interval = validate_positive_float(
        load_data.get("progress_log_interval_seconds", 30.0),
        min_value=0.0,
        field_name="load.progress_log_interval_seconds",
    )

    seed = load_data.get("seed")
    if seed is not None:
        seed = validate_positive_integer(seed, min_value=0, field_name="load.seed")

    return LoadConfig(
        mode=mode,
        concurrency=concurrency,
        concurrency_levels=tuple(concurrency_levels),
        batch_size=batch_size,
        batch_interval_ms=batch_interval_ms,
        total_duration_ms=total_duration_ms,
        total_operations=total_operations,
        operation_mix=operation_mix,
        target_selection=target_selection,
        operation_timeout_seconds=operation_timeout,
        progress_log_interval_seconds=progress_interval,
        seed=seed,
    )


def validate_monitor_config(monitor_data: Dict[str, Any]) -> MonitorConfig:
    """
    Validate the `[monitor]` table.

    Raises:
        ValidationError: If validation fails, including an error backoff that
            is not longer than the poll interval
    """
    monitor_data = _require_table(monitor_data, "monitor")

    poll_interval = validate_positive_float(
        monitor_data.get("poll_interval_seconds", 2.0),
        min_value=0.001,
        max_value=3600.0,
        field_name="monitor.poll_interval_seconds",
    )
    error_backoff = validate_positive_float(
        monitor_data.get("error_backoff_seconds", 5.0),
        min_value=0.001,
        max_value=3600.0,
        field_name="monitor.error_backoff_seconds",
    )
    if error_backoff <= poll_interval:
        raise ValidationError(
            f"monitor.error_backoff_seconds ({error_backoff}) must be greater than "
            f"monitor.poll_interval_seconds ({poll_interval})",
            field_name="monitor.error_backoff_seconds",
            value=error_backoff,
        )

    duration = validate_positive_float(
        monitor_data.get("duration_seconds", 120.0),
        min_value=0.0,
        field_name="monitor.duration_seconds",
    )
    request_timeout = validate_positive_float(
        monitor_data.get("request_timeout_seconds", 10.0),
        min_value=0.001,
        max_value=600.0,
        field_name="monitor.request_timeout_seconds",
    )

    return MonitorConfig(
        poll_interval_seconds=poll_interval,
        error_backoff_seconds=error_backoff,
        duration_seconds=duration,
        request_timeout_seconds=request_timeout,
    )


def validate_storage_config(storage_data: Dict[str, Any]) -> StorageConfig:
    storage_data = _require_table(storage_data, "storage")
    try:
        return StorageConfig.from_dict(storage_data)
    except ValueError as e:
        raise ValidationError(f"storage: {e}", field_name="storage", value=storage_data) from e


def _validate_operation(data: Any, field_name: str) -> OperationSpec:
    data = _require_table(data, field_name)

    method = data.get("method")
    if not isinstance(method, str) or not method.strip():
        raise ValidationError(
            f"{field_name}.method must be a non-empty string",
            field_name=f"{field_name}.method",
            value=method,
        )

    params = data.get("params", [])
    if not isinstance(params, list):
        raise ValidationError(
            f"{field_name}.params must be a list",
            field_name=f"{field_name}.params",
            value=params,
        )

    return OperationSpec(
        method=method.strip(),
        params=tuple(expand_env_in(params)),
        wait_for_receipt=_require_bool(
            data.get("wait_for_receipt", False), f"{field_name}.wait_for_receipt"
        ),
        receipt_timeout_seconds=validate_positive_float(
            data.get("receipt_timeout_seconds", 60.0),
            min_value=0.001,
            field_name=f"{field_name}.receipt_timeout_seconds",
        ),
        receipt_poll_interval_seconds=validate_positive_float(
            data.get("receipt_poll_interval_seconds", 1.0),
            min_value=0.001,
            field_name=f"{field_name}.receipt_poll_interval_seconds",
        ),
    )


def _validate_rpc_urls(urls: Any, field_name: str, network_name: str) -> List[str]:
    if not isinstance(urls, list) or not urls:
        raise ValidationError(
            f"{field_name} must be a non-empty list", field_name=field_name, value=urls
        )

    valid_urls = []
    for i, url in enumerate(urls):
        expanded = expand_env_vars(url) if isinstance(url, str) else url
        try:
            valid_urls.append(validate_rpc_url(expanded, field_name=f"{field_name}[{i}]"))
        except ValidationError as e:
            logger.warning(f"Skipping provider for {network_name}: {e}")

    if not valid_urls:
        raise ConfigurationError(
            f"No valid providers could be created for {network_name}",
            field_name=field_name,
            value=urls,
        )
    return valid_urls


def validate_networks_config(networks_data: Any) -> List[NetworkConfig]:
    """
    Validate the `[[networks]]` array.

    ``${VAR}`` references in RPC URLs are expanded from the environment; a
    URL that cannot be resolved is skipped with a warning.

    Raises:
        ValidationError: If validation fails
        ConfigurationError: If a network is left without any usable URL
    """
    if not isinstance(networks_data, list) or not networks_data:
        raise ValidationError(
            "networks must contain at least one [[networks]] entry",
            field_name="networks",
            value=networks_data,
        )

    networks = []
    seen_names = set()
    for i, entry in enumerate(networks_data):
        entry = _require_table(entry, f"networks[{i}]")

        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(
                f"networks[{i}].name must be a non-empty string",
                field_name=f"networks[{i}].name",
                value=name,
            )
        name = name.strip()
        if name in seen_names:
            raise ValidationError(
                f"Duplicate network name '{name}'", field_name=f"networks[{i}].name", value=name
            )
        seen_names.add(name)

        rpc_urls = _validate_rpc_urls(entry.get("rpc_urls"), f"networks.{name}.rpc_urls", name)

        operations_data = _require_table(entry.get("operations"), f"networks.{name}.operations")
        operations = {
            str(kind): _validate_operation(spec, f"networks.{name}.operations.{kind}")
            for kind, spec in operations_data.items()
        }

        networks.append(NetworkConfig(name=name, rpc_urls=tuple(rpc_urls), operations=operations))

    return networks
