"""
Unit tests for configuration loading, validation and caching.
"""

import pytest

from chainbench.config import (
    clear_config_cache,
    expand_env_in,
    expand_env_vars,
    get_config,
    get_config_info,
    is_config_loaded,
    load_config,
    load_env_file,
    set_config_path,
    validate_load_config,
    validate_monitor_config,
    validate_networks_config,
)
from chainbench.models.config import LoadMode, TargetSelection
from chainbench.validation import ConfigurationError, ValidationError


@pytest.mark.unit
class TestLoadConfig:
    """Tests for loading a complete configuration file."""

    def test_load_sample_config(self, config_files):
        config = load_config(config_files["config"])

        assert config.general.log_level == "DEBUG"
        assert config.load.mode is LoadMode.BATCHED
        assert config.load.target_selection is TargetSelection.DETERMINISTIC
        assert config.load.operation_mix == {"read": 3.0, "create": 1.0}
        assert config.load.seed == 7
        assert config.monitor.error_backoff_seconds == 1.0
        assert config.storage.compression == "zstd"
        assert [n.name for n in config.networks] == ["l1", "l2"]

        create = config.networks[0].operations["create"]
        assert create.method == "eth_sendTransaction"
        assert create.params == ("0xsigned",)
        assert create.wait_for_receipt is True
        assert config.networks[1].operations == {}

    def test_relative_output_dir_resolves_against_config_dir(self, write_config, temp_dir, sample_config_data):
        sample_config_data["general"]["output_dir"] = "out"

        config = load_config(write_config(sample_config_data))

        assert config.general.output_dir == temp_dir / "out"

    def test_defaults(self, write_config):
        config = load_config(write_config({"networks": [{"name": "l1", "rpc_urls": ["http://l1.test"]}]}))

        assert config.load.mode is LoadMode.SUSTAINED
        assert config.load.total_duration_ms == 300000
        assert config.load.concurrency == config.load.batch_size == 5
        assert config.monitor.poll_interval_seconds == 2.0
        assert config.storage.format == "parquet"

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "missing.toml")

    def test_missing_networks(self, write_config):
        with pytest.raises(ValidationError, match="networks"):
            load_config(write_config({"load": {"mode": "batched"}}))

    def test_backoff_not_longer_than_poll_interval(self, write_config, sample_config_data):
        sample_config_data["monitor"]["error_backoff_seconds"] = 0.5

        with pytest.raises(ValidationError, match="error_backoff_seconds"):
            load_config(write_config(sample_config_data))


@pytest.mark.unit
class TestEnvironment:
    """Tests for `${VAR}` expansion and .env loading."""

    def test_expand_env_vars(self, monkeypatch):
        monkeypatch.setenv("CB_HOST", "node.test")
        monkeypatch.delenv("CB_UNSET", raising=False)

        assert expand_env_vars("http://${CB_HOST}:8545") == "http://node.test:8545"
        assert expand_env_vars("${CB_UNSET}") == "${CB_UNSET}"
        assert expand_env_in(["${CB_HOST}", {"to": "${CB_HOST}"}, 3]) == [
            "node.test",
            {"to": "node.test"},
            3,
        ]

    def test_urls_and_params_are_expanded(self, write_config, sample_config_data, monkeypatch):
        monkeypatch.setenv("CB_L2_URL", "https://l2.env.test")
        monkeypatch.setenv("CB_SIGNED", "0xfromenv")
        sample_config_data["networks"][1]["rpc_urls"] = ["${CB_L2_URL}"]
        sample_config_data["networks"][0]["operations"]["create"]["params"] = ["${CB_SIGNED}"]

        config = load_config(write_config(sample_config_data))

        assert config.networks[1].rpc_urls == ("https://l2.env.test",)
        assert config.networks[0].operations["create"].params == ("0xfromenv",)

    def test_unresolved_url_is_skipped(self, write_config, sample_config_data, monkeypatch):
        monkeypatch.delenv("CB_MISSING", raising=False)
        sample_config_data["networks"][0]["rpc_urls"] = ["${CB_MISSING}", "http://l1.test"]

        config = load_config(write_config(sample_config_data))

        assert config.networks[0].rpc_urls == ("http://l1.test",)

    def test_network_without_usable_url(self, write_config, sample_config_data, monkeypatch):
        monkeypatch.delenv("CB_MISSING", raising=False)
        sample_config_data["networks"][1]["rpc_urls"] = ["${CB_MISSING}", "ftp://l2.test"]

        with pytest.raises(ConfigurationError, match="No valid providers could be created for l2"):
            load_config(write_config(sample_config_data))

    def test_env_file_is_loaded(self, temp_dir, monkeypatch):
        env_file = temp_dir / "custom.env"
        env_file.write_text("CB_FROM_FILE=loaded\nCB_PRESET=from-file\n")
        monkeypatch.setenv("CHAINBENCH_ENV_FILE", str(env_file))
        monkeypatch.setenv("CB_PRESET", "from-environment")
        # registered so that monkeypatch removes it after the test
        monkeypatch.setenv("CB_FROM_FILE", "")
        monkeypatch.delenv("CB_FROM_FILE")

        assert load_env_file(temp_dir) == env_file
        assert expand_env_vars("${CB_FROM_FILE}") == "loaded"
        assert expand_env_vars("${CB_PRESET}") == "from-environment"

    def test_no_env_file(self, temp_dir, monkeypatch):
        monkeypatch.delenv("CHAINBENCH_ENV_FILE", raising=False)

        assert load_env_file(temp_dir) is None


@pytest.mark.unit
class TestSectionValidators:
    """Tests for individual section validators."""

    def test_load_validation(self):
        config = validate_load_config({"mode": "PROGRESSIVE", "concurrency_levels": [1, 4, 8]})

        assert config.mode is LoadMode.PROGRESSIVE
        assert config.concurrency_levels == (1, 4, 8)
        assert config.total_duration_ms is None

    @pytest.mark.parametrize(
        "data,field",
        [
            ({"mode": "burst"}, "load.mode"),
            ({"batch_size": 0}, "load.batch_size"),
            ({"concurrency_levels": [4, 2]}, "load.concurrency_levels"),
            ({"operation_mix": {"read": 0}}, "load.operation_mix"),
            ({"target_selection": "sticky"}, "load.target_selection"),
            ({"seed": -1}, "load.seed"),
        ],
    )
    def test_invalid_load_values(self, data, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_load_config(data)
        assert exc_info.value.field_name == field

    def test_monitor_validation(self):
        config = validate_monitor_config({"poll_interval_seconds": 1, "error_backoff_seconds": 3})

        assert config.poll_interval_seconds == 1.0
        assert config.error_backoff_seconds == 3.0

    def test_duplicate_network_names(self):
        networks = [
            {"name": "l1", "rpc_urls": ["http://a.test"]},
            {"name": "l1", "rpc_urls": ["http://b.test"]},
        ]
        with pytest.raises(ValidationError, match="Duplicate network name"):
            validate_networks_config(networks)

    def test_operation_requires_method(self):
        networks = [{"name": "l1", "rpc_urls": ["http://a.test"], "operations": {"read": {"params": []}}}]
        with pytest.raises(ValidationError, match="method"):
            validate_networks_config(networks)


@pytest.mark.unit
class TestConfigSingleton:
    """Tests for the cached global configuration."""

    def test_get_config_caches(self, config_files):
        set_config_path(config_files["config"])
        assert not is_config_loaded()

        first = get_config()
        second = get_config()

        assert first is second
        info = get_config_info()
        assert info["config_loaded"] is True
        assert info["networks_count"] == 2
        assert info["load_mode"] == "batched"

    def test_clear_cache_reloads(self, config_files):
        set_config_path(config_files["config"])
        first = get_config()

        clear_config_cache()

        assert not is_config_loaded()
        assert get_config() is not first
