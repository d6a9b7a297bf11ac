"""
Unit tests for value validators and error handling helpers.
"""

import logging

import pytest

from chainbench.validation import (
    ConfigurationError,
    ErrorSeverity,
    ValidationError,
    handle_error,
    validate_ascending_levels,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_rpc_url,
    validate_weights,
)


@pytest.mark.unit
class TestNumericValidators:

    def test_integer(self):
        assert validate_positive_integer("5") == 5
        assert validate_positive_integer(0, min_value=0) == 0

    @pytest.mark.parametrize("value", [0, True, "x", None])
    def test_invalid_integer(self, value):
        with pytest.raises(ValidationError):
            validate_positive_integer(value, field_name="count")

    def test_integer_upper_bound(self):
        with pytest.raises(ValidationError, match="must be <= 10"):
            validate_positive_integer(11, max_value=10)

    def test_float(self):
        assert validate_positive_float("0.5") == 0.5
        with pytest.raises(ValidationError, match="interval must be >= 0.001"):
            validate_positive_float(0, min_value=0.001, field_name="interval")


@pytest.mark.unit
class TestChoiceValidators:

    def test_enum_choice_case_insensitive(self):
        assert validate_enum_choice("debug", ["DEBUG", "INFO"], case_sensitive=False) == "DEBUG"

    def test_enum_choice_rejects_unknown(self):
        with pytest.raises(ValidationError, match="must be one of"):
            validate_enum_choice("trace", ["DEBUG", "INFO"])

    def test_ascending_levels(self):
        assert validate_ascending_levels([1, 2, 5]) == [1, 2, 5]
        with pytest.raises(ValidationError, match="strictly ascending"):
            validate_ascending_levels([1, 1])
        with pytest.raises(ValidationError, match="non-empty"):
            validate_ascending_levels([])

    def test_weights(self):
        assert validate_weights({"read": 1, "create": 0}) == {"read": 1.0, "create": 0.0}
        with pytest.raises(ValidationError, match="sum to > 0"):
            validate_weights({"read": 0})
        with pytest.raises(ValidationError):
            validate_weights({"read": -1})


@pytest.mark.unit
class TestRpcUrl:

    def test_valid(self):
        assert validate_rpc_url("  https://node.test/rpc ") == "https://node.test/rpc"

    @pytest.mark.parametrize(
        "url,message",
        [
            ("", "non-empty"),
            ("${NODE_URL}", "unset environment variable"),
            ("ws://node.test", "http\\(s\\) URL"),
            ("http://", "http\\(s\\) URL"),
        ],
    )
    def test_invalid(self, url, message):
        with pytest.raises(ValidationError, match=message):
            validate_rpc_url(url)


@pytest.mark.unit
class TestErrorHandling:

    def test_configuration_error_is_validation_error(self):
        error = ConfigurationError("empty pool", field_name="rpc_urls", value=[])

        assert isinstance(error, ValidationError)
        assert error.field_name == "rpc_urls"
        assert error.severity is ErrorSeverity.ERROR

    def test_handle_error_reraises(self, caplog):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValueError):
                handle_error(ValueError("bad"), "parsing", reraise=True)

        assert "Error in parsing: bad" in caplog.text

    def test_handle_error_logs_only(self, caplog):
        with caplog.at_level(logging.WARNING):
            handle_error(ValueError("bad"), "parsing", severity="warning", reraise=False)

        assert "Error in parsing: bad" in caplog.text
