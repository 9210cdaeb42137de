"""Settings loading tests."""

import logging

import pytest
from pydantic import ValidationError

from pioagent.config import DEFAULT_BINARIES, Settings, load_settings
from pioagent.logging_setup import configure_logging


@pytest.mark.unit
@pytest.mark.P1
@pytest.mark.deterministic
class TestLoadSettings:
    def test_defaults_when_environment_is_empty(self) -> None:
        settings = load_settings({})

        assert settings.binary_names == DEFAULT_BINARIES
        assert settings.json_output_flag == "--json-output"
        assert settings.default_timeout_seconds == 300.0
        assert settings.max_output_bytes == 10 * 1024 * 1024
        assert settings.log_level == "INFO"

    def test_reads_every_variable(self) -> None:
        settings = load_settings(
            {
                "PIOAGENT_BINARIES": " /opt/pio/bin/pio , platformio ",
                "PIOAGENT_DEFAULT_TIMEOUT": "90",
                "PIOAGENT_MAX_OUTPUT_BYTES": "2048",
                "PIOAGENT_LOG_LEVEL": "debug",
            }
        )

        assert settings.binary_names == ("/opt/pio/bin/pio", "platformio")
        assert settings.default_timeout_seconds == 90.0
        assert settings.max_output_bytes == 2048
        assert settings.log_level == "DEBUG"

    def test_generic_log_level_is_a_fallback(self) -> None:
        assert load_settings({"LOG_LEVEL": "warning"}).log_level == "WARNING"
        assert (
            load_settings({"LOG_LEVEL": "warning", "PIOAGENT_LOG_LEVEL": "error"}).log_level
            == "ERROR"
        )

    @pytest.mark.parametrize(
        "environ",
        [
            {"PIOAGENT_BINARIES": " , "},
            {"PIOAGENT_DEFAULT_TIMEOUT": "soon"},
            {"PIOAGENT_DEFAULT_TIMEOUT": "0"},
            {"PIOAGENT_MAX_OUTPUT_BYTES": "-1"},
            {"PIOAGENT_MAX_OUTPUT_BYTES": "lots"},
            {"PIOAGENT_LOG_LEVEL": "chatty"},
        ],
    )
    def test_bad_values_raise_value_error(self, environ: dict[str, str]) -> None:
        with pytest.raises(ValueError):
            load_settings(environ)

    def test_settings_are_immutable(self) -> None:
        settings = Settings()

        with pytest.raises(ValidationError):
            settings.default_timeout_seconds = 1.0  # type: ignore[misc]

    def test_empty_binary_list_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(binary_names=())


@pytest.mark.unit
@pytest.mark.P1
def test_configure_logging_sets_package_level() -> None:
    configure_logging(Settings(log_level="DEBUG"))

    assert logging.getLogger("pioagent").level == logging.DEBUG
