"""
Tests for AppConfig - environment overrides and validation.
"""

from pathlib import Path

import pytest

from config import LAYOUT, AppConfig, ConfigError


class TestEnvironment:
    def test_defaults(self, monkeypatch):
        for name in ("SMARTBI_HOST", "SMARTBI_PORT", "SMARTBI_REQUEST_TIMEOUT", "SMARTBI_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig()

        assert (config.host, config.port, config.request_timeout) == ("localhost", 9100, 10.0)
        assert config.ws_url == "ws://localhost:9100/bridge"

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SMARTBI_HOST", "0.0.0.0")
        monkeypatch.setenv("SMARTBI_PORT", "9300")
        monkeypatch.setenv("SMARTBI_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("SMARTBI_LOG_DIR", str(tmp_path))
        monkeypatch.setenv("SMARTBI_JSON_LOGS", "TRUE")

        config = AppConfig()

        assert config.ws_url == "ws://0.0.0.0:9300/bridge"
        assert config.request_timeout == 2.5
        assert config.log_dir == Path(tmp_path)
        assert config.json_logs is True

    def test_invalid_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("SMARTBI_PORT", "not-a-port")
        monkeypatch.setenv("SMARTBI_REQUEST_TIMEOUT", "soon")

        config = AppConfig()

        assert (config.port, config.request_timeout) == (9100, 10.0)

    def test_port_clamped_to_range(self, monkeypatch):
        monkeypatch.setenv("SMARTBI_PORT", "99999")

        assert AppConfig().port == 65535


class TestValidation:
    def test_valid_config_passes(self):
        AppConfig(port=9100, request_timeout=1.0, log_level="debug").validate()

    def test_collects_every_error(self):
        config = AppConfig(port=0, request_timeout=0, log_level="LOUD", plugin_id="")

        with pytest.raises(ConfigError) as exc_info:
            config.validate()

        message = str(exc_info.value)
        for fragment in ("Invalid port", "timeout", "Invalid log level", "Plugin id"):
            assert fragment in message

    def test_logging_config_uppercases_level(self, tmp_path):
        config = AppConfig(log_level="warning", log_dir=tmp_path)

        settings = config.logging_config()

        assert settings["console_level"] == "WARNING"
        assert settings["log_dir"] == str(tmp_path)


def test_layout_constants():
    assert LAYOUT["spacing"] == 10
    assert dict(LAYOUT["column_breakpoints"]) == {1200: 3, 800: 2}
