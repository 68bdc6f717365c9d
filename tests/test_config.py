"""Tests for configuration management."""

from pathlib import Path

import pytest
from loguru import logger

from codestats_client.config import ClientConfig, ConfigManager
from codestats_client.config.logger_config import setup_logging


def test_defaults():
    config = ClientConfig()

    assert config.api_key == ""
    assert config.api_url == ""
    assert config.update_delay_seconds == 10.0
    assert config.multiple_update_interval_seconds == 10.0
    assert config.requeue_on_failure is True
    assert not config.delivery_enabled


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CODESTATS_API_KEY", "env-key")
    monkeypatch.setenv("CODESTATS_API_URL", "https://env.test/api/my/pulses")
    monkeypatch.setenv("CODESTATS_UPDATE_DELAY", "2.5")
    monkeypatch.setenv("CODESTATS_MULTIPLE_UPDATE_INTERVAL", "4")
    monkeypatch.setenv("CODESTATS_REQUEUE_ON_FAILURE", "false")
    monkeypatch.setenv("CODESTATS_LOG_LEVEL", "debug")
    monkeypatch.setenv("CODESTATS_LOG_FILE", "/tmp/codestats.log")

    config = ClientConfig()

    assert config.api_key == "env-key"
    assert config.api_url == "https://env.test/api/my/pulses"
    assert config.update_delay_seconds == 2.5
    assert config.multiple_update_interval_seconds == 4.0
    assert config.requeue_on_failure is False
    assert config.log_level == "DEBUG"
    assert config.log_to_file is True
    assert config.log_file_path == Path("/tmp/codestats.log")
    assert config.delivery_enabled


def test_invalid_numeric_override_keeps_default(monkeypatch):
    monkeypatch.setenv("CODESTATS_UPDATE_DELAY", "soon")

    assert ClientConfig().update_delay_seconds == 10.0


def test_explicit_values_win_over_environment(monkeypatch):
    monkeypatch.setenv("CODESTATS_API_KEY", "env-key")
    manager = ConfigManager()

    config = manager.load_config(api_key="explicit-key", update_delay_seconds=1.0)

    assert config.api_key == "explicit-key"
    assert config.update_delay_seconds == 1.0
    assert manager.get_config() is config


def test_load_config_rejects_unknown_keys():
    with pytest.raises(AttributeError):
        ConfigManager().load_config(colour="blue")


def test_validate_reports_every_problem():
    config = ClientConfig(api_url="codestats.net/api", update_delay_seconds=0)

    is_valid, errors = config.validate()

    assert not is_valid
    assert "API key is required" in errors
    assert any("absolute http(s) URL" in error for error in errors)
    assert "Update delay must be positive" in errors


def test_validate_accepts_complete_config():
    config = ClientConfig(api_key="key", api_url="https://codestats.net/api/my/pulses")

    assert config.validate() == (True, [])


def test_update_notifies_subscribers_until_disposed():
    manager = ConfigManager()
    manager.load_config(api_key="old")
    changes = []

    subscription = manager.on_did_change("api_key", lambda new, old: changes.append((new, old)))
    manager.update(api_key="new")
    manager.update(api_key="new")
    subscription.dispose()
    subscription.dispose()
    manager.update(api_key="newer")

    assert changes == [("new", "old")]
    assert manager.get_config().api_key == "newer"


def test_subscriber_errors_do_not_block_update():
    manager = ConfigManager()
    seen = []

    def broken(new, old):
        raise RuntimeError("listener failed")

    manager.on_did_change("api_url", broken)
    manager.on_did_change("api_url", lambda new, old: seen.append(new))
    manager.update(api_url="https://codestats.net/api/my/pulses")

    assert seen == ["https://codestats.net/api/my/pulses"]


def test_update_rejects_unknown_keys():
    with pytest.raises(AttributeError):
        ConfigManager().update(colour="blue")


def test_validate_config_checks_the_managed_config():
    manager = ConfigManager()
    manager.load_config(api_key="key", api_url="https://codestats.net/api/my/pulses")
    assert manager.validate_config() == (True, [])

    manager.update(api_key="")
    is_valid, errors = manager.validate_config()
    assert not is_valid
    assert "API key is required" in errors


def test_setup_logging_writes_to_configured_file(tmp_path):
    log_file = tmp_path / "client.log"
    config = ClientConfig(log_to_console=False, log_to_file=True, log_file_path=log_file, log_level="DEBUG")

    setup_logging(config)
    logger.debug("pulse sealed")
    logger.remove()

    contents = log_file.read_text()
    assert "File logging enabled" in contents
    assert "pulse sealed" in contents
