"""Configuration management for the Code::Stats client.

This module provides the client configuration with environment variable
overrides and a manager that supports live updates: changes to the API key
or URL take effect on the next flush without a restart.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from loguru import logger

CLIENT_NAME = "codestats-client"
CLIENT_VERSION = "1.0.0"

ChangeCallback = Callable[[Any, Any], None]


@dataclass
class ClientConfig:
    """Complete Code::Stats client configuration."""

    # Collector settings (empty disables sending)
    api_key: str = ""
    api_url: str = ""

    # Timing (seconds)
    update_delay_seconds: float = 10.0  # Quiet period after typing before sending
    multiple_update_interval_seconds: float = 10.0  # Interval between sending queued pulses
    request_timeout_seconds: float = 30.0

    # Delivery
    requeue_on_failure: bool = True

    # Status display
    status_prefix: str = "C::S"

    # Logging
    log_level: str = "INFO"
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: Path = field(default_factory=lambda: Path.cwd() / "codestats_client.log")
    log_rotation: str = "10 MB"
    log_retention: str = "7 days"

    def __post_init__(self):
        """Apply environment variable overrides."""
        self._apply_env_overrides()

    def _apply_env_overrides(self):
        """Apply configuration overrides from environment variables."""
        if api_key := os.getenv("CODESTATS_API_KEY"):
            self.api_key = api_key

        if api_url := os.getenv("CODESTATS_API_URL"):
            self.api_url = api_url

        if update_delay := os.getenv("CODESTATS_UPDATE_DELAY"):
            try:
                self.update_delay_seconds = float(update_delay)
            except ValueError:
                logger.warning(f"Invalid update delay: {update_delay}")

        if update_interval := os.getenv("CODESTATS_MULTIPLE_UPDATE_INTERVAL"):
            try:
                self.multiple_update_interval_seconds = float(update_interval)
            except ValueError:
                logger.warning(f"Invalid multiple update interval: {update_interval}")

        if request_timeout := os.getenv("CODESTATS_REQUEST_TIMEOUT"):
            try:
                self.request_timeout_seconds = float(request_timeout)
            except ValueError:
                logger.warning(f"Invalid request timeout: {request_timeout}")

        if requeue := os.getenv("CODESTATS_REQUEUE_ON_FAILURE"):
            self.requeue_on_failure = requeue.strip().lower() not in ("0", "false", "no", "off")

        if log_level := os.getenv("CODESTATS_LOG_LEVEL"):
            self.log_level = log_level.upper()

        if log_file_path := os.getenv("CODESTATS_LOG_FILE"):
            self.log_file_path = Path(log_file_path)
            self.log_to_file = True

    @property
    def delivery_enabled(self) -> bool:
        """True when both the API key and URL are configured."""
        return bool(self.api_key) and bool(self.api_url)

    def validate(self) -> tuple[bool, list[str]]:
        """Validate the configuration.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if not self.api_key:
            errors.append("API key is required")

        if not self.api_url:
            errors.append("API URL is required")
        else:
            parsed = urlparse(self.api_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append(f"API URL must be an absolute http(s) URL: {self.api_url}")

        if self.update_delay_seconds <= 0:
            errors.append("Update delay must be positive")

        if self.multiple_update_interval_seconds <= 0:
            errors.append("Multiple update interval must be positive")

        if self.request_timeout_seconds <= 0:
            errors.append("Request timeout must be positive")

        return len(errors) == 0, errors


class Disposable:
    """Handle that removes a change subscription when disposed."""

    def __init__(self, dispose_fn: Callable[[], None]):
        self._dispose_fn: Optional[Callable[[], None]] = dispose_fn

    def dispose(self) -> None:
        if self._dispose_fn is not None:
            self._dispose_fn()
            self._dispose_fn = None


class ConfigManager:
    """Manages the live client configuration."""

    def __init__(self):
        """Initialize configuration manager."""
        self._config: Optional[ClientConfig] = None
        self._listeners: Dict[str, List[ChangeCallback]] = {}

    def load_config(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        **overrides: Any,
    ) -> ClientConfig:
        """Load configuration with optional overrides.

        Args:
            api_key: API key override
            api_url: API URL override
            **overrides: Any other ClientConfig field

        Returns:
            Configured ClientConfig instance
        """
        config = ClientConfig()

        if api_key is not None:
            config.api_key = api_key

        if api_url is not None:
            config.api_url = api_url

        known = {f.name for f in fields(ClientConfig)}
        for key, value in overrides.items():
            if key not in known:
                raise AttributeError(f"Unknown configuration key: {key}")
            setattr(config, key, value)

        self._config = config
        return config

    def get_config(self) -> ClientConfig:
        """Get the current configuration, loading defaults on first use."""
        if self._config is None:
            return self.load_config()
        return self._config

    def update(self, **changes: Any) -> ClientConfig:
        """Change configuration values and notify subscribers.

        Raises:
            AttributeError: If a key is not a configuration field
        """
        config = self.get_config()
        known = {f.name for f in fields(ClientConfig)}

        for key, new_value in changes.items():
            if key not in known:
                raise AttributeError(f"Unknown configuration key: {key}")

            old_value = getattr(config, key)
            if old_value == new_value:
                continue

            setattr(config, key, new_value)
            for callback in list(self._listeners.get(key, [])):
                try:
                    callback(new_value, old_value)
                except Exception as e:
                    logger.error(f"Error in config change callback for {key}: {e}")

        return config

    def on_did_change(self, key: str, callback: ChangeCallback) -> Disposable:
        """Subscribe to changes of one configuration key.

        Args:
            key: Configuration field name
            callback: Called with (new_value, old_value)

        Returns:
            Disposable that removes the subscription
        """
        self._listeners.setdefault(key, []).append(callback)

        def _dispose() -> None:
            callbacks = self._listeners.get(key, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return Disposable(_dispose)

    def validate_config(self) -> tuple[bool, list[str]]:
        """Validate current configuration.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        return self.get_config().validate()


# Global configuration manager instance
_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager."""
    return _config_manager


def get_current_config() -> ClientConfig:
    """Get the current configuration."""
    return _config_manager.get_config()
