"""Configuration module for the Code::Stats client."""

from .settings import CLIENT_NAME, CLIENT_VERSION, ClientConfig, ConfigManager, Disposable, get_config_manager, get_current_config

__all__ = ["CLIENT_NAME", "CLIENT_VERSION", "ClientConfig", "ConfigManager", "Disposable", "get_config_manager", "get_current_config"]
