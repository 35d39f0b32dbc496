"""Configuration management for the repair tracker."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import apply_environment, load_config
from .models import (
    AppConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ReportsConfig,
    SheetsConfig,
    WhatsAppConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "apply_environment",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "SheetsConfig",
    "ReportsConfig",
    "WhatsAppConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
