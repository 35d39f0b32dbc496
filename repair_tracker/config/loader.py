"""Configuration loader: YAML file + environment variables."""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import ValidationError

from repair_tracker.logging import get_logger

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

logger = get_logger(__name__, component="config")

DEFAULT_CANDIDATES = (
    Path("config.yaml"),
    Path("config") / "config.yaml",
)


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from a YAML file and the environment.

    File lookup:
    1. Use config_path if given (it must exist)
    2. Try config.yaml, then config/config.yaml
    3. Fall back to built-in defaults

    Environment values (APPS_SCRIPT_URL, SHEETS_PROXY_URL, WHATSAPP_GATEWAY_URL,
    USE_LOCAL_STORE, LOG_LEVEL) take precedence over the file.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If the file or the environment is invalid
    """
    config_file = _find_config_file(config_path)

    config_dict: Dict[str, Any] = {}
    if config_file is not None:
        config_dict = _read_yaml(config_file)
        warnings = check_for_warnings(config_dict)
        if warnings:
            emit_warnings(warnings)
    else:
        logger.debug(
            "No configuration file found, using defaults",
            extra={"event": "config.defaults_used"},
        )

    app_config = _validate(config_dict)
    env_config = load_environment_config()

    return apply_environment(app_config, env_config), env_config


def apply_environment(app_config: AppConfig, env_config: EnvironmentConfig) -> AppConfig:
    """Return a copy of app_config with environment overrides applied."""
    sheets_updates: Dict[str, Any] = {}
    if env_config.apps_script_url:
        sheets_updates["apps_script_url"] = env_config.apps_script_url
    if env_config.sheets_proxy_url:
        sheets_updates["proxy_url"] = env_config.sheets_proxy_url
    if env_config.use_local_store is not None:
        sheets_updates["use_local_store"] = env_config.use_local_store

    whatsapp_updates: Dict[str, Any] = {}
    if env_config.whatsapp_gateway_url:
        whatsapp_updates["gateway_url"] = env_config.whatsapp_gateway_url.rstrip("/")

    logging_updates: Dict[str, Any] = {}
    if env_config.log_level:
        logging_updates["level"] = env_config.log_level

    return app_config.model_copy(
        update={
            "sheets": app_config.sheets.model_copy(update=sheets_updates),
            "whatsapp": app_config.whatsapp.model_copy(update=whatsapp_updates),
            "logging": app_config.logging.model_copy(update=logging_updates),
        }
    )


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Ensure {config_file} is readable"],
        ) from e

    if config_dict is None:
        return {}

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
            suggestions=["Review config.example.yaml for the expected layout"],
        )

    return config_dict


def _validate(config_dict: Dict[str, Any]) -> AppConfig:
    try:
        return AppConfig.model_validate(config_dict)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            error_type = error["type"]

            if error_type in ("string_type", "int_type", "int_parsing", "bool_type", "bool_parsing"):
                errors.append(
                    f"Invalid type for '{field_path}': got {error.get('input')!r}"
                )
            elif "enum" in error_type:
                errors.append(f"Invalid value for '{field_path}': {error['msg']}")
            else:
                errors.append(f"{field_path}: {error['msg']}")

        raise ConfigurationError(
            "Configuration validation failed",
            errors=errors,
            suggestions=[
                "Review config.example.yaml for correct format",
                "Verify field types match the expected schema",
            ],
        ) from e


def _find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    if config_path is not None:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Ensure {config_path} exists",
                    "Omit --config to run with defaults and environment variables",
                ],
            )
        return config_path

    for candidate in DEFAULT_CANDIDATES:
        if candidate.exists():
            return candidate

    return None
