"""Environment variable loading and validation."""

import os
import re
from typing import Optional

from .exceptions import ConfigurationError

_URL_PATTERN = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_DATABASE_URL = "sqlite:///./data/repair_tracker.db"


class EnvironmentConfig:
    """Settings that vary per deployment and come from the process environment."""

    def __init__(
        self,
        apps_script_url: Optional[str] = None,
        sheets_proxy_url: Optional[str] = None,
        whatsapp_gateway_url: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
        use_local_store: Optional[bool] = None,
        environment: Optional[str] = None,
    ):
        self.apps_script_url = apps_script_url
        self.sheets_proxy_url = sheets_proxy_url
        self.whatsapp_gateway_url = whatsapp_gateway_url
        self.log_level = log_level.upper() if log_level else None
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.use_local_store = use_local_store
        self.environment = environment or "local"


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - APPS_SCRIPT_URL: Deployed spreadsheet script URL
    - SHEETS_PROXY_URL: Proxy endpoint in front of the script
    - WHATSAPP_GATEWAY_URL: Base URL of the WhatsApp gateway
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - DATABASE_URL: Local store URL (default: sqlite:///./data/repair_tracker.db)
    - USE_LOCAL_STORE: true/false, skip the spreadsheet entirely
    - ENVIRONMENT: Label attached to log records (default: local)

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If any variable is set to an invalid value
    """
    errors = []

    apps_script_url = _optional("APPS_SCRIPT_URL")
    sheets_proxy_url = _optional("SHEETS_PROXY_URL")
    whatsapp_gateway_url = _optional("WHATSAPP_GATEWAY_URL")
    log_level = _optional("LOG_LEVEL")
    database_url = _optional("DATABASE_URL")
    use_local_store_raw = _optional("USE_LOCAL_STORE")
    environment = _optional("ENVIRONMENT")

    for name, value in (
        ("APPS_SCRIPT_URL", apps_script_url),
        ("SHEETS_PROXY_URL", sheets_proxy_url),
        ("WHATSAPP_GATEWAY_URL", whatsapp_gateway_url),
    ):
        if value and not _URL_PATTERN.match(value):
            errors.append(f"Invalid {name}: '{value}'. Must be an http(s) URL.")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    use_local_store = None
    if use_local_store_raw:
        lowered = use_local_store_raw.lower()
        if lowered in _TRUE_VALUES:
            use_local_store = True
        elif lowered in _FALSE_VALUES:
            use_local_store = False
        else:
            errors.append(
                f"Invalid USE_LOCAL_STORE: '{use_local_store_raw}'. Use true or false."
            )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "URLs must start with http:// or https://",
            ],
        )

    return EnvironmentConfig(
        apps_script_url=apps_script_url,
        sheets_proxy_url=sheets_proxy_url,
        whatsapp_gateway_url=whatsapp_gateway_url,
        log_level=log_level,
        database_url=database_url,
        use_local_store=use_local_store,
        environment=environment,
    )


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None
