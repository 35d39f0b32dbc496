"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _checked_duration(value: str, min_seconds: int, max_seconds: int, label: str) -> str:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds, max_seconds, label=label)
    except DurationParseError as e:
        raise ValueError(str(e)) from e
    return value.strip()


class SheetsConfig(BaseModel):
    """Spreadsheet script endpoint and the proxy in front of it."""

    apps_script_url: Optional[str] = Field(
        None, description="Deployed script URL that reads and writes the job sheet"
    )
    proxy_url: str = Field(
        "http://localhost:3001/api/sheets",
        min_length=1,
        description="Proxy endpoint forwarding requests to the script",
    )
    request_timeout: int = Field(12, ge=5, le=300, description="Per-request timeout (seconds)")
    max_retries: int = Field(3, ge=0, le=10, description="Retries for failed network requests")
    retry_initial_delay: float = Field(
        0.5, ge=0.0, le=60.0, description="Delay before the first retry (seconds)"
    )
    retry_backoff_multiplier: float = Field(
        2.0, ge=1.0, le=5.0, description="Exponential backoff multiplier"
    )
    cache_ttl: str = Field("2m", description="How long fetched job lists are reused")
    use_local_store: bool = Field(
        False, description="Read and write the local SQLite store instead of the sheet"
    )

    @field_validator("apps_script_url", "proxy_url")
    @classmethod
    def strip_url(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace; an empty script URL means 'not configured'."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @field_validator("cache_ttl")
    @classmethod
    def validate_cache_ttl(cls, v: str) -> str:
        return _checked_duration(v, 1, 86400, "cache_ttl")

    @property
    def cache_ttl_seconds(self) -> int:
        return parse_duration(self.cache_ttl)


class ReportsConfig(BaseModel):
    """Defaults for the report views."""

    daily_window_days: int = Field(
        30, ge=1, le=366, description="Trailing days shown by the daily report"
    )
    currency_symbol: str = Field("₹", min_length=1, description="Prefix for money values")


class WhatsAppConfig(BaseModel):
    """Messaging gateway used for customer notifications."""

    gateway_url: Optional[str] = Field(
        None, description="Base URL of the WhatsApp gateway (serves /api/whatsapp/*)"
    )
    default_country_code: str = Field(
        "91", pattern=r"^\d{1,4}$", description="Prefix added to ten-digit local numbers"
    )
    ready_timeout: str = Field("60s", description="How long to wait for the gateway session")
    request_timeout: int = Field(30, ge=5, le=300, description="Per-request timeout (seconds)")
    max_retries: int = Field(2, ge=0, le=10, description="Retries for failed sends")
    retry_initial_delay: float = Field(2.0, ge=0.0, le=60.0)
    retry_backoff_multiplier: float = Field(2.0, ge=1.0, le=5.0)
    shop_name: str = Field("Zaid Electronics", min_length=1)

    @field_validator("gateway_url")
    @classmethod
    def strip_gateway_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip().rstrip("/")
        return stripped or None

    @field_validator("ready_timeout")
    @classmethod
    def validate_ready_timeout(cls, v: str) -> str:
        return _checked_duration(v, 1, 600, "ready_timeout")

    @property
    def ready_timeout_seconds(self) -> int:
        return parse_duration(self.ready_timeout)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="json or key-value")

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the repair tracker.

    Every section has defaults, so an empty file (or no file) yields a usable
    configuration; environment variables fill in deployment specifics.
    """

    sheets: SheetsConfig = Field(default_factory=SheetsConfig)
    reports: ReportsConfig = Field(default_factory=ReportsConfig)
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
