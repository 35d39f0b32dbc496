"""Warnings for settings that are valid but probably unintended."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Inspect a raw configuration dictionary for risky settings.

    Args:
        config_dict: Raw configuration dictionary from YAML

    Returns:
        List of warning messages
    """
    warning_messages = []

    sheets = config_dict.get("sheets") or {}
    if isinstance(sheets, dict):
        cache_ttl = sheets.get("cache_ttl")
        if isinstance(cache_ttl, str):
            try:
                if parse_duration(cache_ttl) < 10:
                    warning_messages.append(
                        f"Very short sheets.cache_ttl ({cache_ttl}) sends a request on almost every read"
                    )
            except DurationParseError:
                # Reported properly by model validation
                pass

        if not sheets.get("apps_script_url") and not sheets.get("use_local_store"):
            warning_messages.append(
                "sheets.apps_script_url is not set; APPS_SCRIPT_URL must be provided by the environment"
            )

        max_retries = sheets.get("max_retries")
        if isinstance(max_retries, int) and max_retries > 5:
            warning_messages.append(
                f"sheets.max_retries={max_retries} can stall commands for a long time on a dead network"
            )

    reports = config_dict.get("reports") or {}
    if isinstance(reports, dict):
        window = reports.get("daily_window_days")
        if isinstance(window, int) and window > 90:
            warning_messages.append(
                f"Large reports.daily_window_days ({window}) produces a very long daily report"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through the warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
