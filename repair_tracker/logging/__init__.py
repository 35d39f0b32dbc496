"""Structured logging helpers for the repair tracker."""

import logging
from typing import Optional


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges its component field with per-call extras."""

    def process(self, msg, kwargs):
        """Merge the adapter extra with the call extra (call wins)."""
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Return a logger, optionally tagging every record with a component.

    Args:
        name: Logger name (typically __name__)
        component: Component label such as "sheets" or "reporting"

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="sheets")
        >>> logger.info("Fetched jobs", extra={"event": "sheets.fetch.succeeded"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
