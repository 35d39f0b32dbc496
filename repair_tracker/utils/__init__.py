"""Shared utilities."""

from .timestamps import ensure_utc, format_timestamp, utc_now, utc_today

__all__ = ["utc_now", "utc_today", "ensure_utc", "format_timestamp"]
