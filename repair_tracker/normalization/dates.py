"""Raw spreadsheet date values to canonical calendar days.

Rows arrive with dates in whatever shape the spreadsheet produced: ISO days,
ISO timestamps, ``DD-MM-YYYY``, ``D/M/YYYY``, serial day counts, or the
output of a browser ``Date.toString()``. Every value is mapped to a
``YYYY-MM-DD`` string that does not depend on the process timezone.

Rules are applied in order:

1. ``None`` or blank -> ``""`` (``display_date`` shows ``"No Date"`` instead)
2. ``YYYY-MM-DD`` -> unchanged
3. ``D-M-YYYY`` -> ``YYYY-MM-DD``
4. ``D/M/YYYY`` -> ``YYYY-MM-DD``
5. purely numeric -> spreadsheet serial, days since 1899-12-30
6. ``<numeric date>T...`` -> the date before ``T``, read by rules 2-4
7. anything else -> generic parse read in UTC, or the raw string unchanged

The date portion of an ISO timestamp is taken as written and never
re-parsed, so ``2024-03-15T18:30:00.000Z`` is always ``2024-03-15``.
"""

import math
import re
from datetime import date, datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Optional

from repair_tracker.utils.timestamps import utc_today

NO_DATE = "No Date"
SERIAL_EPOCH = date(1899, 12, 30)

_CANONICAL = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
_DAY_MONTH_YEAR_DASH = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$", re.ASCII)
_DAY_MONTH_YEAR_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$", re.ASCII)
_YEAR_MONTH_DAY = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$", re.ASCII)
_SERIAL = re.compile(r"^\d+(\.\d+)?$", re.ASCII)
_DATE_WITH_TIME = re.compile(r"^([0-9/-]+)T", re.ASCII)
_JS_TZ_NAME = re.compile(r"\s*\([^)]*\)\s*$")

_JS_DATE_STRING = "%a %b %d %Y %H:%M:%S GMT%z"
_FALLBACK_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S",
)


def normalize_date(raw: Any) -> str:
    """
    Map a raw date value to a canonical ``YYYY-MM-DD`` string.

    Never raises. Values that match no rule are returned as strings,
    unchanged, so they stay visible in reports instead of disappearing.

    Args:
        raw: String, number, ``date``/``datetime`` or ``None``

    Returns:
        Canonical day, ``""`` for missing values, or the raw value as text
    """
    if raw is None:
        return ""

    if isinstance(raw, bool):
        return str(raw)

    if isinstance(raw, datetime):
        return _utc_day(raw).isoformat()

    if isinstance(raw, date):
        return raw.isoformat()

    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            return str(raw)
        if raw < 0:
            return str(raw)
        serial_day = _from_serial(int(raw))
        return serial_day.isoformat() if serial_day else str(raw)

    original = str(raw)
    text = original.strip()
    if not text:
        return ""

    if _CANONICAL.match(text):
        return text

    day_first = _day_first(text)
    if day_first is not None:
        return day_first or original

    if _SERIAL.match(text):
        serial_day = _from_serial(int(text.split(".", 1)[0]))
        return serial_day.isoformat() if serial_day else original

    match = _DATE_WITH_TIME.match(text)
    if match:
        return _date_before_time(match.group(1)) or original

    parsed = _parse_generic(text)
    if parsed is None:
        return original
    return parsed.isoformat()


def display_date(raw: Any) -> str:
    """Canonical day for display, with ``"No Date"`` standing in for blanks."""
    return normalize_date(raw) or NO_DATE


def is_canonical_date(value: Any) -> bool:
    """Whether value is a ``YYYY-MM-DD`` string naming a real calendar day."""
    if not isinstance(value, str) or not _CANONICAL.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_canonical(value: str) -> Optional[date]:
    """``date`` for a canonical string, ``None`` for anything else."""
    if not is_canonical_date(value):
        return None
    return date.fromisoformat(value)


def _day_first(text: str) -> Optional[str]:
    """Canonical day for D-M-YYYY or D/M/YYYY text.

    None when text has neither shape, "" when it does but names no real day.
    """
    for pattern in (_DAY_MONTH_YEAR_DASH, _DAY_MONTH_YEAR_SLASH):
        match = pattern.match(text)
        if match:
            day, month, year = (int(part) for part in match.groups())
            return _iso_or_empty(year, month, day)
    return None


def _date_before_time(prefix: str) -> str:
    # Time part is never parsed
    if _CANONICAL.match(prefix):
        return prefix
    match = _YEAR_MONTH_DAY.match(prefix)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _iso_or_empty(year, month, day)
    return _day_first(prefix) or ""


def _iso_or_empty(year: int, month: int, day: int) -> str:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return ""


def _from_serial(days: int) -> Optional[date]:
    try:
        return SERIAL_EPOCH + timedelta(days=days)
    except OverflowError:
        return None


def _utc_day(value: datetime) -> date:
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(timezone.utc).date()


def _parse_generic(text: str) -> Optional[date]:
    iso_candidate = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return _utc_day(datetime.fromisoformat(iso_candidate))
    except ValueError:
        pass

    # Browser Date.toString() first: the RFC 2822 parser accepts it too but drops the offset
    try:
        return _utc_day(datetime.strptime(_JS_TZ_NAME.sub("", text), _JS_DATE_STRING))
    except ValueError:
        pass

    try:
        return _utc_day(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    return None


class DateNormalizer:
    """The normalization rules bound to a clock.

    For callers that need "today" from the same source as the
    aggregation engine; the clock defaults to the UTC day.
    """

    def __init__(self, clock: Optional[Callable[[], date]] = None):
        """Initialize DateNormalizer.

        Args:
            clock: Returns today's date; defaults to the UTC day
        """
        self.clock = clock or utc_today

    def normalize(self, raw: Any) -> str:
        """Canonical day for raw.

        Args:
            raw: Spreadsheet cell value of any type

        Returns:
            ``YYYY-MM-DD``, ``""`` for blanks, or the raw text unchanged
        """
        return normalize_date(raw)

    def display(self, raw: Any) -> str:
        """Canonical day for raw, with ``"No Date"`` for blanks."""
        return display_date(raw)

    def today(self) -> str:
        """Today's canonical day according to the clock."""
        return self.clock().isoformat()
