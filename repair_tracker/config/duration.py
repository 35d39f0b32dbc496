"""Duration strings used by cache and timeout settings."""

import re


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""


_ISO_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$")
_HUMAN_PATTERN = re.compile(r"(\d+)\s*([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(duration_str: str) -> int:
    """Parse a duration string to whole seconds.

    Accepts human-readable values ("30s", "2m", "1h30m") and ISO-8601
    durations ("PT2M", "P1D").

    Raises:
        DurationParseError: If the value is empty, malformed or zero

    Examples:
        >>> parse_duration("2m")
        120
        >>> parse_duration("PT90S")
        90
    """
    duration_str = (duration_str or "").strip()
    if not duration_str:
        raise DurationParseError("Duration string cannot be empty")

    if duration_str.upper().startswith("P"):
        total = _parse_iso8601(duration_str.upper())
    else:
        total = _parse_human_readable(duration_str)

    if total == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")
    return total


def _parse_iso8601(duration_str: str) -> int:
    match = _ISO_PATTERN.match(duration_str)
    if not match:
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{duration_str}'. "
            "Expected format like 'P1D', 'PT1H30M', 'PT2M', or 'PT30S'"
        )

    days, hours, minutes, seconds = match.groups()
    total = 0
    if days:
        total += int(days) * _UNIT_SECONDS["d"]
    if hours:
        total += int(hours) * _UNIT_SECONDS["h"]
    if minutes:
        total += int(minutes) * _UNIT_SECONDS["m"]
    if seconds:
        total += int(float(seconds))
    return total


def _parse_human_readable(duration_str: str) -> int:
    lowered = duration_str.lower()
    matches = _HUMAN_PATTERN.findall(lowered)
    if not matches:
        raise DurationParseError(
            f"Invalid duration format: '{duration_str}'. "
            "Expected format like '30s', '2m', '1h', or combinations like '1h30m'"
        )

    # Everything in the input must have been consumed by the pattern
    parsed = "".join(f"{num}{unit}" for num, unit in matches)
    if parsed != re.sub(r"\s+", "", lowered):
        raise DurationParseError(
            f"Invalid characters in duration: '{duration_str}'. "
            "Use only digits and units: s, m, h, d"
        )

    return sum(int(num) * _UNIT_SECONDS[unit] for num, unit in matches)


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int,
    max_seconds: int,
    label: str = "Duration",
) -> None:
    """Check that a parsed duration lies inside [min_seconds, max_seconds].

    Raises:
        DurationParseError: If the value is out of range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"{label} too short: {_humanize(duration_seconds)}. "
            f"Minimum is {_humanize(min_seconds)}."
        )
    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"{label} too long: {_humanize(duration_seconds)}. "
            f"Maximum is {_humanize(max_seconds)}."
        )


def _humanize(seconds: int) -> str:
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
