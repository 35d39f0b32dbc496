"""Phone number normalization for WhatsApp recipients."""

import re
from typing import Any

_NON_DIGITS = re.compile(r"\D")
LOCAL_NUMBER_LENGTH = 10


def normalize_phone(raw: Any, default_country_code: str = "91") -> str:
    """
    Strip a phone number to digits, adding the country code to local numbers.

    Examples:
        >>> normalize_phone("98765 43210")
        '919876543210'
        >>> normalize_phone("+44 20 7946 0958")
        '442079460958'
    """
    if raw is None:
        return ""
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    digits = _NON_DIGITS.sub("", str(raw))
    if len(digits) == LOCAL_NUMBER_LENGTH:
        return f"{default_country_code}{digits}"
    return digits
