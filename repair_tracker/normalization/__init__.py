"""Normalization of raw sheet values.

- dates: raw date values to canonical ``YYYY-MM-DD`` days
- service: whole sheet rows to JobRecord, with anomaly reporting
  (import from ``repair_tracker.normalization.service``)
"""

from .dates import NO_DATE, DateNormalizer, display_date, is_canonical_date, normalize_date

__all__ = [
    "DateNormalizer",
    "normalize_date",
    "display_date",
    "is_canonical_date",
    "NO_DATE",
]
