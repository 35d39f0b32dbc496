"""Row normalization service: sheet rows to JobRecord.

JobRecord already coerces every field; this service adds the bookkeeping
around it. It reports which values had to be replaced so data problems in
the sheet show up in the logs instead of silently becoming zeros.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Mapping, Optional

from pydantic import ValidationError

from repair_tracker.domain.models import JobRecord, coerce_amount
from repair_tracker.logging import get_logger

from .dates import is_canonical_date

logger = get_logger(__name__, component="normalization")

_AMOUNT_ALIASES = {
    "price": ("price",),
    "parts_cost": ("parts_cost", "partsCost"),
    "profit": ("profit",),
}


@dataclass
class NormalizationResult:
    """Result of normalizing a single sheet row.

    Attributes:
        record: Normalized job
        date_recognized: True if the date became a real canonical day
        coerced_fields: Amount fields whose raw value was unusable and became 0
        profit_derived: True if profit was computed from price and parts cost
        raw: Original row (preserved for debugging)
    """

    record: JobRecord
    date_recognized: bool
    coerced_fields: List[str] = field(default_factory=list)
    profit_derived: bool = False
    raw: Optional[Mapping[str, Any]] = None

    @property
    def is_clean(self) -> bool:
        return self.date_recognized and not self.coerced_fields


class JobNormalizer:
    """Normalizes raw sheet rows into JobRecord instances."""

    def __init__(self, logger_instance: Optional[logging.Logger] = None):
        self.logger = logger_instance or logger

    def normalize(self, row: Mapping[str, Any]) -> NormalizationResult:
        """
        Normalize one row and note anything that had to be repaired.

        Raises:
            TypeError: If row is not a mapping
        """
        if not isinstance(row, Mapping):
            raise TypeError(f"Job row must be a mapping, got {type(row).__name__}")

        record = JobRecord.from_raw(row)
        coerced = [name for name, aliases in _AMOUNT_ALIASES.items() if _was_coerced(row, aliases)]
        profit_derived = _raw_value(row, _AMOUNT_ALIASES["profit"]) is None
        date_recognized = is_canonical_date(record.date)

        if not record.date:
            self.logger.warning(
                f"Job for '{record.customer_name}' has no date",
                extra={"event": "normalization.job.missing_date", "customer": record.customer_name},
            )
        elif not date_recognized:
            self.logger.warning(
                f"Unrecognized date '{record.date}' kept as-is",
                extra={
                    "event": "normalization.job.unrecognized_date",
                    "raw_date": record.date,
                    "customer": record.customer_name,
                },
            )

        if coerced:
            self.logger.warning(
                f"Replaced unusable amounts with 0: {', '.join(coerced)}",
                extra={
                    "event": "normalization.job.amounts_coerced",
                    "fields": coerced,
                    "customer": record.customer_name,
                },
            )

        return NormalizationResult(
            record=record,
            date_recognized=date_recognized,
            coerced_fields=coerced,
            profit_derived=profit_derived,
            raw=row,
        )

    def process_batch(self, rows: Iterable[Any]) -> Iterator[NormalizationResult]:
        """
        Normalize many rows, skipping (and logging) any that cannot be read.

        Yields:
            NormalizationResult for each usable row
        """
        for position, row in enumerate(rows):
            try:
                yield self.normalize(row)
            except (TypeError, ValueError, ValidationError) as e:
                self.logger.error(
                    f"Skipping unreadable job row at position {position}: {e}",
                    exc_info=True,
                    extra={"event": "normalization.job.skipped", "position": position},
                )
                continue

    def normalize_all(self, rows: Iterable[Any]) -> List[JobRecord]:
        """Records for every usable row, in input order."""
        results = list(self.process_batch(rows))
        self.logger.info(
            f"Normalized {len(results)} jobs",
            extra={
                "event": "normalization.batch.completed",
                "job_count": len(results),
                "anomalies": sum(1 for result in results if not result.is_clean),
            },
        )
        return [result.record for result in results]


def _raw_value(row: Mapping[str, Any], aliases) -> Any:
    for key in aliases:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def _was_coerced(row: Mapping[str, Any], aliases) -> bool:
    raw = _raw_value(row, aliases)
    if raw is None:
        return False
    return coerce_amount(raw) == 0.0 and not _is_zero(raw)


def _is_zero(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == 0
    text = str(value).strip().replace(",", "")
    try:
        return float(text) == 0
    except ValueError:
        return False
