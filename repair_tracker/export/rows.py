"""Row building for job exports.

Rows are plain dicts keyed by column label, ready for whichever file
writer the caller uses. Encoding to CSV, Excel or PDF happens elsewhere.
"""

import calendar
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator, model_validator

from repair_tracker.domain.models import JobRecord
from repair_tracker.reporting.engine import JobLike, as_records
from repair_tracker.reporting.filters import filter_by_date_range
from repair_tracker.utils.timestamps import utc_today

COLUMN_LABELS = {
    "date": "Date",
    "customerName": "Customer Name",
    "mobile": "Mobile",
    "tvModel": "Device Model",
    "workDone": "Work Done",
    "price": "Price",
    "partsCost": "Parts Cost",
    "profit": "Profit",
}

DEFAULT_COLUMNS = ["date", "customerName", "mobile", "tvModel", "workDone", "price", "profit"]


class ExportRequest(BaseModel):
    """Which jobs and columns to export.

    Both dates are inclusive and optional. Jobs without a recognizable date
    are only exported when no range is given.
    """

    from_date: Optional[date] = Field(None, description="First day to include")
    to_date: Optional[date] = Field(None, description="Last day to include")
    columns: List[str] = Field(default_factory=lambda: list(DEFAULT_COLUMNS))

    @field_validator("columns")
    @classmethod
    def validate_columns(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one column must be selected")
        unknown = [column for column in v if column not in COLUMN_LABELS]
        if unknown:
            raise ValueError(
                f"Unknown columns: {', '.join(unknown)}. Valid: {', '.join(COLUMN_LABELS)}"
            )
        # Keep the first occurrence of each column
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def validate_range(self) -> "ExportRequest":
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError(f"from_date {self.from_date} is after to_date {self.to_date}")
        return self

    @property
    def has_range(self) -> bool:
        return self.from_date is not None or self.to_date is not None


def build_export_rows(
    jobs: Optional[Iterable[JobLike]], request: Optional[ExportRequest] = None
) -> List[Dict[str, Any]]:
    """Label-keyed rows for the jobs selected by request, in input order."""
    request = request or ExportRequest()
    records = as_records(jobs)
    if request.has_range:
        records = filter_by_date_range(records, request.from_date, request.to_date)
    return [job_row(job, request.columns) for job in records]


def this_month_rows(
    jobs: Optional[Iterable[JobLike]],
    today: Optional[date] = None,
    columns: Optional[Sequence[str]] = None,
) -> List[Dict[str, Any]]:
    """Rows for jobs dated anywhere in the current calendar month."""
    day = today or utc_today()
    last_day = calendar.monthrange(day.year, day.month)[1]
    request = ExportRequest(
        from_date=day.replace(day=1),
        to_date=day.replace(day=last_day),
        columns=list(columns or DEFAULT_COLUMNS),
    )
    return build_export_rows(jobs, request)


def unique_customers(jobs: Optional[Iterable[JobLike]]) -> List[JobRecord]:
    """
    First job seen for each customer.

    Customers are identified by the digits of their mobile number, or by
    their name (ignoring case) when no number was recorded.
    """
    seen = set()
    customers = []
    for job in as_records(jobs):
        digits = "".join(ch for ch in job.mobile if ch.isdigit())
        key = ("mobile", digits) if digits else ("name", job.customer_name.strip().lower())
        if key == ("name", "") or key in seen:
            continue
        seen.add(key)
        customers.append(job)
    return customers


def customer_rows(jobs: Optional[Iterable[JobLike]]) -> List[Dict[str, Any]]:
    return [job_row(job, ["customerName", "mobile", "tvModel"]) for job in unique_customers(jobs)]


def summary_rows(stats: Iterable[Any]) -> List[Dict[str, Any]]:
    """Rows for aggregate exports; each item must provide ``to_dict()``."""
    return [item.to_dict() for item in stats]


def job_row(job: JobRecord, columns: Sequence[str]) -> Dict[str, Any]:
    values = job.to_sheet_payload()
    return {COLUMN_LABELS[column]: values[column] for column in columns}
