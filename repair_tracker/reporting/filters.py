"""Job list filters used by the list view and exports."""

from datetime import date, timedelta
from typing import Iterable, List, Optional

from repair_tracker.domain.models import JobRecord
from repair_tracker.normalization.dates import parse_canonical
from repair_tracker.utils.timestamps import utc_today

from .engine import JobLike, as_records, current_month_key, previous_month_key

PERIODS = ("all", "today", "this-week", "this-month", "last-month")


def search_jobs(jobs: Optional[Iterable[JobLike]], query: str) -> List[JobRecord]:
    """
    Jobs whose customer name or device model contains query (any case),
    or whose mobile number contains it. A blank query matches everything.
    """
    records = as_records(jobs)
    needle = (query or "").strip()
    if not needle:
        return records

    lowered = needle.lower()
    return [
        job
        for job in records
        if lowered in job.customer_name.lower()
        or needle in job.mobile
        or lowered in job.device_model.lower()
    ]


def filter_by_period(
    jobs: Optional[Iterable[JobLike]], period: str, today: Optional[date] = None
) -> List[JobRecord]:
    """
    Jobs falling in a named period relative to today.

    ``this-week`` is the trailing seven days including today. Jobs without a
    recognizable date only appear under ``all``.

    Raises:
        ValueError: If period is not one of PERIODS
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown period '{period}'. Expected one of: {', '.join(PERIODS)}")

    records = as_records(jobs)
    if period == "all":
        return records

    end = today or utc_today()
    if period == "today":
        return filter_by_date_range(records, end, end)
    if period == "this-week":
        return filter_by_date_range(records, end - timedelta(days=6), end)

    month_key = current_month_key(end) if period == "this-month" else previous_month_key(end)
    return [job for job in records if parse_canonical(job.date) and job.date.startswith(month_key)]


def filter_by_date_range(
    jobs: Optional[Iterable[JobLike]],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[JobRecord]:
    """Jobs dated within [start, end]; either bound may be omitted."""
    selected = []
    for job in as_records(jobs):
        day = parse_canonical(job.date)
        if day is None:
            continue
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        selected.append(job)
    return selected
