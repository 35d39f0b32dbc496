"""Pure list operations behind job edits.

Each function returns a new list or record; inputs are never modified.
Jobs are addressed by id, with a numeric position accepted as a fallback
for callers that only know where a job sits in the displayed list.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from repair_tracker.domain.models import JobRecord
from repair_tracker.normalization.dates import is_canonical_date

FIELD_NAMES = (
    "date",
    "customer_name",
    "mobile",
    "device_model",
    "work_description",
    "price",
    "parts_cost",
    "profit",
)

_WIRE_NAMES = {
    "customerName": "customer_name",
    "deviceModel": "device_model",
    "tvModel": "device_model",
    "workDescription": "work_description",
    "workDone": "work_description",
    "partsCost": "parts_cost",
}


def resolve_job_index(job_ids: Sequence[str], job_id: str) -> Optional[int]:
    """
    Position of job_id within job_ids.

    An exact id match wins. Otherwise a non-negative integer within range is
    taken as the position itself. Returns None when neither applies.
    """
    key = str(job_id).strip()
    for index, candidate in enumerate(job_ids):
        if candidate == key:
            return index

    if key.isdigit():
        position = int(key)
        if position < len(job_ids):
            return position
    return None


def with_job_added(jobs: Sequence[JobRecord], job: JobRecord) -> List[JobRecord]:
    return [*jobs, job]


def with_job_replaced(jobs: Sequence[JobRecord], index: int, job: JobRecord) -> List[JobRecord]:
    """
    Raises:
        IndexError: If index is outside the list
    """
    _check_index(jobs, index)
    return [job if position == index else existing for position, existing in enumerate(jobs)]


def without_job(jobs: Sequence[JobRecord], index: int) -> List[JobRecord]:
    """
    Raises:
        IndexError: If index is outside the list
    """
    _check_index(jobs, index)
    return [existing for position, existing in enumerate(jobs) if position != index]


def sorted_newest_first(jobs: Sequence[JobRecord]) -> List[JobRecord]:
    """Most recent canonical date first; undated or unrecognized dates last."""
    dated = [job for job in jobs if is_canonical_date(job.date)]
    undated = [job for job in jobs if not is_canonical_date(job.date)]
    return sorted(dated, key=lambda job: job.date, reverse=True) + undated


def apply_job_update(job: JobRecord, patch: Mapping[str, Any]) -> JobRecord:
    """
    Return job with the fields in patch replaced.

    Patch keys may be field names or sheet wire names. When price or parts
    cost change and no profit is supplied, profit is derived again.

    Raises:
        ValueError: If patch names a field that does not exist
    """
    changes = _canonical_patch(patch)
    values: Dict[str, Any] = job.model_dump()
    values.update(changes)

    amounts_changed = "price" in changes or "parts_cost" in changes
    if amounts_changed and "profit" not in changes:
        values.pop("profit")

    return JobRecord.model_validate(values)


def _canonical_patch(patch: Mapping[str, Any]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    unknown = []
    for key, value in patch.items():
        name = _WIRE_NAMES.get(key, key)
        if name not in FIELD_NAMES:
            unknown.append(key)
            continue
        changes[name] = value
    if unknown:
        raise ValueError(f"Unknown job fields: {', '.join(sorted(unknown))}")
    return changes


def _check_index(jobs: Sequence[JobRecord], index: int) -> None:
    if index < 0 or index >= len(jobs):
        raise IndexError(f"Job position {index} is out of range (0-{len(jobs) - 1})")
