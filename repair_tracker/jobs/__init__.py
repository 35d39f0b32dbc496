"""Job list editing operations."""

from .operations import (
    apply_job_update,
    resolve_job_index,
    sorted_newest_first,
    with_job_added,
    with_job_replaced,
    without_job,
)

__all__ = [
    "resolve_job_index",
    "with_job_added",
    "with_job_replaced",
    "without_job",
    "sorted_newest_first",
    "apply_job_update",
]
