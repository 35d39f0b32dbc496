"""Row building for job and report exports."""

from .rows import (
    COLUMN_LABELS,
    DEFAULT_COLUMNS,
    ExportRequest,
    build_export_rows,
    customer_rows,
    job_row,
    summary_rows,
    this_month_rows,
    unique_customers,
)

__all__ = [
    "ExportRequest",
    "COLUMN_LABELS",
    "DEFAULT_COLUMNS",
    "build_export_rows",
    "this_month_rows",
    "unique_customers",
    "customer_rows",
    "summary_rows",
    "job_row",
]
