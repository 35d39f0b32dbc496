"""Access to the job spreadsheet through its proxy."""

from .cache import ResponseCache
from .client import SheetsClient
from .exceptions import SheetsError, SheetsHTTPError, SheetsResponseError, SheetsTimeoutError
from .rows import dates_look_collapsed, extract_rows, rows_from_csv

__all__ = [
    "SheetsClient",
    "ResponseCache",
    "SheetsError",
    "SheetsHTTPError",
    "SheetsTimeoutError",
    "SheetsResponseError",
    "extract_rows",
    "dates_look_collapsed",
    "rows_from_csv",
]
