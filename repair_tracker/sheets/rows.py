"""Unpacking of job rows from script responses."""

import csv
import io
from typing import Any, Dict, List

from .exceptions import SheetsResponseError

# Script CSV header -> wire field name
CSV_COLUMNS = {
    "Date": "date",
    "Customer Name": "customerName",
    "CustomerName": "customerName",
    "Mobile": "mobile",
    "TV Model": "tvModel",
    "TVModel": "tvModel",
    "Work Done": "workDone",
    "WorkDone": "workDone",
    "Price": "price",
    "Parts Cost": "partsCost",
    "PartsCost": "partsCost",
    "Profit": "profit",
}


def extract_rows(payload: Any) -> List[Dict[str, Any]]:
    """
    Pull the row list out of a ``{success, data, error}`` envelope.

    The script sometimes nests the rows one level deeper (``data.data``).

    Raises:
        SheetsResponseError: If the envelope reports failure or holds no list
    """
    if isinstance(payload, list):
        return [row for row in payload if isinstance(row, dict)]

    if not isinstance(payload, dict):
        raise SheetsResponseError(f"Unexpected response type: {type(payload).__name__}")

    if payload.get("success") is False:
        raise SheetsResponseError(payload.get("error") or "Script reported failure")

    data = payload.get("data")
    if isinstance(data, dict) and "data" in data:
        data = data["data"]
    if data is None:
        return []
    if not isinstance(data, list):
        raise SheetsResponseError(f"Expected a list of rows, got {type(data).__name__}")
    return [row for row in data if isinstance(row, dict)]


def dates_look_collapsed(rows: List[Dict[str, Any]]) -> bool:
    """
    Whether every row carries the same date.

    The script's JSON export has been seen to stamp one date on every row;
    the CSV export of the same sheet keeps the real dates.
    """
    if len(rows) < 2:
        return False
    first = rows[0].get("date")
    return all(row.get("date") == first for row in rows)


def rows_from_csv(text: str) -> List[Dict[str, Any]]:
    """Parse the script's CSV export into wire-named row dicts."""
    reader = csv.DictReader(io.StringIO(text or ""))
    rows = []
    for record in reader:
        row: Dict[str, Any] = {}
        for header, value in record.items():
            if header is None:
                continue
            field = CSV_COLUMNS.get(header.strip())
            if field and field not in row:
                row[field] = (value or "").strip()
        if any(row.values()):
            rows.append(row)
    return rows
