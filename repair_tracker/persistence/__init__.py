"""Local SQLite store for jobs, used offline and as a mirror of the sheet."""

from .database import Database, redact_url
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import LocalJobRepository

__all__ = [
    "Database",
    "redact_url",
    "LocalJobRepository",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
