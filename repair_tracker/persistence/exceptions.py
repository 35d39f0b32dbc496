"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError for easy catching.
"""


class PersistenceError(Exception):
    """Base exception for all local store errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be opened or initialized.

    Examples:
    - Invalid database URL
    - Database file or directory not writable
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when a job id (or position) matches nothing in the store."""

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a write violates a database constraint."""

    pass
