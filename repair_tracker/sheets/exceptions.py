"""Exceptions raised by the spreadsheet client."""


class SheetsError(Exception):
    """Base exception for all spreadsheet access errors.

    Catching this covers every way a remote read or write can fail; the job
    service uses it to decide when to fall back to the local store.
    """

    pass


class SheetsHTTPError(SheetsError):
    """The proxy or script answered with an error status, or the connection failed.

    ``status_code`` is 0 when no HTTP response was received at all.
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    @property
    def is_connection_error(self) -> bool:
        return self.status_code == 0


class SheetsTimeoutError(SheetsError):
    """The request did not complete within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class SheetsResponseError(SheetsError):
    """The response could not be parsed, or reported ``success: false``."""

    pass
