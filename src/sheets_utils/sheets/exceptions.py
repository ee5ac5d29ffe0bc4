"""Google Sheets client exceptions."""


class SheetsError(Exception):
    """Base exception for spreadsheet operations."""

    pass


class NotFoundError(SheetsError):
    """Raised when a range returns no data or a sheet name does not exist."""

    pass


class ValidationError(SheetsError, ValueError):
    """Raised when arguments are rejected before any remote call."""

    pass


class UnexpectedResponseShapeError(SheetsError):
    """Raised when the API response lacks data it should have echoed back."""

    pass


class RemoteCallError(SheetsError):
    """Raised when the Sheets API call itself fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
