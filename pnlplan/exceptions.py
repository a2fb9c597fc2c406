"""Error taxonomy for P&L operations.

Precondition violations are raised before any row data is written and carry
the HTTP status the web layer should answer with.
"""

from __future__ import annotations


class PnlError(Exception):
    """Base class for user-facing P&L errors."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(PnlError):
    """Request is missing fields or carries values that cannot be used."""

    status_code = 400


class VersionLockedError(PnlError):
    """Target version is locked against structural and value edits."""

    status_code = 403


class VersionNotFoundError(PnlError):
    status_code = 404


class LineItemNotFoundError(PnlError):
    status_code = 404


class EmptySourceError(PnlError):
    """Source statement has no rows to copy from."""

    status_code = 404
