"""
Error taxonomy shared by the store adapters, the ingestion service and the
HTTP handlers. Each error carries the HTTP status it maps to.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors that map onto a client-visible status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(AppError):
    """Requested entity is absent."""

    status_code = 404


class Conflict(AppError):
    """Unique-constraint violation on create."""

    status_code = 409


class BadRequest(AppError):
    """Malformed or incomplete input."""

    status_code = 400


class UpstreamFetchFailure(AppError):
    """External feed unreachable or errored."""

    status_code = 502

    def __init__(self, category: str, message: Optional[str] = None):
        super().__init__(message or f"An error occurred while fetching {category} headlines.")
        self.category = category


class InternalError(AppError):
    """Unclassified store or runtime failure."""

    status_code = 500
