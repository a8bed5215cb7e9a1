"""
Domain errors for the report pipeline.

Each error carries the HTTP status the API should answer with; the handler
registered in app.main turns them into the standard error envelope.
"""

from fastapi import status


class ReportError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ReportError):
    """Required selection context (student, subject, class, actor) is missing."""
    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateError(ReportError):
    """A report already exists for the (student, subject, term, year, teacher) key."""
    status_code = status.HTTP_409_CONFLICT


class FetchError(ReportError):
    """A collaborator read failed."""
    status_code = status.HTTP_502_BAD_GATEWAY


class PersistenceError(ReportError):
    """A collaborator write failed."""
    status_code = status.HTTP_502_BAD_GATEWAY


class InvalidTransitionError(ReportError):
    status_code = status.HTTP_409_CONFLICT


class ReportNotFoundError(ReportError):
    status_code = status.HTTP_404_NOT_FOUND
