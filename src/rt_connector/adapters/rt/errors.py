from __future__ import annotations


class RTApiError(Exception):
    """Base class for Request Tracker API errors."""


class NotFoundError(RTApiError):
    """Query returned no matches or the object does not exist."""


class HttpError(RTApiError):
    """Transport-level failure (HTTP 4xx/5xx or no response at all)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmbeddedError(RTApiError):
    """RT answered 200 but reported an application-level failure in the body."""


class EmbeddedNotFoundError(EmbeddedError, NotFoundError):
    """Embedded failure whose text also says the object was not found."""


class ParseError(RTApiError):
    """User-supplied JSON (custom fields, attachments) could not be parsed."""


class ParameterError(RTApiError):
    """Operation parameters failed validation."""


class AttachmentFetchError(RTApiError):
    """Fetching attachments for a transaction failed; callers degrade to empty results."""


class TriggerError(RTApiError):
    """Polling for tickets failed."""
