"""Typed errors raised by the outage services and mapped to HTTP responses in main."""


class OutageError(Exception):
    """Base class for caller-visible outage errors."""

    status_code = 400
    message = "Bad request"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationFailed(OutageError):
    """Raised when a report is missing fields or carries malformed values."""
    message = "Missing required fields"


class InvalidId(OutageError):
    """Raised when an outage id is not a well-formed record identifier."""
    message = "Invalid ID"


class OutageNotFound(OutageError):
    status_code = 404
    message = "Not found"


class AlreadyResolved(OutageError):
    """Raised when restoring an outage that is already resolved."""
    message = "Already resolved"


class Forbidden(OutageError):
    status_code = 403
    message = "Forbidden"
