"""
core/errors.py: error taxonomy shared by the repository, services and API.

ValidationError  → HTTP 400
BackendError     → HTTP 500 (or a failed Result at the repository boundary)
AuthError        → identity provider failures, carry a human-readable message
"""


class DiaryError(Exception):
    """Base class for every error raised or returned by the diary backend."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(DiaryError):
    """Missing or malformed request fields."""


class NotConfiguredError(ValidationError):
    """An operation was called without the user id it is scoped to."""


class BackendError(DiaryError):
    """The document store failed."""


class StoreTimeoutError(BackendError):
    """The document store did not answer within STORE_TIMEOUT_SECONDS."""


class DocumentNotFoundError(BackendError):
    """An update targeted a document that does not exist."""


class AuthError(DiaryError):
    """The identity provider rejected or failed a request."""
