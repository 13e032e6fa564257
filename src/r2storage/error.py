"""
Exception classes for the R2 storage SDK
"""

from typing import Iterable


class R2StorageException(Exception):
    """
    Base exception for all R2 storage SDK errors.
    """

    def __init__(self, message: str, status_code: int = None, error_code: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class ValidationError(R2StorageException, ValueError):
    """Raised locally when caller input is rejected. No request is sent."""

    def __init__(self, message: str):
        super().__init__(message, error_code="ValidationError")


class ContentTypeNotAllowedError(ValidationError):
    """Thrown when a content type matches none of the allowed patterns."""

    def __init__(self, content_type: str, allowed_content_types: Iterable[str]):
        self.content_type = content_type
        self.allowed_content_types = list(allowed_content_types)
        super().__init__(
            f"Content type '{content_type}' is not allowed. "
            f"Allowed types: {', '.join(self.allowed_content_types)}"
        )


class RemoteError(R2StorageException):
    """Thrown when the service answers with a status that is not tolerated."""

    def __init__(self, operation: str, status_code: int, reason: str = ""):
        super().__init__(
            f"{operation} failed: {status_code} {reason}".rstrip(),
            status_code=status_code,
            error_code="RemoteError",
        )
        self.operation = operation
        self.reason = reason


class ResponseParseError(R2StorageException):
    """Thrown when a successful response carries an unreadable XML body."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message, status_code, error_code="MalformedResponse")


class TransportFailure(R2StorageException):
    """Thrown when the request never produced a response (DNS, refused, reset)."""

    def __init__(self, message: str):
        super().__init__(message, error_code="TransportFailure")
