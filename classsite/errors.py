"""
Error taxonomy for the content manager.

Every error carries the HTTP status it maps to; the app factory installs a
handler that renders them as ``{"error": message}``.
"""

from __future__ import annotations


class ContentError(Exception):
    """Base exception for all content manager errors."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(ContentError):
    """Malformed or missing input."""

    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message)


class AuthenticationError(ContentError):
    """Login failed. The message never says which field was wrong."""

    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AuthorizationError(ContentError):
    """Protected route called without a usable token."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class MissingTokenError(AuthorizationError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized: No token provided"):
        super().__init__(message)


class InvalidTokenError(AuthorizationError):
    status_code = 403

    def __init__(self, message: str = "Unauthorized: Invalid token"):
        super().__init__(message)


class NotFoundError(ContentError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class UploadError(ContentError):
    """Upload batch rejected before anything was written."""

    status_code = 400


class PayloadTooLargeError(UploadError):
    def __init__(self, message: str = "File too large (max 5MB)"):
        super().__init__(message)


class TooManyFilesError(UploadError):
    def __init__(self, message: str = "Too many files (max 10)"):
        super().__init__(message)


class UnsupportedFileTypeError(UploadError):
    def __init__(self, message: str = "Only image files are allowed!"):
        super().__init__(message)


class InternalError(ContentError):
    """Unexpected persistence or filesystem failure."""

    status_code = 500
