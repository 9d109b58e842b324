"""Error types shared by the Study Portal services and web layer."""

from __future__ import annotations


class PortalError(Exception):
    """Base class for failures that map onto a JSON error response."""

    status_code = 400
    default_message = "Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PortalError):
    """Raised when an incoming lesson payload is missing a required field."""

    default_message = "Title is required"


class Unauthorized(PortalError):
    """Raised when a request does not carry a valid admin session."""

    status_code = 401
    default_message = "Unauthorized"


class UnsupportedMediaType(PortalError):
    """Raised when an upload does not use an allowed media extension."""

    default_message = "Unsupported file type. Use mp4/m4a/mp4a/mp3/wav/webm/ogg."


class PayloadTooLarge(PortalError):
    """Raised when an upload exceeds the configured size cap."""

    default_message = "File too large"


class PersistenceCorrupt(PortalError):
    """Raised internally when the catalog file cannot be parsed.

    The catalog store recovers from this error by returning an empty catalog,
    so it never reaches a client.
    """

    status_code = 500
    default_message = "Catalog file is malformed"


__all__ = [
    "PayloadTooLarge",
    "PersistenceCorrupt",
    "PortalError",
    "Unauthorized",
    "UnsupportedMediaType",
    "ValidationError",
]
