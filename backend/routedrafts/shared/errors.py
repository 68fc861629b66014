"""
Error taxonomy for route storage operations.

Low-level store and media errors are translated into these at each
operation boundary and then into a Result (see result.py).
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers."""
    NOT_INITIALIZED = "not_initialized"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    ENCODING_ERROR = "encoding_error"
    UPLOAD_FAILURE = "upload_failure"
    INVALID_STATE = "invalid_state"
    STORE_ERROR = "store_error"


class RouteStoreError(Exception):
    """Base error for the route engine."""

    kind: ErrorKind = ErrorKind.STORE_ERROR

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value


class NotInitialized(RouteStoreError):
    """Backing store or media service is unreachable or unconfigured."""
    kind = ErrorKind.NOT_INITIALIZED


class NotFound(RouteStoreError):
    """Referenced draft, saved route or segment is absent."""
    kind = ErrorKind.NOT_FOUND


class PermissionDenied(RouteStoreError):
    """Acting user does not own the record."""
    kind = ErrorKind.PERMISSION_DENIED


class EncodingError(RouteStoreError):
    """Malformed geometry or a stored document that fails validation."""
    kind = ErrorKind.ENCODING_ERROR


class UploadFailure(RouteStoreError):
    """A single media upload failed (non-fatal for batches)."""
    kind = ErrorKind.UPLOAD_FAILURE


class InvalidState(RouteStoreError):
    """Operation does not apply to the record in its current state."""
    kind = ErrorKind.INVALID_STATE
