"""
Error taxonomy for META Storage.

Every failure raised by the storage engine and the authorizer is one of
these types. The HTTP layer maps each ``code`` to a distinct status so that
"not found" and "unauthorized" are never conflated.
"""

from typing import Optional


class StorageServiceError(Exception):
    """Base class for all typed storage service errors."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class NotFoundError(StorageServiceError):
    """Referenced bucket, object or meta record does not exist."""

    code = "NOT_FOUND"


class UnauthorizedError(StorageServiceError):
    """Unknown client or invalid/expired token."""

    code = "UNAUTHORIZED"


class MetaParseError(StorageServiceError):
    """Persisted meta record exists but is corrupt."""

    code = "META_PARSE_ERROR"


class ValidationFailure(StorageServiceError):
    """Required input missing or malformed."""

    code = "VALIDATION_ERROR"


class StorageIOError(StorageServiceError):
    """Filesystem operation failed for a reason other than absence."""

    code = "STORAGE_IO_ERROR"
