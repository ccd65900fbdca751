"""
Typed errors raised by the campaign and post managers.
Routers map them to HTTP: ValidationError 400, NotFoundError 404, ConflictError 409, StorageError 503.
"""
from typing import Any, Dict, Optional


class SchedulingError(Exception):
    """Base error for the scheduling core."""

    code = "scheduling_error"

    def __init__(self, message: str, *, code: Optional[str] = None, extra: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.extra = extra or {}


class ValidationError(SchedulingError, ValueError):
    """Malformed, missing or out-of-range input. Caller-fixable; never retried."""

    code = "validation_error"


class NotFoundError(SchedulingError, LookupError):
    """Referenced campaign, post or platform entry does not exist."""

    code = "not_found"


class ConflictError(SchedulingError):
    """Optimistic-concurrency write kept colliding; re-fetch and retry."""

    code = "conflict"


class StorageError(SchedulingError):
    """Database unavailable or connection dropped. Safe to retry."""

    code = "storage_unavailable"
