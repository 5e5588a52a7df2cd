"""Error types raised by the counter engine and reminder scheduler."""

from __future__ import annotations

import builtins
from typing import Optional


class DailyDeclareError(Exception):
    code = "dailydeclare_error"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class StorageUnavailable(DailyDeclareError):
    """The persisted key-value store could not be read or written."""

    code = "storage_unavailable"


class PermissionDenied(DailyDeclareError, builtins.PermissionError):
    """Notification permission was refused by the user or platform."""

    code = "permission_denied"


class NotFound(DailyDeclareError, LookupError):
    """An update or delete referenced an unknown reminder id."""

    code = "not_found"

    def __init__(self, message: str, *, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class InvalidTime(DailyDeclareError, ValueError):
    """A time-of-day value was malformed or out of range."""

    code = "invalid_time"


__all__ = [
    "DailyDeclareError",
    "InvalidTime",
    "NotFound",
    "PermissionDenied",
    "StorageUnavailable",
]
