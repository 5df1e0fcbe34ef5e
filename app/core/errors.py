# app/core/errors.py
from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
    SQLAlchemyError,
)


class AppError(Exception):
    # Base class for domain errors; status_code is the HTTP mapping.
    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ImportValidationError(AppError):
    # Whole batch rejected before any write.
    status_code = 400


class ImportFileError(AppError):
    # Unreadable upload, unsupported extension or missing headers.
    status_code = 400


class ReferenceNotFound(AppError):
    status_code = 404


class HierarchyConflict(AppError):
    # Delete blocked because the entity still owns children.
    status_code = 409


class AuthError(AppError):
    status_code = 401


class PermissionDenied(AppError):
    status_code = 403


CONNECTION_FAILED = "Database connection failed"
SCHEMA_MISSING = "Database schema is missing required tables"
FOREIGN_KEY_VIOLATION = "Referenced record does not exist (foreign key constraint violated)"
STORAGE_FAILED = "Database operation failed"

_SCHEMA_MARKERS: List[str] = ["no such table", "does not exist", "undefinedtable", "no such column"]
_CONNECTION_MARKERS: List[str] = [
    "could not connect", "connection refused", "econnrefused", "unable to open database",
    "server closed the connection", "timeout expired", "connection reset",
]


def classify_storage_error(exc: BaseException) -> str:
    """Map a storage exception to one user-facing message."""
    text = str(getattr(exc, "orig", None) or exc).lower()

    if isinstance(exc, IntegrityError):
        if "foreign key" in text:
            return FOREIGN_KEY_VIOLATION
        return STORAGE_FAILED
    if any(m in text for m in _SCHEMA_MARKERS):
        return SCHEMA_MISSING
    if isinstance(exc, InterfaceError) or any(m in text for m in _CONNECTION_MARKERS):
        return CONNECTION_FAILED
    if isinstance(exc, DBAPIError) and getattr(exc, "connection_invalidated", False):
        return CONNECTION_FAILED
    if isinstance(exc, ProgrammingError):
        return SCHEMA_MISSING
    if isinstance(exc, OperationalError):
        return CONNECTION_FAILED
    if isinstance(exc, SQLAlchemyError):
        return STORAGE_FAILED
    return STORAGE_FAILED
