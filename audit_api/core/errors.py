from __future__ import annotations

from typing import Any, Optional


class AuditApiError(Exception):
    """Base error for the audit API."""

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(AuditApiError):
    """Lookup by id yielded no visible row (absent or soft-deleted)."""


class EntityValidationError(AuditApiError):
    """Mandatory-field, range, check or foreign-key constraint violation."""


class AppendOnlyViolationError(EntityValidationError):
    """Attempt to modify or delete an append-only record."""


class ConflictError(AuditApiError):
    """Duplicate key or concurrent modification detected at commit time."""


class StoreUnavailableError(AuditApiError):
    """Connectivity or transaction failure talking to the database."""
