"""
Audit component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from .models import AuditQuery, DeletionAuditEntry


class AuditRepoPort(Protocol):
    """Append-only storage for deletion audit entries."""

    def save(self, entry: DeletionAuditEntry) -> DeletionAuditEntry:
        """Save an audit entry."""
        ...

    def get_by_id(self, entry_id: UUID) -> DeletionAuditEntry | None:
        """Get entry by ID."""
        ...

    def query(self, query: AuditQuery) -> list[DeletionAuditEntry]:
        """Query entries with filters, newest first."""
        ...

    def count(self, query: AuditQuery) -> int:
        """Count entries matching query."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
