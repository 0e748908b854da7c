"""
Audit component models - deletion audit trail entries and queries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class DeletionAction(str, Enum):
    """Lifecycle events recorded in the deletion audit trail."""

    SOFT_DELETE = "soft_delete"
    RESTORE = "restore"
    PERMANENT_DELETE = "permanent_delete"


@dataclass(frozen=True)
class DeletionAuditEntry:
    """Immutable audit log entry."""

    id: UUID
    content_type: str
    content_id: str
    content_name: str | None
    action: DeletionAction
    performed_by: str | None
    performed_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def has_snapshot(self) -> bool:
        return bool(self.metadata.get("content_snapshot"))


@dataclass(frozen=True)
class AuditQuery:
    """Query parameters for the audit log. Results are newest first."""

    content_type: str | None = None
    content_id: str | None = None
    action: DeletionAction | None = None
    performed_by: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    limit: int | None = 100
    offset: int = 0

    def unpaged(self) -> AuditQuery:
        return AuditQuery(
            content_type=self.content_type,
            content_id=self.content_id,
            action=self.action,
            performed_by=self.performed_by,
            start_time=self.start_time,
            end_time=self.end_time,
            limit=None,
            offset=0,
        )

    def matches(self, entry: DeletionAuditEntry) -> bool:
        if self.content_type and entry.content_type != self.content_type:
            return False
        if self.content_id and entry.content_id != self.content_id:
            return False
        if self.action and entry.action != self.action:
            return False
        if self.performed_by and entry.performed_by != self.performed_by:
            return False
        if self.start_time and entry.performed_at < self.start_time:
            return False
        if self.end_time and entry.performed_at > self.end_time:
            return False
        return True
