"""
Audit component - deletion audit trail.

Records every soft delete, restore and permanent delete of a content item and
answers filtered, paginated queries over the trail.

Invariants:
- Entries are immutable and append-only.
- Soft and permanent deletes carry a snapshot of the row as it was.
- Queries return newest entries first.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from .models import AuditQuery, DeletionAction, DeletionAuditEntry
from .ports import AuditRepoPort, TimePort

logger = logging.getLogger(__name__)


class DefaultTimePort:
    """Default time provider."""

    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class InMemoryAuditRepo:
    """In-memory audit repository for testing/dev."""

    def __init__(self) -> None:
        self._entries: dict[UUID, DeletionAuditEntry] = {}

    def save(self, entry: DeletionAuditEntry) -> DeletionAuditEntry:
        self._entries[entry.id] = entry
        return entry

    def get_by_id(self, entry_id: UUID) -> DeletionAuditEntry | None:
        return self._entries.get(entry_id)

    def query(self, query: AuditQuery) -> list[DeletionAuditEntry]:
        results = [e for e in self._entries.values() if query.matches(e)]
        results.sort(key=lambda e: e.performed_at, reverse=True)
        if query.limit is None:
            return results[query.offset :]
        return results[query.offset : query.offset + query.limit]

    def count(self, query: AuditQuery) -> int:
        return sum(1 for e in self._entries.values() if query.matches(e))

    def clear(self) -> None:
        """Clear all entries (for testing)."""
        self._entries.clear()


class DeletionAuditService:
    """
    Writes and reads the deletion audit trail.

    Implements the deletion audit port the content component calls after
    each delete, restore and permanent delete.
    """

    def __init__(self, repo: AuditRepoPort, time_port: TimePort | None = None) -> None:
        self._repo = repo
        self._time = time_port or DefaultTimePort()

    def log(
        self,
        action: DeletionAction,
        content_type: str,
        content_id: str,
        content_name: str | None = None,
        performed_by: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> DeletionAuditEntry:
        entry = DeletionAuditEntry(
            id=uuid4(),
            content_type=content_type,
            content_id=content_id,
            content_name=content_name,
            action=action,
            performed_by=performed_by,
            performed_at=self._time.now_utc(),
            metadata=metadata or {},
        )
        saved = self._repo.save(entry)
        logger.info(
            "Audit %s %s %s by %s",
            action.value,
            content_type,
            content_id,
            performed_by or "unknown",
        )
        return saved

    def log_soft_delete(
        self,
        content_type: str,
        content_id: str,
        content_name: str | None,
        performed_by: str | None,
        snapshot: dict[str, Any],
        relationship_configs: list[dict[str, str]],
    ) -> DeletionAuditEntry:
        """Log a soft delete with the row snapshot and its relationship configs."""
        return self.log(
            action=DeletionAction.SOFT_DELETE,
            content_type=content_type,
            content_id=content_id,
            content_name=content_name,
            performed_by=performed_by,
            metadata={
                "content_snapshot": snapshot,
                "relationship_configs": relationship_configs,
            },
        )

    def log_restore(
        self,
        content_type: str,
        content_id: str,
        content_name: str | None,
        performed_by: str | None,
    ) -> DeletionAuditEntry:
        return self.log(
            action=DeletionAction.RESTORE,
            content_type=content_type,
            content_id=content_id,
            content_name=content_name,
            performed_by=performed_by,
        )

    def log_permanent_delete(
        self,
        content_type: str,
        content_id: str,
        content_name: str | None,
        performed_by: str | None,
        snapshot: dict[str, Any],
    ) -> DeletionAuditEntry:
        return self.log(
            action=DeletionAction.PERMANENT_DELETE,
            content_type=content_type,
            content_id=content_id,
            content_name=content_name,
            performed_by=performed_by,
            metadata={"content_snapshot": snapshot},
        )

    def get(self, entry_id: UUID) -> DeletionAuditEntry | None:
        return self._repo.get_by_id(entry_id)

    def query(self, query: AuditQuery) -> list[DeletionAuditEntry]:
        return self._repo.query(query)

    def count(self, query: AuditQuery) -> int:
        return self._repo.count(query.unpaged())

    def get_for_content(
        self, content_type: str, content_id: str, limit: int = 50
    ) -> list[DeletionAuditEntry]:
        """Audit trail for one content item."""
        return self._repo.query(
            AuditQuery(content_type=content_type, content_id=content_id, limit=limit)
        )
