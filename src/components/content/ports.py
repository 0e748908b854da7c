"""
Content component port definitions.
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from src.core.content_types import ContentTypeSpec, RelationshipConfig


class StoreError(Exception):
    """Raised by store adapters when the backing database fails."""


class DuplicateKeyError(StoreError):
    """A unique column (slug, email) already holds the value."""


@dataclass(frozen=True)
class ListQuery:
    """Filters the store applies when listing rows of one type."""

    equals: dict[str, Any] = field(default_factory=dict)
    within: dict[str, list[Any]] = field(default_factory=dict)
    search: str | None = None
    published: bool | None = None
    deleted: str = "exclude"
    order_by: str = "updated_at"
    descending: bool = True
    limit: int | None = None
    offset: int = 0


class ContentStorePort(Protocol):
    """Row storage for every content type and its junction tables."""

    def transaction(self) -> AbstractContextManager[None]:
        """Group the calls made inside the block into one commit."""
        ...

    def get(
        self, spec: ContentTypeSpec, field_name: str, value: Any
    ) -> dict[str, Any] | None:
        """Get one row by column value, deleted or not."""
        ...

    def list(self, spec: ContentTypeSpec, query: ListQuery) -> tuple[list[dict[str, Any]], int]:
        """Rows for the query plus the total count ignoring limit/offset."""
        ...

    def insert(self, spec: ContentTypeSpec, row: dict[str, Any]) -> dict[str, Any]:
        ...

    def update(
        self, spec: ContentTypeSpec, item_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        ...

    def delete(self, spec: ContentTypeSpec, item_id: str) -> bool:
        ...

    def existing_ids(self, spec: ContentTypeSpec, ids: Iterable[str]) -> set[str]:
        """The subset of ids that exist and are not soft-deleted."""
        ...

    def relation_ids(self, config: RelationshipConfig, content_id: str) -> set[str]:
        """Related ids currently linked to content_id."""
        ...

    def owner_ids(self, config: RelationshipConfig, related_id: str) -> set[str]:
        """Content ids linked to related_id."""
        ...

    def add_relations(
        self, config: RelationshipConfig, content_id: str, related_ids: Iterable[str], at: datetime
    ) -> None:
        ...

    def remove_relations(
        self, config: RelationshipConfig, content_id: str, related_ids: Iterable[str]
    ) -> None:
        ...

    def clear_relations(self, config: RelationshipConfig, content_id: str) -> int:
        """Remove every junction row for content_id. Returns rows removed."""
        ...

    def related_items(
        self,
        config: RelationshipConfig,
        content_ids: list[str],
        published_only: bool,
    ) -> dict[str, list[dict[str, Any]]]:
        """Live related rows ({id, slug, title field}) grouped by owner id."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        ...


class RevalidatorPort(Protocol):
    """Invalidates cached renderings of public paths."""

    def revalidate(self, paths: Iterable[str]) -> object:
        ...


class DeletionAuditPort(Protocol):
    """Records soft delete, restore and permanent delete events."""

    def log_soft_delete(
        self,
        content_type: str,
        content_id: str,
        content_name: str | None,
        performed_by: str | None,
        snapshot: dict[str, Any],
        relationship_configs: list[dict[str, str]],
    ) -> object:
        ...

    def log_restore(
        self,
        content_type: str,
        content_id: str,
        content_name: str | None,
        performed_by: str | None,
    ) -> object:
        ...

    def log_permanent_delete(
        self,
        content_type: str,
        content_id: str,
        content_name: str | None,
        performed_by: str | None,
        snapshot: dict[str, Any],
    ) -> object:
        ...
