"""
Relations component port definitions.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from src.core.content_types import ContentTypeSpec, RelationshipConfig


class RelationStorePort(Protocol):
    """The slice of the content store the relations component needs."""

    def existing_ids(self, spec: ContentTypeSpec, ids: Iterable[str]) -> set[str]:
        ...

    def relation_ids(self, config: RelationshipConfig, content_id: str) -> set[str]:
        ...

    def add_relations(
        self, config: RelationshipConfig, content_id: str, related_ids: Iterable[str], at: datetime
    ) -> None:
        ...

    def remove_relations(
        self, config: RelationshipConfig, content_id: str, related_ids: Iterable[str]
    ) -> None:
        ...
