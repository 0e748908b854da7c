"""
Relations component - junction table fan-out for a parent item.

A parent save carries, per relation key, the complete list of related ids it
should end up with. The component diffs that list against the junction rows
already stored and applies only the additions and removals.

Invariants:
- Duplicate ids collapse; order does not matter.
- Every related id must exist and be live in the related table.
- Applying a diff never touches relation keys that were not supplied.
- Junction rows to soft-deleted related items survive a parent save.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from src.core.content_types import ContentTypeSpec, RelationshipConfig, get_content_type

from .models import RelationDiff, RelationError
from .ports import RelationStorePort

logger = logging.getLogger(__name__)


def plan_relation_changes(current: Iterable[str], desired: Iterable[str]) -> RelationDiff:
    """Work out which junction rows to add and remove."""
    current_set = set(current)
    desired_set = set(desired)
    return RelationDiff(
        to_add=tuple(sorted(desired_set - current_set)),
        to_remove=tuple(sorted(current_set - desired_set)),
    )


def validate_relations(
    store: RelationStorePort,
    spec: ContentTypeSpec,
    relationships: dict[str, list[str]],
    item_id: str | None = None,
) -> list[RelationError]:
    """Check relation keys and that every referenced id is a live item."""
    errors: list[RelationError] = []

    for key, ids in relationships.items():
        config = spec.relationship(key)
        if config is None:
            errors.append(
                RelationError(key=key, message=f"Unknown relationship '{key}' for {spec.label}")
            )
            continue

        wanted = set(ids)
        if item_id is not None and config.related_type == spec.name and item_id in wanted:
            errors.append(
                RelationError(key=key, message=f"{spec.label} cannot be related to itself")
            )
            wanted.discard(item_id)

        if not wanted:
            continue

        related_spec = get_content_type(config.related_type)
        missing = wanted - store.existing_ids(related_spec, wanted)
        if missing:
            label = related_spec.label.lower()
            errors.append(
                RelationError(
                    key=key,
                    message=f"Unknown {label} id(s): " + ", ".join(sorted(missing)),
                )
            )

    return errors


def apply_relation_changes(
    store: RelationStorePort,
    config: RelationshipConfig,
    content_id: str,
    desired: Iterable[str],
    at: datetime,
) -> RelationDiff:
    """Bring one junction table in line with the desired ids.

    Runs against whatever transaction the caller holds open. Rows pointing at
    soft-deleted related items are left in place so a restore brings them back.
    """
    stored = store.relation_ids(config, content_id)
    live = store.existing_ids(get_content_type(config.related_type), stored) if stored else set()
    diff = plan_relation_changes(live, desired)
    if diff.to_remove:
        store.remove_relations(config, content_id, diff.to_remove)
    if diff.to_add:
        store.add_relations(config, content_id, diff.to_add, at)
    if not diff.is_empty:
        logger.debug(
            "%s %s: +%d -%d",
            config.junction_table,
            content_id,
            len(diff.to_add),
            len(diff.to_remove),
        )
    return diff


def run_replace_relations(
    store: RelationStorePort,
    spec: ContentTypeSpec,
    content_id: str,
    relationships: dict[str, list[str]],
    at: datetime,
) -> dict[str, RelationDiff]:
    """Apply every supplied relation list for one parent item."""
    applied: dict[str, RelationDiff] = {}
    for key, ids in relationships.items():
        config = spec.relationship(key)
        if config is None:
            raise KeyError(key)
        applied[key] = apply_relation_changes(store, config, content_id, ids, at)
    return applied
