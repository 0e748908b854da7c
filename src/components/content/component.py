"""
Content component - data access for every content type.

Wraps the content store with the visibility rules of the knowledge base:

- fetches never return soft-deleted rows unless asked for the trash view;
- public fetches only return published rows, `include_unpublished` lifts that
  filter and nothing else;
- a save upserts the row and applies its relation diffs in one transaction;
- every successful write revalidates the item's public path, its type's
  listing paths and the pages of items linked to it.

Soft delete, restore and permanent delete also write a deletion audit entry.
Audit failures are logged and never fail the delete itself.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable
from typing import Any

from src.components.relations import run_replace_relations, validate_relations
from src.core.content_types import (
    ContentTypeSpec,
    UnknownContentTypeError,
    all_junction_configs,
    get_content_type,
    paths_for,
)
from src.rules.models import ContentRules, RangeRule, RegexRule, Rules

from .models import (
    CONFLICT,
    NOT_FOUND,
    UPSTREAM,
    VALIDATION,
    BulkFailure,
    BulkInput,
    BulkOutput,
    ContentListOutput,
    ContentOperationOutput,
    ContentOutput,
    ContentValidationError,
    DeleteItemInput,
    FetchItemInput,
    FetchItemsInput,
    RestoreItemInput,
    SaveItemInput,
    SearchDataOutput,
    UpdatePublishedInput,
)
from .ports import (
    ContentStorePort,
    DeletionAuditPort,
    DuplicateKeyError,
    ListQuery,
    RevalidatorPort,
    StoreError,
    TimePort,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_RULES = ContentRules(
    slug=RegexRule(pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$", min=1, max=200),
    title=RangeRule(min=1, max=500),
    description_max=1000,
    body_max=100000,
)

# Types offered to the site-wide search box.
SEARCHABLE_TYPES = ("case_studies", "algorithms", "industries", "personas")
SEARCH_DESCRIPTION_MAX = 150
SEARCH_METADATA_ITEMS = 2


def _error(code: str, message: str, field: str | None = None) -> ContentValidationError:
    return ContentValidationError(code=code, message=message, field=field)


def _slug_conflict(spec: ContentTypeSpec) -> ContentValidationError:
    return _error(CONFLICT, f"A {spec.label.lower()} with this slug already exists", "slug")


def related_field_name(key: str) -> str:
    """Response key under which related items of `key` are attached."""
    return key if key.startswith("related_") else f"related_{key}"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _truncate(text: str | None, limit: int = SEARCH_DESCRIPTION_MAX) -> str | None:
    if not text:
        return None
    return text if len(text) <= limit else text[:limit] + "..."


def _search_metadata(row: dict[str, Any], companies: list[str]) -> dict[str, Any]:
    metadata: dict[str, Any] = {}
    if companies:
        metadata["companies"] = companies[:SEARCH_METADATA_ITEMS]
    if row.get("year"):
        metadata["year"] = row["year"]
    if row.get("quantum_advantage"):
        metadata["quantum_advantage"] = row["quantum_advantage"]
    if row.get("use_cases"):
        metadata["use_cases"] = row["use_cases"][:SEARCH_METADATA_ITEMS]
    return metadata


class ContentComponent:
    """Reads and writes content items of every registered type."""

    def __init__(
        self,
        store: ContentStorePort,
        clock: TimePort,
        rules: Rules | None = None,
        revalidator: RevalidatorPort | None = None,
        audit: DeletionAuditPort | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._revalidator = revalidator
        self._audit = audit
        self._limits = rules.content if rules is not None else DEFAULT_CONTENT_RULES
        self._slug_re = re.compile(self._limits.slug.pattern)
        self._max_page_size = self._limits.max_page_size

    # --- Reads ---

    def run_fetch_items(self, input_data: FetchItemsInput) -> ContentListOutput:
        """List items of one type with filters, search and pagination."""
        spec, errors = self._resolve_type(input_data.content_type)
        if spec is None:
            return self._empty_list(input_data, errors)

        if input_data.page < 1:
            errors.append(_error(VALIDATION, "page must be 1 or greater", "page"))
        if not 1 <= input_data.page_size <= self._max_page_size:
            errors.append(
                _error(
                    VALIDATION,
                    f"page_size must be between 1 and {self._max_page_size}",
                    "page_size",
                )
            )
        if input_data.order_by not in spec.orderable_columns:
            errors.append(
                _error(VALIDATION, f"Cannot order by '{input_data.order_by}'", "order_by")
            )

        equals: dict[str, Any] = {}
        within: dict[str, list[Any]] = {}
        for column, value in input_data.filters.items():
            if column not in spec.columns or column in spec.json_columns:
                errors.append(_error(VALIDATION, f"Cannot filter on '{column}'", column))
                continue
            if isinstance(value, (list, tuple, set)):
                within[column] = list(value)
            else:
                equals[column] = value

        if errors:
            return self._empty_list(input_data, errors)

        published_only = not input_data.include_unpublished
        try:
            if input_data.related_filters:
                candidate_ids, errors = self._ids_matching_related(
                    spec, input_data.related_filters
                )
                if errors:
                    return self._empty_list(input_data, errors)
                if not candidate_ids:
                    return self._empty_list(input_data, [])
                within["id"] = sorted(candidate_ids)

            status = input_data.status if input_data.include_unpublished else None
            if status == "published":
                published: bool | None = True
            elif status == "draft":
                published = False
            else:
                published = True if published_only else None

            query = ListQuery(
                equals=equals,
                within=within,
                search=input_data.search.strip() if input_data.search else None,
                published=published,
                deleted="only" if input_data.only_deleted else "exclude",
                order_by=input_data.order_by,
                descending=input_data.descending,
                limit=input_data.page_size,
                offset=(input_data.page - 1) * input_data.page_size,
            )
            items, total = self._store.list(spec, query)

            if input_data.include_relationships and items:
                self._attach_relationships(
                    spec, items, spec.list_relationships, published_only=published_only
                )
        except StoreError:
            logger.exception("Failed to list %s", spec.name)
            return self._empty_list(
                input_data, [_error(UPSTREAM, f"Failed to fetch {spec.label.lower()} items")]
            )

        return ContentListOutput(
            items=items,
            total=total,
            page=input_data.page,
            page_size=input_data.page_size,
        )

    def run_fetch_item(self, input_data: FetchItemInput) -> ContentOutput:
        """Fetch one item by slug or id."""
        spec, errors = self._resolve_type(input_data.content_type)
        if spec is None:
            return ContentOutput(item=None, errors=errors, success=False)

        if input_data.by_field not in ("slug", "id"):
            return ContentOutput(
                item=None,
                errors=[_error(VALIDATION, "Items are fetched by slug or id", "by_field")],
                success=False,
            )

        try:
            row = self._store.get(spec, input_data.by_field, input_data.identifier)
            if row is None or not self._visible(row, input_data):
                return ContentOutput(
                    item=None,
                    errors=[_error(NOT_FOUND, f"{spec.label} not found")],
                    success=False,
                )

            if input_data.include_relationships:
                self._attach_relationships(
                    spec,
                    [row],
                    [c.key for c in spec.relationships],
                    published_only=not input_data.include_unpublished,
                )
        except StoreError:
            logger.exception("Failed to fetch %s %s", spec.name, input_data.identifier)
            return ContentOutput(
                item=None,
                errors=[_error(UPSTREAM, f"Failed to fetch {spec.label.lower()}")],
                success=False,
            )

        return ContentOutput(item=row, errors=[], success=True)

    def slug_to_id(self, content_type: str, slug: str) -> str | None:
        """Id of the live item with this slug, or None."""
        spec = get_content_type(content_type)
        row = self._store.get(spec, "slug", slug)
        if row is None or row.get("deleted_at"):
            return None
        return row["id"]

    def run_fetch_search_data(self, include_unpublished: bool = False) -> SearchDataOutput:
        """Every live item of the searchable types in a compact form.

        Descriptions are cut to SEARCH_DESCRIPTION_MAX characters and list
        metadata to its first SEARCH_METADATA_ITEMS entries.
        """
        items: list[dict[str, Any]] = []
        for name in SEARCHABLE_TYPES:
            spec = get_content_type(name)
            try:
                rows, _ = self._store.list(
                    spec,
                    ListQuery(
                        published=None if include_unpublished else True,
                        order_by=spec.title_field,
                        descending=False,
                    ),
                )
                companies = self._company_names(
                    spec, [r["id"] for r in rows], not include_unpublished
                )
            except StoreError:
                logger.exception("Failed to fetch search data for %s", spec.name)
                return SearchDataOutput(
                    items=[],
                    errors=[_error(UPSTREAM, "Failed to fetch search data")],
                    success=False,
                )
            for row in rows:
                items.append(
                    {
                        "id": row["id"],
                        "title": row.get(spec.title_field),
                        "description": _truncate(row.get("description")),
                        "slug": row["slug"],
                        "type": spec.name,
                        "metadata": _search_metadata(row, companies.get(row["id"], [])),
                    }
                )
        return SearchDataOutput(items=items)

    def _company_names(
        self, spec: ContentTypeSpec, ids: list[str], published_only: bool
    ) -> dict[str, list[str]]:
        names: dict[str, list[str]] = {}
        for key in ("quantum_companies", "partner_companies"):
            config = spec.relationship(key)
            if config is None or not ids:
                continue
            grouped = self._store.related_items(config, ids, published_only)
            for owner_id, related in grouped.items():
                names.setdefault(owner_id, []).extend(r["name"] for r in related)
        return names

    # --- Writes ---

    def run_save_item(self, input_data: SaveItemInput) -> ContentOutput:
        """Create (no item_id) or update an item and its relations."""
        spec, errors = self._resolve_type(input_data.content_type)
        if spec is None:
            return ContentOutput(item=None, errors=errors, success=False)

        data = dict(input_data.data)
        for column in data:
            if column not in spec.writable_columns:
                errors.append(_error(VALIDATION, f"Unknown field '{column}'", column))
        if errors:
            return ContentOutput(item=None, errors=errors, success=False)

        try:
            existing = None
            if input_data.item_id is not None:
                existing = self._store.get(spec, "id", input_data.item_id)
                if existing is None or existing.get("deleted_at"):
                    return ContentOutput(
                        item=None,
                        errors=[_error(NOT_FOUND, f"{spec.label} not found")],
                        success=False,
                    )

            merged = {**(existing or {}), **data}
            errors.extend(self._validate_fields(spec, merged))

            slug = merged.get("slug")
            if not errors:
                holder = self._store.get(spec, "slug", slug)
                if holder is not None and holder["id"] != input_data.item_id:
                    errors.append(_slug_conflict(spec))

            for relation_error in validate_relations(
                self._store, spec, input_data.relationships, input_data.item_id
            ):
                errors.append(_error(VALIDATION, relation_error.message, relation_error.key))

            if errors:
                return ContentOutput(item=None, errors=errors, success=False)

            now = self._clock.now_utc()
            stamp = now.isoformat()
            row = dict(data)
            row["updated_at"] = stamp
            publishing = bool(data.get("published")) and not (existing or {}).get("published")
            if publishing:
                row["published_at"] = stamp

            linked = self._linked_paths(spec, existing["id"]) if existing is not None else []
            with self._store.transaction():
                if existing is None:
                    item_id = str(uuid.uuid4())
                    row.update({"id": item_id, "created_at": stamp})
                    row.setdefault("published", False)
                    self._store.insert(spec, row)
                else:
                    item_id = existing["id"]
                    self._store.update(spec, item_id, row)
                run_replace_relations(self._store, spec, item_id, input_data.relationships, now)
            linked.extend(self._linked_paths(spec, item_id))
        except DuplicateKeyError:
            return ContentOutput(
                item=None,
                errors=[_slug_conflict(spec)],
                success=False,
            )
        except StoreError:
            logger.exception("Failed to save %s", spec.name)
            return ContentOutput(
                item=None,
                errors=[_error(UPSTREAM, f"Failed to save {spec.label.lower()}")],
                success=False,
            )

        stale = paths_for(spec.name, slug)
        if existing is not None and existing.get("slug") != slug:
            stale.append(spec.public_path(existing["slug"]))
        self._revalidate(stale + linked)

        saved = self.run_fetch_item(
            FetchItemInput(
                content_type=spec.name,
                identifier=item_id,
                by_field="id",
                include_unpublished=True,
            )
        )
        return saved

    def run_update_published(self, input_data: UpdatePublishedInput) -> ContentOutput:
        """Set the published flag of a live item."""
        spec, errors = self._resolve_type(input_data.content_type)
        if spec is None:
            return ContentOutput(item=None, errors=errors, success=False)

        def apply(existing: dict[str, Any], stamp: str) -> dict[str, Any] | None:
            changes: dict[str, Any] = {"published": input_data.published, "updated_at": stamp}
            if input_data.published and not existing.get("published"):
                changes["published_at"] = stamp
            return self._store.update(spec, existing["id"], changes)

        return self._write_live(spec, input_data.item_id, apply, "update")

    def run_delete_item(self, input_data: DeleteItemInput) -> ContentOperationOutput:
        """Soft delete (default) or permanently delete an item."""
        spec, errors = self._resolve_type(input_data.content_type)
        if spec is None:
            return ContentOperationOutput(success=False, errors=errors)

        if input_data.hard_delete:
            return self._hard_delete(spec, input_data.item_id, input_data.deleted_by)

        try:
            existing = self._store.get(spec, "id", input_data.item_id)
            if existing is None or existing.get("deleted_at"):
                return ContentOperationOutput(
                    success=False,
                    errors=[_error(NOT_FOUND, f"{spec.label} not found or already deleted")],
                )
            stamp = self._clock.now_utc().isoformat()
            self._store.update(
                spec,
                existing["id"],
                {
                    "deleted_at": stamp,
                    "deleted_by": input_data.deleted_by,
                    "published": False,
                    "updated_at": stamp,
                },
            )
            linked = self._linked_paths(spec, existing["id"])
        except StoreError:
            logger.exception("Failed to delete %s %s", spec.name, input_data.item_id)
            return ContentOperationOutput(
                success=False, errors=[_error(UPSTREAM, f"Failed to delete {spec.label.lower()}")]
            )

        self._audit_safely(
            "soft_delete",
            lambda audit: audit.log_soft_delete(
                content_type=spec.name,
                content_id=existing["id"],
                content_name=existing.get(spec.title_field),
                performed_by=input_data.deleted_by,
                snapshot=existing,
                relationship_configs=[c.as_dict() for c in spec.relationships],
            ),
        )
        self._revalidate(paths_for(spec.name, existing.get("slug")) + linked)
        return ContentOperationOutput(success=True)

    def run_restore_item(self, input_data: RestoreItemInput) -> ContentOperationOutput:
        """Bring a soft-deleted item back as a draft."""
        spec, errors = self._resolve_type(input_data.content_type)
        if spec is None:
            return ContentOperationOutput(success=False, errors=errors)

        try:
            existing = self._store.get(spec, "id", input_data.item_id)
            if existing is None or not existing.get("deleted_at"):
                return ContentOperationOutput(
                    success=False,
                    errors=[_error(NOT_FOUND, f"{spec.label} not found in trash")],
                )
            self._store.update(
                spec,
                existing["id"],
                {
                    "deleted_at": None,
                    "deleted_by": None,
                    "published": False,
                    "updated_at": self._clock.now_utc().isoformat(),
                },
            )
            linked = self._linked_paths(spec, existing["id"])
        except StoreError:
            logger.exception("Failed to restore %s %s", spec.name, input_data.item_id)
            return ContentOperationOutput(
                success=False, errors=[_error(UPSTREAM, f"Failed to restore {spec.label.lower()}")]
            )

        self._audit_safely(
            "restore",
            lambda audit: audit.log_restore(
                content_type=spec.name,
                content_id=existing["id"],
                content_name=existing.get(spec.title_field),
                performed_by=input_data.restored_by,
            ),
        )
        self._revalidate(paths_for(spec.name, existing.get("slug")) + linked)
        return ContentOperationOutput(success=True)

    def run_bulk(self, input_data: BulkInput) -> BulkOutput:
        """Apply one operation to each id independently, collecting failures."""
        succeeded: list[str] = []
        failed: list[BulkFailure] = []

        for item_id in dict.fromkeys(input_data.ids):
            result = self._bulk_one(input_data, item_id)
            if result.success:
                succeeded.append(item_id)
            else:
                first = result.errors[0] if result.errors else _error(UPSTREAM, "Unknown error")
                failed.append(BulkFailure(id=item_id, code=first.code, message=first.message))

        if failed:
            logger.warning(
                "Bulk %s on %s: %d succeeded, %d failed",
                input_data.operation,
                input_data.content_type,
                len(succeeded),
                len(failed),
            )
        return BulkOutput(succeeded=succeeded, failed=failed)

    # --- Helpers ---

    def _bulk_one(
        self, input_data: BulkInput, item_id: str
    ) -> ContentOutput | ContentOperationOutput:
        op = input_data.operation
        content_type = input_data.content_type
        if op == "delete":
            return self.run_delete_item(
                DeleteItemInput(content_type, item_id, deleted_by=input_data.actor)
            )
        if op == "permanent_delete":
            return self.run_delete_item(
                DeleteItemInput(
                    content_type, item_id, hard_delete=True, deleted_by=input_data.actor
                )
            )
        if op == "restore":
            return self.run_restore_item(
                RestoreItemInput(content_type, item_id, restored_by=input_data.actor)
            )
        if op in ("publish", "unpublish"):
            return self.run_update_published(
                UpdatePublishedInput(content_type, item_id, published=op == "publish")
            )
        return ContentOperationOutput(
            success=False, errors=[_error(VALIDATION, f"Unknown bulk operation '{op}'")]
        )

    def _hard_delete(
        self, spec: ContentTypeSpec, item_id: str, deleted_by: str | None
    ) -> ContentOperationOutput:
        try:
            existing = self._store.get(spec, "id", item_id)
            if existing is None:
                return ContentOperationOutput(
                    success=False, errors=[_error(NOT_FOUND, f"{spec.label} not found")]
                )
            # Captured before the junction rows go.
            linked = self._linked_paths(spec, item_id)
            with self._store.transaction():
                for config in all_junction_configs(spec.name):
                    self._store.clear_relations(config, item_id)
                self._store.delete(spec, item_id)
        except StoreError:
            logger.exception("Failed to permanently delete %s %s", spec.name, item_id)
            return ContentOperationOutput(
                success=False,
                errors=[_error(UPSTREAM, f"Failed to permanently delete {spec.label.lower()}")],
            )

        self._audit_safely(
            "permanent_delete",
            lambda audit: audit.log_permanent_delete(
                content_type=spec.name,
                content_id=item_id,
                content_name=existing.get(spec.title_field),
                performed_by=deleted_by,
                snapshot=existing,
            ),
        )
        self._revalidate(paths_for(spec.name, existing.get("slug")) + linked)
        return ContentOperationOutput(success=True)

    def _write_live(
        self,
        spec: ContentTypeSpec,
        item_id: str,
        apply: Callable[[dict[str, Any], str], dict[str, Any] | None],
        verb: str,
    ) -> ContentOutput:
        try:
            existing = self._store.get(spec, "id", item_id)
            if existing is None or existing.get("deleted_at"):
                return ContentOutput(
                    item=None, errors=[_error(NOT_FOUND, f"{spec.label} not found")], success=False
                )
            updated = apply(existing, self._clock.now_utc().isoformat())
            linked = self._linked_paths(spec, existing["id"])
        except StoreError:
            logger.exception("Failed to %s %s %s", verb, spec.name, item_id)
            return ContentOutput(
                item=None,
                errors=[_error(UPSTREAM, f"Failed to {verb} {spec.label.lower()}")],
                success=False,
            )

        self._revalidate(paths_for(spec.name, existing.get("slug")) + linked)
        return ContentOutput(item=updated, errors=[], success=True)

    def _validate_fields(
        self, spec: ContentTypeSpec, merged: dict[str, Any]
    ) -> list[ContentValidationError]:
        errors = []
        if _is_blank(merged.get(spec.title_field)):
            errors.append(
                _error(VALIDATION, f"{spec.title_field.capitalize()} is required", spec.title_field)
            )
        elif not (
            self._limits.title.min
            <= len(merged[spec.title_field].strip())
            <= self._limits.title.max
        ):
            errors.append(
                _error(
                    VALIDATION,
                    f"{spec.title_field.capitalize()} must be between "
                    f"{self._limits.title.min} and {self._limits.title.max} characters",
                    spec.title_field,
                )
            )

        slug = merged.get("slug")
        if _is_blank(slug):
            errors.append(_error(VALIDATION, "Slug is required", "slug"))
        elif not self._limits.slug.min <= len(slug) <= self._limits.slug.max:
            errors.append(
                _error(
                    VALIDATION,
                    f"Slug must be between {self._limits.slug.min} and "
                    f"{self._limits.slug.max} characters",
                    "slug",
                )
            )
        elif not self._slug_re.match(slug):
            errors.append(
                _error(
                    VALIDATION,
                    "Slug must only contain lowercase letters, numbers, and hyphens",
                    "slug",
                )
            )

        for column, limit in (
            ("description", self._limits.description_max),
            (spec.body_field, self._limits.body_max),
        ):
            value = merged.get(column)
            if isinstance(value, str) and len(value) > limit:
                errors.append(
                    _error(VALIDATION, f"{column} must be at most {limit} characters", column)
                )
        return errors

    def _ids_matching_related(
        self, spec: ContentTypeSpec, related_filters: dict[str, str]
    ) -> tuple[set[str], list[ContentValidationError]]:
        """Ids of items linked to every requested related item.

        An unknown or deleted related item matches nothing.
        """
        candidate: set[str] | None = None
        for param, value in related_filters.items():
            key = spec.filter_params.get(param, param)
            config = spec.relationship(key)
            if config is None:
                return set(), [_error(VALIDATION, f"Cannot filter by '{param}'", param)]
            related_spec = get_content_type(config.related_type)
            related = self._store.get(related_spec, "slug", value)
            if related is None:
                related = self._store.get(related_spec, related_spec.title_field, value)
            if related is None or related.get("deleted_at"):
                return set(), []
            owners = self._store.owner_ids(config, related["id"])
            candidate = owners if candidate is None else candidate & owners
        return candidate or set(), []

    def _attach_relationships(
        self,
        spec: ContentTypeSpec,
        items: list[dict[str, Any]],
        keys: Any,
        published_only: bool,
    ) -> None:
        ids = [item["id"] for item in items]
        for key in keys:
            config = spec.relationship(key)
            if config is None:
                continue
            grouped = self._store.related_items(config, ids, published_only)
            for item in items:
                item[related_field_name(key)] = grouped.get(item["id"], [])

    def _visible(self, row: dict[str, Any], input_data: FetchItemInput) -> bool:
        if row.get("deleted_at") and not input_data.include_deleted:
            return False
        if not row.get("published") and not input_data.include_unpublished:
            return False
        return True

    def _resolve_type(
        self, content_type: str
    ) -> tuple[ContentTypeSpec | None, list[ContentValidationError]]:
        try:
            return get_content_type(content_type), []
        except UnknownContentTypeError:
            return None, [
                _error(VALIDATION, f"Unknown content type '{content_type}'", "content_type")
            ]

    def _empty_list(
        self, input_data: FetchItemsInput, errors: list[ContentValidationError]
    ) -> ContentListOutput:
        return ContentListOutput(
            items=[],
            total=0,
            page=input_data.page,
            page_size=input_data.page_size,
            errors=errors,
            success=not errors,
        )

    def _linked_paths(self, spec: ContentTypeSpec, item_id: str) -> list[str]:
        """Public pages of live items linked to item_id, in either direction.

        Those pages embed the item in their related lists.
        """
        paths: list[str] = []
        for config in all_junction_configs(spec.name):
            related_ids = self._store.relation_ids(config, item_id)
            if not related_ids:
                continue
            related_spec = get_content_type(config.related_type)
            paths.append(related_spec.public_prefix)
            for related_id in sorted(related_ids):
                row = self._store.get(related_spec, "id", related_id)
                if row is not None and not row.get("deleted_at"):
                    paths.append(related_spec.public_path(row["slug"]))
        return paths

    def _revalidate(self, paths: list[str]) -> None:
        if self._revalidator is not None:
            self._revalidator.revalidate(paths)

    def _audit_safely(self, action: str, write: Callable[[DeletionAuditPort], object]) -> None:
        if self._audit is None:
            return
        try:
            write(self._audit)
        except Exception:
            logger.exception("Failed to write %s audit entry", action)
