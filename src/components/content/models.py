"""
Content component input/output models.

Items travel as plain dicts keyed by column name; the content type registry
says which columns a type has.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# Error codes mapped to HTTP statuses by the API layer.
VALIDATION = "validation"
NOT_FOUND = "not_found"
CONFLICT = "conflict"
UPSTREAM = "upstream"

DeletedScope = Literal["exclude", "only", "include"]

# --- Validation Error ---


@dataclass(frozen=True)
class ContentValidationError:
    """Content operation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class FetchItemsInput:
    """Input for listing items of one content type."""

    content_type: str
    filters: dict[str, Any] = field(default_factory=dict)
    related_filters: dict[str, str] = field(default_factory=dict)
    search: str | None = None
    status: Literal["draft", "published"] | None = None
    page: int = 1
    page_size: int = 10
    order_by: str = "updated_at"
    descending: bool = True
    include_unpublished: bool = False
    only_deleted: bool = False
    include_relationships: bool = False


@dataclass(frozen=True)
class FetchItemInput:
    """Input for fetching a single item."""

    content_type: str
    identifier: str
    by_field: Literal["slug", "id"] = "slug"
    include_unpublished: bool = False
    include_deleted: bool = False
    include_relationships: bool = True


@dataclass(frozen=True)
class SaveItemInput:
    """Input for create (item_id None) or update.

    `relationships` maps relation key to the full desired id list. Keys not
    present leave that relation untouched.
    """

    content_type: str
    data: dict[str, Any]
    item_id: str | None = None
    relationships: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdatePublishedInput:
    content_type: str
    item_id: str
    published: bool


@dataclass(frozen=True)
class DeleteItemInput:
    content_type: str
    item_id: str
    hard_delete: bool = False
    deleted_by: str | None = None


@dataclass(frozen=True)
class RestoreItemInput:
    content_type: str
    item_id: str
    restored_by: str | None = None


BulkOperation = Literal["delete", "restore", "permanent_delete", "publish", "unpublish"]


@dataclass(frozen=True)
class BulkInput:
    content_type: str
    operation: BulkOperation
    ids: list[str]
    actor: str | None = None


# --- Output Models ---


@dataclass(frozen=True)
class ContentOutput:
    """Output for single-item operations."""

    item: dict[str, Any] | None
    errors: list[ContentValidationError]
    success: bool


@dataclass(frozen=True)
class ContentListOutput:
    """Output for listing."""

    items: list[dict[str, Any]]
    total: int
    page: int
    page_size: int
    errors: list[ContentValidationError] = field(default_factory=list)
    success: bool = True

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size


@dataclass(frozen=True)
class ContentOperationOutput:
    """Output for operations without a returned item (delete, restore)."""

    success: bool
    errors: list[ContentValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class BulkFailure:
    id: str
    code: str
    message: str


@dataclass(frozen=True)
class BulkOutput:
    succeeded: list[str]
    failed: list[BulkFailure]

    @property
    def success(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class SearchDataOutput:
    """Compact published items of the searchable types, for client-side search."""

    items: list[dict[str, Any]]
    errors: list[ContentValidationError] = field(default_factory=list)
    success: bool = True
