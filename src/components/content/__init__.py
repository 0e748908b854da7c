"""
Content component - CRUD, publish toggling and deletion lifecycle for every
content type in the registry.
"""

from .component import ContentComponent, related_field_name
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

__all__ = [
    # Component
    "ContentComponent",
    "related_field_name",
    # Error codes
    "CONFLICT",
    "NOT_FOUND",
    "UPSTREAM",
    "VALIDATION",
    # Input models
    "BulkInput",
    "DeleteItemInput",
    "FetchItemInput",
    "FetchItemsInput",
    "RestoreItemInput",
    "SaveItemInput",
    "UpdatePublishedInput",
    # Output models
    "BulkFailure",
    "BulkOutput",
    "ContentListOutput",
    "ContentOperationOutput",
    "ContentOutput",
    "ContentValidationError",
    "SearchDataOutput",
    # Ports
    "ContentStorePort",
    "DeletionAuditPort",
    "DuplicateKeyError",
    "ListQuery",
    "RevalidatorPort",
    "StoreError",
    "TimePort",
]
