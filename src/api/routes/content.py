"""
Content endpoints, one router per content type.

Mounted at /api/<segment> for every registered content type:

- GET    ""                  public list, or one item with ?slug=
- GET    /admin              admin list including drafts
- GET    /trash              soft-deleted items
- GET    /{item_id}          admin fetch by id
- POST   ""                  create
- PUT    /{item_id}          update
- PATCH  ?id=                publish toggle, or {bulk: true, operation, ids}
- DELETE ?id= or {ids}       soft delete
- POST   /restore            restore from trash
- POST   /permanent-delete   remove row and junction rows

Request bodies for create/update use the content type's payload model, so
annotations here must stay evaluated at definition time.
"""

import logging
from typing import Any, Literal
from urllib.parse import urlencode

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from src.adapters.page_cache import PageCache
from src.api.deps import (
    get_content_component,
    get_draft_mode,
    get_page_cache,
    get_rules,
    require_admin,
)
from src.api.errors import STATUS_BY_CODE, raise_for_errors
from src.api.schemas import (
    PAYLOAD_MODELS,
    BulkFailureModel,
    BulkRequest,
    BulkResultResponse,
    ContentListResponse,
    IdsRequest,
    PaginationModel,
    PublishToggleRequest,
)
from src.components.content import (
    BulkInput,
    BulkOutput,
    ContentComponent,
    ContentListOutput,
    DeleteItemInput,
    FetchItemInput,
    FetchItemsInput,
    RestoreItemInput,
    SaveItemInput,
    UpdatePublishedInput,
)
from src.core.content_types import ContentTypeSpec, get_content_type
from src.domain.entities import Actor
from src.rules.models import Rules

logger = logging.getLogger(__name__)

# Query parameters with a fixed meaning; anything else may be a column filter.
RESERVED_PARAMS = frozenset(
    {"slug", "page", "pageSize", "search", "status", "orderBy", "order", "id"}
)
# Columns only the component sets or filters on.
UNFILTERABLE = frozenset({"published", "deleted_at", "deleted_by"})
# Public listing parameters that change the response.
LISTING_PARAMS = frozenset({"page", "pageSize", "search", "orderBy", "order"})


def _coerce(spec: ContentTypeSpec, column: str, value: str) -> Any:
    if column in spec.bool_columns:
        return value.lower() in ("true", "1", "yes")
    if value.isdigit() and column in ("year", "founded_year", "qubit_count"):
        return int(value)
    return value


def _filters_from_query(
    spec: ContentTypeSpec, request: Request
) -> tuple[dict[str, Any], dict[str, str]]:
    filters: dict[str, Any] = {}
    related: dict[str, str] = {}
    for name, value in request.query_params.items():
        if not value or not _is_filter_param(spec, name):
            continue
        if name in spec.filter_params:
            related[name] = value
        else:
            filters[name] = _coerce(spec, name, value)
    return filters, related


def _is_filter_param(spec: ContentTypeSpec, name: str) -> bool:
    if name in RESERVED_PARAMS:
        return False
    return name in spec.filter_params or (name in spec.columns and name not in UNFILTERABLE)


def _listing_cache_key(spec: ContentTypeSpec, request: Request) -> str:
    """Public prefix plus the recognised query params in a stable order."""
    kept = sorted(
        (name, value)
        for name, value in request.query_params.items()
        if value and (name in LISTING_PARAMS or _is_filter_param(spec, name))
    )
    return f"{spec.public_prefix}?{urlencode(kept)}" if kept else spec.public_prefix


def _list_body(result: ContentListOutput) -> dict[str, Any]:
    return ContentListResponse(
        items=result.items,
        pagination=PaginationModel(
            page=result.page,
            pageSize=result.page_size,
            totalItems=result.total,
            totalPages=result.total_pages,
        ),
    ).model_dump()


def _bulk_response(result: BulkOutput) -> JSONResponse:
    body = BulkResultResponse(
        success=result.success,
        succeeded=result.succeeded,
        failed=[BulkFailureModel(id=f.id, error=f.message) for f in result.failed],
    )
    if result.success:
        status_code = status.HTTP_200_OK
    elif result.succeeded:
        status_code = status.HTTP_207_MULTI_STATUS
    else:
        status_code = STATUS_BY_CODE.get(
            result.failed[0].code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _parse(model: type[BaseModel], body: dict[str, Any]) -> Any:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from None


def _require_ids(item_id: str | None, body: IdsRequest | None) -> list[str]:
    ids = [item_id] if item_id else (body.all_ids() if body else [])
    if not ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="An id or ids list is required"
        )
    return ids


def build_content_router(content_type: str) -> APIRouter:
    """Router with the full CRUD surface for one content type."""
    spec = get_content_type(content_type)
    payload_model = PAYLOAD_MODELS[spec.name]
    router = APIRouter()

    # --- Public reads ---

    @router.get("", summary=f"List published {spec.label.lower()} items")
    def list_items(
        request: Request,
        slug: str | None = None,
        page: int = 1,
        page_size: int | None = Query(None, alias="pageSize"),
        search: str | None = None,
        order_by: str = Query("updated_at", alias="orderBy"),
        order: Literal["asc", "desc"] = "desc",
        draft_mode: bool = Depends(get_draft_mode),
        rules: Rules = Depends(get_rules),
        component: ContentComponent = Depends(get_content_component),
        cache: PageCache = Depends(get_page_cache),
    ) -> Any:
        key = spec.public_path(slug) if slug else _listing_cache_key(spec, request)

        if not draft_mode:
            cached = cache.get(key)
            if cached is not None:
                return cached

        if slug:
            item_result = component.run_fetch_item(
                FetchItemInput(
                    content_type=spec.name,
                    identifier=slug,
                    include_unpublished=draft_mode,
                )
            )
            raise_for_errors(item_result.errors)
            body: Any = item_result.item
        else:
            filters, related = _filters_from_query(spec, request)
            list_result = component.run_fetch_items(
                FetchItemsInput(
                    content_type=spec.name,
                    filters=filters,
                    related_filters=related,
                    search=search,
                    page=page,
                    page_size=page_size or rules.content.default_page_size,
                    order_by=order_by,
                    descending=order == "desc",
                    include_unpublished=draft_mode,
                    include_relationships=True,
                )
            )
            raise_for_errors(list_result.errors)
            body = _list_body(list_result)

        if not draft_mode:
            cache.set(key, body)
        return body

    # --- Admin reads ---

    @router.get("/admin", response_model=ContentListResponse)
    def list_admin_items(
        request: Request,
        page: int = 1,
        page_size: int | None = Query(None, alias="pageSize"),
        search: str | None = None,
        item_status: Literal["draft", "published"] | None = Query(None, alias="status"),
        order_by: str = Query("updated_at", alias="orderBy"),
        order: Literal["asc", "desc"] = "desc",
        actor: Actor = Depends(require_admin),
        rules: Rules = Depends(get_rules),
        component: ContentComponent = Depends(get_content_component),
    ) -> dict[str, Any]:
        filters, related = _filters_from_query(spec, request)
        result = component.run_fetch_items(
            FetchItemsInput(
                content_type=spec.name,
                filters=filters,
                related_filters=related,
                search=search,
                status=item_status,
                page=page,
                page_size=page_size or rules.content.default_page_size,
                order_by=order_by,
                descending=order == "desc",
                include_unpublished=True,
                include_relationships=True,
            )
        )
        raise_for_errors(result.errors)
        return _list_body(result)

    @router.get("/trash", response_model=ContentListResponse)
    def list_trash(
        page: int = 1,
        page_size: int | None = Query(None, alias="pageSize"),
        search: str | None = None,
        actor: Actor = Depends(require_admin),
        rules: Rules = Depends(get_rules),
        component: ContentComponent = Depends(get_content_component),
    ) -> dict[str, Any]:
        result = component.run_fetch_items(
            FetchItemsInput(
                content_type=spec.name,
                search=search,
                page=page,
                page_size=page_size or rules.content.default_page_size,
                order_by="deleted_at",
                include_unpublished=True,
                only_deleted=True,
            )
        )
        raise_for_errors(result.errors)
        return _list_body(result)

    @router.get("/{item_id}")
    def get_item(
        item_id: str,
        actor: Actor = Depends(require_admin),
        component: ContentComponent = Depends(get_content_component),
    ) -> dict[str, Any] | None:
        result = component.run_fetch_item(
            FetchItemInput(
                content_type=spec.name,
                identifier=item_id,
                by_field="id",
                include_unpublished=True,
            )
        )
        raise_for_errors(result.errors)
        return result.item

    # --- Writes ---

    @router.post("", status_code=status.HTTP_201_CREATED)
    def create_item(
        payload: payload_model,  # type: ignore[valid-type]
        actor: Actor = Depends(require_admin),
        component: ContentComponent = Depends(get_content_component),
    ) -> dict[str, Any] | None:
        data, relationships = payload.split()
        result = component.run_save_item(
            SaveItemInput(content_type=spec.name, data=data, relationships=relationships)
        )
        raise_for_errors(result.errors)
        return result.item

    @router.put("/{item_id}")
    def update_item(
        item_id: str,
        payload: payload_model,  # type: ignore[valid-type]
        actor: Actor = Depends(require_admin),
        component: ContentComponent = Depends(get_content_component),
    ) -> dict[str, Any] | None:
        data, relationships = payload.split()
        result = component.run_save_item(
            SaveItemInput(
                content_type=spec.name,
                data=data,
                item_id=item_id,
                relationships=relationships,
            )
        )
        raise_for_errors(result.errors)
        return result.item

    @router.patch("")
    def patch_items(
        item_id: str | None = Query(None, alias="id"),
        body: dict[str, Any] = Body(...),
        actor: Actor = Depends(require_admin),
        component: ContentComponent = Depends(get_content_component),
    ) -> Any:
        if body.get("bulk"):
            bulk = _parse(BulkRequest, body)
            return _bulk_response(
                component.run_bulk(
                    BulkInput(
                        content_type=spec.name,
                        operation=bulk.operation,
                        ids=bulk.ids,
                        actor=actor.email,
                    )
                )
            )

        toggle = _parse(PublishToggleRequest, body)
        if not item_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="An id is required"
            )
        result = component.run_update_published(
            UpdatePublishedInput(
                content_type=spec.name, item_id=item_id, published=toggle.published
            )
        )
        raise_for_errors(result.errors)
        return result.item

    @router.delete("")
    def delete_items(
        item_id: str | None = Query(None, alias="id"),
        body: IdsRequest | None = Body(None),
        actor: Actor = Depends(require_admin),
        component: ContentComponent = Depends(get_content_component),
    ) -> Any:
        ids = _require_ids(item_id, body)
        if len(ids) > 1:
            return _bulk_response(
                component.run_bulk(
                    BulkInput(
                        content_type=spec.name, operation="delete", ids=ids, actor=actor.email
                    )
                )
            )
        result = component.run_delete_item(
            DeleteItemInput(content_type=spec.name, item_id=ids[0], deleted_by=actor.email)
        )
        raise_for_errors(result.errors)
        return {"success": True, "id": ids[0]}

    @router.post("/restore")
    def restore_items(
        body: IdsRequest,
        actor: Actor = Depends(require_admin),
        component: ContentComponent = Depends(get_content_component),
    ) -> Any:
        ids = _require_ids(None, body)
        if len(ids) > 1:
            return _bulk_response(
                component.run_bulk(
                    BulkInput(
                        content_type=spec.name, operation="restore", ids=ids, actor=actor.email
                    )
                )
            )
        result = component.run_restore_item(
            RestoreItemInput(content_type=spec.name, item_id=ids[0], restored_by=actor.email)
        )
        raise_for_errors(result.errors)
        return {"success": True, "id": ids[0]}

    @router.post("/permanent-delete")
    def permanently_delete_items(
        body: IdsRequest,
        actor: Actor = Depends(require_admin),
        component: ContentComponent = Depends(get_content_component),
    ) -> Any:
        ids = _require_ids(None, body)
        if len(ids) > 1:
            return _bulk_response(
                component.run_bulk(
                    BulkInput(
                        content_type=spec.name,
                        operation="permanent_delete",
                        ids=ids,
                        actor=actor.email,
                    )
                )
            )
        result = component.run_delete_item(
            DeleteItemInput(
                content_type=spec.name,
                item_id=ids[0],
                hard_delete=True,
                deleted_by=actor.email,
            )
        )
        raise_for_errors(result.errors)
        return {"success": True, "id": ids[0]}

    return router
