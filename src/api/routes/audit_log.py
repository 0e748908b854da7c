"""
Deletion audit log API.

Endpoints:
- GET /api/audit-log - Query entries, newest first
- GET|POST /api/audit-log/export - Download matching entries as CSV
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from pydantic import BaseModel

from src.adapters.clock import SystemClock
from src.api.deps import get_audit_service, get_clock, require_admin
from src.components.audit import (
    AuditQuery,
    DeletionAction,
    DeletionAuditEntry,
    DeletionAuditService,
    export_filename,
    render_audit_csv,
)
from src.domain.entities import Actor

router = APIRouter()


# --- Response Models ---


class AuditEntryResponse(BaseModel):
    id: str
    content_type: str
    content_id: str
    content_name: str | None
    action: str
    performed_by: str | None
    performed_at: str
    metadata: dict[str, Any]


class AuditQueryResponse(BaseModel):
    """Paginated audit query response."""

    items: list[AuditEntryResponse]
    total: int
    offset: int
    limit: int


# --- Helper Functions ---


def entry_to_response(entry: DeletionAuditEntry) -> AuditEntryResponse:
    return AuditEntryResponse(
        id=str(entry.id),
        content_type=entry.content_type,
        content_id=entry.content_id,
        content_name=entry.content_name,
        action=entry.action.value,
        performed_by=entry.performed_by,
        performed_at=entry.performed_at.isoformat(),
        metadata=entry.metadata,
    )


def parse_datetime(dt_str: str) -> datetime:
    """Parse datetime string to an aware UTC datetime."""
    try:
        if dt_str.endswith("Z"):
            dt_str = dt_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(dt_str)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid datetime format: {dt_str}",
        ) from e


def parse_action(action_str: str) -> DeletionAction:
    try:
        return DeletionAction(action_str.lower())
    except ValueError:
        valid = ", ".join(a.value for a in DeletionAction)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid action: {action_str}. Must be one of: {valid}",
        ) from None


def build_query(
    content_type: str | None,
    action: str | None,
    performed_by: str | None,
    start: str | None,
    end: str | None,
    limit: int | None,
    offset: int,
) -> AuditQuery:
    return AuditQuery(
        content_type=content_type,
        action=parse_action(action) if action else None,
        performed_by=performed_by,
        start_time=parse_datetime(start) if start else None,
        end_time=parse_datetime(end) if end else None,
        limit=limit,
        offset=offset,
    )


# --- Routes ---


@router.get("", response_model=AuditQueryResponse)
def query_audit_log(
    content_type: str | None = Query(None, description="Filter by content type"),
    action: str | None = Query(None, description="soft_delete, restore or permanent_delete"),
    performed_by: str | None = Query(None, description="Filter by actor email"),
    start: str | None = Query(None, description="Start datetime (ISO format)"),
    end: str | None = Query(None, description="End datetime (ISO format)"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(require_admin),
    service: DeletionAuditService = Depends(get_audit_service),
) -> AuditQueryResponse:
    query = build_query(content_type, action, performed_by, start, end, limit, offset)
    entries = service.query(query)
    return AuditQueryResponse(
        items=[entry_to_response(e) for e in entries],
        total=service.count(query),
        offset=offset,
        limit=limit,
    )


@router.api_route("/export", methods=["GET", "POST"])
def export_audit_log(
    content_type: str | None = Query(None),
    action: str | None = Query(None),
    performed_by: str | None = Query(None),
    start: str | None = Query(None),
    end: str | None = Query(None),
    actor: Actor = Depends(require_admin),
    service: DeletionAuditService = Depends(get_audit_service),
    clock: SystemClock = Depends(get_clock),
) -> Response:
    """Every matching entry as CSV (no pagination)."""
    query = build_query(content_type, action, performed_by, start, end, None, 0)
    csv_text = render_audit_csv(service.query(query))
    filename = export_filename(clock.now_utc())
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
