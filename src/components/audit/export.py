"""
CSV export of the deletion audit trail.

Columns: Timestamp, Content Type, Content Name, Action, Performed By,
Content ID, Metadata. The metadata column only says whether a snapshot was
captured; full snapshots stay in the database.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import datetime

from .models import DeletionAuditEntry

CSV_HEADER = [
    "Timestamp",
    "Content Type",
    "Content Name",
    "Action",
    "Performed By",
    "Content ID",
    "Metadata",
]


def humanize(value: str) -> str:
    """'case_studies' -> 'Case Studies'."""
    return " ".join(word.capitalize() for word in value.split("_"))


def entry_to_row(entry: DeletionAuditEntry) -> list[str]:
    return [
        entry.performed_at.strftime("%Y-%m-%d %H:%M:%S"),
        humanize(entry.content_type),
        entry.content_name or "Untitled",
        humanize(entry.action.value),
        entry.performed_by or "Unknown",
        entry.content_id,
        "Snapshot available" if entry.has_snapshot else "No snapshot",
    ]


def render_audit_csv(entries: Iterable[DeletionAuditEntry]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in entries:
        writer.writerow(entry_to_row(entry))
    return output.getvalue()


def export_filename(now: datetime) -> str:
    return f"audit-log-{now.strftime('%Y-%m-%d-%H%M%S')}.csv"
