"""
Audit component - deletion audit trail and CSV export.
"""

from .component import DefaultTimePort, DeletionAuditService, InMemoryAuditRepo
from .export import CSV_HEADER, entry_to_row, export_filename, humanize, render_audit_csv
from .models import AuditQuery, DeletionAction, DeletionAuditEntry
from .ports import AuditRepoPort, TimePort

__all__ = [
    # Service
    "DeletionAuditService",
    "InMemoryAuditRepo",
    "DefaultTimePort",
    # Export
    "CSV_HEADER",
    "entry_to_row",
    "export_filename",
    "humanize",
    "render_audit_csv",
    # Models
    "AuditQuery",
    "DeletionAction",
    "DeletionAuditEntry",
    # Ports
    "AuditRepoPort",
    "TimePort",
]
