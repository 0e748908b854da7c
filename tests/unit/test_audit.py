"""
Deletion audit service and CSV export.
"""

from __future__ import annotations

import csv
import io
from datetime import UTC, datetime, timedelta

import pytest

from src.adapters.clock import FrozenClock
from src.components.audit import (
    CSV_HEADER,
    AuditQuery,
    DeletionAction,
    DeletionAuditService,
    InMemoryAuditRepo,
    export_filename,
    humanize,
    render_audit_csv,
)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 4, 2, 14, 30, 5, tzinfo=UTC))


@pytest.fixture
def service(clock: FrozenClock) -> DeletionAuditService:
    return DeletionAuditService(InMemoryAuditRepo(), clock)


def soft_delete(service: DeletionAuditService, content_id: str, by: str = "a@example.com"):
    return service.log_soft_delete(
        content_type="case_studies",
        content_id=content_id,
        content_name=f"Study {content_id}",
        performed_by=by,
        snapshot={"id": content_id, "title": f"Study {content_id}"},
        relationship_configs=[{"junction_table": "algorithm_case_study_relations"}],
    )


class TestDeletionAuditService:
    def test_soft_delete_carries_snapshot(self, service: DeletionAuditService) -> None:
        entry = soft_delete(service, "cs-1")

        assert entry.action == DeletionAction.SOFT_DELETE
        assert entry.has_snapshot
        assert entry.metadata["relationship_configs"][0]["junction_table"].startswith("algorithm")
        assert service.get(entry.id) == entry

    def test_restore_has_no_snapshot(self, service: DeletionAuditService) -> None:
        entry = service.log_restore("case_studies", "cs-1", "Study", "a@example.com")
        assert not entry.has_snapshot

    def test_query_newest_first_with_filters(
        self, service: DeletionAuditService, clock: FrozenClock
    ) -> None:
        soft_delete(service, "cs-1")
        clock.advance(minutes=1)
        soft_delete(service, "cs-2", by="b@example.com")
        clock.advance(minutes=1)
        service.log_permanent_delete("algorithms", "al-1", "QAOA", "a@example.com", {})

        everything = service.query(AuditQuery())
        assert [e.content_id for e in everything] == ["al-1", "cs-2", "cs-1"]

        by_b = service.query(AuditQuery(performed_by="b@example.com"))
        assert [e.content_id for e in by_b] == ["cs-2"]

        deletes = AuditQuery(action=DeletionAction.SOFT_DELETE, limit=1)
        assert [e.content_id for e in service.query(deletes)] == ["cs-2"]
        assert service.count(deletes) == 2

    def test_time_window(self, service: DeletionAuditService, clock: FrozenClock) -> None:
        start = clock.now_utc()
        soft_delete(service, "cs-1")
        clock.advance(days=2)
        soft_delete(service, "cs-2")

        window = AuditQuery(start_time=start, end_time=start + timedelta(days=1))
        assert [e.content_id for e in service.query(window)] == ["cs-1"]

    def test_get_for_content(self, service: DeletionAuditService) -> None:
        soft_delete(service, "cs-1")
        soft_delete(service, "cs-2")
        assert len(service.get_for_content("case_studies", "cs-1")) == 1


class TestCsvExport:
    def test_render(self, service: DeletionAuditService, clock: FrozenClock) -> None:
        soft_delete(service, "cs-1")
        clock.advance(minutes=1)
        service.log_restore("case_studies", "cs-1", None, None)

        rows = list(csv.reader(io.StringIO(render_audit_csv(service.query(AuditQuery())))))

        assert rows[0] == CSV_HEADER
        assert len(rows) == 3
        restore, deleted = rows[1], rows[2]
        assert restore == [
            "2026-04-02 14:31:05",
            "Case Studies",
            "Untitled",
            "Restore",
            "Unknown",
            "cs-1",
            "No snapshot",
        ]
        assert deleted[3] == "Soft Delete"
        assert deleted[6] == "Snapshot available"

    def test_commas_and_quotes_are_escaped(self, service: DeletionAuditService) -> None:
        service.log_restore("blog_posts", "bp-1", 'Qubits, "noise" and you', "a@example.com")

        text = render_audit_csv(service.query(AuditQuery()))

        assert '"Qubits, ""noise"" and you"' in text
        assert list(csv.reader(io.StringIO(text)))[1][2] == 'Qubits, "noise" and you'

    def test_empty_export_has_header_only(self) -> None:
        assert render_audit_csv([]) == ",".join(CSV_HEADER) + "\n"

    def test_filename(self, clock: FrozenClock) -> None:
        assert export_filename(clock.now_utc()) == "audit-log-2026-04-02-143005.csv"

    def test_humanize(self) -> None:
        assert humanize("permanent_delete") == "Permanent Delete"
        assert humanize("quantum_software") == "Quantum Software"
