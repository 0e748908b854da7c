"""Integration tests for the audit log, reference suggestion and spelling routes."""

import pytest

from src.api.deps import get_curated_references, get_reference_search
from src.components.references import CuratedReference, ReferenceSearchError

QAOA_SLUG = "quantum-approximate-optimization-algorithm"


class StubSearch:
    def __init__(self, fail_scholar=False):
        self.fail_scholar = fail_scholar

    def search_arxiv(self, query, max_results):
        return []

    def search_semantic_scholar(self, query, limit):
        if self.fail_scholar:
            raise ReferenceSearchError("Semantic Scholar search failed: status 429")
        return []


@pytest.fixture
def case_study(client, admin_headers):
    algorithm = client.post(
        "/api/algorithms",
        json={"slug": QAOA_SLUG, "name": "QAOA", "published": True},
        headers=admin_headers,
    ).json()
    return client.post(
        "/api/case-studies",
        json={"slug": "grid-routing", "title": "Grid Routing", "algorithms": [algorithm["id"]]},
        headers=admin_headers,
    ).json()


# --- Audit log ---


def test_audit_log_records_soft_delete(client, admin_headers, case_study):
    client.delete("/api/case-studies", params={"id": case_study["id"]}, headers=admin_headers)

    response = client.get(
        "/api/audit-log", params={"action": "soft_delete"}, headers=admin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    entry = body["items"][0]
    assert entry["content_id"] == case_study["id"]
    assert entry["content_name"] == "Grid Routing"
    assert entry["performed_by"] == "admin@example.com"
    assert entry["metadata"]["content_snapshot"]["slug"] == "grid-routing"


def test_audit_log_rejects_unknown_action(client, admin_headers):
    response = client.get("/api/audit-log", params={"action": "purge"}, headers=admin_headers)
    assert response.status_code == 400


def test_audit_log_requires_admin(client, user_headers):
    assert client.get("/api/audit-log", headers=user_headers).status_code == 403


def test_audit_export_csv(client, admin_headers, case_study):
    client.delete("/api/case-studies", params={"id": case_study["id"]}, headers=admin_headers)
    client.post("/api/case-studies/restore", json={"id": case_study["id"]}, headers=admin_headers)

    response = client.get("/api/audit-log/export", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="audit-log-')
    lines = response.text.strip().splitlines()
    assert len(lines) == 3
    assert "Grid Routing" in lines[1]


# --- Reference suggestions ---


def test_suggest_references(app, client, admin_headers, case_study):
    app.dependency_overrides[get_reference_search] = lambda: StubSearch(fail_scholar=True)
    app.dependency_overrides[get_curated_references] = lambda: {
        QAOA_SLUG: [CuratedReference(title="QAOA", authors="Farhi, E.", year=2014)]
    }

    response = client.get(
        f"/api/case-studies/{case_study['id']}/suggest-references", headers=admin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["caseStudyTitle"] == "Grid Routing"
    assert [a["slug"] for a in body["algorithms"]] == [QAOA_SLUG]
    assert body["suggestions"]["yaml"][0]["source"] == "yaml"
    assert body["suggestions"]["arxiv"] == []
    assert body["warnings"] == [
        "Semantic Scholar: Semantic Scholar search failed: status 429"
    ]


def test_suggest_references_unknown_case_study(app, client, admin_headers):
    app.dependency_overrides[get_reference_search] = lambda: StubSearch()
    response = client.post(
        "/api/case-studies/missing/suggest-references", headers=admin_headers
    )
    assert response.status_code == 404


# --- Spelling ---


def test_spelling_check(client, admin_headers):
    response = client.post(
        "/api/admin/spelling/check",
        json={"text": "We optimize the color model.", "replace": True},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [m["usSpelling"] for m in body["matches"]] == ["optimize", "color"]
    assert body["text"] == "We optimise the colour model."


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "api"}


def test_spelling_check_leaves_quantum_terms(client, admin_headers):
    response = client.post(
        "/api/admin/spelling/check",
        json={"text": "Quantum optimization of the color model.", "replace": True},
        headers=admin_headers,
    )

    body = response.json()
    assert [m["usSpelling"] for m in body["matches"]] == ["color"]
    assert body["text"] == "Quantum optimization of the colour model."


def test_validate_content(client, admin_headers):
    response = client.post(
        "/api/admin/spelling/validate",
        json={
            "content_type": "algorithms",
            "content": {"name": "QAOA.", "description": "Behavior of the optimizer"},
        },
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert {(i["field"], i["type"]) for i in body["issues"]} == {
        ("description", "us-spelling"),
        ("name", "quality"),
        ("description", "quality"),
        ("name", "style"),
        ("description", "style"),
    }
    assert body["summary"]["isValid"] is True
    assert body["byField"]["description"][0]["original"] == "behavior"


def test_validate_requires_title(client, admin_headers):
    response = client.post(
        "/api/admin/spelling/validate",
        json={"content_type": "blog-posts", "content": {}},
        headers=admin_headers,
    )

    summary = response.json()["summary"]
    assert summary["isValid"] is False
    assert summary["errors"] == 2


def test_validate_unknown_type(client, admin_headers):
    response = client.post(
        "/api/admin/spelling/validate",
        json={"content_type": "widgets", "content": {}},
        headers=admin_headers,
    )
    assert response.status_code == 400
