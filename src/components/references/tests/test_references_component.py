"""
References component unit tests.

HTTP is served by httpx.MockTransport; no test touches the network.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from src.components.references import (
    AlgorithmRef,
    ArxivPaper,
    CuratedReference,
    ReferenceSearchClient,
    ReferenceSearchError,
    ScholarPaper,
    SuggestReferencesInput,
    format_curated,
    format_scholar,
    load_curated_references,
    parse_arxiv_feed,
    parse_scholar_results,
    run_suggest_references,
    short_authors,
)
from src.rules.models import ReferenceSearchRules

ARXIV_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>http://arxiv.org/abs/1411.4028v1</id>
    <published>2014-11-14T19:46:46Z</published>
    <title>A Quantum Approximate
      Optimization Algorithm</title>
    <summary>We introduce a quantum algorithm.</summary>
    <author><name>Edward Farhi</name></author>
    <author><name>Jeffrey Goldstone</name></author>
    <author><name>Sam Gutmann</name></author>
  </entry>
  <entry>
    <id>http://example.com/not-arxiv</id>
    <title>Skipped</title>
  </entry>
</feed>
"""

SCHOLAR_JSON = {
    "data": [
        {
            "paperId": "low",
            "title": "Less cited",
            "authors": [{"name": "A. Author"}],
            "year": 2020,
            "citationCount": 3,
        },
        {
            "paperId": "high",
            "title": "Variational eigensolver",
            "authors": [{"name": "Alberto Peruzzo"}, {"name": "Jarrod McClean"}],
            "year": 2014,
            "url": "https://www.semanticscholar.org/paper/high",
            "citationCount": 4000,
            "publicationVenue": {"name": "Nature Communications"},
        },
    ]
}


@pytest.fixture
def rules() -> ReferenceSearchRules:
    return ReferenceSearchRules(
        max_results=3,
        timeout_seconds=5,
        user_agent="qkb-tests",
        arxiv_url="https://export.arxiv.org/api/query",
        semantic_scholar_url="https://api.semanticscholar.org/graph/v1/paper/search",
    )


def client_for(rules: ReferenceSearchRules, handler) -> ReferenceSearchClient:
    return ReferenceSearchClient(rules, transport=httpx.MockTransport(handler))


# --- Pure functions ---


class TestFormatting:
    @pytest.mark.parametrize(
        ("names", "expected"),
        [
            ([], "Unknown"),
            (["Peter Shor"], "Peter Shor"),
            (["A", "B"], "A, B"),
            (["A", "B", "C"], "A et al."),
        ],
    )
    def test_short_authors(self, names: list[str], expected: str) -> None:
        assert short_authors(names) == expected

    def test_format_curated(self) -> None:
        ref = CuratedReference(
            title="Quantum Computation and Quantum Information",
            authors="Nielsen, M. A. and Chuang, I. L.",
            year=2010,
            isbn="978-1107002173",
            note="Chapter 5",
        )
        formatted = format_curated(ref)
        assert formatted.source == "yaml"
        assert formatted.text == (
            'Nielsen, M. A. and Chuang, I. L. (2010). "Quantum Computation and Quantum '
            'Information". ISBN: 978-1107002173. (Chapter 5)'
        )

    def test_format_scholar_without_year(self) -> None:
        paper = ScholarPaper(
            paper_id="p",
            title="T",
            authors=["X"],
            year=None,
            abstract=None,
            url="https://s2/p",
        )
        assert format_scholar(paper).text == 'X (n.d.). "T". Available at: https://s2/p'


class TestParsing:
    def test_parse_arxiv_feed(self) -> None:
        papers = parse_arxiv_feed(ARXIV_FEED)

        assert papers == [
            ArxivPaper(
                entry_id="http://arxiv.org/abs/1411.4028v1",
                title="A Quantum Approximate Optimization Algorithm",
                authors="Edward Farhi et al.",
                published="2014",
                summary="We introduce a quantum algorithm.",
                arxiv_id="1411.4028",
                url="https://arxiv.org/abs/1411.4028",
            )
        ]

    def test_parse_scholar_sorts_by_citations(self) -> None:
        papers = parse_scholar_results(SCHOLAR_JSON)
        assert [p.paper_id for p in papers] == ["high", "low"]
        assert papers[0].venue == "Nature Communications"
        assert papers[1].url == "https://www.semanticscholar.org/paper/low"

    def test_parse_scholar_without_data(self) -> None:
        assert parse_scholar_results({"total": 0}) == []


def test_load_curated_references(tmp_path: Path) -> None:
    path = tmp_path / "references.yaml"
    path.write_text(
        "grovers-algorithm:\n"
        "  references:\n"
        "    - title: A fast quantum mechanical algorithm for database search\n"
        "      authors: Grover, L. K.\n"
        "      year: 1996\n"
        "      arxiv: quant-ph/9605043\n",
        encoding="utf-8",
    )

    curated = load_curated_references(path)

    assert list(curated) == ["grovers-algorithm"]
    assert curated["grovers-algorithm"][0].arxiv == "quant-ph/9605043"
    assert load_curated_references(tmp_path / "missing.yaml") == {}


def test_project_references_file_loads() -> None:
    curated = load_curated_references(Path(__file__).resolve().parents[4] / "references.yaml")
    assert "grovers-algorithm" in curated


# --- HTTP client ---


class TestReferenceSearchClient:
    def test_search_arxiv(self, rules: ReferenceSearchRules) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=ARXIV_FEED)

        papers = client_for(rules, handler).search_arxiv("QAOA", 3)

        assert [p.arxiv_id for p in papers] == ["1411.4028"]
        assert seen[0].url.host == "export.arxiv.org"
        assert seen[0].url.params["search_query"] == 'all:"QAOA"'
        assert seen[0].url.params["max_results"] == "3"
        assert seen[0].headers["User-Agent"] == "qkb-tests"

    def test_search_semantic_scholar(self, rules: ReferenceSearchRules) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["limit"] == "3"
            return httpx.Response(200, json=SCHOLAR_JSON)

        papers = client_for(rules, handler).search_semantic_scholar("VQE", 3)
        assert [p.paper_id for p in papers] == ["high", "low"]

    def test_http_status_error(self, rules: ReferenceSearchRules) -> None:
        client = client_for(rules, lambda request: httpx.Response(503))
        with pytest.raises(ReferenceSearchError, match="status 503"):
            client.search_arxiv("QAOA", 3)

    def test_transport_error(self, rules: ReferenceSearchRules) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(ReferenceSearchError, match="Semantic Scholar"):
            client_for(rules, handler).search_semantic_scholar("VQE", 3)

    def test_bad_payload(self, rules: ReferenceSearchRules) -> None:
        client = client_for(rules, lambda request: httpx.Response(200, text="<not xml"))
        with pytest.raises(ReferenceSearchError):
            client.search_arxiv("QAOA", 3)


# --- Run handler ---


class StubSearch:
    def __init__(self, arxiv_fails: bool = False) -> None:
        self.arxiv_fails = arxiv_fails
        self.queries: list[tuple[str, str, int]] = []

    def search_arxiv(self, query: str, max_results: int) -> list[ArxivPaper]:
        self.queries.append(("arxiv", query, max_results))
        if self.arxiv_fails:
            raise ReferenceSearchError("arXiv search failed: status 503")
        return parse_arxiv_feed(ARXIV_FEED)

    def search_semantic_scholar(self, query: str, limit: int) -> list[ScholarPaper]:
        self.queries.append(("scholar", query, limit))
        return parse_scholar_results(SCHOLAR_JSON)


QAOA = AlgorithmRef(id="a1", name="QAOA", slug="quantum-approximate-optimization-algorithm")
CURATED = {
    QAOA.slug: [CuratedReference(title="QAOA", authors="Farhi, E. et al.", year=2014)],
}


class TestRunSuggestReferences:
    def test_collects_every_source(self, rules: ReferenceSearchRules) -> None:
        search = StubSearch()
        out = run_suggest_references(
            SuggestReferencesInput("cs-1", "Routing", [QAOA]), CURATED, search, rules
        )

        assert [r.source for r in out.curated] == ["yaml"]
        assert [r.source for r in out.arxiv] == ["arxiv"]
        assert [r.source for r in out.semantic_scholar] == ["semantic-scholar"] * 2
        assert out.warnings == []
        assert search.queries == [("arxiv", "QAOA", 3), ("scholar", "QAOA", 3)]

    def test_failed_source_becomes_warning(self, rules: ReferenceSearchRules) -> None:
        out = run_suggest_references(
            SuggestReferencesInput("cs-1", "Routing", [QAOA]),
            CURATED,
            StubSearch(arxiv_fails=True),
            rules,
        )

        assert out.arxiv == []
        assert len(out.semantic_scholar) == 2
        assert out.warnings == ["arXiv: arXiv search failed: status 503"]

    def test_no_algorithms(self, rules: ReferenceSearchRules) -> None:
        search = StubSearch()
        out = run_suggest_references(
            SuggestReferencesInput("cs-1", "Routing", []), CURATED, search, rules
        )

        assert out.message == "No algorithms associated with this case study"
        assert search.queries == []
