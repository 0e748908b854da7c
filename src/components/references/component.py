"""
References component - academic reference suggestions for case studies.

Three sources, queried per algorithm linked to the case study:
- curated papers from references.yaml (local, always available)
- arXiv Atom search
- Semantic Scholar paper search

Each live source is queried independently. A failing source adds a warning
and the other sources still answer.
"""

from __future__ import annotations

import logging
import re
import time
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

import httpx
import yaml

from src.components.references.models import (
    AlgorithmRef,
    ArxivPaper,
    CuratedReference,
    FormattedReference,
    ScholarPaper,
    SuggestReferencesInput,
    SuggestReferencesOutput,
)
from src.components.references.ports import PaperSearchPort
from src.rules.models import ReferenceSearchRules

logger = logging.getLogger(__name__)

ATOM_NS = {"atom": "http://www.w3.org/2005/Atom"}
ARXIV_ID_RE = re.compile(r"arxiv\.org/abs/([0-9.]+)")
SCHOLAR_FIELDS = "title,authors,year,abstract,url,citationCount,publicationVenue"


class ReferenceSearchError(Exception):
    """A live reference source failed."""


# --- Curated references ---


def load_curated_references(path: Path) -> dict[str, list[CuratedReference]]:
    """Load references.yaml into {algorithm slug: [references]}.

    A missing or unreadable file yields no curated references.
    """
    if not path.exists():
        logger.warning("Curated references file not found: %s", path)
        return {}

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        logger.error("Invalid curated references file %s: %s", path, e)
        return {}

    curated: dict[str, list[CuratedReference]] = {}
    for slug, entry in data.items():
        refs = (entry or {}).get("references") or []
        curated[slug] = [
            CuratedReference(
                title=ref["title"],
                authors=ref["authors"],
                year=ref["year"],
                url=ref.get("url", ""),
                arxiv=ref.get("arxiv"),
                doi=ref.get("doi"),
                isbn=ref.get("isbn"),
                note=ref.get("note"),
            )
            for ref in refs
        ]
    return curated


# --- Formatting (pure) ---


def _collapse(text: str | None) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def short_authors(names: list[str]) -> str:
    names = [n for n in names if n]
    if not names:
        return "Unknown"
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]}, {names[1]}"
    return f"{names[0]} et al."


def format_curated(ref: CuratedReference) -> FormattedReference:
    parts = [f'{ref.authors} ({ref.year}). "{ref.title}".']
    if ref.arxiv:
        parts.append(f"arXiv:{ref.arxiv}.")
    if ref.doi:
        parts.append(f"DOI: {ref.doi}.")
    if ref.isbn:
        parts.append(f"ISBN: {ref.isbn}.")
    if ref.url:
        parts.append(f"Available at: {ref.url}")
    if ref.note:
        parts.append(f"({ref.note})")
    return FormattedReference(
        source="yaml",
        text=" ".join(parts),
        title=ref.title,
        authors=ref.authors,
        year=ref.year,
        url=ref.url,
    )


def format_arxiv(paper: ArxivPaper) -> FormattedReference:
    text = (
        f'{paper.authors} ({paper.published}). "{paper.title}". '
        f"arXiv:{paper.arxiv_id}. Available at: {paper.url}"
    )
    return FormattedReference(
        source="arxiv",
        text=text,
        title=paper.title,
        authors=paper.authors,
        year=paper.published,
        url=paper.url,
    )


def format_scholar(paper: ScholarPaper) -> FormattedReference:
    authors = short_authors(paper.authors)
    year = str(paper.year) if paper.year else "n.d."
    parts = [f'{authors} ({year}). "{paper.title}".']
    if paper.venue:
        parts.append(f"{paper.venue}.")
    if paper.citation_count > 0:
        parts.append(f"Citations: {paper.citation_count}.")
    parts.append(f"Available at: {paper.url}")
    return FormattedReference(
        source="semantic-scholar",
        text=" ".join(parts),
        title=paper.title,
        authors=authors,
        year=year,
        url=paper.url,
    )


# --- Parsing (pure) ---


def parse_arxiv_feed(xml_text: str) -> list[ArxivPaper]:
    """Parse an arXiv Atom feed. Entries without an arXiv id are skipped."""
    root = ET.fromstring(xml_text)
    papers: list[ArxivPaper] = []
    for entry in root.findall("atom:entry", ATOM_NS):
        entry_id = entry.findtext("atom:id", default="", namespaces=ATOM_NS)
        match = ARXIV_ID_RE.search(entry_id)
        if not match:
            continue
        arxiv_id = match.group(1)
        names = [
            _collapse(a.findtext("atom:name", default="", namespaces=ATOM_NS))
            for a in entry.findall("atom:author", ATOM_NS)
        ]
        published = entry.findtext("atom:published", default="", namespaces=ATOM_NS)
        papers.append(
            ArxivPaper(
                entry_id=entry_id,
                title=_collapse(entry.findtext("atom:title", namespaces=ATOM_NS)) or "Untitled",
                authors=short_authors(names),
                published=published.split("-")[0],
                summary=_collapse(entry.findtext("atom:summary", namespaces=ATOM_NS)),
                arxiv_id=arxiv_id,
                url=f"https://arxiv.org/abs/{arxiv_id}",
            )
        )
    return papers


def parse_scholar_results(data: dict[str, Any]) -> list[ScholarPaper]:
    """Parse a Semantic Scholar search response, most cited first."""
    items = data.get("data")
    if not isinstance(items, list):
        return []
    papers = []
    for item in items:
        paper_id = item.get("paperId") or ""
        venue = item.get("publicationVenue") or {}
        papers.append(
            ScholarPaper(
                paper_id=paper_id,
                title=item.get("title") or "Untitled",
                authors=[a.get("name", "") for a in item.get("authors") or []],
                year=item.get("year"),
                abstract=item.get("abstract"),
                url=item.get("url") or f"https://www.semanticscholar.org/paper/{paper_id}",
                citation_count=item.get("citationCount") or 0,
                venue=venue.get("name") if isinstance(venue, dict) else None,
            )
        )
    return sorted(papers, key=lambda p: p.citation_count, reverse=True)


# --- HTTP client ---


class ReferenceSearchClient:
    """PaperSearchPort over httpx."""

    def __init__(
        self,
        rules: ReferenceSearchRules,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._rules = rules
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._rules.timeout_seconds,
            headers={"User-Agent": self._rules.user_agent},
            transport=self._transport,
        )

    def search_arxiv(self, query: str, max_results: int) -> list[ArxivPaper]:
        params = {
            "search_query": f'all:"{query}"',
            "max_results": max_results,
            "sortBy": "relevance",
            "sortOrder": "descending",
        }
        try:
            with self._client() as client:
                res = client.get(self._rules.arxiv_url, params=params)
        except httpx.HTTPError as e:
            raise ReferenceSearchError(f"arXiv search failed: {e}") from e
        if res.status_code >= 400:
            raise ReferenceSearchError(f"arXiv search failed: status {res.status_code}")
        try:
            return parse_arxiv_feed(res.text)
        except ET.ParseError as e:
            raise ReferenceSearchError(f"arXiv search failed: {e}") from e

    def search_semantic_scholar(self, query: str, limit: int) -> list[ScholarPaper]:
        params = {"query": query, "limit": limit, "fields": SCHOLAR_FIELDS}
        try:
            with self._client() as client:
                res = client.get(self._rules.semantic_scholar_url, params=params)
        except httpx.HTTPError as e:
            raise ReferenceSearchError(f"Semantic Scholar search failed: {e}") from e
        if res.status_code >= 400:
            raise ReferenceSearchError(
                f"Semantic Scholar search failed: status {res.status_code}"
            )
        try:
            return parse_scholar_results(res.json())
        except ValueError as e:
            raise ReferenceSearchError(f"Semantic Scholar search failed: {e}") from e


# --- Run handler ---


def run_suggest_references(
    inp: SuggestReferencesInput,
    curated: dict[str, list[CuratedReference]],
    search: PaperSearchPort,
    rules: ReferenceSearchRules,
) -> SuggestReferencesOutput:
    """Collect reference suggestions for every algorithm of a case study."""
    started = time.monotonic()
    out = SuggestReferencesOutput(
        case_study_id=inp.case_study_id,
        case_study_title=inp.case_study_title,
        algorithms=list(inp.algorithms),
    )

    if not inp.algorithms:
        out.message = "No algorithms associated with this case study"
        return out

    limit = rules.max_results
    for algo in inp.algorithms:
        out.curated.extend(format_curated(ref) for ref in curated.get(algo.slug, []))

        try:
            out.arxiv.extend(format_arxiv(p) for p in search.search_arxiv(algo.name, limit))
        except ReferenceSearchError as e:
            _warn(out, "arXiv", algo, e)

        try:
            out.semantic_scholar.extend(
                format_scholar(p) for p in search.search_semantic_scholar(algo.name, limit)
            )
        except ReferenceSearchError as e:
            _warn(out, "Semantic Scholar", algo, e)

    out.processing_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        "Reference suggestions for case study %s: %d curated, %d arXiv, %d Semantic Scholar",
        inp.case_study_id,
        len(out.curated),
        len(out.arxiv),
        len(out.semantic_scholar),
    )
    return out


def _warn(
    out: SuggestReferencesOutput, source_name: str, algo: AlgorithmRef, error: Exception
) -> None:
    logger.warning("%s search failed for %s: %s", source_name, algo.name, error)
    out.warnings.append(f"{source_name}: {error}")
