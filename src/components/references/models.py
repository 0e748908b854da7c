"""
References component models.

Input/output dataclasses for academic reference suggestions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ReferenceSource = Literal["yaml", "arxiv", "semantic-scholar"]


@dataclass(frozen=True)
class CuratedReference:
    """Hand-picked paper listed under an algorithm slug in references.yaml."""

    title: str
    authors: str
    year: int
    url: str = ""
    arxiv: str | None = None
    doi: str | None = None
    isbn: str | None = None
    note: str | None = None


@dataclass(frozen=True)
class ArxivPaper:
    entry_id: str
    title: str
    authors: str
    published: str
    summary: str
    arxiv_id: str
    url: str


@dataclass(frozen=True)
class ScholarPaper:
    paper_id: str
    title: str
    authors: list[str]
    year: int | None
    abstract: str | None
    url: str
    citation_count: int = 0
    venue: str | None = None


@dataclass(frozen=True)
class FormattedReference:
    """A citation line ready for insertion into a case study."""

    source: ReferenceSource
    text: str
    title: str
    authors: str
    year: int | str
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "text": self.text,
            "title": self.title,
            "authors": self.authors,
            "year": self.year,
            "url": self.url,
        }


@dataclass(frozen=True)
class AlgorithmRef:
    id: str
    name: str
    slug: str


@dataclass(frozen=True)
class SuggestReferencesInput:
    case_study_id: str
    case_study_title: str
    algorithms: list[AlgorithmRef]


@dataclass
class SuggestReferencesOutput:
    case_study_id: str
    case_study_title: str
    algorithms: list[AlgorithmRef] = field(default_factory=list)
    curated: list[FormattedReference] = field(default_factory=list)
    arxiv: list[FormattedReference] = field(default_factory=list)
    semantic_scholar: list[FormattedReference] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    message: str | None = None
    processing_ms: int = 0
