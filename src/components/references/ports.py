"""
References component ports.
"""

from __future__ import annotations

from typing import Protocol

from src.components.references.models import ArxivPaper, ScholarPaper


class PaperSearchPort(Protocol):
    """Live paper search against the public academic APIs."""

    def search_arxiv(self, query: str, max_results: int) -> list[ArxivPaper]:
        """Raises ReferenceSearchError when the source cannot be queried."""
        ...

    def search_semantic_scholar(self, query: str, limit: int) -> list[ScholarPaper]:
        """Raises ReferenceSearchError when the source cannot be queried."""
        ...
