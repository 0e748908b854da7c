"""
References component - academic reference suggestions.
"""

from src.components.references.component import (
    ReferenceSearchClient,
    ReferenceSearchError,
    format_arxiv,
    format_curated,
    format_scholar,
    load_curated_references,
    parse_arxiv_feed,
    parse_scholar_results,
    run_suggest_references,
    short_authors,
)
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

__all__ = [
    # Entry point
    "run_suggest_references",
    # Adapters
    "ReferenceSearchClient",
    "ReferenceSearchError",
    "load_curated_references",
    # Pure functions
    "format_arxiv",
    "format_curated",
    "format_scholar",
    "parse_arxiv_feed",
    "parse_scholar_results",
    "short_authors",
    # Models
    "AlgorithmRef",
    "ArxivPaper",
    "CuratedReference",
    "FormattedReference",
    "ScholarPaper",
    "SuggestReferencesInput",
    "SuggestReferencesOutput",
    # Ports
    "PaperSearchPort",
]
