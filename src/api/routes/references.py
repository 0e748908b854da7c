"""
Reference suggestions for case studies.

- GET|POST /api/case-studies/{id}/suggest-references - Curated, arXiv and
  Semantic Scholar suggestions for each linked algorithm (admin)
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from src.api.deps import (
    get_content_component,
    get_curated_references,
    get_reference_search,
    get_rules,
    require_admin,
)
from src.api.errors import raise_for_errors
from src.components.content import ContentComponent, FetchItemInput
from src.components.references import (
    AlgorithmRef,
    CuratedReference,
    ReferenceSearchClient,
    SuggestReferencesInput,
    run_suggest_references,
)
from src.domain.entities import Actor
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


@router.api_route("/{item_id}/suggest-references", methods=["GET", "POST"])
def suggest_references(
    item_id: str,
    actor: Actor = Depends(require_admin),
    content: ContentComponent = Depends(get_content_component),
    search: ReferenceSearchClient = Depends(get_reference_search),
    curated: dict[str, list[CuratedReference]] = Depends(get_curated_references),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    fetched = content.run_fetch_item(
        FetchItemInput(
            content_type="case_studies",
            identifier=item_id,
            by_field="id",
            include_unpublished=True,
        )
    )
    raise_for_errors(fetched.errors)
    case_study = fetched.item or {}

    algorithms = [
        AlgorithmRef(id=a["id"], name=a["name"], slug=a["slug"])
        for a in case_study.get("related_algorithms", [])
    ]
    result = run_suggest_references(
        SuggestReferencesInput(
            case_study_id=item_id,
            case_study_title=case_study.get("title", ""),
            algorithms=algorithms,
        ),
        curated,
        search,
        rules.references,
    )

    body: dict[str, Any] = {
        "success": True,
        "caseStudyId": result.case_study_id,
        "caseStudyTitle": result.case_study_title,
        "algorithms": [{"id": a.id, "name": a.name, "slug": a.slug} for a in result.algorithms],
        "suggestions": {
            "yaml": [r.to_dict() for r in result.curated],
            "arxiv": [r.to_dict() for r in result.arxiv],
            "semanticScholar": [r.to_dict() for r in result.semantic_scholar],
        },
        "processingTime": result.processing_ms,
    }
    if result.warnings:
        body["warnings"] = result.warnings
    if result.message:
        body["message"] = result.message
    return body
