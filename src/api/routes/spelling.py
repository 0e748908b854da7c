"""
Editorial spelling and content checks.

- POST /api/admin/spelling/check - US spellings found in a text, with the
  UK replacement when asked (admin)
- POST /api/admin/spelling/validate - editorial issues for one content item
  (admin)
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.deps import require_admin
from src.api.schemas import ContentValidationRequest, SpellingCheckRequest
from src.core.content_types import UnknownContentTypeError, get_content_type
from src.core.content_validation import (
    ValidationOptions,
    group_issues_by_field,
    validate_content,
    validation_summary,
)
from src.core.quantum_terms import is_quantum_term
from src.core.spelling import find_us_spellings, replace_us_spellings
from src.domain.entities import Actor

router = APIRouter()


@router.post("/check")
def check_spelling(
    body: SpellingCheckRequest,
    actor: Actor = Depends(require_admin),
) -> dict[str, Any]:
    skip = is_quantum_term if body.ignore_quantum_terms else None
    found = find_us_spellings(body.text, skip=skip)
    result: dict[str, Any] = {
        "matches": [
            {
                "usSpelling": m.us_spelling,
                "ukSpelling": m.uk_spelling,
                "category": m.category,
                "count": len(m.matches),
                "occurrences": m.matches,
            }
            for m in found
        ],
        "total": sum(len(m.matches) for m in found),
    }
    if body.replace:
        result["text"] = replace_us_spellings(body.text, skip=skip)
    return result


@router.post("/validate")
def validate_item(
    body: ContentValidationRequest,
    actor: Actor = Depends(require_admin),
) -> dict[str, Any]:
    try:
        spec = get_content_type(body.content_type)
    except UnknownContentTypeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown content type '{body.content_type}'",
        ) from None

    issues = validate_content(
        body.content,
        ValidationOptions(
            check_required_fields=body.check_required_fields,
            check_us_spellings=body.check_us_spellings,
            check_quality=body.check_quality,
        ),
        title_field=spec.title_field,
        body_field=spec.body_field,
    )
    return {
        "issues": [issue.as_dict() for issue in issues],
        "byField": {
            field: [issue.as_dict() for issue in grouped]
            for field, grouped in group_issues_by_field(issues).items()
        },
        "summary": validation_summary(issues),
    }
