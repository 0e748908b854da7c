"""
Draft mode (preview) endpoints.

- GET /api/preview?secret=&slug=&type= - Set the draft mode cookie and
  redirect to the item's public page
- DELETE /api/preview - Clear the cookie
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from src.api.auth_utils import create_draft_token
from src.api.deps import Settings, get_rules, get_settings
from src.core.content_types import UnknownContentTypeError, get_content_type
from src.core.redirects import get_safe_redirect_path
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()

# Preview links use singular page names; segments and table names also work.
PREVIEW_TYPES: dict[str, str] = {
    "case-study": "case_studies",
    "algorithm": "algorithms",
    "industry": "industries",
    "persona": "personas",
    "blog": "blog_posts",
}


def preview_path(content_type: str, slug: str | None) -> str:
    """Public path to redirect to, "/" when slug or type is unusable."""
    if not slug:
        return "/"
    try:
        spec = get_content_type(PREVIEW_TYPES.get(content_type, content_type))
    except UnknownContentTypeError:
        return "/"
    return get_safe_redirect_path(spec.public_path(slug))


@router.get("")
def enable_preview(
    secret: str | None = Query(None),
    slug: str | None = Query(None),
    content_type: str = Query("case-study", alias="type"),
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> RedirectResponse:
    if not settings.is_development:
        if not settings.preview_secret:
            logger.error("Preview requested but PREVIEW_SECRET is not configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Preview secret not configured",
            )
        if secret != settings.preview_secret:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    response = RedirectResponse(
        url=preview_path(content_type, slug), status_code=status.HTTP_307_TEMPORARY_REDIRECT
    )
    response.set_cookie(
        key=rules.preview.cookie_name,
        value=create_draft_token(rules.preview.cookie_max_age_seconds, settings.secret_key),
        max_age=rules.preview.cookie_max_age_seconds,
        httponly=True,
        samesite="none" if not settings.is_development else "lax",
        secure=not settings.is_development,
    )
    return response


@router.delete("")
def disable_preview(rules: Rules = Depends(get_rules)) -> PlainTextResponse:
    response = PlainTextResponse("Preview mode disabled")
    response.delete_cookie(key=rules.preview.cookie_name)
    return response
