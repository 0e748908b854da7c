"""
Site search data.

- GET /api/search-data - compact published items of the searchable types
  (rate limited per client with the general window)
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from src.api.deps import get_content_component, get_rate_limit_rules, get_rate_limiter
from src.api.errors import raise_for_errors
from src.app_shell.rate_limit import RateLimiter, RateLimitResult, client_identifier
from src.components.content import ContentComponent
from src.rules.models import RateLimitRules

logger = logging.getLogger(__name__)

router = APIRouter()


def enforce_general_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    limits: RateLimitRules = Depends(get_rate_limit_rules),
) -> RateLimitResult:
    client = client_identifier(
        request.headers.get("X-Forwarded-For"),
        request.headers.get("X-Real-IP"),
        request.client.host if request.client else None,
    )
    result = limiter.check(f"general:{client}", limits.general)
    if not result.allowed:
        logger.warning("General rate limit exceeded for %s", client)
        retry_after = result.retry_after or limits.general.window_ms // 1000
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limits.general.limit),
                "X-RateLimit-Remaining": str(result.remaining),
            },
        )
    return result


@router.get("")
def get_search_data(
    response: Response,
    rate: RateLimitResult = Depends(enforce_general_limit),
    limits: RateLimitRules = Depends(get_rate_limit_rules),
    component: ContentComponent = Depends(get_content_component),
) -> list[dict[str, Any]]:
    response.headers["X-RateLimit-Limit"] = str(limits.general.limit)
    response.headers["X-RateLimit-Remaining"] = str(rate.remaining)

    result = component.run_fetch_search_data()
    raise_for_errors(result.errors)
    return result.items
