"""
Newsletter endpoints.

Endpoints:
- POST /api/newsletter - Subscribe (rate limited per client)
- DELETE /api/newsletter?token= - Unsubscribe by token
- GET /api/newsletter?token= - Subscription status by token
- GET /api/newsletter/subscription - Signed-in user's status
- POST /api/newsletter/subscription - Signed-in user subscribes or unsubscribes
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from src.adapters.clock import SystemClock
from src.adapters.sqlite_db import SQLiteNewsletterRepo
from src.api.deps import (
    get_clock,
    get_current_actor,
    get_newsletter_repo,
    get_rate_limit_rules,
    get_rate_limiter,
)
from src.api.errors import raise_for_errors
from src.api.schemas import SubscribeRequest, SubscriptionToggleRequest
from src.app_shell.rate_limit import RateLimiter, RateLimitResult, client_identifier
from src.components.newsletter import (
    SetSubscriptionInput,
    StatusInput,
    SubscribeInput,
    UnsubscribeInput,
    run_set_subscription,
    run_status,
    run_subscribe,
    run_unsubscribe,
    subscription_status_for,
)
from src.domain.entities import Actor
from src.rules.models import RateLimitRules

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Rate limiting ---


def enforce_newsletter_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    limits: RateLimitRules = Depends(get_rate_limit_rules),
) -> RateLimitResult:
    """Count this request against the client's newsletter window; 429 when spent."""
    client = client_identifier(
        request.headers.get("X-Forwarded-For"),
        request.headers.get("X-Real-IP"),
        request.client.host if request.client else None,
    )
    result = limiter.check(f"newsletter:{client}", limits.newsletter)
    if not result.allowed:
        logger.warning("Newsletter rate limit exceeded for %s", client)
        retry_after = result.retry_after or limits.newsletter.window_ms // 1000
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "Too many requests. Please try again later.",
                "retryAfter": retry_after,
            },
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limits.newsletter.limit),
                "X-RateLimit-Remaining": str(result.remaining),
            },
        )
    return result


# --- Public ---


@router.post("")
def subscribe(
    body: SubscribeRequest,
    response: Response,
    rate: RateLimitResult = Depends(enforce_newsletter_limit),
    limits: RateLimitRules = Depends(get_rate_limit_rules),
    repo: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    response.headers["X-RateLimit-Limit"] = str(limits.newsletter.limit)
    response.headers["X-RateLimit-Remaining"] = str(rate.remaining)

    result = run_subscribe(SubscribeInput(email=body.email, source=body.source), repo, clock=clock)
    raise_for_errors(result.errors)
    return {
        "message": result.message,
        "email": result.email,
        "alreadySubscribed": result.already_subscribed,
    }


@router.delete("")
def unsubscribe(
    token: str = Query(""),
    repo: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    result = run_unsubscribe(UnsubscribeInput(token=token), repo, clock=clock)
    raise_for_errors(result.errors)
    return {"message": result.message, "email": result.email}


@router.get("")
def subscription_status(
    token: str = Query(""),
    repo: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
) -> dict[str, Any]:
    result = run_status(StatusInput(token=token), repo)
    raise_for_errors(result.errors)
    return {
        "email": result.email,
        "status": result.status,
        "alreadyUnsubscribed": result.already_unsubscribed,
    }


# --- Signed-in user ---


@router.get("/subscription")
def my_subscription(
    actor: Actor = Depends(get_current_actor),
    repo: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
) -> dict[str, Any]:
    current = subscription_status_for(actor.email, repo)
    return {"email": actor.email, "isSubscribed": current == "active", "status": current}


@router.post("/subscription")
def set_my_subscription(
    body: SubscriptionToggleRequest,
    actor: Actor = Depends(get_current_actor),
    repo: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    result = run_set_subscription(
        SetSubscriptionInput(email=actor.email, subscribe=body.subscribe), repo, clock=clock
    )
    raise_for_errors(result.errors)
    return {"message": result.message, "isSubscribed": body.subscribe}
