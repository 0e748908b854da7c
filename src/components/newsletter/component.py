"""
Newsletter component - subscription management.

Functional core: email validation and token generation are pure functions;
the run_* handlers orchestrate them against the repository port.

Invariants:
- Emails are stored trimmed and lowercased, one row per email.
- Unsubscribe tokens are issued once per row and never rotated.
- Unsubscribing twice is a success, not an error.
"""

from __future__ import annotations

import logging
import re
import secrets
from datetime import UTC, datetime
from uuid import uuid4

from src.components.newsletter.models import (
    NOT_FOUND,
    VALIDATION,
    NewsletterSubscription,
    SetSubscriptionInput,
    StatusInput,
    StatusOutput,
    SubscribeInput,
    SubscribeOutput,
    SubscriptionStatus,
    UnsubscribeInput,
    UnsubscribeOutput,
    ValidateEmailOutput,
    ValidationError,
)
from src.components.newsletter.ports import NewsletterRepoPort, TimePort

logger = logging.getLogger(__name__)

# RFC 5322 simplified email regex
EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

MAX_EMAIL_LENGTH = 254


class _UtcClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


# --- Pure Functions (Functional Core) ---


def validate_email(email: str) -> ValidateEmailOutput:
    """Validate and normalise an email address."""
    normalized = email.strip().lower() if email else ""

    if not normalized:
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError(VALIDATION, "Email address is required", "email")],
        )

    if len(normalized) > MAX_EMAIL_LENGTH:
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError(VALIDATION, "Email address is too long", "email")],
        )

    if not EMAIL_REGEX.match(normalized):
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError(VALIDATION, "Invalid email address", "email")],
        )

    return ValidateEmailOutput(is_valid=True, normalized_email=normalized)


def generate_token(length: int = 32) -> str:
    """Cryptographically secure URL-safe token."""
    return secrets.token_urlsafe(length)


# --- Run Handlers ---


def run_subscribe(
    inp: SubscribeInput,
    repo: NewsletterRepoPort,
    *,
    clock: TimePort | None = None,
) -> SubscribeOutput:
    """Subscribe an email, reactivating an unsubscribed row if present."""
    validation = validate_email(inp.email)
    if not validation.is_valid or validation.normalized_email is None:
        return SubscribeOutput(success=False, errors=validation.errors)

    email = validation.normalized_email
    now = (clock or _UtcClock()).now_utc()

    existing = repo.get_by_email(email)
    if existing is not None:
        if existing.is_active:
            return SubscribeOutput(
                success=True,
                email=email,
                message="You are already subscribed to our newsletter.",
                already_subscribed=True,
            )

        existing.status = SubscriptionStatus.ACTIVE
        existing.subscribed_at = now
        existing.unsubscribed_at = None
        existing.metadata = {**existing.metadata, "source": inp.source, "reactivated": True}
        repo.save(existing)
        logger.info("Newsletter subscription reactivated for %s", email)
        return SubscribeOutput(
            success=True,
            email=email,
            message="Welcome back! Your subscription has been reactivated.",
            reactivated=True,
        )

    repo.save(
        NewsletterSubscription(
            id=uuid4(),
            email=email,
            unsubscribe_token=generate_token(),
            subscribed_at=now,
            source=inp.source,
            metadata={"source": inp.source},
        )
    )
    logger.info("Newsletter subscription created for %s", email)
    return SubscribeOutput(
        success=True,
        email=email,
        message="Thanks for subscribing to our newsletter!",
    )


def run_unsubscribe(
    inp: UnsubscribeInput,
    repo: NewsletterRepoPort,
    *,
    clock: TimePort | None = None,
) -> UnsubscribeOutput:
    """Unsubscribe by token. Idempotent."""
    if not inp.token:
        return UnsubscribeOutput(
            success=False,
            errors=[ValidationError(VALIDATION, "Unsubscribe token is required", "token")],
        )

    subscription = repo.get_by_unsubscribe_token(inp.token)
    if subscription is None:
        return UnsubscribeOutput(
            success=False,
            errors=[ValidationError(NOT_FOUND, "Invalid unsubscribe token", "token")],
        )

    if not subscription.is_active:
        return UnsubscribeOutput(
            success=True,
            email=subscription.email,
            message="You are already unsubscribed from our newsletter.",
            already_unsubscribed=True,
        )

    subscription.status = SubscriptionStatus.UNSUBSCRIBED
    subscription.unsubscribed_at = (clock or _UtcClock()).now_utc()
    repo.save(subscription)
    logger.info("Newsletter subscription cancelled for %s", subscription.email)
    return UnsubscribeOutput(
        success=True,
        email=subscription.email,
        message="You have been unsubscribed from our newsletter.",
    )


def run_status(inp: StatusInput, repo: NewsletterRepoPort) -> StatusOutput:
    """Look up a subscription by its unsubscribe token."""
    if not inp.token:
        return StatusOutput(
            success=False,
            errors=[ValidationError(VALIDATION, "Unsubscribe token is required", "token")],
        )

    subscription = repo.get_by_unsubscribe_token(inp.token)
    if subscription is None:
        return StatusOutput(
            success=False,
            errors=[ValidationError(NOT_FOUND, "Invalid unsubscribe token", "token")],
        )

    return StatusOutput(
        success=True,
        email=subscription.email,
        status=subscription.status.value,
        already_unsubscribed=not subscription.is_active,
    )


def run_set_subscription(
    inp: SetSubscriptionInput,
    repo: NewsletterRepoPort,
    *,
    clock: TimePort | None = None,
) -> SubscribeOutput | UnsubscribeOutput:
    """Subscribe or unsubscribe the signed-in user's email."""
    if inp.subscribe:
        return run_subscribe(SubscribeInput(email=inp.email, source=inp.source), repo, clock=clock)

    subscription = repo.get_by_email(inp.email.strip().lower())
    if subscription is None or not subscription.is_active:
        return UnsubscribeOutput(
            success=True,
            email=inp.email,
            message="Not subscribed to newsletter",
            already_unsubscribed=True,
        )
    return run_unsubscribe(
        UnsubscribeInput(token=subscription.unsubscribe_token), repo, clock=clock
    )


def subscription_status_for(email: str, repo: NewsletterRepoPort) -> str:
    """'active', 'unsubscribed' or 'not_subscribed'."""
    subscription = repo.get_by_email(email.strip().lower())
    return subscription.status.value if subscription else "not_subscribed"
