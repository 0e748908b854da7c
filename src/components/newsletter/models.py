"""
Newsletter component models.

A subscription is either active or unsubscribed. The unsubscribe token is
issued when the row is created and never changes, so links in old emails
keep working after a reactivation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

# Error codes mapped to HTTP statuses by the API layer.
VALIDATION = "validation"
NOT_FOUND = "not_found"


class SubscriptionStatus(Enum):
    ACTIVE = "active"
    UNSUBSCRIBED = "unsubscribed"


# --- Entity ---


@dataclass
class NewsletterSubscription:
    id: UUID
    email: str
    unsubscribe_token: str
    subscribed_at: datetime
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    source: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    unsubscribed_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE


# --- Input Models ---


@dataclass(frozen=True)
class SubscribeInput:
    """Input for new subscription."""

    email: str
    source: str | None = "website"


@dataclass(frozen=True)
class UnsubscribeInput:
    """Input for unsubscribing by token."""

    token: str


@dataclass(frozen=True)
class StatusInput:
    """Input for looking up a subscription by token."""

    token: str


@dataclass(frozen=True)
class SetSubscriptionInput:
    """Self-service subscribe/unsubscribe for a signed-in user."""

    email: str
    subscribe: bool
    source: str = "profile_page"


# --- Output Models ---


@dataclass(frozen=True)
class ValidationError:
    """Validation error detail."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidateEmailOutput:
    is_valid: bool
    normalized_email: str | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class SubscribeOutput:
    success: bool
    email: str | None = None
    message: str = ""
    already_subscribed: bool = False
    reactivated: bool = False
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class UnsubscribeOutput:
    success: bool
    email: str | None = None
    message: str = ""
    already_unsubscribed: bool = False
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class StatusOutput:
    success: bool
    email: str | None = None
    status: str | None = None
    already_unsubscribed: bool = False
    errors: list[ValidationError] = field(default_factory=list)
