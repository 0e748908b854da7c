"""
Newsletter component - subscribe, unsubscribe and status lookups.
"""

from src.components.newsletter.component import (
    EMAIL_REGEX,
    generate_token,
    run_set_subscription,
    run_status,
    run_subscribe,
    run_unsubscribe,
    subscription_status_for,
    validate_email,
)
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

__all__ = [
    # Entry points
    "run_set_subscription",
    "run_status",
    "run_subscribe",
    "run_unsubscribe",
    "subscription_status_for",
    # Pure functions
    "EMAIL_REGEX",
    "generate_token",
    "validate_email",
    # Models
    "NOT_FOUND",
    "VALIDATION",
    "NewsletterSubscription",
    "SetSubscriptionInput",
    "StatusInput",
    "StatusOutput",
    "SubscribeInput",
    "SubscribeOutput",
    "SubscriptionStatus",
    "UnsubscribeInput",
    "UnsubscribeOutput",
    "ValidateEmailOutput",
    "ValidationError",
    # Ports
    "NewsletterRepoPort",
    "TimePort",
]
