"""
Newsletter component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.components.newsletter.models import NewsletterSubscription


class NewsletterRepoPort(Protocol):
    """Newsletter subscription repository interface."""

    def get_by_email(self, email: str) -> NewsletterSubscription | None:
        """Get subscription by normalised email address."""
        ...

    def get_by_unsubscribe_token(self, token: str) -> NewsletterSubscription | None:
        """Get subscription by unsubscribe token."""
        ...

    def save(self, subscription: NewsletterSubscription) -> NewsletterSubscription:
        """Insert or update by id."""
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        ...
