"""Boundary helpers for newsletter subscriptions."""

from __future__ import annotations

from .models import Subscription, SubscriptionStatus, SubscriptionType
from .unsubscribe import (
    InMemorySubscriptionStore,
    SmtpEmailSender,
    UnsubscribeAddressError,
    UnsubscribeResult,
    UnsubscribeSummary,
    UnsubscribeTarget,
    parse_unsubscribe_mailto,
    unsubscribe,
    unsubscribe_all,
)

__all__ = [
    "InMemorySubscriptionStore",
    "SmtpEmailSender",
    "Subscription",
    "SubscriptionStatus",
    "SubscriptionType",
    "UnsubscribeAddressError",
    "UnsubscribeResult",
    "UnsubscribeSummary",
    "UnsubscribeTarget",
    "parse_unsubscribe_mailto",
    "unsubscribe",
    "unsubscribe_all",
]
