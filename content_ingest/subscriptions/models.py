"""Subscription records as seen by the unsubscribe helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class SubscriptionType(str, Enum):
    NEWSLETTER = "NEWSLETTER"
    RSS = "RSS"


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    UNSUBSCRIBED = "UNSUBSCRIBED"


@dataclass
class Subscription:
    id: str
    name: str
    type: SubscriptionType = SubscriptionType.NEWSLETTER
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    unsubscribe_mail_to: str | None = None
    unsubscribe_http_url: str | None = None
    newsletter_email: str | None = None  # address the newsletter is delivered to
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "status": self.status.value,
        }
        for key in ("unsubscribe_mail_to", "unsubscribe_http_url", "newsletter_email", "url"):
            value = getattr(self, key)
            if value:
                payload[key] = value
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Subscription":
        try:
            return cls(
                id=str(payload["id"]),
                name=str(payload["name"]),
                type=SubscriptionType(payload.get("type", SubscriptionType.NEWSLETTER.value)),
                status=SubscriptionStatus(payload.get("status", SubscriptionStatus.ACTIVE.value)),
                unsubscribe_mail_to=payload.get("unsubscribe_mail_to"),
                unsubscribe_http_url=payload.get("unsubscribe_http_url"),
                newsletter_email=payload.get("newsletter_email"),
                url=payload.get("url"),
            )
        except KeyError as exc:
            raise ValueError(f"Subscription is missing {exc}") from exc


__all__ = ["Subscription", "SubscriptionStatus", "SubscriptionType"]
