"""Tests for subscription records."""

from __future__ import annotations

import pytest

from content_ingest.subscriptions import Subscription, SubscriptionStatus, SubscriptionType


class TestSubscription:
    def test_from_dict_defaults(self) -> None:
        subscription = Subscription.from_dict({"id": 7, "name": "Weekly"})

        assert subscription.id == "7"
        assert subscription.type is SubscriptionType.NEWSLETTER
        assert subscription.status is SubscriptionStatus.ACTIVE
        assert subscription.unsubscribe_mail_to is None

    def test_from_dict_reads_all_fields(self) -> None:
        subscription = Subscription.from_dict(
            {
                "id": "rss-1",
                "name": "Blog",
                "type": "RSS",
                "status": "UNSUBSCRIBED",
                "url": "https://blog.example/feed.xml",
            }
        )

        assert subscription.type is SubscriptionType.RSS
        assert subscription.status is SubscriptionStatus.UNSUBSCRIBED
        assert subscription.url == "https://blog.example/feed.xml"

    def test_missing_required_key(self) -> None:
        with pytest.raises(ValueError, match="missing"):
            Subscription.from_dict({"name": "Weekly"})

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            Subscription.from_dict({"id": "1", "name": "Weekly", "type": "PODCAST"})

    def test_to_dict_omits_empty_fields(self) -> None:
        subscription = Subscription(
            id="1",
            name="Weekly",
            unsubscribe_mail_to="list@example.com",
        )

        assert subscription.to_dict() == {
            "id": "1",
            "name": "Weekly",
            "type": "NEWSLETTER",
            "status": "ACTIVE",
            "unsubscribe_mail_to": "list@example.com",
        }

    def test_to_dict_is_accepted_by_from_dict(self) -> None:
        original = Subscription(
            id="1",
            name="Weekly",
            unsubscribe_http_url="https://news.example/unsub",
            newsletter_email="me@example.com",
        )
        assert Subscription.from_dict(original.to_dict()) == original
