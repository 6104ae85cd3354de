"""Unsubscribe delivery by email or HTTP request.

Delivery is best-effort: failures are logged and reported as ``False`` so
the subscription record can still be marked unsubscribed.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import TYPE_CHECKING, Callable, Iterable, Protocol
from urllib.parse import parse_qs

import requests

from .models import Subscription, SubscriptionStatus, SubscriptionType

if TYPE_CHECKING:
    from content_ingest.config import IngestConfig

logger = logging.getLogger(__name__)

UNSUBSCRIBE_EMAIL_TEXT = "This message was automatically generated by the ingestion service."
DEFAULT_SUBJECT = "Unsubscribe"
DEFAULT_HTTP_TIMEOUT = 5.0


class UnsubscribeAddressError(ValueError):
    """The unsubscribe address is not a usable email address."""


@dataclass(frozen=True)
class UnsubscribeTarget:
    to: str
    subject: str = DEFAULT_SUBJECT


def parse_unsubscribe_mailto(value: str) -> UnsubscribeTarget:
    """Split ``address?subject=...`` into recipient and subject.

    >>> parse_unsubscribe_mailto("list@example.com?subject=Stop")
    UnsubscribeTarget(to='list@example.com', subject='Stop')
    """
    raw = value.strip()
    if raw.lower().startswith("mailto:"):
        raw = raw[len("mailto:"):]
    to, _, query = raw.partition("?")
    subjects = parse_qs(query).get("subject") if query else None
    subject = subjects[0] if subjects and subjects[0] else DEFAULT_SUBJECT

    if not to or "@" not in to:
        raise UnsubscribeAddressError(f"Invalid unsubscribe email address: {value}")
    return UnsubscribeTarget(to=to, subject=subject)


class EmailSender(Protocol):
    def send(self, *, to: str, subject: str, text: str, from_address: str) -> bool:
        ...


class SmtpEmailSender:
    """Sends plain-text messages through an SMTP relay."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 25,
        *,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = False,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: "IngestConfig") -> "SmtpEmailSender":
        return cls(
            config.smtp_host,
            config.smtp_port,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            timeout=config.request_timeout,
        )

    def send(self, *, to: str, subject: str, text: str, from_address: str) -> bool:
        message = EmailMessage()
        message["To"] = to
        message["From"] = from_address
        message["Subject"] = subject
        message.set_content(text)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            refused = smtp.send_message(message)
        return not refused


def send_unsubscribe_email(mail_to: str, from_address: str, sender: EmailSender) -> bool:
    """Email the list owner asking to be removed.

    Returns False when the address is malformed, the transport fails, or the
    sender rejects the message.
    """
    try:
        target = parse_unsubscribe_mailto(mail_to)
    except UnsubscribeAddressError as exc:
        logger.info("Failed to send unsubscribe email: %s", exc)
        return False

    try:
        sent = sender.send(
            to=target.to,
            subject=target.subject,
            text=UNSUBSCRIBE_EMAIL_TEXT,
            from_address=from_address,
        )
    except (smtplib.SMTPException, OSError) as exc:
        logger.info("Failed to send unsubscribe email to %s: %s", mail_to, exc)
        return False

    if not sent:
        logger.info("Failed to send unsubscribe email: %s", mail_to)
        return False
    return True


def send_unsubscribe_http_request(url: str, timeout: float = DEFAULT_HTTP_TIMEOUT) -> bool:
    """GET the publisher's unsubscribe URL; any network or HTTP error is False."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.info("Failed to send unsubscribe http request: %s", exc)
        return False
    return True


HttpSender = Callable[[str, float], bool]


class SubscriptionStore(Protocol):
    def mark_unsubscribed(self, subscription_id: str) -> None:
        ...


class InMemorySubscriptionStore:
    """Keeps subscriptions in a dict; used by the CLI and tests."""

    def __init__(self, subscriptions: Iterable[Subscription] = ()):
        self.subscriptions: dict[str, Subscription] = {item.id: item for item in subscriptions}

    def mark_unsubscribed(self, subscription_id: str) -> None:
        subscription = self.subscriptions.get(subscription_id)
        if subscription is None:
            raise KeyError(f"Unknown subscription: {subscription_id}")
        subscription.status = SubscriptionStatus.UNSUBSCRIBED


@dataclass(frozen=True)
class UnsubscribeResult:
    subscription_id: str
    method: str | None  # "email", "http", or None when nothing could be sent
    delivered: bool
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class UnsubscribeSummary:
    results: list[UnsubscribeResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[UnsubscribeResult]:
        return [result for result in self.results if result.succeeded]

    @property
    def failed(self) -> list[UnsubscribeResult]:
        return [result for result in self.results if not result.succeeded]

    @property
    def delivered(self) -> list[UnsubscribeResult]:
        return [result for result in self.results if result.delivered]


def unsubscribe(
    subscription: Subscription,
    *,
    sender: EmailSender,
    store: SubscriptionStore,
    http_timeout: float = DEFAULT_HTTP_TIMEOUT,
    http_sender: HttpSender = send_unsubscribe_http_request,
) -> UnsubscribeResult:
    """Notify the publisher if possible, then mark the subscription unsubscribed.

    Newsletters with both an unsubscribe address and a receiving address are
    unsubscribed by email. Otherwise the unsubscribe URL is requested, if any.

    Args:
        subscription: Record to unsubscribe; its status is updated in place.
        sender: Transport for unsubscribe emails.
        store: Persists the new status.
        http_timeout: Seconds allowed for the unsubscribe URL request.
        http_sender: Called with the URL and timeout to deliver URL based
            unsubscribes.

    Returns:
        The delivery method used and whether delivery succeeded.

    Errors from ``store.mark_unsubscribed`` propagate. Delivery failures
    never raise; they only show up in the result.
    """
    method: str | None = None
    delivered = False

    if subscription.type is SubscriptionType.NEWSLETTER:
        if subscription.unsubscribe_mail_to and subscription.newsletter_email:
            method = "email"
            delivered = send_unsubscribe_email(
                subscription.unsubscribe_mail_to,
                subscription.newsletter_email,
                sender,
            )
            logger.info("Unsubscribe email for %s sent: %s", subscription.id, delivered)
        elif subscription.unsubscribe_http_url:
            method = "http"
            delivered = http_sender(subscription.unsubscribe_http_url, http_timeout)
            logger.info("Unsubscribe request for %s sent: %s", subscription.id, delivered)

    store.mark_unsubscribed(subscription.id)
    subscription.status = SubscriptionStatus.UNSUBSCRIBED
    return UnsubscribeResult(subscription_id=subscription.id, method=method, delivered=delivered)


def unsubscribe_all(
    subscriptions: Iterable[Subscription],
    *,
    sender: EmailSender,
    store: SubscriptionStore,
    http_timeout: float = DEFAULT_HTTP_TIMEOUT,
    http_sender: HttpSender = send_unsubscribe_http_request,
) -> UnsubscribeSummary:
    """Unsubscribe from each item, collecting one result per subscription."""
    summary = UnsubscribeSummary()
    for subscription in subscriptions:
        try:
            result = unsubscribe(
                subscription,
                sender=sender,
                store=store,
                http_timeout=http_timeout,
                http_sender=http_sender,
            )
        except Exception as exc:
            logger.info("Failed to unsubscribe %s: %s", subscription.id, exc)
            result = UnsubscribeResult(
                subscription_id=subscription.id,
                method=None,
                delivered=False,
                error=str(exc),
            )
        summary.results.append(result)
    return summary


__all__ = [
    "DEFAULT_SUBJECT",
    "EmailSender",
    "HttpSender",
    "InMemorySubscriptionStore",
    "SmtpEmailSender",
    "SubscriptionStore",
    "UNSUBSCRIBE_EMAIL_TEXT",
    "UnsubscribeAddressError",
    "UnsubscribeResult",
    "UnsubscribeSummary",
    "UnsubscribeTarget",
    "parse_unsubscribe_mailto",
    "send_unsubscribe_email",
    "send_unsubscribe_http_request",
    "unsubscribe",
    "unsubscribe_all",
]
