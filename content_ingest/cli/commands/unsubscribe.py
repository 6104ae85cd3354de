"""CLI command for bulk unsubscribing from newsletters."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from content_ingest.config import ConfigError, load_config
from content_ingest.subscriptions import (
    InMemorySubscriptionStore,
    SmtpEmailSender,
    Subscription,
    unsubscribe_all,
)
from content_ingest.subscriptions.unsubscribe import send_unsubscribe_http_request

from .ingest import configure_logging


class _DryRunSender:
    def send(self, *, to: str, subject: str, text: str, from_address: str) -> bool:
        print(f"  (dry run) would email {to} from {from_address}: {subject}")
        return True


def _dry_run_http_request(url: str, timeout: float) -> bool:
    print(f"  (dry run) would request {url}")
    return True


def register_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    """Add the unsubscribe subcommand to the main CLI parser."""
    parser = subparsers.add_parser(
        "unsubscribe",
        description="Unsubscribe from every subscription listed in a JSON file.",
        help="Unsubscribe from newsletters listed in a JSON file.",
    )
    parser.add_argument(
        "--subscriptions",
        type=Path,
        required=True,
        help="JSON file containing a list of subscription objects.",
    )
    parser.add_argument(
        "--from-address",
        help="Address unsubscribe emails are sent from; overrides each subscription's newsletter address.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the emails that would be sent instead of sending them.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a JSON configuration file.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.set_defaults(func=unsubscribe_cli, command="unsubscribe")


def load_subscriptions(path: Path) -> list[Subscription]:
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a JSON list")
    return [Subscription.from_dict(item) for item in payload]


def unsubscribe_cli(args: argparse.Namespace) -> int:
    """Execute the unsubscribe command."""
    configure_logging(args.verbose)

    try:
        config = load_config(args.config)
        subscriptions = load_subscriptions(args.subscriptions)
    except (ConfigError, FileNotFoundError, ValueError) as exc:
        print(f"Initialization error: {exc}", file=sys.stderr)
        return 1

    if args.from_address:
        for subscription in subscriptions:
            subscription.newsletter_email = args.from_address

    if args.dry_run:
        sender = _DryRunSender()
        http_sender = _dry_run_http_request
    else:
        sender = SmtpEmailSender.from_config(config)
        http_sender = send_unsubscribe_http_request
    store = InMemorySubscriptionStore(subscriptions)
    summary = unsubscribe_all(
        subscriptions,
        sender=sender,
        store=store,
        http_timeout=config.unsubscribe_timeout,
        http_sender=http_sender,
    )

    for result in summary.results:
        if result.error:
            status = f"failed: {result.error}"
        elif result.method is None:
            status = "marked unsubscribed (no delivery method)"
        else:
            status = f"{result.method} {'delivered' if result.delivered else 'not delivered'}"
        print(f"{result.subscription_id}: {status}")

    print(
        f"\nUnsubscribe complete. Success: {len(summary.succeeded)}, "
        f"Delivered: {len(summary.delivered)}, Failed: {len(summary.failed)}"
    )
    return 1 if summary.failed else 0
