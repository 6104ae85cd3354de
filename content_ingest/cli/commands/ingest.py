"""CLI commands for turning URLs into documents and inspecting threads.

Commands:
- ingest: Run the matching content handler and emit the HTML document
- thread: Rebuild and print the author's thread for a status URL
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path

from content_ingest.config import ConfigError, load_config
from content_ingest.handlers import HandlerError, TwitterHandler, registry
from content_ingest.twitter.api import TwitterApiClient, TwitterApiError
from content_ingest.twitter.formatting import format_timestamp
from content_ingest.twitter.oembed import EmbedError
from content_ingest.twitter.scraper import SharedBrowser, ThreadScraper
from content_ingest.twitter.thread import ThreadLookupError, ThreadReconstructor
from content_ingest.twitter.urls import parse_status_url


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def register_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    """Add ingestion subcommands to the main CLI parser."""
    ingest_parser = subparsers.add_parser(
        "ingest",
        description="Convert a URL into a normalized HTML document.",
        help="Convert a URL into a normalized HTML document.",
    )
    ingest_parser.add_argument("url", help="URL to ingest.")
    ingest_parser.add_argument(
        "--output",
        type=Path,
        help="Write the document to this file instead of stdout.",
    )
    ingest_parser.add_argument(
        "--no-thread",
        action="store_true",
        help="Skip thread reconstruction and emit the embed only.",
    )
    _add_common_args(ingest_parser)
    ingest_parser.set_defaults(func=ingest_cli, command="ingest")

    thread_parser = subparsers.add_parser(
        "thread",
        description="Rebuild the author's thread around a status URL.",
        help="Rebuild the author's thread around a status URL.",
    )
    thread_parser.add_argument("url", help="Status URL.")
    thread_parser.add_argument(
        "--json",
        action="store_true",
        dest="output_json",
        help="Output the thread as JSON.",
    )
    _add_common_args(thread_parser)
    thread_parser.set_defaults(func=thread_cli, command="thread")


def _add_common_args(parser: argparse.ArgumentParser) -> None:
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


def ingest_cli(args: argparse.Namespace) -> int:
    """Execute the ingest command."""
    configure_logging(args.verbose)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    handler = TwitterHandler(config=config, enrich_thread=not args.no_thread)
    registry.register_handler(handler, priority=10, replace=True)
    try:
        result = registry.pre_handle(args.url)
    except (HandlerError, EmbedError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        handler.close()

    print(result.title)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(result.content, encoding="utf-8")
        print(f"Wrote {args.output}")
    else:
        print(result.content)
    return 0


def thread_cli(args: argparse.Namespace) -> int:
    """Execute the thread command."""
    configure_logging(args.verbose)

    identifier = parse_status_url(args.url)
    if identifier is None:
        print(f"Error: '{args.url}' is not a status URL", file=sys.stderr)
        return 1

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    api = TwitterApiClient.from_config(config)
    with SharedBrowser(headless=config.headless) as browser:
        scraper = ThreadScraper(
            browser,
            status_base_url=config.status_base_url,
            navigation_timeout_ms=config.navigation_timeout_ms,
            settle_delay_ms=config.settle_delay_ms,
            user_agent=config.user_agent,
        )
        reconstructor = ThreadReconstructor(
            api,
            scraper,
            recency_window=timedelta(days=config.recency_window_days),
        )
        try:
            thread = reconstructor.reconstruct(identifier)
        except (TwitterApiError, ThreadLookupError, ValueError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    if args.output_json:
        payload = {
            "conversation_id": thread.conversation_id,
            "posts": [
                {
                    "id": post.id,
                    "author": thread.author_for(post).handle if thread.author_for(post) else None,
                    "created_at": post.created_at.isoformat(),
                    "text": post.text,
                    "media": [media.url or media.preview_url for media in thread.media_for(post)],
                }
                for post in thread
            ],
        }
        print(json.dumps(payload, indent=2))
        return 0

    if thread.is_empty:
        print(f"No posts found for conversation {thread.conversation_id}.")
        return 0

    for post in thread:
        author = thread.author_for(post)
        handle = f"@{author.handle}" if author else "unknown"
        print(f"[{format_timestamp(post.created_at)}] {handle}: {post.text}")
    return 0
