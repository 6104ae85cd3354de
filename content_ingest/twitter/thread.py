"""Pick a fetch strategy for a conversation and rebuild its thread."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from types import MappingProxyType
from typing import Callable

from .api import MAX_LOOKUP_IDS, TwitterApiClient
from .models import ConversationIdentifier, Post, Thread, snowflake_timestamp
from .reconciler import reconcile_recent, reconcile_scraped
from .scraper import ThreadScraper

logger = logging.getLogger(__name__)

RECENCY_WINDOW = timedelta(days=7)


class ThreadStrategy(str, Enum):
    RECENT = "recent"
    SCRAPE = "scrape"


class ThreadLookupError(LookupError):
    """The status a thread should be rebuilt around could not be found."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ThreadReconstructor:
    """Rebuilds the conversation around a status.

    Conversations younger than ``recency_window`` come from the recent search
    endpoint. Older ones are scraped from the live page and resolved with a
    bulk lookup. Exactly one of the two is used per lookup.

    The recent path returns every post of the conversation unless
    ``author_only`` is set. The scrape path only ever sees the author's posts.
    """

    def __init__(
        self,
        api: TwitterApiClient,
        scraper: ThreadScraper,
        *,
        recency_window: timedelta = RECENCY_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
        author_only: bool = False,
    ):
        self.api = api
        self.scraper = scraper
        self.recency_window = recency_window
        self.clock = clock
        self.author_only = author_only

    def strategy_for(self, started_at: datetime) -> ThreadStrategy:
        if self.clock() - started_at <= self.recency_window:
            return ThreadStrategy.RECENT
        return ThreadStrategy.SCRAPE

    def conversation_started_at(self, root: Post) -> datetime:
        if root.conversation_id == root.id:
            return root.created_at
        started_at = snowflake_timestamp(root.conversation_id)
        if started_at is not None:
            return started_at
        first = self.api.get_post(root.conversation_id).first()
        return first.created_at if first is not None else root.created_at

    def reconstruct(self, identifier: ConversationIdentifier) -> Thread:
        """Rebuild the conversation that contains ``identifier``.

        Args:
            identifier: Handle and status id parsed from a status URL.

        Returns:
            The conversation's posts in ascending chronological order. An
            empty thread when the chosen source found nothing.

        Raises:
            ThreadLookupError: If the status itself is not returned by the API.
            TwitterApiError: If an API request fails or no token is configured.
        """
        lookup = self.api.get_post(identifier.status_id)
        root = lookup.first()
        if root is None:
            raise ThreadLookupError(f"Status {identifier.status_id} was not returned by the API")

        conversation_id = root.conversation_id
        strategy = self.strategy_for(self.conversation_started_at(root))
        logger.info("Rebuilding conversation %s with %s strategy", conversation_id, strategy.value)

        if strategy is ThreadStrategy.RECENT:
            thread = reconcile_recent(conversation_id, self.api.search_conversation(conversation_id))
            if self.author_only and root.author_id is not None:
                thread = _only_author(thread, root.author_id)
            return thread

        handle = identifier.handle
        author = lookup.author(root.author_id)
        if author is not None:
            handle = author.handle
        ids = self.scraper.scrape_author_reply_ids(conversation_id, handle)
        if not ids:
            return Thread(conversation_id=conversation_id)
        if len(ids) > MAX_LOOKUP_IDS:
            logger.warning(
                "Conversation %s lists %d posts by %s; looking up the first %d",
                conversation_id,
                len(ids),
                handle,
                MAX_LOOKUP_IDS,
            )
            ids = ids[:MAX_LOOKUP_IDS]
        return reconcile_scraped(conversation_id, self.api.get_posts(ids))


def _only_author(thread: Thread, author_id: str) -> Thread:
    posts = tuple(post for post in thread.posts if post.author_id == author_id)
    authors = {key: value for key, value in thread.authors.items() if key == author_id}
    media = {key: value for key, value in thread.media.items() if any(p.id == key for p in posts)}
    return replace(
        thread,
        posts=posts,
        authors=MappingProxyType(authors),
        media=MappingProxyType(media),
    )


__all__ = ["RECENCY_WINDOW", "ThreadLookupError", "ThreadReconstructor", "ThreadStrategy"]
