"""Content handler for status pages on X (formerly Twitter)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from html import escape

from content_ingest.config import IngestConfig, get_config
from content_ingest.twitter.api import TwitterApiClient
from content_ingest.twitter.formatting import format_timestamp, title_for_post
from content_ingest.twitter.models import Thread
from content_ingest.twitter.oembed import EmbedContent, EmbedPost, fetch_embed, parse_embed_html
from content_ingest.twitter.scraper import SharedBrowser, ThreadScraper
from content_ingest.twitter.thread import ThreadReconstructor
from content_ingest.twitter.urls import is_status_url, parse_status_url

from .base import PreHandleResult
from .registry import registry

logger = logging.getLogger(__name__)

SITE_NAME = "X (formerly Twitter)"


@dataclass(slots=True)
class TwitterHandler:
    """Builds a document from the oEmbed markup of a status.

    The rest of the conversation is appended when the API is configured.
    That part is best-effort: if it fails the embed alone is returned.
    """

    name: str = "Twitter"
    config: IngestConfig | None = None
    api: TwitterApiClient | None = None
    reconstructor: ThreadReconstructor | None = None
    browser: SharedBrowser | None = None
    enrich_thread: bool = True

    def should_pre_handle(self, url: str) -> bool:
        return is_status_url(url)

    def pre_handle(self, url: str) -> PreHandleResult:
        """Build the document for a status URL.

        Args:
            url: Status URL previously accepted by ``should_pre_handle``.

        Returns:
            The original URL, the synthesized title, and the HTML document.

        Raises:
            EmbedError: If the oEmbed payload cannot be fetched or is unusable.
                Thread enrichment failures never raise.
        """
        config = self._config()
        embed = fetch_embed(url, endpoint=config.oembed_url, timeout=config.request_timeout)
        content = parse_embed_html(embed.html)
        title = title_for_post(embed.author_name, content.text)

        thread = self._thread_for(url) if self.enrich_thread else None
        document = build_document(embed, content, thread)
        return PreHandleResult(url=url, title=title, content=document)

    def close(self) -> None:
        """Release the shared browser if one was started."""
        if self.browser is not None:
            self.browser.close()

    def _thread_for(self, url: str) -> Thread | None:
        identifier = parse_status_url(url)
        if identifier is None:
            return None
        if not self._api().has_credentials:
            logger.info("Skipping thread for %s: no Twitter bearer token configured", url)
            return None
        try:
            thread = self._reconstructor().reconstruct(identifier)
        except Exception as exc:
            logger.warning("Failed to rebuild thread for %s: %s", url, exc)
            return None
        return thread.without(identifier.status_id)

    def _config(self) -> IngestConfig:
        if self.config is None:
            self.config = get_config()
        return self.config

    def _api(self) -> TwitterApiClient:
        if self.api is None:
            self.api = TwitterApiClient.from_config(self._config())
        return self.api

    def _reconstructor(self) -> ThreadReconstructor:
        if self.reconstructor is None:
            config = self._config()
            if self.browser is None:
                self.browser = SharedBrowser(headless=config.headless)
            scraper = ThreadScraper(
                self.browser,
                status_base_url=config.status_base_url,
                navigation_timeout_ms=config.navigation_timeout_ms,
                settle_delay_ms=config.settle_delay_ms,
                user_agent=config.user_agent,
            )
            self.reconstructor = ThreadReconstructor(
                self._api(),
                scraper,
                recency_window=timedelta(days=config.recency_window_days),
            )
        return self.reconstructor


def build_document(embed: EmbedPost, content: EmbedContent, thread: Thread | None = None) -> str:
    """Assemble the HTML handed to the storage pipeline."""
    thread_html = render_thread(thread) if thread is not None and not thread.is_empty else ""
    return f"""
      <html>
          <head>
            <meta property="og:site_name" content="{escape(SITE_NAME)}" />
            <meta property="og:type" content="tweet" />
            <meta property="dc:creator" content="{escape(embed.author_name)}" />
            <meta property="twitter:description" content="{escape(content.text)}" />
            <meta property="article:published_time" content="{escape(content.published)}" />
          </head>
          <body>
            <div>
              {embed.html}
            </div>{thread_html}
          </body>
      </html>"""


def render_thread(thread: Thread) -> str:
    parts = [f'\n            <section class="thread" data-conversation-id="{escape(thread.conversation_id)}">']
    for post in thread:
        author = thread.author_for(post)
        parts.append(f'              <article class="thread-post" data-post-id="{escape(post.id)}">')
        if author is not None:
            avatar = ""
            if author.avatar_url:
                avatar = f'<img class="avatar" src="{escape(author.avatar_url)}" alt="" /> '
            parts.append(
                f"                <header>{avatar}<strong>{escape(author.display_name)}</strong> "
                f"<span>@{escape(author.handle)}</span></header>"
            )
        parts.append(f"                <p>{escape(post.text)}</p>")
        for media in thread.media_for(post):
            source = media.url or media.preview_url
            if source:
                parts.append(
                    f'                <img class="media" data-media-type="{escape(media.type)}" src="{escape(source)}" />'
                )
        stamp = format_timestamp(post.created_at)
        parts.append(
            f'                <time datetime="{post.created_at.isoformat()}">{escape(stamp)}</time>'
        )
        parts.append("              </article>")
    parts.append("            </section>")
    return "\n".join(parts)


twitter_handler = TwitterHandler()
registry.register_handler(twitter_handler, priority=10, replace=True)

__all__ = ["SITE_NAME", "TwitterHandler", "build_document", "render_thread", "twitter_handler"]
