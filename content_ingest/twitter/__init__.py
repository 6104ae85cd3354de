"""Thread reconstruction for posts on X (formerly Twitter)."""

from __future__ import annotations

from .api import AuthenticationMissingError, TransportError, TwitterApiClient, TwitterApiError
from .models import (
    Author,
    ConversationIdentifier,
    Media,
    Post,
    PostBatch,
    ReferencedPost,
    Thread,
)
from .oembed import EmbedError, EmbedPost, fetch_embed, parse_embed_html
from .scraper import SharedBrowser, ThreadScraper
from .thread import ThreadReconstructor, ThreadStrategy
from .urls import is_status_url, parse_status_url

__all__ = [
    "Author",
    "AuthenticationMissingError",
    "ConversationIdentifier",
    "EmbedError",
    "EmbedPost",
    "Media",
    "Post",
    "PostBatch",
    "ReferencedPost",
    "SharedBrowser",
    "Thread",
    "ThreadReconstructor",
    "ThreadScraper",
    "ThreadStrategy",
    "TransportError",
    "TwitterApiClient",
    "TwitterApiError",
    "fetch_embed",
    "is_status_url",
    "parse_embed_html",
    "parse_status_url",
]
