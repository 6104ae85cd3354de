"""Fetch and parse the public oEmbed representation of a status."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DEFAULT_OEMBED_URL = "https://publish.twitter.com/oembed"


class EmbedError(RuntimeError):
    """Raised when the oEmbed payload cannot be fetched or is unusable."""


@dataclass(frozen=True)
class EmbedPost:
    """oEmbed response fields used to build a document."""

    html: str
    author_name: str
    author_url: str | None = None
    url: str | None = None
    provider_name: str | None = None

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any]) -> "EmbedPost":
        html = payload.get("html")
        author_name = payload.get("author_name")
        if not isinstance(html, str) or not isinstance(author_name, str):
            raise EmbedError("oEmbed payload is missing html or author_name")
        return cls(
            html=html,
            author_name=author_name,
            author_url=payload.get("author_url"),
            url=payload.get("url"),
            provider_name=payload.get("provider_name"),
        )


@dataclass(frozen=True)
class EmbedContent:
    """Text pulled out of the embed markup."""

    text: str
    published: str


def fetch_embed(
    url: str,
    *,
    endpoint: str = DEFAULT_OEMBED_URL,
    timeout: float = 10.0,
) -> EmbedPost:
    """Request the oEmbed document for ``url``. No credentials are needed."""
    logger.info("Fetching oEmbed for %s", url)
    try:
        response = requests.get(endpoint, params={"url": url}, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise EmbedError(f"oEmbed request for '{url}' failed: {exc}") from exc

    try:
        payload = response.json()
    except (json.JSONDecodeError, ValueError) as exc:
        raise EmbedError(f"Invalid oEmbed JSON for '{url}': {exc}") from exc
    if not isinstance(payload, dict):
        raise EmbedError(f"Unexpected oEmbed payload for '{url}'")
    return EmbedPost.from_api_payload(payload)


def parse_embed_html(html: str) -> EmbedContent:
    """Extract the body text and the published-time link text from embed markup."""
    soup = BeautifulSoup(html, "html.parser")
    paragraph = soup.find("p")
    text = paragraph.get_text() if paragraph is not None else ""
    published_link = soup.select_one('a[href*="/status/"]')
    published = published_link.get_text() if published_link is not None else ""
    return EmbedContent(text=text, published=published)


__all__ = ["DEFAULT_OEMBED_URL", "EmbedContent", "EmbedError", "EmbedPost", "fetch_embed", "parse_embed_html"]
