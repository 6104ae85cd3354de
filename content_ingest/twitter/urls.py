"""Recognition of status URLs and scraped status links.

Examples:
    >>> is_status_url("https://x.com/jack/status/20")
    True
    >>> parse_status_url("https://twitter.com/#!/jack/statuses/20/photo/1")
    ConversationIdentifier(handle='jack', status_id='20')
    >>> is_status_url("https://dropbox.com/jack/status/20")
    False
"""

from __future__ import annotations

import re

from .models import ConversationIdentifier

TWITTER_URL_MATCH = re.compile(
    r"(?<![\w-])(?:twitter|x)\.com/(?:#!/)?(?P<handle>\w+)/status(?:es)?/(?P<status_id>\d+)(?:/.*)?"
)

# Relative or absolute href of a status link as rendered on a thread page.
STATUS_HREF_MATCH = re.compile(r"/(?P<handle>[^/]+)/status/(?P<status_id>\d+)")


def is_status_url(url: str) -> bool:
    """Return True when ``url`` points at a single status page."""
    return TWITTER_URL_MATCH.search(str(url)) is not None


def parse_status_url(url: str) -> ConversationIdentifier | None:
    """Extract the handle and status id from ``url``, or None when it does not match."""
    match = TWITTER_URL_MATCH.search(str(url))
    if match is None:
        return None
    return ConversationIdentifier(handle=match.group("handle"), status_id=match.group("status_id"))


def parse_status_href(href: str) -> ConversationIdentifier | None:
    """Parse a status link found in page markup such as ``/jack/status/20``."""
    match = STATUS_HREF_MATCH.search(href)
    if match is None:
        return None
    return ConversationIdentifier(handle=match.group("handle"), status_id=match.group("status_id"))


__all__ = [
    "STATUS_HREF_MATCH",
    "TWITTER_URL_MATCH",
    "is_status_url",
    "parse_status_href",
    "parse_status_url",
]
