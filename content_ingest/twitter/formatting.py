"""Text helpers for titles and human readable timestamps."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from .models import parse_timestamp

_URL_PATTERN = re.compile(r"http\S+")

PLATFORM_NAME = "X"


def title_for_post(author: str, text: str, platform: str = PLATFORM_NAME) -> str:
    """Build ``"{author} on {platform}: {text}"``.

    Only the first URL in ``text`` is removed; later URLs are kept as-is.
    """
    body = _URL_PATTERN.sub("", text, count=1)
    return f"{author} on {platform}: {body}"


def format_timestamp(value: str | datetime, tz: timezone = timezone.utc) -> str:
    """Render a timestamp as e.g. ``"October 18, 2026 at 3:04 PM UTC"``."""
    moment = parse_timestamp(value).astimezone(tz)
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    zone = moment.tzname() or "UTC"
    return (
        f"{moment.strftime('%B')} {moment.day}, {moment.year} "
        f"at {hour}:{moment.minute:02d} {meridiem} {zone}"
    )


__all__ = ["PLATFORM_NAME", "format_timestamp", "title_for_post"]
