"""Value types for posts, authors and media returned by the Twitter API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Iterator, Mapping

# Milliseconds between the Unix epoch and the snowflake epoch (2010-11-04).
TWITTER_EPOCH_MS = 1288834974657
# Ids below this value were issued before snowflake ids existed.
_FIRST_SNOWFLAKE_ID = 29700859247


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an API ``created_at`` value into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Unrecognized timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def snowflake_timestamp(post_id: str) -> datetime | None:
    """Return the creation time encoded in a snowflake post id.

    Returns None for ids that are not numeric or predate snowflake ids.
    """
    if not post_id.isdigit():
        return None
    value = int(post_id)
    if value < _FIRST_SNOWFLAKE_ID:
        return None
    millis = (value >> 22) + TWITTER_EPOCH_MS
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class ConversationIdentifier:
    """Author handle and status id extracted from a status URL."""

    handle: str
    status_id: str

    def canonical_url(self, base_url: str = "https://x.com") -> str:
        return f"{base_url.rstrip('/')}/{self.handle}/status/{self.status_id}"


@dataclass(frozen=True)
class ReferencedPost:
    type: str
    id: str


@dataclass(frozen=True)
class UrlEntity:
    url: str
    expanded_url: str | None = None
    display_url: str | None = None


@dataclass(frozen=True)
class Post:
    """A single post as returned by the API. Never mutated after decoding."""

    id: str
    author_id: str | None
    text: str
    created_at: datetime
    conversation_id: str
    referenced_posts: tuple[ReferencedPost, ...] = ()
    attachment_media_keys: frozenset[str] = frozenset()
    urls: tuple[UrlEntity, ...] = ()

    @property
    def metadata_density(self) -> int:
        """Count of cross references this instance carries."""
        return len(self.attachment_media_keys) + (1 if self.author_id else 0)

    @property
    def is_reply(self) -> bool:
        return any(ref.type == "replied_to" for ref in self.referenced_posts)

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any]) -> "Post":
        try:
            post_id = str(payload["id"])
            text = str(payload.get("text", ""))
            created_at = parse_timestamp(payload["created_at"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed post payload: {exc}") from exc

        references = tuple(
            ReferencedPost(type=str(ref.get("type", "")), id=str(ref["id"]))
            for ref in payload.get("referenced_tweets") or ()
            if "id" in ref
        )
        attachments = payload.get("attachments") or {}
        media_keys = frozenset(str(key) for key in attachments.get("media_keys") or ())
        entities = payload.get("entities") or {}
        urls = tuple(
            UrlEntity(
                url=str(entity["url"]),
                expanded_url=entity.get("expanded_url"),
                display_url=entity.get("display_url"),
            )
            for entity in entities.get("urls") or ()
            if "url" in entity
        )
        author_id = payload.get("author_id")
        return cls(
            id=post_id,
            author_id=str(author_id) if author_id is not None else None,
            text=text,
            created_at=created_at,
            conversation_id=str(payload.get("conversation_id") or post_id),
            referenced_posts=references,
            attachment_media_keys=media_keys,
            urls=urls,
        )


@dataclass(frozen=True)
class Author:
    id: str
    display_name: str
    handle: str
    avatar_url: str | None = None

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any]) -> "Author":
        try:
            return cls(
                id=str(payload["id"]),
                display_name=str(payload.get("name") or payload["username"]),
                handle=str(payload["username"]),
                avatar_url=payload.get("profile_image_url"),
            )
        except KeyError as exc:
            raise ValueError(f"Malformed user payload: missing {exc}") from exc


@dataclass(frozen=True)
class Media:
    key: str
    type: str
    preview_url: str | None = None
    url: str | None = None

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any]) -> "Media":
        try:
            return cls(
                key=str(payload["media_key"]),
                type=str(payload.get("type", "unknown")),
                preview_url=payload.get("preview_image_url"),
                url=payload.get("url"),
            )
        except KeyError as exc:
            raise ValueError(f"Malformed media payload: missing {exc}") from exc


@dataclass(frozen=True)
class PostBatch:
    """One decoded API response: posts plus the expansions that came with them."""

    posts: tuple[Post, ...] = ()
    authors: tuple[Author, ...] = ()
    media: tuple[Media, ...] = ()
    result_count: int = 0

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any]) -> "PostBatch":
        data = payload.get("data") or []
        if isinstance(data, Mapping):
            data = [data]
        includes = payload.get("includes") or {}
        posts = tuple(Post.from_api_payload(item) for item in data)
        authors = tuple(Author.from_api_payload(item) for item in includes.get("users") or ())
        media = tuple(Media.from_api_payload(item) for item in includes.get("media") or ())
        meta = payload.get("meta") or {}
        result_count = int(meta.get("result_count", len(posts)))
        return cls(posts=posts, authors=authors, media=media, result_count=result_count)

    def first(self) -> Post | None:
        return self.posts[0] if self.posts else None

    def author(self, author_id: str | None) -> Author | None:
        for author in self.authors:
            if author.id == author_id:
                return author
        return None


@dataclass(frozen=True)
class Thread:
    """Posts of one conversation in ascending chronological order.

    Authors are stored once per id and media once per post; posts refer to
    them by id instead of embedding copies.
    """

    conversation_id: str
    posts: tuple[Post, ...] = ()
    authors: Mapping[str, Author] = field(default_factory=lambda: MappingProxyType({}))
    media: Mapping[str, tuple[Media, ...]] = field(default_factory=lambda: MappingProxyType({}))

    def __len__(self) -> int:
        return len(self.posts)

    def __iter__(self) -> Iterator[Post]:
        return iter(self.posts)

    @property
    def is_empty(self) -> bool:
        return not self.posts

    def author_for(self, post: Post) -> Author | None:
        if post.author_id is None:
            return None
        return self.authors.get(post.author_id)

    def media_for(self, post: Post) -> tuple[Media, ...]:
        return self.media.get(post.id, ())

    def without(self, post_id: str) -> "Thread":
        """Return a copy that omits ``post_id``."""
        posts = tuple(post for post in self.posts if post.id != post_id)
        media = {key: value for key, value in self.media.items() if key != post_id}
        return Thread(
            conversation_id=self.conversation_id,
            posts=posts,
            authors=self.authors,
            media=MappingProxyType(media),
        )


__all__ = [
    "Author",
    "ConversationIdentifier",
    "Media",
    "Post",
    "PostBatch",
    "ReferencedPost",
    "TWITTER_EPOCH_MS",
    "Thread",
    "UrlEntity",
    "parse_timestamp",
    "snowflake_timestamp",
]
