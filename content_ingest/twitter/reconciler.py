"""Turn raw API batches into ordered, deduplicated threads."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable

from .models import Author, Media, Post, PostBatch, Thread


def _id_sort_key(post_id: str) -> tuple[int, int, str]:
    if post_id.isdigit():
        return (0, int(post_id), "")
    return (1, 0, post_id)


def deduplicate_posts(posts: Iterable[Post]) -> list[Post]:
    """Keep one post per id.

    The instance with more cross references wins; on a tie the earlier one
    is kept, so callers list the preferred source first.
    """
    chosen: dict[str, Post] = {}
    for post in posts:
        current = chosen.get(post.id)
        if current is None or post.metadata_density > current.metadata_density:
            chosen[post.id] = post
    return list(chosen.values())


def sort_chronologically(posts: Iterable[Post]) -> list[Post]:
    """Oldest first; equal timestamps fall back to the id."""
    return sorted(posts, key=lambda post: (post.created_at, _id_sort_key(post.id)))


def build_thread(conversation_id: str, batch: PostBatch, *, newest_first: bool) -> Thread:
    posts = list(batch.posts)
    if newest_first:
        posts.reverse()
    posts = [post for post in posts if post.conversation_id == conversation_id]
    ordered = sort_chronologically(deduplicate_posts(posts))

    authors_by_id: dict[str, Author] = {}
    for author in batch.authors:
        authors_by_id.setdefault(author.id, author)
    authors = {
        post.author_id: authors_by_id[post.author_id]
        for post in ordered
        if post.author_id is not None and post.author_id in authors_by_id
    }

    media_by_key: dict[str, Media] = {}
    for item in batch.media:
        media_by_key.setdefault(item.key, item)
    media: dict[str, tuple[Media, ...]] = {}
    for post in ordered:
        attached = tuple(
            media_by_key[key] for key in sorted(post.attachment_media_keys) if key in media_by_key
        )
        if attached:
            media[post.id] = attached

    return Thread(
        conversation_id=conversation_id,
        posts=tuple(ordered),
        authors=MappingProxyType(authors),
        media=MappingProxyType(media),
    )


def reconcile_recent(conversation_id: str, batch: PostBatch) -> Thread:
    """Thread from a newest-first recent search response."""
    if batch.result_count == 0:
        return Thread(conversation_id=conversation_id)
    return build_thread(conversation_id, batch, newest_first=True)


def reconcile_scraped(conversation_id: str, batch: PostBatch) -> Thread:
    """Thread from a bulk lookup of scraped ids, whose order carries no meaning."""
    return build_thread(conversation_id, batch, newest_first=False)


__all__ = [
    "build_thread",
    "deduplicate_posts",
    "reconcile_recent",
    "reconcile_scraped",
    "sort_chronologically",
]
