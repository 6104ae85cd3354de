"""Tests for thread reconciliation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from content_ingest.twitter.models import Author, Media, Post, PostBatch
from content_ingest.twitter.reconciler import (
    build_thread,
    deduplicate_posts,
    reconcile_recent,
    reconcile_scraped,
    sort_chronologically,
)

BASE_TIME = datetime(2026, 10, 16, 12, tzinfo=timezone.utc)


def _post(
    post_id: str,
    minutes: int,
    *,
    author_id: str | None = "42",
    media_keys: tuple[str, ...] = (),
    conversation_id: str = "1000",
) -> Post:
    return Post(
        id=post_id,
        author_id=author_id,
        text=f"post {post_id}",
        created_at=BASE_TIME + timedelta(minutes=minutes),
        conversation_id=conversation_id,
        attachment_media_keys=frozenset(media_keys),
    )


AUTHORS = (
    Author(id="42", display_name="Jack", handle="jack"),
    Author(id="7", display_name="Other", handle="other"),
)


class TestDeduplicatePosts:
    def test_keeps_one_instance_per_id(self) -> None:
        posts = deduplicate_posts([_post("1", 0), _post("2", 1), _post("1", 0)])
        assert [post.id for post in posts] == ["1", "2"]

    def test_prefers_denser_metadata(self) -> None:
        sparse = _post("1", 0, author_id=None)
        dense = _post("1", 0, media_keys=("3_1",))
        assert deduplicate_posts([sparse, dense]) == [dense]
        assert deduplicate_posts([dense, sparse]) == [dense]

    def test_equal_density_keeps_first(self) -> None:
        first = _post("1", 0)
        second = Post(
            id="1",
            author_id="42",
            text="edited",
            created_at=first.created_at,
            conversation_id="1000",
        )
        assert deduplicate_posts([first, second])[0] is first


class TestSortChronologically:
    def test_orders_by_created_at(self) -> None:
        posts = sort_chronologically([_post("3", 2), _post("1", 0), _post("2", 1)])
        assert [post.id for post in posts] == ["1", "2", "3"]

    def test_ties_break_on_numeric_id(self) -> None:
        posts = sort_chronologically([_post("100", 0), _post("99", 0), _post("101", 0)])
        assert [post.id for post in posts] == ["99", "100", "101"]


class TestReconcileRecent:
    def test_newest_first_input_becomes_ascending(self) -> None:
        batch = PostBatch(
            posts=(_post("1003", 3), _post("1002", 2), _post("1001", 1)),
            authors=AUTHORS,
            result_count=3,
        )
        thread = reconcile_recent("1000", batch)
        assert [post.id for post in thread] == ["1001", "1002", "1003"]

    def test_zero_results_is_empty_thread(self) -> None:
        thread = reconcile_recent("1000", PostBatch(result_count=0))
        assert thread.is_empty
        assert thread.conversation_id == "1000"

    def test_removes_duplicates(self) -> None:
        batch = PostBatch(
            posts=(_post("1002", 2), _post("1001", 1), _post("1002", 2)),
            result_count=3,
        )
        thread = reconcile_recent("1000", batch)
        ids = [post.id for post in thread]
        assert ids == ["1001", "1002"]
        assert len(ids) == len(set(ids))


class TestReconcileScraped:
    def test_unordered_input_is_sorted(self) -> None:
        batch = PostBatch(
            posts=(_post("1002", 2), _post("1000", 0), _post("1003", 3), _post("1001", 1)),
            result_count=4,
        )
        thread = reconcile_scraped("1000", batch)
        assert [post.id for post in thread] == ["1000", "1001", "1002", "1003"]
        created = [post.created_at for post in thread]
        assert created == sorted(created)

    def test_drops_posts_from_other_conversations(self) -> None:
        batch = PostBatch(posts=(_post("1001", 1), _post("555", 2, conversation_id="500")))
        thread = reconcile_scraped("1000", batch)
        assert [post.id for post in thread] == ["1001"]


class TestCrossReferences:
    def test_attaches_only_referenced_media(self) -> None:
        media = (
            Media(key="3_1", type="photo", url="https://pbs.example/1.jpg"),
            Media(key="3_2", type="video", preview_url="https://pbs.example/2.jpg"),
            Media(key="3_3", type="photo"),
        )
        batch = PostBatch(
            posts=(_post("1001", 1, media_keys=("3_2", "3_1")), _post("1002", 2)),
            authors=AUTHORS,
            media=media,
            result_count=2,
        )
        thread = build_thread("1000", batch, newest_first=False)
        first, second = thread.posts

        assert thread.media_for(first) == (media[0], media[1])
        assert thread.media_for(second) == ()

    def test_authors_indexed_once_per_id(self) -> None:
        batch = PostBatch(
            posts=(_post("1001", 1), _post("1002", 2), _post("1003", 3, author_id="7")),
            authors=AUTHORS + (Author(id="42", display_name="Duplicate", handle="jack"),),
            result_count=3,
        )
        thread = build_thread("1000", batch, newest_first=False)

        assert set(thread.authors) == {"42", "7"}
        assert thread.authors["42"].display_name == "Jack"
        assert thread.author_for(thread.posts[0]) is thread.author_for(thread.posts[1])

    def test_unknown_author_resolves_to_none(self) -> None:
        batch = PostBatch(posts=(_post("1001", 1, author_id="99"),), result_count=1)
        thread = build_thread("1000", batch, newest_first=False)
        assert thread.author_for(thread.posts[0]) is None

    def test_input_posts_are_not_mutated(self) -> None:
        posts = (_post("1002", 2), _post("1001", 1))
        batch = PostBatch(posts=posts, result_count=2)
        reconcile_recent("1000", batch)
        assert batch.posts == posts
