"""Client for the Twitter API v2 endpoints used to rebuild threads."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping

import requests

from .models import PostBatch

logger = logging.getLogger(__name__)

TWEET_FIELDS = (
    "attachments,author_id,conversation_id,created_at,entities,geo,"
    "in_reply_to_user_id,lang,possibly_sensitive,public_metrics,"
    "referenced_tweets,source,withheld"
)
EXPANSIONS = "author_id,attachments.media_keys"
USER_FIELDS = (
    "created_at,description,entities,location,pinned_tweet_id,"
    "profile_image_url,protected,public_metrics,url,verified,withheld"
)
MEDIA_FIELDS = "duration_ms,height,preview_image_url,url,media_key,public_metrics,width"

# The lookup endpoint accepts at most this many ids per request.
MAX_LOOKUP_IDS = 100


class TwitterApiError(RuntimeError):
    """Base error for Twitter API failures."""


class AuthenticationMissingError(TwitterApiError):
    """No bearer token is configured. Not retryable."""


class TransportError(TwitterApiError):
    """The request failed on the network or the API answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def field_params() -> dict[str, str]:
    """Query parameters selecting the post, author and media expansions."""
    return {
        "tweet.fields": TWEET_FIELDS,
        "expansions": EXPANSIONS,
        "user.fields": USER_FIELDS,
        "media.fields": MEDIA_FIELDS,
    }


class TwitterApiClient:
    """Bearer-token client for recent search and post lookup.

    The token is checked on every call rather than at construction so the
    client can be created (and the oEmbed path used) without credentials.
    """

    DEFAULT_API_URL = "https://api.twitter.com/2"
    DEFAULT_TIMEOUT = 10.0
    DEFAULT_MAX_RESULTS = 100

    def __init__(
        self,
        *,
        bearer_token: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        max_results: int | None = None,
        session: requests.Session | None = None,
    ):
        self.bearer_token = bearer_token
        self.api_url = (api_url or self.DEFAULT_API_URL).rstrip("/")
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.max_results = max_results or self.DEFAULT_MAX_RESULTS
        self._session = session

    @classmethod
    def from_config(cls, config: Any) -> "TwitterApiClient":
        return cls(
            bearer_token=config.twitter_bearer_token,
            api_url=config.twitter_api_url,
            timeout=config.request_timeout,
            max_results=config.max_thread_depth,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.bearer_token)

    def search_conversation(self, conversation_id: str) -> PostBatch:
        """Return up to ``max_results`` posts of a conversation, newest first.

        Only conversations inside the recent search window are covered; an
        older conversation yields an empty batch.
        """
        params = {
            "query": f"conversation_id:{conversation_id}",
            **field_params(),
            "max_results": str(self.max_results),
        }
        payload = self._get("/tweets/search/recent", params)
        batch = PostBatch.from_api_payload(payload)
        logger.debug(
            "Recent search for conversation %s returned %d posts",
            conversation_id,
            batch.result_count,
        )
        return batch

    def get_posts(self, ids: Iterable[str]) -> PostBatch:
        """Look up several posts in a single request."""
        unique_ids = list(dict.fromkeys(str(post_id) for post_id in ids))
        if not unique_ids:
            return PostBatch()
        if len(unique_ids) > MAX_LOOKUP_IDS:
            raise ValueError(f"At most {MAX_LOOKUP_IDS} ids can be looked up at once")
        params = {"ids": ",".join(unique_ids), **field_params()}
        payload = self._get("/tweets", params)
        if payload.get("errors"):
            logger.info("Lookup reported %d unavailable posts", len(payload["errors"]))
        return PostBatch.from_api_payload(payload)

    def get_post(self, post_id: str) -> PostBatch:
        """Look up one post; the batch holds at most one post."""
        payload = self._get(f"/tweets/{post_id}", field_params())
        return PostBatch.from_api_payload(payload)

    def _get(self, path: str, params: Mapping[str, str]) -> dict[str, Any]:
        token = self._require_token()
        url = f"{self.api_url}{path}"
        headers = {"Authorization": f"Bearer {token}"}
        getter = self._session.get if self._session is not None else requests.get

        try:
            response = getter(
                url,
                params=dict(params),
                headers=headers,
                timeout=self.timeout,
                allow_redirects=True,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            status_code = None
            if getattr(exc, "response", None) is not None:
                status_code = exc.response.status_code
            raise TransportError(f"Twitter API request to {path} failed: {exc}", status_code) from exc

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise TransportError(f"Invalid JSON from Twitter API {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise TransportError(f"Unexpected Twitter API payload from {path}")
        return data

    def _require_token(self) -> str:
        if not self.bearer_token:
            raise AuthenticationMissingError(
                "Twitter bearer token required. Set TWITTER_BEARER_TOKEN or pass bearer_token."
            )
        return self.bearer_token


__all__ = [
    "AuthenticationMissingError",
    "MAX_LOOKUP_IDS",
    "TransportError",
    "TwitterApiClient",
    "TwitterApiError",
    "field_params",
]
