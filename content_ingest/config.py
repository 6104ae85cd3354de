"""Runtime configuration for the ingestion handlers."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/134.0.0.0 Safari/537.36"
)

# Field name -> environment variable consulted by load_config().
_ENV_OVERRIDES: dict[str, str] = {
    "twitter_bearer_token": "TWITTER_BEARER_TOKEN",
    "twitter_api_url": "TWITTER_API_URL",
    "oembed_url": "TWITTER_OEMBED_URL",
    "status_base_url": "TWITTER_STATUS_BASE_URL",
    "request_timeout": "INGEST_REQUEST_TIMEOUT",
    "recency_window_days": "TWITTER_RECENCY_WINDOW_DAYS",
    "max_thread_depth": "TWITTER_MAX_THREAD_DEPTH",
    "navigation_timeout_ms": "SCRAPER_NAVIGATION_TIMEOUT_MS",
    "settle_delay_ms": "SCRAPER_SETTLE_DELAY_MS",
    "headless": "SCRAPER_HEADLESS",
    "user_agent": "SCRAPER_USER_AGENT",
    "unsubscribe_timeout": "UNSUBSCRIBE_HTTP_TIMEOUT",
    "smtp_host": "SMTP_HOST",
    "smtp_port": "SMTP_PORT",
    "smtp_username": "SMTP_USERNAME",
    "smtp_password": "SMTP_PASSWORD",
    "smtp_use_tls": "SMTP_USE_TLS",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised when configuration values are missing or malformed."""


@dataclass(frozen=True)
class IngestConfig:
    """Settings shared by the content handlers and the unsubscribe helpers.

    Attributes:
        twitter_bearer_token: Credential for the Twitter API v2. Optional at
            load time; the API client refuses to make calls without it.
        twitter_api_url: Base URL of the Twitter API v2.
        oembed_url: Endpoint of the public oEmbed service.
        status_base_url: Site used to build canonical status page URLs for
            the browser scraper.
        request_timeout: Seconds allowed for each API or oEmbed request.
        recency_window_days: Age limit of conversations the recent search
            endpoint can still return.
        max_thread_depth: Page size of a recent search (10..100).
        navigation_timeout_ms: Browser navigation timeout.
        settle_delay_ms: Pause after expanding hidden replies.
        headless: Whether the scraping browser runs headless.
        user_agent: User agent presented by the scraping browser.
        unsubscribe_timeout: Seconds allowed for URL based unsubscribe.
    """

    twitter_bearer_token: str | None = None
    twitter_api_url: str = "https://api.twitter.com/2"
    oembed_url: str = "https://publish.twitter.com/oembed"
    status_base_url: str = "https://x.com"
    request_timeout: float = 10.0
    recency_window_days: int = 7
    max_thread_depth: int = 100
    navigation_timeout_ms: int = 60000
    settle_delay_ms: int = 2000
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    unsubscribe_timeout: float = 5.0
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = False

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")
        if self.unsubscribe_timeout <= 0:
            raise ConfigError("unsubscribe_timeout must be positive")
        if self.recency_window_days <= 0:
            raise ConfigError("recency_window_days must be positive")
        if not 10 <= self.max_thread_depth <= 100:
            raise ConfigError("max_thread_depth must be between 10 and 100")
        if self.navigation_timeout_ms <= 0:
            raise ConfigError("navigation_timeout_ms must be positive")
        if self.settle_delay_ms < 0:
            raise ConfigError("settle_delay_ms must not be negative")

    def with_overrides(self, **changes: Any) -> "IngestConfig":
        """Return a copy with ``changes`` applied and validated."""
        return replace(self, **changes)


def load_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> IngestConfig:
    """Build an :class:`IngestConfig` from an optional JSON file and the environment.

    Values from ``path`` are applied first, environment variables win over
    file values. Unknown keys in the file are ignored.
    """
    env = os.environ if environ is None else environ
    raw: dict[str, Any] = {}

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Configuration file '{config_path}' does not exist")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in '{config_path}': {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file '{config_path}' must contain an object")
        raw.update(data)

    for name, variable in _ENV_OVERRIDES.items():
        value = env.get(variable)
        if value not in (None, ""):
            raw[name] = value

    known = {field.name: field for field in fields(IngestConfig)}
    values: dict[str, Any] = {}
    for name, value in raw.items():
        field = known.get(name)
        if field is None:
            continue
        values[name] = _coerce(name, value, field.default)

    return IngestConfig(**values)


@lru_cache(maxsize=1)
def get_config() -> IngestConfig:
    """Get the process-wide configuration loaded from the environment."""
    return load_config()


def _coerce(name: str, value: Any, default: Any) -> Any:
    if value is None:
        return None
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigError(f"{name} must be a boolean, got {value!r}")
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if isinstance(default, float):
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{name} must be a number, got {value!r}") from exc
    return str(value)


__all__ = ["ConfigError", "DEFAULT_USER_AGENT", "IngestConfig", "get_config", "load_config"]
