"""Browser-based discovery of an author's replies in an old conversation.

The recent search endpoint cannot see conversations older than its window,
so this module loads the live thread page in a headless browser and reads
the status links attached to each rendered timestamp. Only ids are
returned; a bulk lookup has to resolve them into posts.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterable, Iterator

from .urls import parse_status_href

if TYPE_CHECKING:
    from playwright.sync_api import Browser, BrowserContext, Playwright

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT = 60000
DEFAULT_SETTLE_DELAY = 2000

# A tall viewport rendered at a small scale keeps more replies on screen.
DEVICE_SCALE_FACTOR = 0.2
VIEWPORT = {"width": int(1700 / DEVICE_SCALE_FACTOR), "height": int(2000 / DEVICE_SCALE_FACTOR)}

EXPAND_REPLIES_SCRIPT = """
() => {
    const button = Array.from(document.querySelectorAll('div[dir]'))
        .filter((node) => node.children[0] && node.children[0].tagName === 'SPAN')
        .find((node) => node.children[0].innerHTML === 'Show replies');
    if (!button) {
        return false;
    }
    button.click();
    return true;
}
"""

TIMESTAMP_LINKS_SCRIPT = """
() => {
    const hrefs = [];
    for (const timeNode of document.querySelectorAll('time')) {
        const container = timeNode.parentElement;
        if (!container || container.tagName === 'SPAN') {
            continue;
        }
        const href = container.getAttribute('href');
        if (href) {
            hrefs.push(href);
        }
    }
    return hrefs;
}
"""


class ScraperError(RuntimeError):
    """Raised when the browser cannot be started."""


def extract_author_status_ids(hrefs: Iterable[str], author_handle: str) -> list[str]:
    """Keep status ids whose link belongs to ``author_handle``.

    Handles compare case-insensitively. Ids keep page order and appear once.
    """
    expected = author_handle.lstrip("@").casefold()
    ids: list[str] = []
    seen: set[str] = set()
    for href in hrefs:
        identifier = parse_status_href(href)
        if identifier is None:
            continue
        if identifier.handle.casefold() != expected:
            continue
        if identifier.status_id in seen:
            continue
        seen.add(identifier.status_id)
        ids.append(identifier.status_id)
    return ids


@contextmanager
def isolated_session(
    browser: "Browser",
    *,
    user_agent: str | None = None,
    viewport: dict[str, int] | None = None,
    device_scale_factor: float = DEVICE_SCALE_FACTOR,
) -> Iterator["BrowserContext"]:
    """Open a fresh browser context and close it however the block exits."""
    context_options: dict[str, Any] = {
        "viewport": viewport or VIEWPORT,
        "device_scale_factor": device_scale_factor,
        "java_script_enabled": True,
    }
    if user_agent:
        context_options["user_agent"] = user_agent

    context = browser.new_context(**context_options)
    try:
        yield context
    finally:
        try:
            context.close()
        except Exception as exc:
            logger.warning("Failed to close browser context: %s", exc)


class SharedBrowser:
    """Long-lived headless browser reused across lookups.

    The browser starts on first use. Call :meth:`close` (or use the object as
    a context manager) to release it.
    """

    def __init__(self, *, headless: bool = True, launch_args: list[str] | None = None):
        self.headless = headless
        self.launch_args = launch_args if launch_args is not None else [
            "--disable-blink-features=AutomationControlled",
            "--disable-dev-shm-usage",
            "--no-sandbox",
        ]
        self._playwright: "Playwright | None" = None
        self._browser: "Browser | None" = None

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    def get(self) -> "Browser":
        if self._browser is not None:
            return self._browser
        try:
            from playwright.sync_api import sync_playwright
        except ImportError as e:
            raise ScraperError(
                "Playwright is not installed. Install with: pip install playwright && playwright install chromium"
            ) from e

        logger.info("Launching headless browser")
        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(
                headless=self.headless,
                args=self.launch_args or None,
            )
        except Exception as exc:
            self._playwright.stop()
            self._playwright = None
            raise ScraperError(f"Failed to launch browser: {exc}") from exc
        return self._browser

    def close(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        try:
            if browser is not None:
                browser.close()
        finally:
            if playwright is not None:
                playwright.stop()

    def __enter__(self) -> "SharedBrowser":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ThreadScraper:
    """Collects the ids of an author's own replies from a live thread page."""

    def __init__(
        self,
        browser: SharedBrowser | "Browser",
        *,
        status_base_url: str = "https://x.com",
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY,
        user_agent: str | None = None,
    ):
        self.browser = browser
        self.status_base_url = status_base_url.rstrip("/")
        self.navigation_timeout_ms = navigation_timeout_ms
        self.settle_delay_ms = settle_delay_ms
        self.user_agent = user_agent

    def thread_url(self, conversation_id: str, author_handle: str) -> str:
        return f"{self.status_base_url}/{author_handle}/status/{conversation_id}"

    def scrape_author_reply_ids(self, conversation_id: str, author_handle: str) -> list[str]:
        """Return status ids by ``author_handle`` shown on the thread page.

        Args:
            conversation_id: Id of the conversation's first post.
            author_handle: Handle the conversation was started by. Links by
                other handles are ignored.

        Returns:
            Ids in page order, which is not guaranteed to be chronological.
            Any failure is logged and yields an empty list.
        """
        url = self.thread_url(conversation_id, author_handle)
        try:
            browser = self._resolve_browser()
            with isolated_session(browser, user_agent=self.user_agent) as context:
                page = context.new_page()
                page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout_ms)

                if page.evaluate(EXPAND_REPLIES_SCRIPT):
                    page.wait_for_timeout(self.settle_delay_ms)

                hrefs = page.evaluate(TIMESTAMP_LINKS_SCRIPT) or []
        except Exception as exc:
            logger.warning("Error scraping thread %s: %s", url, exc)
            return []

        ids = extract_author_status_ids(hrefs, author_handle)
        logger.info("Found %d posts by %s on %s", len(ids), author_handle, url)
        return ids

    def _resolve_browser(self) -> "Browser":
        if isinstance(self.browser, SharedBrowser):
            return self.browser.get()
        return self.browser


__all__ = [
    "EXPAND_REPLIES_SCRIPT",
    "ScraperError",
    "SharedBrowser",
    "TIMESTAMP_LINKS_SCRIPT",
    "ThreadScraper",
    "extract_author_status_ids",
    "isolated_session",
]
