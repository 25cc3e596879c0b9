"""The browsing context steps are executed against.

The engine only needs a handful of capabilities from the page under test,
captured by :class:`EmbeddedFrame`.  :class:`PlaywrightFrame` provides them on
top of a Playwright page; tests provide in-memory doubles.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol, Sequence
from urllib.parse import urlsplit

from playwright.async_api import ElementHandle, Page

log = logging.getLogger(__name__)

LOCATION_PROPERTIES = ("pathname", "href")

STORAGE_KEYS_SCRIPT = "() => Object.keys(window.localStorage)"
REMOVE_STORAGE_ITEM_SCRIPT = "(key) => window.localStorage.removeItem(key)"


class EmbeddedFrame(Protocol):
    @property
    def url(self) -> str: ...

    async def navigate(self, url: str) -> None: ...

    async def query_all(self, selector: str) -> Sequence[Any]: ...

    async def storage_keys(self) -> List[str]: ...

    async def remove_storage_item(self, key: str) -> None: ...

    async def clear_cookies(self) -> None: ...

    async def reload(self) -> None: ...


def origin_host(url: Optional[str]) -> str:
    if not url:
        return ""
    return urlsplit(url).netloc


def location_value(url: str, prop: str) -> str:
    """Return ``window.location[prop]`` for ``url``."""

    if prop == "href":
        return url
    if prop == "pathname":
        return urlsplit(url).path or "/"
    raise ValueError(f"Unsupported location property: {prop}")


class PlaywrightFrame:
    """Adapter exposing a Playwright page as an :class:`EmbeddedFrame`."""

    def __init__(self, page: Page, *, navigation_timeout_ms: int = 30000) -> None:
        self.page = page
        self.navigation_timeout_ms = navigation_timeout_ms

    @property
    def url(self) -> str:
        return self.page.url

    async def navigate(self, url: str) -> None:
        log.info("Navigating embedded frame to %s", url)
        await self.page.goto(url, wait_until="load", timeout=self.navigation_timeout_ms)

    async def query_all(self, selector: str) -> List[ElementHandle]:
        return await self.page.query_selector_all(selector)

    async def storage_keys(self) -> List[str]:
        keys = await self.page.evaluate(STORAGE_KEYS_SCRIPT)
        return [str(key) for key in keys or []]

    async def remove_storage_item(self, key: str) -> None:
        await self.page.evaluate(REMOVE_STORAGE_ITEM_SCRIPT, key)

    async def clear_cookies(self) -> None:
        await self.page.context.clear_cookies()

    async def reload(self) -> None:
        await self.page.reload(wait_until="load", timeout=self.navigation_timeout_ms)
