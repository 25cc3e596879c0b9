"""Pytest configuration and in-memory page doubles."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pytest

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from harness.config import EngineConfig  # noqa: E402
from harness.element import READ_VALUE_SCRIPT, SET_INPUT_VALUE_SCRIPT  # noqa: E402


class FakeElement:
    """Stands in for a Playwright ``ElementHandle``."""

    def __init__(self, tag: str = "input", *, value: str = "", text: str = "", disabled: bool = False) -> None:
        self.tag = tag
        self.value = value
        self.text = text
        self.disabled = disabled
        self.events: List[tuple[str, Dict[str, Any]]] = []

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if script == READ_VALUE_SCRIPT:
            return self.value
        if script == SET_INPUT_VALUE_SCRIPT:
            self.value = arg
            event_type = "input" if self.tag == "input" else "change"
            self.events.append((event_type, {"bubbles": True, "simulated": True}))
            return self.value
        raise AssertionError(f"unexpected script: {script}")

    async def is_disabled(self) -> bool:
        return self.disabled

    async def dispatch_event(self, event_type: str, init: Optional[Dict[str, Any]] = None) -> None:
        self.events.append((event_type, dict(init or {})))

    async def text_content(self) -> str:
        return self.text


class FakeFrame:
    """In-memory implementation of the ``EmbeddedFrame`` protocol."""

    def __init__(
        self,
        url: str = "http://app.test/home",
        *,
        elements: Optional[Dict[str, Iterable[FakeElement]]] = None,
        storage: Optional[Dict[str, str]] = None,
        cookies: Optional[Dict[str, str]] = None,
    ) -> None:
        self._url = url
        self.elements = {key: list(value) for key, value in (elements or {}).items()}
        self.storage = dict(storage or {})
        self.cookies = dict(cookies or {"session": "abc"})
        self.navigations: List[str] = []
        self.queries: List[str] = []
        self.reloads = 0

    @property
    def url(self) -> str:
        return self._url

    async def navigate(self, url: str) -> None:
        self.navigations.append(url)
        self._url = url

    async def query_all(self, selector: str) -> List[FakeElement]:
        self.queries.append(selector)
        return list(self.elements.get(selector, []))

    async def storage_keys(self) -> List[str]:
        return list(self.storage)

    async def remove_storage_item(self, key: str) -> None:
        self.storage.pop(key, None)

    async def clear_cookies(self) -> None:
        self.cookies.clear()

    async def reload(self) -> None:
        self.reloads += 1


@pytest.fixture
def config(tmp_path: Path) -> EngineConfig:
    return EngineConfig(base_url="http://app.test", default_pathname="/home", log_root=tmp_path / "runs")


@pytest.fixture
def element_factory():
    return FakeElement


@pytest.fixture
def frame_factory():
    return FakeFrame


@pytest.fixture
def frame() -> FakeFrame:
    return FakeFrame()
