"""Queue of outgoing requests observed from the embedded frame."""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, List, Literal, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, field_validator

from .errors import StepAssertionError

log = logging.getLogger(__name__)

RequestProperty = Literal["pathname", "href"]

OBSERVED_RESOURCE_TYPES = frozenset({"xhr", "fetch"})


class NetworkEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    method: str
    pathname: str
    href: str
    origin: str = ""

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_url(cls, method: str, url: str, **extra: Any) -> "NetworkEvent":
        parts = urlsplit(url)
        origin = f"{parts.scheme}://{parts.netloc}" if parts.netloc else ""
        return cls(method=method, pathname=parts.path or "/", href=url, origin=origin, **extra)


class RequestEventQueue:
    """FIFO buffer of :class:`NetworkEvent` records.

    Producers append one event per observed request.  Consumption is
    destructive: events inspected while waiting for a match are dropped even
    when they do not match.
    """

    def __init__(self) -> None:
        self._events: Deque[NetworkEvent] = deque()

    def __len__(self) -> int:
        return len(self._events)

    def pending(self) -> List[NetworkEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()

    def push(self, event: Union[NetworkEvent, Dict[str, Any]]) -> NetworkEvent:
        if not isinstance(event, NetworkEvent):
            event = NetworkEvent.model_validate(event)
        self._events.append(event)
        return event

    def record_request(self, request: Any) -> None:
        """Playwright ``request`` event listener."""

        if getattr(request, "resource_type", None) not in OBSERVED_RESOURCE_TYPES:
            return
        self.push(NetworkEvent.from_url(request.method, request.url))

    def attach(self, page: Any) -> None:
        page.on("request", self.record_request)

    def consume_until(self, method: str, prop: RequestProperty, value: str) -> NetworkEvent:
        method = method.upper()
        while self._events:
            event = self._events.popleft()
            if event.method == method and getattr(event, prop, None) == value:
                return event
            log.debug("Discarding request %s %s", event.method, event.href)
        raise StepAssertionError(
            f"Could not find an XHR request matching: {method} {value}",
            details={"method": method, "property": prop, "value": value},
        )
