"""Primitive automation operations bound to one embedded frame."""

from __future__ import annotations

import asyncio
import logging
import math
import textwrap
from typing import Any, ClassVar, Dict, Mapping, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from .config import EngineConfig
from .element import ElementWrapper
from .errors import GuardError, ResolutionError
from .frame import EmbeddedFrame, origin_host

log = logging.getLogger(__name__)

PRESERVED_STORAGE_PREFIX = "test:"
CLIENT_FUNCTION_NAME = "__client_step"


class ActionSurface:
    """The ``cy`` object recorded chains and builtin actions are run against.

    A surface is created per step (or per chain) and never shared.
    """

    # Chain method name -> attribute.  Recorded chains use the camelCase names.
    operations: ClassVar[Mapping[str, str]] = {
        "visit": "visit",
        "clearCookies": "clear_cookies",
        "clear_cookies": "clear_cookies",
        "clearLocalStorage": "clear_local_storage",
        "clear_local_storage": "clear_local_storage",
        "wait": "wait",
        "runOnClient": "run_on_client",
        "run_on_client": "run_on_client",
        "wrap": "wrap",
        "get": "get",
    }

    def __init__(self, frame: EmbeddedFrame, config: EngineConfig) -> None:
        self.frame = frame
        self.config = config

    def resolve_url(self, href: str) -> str:
        """Resolve ``href`` the way ``cy.visit`` would and apply the domain guard."""

        target = urlsplit(urljoin(self.config.base_url, str(href)))
        origin = origin_host(self.config.origin_url or self.frame.url)
        if target.netloc and target.netloc not in {origin, self.config.base_host}:
            raise GuardError(
                f"cy.visit() tried to access different domain ({target.netloc})",
                details={"href": href, "host": target.netloc},
            )
        base = urlsplit(self.config.base_url)
        return urlunsplit((base.scheme, base.netloc, target.path or "/", target.query, ""))

    async def visit(self, href: str) -> None:
        await self.frame.navigate(self.resolve_url(href))

    async def clear_cookies(self) -> None:
        await self.frame.clear_cookies()

    async def clear_local_storage(self) -> None:
        keys = [
            key
            for key in await self.frame.storage_keys()
            if not key.startswith(PRESERVED_STORAGE_PREFIX)
        ]
        for key in keys:
            await self.frame.remove_storage_item(key)
        log.debug("Removed %d local storage keys", len(keys))

    async def wait(self, time: Any) -> None:
        try:
            delay = float(time)
        except (TypeError, ValueError):
            delay = math.nan
        if not math.isfinite(delay) or isinstance(time, bool):
            raise GuardError(
                f"Invalid numeric timeout: {time}. Request aliasing is not supported",
                details={"time": time},
            )
        await asyncio.sleep(max(delay, 0) / 1000)

    async def run_on_client(self, code: str) -> Any:
        """Run ``code`` as the body of ``async def (cy)`` with ``frame`` in scope.

        This is an escape hatch: the code runs with the host's privileges.
        """

        body = textwrap.indent(textwrap.dedent(code or "").strip() or "pass", "    ")
        source = f"async def {CLIENT_FUNCTION_NAME}(cy):\n{body}\n"
        namespace: Dict[str, Any] = {"frame": self.frame, "asyncio": asyncio}
        exec(compile(source, "<runOnClient>", "exec"), namespace)
        return await namespace[CLIENT_FUNCTION_NAME](self)

    def wrap(self, target: Any, options: Optional[Dict[str, Any]] = None) -> ElementWrapper:
        return ElementWrapper("(unknown element)", target, options)

    async def get(self, selector: str, options: Optional[Dict[str, Any]] = None) -> ElementWrapper:
        elements = await self.frame.query_all(selector)
        if not elements:
            raise ResolutionError(
                f"No element found matching selector: {selector}",
                details={"selector": selector},
            )
        return ElementWrapper(selector, elements[0], options)


def create_surface(frame: EmbeddedFrame, config: EngineConfig) -> ActionSurface:
    return ActionSurface(frame, config)
