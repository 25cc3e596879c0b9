"""Execute recorded ``cy`` call chains against a fresh action surface."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import EngineConfig
from .errors import DispatchError
from .frame import EmbeddedFrame
from .surface import create_surface

log = logging.getLogger(__name__)


class ChainLink(BaseModel):
    model_config = ConfigDict(extra="forbid")

    method: str
    args: List[Any] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _coerce_args(cls, value: Any) -> Any:
        if isinstance(value, dict) and value.get("args") is None:
            value = dict(value)
            value["args"] = []
        return value


class ChainRequest(ChainLink):
    """First call plus the links applied to each successive result."""

    chain: List[ChainLink] = Field(default_factory=list)


def lookup_operation(context: Any, method: str) -> Optional[Callable[..., Any]]:
    """Find ``method`` in the closed operation table of ``context``'s type."""

    table = getattr(type(context), "operations", None)
    if not table or method not in table:
        return None
    return getattr(context, table[method], None)


def format_chain(methods: List[str]) -> str:
    return "cy." + ".".join(f"{name}()" for name in methods)


async def _invoke(operation: Callable[..., Any], args: List[Any]) -> Any:
    result = operation(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def run_chain(request: ChainRequest | dict, frame: EmbeddedFrame, config: EngineConfig) -> Any:
    """Run ``request`` link by link and return the final context.

    Errors raised by an operation propagate unchanged, tagged with the
    ``chain`` of method names called up to and including the failing one.
    """

    if not isinstance(request, ChainRequest):
        request = ChainRequest.model_validate(request)

    surface = create_surface(frame, config)
    links = [ChainLink(method=request.method, args=request.args), *request.chain]
    chained: List[str] = []
    context: Any = surface

    for link in links:
        chained.append(link.method)
        operation = lookup_operation(context, link.method)
        if operation is None:
            error = DispatchError(
                f"{format_chain(chained)} is not a function",
                details={"method": link.method},
            )
            error.chain = tuple(chained)
            raise error
        try:
            context = await _invoke(operation, link.args)
        except Exception as exc:
            if getattr(exc, "chain", None) is None:
                exc.chain = tuple(chained)
            log.debug("Chain %s failed: %s", format_chain(chained), exc)
            raise

    return context
