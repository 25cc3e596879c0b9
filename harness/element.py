"""Element wrapper performing framework-visible DOM mutations."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Sequence

from .errors import ConstructionError, GuardError

log = logging.getLogger(__name__)

READ_VALUE_SCRIPT = "(el) => (el.value === undefined || el.value === null ? '' : String(el.value))"

# Writing ``el.value`` directly is invisible to frameworks that shadow the
# native setter (React keeps the last value in ``_valueTracker``), so the value
# goes through the prototype setter and the tracker is rewound before the event.
SET_INPUT_VALUE_SCRIPT = """
    (el, value) => {
        const lastValue = el.value;
        const proto = Object.getPrototypeOf(el);
        const descriptor = proto && Object.getOwnPropertyDescriptor(proto, 'value');
        if (descriptor && descriptor.set) {
            descriptor.set.call(el, value);
        } else {
            el.value = value;
        }
        const event = new Event(el.tagName === 'INPUT' ? 'input' : 'change', { bubbles: true });
        event.simulated = true;
        const tracker = el._valueTracker;
        if (tracker) {
            tracker.setValue(lastValue);
        }
        el.dispatchEvent(event);
        return el.value;
    }
"""


async def set_input_value(element: Any, value: str) -> Any:
    return await element.evaluate(SET_INPUT_VALUE_SCRIPT, value)


class ElementWrapper:
    """Handle around one resolved element supporting typing and clicking."""

    operations: ClassVar[Mapping[str, str]] = {
        "type": "type",
        "clear": "clear",
        "select": "select",
        "click": "click",
        "then": "then",
    }

    def __init__(self, label: str, target: Any, options: Optional[Dict[str, Any]] = None) -> None:
        if target is None:
            targets: Sequence[Any] = []
        elif isinstance(target, (list, tuple)):
            targets = list(target)
        else:
            targets = [target]
        if not targets:
            raise ConstructionError(
                "Cannot wrap null element",
                details={"selector": label},
            )
        self.label = label
        self.targets = targets
        self.target = targets[0]
        self.options = dict(options or {})

    @property
    def force(self) -> bool:
        return bool(self.options.get("force"))

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"ElementWrapper({self.label!r}, force={self.force})"

    async def type(self, value: Any) -> "ElementWrapper":
        current = await self.target.evaluate(READ_VALUE_SCRIPT)
        await set_input_value(self.target, f"{current or ''}{'' if value is None else value}")
        return self

    async def clear(self) -> "ElementWrapper":
        await set_input_value(self.target, "")
        return self

    async def select(self, value: Any) -> "ElementWrapper":
        await set_input_value(self.target, "" if value is None else str(value))
        return self

    async def click(self) -> "ElementWrapper":
        if not self.force and await self.target.is_disabled():
            raise GuardError(
                f"Cannot perform click on disabled element: {self.label}",
                details={"selector": self.label},
            )
        log.debug("Dispatching click on %s", self.label)
        await self.target.dispatch_event("click", {"bubbles": True})
        return self

    async def then(self, fn: Callable[[Any], Any]) -> Any:
        result = fn(self.target)
        if inspect.isawaitable(result):
            result = await result
        return result
