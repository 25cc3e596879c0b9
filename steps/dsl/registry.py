"""Catalog of action definitions.

Each definition carries two independent renderings of the same action: a
pure ``generate_code`` producing Cypress source, and an async ``run_step``
performing the equivalent effect against a live frame.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List

from harness.errors import ErrorCode, StepError
from harness.frame import EmbeddedFrame

from .models import ActionParam, Step

CodeGenerator = Callable[[Step], str]
StepRunner = Callable[[Step, EmbeddedFrame], Awaitable[Any]]


@dataclass(slots=True, frozen=True)
class ActionDefinition:
    action: str
    label: str
    generate_code: CodeGenerator
    run_step: StepRunner
    params: List[ActionParam] = field(default_factory=list)
    hide_selector_input: bool = False

    def defaults(self) -> Dict[str, Any]:
        return {param.key: param.default_value for param in self.params if param.default_value is not None}

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "label": self.label,
            "params": [param.to_metadata() for param in self.params],
            "hideSelectorInput": self.hide_selector_input,
        }


class ActionRegistry:
    """Ordered registry of :class:`ActionDefinition` entries."""

    def __init__(self, definitions: Iterable[ActionDefinition] = ()) -> None:
        self._actions: Dict[str, ActionDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: ActionDefinition) -> ActionDefinition:
        if not isinstance(definition, ActionDefinition):
            raise TypeError("definition must be an ActionDefinition")
        if definition.action in self._actions:
            raise ValueError(f"Action '{definition.action}' is already registered")
        self._actions[definition.action] = definition
        return definition

    def get(self, name: str) -> ActionDefinition:
        try:
            return self._actions[name]
        except KeyError:
            raise StepError(
                f"Unknown action '{name}'",
                code=ErrorCode.UNSUPPORTED_ACTION,
                details={"action": name, "available": list(self._actions)},
            ) from None

    def __contains__(self, name: str) -> bool:  # pragma: no cover - trivial
        return name in self._actions

    def __iter__(self) -> Iterator[ActionDefinition]:
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)

    def schema(self) -> List[Dict[str, Any]]:
        return [definition.to_metadata() for definition in self._actions.values()]

    def parse_step(self, data: Any) -> Step:
        step = data if isinstance(data, Step) else Step.model_validate(data)
        return self.prepare(step)

    def prepare(self, step: Step) -> Step:
        """Fill arguments the author left unset with the params' defaults."""

        definition = self.get(step.action)
        args = definition.defaults()
        args.update({key: value for key, value in step.args.items() if value is not None})
        if args == step.args:
            return step
        return step.model_copy(update={"args": args})

    def generate_code(self, step: Step) -> str:
        step = self.prepare(step)
        return self.get(step.action).generate_code(step)

    def generate_script(self, steps: Iterable[Step], *, separator: str = "\n") -> str:
        return separator.join(self.generate_code(step) for step in steps)

    async def run_step(self, step: Step, frame: EmbeddedFrame) -> Any:
        step = self.prepare(step)
        return await self.get(step.action).run_step(step, frame)
