"""Builtin actions available to the step editor.

Every entry pairs a Cypress rendering with a live implementation built on the
action surface; the two must describe the same behaviour.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional

from harness.config import EngineConfig
from harness.errors import ErrorCode, ResolutionError, StepAssertionError
from harness.frame import LOCATION_PROPERTIES, EmbeddedFrame, location_value
from harness.network import RequestEventQueue
from harness.surface import create_surface

from .models import ActionParam, ParamOption, Step
from .registry import ActionDefinition, ActionRegistry
from .selectors import build_selector

HTTP_METHODS = ["DELETE", "GET", "PATCH", "POST", "PUT"]


def quote(value: Any) -> str:
    text = "" if value is None else str(value)
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def render_options(**options: Any) -> str:
    """Render a Cypress options object, dropping falsy entries."""

    parts = []
    for key, value in options.items():
        if not value:
            continue
        rendered = "true" if value is True else str(value)
        parts.append(f"{key}: {rendered}")
    if not parts:
        return ""
    return "{ " + ", ".join(parts) + " }"


def render_call(name: str, *args: str) -> str:
    return f"{name}({', '.join(arg for arg in args if arg)})"


def step_timeout(step: Step) -> Optional[int]:
    if step.timeout and step.timeout > 0:
        return step.timeout
    return None


def subject_code(step: Step) -> str:
    """``cy.get(...)`` or, for content selectors, ``cy.contains(...)``."""

    command = "contains" if step.select_type == "content" else "get"
    return "cy." + render_call(command, quote(step.selector), render_options(timeout=step_timeout(step)))


async def query(frame: EmbeddedFrame, step: Step) -> List[Any]:
    return list(await frame.query_all(build_selector(step)))


async def any_disabled(elements: List[Any]) -> bool:
    for element in elements:
        if await element.is_disabled():
            return True
    return False


def create_builtin_actions(config: EngineConfig, events: RequestEventQueue) -> List[ActionDefinition]:
    """Build the catalog bound to ``config`` and the session's request queue."""

    async def run_reset(step: Step, frame: EmbeddedFrame) -> None:
        cy = create_surface(frame, config)
        await cy.clear_cookies()
        await cy.clear_local_storage()
        await cy.visit(config.default_path)

    async def run_type(step: Step, frame: EmbeddedFrame) -> None:
        element = await create_surface(frame, config).get(build_selector(step))
        await element.clear()
        await element.type(step.arg("typeContent", ""))

    def code_click(step: Step) -> str:
        return subject_code(step) + "." + render_call("click", render_options(force=bool(step.arg("forceClick"))))

    async def run_click(step: Step, frame: EmbeddedFrame) -> None:
        element = await create_surface(frame, config).get(
            build_selector(step),
            {"force": bool(step.arg("forceClick"))},
        )
        await element.click()

    def code_location(step: Step) -> str:
        prop = step.arg("locationProperty")
        subject = "cy." + render_call("location", quote(prop), render_options(timeout=step_timeout(step)))
        if step.arg("locationMatchType") == "startsWith":
            return subject + f".should('match', new RegExp({quote('^' + step.selector)}))"
        return subject + f".should('eq', {quote(step.selector)})"

    async def run_location(step: Step, frame: EmbeddedFrame) -> None:
        prop = step.arg("locationProperty")
        current = location_value(frame.url, prop)
        if step.arg("locationMatchType") == "startsWith":
            if re.match(f"^{step.selector}", current):
                return
        elif current == step.selector:
            return
        raise StepAssertionError(
            f"Unexpected {prop}: '{current}' (expected '{step.selector}')",
            details={"property": prop, "current": current, "expected": step.selector},
        )

    async def run_exist(step: Step, frame: EmbeddedFrame) -> None:
        if not await query(frame, step):
            raise ResolutionError(
                f"Could not find element matching: '{step.selector}'",
                details={"selector": step.selector},
            )

    async def run_not_exist(step: Step, frame: EmbeddedFrame) -> None:
        if await query(frame, step):
            raise ResolutionError(
                f"Found element matching: '{step.selector}' (should not exist)",
                code=ErrorCode.UNEXPECTED_ELEMENT,
                details={"selector": step.selector},
            )

    async def run_contains(step: Step, frame: EmbeddedFrame) -> None:
        expected = str(step.arg("textContent", ""))
        for element in await query(frame, step):
            if expected in (await element.text_content() or ""):
                return
        raise StepAssertionError(
            f"Could not find content '{expected}' in '{step.selector}'",
            details={"selector": step.selector, "text": expected},
        )

    async def run_goto(step: Step, frame: EmbeddedFrame) -> None:
        await create_surface(frame, config).visit(step.selector)

    async def run_select(step: Step, frame: EmbeddedFrame) -> None:
        element = await create_surface(frame, config).get(build_selector(step))
        await element.select(step.arg("typeContent", ""))

    async def run_reload(step: Step, frame: EmbeddedFrame) -> None:
        await frame.reload()

    def code_xhr(step: Step) -> str:
        return "\n".join(
            [
                "helpers.waitForXHR({",
                f"\tid: {quote(step.id)},",
                f"\tmethod: {quote(step.arg('xhrMethod'))},",
                f"\tproperty: {quote(step.arg('xhrProperty'))},",
                f"\tvalue: {quote(step.selector)},",
                "})",
            ]
        )

    async def run_xhr(step: Step, frame: EmbeddedFrame) -> None:
        events.consume_until(step.arg("xhrMethod"), step.arg("xhrProperty"), step.selector)

    async def run_disabled(step: Step, frame: EmbeddedFrame) -> None:
        if not await any_disabled(await query(frame, step)):
            raise StepAssertionError(
                f"'{step.selector}' is not disabled (should be)",
                details={"selector": step.selector},
            )

    async def run_not_disabled(step: Step, frame: EmbeddedFrame) -> None:
        if await any_disabled(await query(frame, step)):
            raise StepAssertionError(
                f"'{step.selector}' is disabled (should not be)",
                details={"selector": step.selector},
            )

    async def run_wait(step: Step, frame: EmbeddedFrame) -> None:
        await create_surface(frame, config).wait(step.arg("timeout"))

    async def run_code(step: Step, frame: EmbeddedFrame) -> Any:
        return await create_surface(frame, config).run_on_client(step.arg("codeBlock", ""))

    return [
        ActionDefinition(
            action="reset",
            label="resets the state",
            hide_selector_input=True,
            generate_code=lambda step: "\n".join(
                [
                    "cy.clearCookies()",
                    "cy.clearLocalStorage()",
                    f"cy.visit({quote(config.default_path)})",
                ]
            ),
            run_step=run_reset,
        ),
        ActionDefinition(
            action="type",
            label="enter value into input",
            params=[ActionParam(key="typeContent", type="string", label="Type Content")],
            generate_code=lambda step: ".".join(
                [subject_code(step), "clear()", render_call("type", quote(step.arg("typeContent", "")))]
            ),
            run_step=run_type,
        ),
        ActionDefinition(
            action="click",
            label="click element",
            params=[ActionParam(key="forceClick", type="checkbox", label="Force click", default_value=False)],
            generate_code=code_click,
            run_step=run_click,
        ),
        ActionDefinition(
            action="location",
            label="verify page location",
            params=[
                ActionParam(
                    key="locationProperty",
                    type="select",
                    label="Location property",
                    options=list(LOCATION_PROPERTIES),
                    default_value="pathname",
                ),
                ActionParam(
                    key="locationMatchType",
                    type="select",
                    label="Match type",
                    options=[
                        ParamOption(key="startsWith", label="starts with"),
                        ParamOption(key="exact", label="is exactly"),
                    ],
                    default_value="exact",
                ),
            ],
            generate_code=code_location,
            run_step=run_location,
        ),
        ActionDefinition(
            action="exist",
            label="should exist",
            generate_code=lambda step: subject_code(step) + ".should('exist')",
            run_step=run_exist,
        ),
        ActionDefinition(
            action="notExist",
            label="should not exist",
            generate_code=lambda step: subject_code(step) + ".should('not.exist')",
            run_step=run_not_exist,
        ),
        ActionDefinition(
            action="contains",
            label="should contain",
            params=[ActionParam(key="textContent", type="string", label="Text content")],
            generate_code=lambda step: subject_code(step)
            + "."
            + render_call("contains", quote(step.arg("textContent", ""))),
            run_step=run_contains,
        ),
        ActionDefinition(
            action="goto",
            label="goto a page",
            generate_code=lambda step: f"cy.visit({quote(step.selector)})",
            run_step=run_goto,
        ),
        ActionDefinition(
            action="select",
            label="select value from dropdown",
            params=[ActionParam(key="typeContent", type="select", label="Select an option", options=[])],
            generate_code=lambda step: subject_code(step)
            + "."
            + render_call("select", quote(step.arg("typeContent", ""))),
            run_step=run_select,
        ),
        ActionDefinition(
            action="reload",
            label="refresh the page",
            hide_selector_input=True,
            generate_code=lambda step: "cy.reload()",
            run_step=run_reload,
        ),
        ActionDefinition(
            action="xhr",
            label="wait for request",
            params=[
                ActionParam(
                    key="xhrMethod",
                    type="select",
                    label="Method",
                    options=list(HTTP_METHODS),
                    default_value="GET",
                ),
                ActionParam(
                    key="xhrProperty",
                    type="select",
                    label="Request property",
                    options=["href", "pathname"],
                    default_value="pathname",
                ),
            ],
            generate_code=code_xhr,
            run_step=run_xhr,
        ),
        ActionDefinition(
            action="disabled",
            label="should be disabled",
            generate_code=lambda step: subject_code(step) + ".should('be.disabled')",
            run_step=run_disabled,
        ),
        ActionDefinition(
            action="notDisabled",
            label="should not be disabled",
            generate_code=lambda step: subject_code(step) + ".should('not.be.disabled')",
            run_step=run_not_disabled,
        ),
        ActionDefinition(
            action="wait",
            label="wait for time to pass",
            hide_selector_input=True,
            params=[ActionParam(key="timeout", type="number", label="Timeout (ms)", default_value=500)],
            generate_code=lambda step: f"cy.wait({step.arg('timeout')})",
            run_step=run_wait,
        ),
        # The block is Python run on the host through run_on_client, not Cypress
        # JS; generate_script emits it verbatim between the Cypress lines.
        ActionDefinition(
            action="code",
            label="custom code block",
            hide_selector_input=True,
            params=[
                ActionParam(
                    key="codeBlock",
                    type="code",
                    label="Custom code (Python)",
                    default_value="print('hello, world')",
                )
            ],
            generate_code=lambda step: str(step.arg("codeBlock", "")),
            run_step=run_code,
        ),
    ]


def build_registry(config: EngineConfig, events: Optional[RequestEventQueue] = None) -> ActionRegistry:
    return ActionRegistry(create_builtin_actions(config, events if events is not None else RequestEventQueue()))
