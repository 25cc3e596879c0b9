"""HTTP host exposing the action catalog and the "run this step" control.

The step editor talks to this app: it fetches the catalog to render its
forms, asks for generated code, and runs steps or recorded chains live
against the page opened in the managed Playwright browser.
"""

from __future__ import annotations

import asyncio
import atexit
import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from playwright.async_api import Error as PwError, async_playwright
from pydantic import ValidationError

from harness.config import load_config
from harness.errors import ErrorCode, StepError
from harness.frame import PlaywrightFrame
from harness.network import NetworkEvent, RequestEventQueue
from steps.dsl.builtin import build_registry
from steps.service import StepService

app = Flask(__name__)
logging.basicConfig(level=logging.INFO)
log = logging.getLogger("steps")

CONFIG = load_config()
EVENTS = RequestEventQueue()
REGISTRY = build_registry(CONFIG, EVENTS)


@app.errorhandler(Exception)
def handle_exception(error):  # pragma: no cover - defensive handler
    correlation_id = str(uuid.uuid4())[:8]
    log.exception("[%s] Uncaught exception: %s", correlation_id, error)
    return jsonify(
        {
            "ok": False,
            "error": {"code": "INTERNAL_ERROR", "message": str(error)},
            "correlation_id": correlation_id,
        }
    ), 500


# ---------------------------------------------------------------------------
# Playwright management


LOOP = asyncio.new_event_loop()

PW = None
BROWSER = None
PAGE = None
SERVICE: Optional[StepService] = None


def _run(coro):
    return LOOP.run_until_complete(coro)


async def _close_browser() -> None:
    global PW, BROWSER, PAGE, SERVICE
    page = PAGE
    browser = BROWSER
    PAGE = None
    BROWSER = None
    if SERVICE is not None:
        SERVICE.close()
        SERVICE = None
    try:
        if page is not None:
            await page.close()
        if browser is not None:
            await browser.close()
    except PwError as exc:
        log.debug("Error while closing browser: %s", exc)
    if PW is not None:
        await PW.stop()
        PW = None


@atexit.register
def _cleanup_browser() -> None:  # pragma: no cover - shutdown hook
    if PW is None:
        return
    try:
        _run(_close_browser())
    except Exception as exc:
        log.debug("Error during Playwright shutdown: %s", exc)


async def _check_browser_health() -> bool:
    if PAGE is None or BROWSER is None:
        return False
    try:
        await PAGE.title()
        return True
    except PwError:
        return False


async def _init_browser() -> None:
    global PW, BROWSER, PAGE
    if PAGE is not None and await _check_browser_health():
        return
    if PAGE is not None:
        await _close_browser()

    if PW is None:
        PW = await async_playwright().start()
    BROWSER = await PW.chromium.launch(headless=CONFIG.headless)
    context = await BROWSER.new_context()
    PAGE = await context.new_page()
    EVENTS.clear()
    EVENTS.attach(PAGE)
    try:
        await PAGE.goto(CONFIG.default_url, wait_until="load", timeout=CONFIG.navigation_timeout_ms)
        log.info("Initial navigation to default URL: %s", CONFIG.default_url)
    except PwError as exc:
        log.warning("Failed to navigate to default URL %s: %s", CONFIG.default_url, exc)


def _get_service() -> StepService:
    global SERVICE
    _run(_init_browser())
    if SERVICE is None:
        frame = PlaywrightFrame(PAGE, navigation_timeout_ms=CONFIG.navigation_timeout_ms)
        SERVICE = StepService(frame, CONFIG, events=EVENTS, registry=REGISTRY)
    return SERVICE


def _bad_request(message: str, code: ErrorCode = ErrorCode.INVALID_STEP):
    return jsonify({"ok": False, "error": {"code": code.value, "message": message}}), 400


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Catalog and code generation


@app.get("/actions")
def list_actions():
    return jsonify({"actions": REGISTRY.schema()})


@app.post("/code")
def generate_code():
    data = _json_body()
    try:
        if "steps" in data:
            steps = [REGISTRY.parse_step(entry) for entry in data.get("steps") or []]
            return jsonify({"code": REGISTRY.generate_script(steps)})
        step = REGISTRY.parse_step(data.get("step", data))
        return jsonify({"code": REGISTRY.generate_code(step)})
    except ValidationError as exc:
        return _bad_request(str(exc))
    except StepError as exc:
        return jsonify({"ok": False, "error": exc.to_dict()}), 400


# ---------------------------------------------------------------------------
# Live execution


@app.post("/run-step")
def run_step():
    data = _json_body()
    if not data:
        return _bad_request("step payload required")
    service = _get_service()
    execution = _run(service.execute_step_async(data.get("step", data)))
    return jsonify(execution.as_dict())


@app.post("/run-steps")
def run_steps():
    data = _json_body()
    steps = data.get("steps")
    if not isinstance(steps, list):
        return _bad_request("steps must be a list")
    service = _get_service()
    summary = _run(service.execute_steps_async(steps, stop_on_failure=bool(data.get("stop_on_failure", True))))
    return jsonify(summary.as_dict())


@app.post("/run-chain")
def run_chain_endpoint():
    data = _json_body()
    if not data:
        return _bad_request("chain payload required", ErrorCode.DISPATCH_ERROR)
    service = _get_service()
    execution = _run(service.execute_chain_async(data))
    return jsonify(execution.as_dict())


# ---------------------------------------------------------------------------
# Observed requests


@app.post("/network-events")
def push_network_events():
    data = request.get_json(silent=True)
    entries: List[Any] = data if isinstance(data, list) else [data]
    # A rejected batch leaves the queue untouched.
    try:
        events = [NetworkEvent.model_validate(entry) for entry in entries]
    except ValidationError as exc:
        return _bad_request(str(exc))
    recorded = [EVENTS.push(event) for event in events]
    return jsonify({"recorded": len(recorded), "pending": len(EVENTS)}), 202


@app.get("/network-events")
def list_network_events():
    return jsonify({"events": [event.model_dump() for event in EVENTS.pending()]})


@app.get("/healthz")
def health():  # pragma: no cover - trivial endpoint
    return "ok", 200


if __name__ == "__main__":  # pragma: no cover - manual run helper
    app.run("0.0.0.0", int(os.getenv("STEPS_PORT", "7000")), threaded=False)
