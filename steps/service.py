"""Session-level service running authored steps against the embedded frame.

The engine itself propagates every failure.  This service is the collaborator
that sits between the engine and the editor: it validates payloads, runs
steps or recorded chains, records one structured event per execution and
turns failures into payloads the editor can show next to the step.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from harness.chain import ChainRequest, format_chain, run_chain
from harness.config import EngineConfig, ensure_run_directory
from harness.errors import ErrorCode, error_payload
from harness.frame import EmbeddedFrame
from harness.network import NetworkEvent, RequestEventQueue
from harness.structured_logging import StructuredLogger

from .dsl.builtin import build_registry
from .dsl.models import Step
from .dsl.registry import ActionRegistry

log = logging.getLogger(__name__)


@dataclass(slots=True)
class StepExecution:
    """Result information for a single step or chain."""

    name: str
    ok: bool
    step_id: Optional[str] = None
    code: Optional[str] = None
    duration_ms: float = 0.0
    error: Optional[Dict[str, Any]] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "ok": self.ok,
            "duration_ms": round(self.duration_ms, 3),
        }
        if self.step_id:
            payload["id"] = self.step_id
        if self.code is not None:
            payload["code"] = self.code
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass(slots=True)
class RunSummary:
    run_id: str
    success: bool
    url: str
    results: List[StepExecution] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "success": self.success,
            "url": self.url,
            "results": [entry.as_dict() for entry in self.results],
        }


class StepService:
    """Runs steps for one authoring session."""

    def __init__(
        self,
        frame: EmbeddedFrame,
        config: Optional[EngineConfig] = None,
        *,
        events: Optional[RequestEventQueue] = None,
        registry: Optional[ActionRegistry] = None,
        run_id: Optional[str] = None,
        structured_log: bool = True,
    ) -> None:
        self.frame = frame
        self.config = config or EngineConfig()
        self.events = events if events is not None else RequestEventQueue()
        self.registry = registry or build_registry(self.config, self.events)
        self.run_id = run_id or f"run-{uuid.uuid4().hex[:8]}"
        self._logger: Optional[StructuredLogger] = None
        if structured_log:
            self._logger = StructuredLogger(self.run_id, ensure_run_directory(self.run_id, self.config))

    # ------------------------------------------------------------------
    # catalog and code generation
    # ------------------------------------------------------------------
    def catalog(self) -> List[Dict[str, Any]]:
        return self.registry.schema()

    def parse_step(self, payload: Any) -> Step:
        return self.registry.parse_step(payload)

    def generate_code(self, payload: Any) -> str:
        return self.registry.generate_code(self.parse_step(payload))

    def generate_script(self, payloads: Iterable[Any]) -> str:
        return self.registry.generate_script(self.parse_step(entry) for entry in payloads)

    def record_network_event(self, payload: Any) -> NetworkEvent:
        return self.events.push(payload)

    # ------------------------------------------------------------------
    # live execution
    # ------------------------------------------------------------------
    async def execute_step_async(self, payload: Any) -> StepExecution:
        """Run one step and capture its outcome instead of raising."""

        started = time.perf_counter()
        try:
            step = self.parse_step(payload)
        except ValidationError as exc:
            return self._finish(
                "step",
                payload,
                StepExecution(
                    name=str(payload.get("action", "")) if isinstance(payload, dict) else "",
                    ok=False,
                    error={"code": ErrorCode.INVALID_STEP.value, "message": str(exc)},
                ),
                started,
            )
        except Exception as exc:
            return self._finish("step", payload, StepExecution(name="", ok=False, error=error_payload(exc)), started)

        execution = StepExecution(name=step.action, ok=True, step_id=step.id)
        try:
            execution.code = self.registry.generate_code(step)
            await self.registry.run_step(step, self.frame)
        except Exception as exc:
            log.warning("Step %s (%s) failed: %s", step.id, step.action, exc)
            execution.ok = False
            execution.error = error_payload(exc)
        return self._finish("step", step.payload(), execution, started)

    async def execute_steps_async(self, payloads: Iterable[Any], *, stop_on_failure: bool = True) -> RunSummary:
        """Run steps one after another; the caller's order is kept."""

        results: List[StepExecution] = []
        for payload in payloads:
            execution = await self.execute_step_async(payload)
            results.append(execution)
            if not execution.ok and stop_on_failure:
                break
        success = all(result.ok for result in results)
        return RunSummary(run_id=self.run_id, success=success, url=self.frame.url, results=results)

    async def execute_chain_async(self, payload: Any) -> StepExecution:
        started = time.perf_counter()
        try:
            request = payload if isinstance(payload, ChainRequest) else ChainRequest.model_validate(payload)
        except ValidationError as exc:
            return self._finish(
                "chain",
                payload,
                StepExecution(name="chain", ok=False, error={"code": ErrorCode.INVALID_STEP.value, "message": str(exc)}),
                started,
            )

        methods = [request.method, *(link.method for link in request.chain)]
        execution = StepExecution(name=format_chain(methods), ok=True)
        try:
            await run_chain(request, self.frame, self.config)
        except Exception as exc:
            log.warning("Chain %s failed: %s", execution.name, exc)
            execution.ok = False
            execution.error = error_payload(exc)
        return self._finish("chain", request.model_dump(), execution, started)

    def execute_step(self, payload: Any) -> Dict[str, Any]:
        """Synchronous convenience wrapper around :meth:`execute_step_async`."""

        return asyncio.run(self.execute_step_async(payload)).as_dict()

    def close(self) -> None:
        if self._logger is not None:
            self._logger.close()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _finish(self, kind: str, payload: Any, execution: StepExecution, started: float) -> StepExecution:
        execution.duration_ms = (time.perf_counter() - started) * 1000
        if self._logger is not None:
            self._logger.log_event(
                kind=kind,
                payload=payload if isinstance(payload, dict) else {"raw": payload},
                ok=execution.ok,
                error=execution.error,
                duration_ms=execution.duration_ms,
                url=self.frame.url,
            )
        return execution
