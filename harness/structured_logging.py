"""Structured logging utilities for step runs."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional


class StructuredLogger:
    """Writes one JSONL event per executed step or chain."""

    def __init__(self, run_id: str, base_dir: Path) -> None:
        self.run_id = run_id
        base_dir.mkdir(parents=True, exist_ok=True)
        self.path = base_dir / "events.jsonl"
        self._step = 0
        self._events_file = self.path.open("a", encoding="utf-8")

    def log_event(
        self,
        *,
        kind: str,
        payload: Dict[str, Any],
        ok: bool,
        error: Optional[Dict[str, Any]] = None,
        duration_ms: float = 0.0,
        url: Optional[str] = None,
    ) -> int:
        self._step += 1
        event = {
            "ts": time.time(),
            "run_id": self.run_id,
            "index": self._step,
            "kind": kind,
            "payload": payload,
            "ok": ok,
            "error": error,
            "duration_ms": round(duration_ms, 3),
            "url": url,
        }
        self._events_file.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")
        self._events_file.flush()
        return self._step

    def close(self) -> None:
        if not self._events_file.closed:
            self._events_file.close()
