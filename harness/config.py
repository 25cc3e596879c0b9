"""Configuration loader for the step runtime."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urljoin, urlsplit


DEFAULTS: Dict[str, Any] = {
    "base_url": "http://localhost:3000",
    "default_pathname": "/",
    "origin_url": None,
    "navigation_timeout_ms": 30000,
    "log_root": "runs",
    "headless": True,
}

ENV_PREFIX = "STEPS_"


@dataclass(slots=True)
class EngineConfig:
    base_url: str = DEFAULTS["base_url"]
    default_pathname: str = DEFAULTS["default_pathname"]
    origin_url: Optional[str] = DEFAULTS["origin_url"]
    navigation_timeout_ms: int = DEFAULTS["navigation_timeout_ms"]
    log_root: Path = field(default_factory=lambda: Path(DEFAULTS["log_root"]))
    headless: bool = DEFAULTS["headless"]

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any]) -> "EngineConfig":
        data = dict(DEFAULTS)
        data.update({k: v for k, v in mapping.items() if k in DEFAULTS})
        origin = data.get("origin_url")
        return cls(
            base_url=str(data["base_url"]),
            default_pathname=str(data["default_pathname"]),
            origin_url=str(origin) if origin else None,
            navigation_timeout_ms=int(data["navigation_timeout_ms"]),
            log_root=Path(data["log_root"]),
            headless=str(data["headless"]).lower() in {"true", "1", "yes"},
        )

    @property
    def base_host(self) -> str:
        return urlsplit(self.base_url).netloc

    @property
    def default_url(self) -> str:
        return urljoin(self.base_url, self.default_pathname)

    @property
    def default_path(self) -> str:
        """Path component of the landing page, as rendered by ``cy.visit``."""

        return urlsplit(self.default_url).path or "/"


def _load_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_config(config_path: Path | None = None) -> EngineConfig:
    """Load configuration from environment, optional TOML file, and defaults."""

    env_map: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if key.startswith(ENV_PREFIX):
            env_map[key[len(ENV_PREFIX):].lower()] = value

    file_map: Dict[str, Any] = {}
    path = config_path or Path("config.toml")
    if path.exists():
        file_map = _load_toml(path).get("steps", {})

    merged = {**file_map, **env_map}
    return EngineConfig.from_mapping(merged)


def ensure_run_directory(run_id: str, config: EngineConfig) -> Path:
    base = config.log_root / run_id
    base.mkdir(parents=True, exist_ok=True)
    return base
