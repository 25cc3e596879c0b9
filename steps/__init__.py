"""Authored steps: code generation and live execution."""

from .dsl import ActionRegistry, Step, build_registry
from .service import StepService

__all__ = ["ActionRegistry", "Step", "StepService", "build_registry"]
