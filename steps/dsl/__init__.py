"""Declarative step DSL: models, selector building and the action catalog."""

from .builtin import build_registry, create_builtin_actions
from .models import ActionParam, ParamOption, Step
from .registry import ActionDefinition, ActionRegistry
from .selectors import CONTENT_TAGS, build_selector

__all__ = [
    "ActionDefinition",
    "ActionParam",
    "ActionRegistry",
    "CONTENT_TAGS",
    "ParamOption",
    "Step",
    "build_registry",
    "build_selector",
    "create_builtin_actions",
]
