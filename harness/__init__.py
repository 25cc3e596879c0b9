"""Live runtime: frames, element wrappers, the action surface and chains."""

from .chain import ChainLink, ChainRequest, run_chain
from .config import EngineConfig, load_config
from .element import ElementWrapper
from .errors import (
    ConstructionError,
    DispatchError,
    ErrorCode,
    GuardError,
    ResolutionError,
    StepAssertionError,
    StepError,
)
from .frame import EmbeddedFrame, PlaywrightFrame
from .network import NetworkEvent, RequestEventQueue
from .surface import ActionSurface, create_surface

__all__ = [
    "ActionSurface",
    "ChainLink",
    "ChainRequest",
    "ConstructionError",
    "DispatchError",
    "ElementWrapper",
    "EmbeddedFrame",
    "EngineConfig",
    "ErrorCode",
    "GuardError",
    "NetworkEvent",
    "PlaywrightFrame",
    "RequestEventQueue",
    "ResolutionError",
    "StepAssertionError",
    "StepError",
    "create_surface",
    "load_config",
    "run_chain",
]
