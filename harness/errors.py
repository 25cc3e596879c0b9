"""Error taxonomy for live step execution.

Every failure raised by the engine is a :class:`StepError`.  Errors are
terminal for the step or chain that raised them and are never retried; the
caller (the step service or the HTTP host) decides how to surface them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ErrorCode(Enum):
    """Standardized error codes reported alongside step failures."""

    STEP_FAILED = "STEP_FAILED"
    CONSTRUCTION_ERROR = "CONSTRUCTION_ERROR"
    GUARD_VIOLATION = "GUARD_VIOLATION"
    ELEMENT_NOT_FOUND = "ELEMENT_NOT_FOUND"
    UNEXPECTED_ELEMENT = "UNEXPECTED_ELEMENT"
    DISPATCH_ERROR = "DISPATCH_ERROR"
    ASSERTION_FAILED = "ASSERTION_FAILED"
    UNSUPPORTED_ACTION = "UNSUPPORTED_ACTION"
    INVALID_STEP = "INVALID_STEP"
    CLIENT_CODE_ERROR = "CLIENT_CODE_ERROR"


class StepError(Exception):
    default_code: ErrorCode = ErrorCode.STEP_FAILED

    def __init__(
        self,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        # Filled in by the chain executor with the calls made so far.
        self.chain: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        if self.chain:
            payload["chain"] = list(self.chain)
        return payload


class ConstructionError(StepError):
    """Raised when an element wrapper is built around nothing."""

    default_code = ErrorCode.CONSTRUCTION_ERROR


class GuardError(StepError):
    """Raised when a guard check refuses an operation."""

    default_code = ErrorCode.GUARD_VIOLATION


class ResolutionError(StepError):
    default_code = ErrorCode.ELEMENT_NOT_FOUND


class DispatchError(StepError):
    default_code = ErrorCode.DISPATCH_ERROR


class StepAssertionError(StepError, AssertionError):
    """A verification step observed a value that does not satisfy it."""

    default_code = ErrorCode.ASSERTION_FAILED


def error_payload(exc: BaseException) -> Dict[str, Any]:
    """Convert any exception into the ``{code, message}`` payload shape."""

    if isinstance(exc, StepError):
        return exc.to_dict()
    payload: Dict[str, Any] = {
        "code": ErrorCode.CLIENT_CODE_ERROR.value,
        "message": f"{type(exc).__name__}: {exc}",
    }
    chain = getattr(exc, "chain", None)
    if chain:
        payload["chain"] = list(chain)
    return payload
