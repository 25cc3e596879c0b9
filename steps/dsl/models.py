"""Typed models for authored steps and action parameters."""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

SelectType = Literal["css", "content"]
ParamType = Literal["string", "checkbox", "select", "number", "code"]


class ParamOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    key: str
    label: str


class ActionParam(BaseModel):
    """One form field of an action, rendered by the step editor."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    key: str
    type: ParamType = "string"
    label: str
    options: Optional[List[Union[str, ParamOption]]] = None
    default_value: Any = Field(
        default=None,
        alias="defaultValue",
        validation_alias=AliasChoices("defaultValue", "default_value"),
    )

    def to_metadata(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Step(BaseModel):
    """A single authored instruction."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    action: str
    selector: str = ""
    select_type: SelectType = Field(
        default="css",
        alias="selectType",
        validation_alias=AliasChoices("selectType", "select_type"),
    )
    timeout: Optional[int] = None
    args: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("selector", mode="before")
    @classmethod
    def _coerce_selector(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("timeout", mode="before")
    @classmethod
    def _coerce_timeout(cls, value: Any) -> Optional[int]:
        if value in (None, ""):
            return None
        return int(value)

    @field_validator("args", mode="before")
    @classmethod
    def _coerce_args(cls, value: Any) -> Dict[str, Any]:
        return dict(value or {})

    def arg(self, key: str, default: Any = None) -> Any:
        return self.args.get(key, default)

    def payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
