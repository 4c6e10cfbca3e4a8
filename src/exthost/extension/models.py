"""Pydantic models for ``manifest.json``."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskLevel(str, Enum):
    """How much care the parent should take before running a tool."""

    SAFE = "safe"
    CONFIRM = "confirm"
    DESTRUCTIVE = "destructive"


class ExtensionRouting(BaseModel):
    """Routing hints the parent uses to match commands to this extension."""

    model_config = ConfigDict(extra="ignore")

    keywords: list[str] = []
    examples: list[str] = []
    verbs: list[str] = []
    objects: list[str] = []


class ExtensionToolDef(BaseModel):
    """A tool declared by the manifest."""

    model_config = ConfigDict(extra="ignore")

    id: str
    # Unrecognised levels are kept verbatim; grading risk is the parent's job.
    risk_level: RiskLevel | str = RiskLevel.SAFE
    input_schema: dict[str, Any] = Field(default_factory=dict)
    output_schema: dict[str, Any] = Field(default_factory=dict)

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, value: Any) -> Any:
        # Parent manifests spell these "Safe" / "Confirm" / "Destructive".
        if isinstance(value, str):
            try:
                return RiskLevel(value.lower())
            except ValueError:
                return value
        return value


class ExtensionManifest(BaseModel):
    """An extension's declared identity, entrypoint, and tool surface."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str
    entrypoint: str
    routing: ExtensionRouting = Field(default_factory=ExtensionRouting)
    tools: list[ExtensionToolDef] = []

    @field_validator("routing", mode="before")
    @classmethod
    def _null_routing(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("tools", mode="before")
    @classmethod
    def _null_tools(cls, value: Any) -> Any:
        return [] if value is None else value

    def declared_tool_ids(self) -> list[str]:
        return [tool.id for tool in self.tools]
