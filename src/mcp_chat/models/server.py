"""Tool-server and model descriptions shared across the package."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ServerConfig(BaseModel):
    """Launch parameters for one stdio tool server."""

    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] | None = None


class ToolSpec(BaseModel):
    """A tool advertised by a connected server."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=lambda: {"type": "object"})

    model_config = ConfigDict(frozen=True)

    def to_anthropic_schema(self) -> dict[str, Any]:
        """Convert to Anthropic tool definition format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


class ServerStatus(BaseModel):
    """A connected server and the names of its tools."""

    name: str
    tools: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ModelInfo(BaseModel):
    """A model the provider can run."""

    id: str
    name: str
    description: str = ""

    model_config = ConfigDict(frozen=True)
