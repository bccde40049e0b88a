"""Events the orchestrator exposes to the host for one user query."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(StrEnum):
    """Why a query ended with an ``error`` event."""

    STREAM = "stream"
    TOOL_LOOP_LIMIT = "tool_loop_limit"


class TextEvent(BaseModel):
    type: Literal["text"] = "text"
    content: str

    model_config = ConfigDict(frozen=True)


class ToolStartEvent(BaseModel):
    """A tool is about to run. ``args`` is the JSON-encoded arguments."""

    type: Literal["tool_start"] = "tool_start"
    tool_name: str
    args: str

    model_config = ConfigDict(frozen=True)


class ToolResultEvent(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_name: str
    result: str

    model_config = ConfigDict(frozen=True)


class ToolErrorEvent(BaseModel):
    type: Literal["tool_error"] = "tool_error"
    tool_name: str
    error: str

    model_config = ConfigDict(frozen=True)


class ErrorEvent(BaseModel):
    """Terminal failure of the query (stream fault or loop limit)."""

    type: Literal["error"] = "error"
    content: str
    code: ErrorCode = ErrorCode.STREAM

    model_config = ConfigDict(frozen=True)


class CancelledEvent(BaseModel):
    """Terminal marker for a query that was stopped or superseded."""

    type: Literal["cancelled"] = "cancelled"

    model_config = ConfigDict(frozen=True)


QueryResponse = Annotated[
    TextEvent | ToolStartEvent | ToolResultEvent | ToolErrorEvent | ErrorEvent | CancelledEvent,
    Field(discriminator="type"),
]
