"""Semantic units produced by the stream decoder for one model turn."""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class TextResponse(BaseModel):
    """A single text fragment, emitted as soon as it arrives."""

    type: Literal["text"] = "text"
    content: str = ""
    index: int = 0


class ToolUseResponse(BaseModel):
    """A tool-use request from the model.

    ``raw_input`` accumulates ``input_json_delta`` fragments. ``args`` is
    only set once the buffer has been parsed at the end of the turn; if
    parsing fails it stays ``None`` and ``decode_error`` says why.
    """

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    index: int = 0
    args: dict[str, Any] | None = None
    raw_input: str = ""
    decode_error: str | None = None

    def finalize(self) -> None:
        """Parse the accumulated JSON buffer into ``args``."""
        if not self.raw_input.strip():
            self.args = {}
            return
        try:
            parsed = json.loads(self.raw_input)
        except json.JSONDecodeError as exc:
            self.args = None
            self.decode_error = f"Invalid tool input JSON: {exc}"
            return
        if not isinstance(parsed, dict):
            self.args = None
            self.decode_error = f"Tool input must be a JSON object, got {type(parsed).__name__}"
            return
        self.args = parsed

    @property
    def serialized_args(self) -> str:
        """Compact JSON of ``args`` (``{}`` when undecodable)."""
        return json.dumps(self.args or {}, separators=(",", ":"))


class ErrorResponse(BaseModel):
    """A transport-level failure; always the last unit of a turn."""

    type: Literal["error"] = "error"
    content: str


StreamResponse = Annotated[
    TextResponse | ToolUseResponse | ErrorResponse,
    Field(discriminator="type"),
]
