"""Conversation state sent to the model provider on every turn."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class TextMessage(BaseModel):
    """A user-authored text message."""

    type: Literal["text"] = "text"
    content: str

    model_config = ConfigDict(frozen=True)


class ToolUseMessage(BaseModel):
    """An assistant tool request, recorded once its arguments are assembled.

    ``input`` holds the arguments serialized as a JSON string.
    """

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: str = "{}"

    model_config = ConfigDict(frozen=True)


class ToolResultMessage(BaseModel):
    """The outcome of executing a previously requested tool (user role)."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool = False

    model_config = ConfigDict(frozen=True)


QueryMessage = Annotated[
    TextMessage | ToolUseMessage | ToolResultMessage,
    Field(discriminator="type"),
]


class QueryOptions(BaseModel):
    """Generation options passed with each turn."""

    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tokens: int = Field(default=2000, gt=0)


class QueryContext(BaseModel):
    """Ordered conversation history plus generation options.

    Messages are only ever appended; insertion order is conversation order.
    Owned by a single orchestrator and cleared only by :meth:`reset`.
    """

    messages: list[QueryMessage] = Field(default_factory=list)
    options: QueryOptions = Field(default_factory=QueryOptions)

    def append(self, message: TextMessage | ToolUseMessage | ToolResultMessage) -> None:
        self.messages.append(message)

    def reset(self) -> None:
        """Start a new session. Options are kept."""
        self.messages.clear()

    def pending_tool_uses(self) -> list[str]:
        """Return ids of tool uses that have no matching tool result yet."""
        pending: dict[str, None] = {}
        for message in self.messages:
            if isinstance(message, ToolUseMessage):
                pending[message.id] = None
            elif isinstance(message, ToolResultMessage):
                pending.pop(message.tool_use_id, None)
        return list(pending)

    def __len__(self) -> int:
        return len(self.messages)
