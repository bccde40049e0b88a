"""Protocol definitions for mcp-chat's pluggable collaborators."""

from .provider import ModelProvider
from .tools import ToolClient, ToolConnector

__all__ = [
    "ModelProvider",
    "ToolClient",
    "ToolConnector",
]
