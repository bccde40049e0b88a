"""Provider-specific request formatters."""

from .anthropic import AnthropicFormatter

__all__ = ["AnthropicFormatter"]
