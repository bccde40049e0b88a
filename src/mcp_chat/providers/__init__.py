"""Model provider implementations."""

from .anthropic import DEFAULT_MODEL_NAME, AnthropicProvider

__all__ = ["DEFAULT_MODEL_NAME", "AnthropicProvider"]
