"""OpenAI chat completions backend and tool registry."""

from .core import OpenAIBackend
from .registry import OpenAIToolRegistry

__all__ = ["OpenAIBackend", "OpenAIToolRegistry"]
