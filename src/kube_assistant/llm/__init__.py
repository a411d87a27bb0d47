"""Concrete model backend implementations."""

from .openai_api import OpenAIBackend, OpenAIToolRegistry

__all__ = ["OpenAIBackend", "OpenAIToolRegistry"]
