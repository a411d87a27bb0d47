"""Data models for tool execution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

ERROR_MARKER = "Error"


@dataclass(frozen=True)
class ToolCallRequest:
    """Represents a normalized tool call request from a model response."""

    name: str
    arguments: Any
    call_id: Optional[str] = None


@dataclass(frozen=True)
class ToolCallResult:
    """Represents the outcome of executing a tool call.

    The payload is always text. Failures carry ``is_error`` and a payload that
    starts with the error marker so the model can tell them apart from data.
    """

    name: str
    content: str
    call_id: Optional[str] = None
    is_error: bool = False
