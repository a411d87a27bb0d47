"""Tool declaration, schema generation and dispatch."""

from .call_protocol import ERROR_MARKER, ToolCallRequest, ToolCallResult
from .models import ToolDefinition
from .registry import ToolRegistry
from .schema import SchemaValidator, ToolParameterFactory

__all__ = [
    "ERROR_MARKER",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDefinition",
    "ToolRegistry",
    "SchemaValidator",
    "ToolParameterFactory",
]
