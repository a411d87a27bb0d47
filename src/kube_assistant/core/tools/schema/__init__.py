"""Schema generation helpers for tool parameters."""

from .param_factory import ToolParameterFactory, FieldTuple
from .validator import SchemaValidator

__all__ = ["ToolParameterFactory", "FieldTuple", "SchemaValidator"]
