"""Public exports for the core abstractions: messages, tools, backend, errors."""

from .base import ModelBackend, ModelReply
from .exceptions import (
    KubeAssistantError,
    ConfigurationError,
    LLMToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    ModelResponseError,
    ClusterError,
    CommandBuilderError,
    InvalidSelectionError,
    IncompleteCommandError,
)
from .logger import get_logger, setup_logging
from .messages import (
    BaseMessage,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolMessage,
    ConversationTurn,
)
from .tools import ERROR_MARKER, ToolCallRequest, ToolCallResult, ToolDefinition, ToolRegistry, SchemaValidator

__all__ = [
    "ModelBackend",
    "ModelReply",
    "KubeAssistantError",
    "ConfigurationError",
    "LLMToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "ModelResponseError",
    "ClusterError",
    "CommandBuilderError",
    "InvalidSelectionError",
    "IncompleteCommandError",
    "get_logger",
    "setup_logging",
    "BaseMessage",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "ConversationTurn",
    "ERROR_MARKER",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDefinition",
    "ToolRegistry",
    "SchemaValidator",
]
