"""Custom exceptions for kube-assistant."""

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

__all__ = [
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
]
