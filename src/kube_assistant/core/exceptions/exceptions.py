"""
Exception classes for kube-assistant.

Tool errors cover registration, validation and execution of the read-only
tools handed to the model. Command builder errors are user input problems
that end up as a warning in the chat thread, never as a crash.
"""


class KubeAssistantError(Exception):
    """Base exception for all kube-assistant errors."""

    pass


class ConfigurationError(KubeAssistantError):
    """Raised when the environment does not describe a usable configuration."""

    pass


class LLMToolError(KubeAssistantError):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(LLMToolError):
    """Raised when there is an error registering a tool."""

    pass


class ToolNotFoundError(LLMToolError):
    """Raised when a requested tool is not found in the registry."""

    pass


class ToolExecutionError(LLMToolError):
    """Raised when a tool fails during execution."""

    pass


class ToolValidationError(LLMToolError):
    """Raised when tool parameters or definition are invalid."""

    pass


class ModelResponseError(KubeAssistantError):
    """Raised when the model backend returns no usable message."""

    pass


class CommandBuilderError(KubeAssistantError):
    """Base exception for command builder input problems."""

    pass


class InvalidSelectionError(CommandBuilderError):
    """Raised when a selection event carries a value outside the known options."""

    pass


class IncompleteCommandError(CommandBuilderError):
    """Raised when execute is pressed before the command is fully specified."""

    pass


class ClusterError(KubeAssistantError):
    """Raised when a call to the Kubernetes API fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
