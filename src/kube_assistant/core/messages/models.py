"""Provider-agnostic message models for the agent conversation."""

from abc import ABC
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..tools.call_protocol import ToolCallRequest

Role = Literal["system", "user", "assistant", "tool"]


class BaseMessage(ABC, BaseModel):
    """Base model for messages exchanged with the model backend.

    Attributes:
        role: Role associated with the message.
        content: Text payload of the message.
    """

    role: Role
    content: str


class SystemMessage(BaseMessage):
    """Message authored by the system to steer behavior."""

    role: Literal["system"] = "system"


class UserMessage(BaseMessage):
    """Message authored by an operator in the chat."""

    role: Literal["user"] = "user"


class AssistantMessage(BaseMessage):
    """Message authored by the assistant, optionally requesting tool calls."""

    role: Literal["assistant"] = "assistant"
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)


class ToolMessage(BaseMessage):
    """Result of one tool invocation, tagged with the call it answers."""

    role: Literal["tool"] = "tool"
    tool_call_id: Optional[str] = None
    name: str


# Prior thread turns are only ever user or assistant messages.
ConversationTurn = UserMessage | AssistantMessage
