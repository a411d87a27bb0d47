"""Conversation message models."""

from .models import BaseMessage, SystemMessage, UserMessage, AssistantMessage, ToolMessage, ConversationTurn

__all__ = ["BaseMessage", "SystemMessage", "UserMessage", "AssistantMessage", "ToolMessage", "ConversationTurn"]
