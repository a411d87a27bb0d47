from .machine import CommandBuilder, CommandOutcome, truncate_output
from .models import Action, CommandBuilderSession, ResourceType, SessionKey
from .render import BUILDER_TEXT, CLOSED_TEXT, build_builder_blocks, render_outcome
from .store import SessionStore

__all__ = [
    "CommandBuilder",
    "CommandOutcome",
    "truncate_output",
    "Action",
    "CommandBuilderSession",
    "ResourceType",
    "SessionKey",
    "BUILDER_TEXT",
    "CLOSED_TEXT",
    "build_builder_blocks",
    "render_outcome",
    "SessionStore",
]
