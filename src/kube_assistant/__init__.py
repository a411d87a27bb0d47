"""Kubernetes operations assistant for Slack.

Two paths into the cluster: a read-only diagnostic agent driven by a language
model, and an interactive command builder that can also run confirmed writes.
"""

from .agent import AgentLoop, AgentRunResult, build_read_registry
from .builder import CommandBuilder, CommandOutcome, SessionKey
from .cluster import ClusterReader, ClusterWriter, KubeApis
from .config import Settings, load_settings
from .llm import OpenAIBackend, OpenAIToolRegistry

__version__ = "0.1.0"

__all__ = [
    "AgentLoop",
    "AgentRunResult",
    "build_read_registry",
    "CommandBuilder",
    "CommandOutcome",
    "SessionKey",
    "ClusterReader",
    "ClusterWriter",
    "KubeApis",
    "Settings",
    "load_settings",
    "OpenAIBackend",
    "OpenAIToolRegistry",
]
