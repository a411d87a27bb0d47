from .loop import AgentLoop, AgentRunResult, ITERATION_LIMIT_ANSWER, MAX_ITERATIONS
from .prompts import SYSTEM_PROMPT, build_system_prompt
from .tools import ReadTools, ToolName, build_read_registry

__all__ = [
    "AgentLoop",
    "AgentRunResult",
    "ITERATION_LIMIT_ANSWER",
    "MAX_ITERATIONS",
    "SYSTEM_PROMPT",
    "build_system_prompt",
    "ReadTools",
    "ToolName",
    "build_read_registry",
]
