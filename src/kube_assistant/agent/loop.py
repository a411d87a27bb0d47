"""Bounded tool-calling loop that answers one operator question."""

import asyncio
from typing import Any, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from ..core.base import ModelBackend
from ..core.logger import get_logger
from ..core.messages import (
    AssistantMessage,
    BaseMessage,
    ConversationTurn,
    SystemMessage,
    ToolMessage,
    UserMessage,
)
from ..core.tools import ToolCallResult, ToolRegistry

logger = get_logger(__name__)

MAX_ITERATIONS = 10

EMPTY_ANSWER = "I was unable to analyze this issue."
ITERATION_LIMIT_ANSWER = (
    "⚠️ I've gathered a lot of information but reached my analysis limit. "
    "Here's what I found so far - please ask a more specific question if you need more details."
)


class AgentRunResult(BaseModel):
    """Outcome of one question.

    Attributes:
        final_answer: Text to post back to the operator.
        tools_used: Distinct tool names invoked, in order of first use.
        iterations: Number of backend calls made.
    """

    model_config = ConfigDict(frozen=True)

    final_answer: str
    tools_used: Tuple[str, ...] = ()
    iterations: int = 0


class AgentLoop:
    """
    Drives a model backend and a tool registry until the model answers in text.

    Each iteration makes exactly one backend call. Tool calls requested in the
    same turn run concurrently and all of them settle before the next call.
    Tool failures come back to the model as error text; only a failed backend
    call ends the run with an exception.
    """

    def __init__(
        self,
        backend: ModelBackend[Any],
        registry: ToolRegistry,
        system_instruction: str,
        max_iterations: int = MAX_ITERATIONS,
    ):
        """
        Args:
            backend: Model backend used for every turn.
            registry: Tools offered to the model.
            system_instruction: First message of every conversation.
            max_iterations: Upper bound on backend calls per question.
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.backend = backend
        self.registry = registry
        self.system_instruction = system_instruction
        self.max_iterations = max_iterations

    async def run(self, question: str, prior_history: Sequence[ConversationTurn] = ()) -> AgentRunResult:
        """
        Answer ``question`` given the earlier turns of the thread.

        Args:
            question: The operator's new message.
            prior_history: Earlier thread turns, oldest first.

        Returns:
            The final answer, or the analysis-limit notice once the bound is hit.

        Raises:
            ModelResponseError: If the backend returns no usable response.
        """
        messages: List[BaseMessage] = [SystemMessage(content=self.system_instruction)]
        messages.extend(prior_history)
        messages.append(UserMessage(content=question))

        tools = self.registry.tool_object
        tools_used: List[str] = []

        for iteration in range(1, self.max_iterations + 1):
            reply = await self.backend.complete(messages, tools)
            messages.append(AssistantMessage(content=reply.content or "", tool_calls=reply.tool_calls))

            if not reply.tool_calls:
                logger.info(f"Agent finished after {iteration} iteration(s)")
                return AgentRunResult(
                    final_answer=reply.content or EMPTY_ANSWER,
                    tools_used=tuple(tools_used),
                    iterations=iteration,
                )

            logger.info(
                f"Iteration {iteration}/{self.max_iterations}: calling "
                f"{', '.join(call.name for call in reply.tool_calls)}"
            )
            results: List[ToolCallResult] = await asyncio.gather(
                *(self.registry.invoke(call.name, call.arguments, call.call_id) for call in reply.tool_calls)
            )

            for result in results:
                if result.name not in tools_used:
                    tools_used.append(result.name)
                messages.append(ToolMessage(content=result.content, tool_call_id=result.call_id, name=result.name))

        logger.warning(f"Agent reached the iteration limit ({self.max_iterations})")
        return AgentRunResult(
            final_answer=ITERATION_LIMIT_ANSWER,
            tools_used=tuple(tools_used),
            iterations=self.max_iterations,
        )
