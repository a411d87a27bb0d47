"""Core abstraction for the model backend."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Coroutine, Generic, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..logger import get_logger
from ..messages import BaseMessage
from ..tools import ToolCallRequest

logger = get_logger(__name__)

ProviderResT = TypeVar("ProviderResT")


class ModelReply(BaseModel, Generic[ProviderResT]):
    """Normalized output of one backend call.

    Attributes:
        content: Text returned by the model, if any.
        tool_calls: Tool invocations requested by the model.
        raw: Provider-specific response payload.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: Optional[str] = None
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)
    raw: Optional[ProviderResT] = None


class ModelBackend(ABC, Generic[ProviderResT]):
    """Abstract request/response model backend with retry.

    One ``complete`` call takes the whole conversation (system instruction
    first) and the declared tools, and returns either text or tool calls.
    """

    def __init__(self, max_retries: int = 2, base_retry_delay: float = 1.0):
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay

    async def _execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, ModelReply[ProviderResT]]],
        *args: Any,
        **kwargs: Any,
    ) -> ModelReply[ProviderResT]:
        """
        Executes a backend call with exponential backoff.

        Raises:
            Exception: The last encountered exception if all retries fail.
        """
        delay = self.base_retry_delay
        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if attempt == self.max_retries:
                    raise

                logger.warning(f"Model API error (retry {attempt + 1}/{self.max_retries}): {e}. Waiting {delay}s...")
                await asyncio.sleep(delay)
                delay *= 2

        msg = f"Failed to get response after {self.max_retries} retries."
        logger.error(msg)
        raise TimeoutError(msg)

    async def complete(self, messages: Sequence[BaseMessage], tools: Any) -> ModelReply[ProviderResT]:
        """
        Sends the conversation to the model once.

        Args:
            messages: The full working conversation, system instruction first.
            tools: Provider-specific tool declarations.

        Returns:
            The normalized reply.
        """
        return await self._execute_with_retry(self._complete_impl, messages, tools)

    @abstractmethod
    async def _complete_impl(self, messages: Sequence[BaseMessage], tools: Any) -> ModelReply[ProviderResT]:
        pass
