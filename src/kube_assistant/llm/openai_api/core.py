import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, cast

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from kube_assistant.core.base import ModelBackend, ModelReply
from kube_assistant.core.exceptions import ModelResponseError
from kube_assistant.core.logger import get_logger
from kube_assistant.core.messages import (
    AssistantMessage,
    BaseMessage,
    SystemMessage,
    ToolMessage,
    UserMessage,
)
from kube_assistant.core.tools import ToolCallRequest

logger = get_logger(__name__)


class OpenAIBackend(ModelBackend[ChatCompletion]):
    """
    Model backend on top of OpenAI chat completions with function calling.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: str,
        temp: Optional[float] = None,
        max_tokens: Optional[int] = None,
        max_retries: int = 2,
        base_retry_delay: float = 1.0,
    ):
        """
        Initializes the backend.

        Args:
            client: The initialized AsyncOpenAI client.
            model_name: The OpenAI model to use (e.g., 'gpt-4o').
            temp: Optional sampling temperature. Left to the API default when None.
            max_tokens: Optional completion token cap.
            max_retries: Retries on API errors before the error propagates.
            base_retry_delay: First backoff delay in seconds.
        """
        super().__init__(max_retries=max_retries, base_retry_delay=base_retry_delay)
        self.client: AsyncOpenAI = client
        self.model: str = model_name
        self.temperature = temp
        self.max_tokens = max_tokens

    async def _complete_impl(self, messages: Sequence[BaseMessage], tools: Any) -> ModelReply[ChatCompletion]:
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": cast(Iterable[Any], self._convert_history(messages)),
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"
        if self.temperature is not None:
            request["temperature"] = self.temperature
        if self.max_tokens is not None:
            request["max_tokens"] = self.max_tokens

        response = await self.client.chat.completions.create(**request)

        if not response.choices or response.choices[0].message is None:
            raise ModelResponseError("No response from OpenAI")

        message = response.choices[0].message
        return ModelReply(content=message.content, tool_calls=self._extract_tool_calls(response), raw=response)

    @staticmethod
    def _extract_tool_calls(response: ChatCompletion) -> List[ToolCallRequest]:
        """Pull function tool calls out of a chat completion.

        Args:
            response: The chat completion response from OpenAI.

        Returns:
            The requested tool calls, in the order the model listed them.
        """
        tool_calls = response.choices[0].message.tool_calls
        if not tool_calls:
            return []

        requests = []
        for tool_call in tool_calls:
            if tool_call.type == "function":
                requests.append(
                    ToolCallRequest(
                        name=tool_call.function.name,
                        arguments=tool_call.function.arguments,
                        call_id=tool_call.id,
                    )
                )
        return requests

    @staticmethod
    def _convert_history(history: Sequence[BaseMessage]) -> List[Dict[str, Any]]:
        """
        Converts provider-agnostic messages to OpenAI message dictionaries.

        Args:
            history: List of BaseMessage objects.

        Returns:
            List of OpenAI message dictionaries.
        """
        openai_history: List[Dict[str, Any]] = []
        for msg in history:
            if isinstance(msg, SystemMessage):
                openai_history.append({"role": "system", "content": msg.content})
            elif isinstance(msg, UserMessage):
                openai_history.append({"role": "user", "content": msg.content})
            elif isinstance(msg, AssistantMessage):
                openai_msg: Dict[str, Any] = {"role": "assistant", "content": msg.content}
                if msg.tool_calls:
                    openai_msg["content"] = msg.content or None
                    openai_msg["tool_calls"] = [
                        {
                            "id": call.call_id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": call.arguments
                                if isinstance(call.arguments, str)
                                else json.dumps(call.arguments or {}),
                            },
                        }
                        for call in msg.tool_calls
                    ]
                openai_history.append(openai_msg)
            elif isinstance(msg, ToolMessage):
                openai_history.append({"role": "tool", "content": msg.content, "tool_call_id": msg.tool_call_id})
        return openai_history
