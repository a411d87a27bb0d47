import pytest
from unittest.mock import AsyncMock, patch
from typing import Any, Sequence

from kube_assistant.core.base import ModelBackend, ModelReply
from kube_assistant.core.messages import BaseMessage, UserMessage
from kube_assistant.llm import OpenAIBackend


# Mock implementation for testing ModelBackend retry logic
class MockBackend(ModelBackend[str]):
    def __init__(self, max_retries: int = 3, base_retry_delay: float = 0.01):
        super().__init__(max_retries=max_retries, base_retry_delay=base_retry_delay)
        self.complete_impl_mock = AsyncMock()

    async def _complete_impl(self, messages: Sequence[BaseMessage], tools: Any) -> ModelReply[str]:
        return await self.complete_impl_mock(messages, tools)


@pytest.mark.asyncio
async def test_initialization():
    backend = MockBackend(max_retries=5, base_retry_delay=2.0)
    assert backend.max_retries == 5
    assert backend.base_retry_delay == 2.0


@pytest.mark.asyncio
async def test_complete_happy_path():
    backend = MockBackend()
    expected = ModelReply(content="Success", raw="raw")
    backend.complete_impl_mock.return_value = expected

    messages = [UserMessage(content="hello")]
    result = await backend.complete(messages, None)

    assert result == expected
    backend.complete_impl_mock.assert_awaited_once_with(messages, None)


@pytest.mark.asyncio
async def test_complete_retry_success():
    backend = MockBackend(max_retries=3)
    expected = ModelReply(content="Success", raw="raw")

    # Fail twice, then succeed
    backend.complete_impl_mock.side_effect = [Exception("Fail 1"), Exception("Fail 2"), expected]

    result = await backend.complete([], None)
    assert result == expected
    assert backend.complete_impl_mock.call_count == 3


@pytest.mark.asyncio
async def test_complete_failure_capture():
    """The last exception propagates once retries are exhausted."""
    backend = MockBackend(max_retries=2)
    backend.complete_impl_mock.side_effect = Exception("Persistent Failure")

    with pytest.raises(Exception, match="Persistent Failure"):
        await backend.complete([], None)

    # Initial call + 2 retries = 3 calls
    assert backend.complete_impl_mock.call_count == 3


@pytest.mark.asyncio
async def test_zero_retries():
    backend = MockBackend(max_retries=0)
    backend.complete_impl_mock.side_effect = Exception("Fail immediately")

    with pytest.raises(Exception, match="Fail immediately"):
        await backend.complete([], None)

    assert backend.complete_impl_mock.call_count == 1


@pytest.mark.asyncio
async def test_backoff_doubles_delay():
    backend = MockBackend(max_retries=2, base_retry_delay=0.5)
    backend.complete_impl_mock.side_effect = [Exception("a"), Exception("b"), ModelReply(content="ok")]

    with patch("kube_assistant.core.base.base.asyncio.sleep", new=AsyncMock()) as sleep:
        await backend.complete([], None)

    assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]


@pytest.mark.asyncio
async def test_openai_retry_integration(mock_openai_client):
    backend = OpenAIBackend(client=mock_openai_client, model_name="test-model", max_retries=2, base_retry_delay=0.01)

    with patch.object(
        backend,
        "_complete_impl",
        side_effect=[Exception("OpenAI Fail"), ModelReply(content="Recovered")],
    ) as mock_impl:
        result = await backend.complete([UserMessage(content="test")], None)

        assert result.content == "Recovered"
        assert mock_impl.call_count == 2
