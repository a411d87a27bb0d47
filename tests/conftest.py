from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import find_dotenv, load_dotenv
from kubernetes import client as k8s
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from kube_assistant.builder import CommandBuilder
from kube_assistant.cluster import ClusterReader, ClusterWriter, KubeApis

# Tests never talk to a real cluster or model, but a local .env may still
# carry settings such as LOG_LEVEL.
env_file = find_dotenv()
if env_file:
    load_dotenv(env_file)


@pytest.fixture
def kube_apis() -> KubeApis:
    """API groups backed by spec'd mocks; tests set return values per call."""
    return KubeApis(
        core=MagicMock(spec=k8s.CoreV1Api),
        apps=MagicMock(spec=k8s.AppsV1Api),
        networking=MagicMock(spec=k8s.NetworkingV1Api),
        autoscaling=MagicMock(spec=k8s.AutoscalingV1Api),
        batch=MagicMock(spec=k8s.BatchV1Api),
        custom=MagicMock(spec=k8s.CustomObjectsApi),
    )


@pytest.fixture
def reader(kube_apis: KubeApis) -> ClusterReader:
    return ClusterReader(kube_apis)


@pytest.fixture
def writer(kube_apis: KubeApis) -> ClusterWriter:
    return ClusterWriter(kube_apis)


@pytest.fixture
def builder(reader: ClusterReader, writer: ClusterWriter) -> CommandBuilder:
    return CommandBuilder(reader, writer, fallback_namespaces=["services-prod", "argocd"])


@pytest.fixture
def mock_openai_client() -> MagicMock:
    client = MagicMock(spec=AsyncOpenAI)
    client.chat = MagicMock()
    client.chat.completions = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def make_completion() -> Callable[..., ChatCompletion]:
    """Factory for chat completions carrying text and/or function tool calls.

    ``tool_calls`` is a list of ``(call_id, name, arguments_json)`` tuples.
    """

    def factory(content: Optional[str] = None, tool_calls: Optional[List[tuple]] = None) -> ChatCompletion:
        message: Dict[str, Any] = {"role": "assistant", "content": content}
        if tool_calls:
            message["tool_calls"] = [
                {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}
                for call_id, name, arguments in tool_calls
            ]
        return ChatCompletion.model_validate(
            {
                "id": "chatcmpl-test",
                "object": "chat.completion",
                "created": 0,
                "model": "gpt-4o",
                "choices": [
                    {
                        "index": 0,
                        "finish_reason": "tool_calls" if tool_calls else "stop",
                        "message": message,
                    }
                ],
            }
        )

    return factory
