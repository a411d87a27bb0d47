from unittest.mock import AsyncMock, MagicMock

import pytest
from slack_sdk.errors import SlackApiError

from factories import listing, pod
from kube_assistant.agent import AgentLoop, AgentRunResult
from kube_assistant.builder import BUILDER_TEXT, CLOSED_TEXT, SessionKey
from kube_assistant.builder.render import (
    ACTION_SELECT,
    CANCEL_BUTTON,
    EXECUTE_BUTTON,
    NAMESPACE_SELECT,
    REPLICAS_BLOCK,
    REPLICAS_INPUT,
    RESOURCE_TYPE_SELECT,
)
from kube_assistant.chat import SlackHandlers, tools_footer
from kube_assistant.chat.handlers import BUILDER_UPDATE_FAILED, HEALTH_TEXT, HELP_TEXT
from kube_assistant.chat.history import THINKING_TEXT

CHANNEL = "C024BE91L"
ANCHOR = "1717171717.000100"


@pytest.fixture
def agent():
    agent = MagicMock(spec=AgentLoop)
    agent.run = AsyncMock(
        return_value=AgentRunResult(
            final_answer="api-7f9 was OOMKilled.", tools_used=("describe_pod", "get_events"), iterations=2
        )
    )
    return agent


@pytest.fixture
def handlers(agent, builder):
    return SlackHandlers(agent, builder, bot_user_id="U0BOT")


@pytest.fixture
def slack_client():
    client = AsyncMock()
    client.chat_postMessage.return_value = {"ok": True, "ts": "1717171800.000200"}
    return client


def _action_body(action_id, value=None, selected=None, state=None, thread_ts="1717171700.000001"):
    action = {"action_id": action_id}
    if selected is not None:
        action["selected_option"] = {"value": selected}
    if value is not None:
        action["value"] = value
    return {
        "channel": {"id": CHANNEL},
        "message": {"ts": ANCHOR, "thread_ts": thread_ts},
        "actions": [action],
        "state": {"values": state or {}},
    }


def test_tools_footer():
    assert tools_footer(("get_pods", "get_events"), 3.21) == "\n\n_Tools used: get_pods, get_events (3.2s)_"
    assert tools_footer((), 1.0) == ""


def test_register_wires_every_handler(handlers):
    app = MagicMock()

    handlers.register(app)

    events = {c.args[0] for c in app.event.call_args_list}
    actions = {c.args[0] for c in app.action.call_args_list}
    assert events == {"app_mention", "message"}
    assert {ACTION_SELECT, NAMESPACE_SELECT, RESOURCE_TYPE_SELECT, EXECUTE_BUTTON, CANCEL_BUTTON} <= actions
    app.command.assert_called_once_with("/kube-health")
    app.error.assert_called_once_with(handlers.handle_error)


class TestMentions:
    @pytest.mark.asyncio
    async def test_question_is_answered_in_place(self, handlers, agent, slack_client):
        event = {"channel": CHANNEL, "ts": "1717171700.000001", "text": "<@U0BOT> why is api crashing?"}

        await handlers.handle_mention(event, AsyncMock(), slack_client)

        slack_client.chat_postMessage.assert_awaited_once_with(
            channel=CHANNEL, text=THINKING_TEXT, thread_ts="1717171700.000001"
        )
        agent.run.assert_awaited_once_with("why is api crashing?", [])
        slack_client.conversations_replies.assert_not_called()
        update = slack_client.chat_update.await_args.kwargs
        assert update["ts"] == "1717171800.000200"
        assert update["text"].startswith("api-7f9 was OOMKilled.\n\n_Tools used: describe_pod, get_events (")

    @pytest.mark.asyncio
    async def test_thread_reply_uses_history(self, handlers, agent, slack_client):
        slack_client.conversations_replies.return_value = {
            "messages": [
                {"user": "U0ALICE", "text": "<@U0BOT> is api up?", "ts": "1.0"},
                {"bot_id": "B0BOT", "user": "U0BOT", "text": "Yes, 3/3 ready.", "ts": "1.1"},
                {"user": "U0ALICE", "text": "<@U0BOT> and the worker?", "ts": "1.2"},
            ]
        }
        event = {"channel": CHANNEL, "ts": "1.2", "thread_ts": "1.0", "text": "<@U0BOT> and the worker?"}

        await handlers.handle_mention(event, AsyncMock(), slack_client)

        question, history = agent.run.await_args.args
        assert question == "and the worker?"
        assert [m.content for m in history] == ["is api up?", "Yes, 3/3 ready."]
        assert slack_client.chat_postMessage.await_args.kwargs["thread_ts"] == "1.0"

    @pytest.mark.asyncio
    async def test_agent_failure_is_reported(self, handlers, agent, slack_client):
        agent.run.side_effect = RuntimeError("model unavailable")
        event = {"channel": CHANNEL, "ts": "1.0", "text": "<@U0BOT> status?"}

        await handlers.handle_mention(event, AsyncMock(), slack_client)

        text = slack_client.chat_update.await_args.kwargs["text"]
        assert text == "❌ Sorry, I encountered an error: model unavailable"

    @pytest.mark.asyncio
    async def test_empty_mention_shows_help(self, handlers, agent, slack_client):
        say = AsyncMock()

        await handlers.handle_mention({"channel": CHANNEL, "ts": "1.0", "text": "<@U0BOT>"}, say, slack_client)

        say.assert_awaited_once_with(text=HELP_TEXT, thread_ts="1.0")
        agent.run.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("keyword", ["command", "CMD"])
    async def test_keyword_opens_builder(self, handlers, builder, agent, slack_client, kube_apis, keyword):
        kube_apis.core.list_namespace.return_value = listing(pod("prod", namespace=None))
        event = {"channel": CHANNEL, "ts": "1.0", "text": f"<@U0BOT> {keyword}"}

        await handlers.handle_mention(event, AsyncMock(), slack_client)

        kwargs = slack_client.chat_postMessage.await_args.kwargs
        assert kwargs["text"] == BUILDER_TEXT
        assert kwargs["thread_ts"] == "1.0"
        assert SessionKey(CHANNEL, "1717171800.000200") in builder.store
        agent.run.assert_not_called()


class TestDirectMessages:
    @pytest.mark.asyncio
    async def test_direct_message_is_answered(self, handlers, agent, slack_client):
        event = {"channel": "D1", "channel_type": "im", "ts": "1.0", "text": "list failing pods"}

        await handlers.handle_direct_message(event, slack_client)

        agent.run.assert_awaited_once_with("list failing pods", [])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "event",
        [
            {"channel": "C1", "channel_type": "channel", "ts": "1.0", "text": "hello"},
            {"channel": "D1", "channel_type": "im", "ts": "1.0", "text": "edited", "subtype": "message_changed"},
            {"channel": "D1", "channel_type": "im", "ts": "1.0", "text": "   "},
        ],
    )
    async def test_other_messages_are_ignored(self, handlers, agent, slack_client, event):
        await handlers.handle_direct_message(event, slack_client)

        agent.run.assert_not_called()
        slack_client.chat_postMessage.assert_not_called()


class TestBuilderInteractions:
    @pytest.mark.asyncio
    async def test_selection_rerenders_builder(self, handlers, builder, slack_client, kube_apis):
        kube_apis.core.list_namespace.return_value = listing(pod("prod", namespace=None))
        ack = AsyncMock()

        await handlers.handle_action_select(ack, _action_body(ACTION_SELECT, selected="delete"), slack_client)

        ack.assert_awaited_once()
        update = slack_client.chat_update.await_args.kwargs
        assert update["channel"] == CHANNEL
        assert update["ts"] == ANCHOR
        assert any("WRITE operation" in str(block) for block in update["blocks"])
        assert builder.store.get(SessionKey(CHANNEL, ANCHOR)).pending_confirmation is True

    @pytest.mark.asyncio
    async def test_invalid_selection_posts_warning(self, handlers, slack_client):
        await handlers.handle_resource_type_select(
            AsyncMock(), _action_body(RESOURCE_TYPE_SELECT, selected="crds"), slack_client
        )

        kwargs = slack_client.chat_postMessage.await_args.kwargs
        assert kwargs["text"].startswith("⚠️ Unknown resource type")
        assert kwargs["thread_ts"] == "1717171700.000001"
        slack_client.chat_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_rerender_posts_warning(self, handlers, builder, slack_client):
        slack_client.chat_update.side_effect = SlackApiError(
            "invalid_blocks", {"ok": False, "error": "invalid_blocks"}
        )

        await handlers.handle_resource_type_select(
            AsyncMock(), _action_body(RESOURCE_TYPE_SELECT, selected="pods"), slack_client
        )

        kwargs = slack_client.chat_postMessage.await_args.kwargs
        assert kwargs["text"] == f"{BUILDER_UPDATE_FAILED} (invalid_blocks)"
        assert kwargs["thread_ts"] == "1717171700.000001"
        assert builder.store.get(SessionKey(CHANNEL, ANCHOR)).resource_type.value == "pods"

    @pytest.mark.asyncio
    async def test_execute_incomplete_posts_warning(self, handlers, slack_client, kube_apis):
        await handlers.handle_execute(AsyncMock(), _action_body(EXECUTE_BUTTON), slack_client)

        assert slack_client.chat_postMessage.await_args.kwargs["text"] == (
            "⚠️ Please select at least an action, namespace, and resource type."
        )
        kube_apis.core.delete_namespaced_pod.assert_not_called()

    @pytest.mark.asyncio
    async def test_execute_delete_posts_outcome(self, handlers, builder, slack_client, kube_apis):
        key = SessionKey(CHANNEL, ANCHOR)
        builder.select_action(key, "delete")
        builder.select_namespace(key, "prod")
        builder.select_resource_type(key, "pods")
        builder.select_resource_name(key, "api-7f9")

        await handlers.handle_execute(AsyncMock(), _action_body(EXECUTE_BUTTON), slack_client)

        kube_apis.core.delete_namespaced_pod.assert_called_once_with("api-7f9", "prod")
        text = slack_client.chat_postMessage.await_args.kwargs["text"]
        assert text.startswith("⚠️ *[WRITE]* *Command:* `kubectl delete pods api-7f9 -n prod`")
        assert "Pod api-7f9 deleted from prod" in text
        assert key not in builder.store

    @pytest.mark.asyncio
    async def test_execute_scale_reads_replicas_from_state(self, handlers, builder, slack_client, kube_apis):
        key = SessionKey(CHANNEL, ANCHOR)
        builder.select_action(key, "scale")
        builder.select_namespace(key, "prod")
        builder.select_resource_type(key, "deployments")
        builder.select_resource_name(key, "api")
        state = {REPLICAS_BLOCK: {REPLICAS_INPUT: {"type": "number_input", "value": "5"}}}

        await handlers.handle_execute(AsyncMock(), _action_body(EXECUTE_BUTTON, state=state), slack_client)

        kube_apis.apps.patch_namespaced_deployment.assert_called_once_with("api", "prod", {"spec": {"replicas": 5}})

    @pytest.mark.asyncio
    async def test_replicas_input_updates_session(self, handlers, builder, slack_client):
        key = SessionKey(CHANNEL, ANCHOR)
        builder.select_action(key, "scale")

        await handlers.handle_replicas_input(AsyncMock(), _action_body(REPLICAS_INPUT, value="2"), slack_client)

        assert builder.store.get(key).scale_replicas == 2
        slack_client.chat_update.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancel_closes_builder(self, handlers, builder, slack_client):
        key = SessionKey(CHANNEL, ANCHOR)
        builder.open(key)

        await handlers.handle_cancel(AsyncMock(), _action_body(CANCEL_BUTTON), slack_client)

        slack_client.chat_update.assert_awaited_once_with(channel=CHANNEL, ts=ANCHOR, text=CLOSED_TEXT, blocks=[])
        assert key not in builder.store

    @pytest.mark.asyncio
    async def test_body_without_message_is_ignored(self, handlers, slack_client):
        body = {"channel": {"id": CHANNEL}, "actions": [{"action_id": EXECUTE_BUTTON}]}

        await handlers.handle_execute(AsyncMock(), body, slack_client)

        slack_client.chat_postMessage.assert_not_called()


@pytest.mark.asyncio
async def test_health_command(handlers):
    ack, respond = AsyncMock(), AsyncMock()

    await handlers.handle_health(ack, respond)

    ack.assert_awaited_once()
    respond.assert_awaited_once_with(text=HEALTH_TEXT, response_type="ephemeral")
