import asyncio
from unittest.mock import AsyncMock

import pytest
from aiohttp import ClientError
from slack_sdk.errors import SlackApiError

from kube_assistant.chat import ConversationHistoryBuilder, clean_text, messages_to_turns
from kube_assistant.chat.history import THINKING_TEXT, THREAD_HISTORY_LIMIT, THREAD_PAGE_SIZE
from kube_assistant.core.messages import AssistantMessage, UserMessage

BOT_USER = "U0BOT"


def test_clean_text_strips_mentions_and_footer():
    text = "<@U0BOT> api has 12 restarts\n\n_Tools used: get_pods, get_events (3.2s)_"

    assert clean_text(text) == "api has 12 restarts"
    assert clean_text("  <@U0BOT>  ") == ""


def test_messages_to_turns_assigns_roles():
    messages = [
        {"user": "U0ALICE", "text": "<@U0BOT> why is api crashing?", "ts": "1.0"},
        {"bot_id": "B0BOT", "user": BOT_USER, "text": THINKING_TEXT, "ts": "1.1"},
        {"bot_id": "B0BOT", "user": BOT_USER, "text": "OOMKilled.\n\n_Tools used: describe_pod (1.0s)_", "ts": "1.2"},
        {"user": BOT_USER, "text": "posted without bot_id", "ts": "1.3"},
        {"user": "U0ALICE", "text": "", "ts": "1.4"},
        {"user": "U0ALICE", "text": "<@U0BOT>", "ts": "1.5"},
        {"user": "U0BOB", "text": "raise the limit?", "ts": "1.6"},
    ]

    turns = messages_to_turns(messages, BOT_USER)

    assert [type(t) for t in turns] == [UserMessage, AssistantMessage, AssistantMessage, UserMessage]
    assert [t.content for t in turns] == [
        "why is api crashing?",
        "OOMKilled.",
        "posted without bot_id",
        "raise the limit?",
    ]


@pytest.mark.asyncio
async def test_build_history_fetches_thread():
    client = AsyncMock()
    client.conversations_replies.return_value = {
        "messages": [
            {"user": "U0ALICE", "text": "<@U0BOT> is api up?", "ts": "1.0"},
            {"bot_id": "B0BOT", "text": "Yes, 3/3 ready.", "ts": "1.1"},
        ]
    }

    turns = await ConversationHistoryBuilder(client, BOT_USER).build_history("C1", "1.0")

    client.conversations_replies.assert_awaited_once_with(channel="C1", ts="1.0", limit=THREAD_PAGE_SIZE, cursor=None)
    assert [t.content for t in turns] == ["is api up?", "Yes, 3/3 ready."]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        SlackApiError("not_in_channel", {"ok": False, "error": "not_in_channel"}),
        ClientError("connection reset"),
        asyncio.TimeoutError(),
    ],
)
async def test_build_history_failure_yields_empty(error):
    client = AsyncMock()
    client.conversations_replies.side_effect = error

    assert await ConversationHistoryBuilder(client, BOT_USER).build_history("C1", "1.0") == []


def _paged_replies(messages, page_size):
    """Serves ``messages`` oldest first, ``page_size`` at a time, the way Slack pages a thread."""

    async def conversations_replies(channel, ts, limit, cursor=None):
        start = int(cursor or 0)
        end = start + page_size
        has_more = end < len(messages)
        return {
            "messages": messages[start:end],
            "has_more": has_more,
            "response_metadata": {"next_cursor": str(end) if has_more else ""},
        }

    return AsyncMock(side_effect=conversations_replies)


@pytest.mark.asyncio
async def test_long_thread_is_read_to_the_end():
    thread = [{"user": "U0ALICE", "text": f"msg {i}", "ts": f"1.{i:03d}"} for i in range(25)]
    client = AsyncMock()
    client.conversations_replies = _paged_replies(thread, page_size=10)

    turns = await ConversationHistoryBuilder(client, BOT_USER).build_history("C1", "1.000", exclude_ts="1.024")

    assert client.conversations_replies.await_count == 3
    assert client.conversations_replies.await_args_list[1].kwargs["cursor"] == "10"
    assert len(turns) == THREAD_HISTORY_LIMIT
    assert turns[-1].content == "msg 23"
    assert turns[0].content == "msg 4"


@pytest.mark.asyncio
async def test_only_the_answered_message_is_excluded():
    thread = [
        {"user": "U0ALICE", "text": "<@U0BOT> is api up?", "ts": "1.0"},
        {"user": "U0ALICE", "text": "<@U0BOT> and the worker?", "ts": "1.2"},
        {"bot_id": "B0BOT", "text": "Yes, 3/3 ready.", "ts": "1.1"},
    ]
    client = AsyncMock()
    client.conversations_replies.return_value = {"messages": thread}

    turns = await ConversationHistoryBuilder(client, BOT_USER).build_history("C1", "1.0", exclude_ts="1.2")

    assert [t.content for t in turns] == ["is api up?", "Yes, 3/3 ready."]


@pytest.mark.asyncio
async def test_failure_on_a_later_page_yields_empty():
    client = AsyncMock()
    client.conversations_replies.side_effect = [
        {
            "messages": [{"user": "U0ALICE", "text": "first", "ts": "1.0"}],
            "has_more": True,
            "response_metadata": {"next_cursor": "abc"},
        },
        SlackApiError("ratelimited", {"ok": False, "error": "ratelimited"}),
    ]

    assert await ConversationHistoryBuilder(client, BOT_USER).build_history("C1", "1.0") == []
