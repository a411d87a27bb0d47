"""Rebuilds earlier thread messages into conversation turns for the agent."""

import asyncio
import re
from typing import Any, Iterable, List, Mapping, Optional

from aiohttp import ClientError
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from ..core.logger import get_logger
from ..core.messages import AssistantMessage, ConversationTurn, UserMessage

logger = get_logger(__name__)

THINKING_TEXT = "🔍 Looking into it..."
THREAD_HISTORY_LIMIT = 20
THREAD_PAGE_SIZE = 200

_MENTION = re.compile(r"<@[A-Z0-9]+>")
_TOOLS_USED_SUFFIX = re.compile(r"\n\n_Tools used:.*$", re.DOTALL)


def clean_text(text: str) -> str:
    """Strip user mentions and the tools-used footer from a message."""
    return _TOOLS_USED_SUFFIX.sub("", _MENTION.sub("", text)).strip()


def messages_to_turns(messages: Iterable[Mapping[str, Any]], bot_user_id: str) -> List[ConversationTurn]:
    """
    Convert raw Slack thread messages (oldest first) into conversation turns.

    Placeholder messages and messages that are empty after cleaning are
    skipped. Anything posted by a bot, or by our own user, is an assistant turn.
    """
    turns: List[ConversationTurn] = []
    for message in messages:
        text = message.get("text")
        if not text or text == THINKING_TEXT:
            continue

        content = clean_text(text)
        if not content:
            continue

        if message.get("bot_id") or message.get("user") == bot_user_id:
            turns.append(AssistantMessage(content=content))
        else:
            turns.append(UserMessage(content=content))
    return turns


class ConversationHistoryBuilder:
    """Fetches a thread and turns it into history for the agent loop."""

    def __init__(self, client: AsyncWebClient, bot_user_id: str):
        self.client = client
        self.bot_user_id = bot_user_id

    async def build_history(
        self, channel: str, thread_ts: str, exclude_ts: Optional[str] = None
    ) -> List[ConversationTurn]:
        """
        Turns of the thread rooted at ``thread_ts``, oldest first.

        Slack serves replies oldest first, so every page is read and only the
        newest ``THREAD_HISTORY_LIMIT`` turns are kept. A failed fetch
        yields an empty history.

        Args:
            channel: Channel holding the thread.
            thread_ts: Timestamp of the thread's parent message.
            exclude_ts: Timestamp of the message being answered; it is left out.
        """
        messages: List[Mapping[str, Any]] = []
        cursor: Optional[str] = None
        try:
            while True:
                response = await self.client.conversations_replies(
                    channel=channel, ts=thread_ts, limit=THREAD_PAGE_SIZE, cursor=cursor
                )
                messages.extend(response.get("messages") or [])
                cursor = (response.get("response_metadata") or {}).get("next_cursor")
                if not response.get("has_more") or not cursor:
                    break
        except SlackApiError as exc:
            logger.error(f"Failed to fetch thread history: {exc.response.get('error', exc)}")
            return []
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.error(f"Failed to fetch thread history: {exc}")
            return []

        prior = [message for message in messages if exclude_ts is None or message.get("ts") != exclude_ts]
        return messages_to_turns(prior, self.bot_user_id)[-THREAD_HISTORY_LIMIT:]
