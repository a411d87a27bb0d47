"""Slack event and interaction handlers.

Every Slack delivery is handled independently: a failure while handling one
event is logged and reported in the same thread, never raised to Bolt.
"""

import time
from typing import Any, Callable, Dict, Optional, Sequence

from slack_bolt.async_app import AsyncApp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from .history import THINKING_TEXT, ConversationHistoryBuilder, clean_text
from ..agent import AgentLoop
from ..builder import (
    BUILDER_TEXT,
    CLOSED_TEXT,
    CommandBuilder,
    CommandBuilderSession,
    SessionKey,
    build_builder_blocks,
    render_outcome,
)
from ..builder.render import (
    ACTION_SELECT,
    CANCEL_BUTTON,
    EXECUTE_BUTTON,
    NAMESPACE_SELECT,
    REPLICAS_BLOCK,
    REPLICAS_INPUT,
    RESOURCE_NAME_SELECT,
    RESOURCE_TYPE_SELECT,
)
from ..core.exceptions import CommandBuilderError
from ..core.logger import get_logger

logger = get_logger(__name__)

BUILDER_KEYWORDS = {"command", "cmd"}
HEALTH_COMMAND = "/kube-health"

HELP_TEXT = (
    "👋 Hey! Ask me anything about the Kubernetes cluster and I'll investigate for you.\n\n"
    "Commands:\n"
    "• `@bot command` - Open the interactive command builder\n"
    "• `@bot <question>` - Ask a question in natural language"
)
HEALTH_TEXT = "✅ Kube-bot is running and ready to help!"
BUILDER_UPDATE_FAILED = "⚠️ Could not update the command builder. Please open a new one with `@bot command`."


def tools_footer(tools_used: Sequence[str], duration: float) -> str:
    if not tools_used:
        return ""
    return f"\n\n_Tools used: {', '.join(tools_used)} ({duration:.1f}s)_"


class SlackHandlers:
    """
    Wires the agent loop and the command builder to Slack.

    Args:
        agent: Loop that answers free-form questions.
        builder: Command builder state machine.
        bot_user_id: Our own Slack user id; resolved lazily when not given.
    """

    def __init__(self, agent: AgentLoop, builder: CommandBuilder, bot_user_id: Optional[str] = None):
        self.agent = agent
        self.builder = builder
        self.bot_user_id = bot_user_id

    def register(self, app: AsyncApp) -> None:
        app.event("app_mention")(self.handle_mention)
        app.event("message")(self.handle_direct_message)
        app.action(ACTION_SELECT)(self.handle_action_select)
        app.action(NAMESPACE_SELECT)(self.handle_namespace_select)
        app.action(RESOURCE_TYPE_SELECT)(self.handle_resource_type_select)
        app.action(RESOURCE_NAME_SELECT)(self.handle_resource_name_select)
        app.action(REPLICAS_INPUT)(self.handle_replicas_input)
        app.action(EXECUTE_BUTTON)(self.handle_execute)
        app.action(CANCEL_BUTTON)(self.handle_cancel)
        app.command(HEALTH_COMMAND)(self.handle_health)
        app.error(self.handle_error)

    async def handle_mention(self, event: Dict[str, Any], say: Callable, client: AsyncWebClient) -> None:
        question = clean_text(event.get("text") or "")
        channel = event["channel"]

        if question.lower() in BUILDER_KEYWORDS:
            logger.info("Command builder requested")
            await self.open_builder(client, channel, thread_ts=event["ts"])
            return

        if not question:
            await say(text=HELP_TEXT, thread_ts=event["ts"])
            return

        await self.answer_question(client, channel, question, event["ts"], event.get("thread_ts"))

    async def handle_direct_message(self, event: Dict[str, Any], client: AsyncWebClient) -> None:
        if event.get("channel_type") != "im" or event.get("subtype"):
            return
        question = (event.get("text") or "").strip()
        if not question:
            return
        await self.answer_question(client, event["channel"], question, event["ts"], event.get("thread_ts"))

    async def answer_question(
        self, client: AsyncWebClient, channel: str, question: str, ts: str, thread_ts: Optional[str]
    ) -> None:
        """Run the agent for ``question`` and replace the placeholder with its answer."""
        logger.info(f"Question received: {question!r} (thread reply: {bool(thread_ts)})")
        placeholder = await client.chat_postMessage(channel=channel, text=THINKING_TEXT, thread_ts=thread_ts or ts)

        try:
            history = []
            if thread_ts:
                bot_user_id = await self._resolve_bot_user(client)
                history = await ConversationHistoryBuilder(client, bot_user_id).build_history(
                    channel, thread_ts, exclude_ts=ts
                )
                logger.debug(f"Thread history: {len(history)} message(s)")

            started = time.monotonic()
            result = await self.agent.run(question, history)
            duration = time.monotonic() - started
            text = result.final_answer + tools_footer(result.tools_used, duration)
            logger.info(f"Answer ready after {duration:.1f}s")
        except Exception as exc:
            logger.error(f"Error analyzing question: {exc}", exc_info=True)
            text = f"❌ Sorry, I encountered an error: {exc}"

        await client.chat_update(channel=channel, ts=placeholder["ts"], text=text)

    async def open_builder(self, client: AsyncWebClient, channel: str, thread_ts: str) -> SessionKey:
        namespaces = await self.builder.list_namespaces()
        blocks = build_builder_blocks(CommandBuilderSession(), namespaces)
        response = await client.chat_postMessage(channel=channel, text=BUILDER_TEXT, blocks=blocks, thread_ts=thread_ts)
        key = SessionKey(channel, response["ts"])
        self.builder.open(key)
        return key

    async def handle_action_select(self, ack: Callable, body: Dict[str, Any], client: AsyncWebClient) -> None:
        await ack()
        await self._apply_selection(body, client, self.builder.select_action, _selected_value(body))

    async def handle_namespace_select(self, ack: Callable, body: Dict[str, Any], client: AsyncWebClient) -> None:
        await ack()
        await self._apply_selection(body, client, self.builder.select_namespace, _selected_value(body))

    async def handle_resource_type_select(
        self, ack: Callable, body: Dict[str, Any], client: AsyncWebClient
    ) -> None:
        await ack()
        await self._apply_selection(body, client, self.builder.select_resource_type, _selected_value(body))

    async def handle_resource_name_select(
        self, ack: Callable, body: Dict[str, Any], client: AsyncWebClient
    ) -> None:
        await ack()
        await self._apply_selection(body, client, self.builder.select_resource_name, _selected_value(body))

    async def handle_replicas_input(self, ack: Callable, body: Dict[str, Any], client: AsyncWebClient) -> None:
        await ack()
        value = (body.get("actions") or [{}])[0].get("value")
        await self._apply_selection(body, client, self.builder.set_replicas, value)

    async def handle_execute(self, ack: Callable, body: Dict[str, Any], client: AsyncWebClient) -> None:
        await ack()
        key = _session_key(body)
        if key is None:
            return
        thread_ts = _thread_ts(body, key)

        try:
            outcome = await self.builder.execute(key, _replicas_from_state(body))
        except CommandBuilderError as exc:
            await client.chat_postMessage(channel=key.channel, text=f"⚠️ {exc}", thread_ts=thread_ts)
            return

        await client.chat_postMessage(channel=key.channel, text=render_outcome(outcome), thread_ts=thread_ts)

    async def handle_cancel(self, ack: Callable, body: Dict[str, Any], client: AsyncWebClient) -> None:
        await ack()
        key = _session_key(body)
        if key is None:
            return
        self.builder.cancel(key)
        await client.chat_update(channel=key.channel, ts=key.anchor_ts, text=CLOSED_TEXT, blocks=[])

    async def handle_health(self, ack: Callable, respond: Callable) -> None:
        await ack()
        await respond(text=HEALTH_TEXT, response_type="ephemeral")

    async def handle_error(self, error: Exception, body: Dict[str, Any]) -> None:
        logger.error(f"Slack app error: {error}", exc_info=error)

    async def _apply_selection(
        self,
        body: Dict[str, Any],
        client: AsyncWebClient,
        apply: Callable[[SessionKey, Any], CommandBuilderSession],
        value: Any,
    ) -> None:
        key = _session_key(body)
        if key is None:
            return

        try:
            session = apply(key, value)
        except CommandBuilderError as exc:
            await client.chat_postMessage(channel=key.channel, text=f"⚠️ {exc}", thread_ts=_thread_ts(body, key))
            return

        namespaces = await self.builder.list_namespaces()
        candidates = await self.builder.resource_candidates(session)
        try:
            await client.chat_update(
                channel=key.channel,
                ts=key.anchor_ts,
                text=BUILDER_TEXT,
                blocks=build_builder_blocks(session, namespaces, candidates),
            )
        except SlackApiError as exc:
            error = exc.response.get("error", exc)
            logger.error(f"Failed to re-render command builder: {error}")
            await client.chat_postMessage(
                channel=key.channel,
                text=f"{BUILDER_UPDATE_FAILED} ({error})",
                thread_ts=_thread_ts(body, key),
            )

    async def _resolve_bot_user(self, client: AsyncWebClient) -> str:
        if self.bot_user_id is None:
            auth = await client.auth_test()
            self.bot_user_id = auth["user_id"]
        return self.bot_user_id


def _session_key(body: Dict[str, Any]) -> Optional[SessionKey]:
    channel = (body.get("channel") or {}).get("id")
    message_ts = (body.get("message") or {}).get("ts")
    if not channel or not message_ts:
        return None
    return SessionKey(channel, message_ts)


def _thread_ts(body: Dict[str, Any], key: SessionKey) -> str:
    return (body.get("message") or {}).get("thread_ts") or key.anchor_ts


def _selected_value(body: Dict[str, Any]) -> str:
    action = (body.get("actions") or [{}])[0]
    return (action.get("selected_option") or {}).get("value", "")


def _replicas_from_state(body: Dict[str, Any]) -> Optional[str]:
    values = (body.get("state") or {}).get("values") or {}
    return (values.get(REPLICAS_BLOCK) or {}).get(REPLICAS_INPUT, {}).get("value")
