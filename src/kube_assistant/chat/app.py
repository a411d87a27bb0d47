"""Process entry point: assembles the bot and connects it to Slack over Socket Mode."""

import asyncio
import signal
import sys
from typing import Any, Dict, Optional

from openai import AsyncOpenAI
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from .handlers import SlackHandlers
from ..agent import AgentLoop, build_read_registry, build_system_prompt
from ..builder import CommandBuilder
from ..cluster import ClusterReader, ClusterWriter, KubeApis
from ..config import Settings, load_settings
from ..core.exceptions import ConfigurationError
from ..core.logger import get_logger, setup_logging
from ..llm import OpenAIBackend

logger = get_logger(__name__)


def build_handlers(settings: Settings, apis: Optional[KubeApis] = None) -> SlackHandlers:
    """Wire cluster access, model backend, agent and builder together.

    The agent receives only the reader; the writer goes to the builder alone.
    """
    apis = apis or KubeApis.from_config()
    reader = ClusterReader(apis)
    writer = ClusterWriter(apis)

    client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
    backend = OpenAIBackend(client, settings.openai_model, max_retries=settings.llm_max_retries)
    agent = AgentLoop(backend, build_read_registry(reader), build_system_prompt(settings.prompt_namespaces))
    builder = CommandBuilder(reader, writer, fallback_namespaces=settings.fallback_namespaces)
    return SlackHandlers(agent, builder)


def create_app(settings: Settings, handlers: SlackHandlers) -> AsyncApp:
    app = AsyncApp(token=settings.slack_bot_token, signing_secret=settings.slack_signing_secret)
    handlers.register(app)
    return app


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    exc = context.get("exception")
    logger.error(f"Unhandled error in event loop: {context.get('message')}", exc_info=exc)


async def run(settings: Settings) -> None:
    handlers = build_handlers(settings)
    app = create_app(settings, handlers)

    auth = await app.client.auth_test()
    handlers.bot_user_id = auth["user_id"]
    logger.info(f"Bot user ID: {handlers.bot_user_id}")

    loop = asyncio.get_running_loop()
    loop.set_exception_handler(_log_loop_exception)
    stop = asyncio.Event()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)

    socket_handler = AsyncSocketModeHandler(app, settings.slack_app_token)
    await socket_handler.connect_async()
    logger.info(f"Kube assistant is running (model: {settings.openai_model}, log level: {settings.log_level})")

    try:
        await stop.wait()
    finally:
        logger.info("Shutting down...")
        await socket_handler.close_async()


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        # Logging is not configured yet.
        print(f"❌ {exc}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
