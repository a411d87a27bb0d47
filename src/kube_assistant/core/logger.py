"""Logging utilities for kube-assistant."""

import logging
import sys
from typing import Iterable

_LOGGER_NAME = "kube_assistant"

# Client libraries that log every HTTP round trip at INFO/DEBUG.
NOISY_LOGGERS = ("urllib3", "kubernetes.client.rest", "slack_bolt", "slack_sdk", "httpx", "openai")


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance below the application logger.

    Args:
        name: Optional sub-logger name. If None, returns the root application logger.

    Returns:
        The requested logger.
    """
    if not name:
        return logging.getLogger(_LOGGER_NAME)
    if name == _LOGGER_NAME or name.startswith(f"{_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def setup_logging(
    level: int | str = logging.INFO,
    format_str: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Attach a stdout handler to the application logger.

    Calling it again only adjusts the level. Loggers named in ``quiet`` are
    raised to WARNING unless ``level`` is DEBUG, so tool calls and WRITE
    executions stay readable in the bot's output.

    Args:
        level: Logging level, either a logging constant or a name such as "info".
        format_str: Log format string.
        quiet: Third-party logger names to hold at WARNING.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)

    if level != logging.DEBUG:
        for name in quiet:
            logging.getLogger(name).setLevel(logging.WARNING)

    if any(type(h) is logging.StreamHandler for h in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(format_str))
    logger.addHandler(handler)


logging.getLogger(_LOGGER_NAME).addHandler(logging.NullHandler())
