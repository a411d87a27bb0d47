"""In-memory registry of open builder sessions."""

from typing import Dict, Optional

from .models import CommandBuilderSession, SessionKey
from ..core.logger import get_logger

logger = get_logger(__name__)


class SessionStore:
    """
    Exactly one session per ``SessionKey``.

    Sessions live in process memory only. A restart forgets them, and a
    selection on a forgotten builder message simply starts a fresh record.
    Writes are last-write-wins.
    """

    def __init__(self) -> None:
        self._sessions: Dict[SessionKey, CommandBuilderSession] = {}

    def get(self, key: SessionKey) -> Optional[CommandBuilderSession]:
        return self._sessions.get(key)

    def get_or_create(self, key: SessionKey) -> CommandBuilderSession:
        session = self._sessions.get(key)
        if session is None:
            logger.debug(f"Creating builder session for {key.channel}/{key.anchor_ts}")
            session = CommandBuilderSession()
            self._sessions[key] = session
        return session

    def pop(self, key: SessionKey) -> Optional[CommandBuilderSession]:
        """Remove and return the session, or None if there is none."""
        return self._sessions.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
