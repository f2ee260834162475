"""In-memory registry of studio sessions."""

from __future__ import annotations

import logging
import os
from collections import OrderedDict

from songcraft.services.auth import ApiKeySelector
from songcraft.services.song_service import SongGenerator
from songcraft.services.studio import StudioSession

log = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 100


class SessionStore:
    """In-memory store for sessions; nothing is persisted across restarts.

    Covers are held as base64 data URIs, so the store is bounded: once it
    holds ``max_sessions`` sessions, creating another evicts the least
    recently used one. ``max_sessions`` defaults to the
    SONGCRAFT_MAX_SESSIONS environment variable.
    """

    def __init__(self, max_sessions: int | None = None):
        if max_sessions is None:
            max_sessions = int(
                os.environ.get("SONGCRAFT_MAX_SESSIONS", str(DEFAULT_MAX_SESSIONS))
            )
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self.sessions: OrderedDict[str, StudioSession] = OrderedDict()

    def create_session(
        self, generator: SongGenerator, key_selector: ApiKeySelector | None = None
    ) -> StudioSession:
        while len(self.sessions) >= self.max_sessions:
            evicted_id, _ = self.sessions.popitem(last=False)
            log.info(f"Evicted least recently used session {evicted_id}")

        session = StudioSession(generator, key_selector=key_selector)
        self.sessions[session.session_id] = session
        log.info(f"Created session {session.session_id}")
        return session

    def get_session(self, session_id: str) -> StudioSession | None:
        session = self.sessions.get(session_id)
        if session is not None:
            self.sessions.move_to_end(session_id)
        return session

    def delete_session(self, session_id: str) -> bool:
        removed = self.sessions.pop(session_id, None) is not None
        if removed:
            log.info(f"Deleted session {session_id}")
        return removed

    def list_sessions(self) -> list[StudioSession]:
        return list(self.sessions.values())
