"""Voice conversation sessions.

A session pairs a request id with the signed conversation URL handed to the
browser. Sessions live in an injected ``SessionStore`` rather than in module
state, so each app instance (and each test) owns its own store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from launchpad.protocols import VoiceAgentService

logger = logging.getLogger(__name__)

# Signed conversation URLs stop working after roughly this long.
DEFAULT_SESSION_TTL_SECONDS = 15 * 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VoiceSession:
    """A started voice conversation.

    Attributes:
        id: Request id that started the session.
        agent_id: Voice agent the conversation runs against.
        signed_url: Short-lived websocket URL for the browser client.
        created_at: When the session was started.
    """

    id: str
    agent_id: str
    signed_url: str
    created_at: datetime = field(
        default_factory=_utcnow,
    )

    def as_dict(self) -> dict[str, str]:
        return {
            "session_id": self.id,
            "agent_id": self.agent_id,
            "signed_url": self.signed_url,
            "created_at": self.created_at.isoformat(),
        }


class SessionExistsError(Exception):
    """A session with this id is already recorded."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Voice session {session_id!r} already exists")


class SessionStore(Protocol):
    """Abstract voice session storage, keyed by request id.

    ``put`` raises ``SessionExistsError`` rather than replacing a live
    session.
    """

    async def put(self, session: VoiceSession) -> VoiceSession: ...
    async def get(self, session_id: str) -> VoiceSession | None: ...


class InMemorySessionStore:
    """In-memory session store that drops sessions older than ``ttl_seconds``."""

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._sessions: dict[str, VoiceSession] = {}
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def _evict_expired(self) -> None:
        cutoff = self._clock() - self._ttl
        expired = [sid for sid, s in self._sessions.items() if s.created_at <= cutoff]
        for sid in expired:
            del self._sessions[sid]

    async def put(self, session: VoiceSession) -> VoiceSession:
        self._evict_expired()
        if session.id in self._sessions:
            raise SessionExistsError(session.id)
        self._sessions[session.id] = session
        return session

    async def get(self, session_id: str) -> VoiceSession | None:
        self._evict_expired()
        return self._sessions.get(session_id)


class VoiceSessionService:
    def __init__(self, *, voice: VoiceAgentService, store: SessionStore) -> None:
        self._voice = voice
        self._store = store

    async def start(self, *, agent_id: str, session_id: str) -> VoiceSession:
        """Obtain a signed URL for ``agent_id`` and record the session.

        Provider errors and ``SessionExistsError`` propagate; the caller maps
        them to a response.
        """
        signed_url = await self._voice.get_signed_url(agent_id)
        session = await self._store.put(
            VoiceSession(id=session_id, agent_id=agent_id, signed_url=signed_url),
        )
        logger.info(
            "Voice session started: session=%s agent=%s",
            session_id,
            agent_id,
            extra={"session_id": session_id, "agent_id": agent_id},
        )
        return session

    async def get(self, session_id: str) -> VoiceSession | None:
        return await self._store.get(session_id)
