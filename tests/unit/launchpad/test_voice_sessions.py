"""Tests for VoiceSessionService and InMemorySessionStore."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from launchpad.providers.base import ProviderNotFoundError
from launchpad.voice.sessions import (
    InMemorySessionStore,
    SessionExistsError,
    VoiceSession,
    VoiceSessionService,
)


async def _agent_id(voice) -> str:
    created = await voice.create_agent("Acme Setup Agent", prompt="p", first_message="m", voice_id="v")
    return created["agent_id"]


@pytest.mark.asyncio
async def test_start_records_signed_url_under_request_id(voice):
    agent_id = await _agent_id(voice)
    store = InMemorySessionStore()
    service = VoiceSessionService(voice=voice, store=store)

    session = await service.start(agent_id=agent_id, session_id="req-abc-123")

    assert session.id == "req-abc-123"
    assert session.signed_url.startswith("wss://voice.local/convai?agent_id=" + agent_id)
    assert await store.get("req-abc-123") is session
    assert await service.get("req-abc-123") is session


@pytest.mark.asyncio
async def test_unknown_agent_propagates_not_found(voice):
    service = VoiceSessionService(voice=voice, store=InMemorySessionStore())

    with pytest.raises(ProviderNotFoundError):
        await service.start(agent_id="agent_missing", session_id="req-1")

    assert await service.get("req-1") is None


@pytest.mark.asyncio
async def test_stores_are_independent(voice):
    agent_id = await _agent_id(voice)
    first = VoiceSessionService(voice=voice, store=InMemorySessionStore())
    second = VoiceSessionService(voice=voice, store=InMemorySessionStore())

    await first.start(agent_id=agent_id, session_id="req-1")

    assert await second.get("req-1") is None


def test_as_dict_keys():
    payload = VoiceSession(id="req-1", agent_id="a", signed_url="wss://x").as_dict()

    assert set(payload) == {"session_id", "agent_id", "signed_url", "created_at"}


@pytest.mark.asyncio
async def test_reused_session_id_does_not_replace_live_session(voice):
    agent_id = await _agent_id(voice)
    service = VoiceSessionService(voice=voice, store=InMemorySessionStore())
    original = await service.start(agent_id=agent_id, session_id="req-1")

    with pytest.raises(SessionExistsError):
        await service.start(agent_id=agent_id, session_id="req-1")

    assert await service.get("req-1") is original


class _Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.mark.asyncio
async def test_expired_sessions_are_evicted():
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    clock = _Clock(start)
    store = InMemorySessionStore(ttl_seconds=60, clock=clock)
    await store.put(VoiceSession(id="req-1", agent_id="a", signed_url="wss://x", created_at=start))

    clock.now = start + timedelta(seconds=59)
    assert await store.get("req-1") is not None

    clock.now = start + timedelta(seconds=61)
    assert await store.get("req-1") is None

    # The id is free again once the old session has expired.
    replacement = VoiceSession(id="req-1", agent_id="b", signed_url="wss://y", created_at=clock.now)
    assert await store.put(replacement) is replacement
