"""Voice agent catalogue, setup prompt, and conversation sessions."""

from .catalog import VoiceProfile, VoiceSelection, opening_utterance, voice_for
from .prompts import SETUP_AGENT_PROMPT
from .sessions import (
    InMemorySessionStore,
    SessionExistsError,
    SessionStore,
    VoiceSession,
    VoiceSessionService,
)

__all__ = [
    'InMemorySessionStore',
    'SETUP_AGENT_PROMPT',
    'SessionExistsError',
    'SessionStore',
    'VoiceProfile',
    'VoiceSelection',
    'VoiceSession',
    'VoiceSessionService',
    'opening_utterance',
    'voice_for',
]
