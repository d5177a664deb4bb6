"""Voice catalogue for conversational agents.

``VoiceSelection`` is the closed set of choices a tenant can make (a
gender or a tone). Every member maps to a fixed TTS voice and an opening
utterance; raw strings outside the set parse to ``VoiceSelection.DEFAULT``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class VoiceSelection(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    FORMAL = "formal"
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    CASUAL = "casual"

    # Aliases resolve to the member above with the same value.
    DEFAULT = "professional"

    @classmethod
    def parse(cls, raw: str | VoiceSelection | None) -> VoiceSelection:
        if isinstance(raw, VoiceSelection):
            return raw
        value = (raw or "").strip().lower()
        try:
            return cls(value)
        except ValueError:
            if value:
                logger.info(
                    "Unrecognized voice selection %r, using %s",
                    raw,
                    cls.DEFAULT.value,
                    extra={"voice_selection": raw},
                )
            return cls.DEFAULT


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    voice_id: str
    label: str


_VOICES: dict[VoiceSelection, VoiceProfile] = {
    VoiceSelection.MALE: VoiceProfile("pNInz6obpgDQGcFmaJgB", "Adam"),
    VoiceSelection.FEMALE: VoiceProfile("EXAVITQu4vr4xnSDxMaL", "Sarah"),
    VoiceSelection.FORMAL: VoiceProfile("pNInz6obpgDQGcFmaJgB", "Adam"),
    VoiceSelection.PROFESSIONAL: VoiceProfile("EXAVITQu4vr4xnSDxMaL", "Sarah"),
    VoiceSelection.FRIENDLY: VoiceProfile("21m00Tcm4TlvDq8ikWAM", "Rachel"),
    VoiceSelection.CASUAL: VoiceProfile("AZnzlk1XvdvUeBnXmlld", "Domi"),
}

_OPENINGS: dict[VoiceSelection, str] = {
    VoiceSelection.FORMAL: (
        "Good day. I'm the setup assistant for {company}. I'll help you design "
        "a custom AI voice interviewer. May I ask your name?"
    ),
    VoiceSelection.FRIENDLY: (
        "Hey! I'm the setup assistant for {company}. Let's build your AI "
        "interviewer together. What's your name?"
    ),
    VoiceSelection.CASUAL: (
        "Hi! I'm here to help {company} set up an AI interviewer. First off, "
        "what's your name?"
    ),
}

_DEFAULT_OPENING = (
    "Hi, I'm your AI setup assistant. I'll help you create a custom AI voice "
    "interviewer in just a few minutes. What's your name?"
)


def voice_for(selection: VoiceSelection) -> VoiceProfile:
    return _VOICES.get(selection, _VOICES[VoiceSelection.DEFAULT])


def opening_utterance(selection: VoiceSelection, company: str) -> str:
    template = _OPENINGS.get(selection, _DEFAULT_OPENING)
    return template.format(company=company)
