"""Voice agent provisioner: create-or-reuse the tenant's setup agent."""

from __future__ import annotations

import logging

from launchpad.protocols import VoiceAgentService
from launchpad.providers.base import ProviderAPIError
from launchpad.voice.catalog import VoiceSelection, opening_utterance, voice_for

from .existence import ResourceExistenceChecker
from .models import (
    Found,
    ResourceKind,
    ResourceRecord,
    ServiceKind,
    StepOutcome,
    StepStatus,
)

logger = logging.getLogger(__name__)

STEP_NAME = "agent"


class VoiceAgentProvisioner:
    """Looks up agents by exact display name and creates one when absent.

    Existing agents are returned untouched. A creation failure is reported
    as ``failed``; the orchestrator treats that as fatal.
    """

    def __init__(
        self,
        *,
        voice: VoiceAgentService,
        checker: ResourceExistenceChecker,
        language: str = "en",
        tts_model: str = "eleven_turbo_v2_5",
        turn_mode: str = "turn_based",
    ) -> None:
        self._voice = voice
        self._checker = checker
        self._language = language
        self._tts_model = tts_model
        self._turn_mode = turn_mode

    async def ensure_agent(
        self,
        display_name: str,
        prompt_template: str,
        voice_selection: VoiceSelection | str | None = None,
        *,
        company: str = "",
    ) -> StepOutcome:
        selection = VoiceSelection.parse(voice_selection)

        lookup = await self._checker.lookup(ServiceKind.VOICE_AGENT, display_name)
        if isinstance(lookup, Found):
            agent_id = str(lookup.record.get("agent_id", ""))
            if agent_id:
                logger.info(
                    "Voice agent already exists: %s (%s)",
                    display_name,
                    agent_id,
                    extra={"agent_name": display_name, "agent_id": agent_id},
                )
                return StepOutcome(
                    step=STEP_NAME,
                    status=StepStatus.SUCCEEDED,
                    record=ResourceRecord(
                        kind=ResourceKind.AGENT,
                        external_id=agent_id,
                        name=display_name,
                        already_exists=True,
                    ),
                )

        profile = voice_for(selection)
        try:
            created = await self._voice.create_agent(
                display_name,
                prompt=prompt_template,
                first_message=opening_utterance(selection, company or display_name),
                voice_id=profile.voice_id,
                language=self._language,
                tts_model=self._tts_model,
                turn_mode=self._turn_mode,
            )
        except ProviderAPIError as exc:
            logger.error(
                "Voice agent creation failed: %s",
                display_name,
                extra={"agent_name": display_name, "status_code": exc.status_code},
                exc_info=True,
            )
            return StepOutcome(step=STEP_NAME, status=StepStatus.FAILED, error=str(exc))

        agent_id = str(created.get("agent_id") or "")
        if not agent_id:
            return StepOutcome(
                step=STEP_NAME,
                status=StepStatus.FAILED,
                error="voice agent created without an agent_id",
            )

        return StepOutcome(
            step=STEP_NAME,
            status=StepStatus.SUCCEEDED,
            record=ResourceRecord(
                kind=ResourceKind.AGENT,
                external_id=agent_id,
                name=display_name,
                already_exists=False,
            ),
        )
