"""Async client for the ElevenLabs Conversational AI API (voice agents)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .base import (
    ProviderAPIError,
    ProviderClient,
    ProviderNotFoundError,
    ProviderTimeoutError,
)

logger = logging.getLogger(__name__)

# Largest page the agents listing accepts.
AGENTS_PAGE_SIZE = 100


class ElevenLabsAPIError(ProviderAPIError):
    service = "ElevenLabs"


class ElevenLabsNotFoundError(ProviderNotFoundError, ElevenLabsAPIError):
    """Agent not found (404)."""


class ElevenLabsTimeoutError(ProviderTimeoutError, ElevenLabsAPIError):
    """Request to ElevenLabs timed out."""


class ElevenLabsClient(ProviderClient):
    """Voice-agent client authenticated with an ``xi-api-key`` header."""

    api_error = ElevenLabsAPIError
    not_found_error = ElevenLabsNotFoundError
    timeout_error = ElevenLabsTimeoutError

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io",
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 0,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        super().__init__(
            base_url=base_url,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        )
        self._api_key = api_key

    def _auth_headers(self) -> dict[str, str]:
        return {"xi-api-key": self._api_key}

    async def list_agents(self) -> list[dict[str, Any]]:
        """Return every agent on the account, following ``next_cursor`` pages."""
        agents: list[dict[str, Any]] = []
        params: dict[str, str] = {"page_size": str(AGENTS_PAGE_SIZE)}
        seen_cursors: set[str] = set()
        while True:
            payload = await self._request_json("GET", "/v1/convai/agents", params=params)
            page = payload.get("agents") if isinstance(payload, dict) else None
            if not isinstance(page, list):
                raise ElevenLabsAPIError(
                    status_code=0,
                    message="Expected agents list from /v1/convai/agents",
                )
            agents.extend(page)

            cursor = payload.get("next_cursor")
            if not payload.get("has_more") or not cursor:
                return agents
            if cursor in seen_cursors:
                raise ElevenLabsAPIError(
                    status_code=0,
                    message=f"Agent listing repeated cursor {cursor!r}",
                )
            seen_cursors.add(cursor)
            params = {**params, "cursor": cursor}

    async def create_agent(
        self,
        name: str,
        *,
        prompt: str,
        first_message: str,
        voice_id: str,
        language: str = "en",
        tts_model: str = "eleven_turbo_v2_5",
        turn_mode: str = "turn_based",
    ) -> dict[str, Any]:
        """Create a conversational agent and return ``{"agent_id": ...}``."""
        result = await self._request_json(
            "POST",
            "/v1/convai/agents/create",
            json={
                "name": name,
                "conversation_config": {
                    "agent": {
                        "prompt": {"prompt": prompt},
                        "first_message": first_message,
                        "language": language,
                    },
                    "tts": {"voice_id": voice_id, "model_id": tts_model},
                    "stt": {"provider": "elevenlabs"},
                    "turn": {"mode": turn_mode},
                },
            },
        )
        logger.info(
            "Voice agent created: name=%s agent_id=%s",
            name,
            result.get("agent_id"),
            extra={"agent_name": name},
        )
        return result

    async def get_signed_url(self, agent_id: str) -> str:
        """Return a signed websocket URL for a conversation with ``agent_id``."""
        payload = await self._request_json(
            "GET",
            "/v1/convai/conversation/get_signed_url",
            params={"agent_id": agent_id},
        )
        signed_url = payload.get("signed_url") if isinstance(payload, dict) else None
        if not signed_url:
            raise ElevenLabsAPIError(
                status_code=0,
                message=f"No signed_url returned for agent {agent_id}",
            )
        return signed_url
