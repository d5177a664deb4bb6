"""Service protocol interfaces for dependency injection.

These protocols define the boundary of each external collaborator. The
httpx clients in ``launchpad.providers`` satisfy them for real runs and the
classes in ``launchpad.inmemory`` satisfy them for local mode and tests.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SourceControlService(Protocol):
    """Repository lookup, creation, and single-file writes."""

    owner: str

    def repository_url(self, name: str) -> str: ...
    async def get_repository(self, name: str) -> dict[str, Any]: ...
    async def create_from_template(
        self, template: str, name: str, *, description: str = "", private: bool = False,
    ) -> dict[str, Any]: ...
    async def create_empty_repository(
        self, name: str, *, description: str = "", private: bool = False,
    ) -> dict[str, Any]: ...
    async def get_file(self, repository: str, path: str) -> dict[str, Any]: ...
    async def put_file(
        self, repository: str, path: str, content: str, *, message: str, sha: str | None = None,
    ) -> dict[str, Any]: ...


@runtime_checkable
class HostingService(Protocol):
    """Hosting project, environment variable, and deployment operations."""

    async def get_project(self, name: str) -> dict[str, Any]: ...
    async def create_project(
        self, name: str, *, repository: str, build_profile: dict[str, Any],
    ) -> dict[str, Any]: ...
    async def list_env_vars(self, project_id: str) -> list[dict[str, Any]]: ...
    async def create_env_var(
        self, project_id: str, *, key: str, value: str, var_type: str, targets: list[str],
    ) -> dict[str, Any]: ...
    async def update_env_var(
        self, project_id: str, env_id: str, *, value: str, targets: list[str],
    ) -> dict[str, Any]: ...
    async def trigger_deployment(
        self, name: str, *, project_id: str, repository: str, git_ref: str = "main",
    ) -> dict[str, Any]: ...


@runtime_checkable
class VoiceAgentService(Protocol):
    """Conversational voice-agent configuration and sessions."""

    async def list_agents(self) -> list[dict[str, Any]]: ...
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
    ) -> dict[str, Any]: ...
    async def get_signed_url(self, agent_id: str) -> str: ...
