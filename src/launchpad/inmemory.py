"""In-memory service implementations for local development and tests.

These are used when ENVIRONMENT=local. They satisfy the service protocols
but keep everything in dicts (no persistence across restarts). Each one
records the calls it receives in ``calls`` and can be told to fail a given
operation through ``fail_on``.
"""

from __future__ import annotations

import uuid
from typing import Any

from .providers.base import ProviderAPIError
from .providers.elevenlabs_client import ElevenLabsAPIError, ElevenLabsNotFoundError
from .providers.github_client import GitHubAPIError, GitHubNotFoundError
from .providers.vercel_client import VercelAPIError, VercelNotFoundError


class _Recorder:
    error_cls: type[ProviderAPIError] = ProviderAPIError

    def __init__(self, *, fail_on: set[str] | None = None) -> None:
        self.fail_on: set[str] = set(fail_on or ())
        self.calls: list[tuple[str, str]] = []

    def _record(self, op: str, subject: str) -> None:
        self.calls.append((op, subject))
        if op in self.fail_on:
            raise self.error_cls(500, f"{op} failed")

    def call_names(self) -> list[str]:
        return [op for op, _ in self.calls]


class InMemorySourceControlService(_Recorder):
    error_cls = GitHubAPIError

    def __init__(
        self,
        *,
        owner: str = "local-owner",
        templates: set[str] | None = None,
        fail_on: set[str] | None = None,
    ) -> None:
        super().__init__(fail_on=fail_on)
        self.owner = owner
        self.templates: set[str] = set(templates if templates is not None else {"connexions-template"})
        self.repositories: dict[str, dict[str, Any]] = {}
        self.files: dict[tuple[str, str], dict[str, Any]] = {}

    def repository_url(self, name: str) -> str:
        return f"https://github.com/{self.owner}/{name}"

    def _new_repository(self, name: str, description: str, template: str | None) -> dict[str, Any]:
        repo = {
            "id": uuid.uuid4().int % 10**9,
            "name": name,
            "full_name": f"{self.owner}/{name}",
            "html_url": self.repository_url(name),
            "description": description,
            "template": template,
        }
        self.repositories[name] = repo
        return repo

    async def get_repository(self, name: str) -> dict[str, Any]:
        self._record("get_repository", name)
        if name not in self.repositories:
            raise GitHubNotFoundError(message="Not Found")
        return self.repositories[name]

    async def create_from_template(
        self, template: str, name: str, *, description: str = "", private: bool = False,
    ) -> dict[str, Any]:
        self._record("create_from_template", name)
        if template not in self.templates:
            raise GitHubNotFoundError(message="Not Found")
        return self._new_repository(name, description, template)

    async def create_empty_repository(
        self, name: str, *, description: str = "", private: bool = False,
    ) -> dict[str, Any]:
        self._record("create_empty_repository", name)
        if name in self.repositories:
            raise GitHubAPIError(422, "name already exists on this account")
        return self._new_repository(name, description, None)

    async def get_file(self, repository: str, path: str) -> dict[str, Any]:
        self._record("get_file", f"{repository}/{path}")
        entry = self.files.get((repository, path))
        if entry is None:
            raise GitHubNotFoundError(message="Not Found")
        return entry

    async def put_file(
        self, repository: str, path: str, content: str, *, message: str, sha: str | None = None,
    ) -> dict[str, Any]:
        self._record("put_file", f"{repository}/{path}")
        current = self.files.get((repository, path))
        if current is not None and current["sha"] != sha:
            raise GitHubAPIError(409, f"{path} does not match {sha}")
        entry = {"path": path, "sha": uuid.uuid4().hex, "content": content, "message": message}
        self.files[(repository, path)] = entry
        return {"content": entry}


class InMemoryHostingService(_Recorder):
    error_cls = VercelAPIError

    def __init__(self, *, fail_on: set[str] | None = None, fail_keys: set[str] | None = None) -> None:
        super().__init__(fail_on=fail_on)
        self.fail_keys: set[str] = set(fail_keys or ())
        self.projects: dict[str, dict[str, Any]] = {}
        self.env: dict[str, list[dict[str, Any]]] = {}
        self.deployments: list[dict[str, Any]] = []

    async def get_project(self, name: str) -> dict[str, Any]:
        self._record("get_project", name)
        for project in self.projects.values():
            if name in (project["name"], project["id"]):
                return project
        raise VercelNotFoundError(message="Project not found")

    async def create_project(
        self, name: str, *, repository: str, build_profile: dict[str, Any],
    ) -> dict[str, Any]:
        self._record("create_project", name)
        if name in self.projects:
            raise VercelAPIError(409, "Project already exists")
        project = {
            "id": f"prj_{uuid.uuid4().hex[:12]}",
            "name": name,
            "link": {"type": "github", "repo": repository},
            **build_profile,
        }
        self.projects[name] = project
        self.env[project["id"]] = []
        return project

    async def list_env_vars(self, project_id: str) -> list[dict[str, Any]]:
        self._record("list_env_vars", project_id)
        return list(self.env.get(project_id, []))

    async def create_env_var(
        self, project_id: str, *, key: str, value: str, var_type: str, targets: list[str],
    ) -> dict[str, Any]:
        self._record("create_env_var", key)
        if key in self.fail_keys:
            raise VercelAPIError(400, f"invalid value for {key}")
        entry = {
            "id": f"env_{uuid.uuid4().hex[:8]}",
            "key": key,
            "value": value,
            "type": var_type,
            "target": list(targets),
        }
        self.env.setdefault(project_id, []).append(entry)
        return entry

    async def update_env_var(
        self, project_id: str, env_id: str, *, value: str, targets: list[str],
    ) -> dict[str, Any]:
        for entry in self.env.get(project_id, []):
            if entry["id"] == env_id:
                self._record("update_env_var", entry["key"])
                if entry["key"] in self.fail_keys:
                    raise VercelAPIError(400, f"invalid value for {entry['key']}")
                entry.update(value=value, target=list(targets))
                return entry
        self._record("update_env_var", env_id)
        raise VercelNotFoundError(message="Environment variable not found")

    async def trigger_deployment(
        self, name: str, *, project_id: str, repository: str, git_ref: str = "main",
    ) -> dict[str, Any]:
        self._record("trigger_deployment", name)
        deployment = {
            "id": f"dpl_{uuid.uuid4().hex[:12]}",
            "name": name,
            "project": project_id,
            "gitSource": {"repo": repository, "ref": git_ref},
        }
        self.deployments.append(deployment)
        return deployment


class InMemoryVoiceAgentService(_Recorder):
    error_cls = ElevenLabsAPIError

    def __init__(self, *, fail_on: set[str] | None = None) -> None:
        super().__init__(fail_on=fail_on)
        self.agents: list[dict[str, Any]] = []

    async def list_agents(self) -> list[dict[str, Any]]:
        self._record("list_agents", "")
        return [{"agent_id": a["agent_id"], "name": a["name"]} for a in self.agents]

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
        self._record("create_agent", name)
        agent = {
            "agent_id": f"agent_{uuid.uuid4().hex[:12]}",
            "name": name,
            "prompt": prompt,
            "first_message": first_message,
            "voice_id": voice_id,
            "language": language,
            "turn_mode": turn_mode,
        }
        self.agents.append(agent)
        return {"agent_id": agent["agent_id"]}

    async def get_signed_url(self, agent_id: str) -> str:
        self._record("get_signed_url", agent_id)
        if not any(a["agent_id"] == agent_id for a in self.agents):
            raise ElevenLabsNotFoundError(message="Agent not found")
        return f"wss://voice.local/convai?agent_id={agent_id}&token={uuid.uuid4().hex[:8]}"
