"""Async client for the Vercel REST API (hosting service).

Project lookup/creation, environment variable listing and writes, and
deployment triggers. An optional team id is sent as the ``teamId`` query
parameter on every call.
"""

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


class VercelAPIError(ProviderAPIError):
    service = "Vercel"


class VercelNotFoundError(ProviderNotFoundError, VercelAPIError):
    """Project or variable not found (404)."""


class VercelTimeoutError(ProviderTimeoutError, VercelAPIError):
    """Request to Vercel timed out."""


class VercelClient(ProviderClient):
    """Vercel REST client, optionally scoped to a team."""

    api_error = VercelAPIError
    not_found_error = VercelNotFoundError
    timeout_error = VercelTimeoutError

    def __init__(
        self,
        *,
        token: str,
        team_id: str | None = None,
        base_url: str = "https://api.vercel.com",
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 0,
    ) -> None:
        if not token:
            raise ValueError("token is required")
        super().__init__(
            base_url=base_url,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        )
        self._token = token
        self._team_id = team_id or None

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    def _default_params(self) -> dict[str, str]:
        if self._team_id:
            return {"teamId": self._team_id}
        return {}

    async def get_project(self, name: str) -> dict[str, Any]:
        """Get a project by name or id. Raises VercelNotFoundError if absent."""
        return await self._request_json("GET", f"/v9/projects/{name}")

    async def create_project(
        self,
        name: str,
        *,
        repository: str,
        build_profile: dict[str, Any],
    ) -> dict[str, Any]:
        """Create a project bound to a GitHub ``owner/name`` repository."""
        result = await self._request_json(
            "POST",
            "/v10/projects",
            json={
                "name": name,
                "gitRepository": {"type": "github", "repo": repository},
                **build_profile,
            },
        )
        logger.info(
            "Vercel project created: name=%s id=%s",
            name,
            result.get("id"),
            extra={"project": name, "repository": repository},
        )
        return result

    async def list_env_vars(self, project_id: str) -> list[dict[str, Any]]:
        payload = await self._request_json("GET", f"/v9/projects/{project_id}/env")
        envs = payload.get("envs") if isinstance(payload, dict) else None
        if not isinstance(envs, list):
            raise VercelAPIError(
                status_code=0,
                message=f"Expected envs list from project {project_id}",
            )
        return envs

    async def create_env_var(
        self,
        project_id: str,
        *,
        key: str,
        value: str,
        var_type: str,
        targets: list[str],
    ) -> dict[str, Any]:
        return await self._request_json(
            "POST",
            f"/v10/projects/{project_id}/env",
            json={"key": key, "value": value, "type": var_type, "target": targets},
        )

    async def update_env_var(
        self,
        project_id: str,
        env_id: str,
        *,
        value: str,
        targets: list[str],
    ) -> dict[str, Any]:
        return await self._request_json(
            "PATCH",
            f"/v9/projects/{project_id}/env/{env_id}",
            json={"value": value, "target": targets},
        )

    async def trigger_deployment(
        self,
        name: str,
        *,
        project_id: str,
        repository: str,
        git_ref: str = "main",
    ) -> dict[str, Any]:
        """Start a production deployment of ``repository@git_ref``."""
        result = await self._request_json(
            "POST",
            "/v13/deployments",
            json={
                "name": name,
                "project": project_id,
                "target": "production",
                "gitSource": {"type": "github", "repo": repository, "ref": git_ref},
            },
        )
        logger.info(
            "Deployment triggered: project=%s deployment=%s",
            name,
            result.get("id"),
            extra={"project": name, "git_ref": git_ref},
        )
        return result
