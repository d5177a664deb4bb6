"""Async client for the GitHub REST API (source-control service).

Covers the calls the repository provisioner needs: lookup by name,
generate from a template repository, create an empty initialized
repository, and read/write a single file through the contents API.
"""

from __future__ import annotations

import base64
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


class GitHubAPIError(ProviderAPIError):
    service = "GitHub"


class GitHubNotFoundError(ProviderNotFoundError, GitHubAPIError):
    """Repository, template, or file not found (404)."""


class GitHubTimeoutError(ProviderTimeoutError, GitHubAPIError):
    """Request to GitHub timed out."""


class GitHubClient(ProviderClient):
    """GitHub REST client scoped to a single owning account."""

    api_error = GitHubAPIError
    not_found_error = GitHubNotFoundError
    timeout_error = GitHubTimeoutError

    def __init__(
        self,
        *,
        token: str,
        owner: str,
        base_url: str = "https://api.github.com",
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 0,
    ) -> None:
        if not token:
            raise ValueError("token is required")
        if not owner:
            raise ValueError("owner is required")
        super().__init__(
            base_url=base_url,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        )
        self._token = token
        self.owner = owner

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
        }

    def repository_url(self, name: str) -> str:
        return f"https://github.com/{self.owner}/{name}"

    async def get_repository(self, name: str) -> dict[str, Any]:
        """Get repository metadata. Raises GitHubNotFoundError if absent."""
        return await self._request_json("GET", f"/repos/{self.owner}/{name}")

    async def create_from_template(
        self,
        template: str,
        name: str,
        *,
        description: str = "",
        private: bool = False,
    ) -> dict[str, Any]:
        """Generate a new repository from ``owner/template``."""
        result = await self._request_json(
            "POST",
            f"/repos/{self.owner}/{template}/generate",
            json={
                "owner": self.owner,
                "name": name,
                "description": description,
                "private": private,
                "include_all_branches": False,
            },
        )
        logger.info(
            "Repository generated from template: %s/%s",
            self.owner,
            name,
            extra={"repository": name, "template": template},
        )
        return result

    async def create_empty_repository(
        self,
        name: str,
        *,
        description: str = "",
        private: bool = False,
    ) -> dict[str, Any]:
        """Create an empty repository initialized with a first commit."""
        result = await self._request_json(
            "POST",
            "/user/repos",
            json={
                "name": name,
                "description": description,
                "private": private,
                "auto_init": True,
            },
        )
        logger.info(
            "Empty repository created: %s/%s",
            self.owner,
            name,
            extra={"repository": name},
        )
        return result

    async def get_file(self, repository: str, path: str) -> dict[str, Any]:
        """Get file metadata (including its ``sha`` revision token).

        Raises GitHubNotFoundError if the file doesn't exist.
        """
        return await self._request_json(
            "GET", f"/repos/{self.owner}/{repository}/contents/{path}",
        )

    async def put_file(
        self,
        repository: str,
        path: str,
        content: str,
        *,
        message: str,
        sha: str | None = None,
    ) -> dict[str, Any]:
        """Create or update a file. ``sha`` must be given when updating."""
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        if sha:
            payload["sha"] = sha
        return await self._request_json(
            "PUT",
            f"/repos/{self.owner}/{repository}/contents/{path}",
            json=payload,
        )
