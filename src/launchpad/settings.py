"""Launchpad configuration settings.

LaunchpadSettings is the single configuration object accepted by create_app()
and the orchestrator. It is a plain frozen dataclass (not env-coupled) so
tests can inject config without touching os.environ; ``from_env`` is the
production factory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


DEFAULT_TEMPLATE_REPO = "connexions-template"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_VERCEL_API_URL = "https://api.vercel.com"
DEFAULT_ELEVENLABS_API_URL = "https://api.elevenlabs.io"
DEFAULT_HOSTING_DOMAIN = "vercel.app"
DEFAULT_GIT_REF = "main"


class ProvisioningConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


def _float(env: dict[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ProvisioningConfigError(f"Invalid {name}; must be a number") from exc


def _int(env: dict[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ProvisioningConfigError(f"Invalid {name}; must be an integer") from exc


@dataclass(frozen=True, slots=True)
class LaunchpadSettings:
    """Configuration for tenant provisioning and the HTTP API.

    Defaults suit local development, where in-memory services stand in for
    GitHub, Vercel, and ElevenLabs. Non-local environments must supply the
    three service credentials.
    """

    # ── Environment ────────────────────────────────────────────────
    environment: str = "local"
    """``local`` wires in-memory services; anything else uses real APIs."""

    # ── Source control (GitHub) ────────────────────────────────────
    github_token: str = ""
    """Token with repo scope. Never log this."""

    github_owner: str = ""
    github_template_repo: str = DEFAULT_TEMPLATE_REPO
    github_api_url: str = DEFAULT_GITHUB_API_URL

    # ── Hosting (Vercel) ───────────────────────────────────────────
    vercel_token: str = ""
    vercel_team_id: str = ""
    vercel_api_url: str = DEFAULT_VERCEL_API_URL
    hosting_domain: str = DEFAULT_HOSTING_DOMAIN
    deploy_git_ref: str = DEFAULT_GIT_REF

    # ── Voice agents (ElevenLabs) ──────────────────────────────────
    elevenlabs_api_key: str = ""
    elevenlabs_api_url: str = DEFAULT_ELEVENLABS_API_URL

    # ── Provisioning behaviour ─────────────────────────────────────
    repo_settle_seconds: float = 2.0
    http_timeout_seconds: float = 30.0
    http_max_retries: int = 0

    # ── API ────────────────────────────────────────────────────────
    setup_api_token: str = ""
    """When set, API routes require ``Authorization: Bearer <token>``."""

    # ── Logging ────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_local(self) -> bool:
        return self.environment == "local"

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if not self.is_local:
            errors.extend(self.missing_credentials())
        if self.repo_settle_seconds < 0:
            errors.append("repo_settle_seconds must be >= 0")
        if self.http_max_retries < 0:
            errors.append("http_max_retries must be >= 0")
        return errors

    def missing_credentials(self) -> list[str]:
        """Credentials a real provisioning run cannot start without."""
        missing: list[str] = []
        if not self.github_token:
            missing.append("GITHUB_TOKEN is required")
        if not self.github_owner:
            missing.append("GITHUB_OWNER is required")
        if not self.vercel_token:
            missing.append("VERCEL_TOKEN is required")
        if not self.elevenlabs_api_key:
            missing.append("ELEVENLABS_API_KEY is required")
        return missing

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> LaunchpadSettings:
        """Build settings from environment variables.

        Raises:
            ProvisioningConfigError: If a numeric variable does not parse.
        """
        if env is None:
            env = dict(os.environ)

        return cls(
            environment=env.get("ENVIRONMENT", "local"),
            github_token=env.get("GITHUB_TOKEN", ""),
            github_owner=env.get("GITHUB_OWNER", ""),
            github_template_repo=env.get("GITHUB_TEMPLATE_REPO", "") or DEFAULT_TEMPLATE_REPO,
            github_api_url=env.get("GITHUB_API_URL", "") or DEFAULT_GITHUB_API_URL,
            vercel_token=env.get("VERCEL_TOKEN", ""),
            vercel_team_id=env.get("VERCEL_TEAM_ID", ""),
            vercel_api_url=env.get("VERCEL_API_URL", "") or DEFAULT_VERCEL_API_URL,
            hosting_domain=env.get("HOSTING_DOMAIN", "") or DEFAULT_HOSTING_DOMAIN,
            deploy_git_ref=env.get("DEPLOY_GIT_REF", "") or DEFAULT_GIT_REF,
            elevenlabs_api_key=env.get("ELEVENLABS_API_KEY", ""),
            elevenlabs_api_url=env.get("ELEVENLABS_API_URL", "") or DEFAULT_ELEVENLABS_API_URL,
            repo_settle_seconds=_float(env, "REPO_SETTLE_SECONDS", 2.0),
            http_timeout_seconds=_float(env, "HTTP_TIMEOUT_SECONDS", 30.0),
            http_max_retries=_int(env, "HTTP_MAX_RETRIES", 0),
            setup_api_token=env.get("SETUP_API_TOKEN", ""),
            log_level=env.get("LOG_LEVEL", "") or "INFO",
            log_format=env.get("LOG_FORMAT", "") or "json",
        )
