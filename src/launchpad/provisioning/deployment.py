"""Deployment provisioner: create-or-reuse the tenant's hosting project.

Both paths end in the same sequence: synchronize environment variables,
then trigger a production deployment of the configured git ref. The public
URL is derived from the canonical name, so it is known (and can be put in
the variables) before the project exists.

Only first-time project creation can fail the step. Variable and deploy
trigger failures leave the step ``degraded``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from launchpad.protocols import HostingService
from launchpad.providers.base import ProviderAPIError

from .env_sync import EnvironmentVariableSynchronizer
from .existence import ResourceExistenceChecker
from .models import (
    Found,
    ResourceKind,
    ResourceRecord,
    SecretBundle,
    ServiceKind,
    StepOutcome,
    StepStatus,
    TenantMetadata,
)
from .naming import deployment_url

logger = logging.getLogger(__name__)

STEP_NAME = "deployment"


@dataclass(frozen=True, slots=True)
class BuildProfile:
    framework: str = "nextjs"
    build_command: str = "npm run build"
    install_command: str = "npm install"
    output_directory: str = ".next"

    def as_payload(self) -> dict[str, Any]:
        return {
            "framework": self.framework,
            "buildCommand": self.build_command,
            "installCommand": self.install_command,
            "outputDirectory": self.output_directory,
        }


def build_environment_map(
    secrets: SecretBundle,
    metadata: TenantMetadata,
    app_url: str,
) -> dict[str, str]:
    """Variables every tenant deployment receives. Empty values are skipped at sync."""
    return {
        "NEXT_PUBLIC_SUPABASE_URL": secrets.datastore_url,
        "NEXT_PUBLIC_SUPABASE_ANON_KEY": secrets.datastore_anon_key,
        "SUPABASE_SERVICE_ROLE_KEY": secrets.datastore_service_key,
        "ELEVENLABS_API_KEY": secrets.voice_api_key,
        "ELEVENLABS_SETUP_AGENT_ID": secrets.agent_id,
        "NEXT_PUBLIC_APP_URL": app_url,
        "NEXT_PUBLIC_COMPANY_NAME": metadata.company_name,
    }


class DeploymentProvisioner:
    def __init__(
        self,
        *,
        hosting: HostingService,
        checker: ResourceExistenceChecker,
        env_sync: EnvironmentVariableSynchronizer,
        domain: str = "vercel.app",
        git_ref: str = "main",
        build_profile: BuildProfile | None = None,
    ) -> None:
        self._hosting = hosting
        self._checker = checker
        self._env_sync = env_sync
        self._domain = domain
        self._git_ref = git_ref
        self._build_profile = build_profile or BuildProfile()

    def public_url(self, canonical_name: str) -> str:
        return deployment_url(canonical_name, self._domain)

    async def ensure_deployment(
        self,
        canonical_name: str,
        repository_ref: str,
        secrets: SecretBundle,
        metadata: TenantMetadata | None = None,
    ) -> StepOutcome:
        metadata = metadata or TenantMetadata(platform_name=canonical_name)
        url = self.public_url(canonical_name)
        log_extra = {"project": canonical_name, "repository": repository_ref}

        lookup = await self._checker.lookup(ServiceKind.HOSTING, canonical_name)
        if isinstance(lookup, Found):
            project = lookup.record
            already_exists = True
            logger.info(
                "Found existing project: %s (%s)",
                canonical_name,
                project.get("id"),
                extra=log_extra,
            )
        else:
            try:
                project = await self._hosting.create_project(
                    canonical_name,
                    repository=repository_ref,
                    build_profile=self._build_profile.as_payload(),
                )
            except ProviderAPIError as exc:
                logger.error(
                    "Project creation failed: %s",
                    canonical_name,
                    extra={**log_extra, "status_code": exc.status_code},
                    exc_info=True,
                )
                return StepOutcome(step=STEP_NAME, status=StepStatus.FAILED, error=str(exc))
            already_exists = False

        project_id = str(project.get("id") or canonical_name)
        warnings: list[str] = []

        report = await self._env_sync.sync_variables(
            project_id, build_environment_map(secrets, metadata, url),
        )
        for key, error in report.failed.items():
            warnings.append(f"environment variable {key} not set: {error}")

        try:
            await self._hosting.trigger_deployment(
                canonical_name,
                project_id=project_id,
                repository=repository_ref,
                git_ref=self._git_ref,
            )
        except ProviderAPIError as exc:
            logger.warning(
                "Deployment trigger failed for %s",
                canonical_name,
                extra={**log_extra, "status_code": exc.status_code},
                exc_info=True,
            )
            warnings.append(f"deployment trigger failed: {exc}")

        record = ResourceRecord(
            kind=ResourceKind.PROJECT,
            external_id=project_id,
            name=canonical_name,
            url=url,
            already_exists=already_exists,
            ready=not warnings,
            reference=repository_ref,
        )
        return StepOutcome(
            step=STEP_NAME,
            status=StepStatus.DEGRADED if warnings else StepStatus.SUCCEEDED,
            record=record,
            warnings=tuple(warnings),
        )
