"""Provisioning orchestrator: brings a tenant's stack online in one pass.

Sequence for ``provision``:
  preflight (credentials, canonical name)      -> configuration_error
  -> ensure agent                              -> agent_creation_failed
  -> ensure repository        (failure absorbed, deployment binds by reference)
  -> ensure deployment        (first-time project creation failure is fatal)
                                               -> project_creation_failed

Each step returns a ``StepOutcome``; the orchestrator alone decides which
outcomes are fatal. Nothing is rolled back: resources created before a
fatal step stay in place and are reported in the result. ``provision``
never raises.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from launchpad.observability.logging import request_id_ctx
from launchpad.observability.metrics import (
    PROVISIONING_RUNS_TOTAL,
    PROVISIONING_STEPS_TOTAL,
)
from launchpad.protocols import HostingService, SourceControlService, VoiceAgentService
from launchpad.settings import LaunchpadSettings
from launchpad.voice.catalog import VoiceSelection
from launchpad.voice.prompts import SETUP_AGENT_PROMPT

from .deployment import DeploymentProvisioner
from .env_sync import EnvironmentVariableSynchronizer
from .existence import ResourceExistenceChecker
from .models import (
    ProvisioningRequest,
    ProvisioningResult,
    ResourceKind,
    ResourceRecord,
    SecretBundle,
    StepOutcome,
    StepStatus,
    TenantMetadata,
)
from .naming import agent_display_name, canonical_name
from .repository import RepositoryProvisioner
from .voice_agent import STEP_NAME as AGENT_STEP
from .voice_agent import VoiceAgentProvisioner

logger = logging.getLogger(__name__)

CONFIGURATION_ERROR = "configuration_error"
AGENT_CREATION_FAILED = "agent_creation_failed"
PROJECT_CREATION_FAILED = "project_creation_failed"
UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True, slots=True)
class SetupRequest:
    """Everything a caller supplies to provision one tenant."""

    platform_name: str
    company_name: str = ""
    description: str = ""
    voice: VoiceSelection | str | None = None
    secrets: SecretBundle = field(default_factory=SecretBundle)
    request_id: str | None = None


class ProvisioningOrchestrator:
    """Composes the agent, repository and deployment provisioners."""

    def __init__(
        self,
        *,
        agents: VoiceAgentProvisioner,
        repositories: RepositoryProvisioner,
        deployments: DeploymentProvisioner,
        template_ref: str = "connexions-template",
        prompt_template: str = SETUP_AGENT_PROMPT,
        config_errors: Sequence[str] = (),
    ) -> None:
        self.agents = agents
        self.repositories = repositories
        self.deployments = deployments
        self._template_ref = template_ref
        self._prompt_template = prompt_template
        self._config_errors = tuple(config_errors)

    @classmethod
    def from_services(
        cls,
        settings: LaunchpadSettings,
        *,
        source_control: SourceControlService,
        hosting: HostingService,
        voice: VoiceAgentService,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> ProvisioningOrchestrator:
        """Wire provisioners over the given services.

        Missing credentials are only a preflight failure outside local mode,
        where the services are real API clients.
        """
        checker = ResourceExistenceChecker.for_services(
            source_control=source_control, hosting=hosting, voice=voice,
        )
        return cls(
            agents=VoiceAgentProvisioner(voice=voice, checker=checker),
            repositories=RepositoryProvisioner(
                source_control=source_control,
                checker=checker,
                settle_seconds=settings.repo_settle_seconds,
                sleep=sleep,
            ),
            deployments=DeploymentProvisioner(
                hosting=hosting,
                checker=checker,
                env_sync=EnvironmentVariableSynchronizer(hosting),
                domain=settings.hosting_domain,
                git_ref=settings.deploy_git_ref,
            ),
            template_ref=settings.github_template_repo,
            config_errors=() if settings.is_local else settings.missing_credentials(),
        )

    # ── Request preparation ──────────────────────────────────────────

    def prepare(self, setup: SetupRequest) -> ProvisioningRequest:
        """Derive the canonical name and working state for a setup request."""
        metadata = TenantMetadata(
            platform_name=setup.platform_name,
            company_name=setup.company_name,
            description=setup.description,
            voice=VoiceSelection.parse(setup.voice),
        )
        return ProvisioningRequest(
            request_id=setup.request_id or request_id_ctx.get() or uuid.uuid4().hex,
            canonical_name=canonical_name(setup.platform_name),
            metadata=metadata,
            secrets=setup.secrets,
        )

    def preflight(self, request: ProvisioningRequest) -> list[str]:
        """Configuration problems that must stop a run before any remote call."""
        errors = list(self._config_errors)
        if not request.canonical_name:
            errors.append("platform name yields an empty canonical name")
        return errors

    # ── Steps ────────────────────────────────────────────────────────

    async def ensure_agent(self, request: ProvisioningRequest) -> StepOutcome:
        """Reuse the agent id carried in the secrets, else create-or-reuse by name."""
        metadata = request.metadata
        display_name = agent_display_name(metadata.company_name, metadata.platform_name)
        if request.secrets.agent_id:
            outcome = StepOutcome(
                step=AGENT_STEP,
                status=StepStatus.SUCCEEDED,
                record=ResourceRecord(
                    kind=ResourceKind.AGENT,
                    external_id=request.secrets.agent_id,
                    name=display_name,
                    already_exists=True,
                ),
            )
        else:
            outcome = await self.agents.ensure_agent(
                display_name,
                self._prompt_template,
                metadata.voice,
                company=metadata.display_company,
            )
        if outcome.record is not None:
            request.secrets = request.secrets.with_agent_id(outcome.record.external_id)
        return self._record(request, outcome)

    async def ensure_repository(self, request: ProvisioningRequest) -> StepOutcome:
        outcome = await self.repositories.ensure_repository(
            request.canonical_name,
            self._template_ref,
            request.metadata,
            request.secrets,
        )
        return self._record(request, outcome)

    async def ensure_deployment(
        self,
        request: ProvisioningRequest,
        repository_ref: str | None = None,
    ) -> StepOutcome:
        """Bind the project to ``repository_ref``, or to the repository this
        run produced, or to the deterministic ``owner/name`` reference."""
        if repository_ref is None:
            repo = request.resource(ResourceKind.REPOSITORY)
            repository_ref = (
                repo.reference
                if repo is not None and repo.reference
                else self.repositories.repository_reference(request.canonical_name)
            )
        outcome = await self.deployments.ensure_deployment(
            request.canonical_name,
            repository_ref,
            request.secrets,
            request.metadata,
        )
        return self._record(request, outcome)

    # ── Full run ─────────────────────────────────────────────────────

    async def provision(self, setup: SetupRequest) -> ProvisioningResult:
        """Run every step in order and return a structured result."""
        request = self.prepare(setup)
        log_extra = {
            "provisioning_request_id": request.request_id,
            "canonical_name": request.canonical_name,
        }

        errors = self.preflight(request)
        if errors:
            logger.error(
                "Provisioning preflight failed: %s",
                "; ".join(errors),
                extra=log_extra,
            )
            return self._finish(
                request, error="; ".join(errors), error_code=CONFIGURATION_ERROR,
            )

        logger.info("Provisioning started: %s", request.canonical_name, extra=log_extra)
        try:
            return await self._run(request)
        except Exception as exc:
            logger.exception(
                "Provisioning aborted by unexpected error: %s",
                request.canonical_name,
                extra=log_extra,
            )
            return self._finish(request, error=str(exc), error_code=UNEXPECTED_ERROR)

    async def _run(self, request: ProvisioningRequest) -> ProvisioningResult:
        agent = await self.ensure_agent(request)
        if not agent.ok:
            return self._finish(
                request,
                error=f"Voice agent creation failed: {agent.error}",
                error_code=AGENT_CREATION_FAILED,
            )

        repository = await self.ensure_repository(request)
        if not repository.ok:
            logger.warning(
                "Continuing without a confirmed repository for %s",
                request.canonical_name,
                extra={"canonical_name": request.canonical_name},
            )

        deployment = await self.ensure_deployment(request)
        if not deployment.ok:
            return self._finish(
                request,
                error=f"Project creation failed: {deployment.error}",
                error_code=PROJECT_CREATION_FAILED,
            )

        return self._finish(request)

    # ── Bookkeeping ──────────────────────────────────────────────────

    def _record(self, request: ProvisioningRequest, outcome: StepOutcome) -> StepOutcome:
        PROVISIONING_STEPS_TOTAL.labels(step=outcome.step, status=outcome.status.value).inc()
        return request.record(outcome)

    def _finish(
        self,
        request: ProvisioningRequest,
        *,
        error: str | None = None,
        error_code: str | None = None,
    ) -> ProvisioningResult:
        repo = request.resource(ResourceKind.REPOSITORY)
        project = request.resource(ResourceKind.PROJECT)
        agent = request.resource(ResourceKind.AGENT)
        degraded = any(step.status != StepStatus.SUCCEEDED for step in request.steps)

        if error is not None:
            outcome = "failed"
        elif degraded:
            outcome = "degraded"
        else:
            outcome = "success"
        PROVISIONING_RUNS_TOTAL.labels(outcome=outcome).inc()

        logger.info(
            "Provisioning finished: %s (%s)",
            request.canonical_name,
            outcome,
            extra={
                "provisioning_request_id": request.request_id,
                "canonical_name": request.canonical_name,
                "outcome": outcome,
                "error_code": error_code,
            },
        )

        return ProvisioningResult(
            success=error is None,
            request_id=request.request_id,
            canonical_name=request.canonical_name,
            repository_url=repo.url if repo else None,
            deployment_url=project.url if project else None,
            agent_id=agent.external_id if agent else None,
            repository_already_exists=bool(repo and repo.already_exists),
            deployment_already_exists=bool(project and project.already_exists),
            agent_already_exists=bool(agent and agent.already_exists),
            degraded=degraded,
            error=error,
            error_code=error_code,
            steps=tuple(request.steps),
        )
