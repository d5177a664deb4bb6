"""Tenant setup API.

Exposes the provisioning orchestrator and its individual steps:
  POST /api/v1/setup             → full run (agent → repository → deployment)
  POST /api/v1/setup/agent       → create-or-reuse the voice agent only
  POST /api/v1/setup/repository  → create-or-reuse the repository only
  POST /api/v1/setup/deployment  → create-or-reuse the hosting project only

Status mapping:
  - 200 when the run (or step) did not fail; ``degraded`` is reported in
    the body, not in the status code.
  - 500 for configuration errors (nothing was attempted remotely).
  - 502 for remote failures; the body still carries the partial result.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from launchpad.provisioning.models import (
    ProvisioningRequest,
    ResourceRecord,
    SecretBundle,
    StepOutcome,
)
from launchpad.provisioning.orchestrator import (
    CONFIGURATION_ERROR,
    ProvisioningOrchestrator,
    SetupRequest,
)


# ── Request schemas ───────────────────────────────────────────────────


class SecretsBody(BaseModel):
    supabase_url: str = ''
    supabase_anon_key: str = ''
    supabase_service_key: str = ''
    elevenlabs_api_key: str = ''
    agent_id: str = Field(
        default='',
        description='Agent id from an earlier run; reused instead of a lookup.',
    )

    def to_bundle(self) -> SecretBundle:
        return SecretBundle(
            datastore_url=self.supabase_url,
            datastore_anon_key=self.supabase_anon_key,
            datastore_service_key=self.supabase_service_key,
            voice_api_key=self.elevenlabs_api_key,
            agent_id=self.agent_id,
        )


class SetupBody(BaseModel):
    platform_name: str = Field(min_length=1, max_length=200)
    company_name: str = ''
    description: str = ''
    voice: str | None = Field(
        default=None,
        description='male, female, formal, professional, friendly or casual.',
    )
    secrets: SecretsBody = Field(default_factory=SecretsBody)

    def to_setup(self, request_id: str | None) -> SetupRequest:
        return SetupRequest(
            platform_name=self.platform_name,
            company_name=self.company_name,
            description=self.description,
            voice=self.voice,
            secrets=self.secrets.to_bundle(),
            request_id=request_id,
        )


class DeploymentBody(SetupBody):
    repository: str | None = Field(
        default=None,
        description='owner/name to bind; defaults to the tenant repository.',
    )


# ── Response helpers ──────────────────────────────────────────────────


def _record_payload(record: ResourceRecord | None) -> dict | None:
    if record is None:
        return None
    return {
        'kind': record.kind.value,
        'id': record.external_id,
        'name': record.name,
        'url': record.url,
        'reference': record.reference,
        'already_exists': record.already_exists,
        'ready': record.ready,
    }


def _step_response(state: ProvisioningRequest, outcome: StepOutcome) -> JSONResponse:
    return JSONResponse(
        status_code=200 if outcome.ok else 502,
        content={
            'request_id': state.request_id,
            'canonical_name': state.canonical_name,
            **outcome.as_dict(),
            'resource': _record_payload(outcome.record),
        },
    )


def _request_id(request: Request) -> str | None:
    return getattr(request.state, 'request_id', None)


# ── Route factory ─────────────────────────────────────────────────────


def create_setup_router(orchestrator: ProvisioningOrchestrator) -> APIRouter:
    """Create the tenant setup router.

    Args:
        orchestrator: Provisioning orchestrator wired to the configured
            source-control, hosting, and voice-agent services.

    Returns:
        FastAPI router with setup endpoints.
    """
    router = APIRouter(prefix='/api/v1/setup', tags=['setup'])

    async def _run_step(
        body: SetupBody,
        request: Request,
        step: Callable[[ProvisioningRequest], Awaitable[StepOutcome]],
    ) -> JSONResponse:
        state = orchestrator.prepare(body.to_setup(_request_id(request)))
        errors = orchestrator.preflight(state)
        if errors:
            return JSONResponse(
                status_code=500,
                content={
                    'error': CONFIGURATION_ERROR,
                    'detail': '; '.join(errors),
                    'request_id': state.request_id,
                },
            )
        return _step_response(state, await step(state))

    @router.post('')
    async def run_setup(body: SetupBody, request: Request):
        """Provision the full tenant stack and return every reference."""
        result = await orchestrator.provision(body.to_setup(_request_id(request)))
        if result.success:
            status_code = 200
        elif result.error_code == CONFIGURATION_ERROR:
            status_code = 500
        else:
            status_code = 502
        return JSONResponse(status_code=status_code, content=result.as_dict())

    @router.post('/agent')
    async def setup_agent(body: SetupBody, request: Request):
        return await _run_step(body, request, orchestrator.ensure_agent)

    @router.post('/repository')
    async def setup_repository(body: SetupBody, request: Request):
        return await _run_step(body, request, orchestrator.ensure_repository)

    @router.post('/deployment')
    async def setup_deployment(body: DeploymentBody, request: Request):
        """Create or reuse the hosting project and redeploy it.

        Binds to ``body.repository`` when given, else to the tenant's
        deterministic ``owner/name`` repository reference.
        """

        async def _deploy(state: ProvisioningRequest) -> StepOutcome:
            return await orchestrator.ensure_deployment(state, body.repository)

        return await _run_step(body, request, _deploy)

    return router
