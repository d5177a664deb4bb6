"""Launchpad FastAPI application factory.

The create_app() factory is the single entry point for building the ASGI
application. It validates settings, wires the source-control, hosting and
voice-agent services (real API clients, or in-memory services in local
mode), builds the provisioning orchestrator and mounts the routers.

Usage:
    # Local development (in-memory services, no credentials)
    from launchpad.main import create_app
    app = create_app()

    # Real services
    app = create_app(LaunchpadSettings.from_env())

    # Testing (full DI control)
    app = create_app(settings, source_control=fake_scm, hosting=fake_hosting, ...)
"""

from __future__ import annotations

import hmac
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .observability import (
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
    metrics_text,
)
from .protocols import HostingService, SourceControlService, VoiceAgentService
from .providers import (
    ElevenLabsClient,
    GitHubClient,
    VercelClient,
    close_shared_async_client,
)
from .provisioning import ProvisioningOrchestrator
from .routes import create_setup_router, create_voice_router
from .settings import LaunchpadSettings
from .voice import InMemorySessionStore, SessionStore, VoiceSessionService

logger = logging.getLogger(__name__)

# Paths that never require the setup API token.
AUTH_ALLOWLIST_EXACT: frozenset[str] = frozenset({
    "/health",
    "/metrics",
})


@dataclass(frozen=True)
class AppDependencies:
    """Container for the injected services.

    Stored on ``app.state.deps`` so route handlers and tests can reach them.
    """

    source_control: SourceControlService
    hosting: HostingService
    voice: VoiceAgentService
    session_store: SessionStore


def _build_inmemory_deps() -> AppDependencies:
    """Construct all-InMemory dependencies for local development."""
    from .inmemory import (
        InMemoryHostingService,
        InMemorySourceControlService,
        InMemoryVoiceAgentService,
    )

    return AppDependencies(
        source_control=InMemorySourceControlService(),
        hosting=InMemoryHostingService(),
        voice=InMemoryVoiceAgentService(),
        session_store=InMemorySessionStore(),
    )


def _build_client_deps(settings: LaunchpadSettings) -> AppDependencies:
    """Construct API clients for the real services."""
    return AppDependencies(
        source_control=GitHubClient(
            token=settings.github_token,
            owner=settings.github_owner,
            base_url=settings.github_api_url,
            timeout_seconds=settings.http_timeout_seconds,
            max_retries=settings.http_max_retries,
        ),
        hosting=VercelClient(
            token=settings.vercel_token,
            team_id=settings.vercel_team_id,
            base_url=settings.vercel_api_url,
            timeout_seconds=settings.http_timeout_seconds,
            max_retries=settings.http_max_retries,
        ),
        voice=ElevenLabsClient(
            api_key=settings.elevenlabs_api_key,
            base_url=settings.elevenlabs_api_url,
            timeout_seconds=settings.http_timeout_seconds,
            max_retries=settings.http_max_retries,
        ),
        session_store=InMemorySessionStore(),
    )


# ── Middleware ──────────────────────────────────────────────────────


class AuthGuardMiddleware(BaseHTTPMiddleware):
    """Require ``Authorization: Bearer <setup token>`` outside the allowlist.

    Only installed when ``SETUP_API_TOKEN`` is configured. OPTIONS is
    always allowed.
    """

    def __init__(self, app, *, token: str) -> None:  # type: ignore[no-untyped-def]
        super().__init__(app)
        self._token = token

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if request.method == "OPTIONS" or request.url.path in AUTH_ALLOWLIST_EXACT:
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        scheme, _, supplied = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not hmac.compare_digest(
            supplied.strip().encode(), self._token.encode(),
        ):
            request_id = getattr(request.state, "request_id", "unknown")
            logger.debug(
                "[%s] Auth guard: rejected request to %s",
                request_id,
                request.url.path,
            )
            return JSONResponse(
                status_code=401,
                content={
                    "code": "AUTH_REQUIRED",
                    "message": "Authentication required",
                    "request_id": request_id,
                },
                headers={"WWW-Authenticate": 'Bearer realm="launchpad"'},
            )

        return await call_next(request)


# ── Factory ─────────────────────────────────────────────────────────


def create_app(
    settings: LaunchpadSettings | None = None,
    *,
    source_control: SourceControlService | None = None,
    hosting: HostingService | None = None,
    voice: VoiceAgentService | None = None,
    session_store: SessionStore | None = None,
) -> FastAPI:
    """Create a configured Launchpad FastAPI application.

    Args:
        settings: Application settings. Defaults to ``LaunchpadSettings.from_env()``.
        source_control..session_store: Service overrides. Any left as None
            is filled with an in-memory service in local mode and with a
            real API client otherwise.

    Returns:
        Configured FastAPI application ready for uvicorn.run().

    Raises:
        ValueError: If settings validation fails (non-local without credentials).
    """
    if settings is None:
        settings = LaunchpadSettings.from_env()

    errors = settings.validate()
    if errors:
        raise ValueError(
            "Launchpad settings validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    configure_logging(
        level=settings.log_level,
        json_output=settings.log_format == "json",
    )

    defaults = _build_inmemory_deps() if settings.is_local else _build_client_deps(settings)
    deps = AppDependencies(
        source_control=source_control or defaults.source_control,
        hosting=hosting or defaults.hosting,
        voice=voice or defaults.voice,
        session_store=session_store or defaults.session_store,
    )

    orchestrator = ProvisioningOrchestrator.from_services(
        settings,
        source_control=deps.source_control,
        hosting=deps.hosting,
        voice=deps.voice,
    )
    sessions = VoiceSessionService(voice=deps.voice, store=deps.session_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Launchpad startup (environment=%s)", settings.environment)
        yield
        await close_shared_async_client()
        logger.info("Launchpad shutdown")

    app = FastAPI(
        title="Launchpad",
        description="Tenant stack provisioning: repository, hosting project, voice agent",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.deps = deps
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    # ── Middleware stack (applied in reverse order) ──────────────
    # Order of execution: RequestID -> logging -> AuthGuard -> route handler
    if settings.setup_api_token:
        app.add_middleware(AuthGuardMiddleware, token=settings.setup_api_token)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # ── Routes ──────────────────────────────────────────────────

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "environment": settings.environment,
        }

    @app.get("/metrics")
    async def metrics():
        body, content_type = metrics_text()
        return Response(content=body, media_type=content_type)

    app.include_router(create_setup_router(orchestrator))
    app.include_router(create_voice_router(sessions))

    return app


# For uvicorn, use --factory flag:
#   uvicorn launchpad.main:create_app --factory
# This avoids executing create_app() at import time.
