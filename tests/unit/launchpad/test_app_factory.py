"""Unit tests for the Launchpad app factory and HTTP routes.

Tests:
  1. create_app() in local mode wires in-memory services
  2. Settings validation errors surface as ValueError
  3. /health and /metrics
  4. Request-ID propagation into provisioning results
  5. Setup routes: full run and individual steps, status mapping
  6. Voice session routes
  7. Auth guard when SETUP_API_TOKEN is set
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from launchpad.inmemory import (
    InMemoryHostingService,
    InMemorySourceControlService,
    InMemoryVoiceAgentService,
)
from launchpad.main import AUTH_ALLOWLIST_EXACT, create_app
from launchpad.settings import LaunchpadSettings


def _local_settings(**overrides) -> LaunchpadSettings:
    defaults = {"environment": "local", "repo_settle_seconds": 0.0}
    defaults.update(overrides)
    return LaunchpadSettings(**defaults)


def _client(**overrides) -> TestClient:
    return TestClient(create_app(_local_settings(), **overrides))


SETUP_BODY = {
    "platform_name": "Acme Co!!",
    "company_name": "Acme",
    "voice": "formal",
    "secrets": {
        "supabase_url": "https://db.acme.test",
        "supabase_anon_key": "anon",
        "supabase_service_key": "service",
        "elevenlabs_api_key": "xi",
    },
}


# ── Factory ─────────────────────────────────────────────────────


class TestCreateApp:
    def test_local_mode_uses_inmemory_services(self):
        app = create_app(_local_settings())
        assert app.title == "Launchpad"
        assert isinstance(app.state.deps.source_control, InMemorySourceControlService)
        assert isinstance(app.state.deps.hosting, InMemoryHostingService)
        assert isinstance(app.state.deps.voice, InMemoryVoiceAgentService)

    def test_non_local_without_credentials_raises(self):
        with pytest.raises(ValueError, match="GITHUB_TOKEN is required"):
            create_app(LaunchpadSettings(environment="production"))

    def test_non_local_with_credentials_builds_clients(self):
        from launchpad.providers import ElevenLabsClient, GitHubClient, VercelClient

        app = create_app(LaunchpadSettings(
            environment="production",
            github_token="gh",
            github_owner="acme-org",
            vercel_token="vc",
            elevenlabs_api_key="xi",
        ))

        assert isinstance(app.state.deps.source_control, GitHubClient)
        assert isinstance(app.state.deps.hosting, VercelClient)
        assert isinstance(app.state.deps.voice, ElevenLabsClient)

    def test_health_endpoint(self):
        resp = _client().get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "environment": "local"}

    def test_metrics_endpoint_exposes_provisioning_counters(self):
        client = _client()
        client.post("/api/v1/setup", json=SETUP_BODY)

        resp = client.get("/metrics")

        assert resp.status_code == 200
        assert "launchpad_provisioning_runs_total" in resp.text
        assert "launchpad_provisioning_steps_total" in resp.text

    def test_request_id_is_echoed(self):
        resp = _client().get("/health", headers={"X-Request-ID": "req-12345678"})
        assert resp.headers["X-Request-ID"] == "req-12345678"

    def test_request_id_generated_when_missing(self):
        resp = _client().get("/health")
        assert len(resp.headers["X-Request-ID"]) >= 8


# ── Setup routes ────────────────────────────────────────────────


class TestSetupRoutes:
    def test_full_setup_returns_every_reference(self):
        resp = _client().post(
            "/api/v1/setup", json=SETUP_BODY, headers={"X-Request-ID": "req-setup-0001"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["request_id"] == "req-setup-0001"
        assert body["canonical_name"] == "acme-co"
        assert body["repository_url"] == "https://github.com/local-owner/acme-co"
        assert body["deployment_url"] == "https://acme-co.vercel.app"
        assert body["agent_id"].startswith("agent_")
        assert body["already_exists"] == {
            "repository": False,
            "deployment": False,
            "agent": False,
        }

    def test_second_setup_reports_already_exists(self):
        client = _client()
        client.post("/api/v1/setup", json=SETUP_BODY)

        body = client.post("/api/v1/setup", json=SETUP_BODY).json()

        assert body["already_exists"] == {
            "repository": True,
            "deployment": True,
            "agent": True,
        }

    def test_agent_failure_maps_to_502_with_partial_body(self):
        client = _client(voice=InMemoryVoiceAgentService(fail_on={"create_agent"}))

        resp = client.post("/api/v1/setup", json=SETUP_BODY)

        assert resp.status_code == 502
        body = resp.json()
        assert body["success"] is False
        assert body["error_code"] == "agent_creation_failed"
        assert body["repository_url"] is None

    def test_degraded_run_is_still_200(self):
        client = _client(source_control=InMemorySourceControlService(fail_on={"put_file"}))

        resp = client.post("/api/v1/setup", json=SETUP_BODY)

        assert resp.status_code == 200
        assert resp.json()["degraded"] is True

    def test_missing_platform_name_is_rejected(self):
        resp = _client().post("/api/v1/setup", json={"company_name": "Acme"})
        assert resp.status_code == 422

    def test_unusable_platform_name_is_configuration_error(self):
        resp = _client().post("/api/v1/setup", json={"platform_name": "!!!"})

        assert resp.status_code == 500
        assert resp.json()["error_code"] == "configuration_error"

    def test_agent_step_route(self):
        voice = InMemoryVoiceAgentService()
        resp = _client(voice=voice).post("/api/v1/setup/agent", json=SETUP_BODY)

        assert resp.status_code == 200
        body = resp.json()
        assert body["step"] == "agent"
        assert body["status"] == "succeeded"
        assert body["resource"]["id"] == voice.agents[0]["agent_id"]
        assert body["resource"]["name"] == "Acme Setup Agent"

    def test_repository_step_route(self):
        scm = InMemorySourceControlService(owner="acme-org")
        resp = _client(source_control=scm).post("/api/v1/setup/repository", json=SETUP_BODY)

        assert resp.status_code == 200
        assert resp.json()["resource"]["url"] == "https://github.com/acme-org/acme-co"
        assert "acme-co" in scm.repositories

    def test_deployment_step_route_binds_explicit_repository(self):
        hosting = InMemoryHostingService()
        resp = _client(hosting=hosting).post(
            "/api/v1/setup/deployment",
            json={**SETUP_BODY, "repository": "someone/else"},
        )

        assert resp.status_code == 200
        assert resp.json()["resource"]["url"] == "https://acme-co.vercel.app"
        assert hosting.projects["acme-co"]["link"]["repo"] == "someone/else"

    def test_deployment_step_failure_is_502(self):
        hosting = InMemoryHostingService(fail_on={"create_project"})
        resp = _client(hosting=hosting).post("/api/v1/setup/deployment", json=SETUP_BODY)

        assert resp.status_code == 502
        assert resp.json()["status"] == "failed"


# ── Voice session routes ────────────────────────────────────────


class TestVoiceRoutes:
    def test_start_and_fetch_session(self):
        client = _client()
        agent_id = client.post("/api/v1/setup/agent", json=SETUP_BODY).json()["resource"]["id"]

        resp = client.post(
            "/api/v1/voice/sessions",
            json={"agent_id": agent_id},
            headers={"X-Request-ID": "req-voice-0001"},
        )

        assert resp.status_code == 201
        assert resp.json()["session_id"] == "req-voice-0001"
        fetched = client.get("/api/v1/voice/sessions/req-voice-0001")
        assert fetched.status_code == 200
        assert fetched.json()["agent_id"] == agent_id

    def test_reused_request_id_is_409(self):
        client = _client()
        agent_id = client.post("/api/v1/setup/agent", json=SETUP_BODY).json()["resource"]["id"]
        headers = {"X-Request-ID": "req-voice-0002"}
        client.post("/api/v1/voice/sessions", json={"agent_id": agent_id}, headers=headers)

        resp = client.post("/api/v1/voice/sessions", json={"agent_id": agent_id}, headers=headers)

        assert resp.status_code == 409
        assert resp.json()["error"] == "session_exists"

    def test_unknown_agent_is_404(self):
        resp = _client().post("/api/v1/voice/sessions", json={"agent_id": "agent_missing"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "agent_not_found"

    def test_voice_service_error_is_502(self):
        voice = InMemoryVoiceAgentService(fail_on={"get_signed_url"})
        resp = _client(voice=voice).post("/api/v1/voice/sessions", json={"agent_id": "a"})
        assert resp.status_code == 502

    def test_unknown_session_is_404(self):
        resp = _client().get("/api/v1/voice/sessions/nope")
        assert resp.status_code == 404
        assert resp.json()["error"] == "session_not_found"


# ── Auth guard ──────────────────────────────────────────────────


class TestAuthGuard:
    def _guarded(self) -> TestClient:
        return TestClient(create_app(_local_settings(setup_api_token="s3cret")))

    def test_rejects_missing_token(self):
        resp = self._guarded().post("/api/v1/setup", json=SETUP_BODY)
        assert resp.status_code == 401
        assert resp.json()["code"] == "AUTH_REQUIRED"

    def test_rejects_wrong_token(self):
        resp = self._guarded().post(
            "/api/v1/setup", json=SETUP_BODY, headers={"Authorization": "Bearer nope"},
        )
        assert resp.status_code == 401

    def test_accepts_correct_token(self):
        resp = self._guarded().post(
            "/api/v1/setup", json=SETUP_BODY, headers={"Authorization": "Bearer s3cret"},
        )
        assert resp.status_code == 200

    @pytest.mark.parametrize("path", sorted(AUTH_ALLOWLIST_EXACT))
    def test_allowlisted_paths_skip_auth(self, path):
        assert self._guarded().get(path).status_code == 200

    def test_no_guard_without_token(self):
        resp = _client().post("/api/v1/setup", json=SETUP_BODY)
        assert resp.status_code == 200
