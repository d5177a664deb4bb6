"""Tests for RepositoryProvisioner.ensure_repository."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from launchpad.inmemory import InMemorySourceControlService
from launchpad.providers.github_client import GitHubAPIError
from launchpad.provisioning.existence import ResourceExistenceChecker
from launchpad.provisioning.models import (
    SecretBundle,
    ServiceKind,
    StepStatus,
    TenantMetadata,
)
from launchpad.provisioning.repository import (
    CONFIG_COMMIT_MESSAGE,
    CONFIG_FILE_PATH,
    RepositoryProvisioner,
    render_config_file,
)

TEMPLATE = "connexions-template"
METADATA = TenantMetadata(platform_name="Acme Hiring", company_name="Acme")
SECRETS = SecretBundle(
    datastore_url="https://db.acme.test",
    datastore_anon_key="anon-key",
    datastore_service_key="service-key",
)


class _FakeSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _make_provisioner(
    scm: InMemorySourceControlService,
    *,
    settle_seconds: float = 2.0,
) -> tuple[RepositoryProvisioner, _FakeSleep]:
    sleep = _FakeSleep()
    checker = ResourceExistenceChecker({ServiceKind.SOURCE_CONTROL: scm.get_repository})
    provisioner = RepositoryProvisioner(
        source_control=scm,
        checker=checker,
        settle_seconds=settle_seconds,
        sleep=sleep,
    )
    return provisioner, sleep


class TestCreate:
    @pytest.mark.asyncio
    async def test_creates_from_template_and_writes_readme(self, source_control):
        provisioner, sleep = _make_provisioner(source_control)

        outcome = await provisioner.ensure_repository("acme-co", TEMPLATE, METADATA, SECRETS)

        assert outcome.status == StepStatus.SUCCEEDED
        assert outcome.record.already_exists is False
        assert outcome.record.url == "https://github.com/acme-org/acme-co"
        assert outcome.record.reference == "acme-org/acme-co"
        assert source_control.repositories["acme-co"]["template"] == TEMPLATE

        readme = source_control.files[("acme-co", CONFIG_FILE_PATH)]
        assert readme["message"] == CONFIG_COMMIT_MESSAGE
        assert "# Acme Hiring" in readme["content"]
        assert "NEXT_PUBLIC_SUPABASE_URL=https://db.acme.test" in readme["content"]

    @pytest.mark.asyncio
    async def test_settle_delay_before_first_write(self, source_control):
        provisioner, sleep = _make_provisioner(source_control, settle_seconds=2.0)

        await provisioner.ensure_repository("acme-co", TEMPLATE, METADATA)

        assert sleep.delays == [2.0]
        names = source_control.call_names()
        assert names.index("create_from_template") < names.index("put_file")

    @pytest.mark.asyncio
    async def test_missing_template_falls_back_to_empty_repository(self):
        scm = InMemorySourceControlService(owner="acme-org", templates=set())
        provisioner, _ = _make_provisioner(scm)

        outcome = await provisioner.ensure_repository("acme-co", TEMPLATE, METADATA)

        assert outcome.status == StepStatus.SUCCEEDED
        assert scm.call_names()[:3] == [
            "get_repository",
            "create_from_template",
            "create_empty_repository",
        ]
        assert scm.repositories["acme-co"]["template"] is None

    @pytest.mark.asyncio
    async def test_creation_failure_is_reported_as_failed(self):
        scm = InMemorySourceControlService(
            owner="acme-org", fail_on={"create_from_template", "create_empty_repository"},
        )
        provisioner, sleep = _make_provisioner(scm)

        outcome = await provisioner.ensure_repository("acme-co", TEMPLATE, METADATA)

        assert outcome.status == StepStatus.FAILED
        assert outcome.record is None
        assert "create_empty_repository failed" in outcome.error
        assert "put_file" not in scm.call_names()
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_other_template_errors_do_not_fall_back(self, source_control):
        source_control.create_from_template = AsyncMock(
            side_effect=GitHubAPIError(403, "Resource not accessible by integration"),
        )
        provisioner, _ = _make_provisioner(source_control)

        outcome = await provisioner.ensure_repository("acme-co", TEMPLATE, METADATA)

        assert outcome.status == StepStatus.FAILED
        assert "create_empty_repository" not in source_control.call_names()


class TestReuse:
    @pytest.mark.asyncio
    async def test_second_call_reuses_and_resyncs_readme(self, source_control):
        provisioner, sleep = _make_provisioner(source_control)

        first = await provisioner.ensure_repository("acme-co", TEMPLATE, METADATA)
        first_sha = source_control.files[("acme-co", CONFIG_FILE_PATH)]["sha"]
        second = await provisioner.ensure_repository("acme-co", TEMPLATE, METADATA, SECRETS)

        assert second.status == StepStatus.SUCCEEDED
        assert second.record.already_exists is True
        assert second.record.url == first.record.url
        assert second.record.external_id == first.record.external_id
        assert len(source_control.repositories) == 1
        assert sleep.delays == [2.0]
        # Read-modify-write: the update carried the current sha, so it landed.
        assert source_control.files[("acme-co", CONFIG_FILE_PATH)]["sha"] != first_sha
        assert "db.acme.test" in source_control.files[("acme-co", CONFIG_FILE_PATH)]["content"]


class TestConfigFileFailure:
    @pytest.mark.asyncio
    async def test_readme_failure_degrades_but_keeps_repository(self):
        scm = InMemorySourceControlService(owner="acme-org", fail_on={"put_file"})
        provisioner, _ = _make_provisioner(scm)

        outcome = await provisioner.ensure_repository("acme-co", TEMPLATE, METADATA)

        assert outcome.ok
        assert outcome.status == StepStatus.DEGRADED
        assert outcome.record.url == "https://github.com/acme-org/acme-co"
        assert outcome.record.ready is False
        assert outcome.warnings and CONFIG_FILE_PATH in outcome.warnings[0]


def test_render_config_file_uses_placeholders_without_secrets():
    content = render_config_file(TenantMetadata(platform_name="Acme Hiring"), SecretBundle())

    assert "AI Interview Platform for Acme Hiring" in content
    assert "**Company**: N/A" in content
    assert "NEXT_PUBLIC_SUPABASE_URL=your-supabase-url" in content


def test_render_config_file_never_includes_service_key():
    content = render_config_file(METADATA, SECRETS)

    assert "anon-key" in content
    assert "service-key" not in content
