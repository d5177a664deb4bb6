"""Tests for EnvironmentVariableSynchronizer.sync_variables."""

from __future__ import annotations

import pytest

from launchpad.inmemory import InMemoryHostingService
from launchpad.provisioning.env_sync import EnvironmentVariableSynchronizer
from launchpad.provisioning.models import (
    TARGET_ENVIRONMENTS,
    EnvironmentVariableSet,
    VariableKind,
    classify_variable,
)


async def _project(hosting: InMemoryHostingService) -> str:
    project = await hosting.create_project("acme-co", repository="acme-org/acme-co", build_profile={})
    hosting.calls.clear()
    return project["id"]


@pytest.mark.asyncio
async def test_empty_values_are_skipped(hosting):
    project_id = await _project(hosting)

    report = await EnvironmentVariableSynchronizer(hosting).sync_variables(
        project_id, {"A": "1", "B": ""},
    )

    assert report.created == ["A"]
    assert report.skipped == ["B"]
    assert [e["key"] for e in hosting.env[project_id]] == ["A"]
    assert ("create_env_var", "B") not in hosting.calls


@pytest.mark.asyncio
async def test_nothing_to_write_makes_no_calls(hosting):
    project_id = await _project(hosting)

    report = await EnvironmentVariableSynchronizer(hosting).sync_variables(
        project_id, {"A": "", "B": ""},
    )

    assert report.skipped == ["A", "B"]
    assert hosting.calls == []


@pytest.mark.asyncio
async def test_secret_classification_and_targets(hosting):
    project_id = await _project(hosting)

    await EnvironmentVariableSynchronizer(hosting).sync_variables(
        project_id,
        {
            "SUPABASE_SERVICE_ROLE_KEY": "srk",
            "WEBHOOK_SECRET": "whs",
            "NEXT_PUBLIC_APP_URL": "https://acme-co.vercel.app",
        },
    )

    by_key = {e["key"]: e for e in hosting.env[project_id]}
    assert by_key["SUPABASE_SERVICE_ROLE_KEY"]["type"] == "encrypted"
    assert by_key["WEBHOOK_SECRET"]["type"] == "encrypted"
    assert by_key["NEXT_PUBLIC_APP_URL"]["type"] == "plain"
    for entry in by_key.values():
        assert entry["target"] == list(TARGET_ENVIRONMENTS)


@pytest.mark.asyncio
async def test_existing_key_is_updated_in_place(hosting):
    project_id = await _project(hosting)
    existing = await hosting.create_env_var(
        project_id, key="A", value="old", var_type="plain", targets=["production"],
    )

    report = await EnvironmentVariableSynchronizer(hosting).sync_variables(
        project_id, {"A": "new"},
    )

    assert report.updated == ["A"]
    assert report.created == []
    assert len(hosting.env[project_id]) == 1
    entry = hosting.env[project_id][0]
    assert entry["id"] == existing["id"]
    assert entry["value"] == "new"
    assert entry["target"] == list(TARGET_ENVIRONMENTS)


@pytest.mark.asyncio
async def test_one_failing_key_does_not_stop_the_rest(hosting):
    hosting.fail_keys = {"B"}
    project_id = await _project(hosting)

    report = await EnvironmentVariableSynchronizer(hosting).sync_variables(
        project_id, {"A": "1", "B": "2", "C": "3"},
    )

    assert report.created == ["A", "C"]
    assert set(report.failed) == {"B"}
    assert not report.ok


@pytest.mark.asyncio
async def test_list_failure_falls_back_to_creates():
    hosting = InMemoryHostingService(fail_on={"list_env_vars"})
    project_id = await _project(hosting)

    report = await EnvironmentVariableSynchronizer(hosting).sync_variables(project_id, {"A": "1"})

    assert report.created == ["A"]


@pytest.mark.asyncio
async def test_accepts_prebuilt_variable_set(hosting):
    project_id = await _project(hosting)
    variables = EnvironmentVariableSet.from_mapping({"API_KEY": "k"})

    report = await EnvironmentVariableSynchronizer(hosting).sync_variables(project_id, variables)

    assert report.created == ["API_KEY"]
    assert hosting.env[project_id][0]["type"] == "encrypted"


@pytest.mark.parametrize(
    ("key", "kind"),
    [
        ("ELEVENLABS_API_KEY", VariableKind.SECRET),
        ("CLIENT_SECRET", VariableKind.SECRET),
        ("NEXT_PUBLIC_SUPABASE_ANON_KEY", VariableKind.SECRET),
        ("NEXT_PUBLIC_COMPANY_NAME", VariableKind.PLAIN),
        ("monkey", VariableKind.PLAIN),
    ],
)
def test_classify_variable(key, kind):
    assert classify_variable(key) is kind
