"""Tests for ResourceExistenceChecker."""

from __future__ import annotations

import logging

import pytest

from launchpad.providers.base import ProviderAPIError
from launchpad.provisioning.existence import ResourceExistenceChecker
from launchpad.provisioning.models import Found, NotFound, ServiceKind


def _checker(source_control, hosting, voice) -> ResourceExistenceChecker:
    return ResourceExistenceChecker.for_services(
        source_control=source_control, hosting=hosting, voice=voice,
    )


@pytest.mark.asyncio
async def test_missing_repository_is_not_found(source_control, hosting, voice):
    result = await _checker(source_control, hosting, voice).lookup(
        ServiceKind.SOURCE_CONTROL, "acme-co",
    )
    assert isinstance(result, NotFound)


@pytest.mark.asyncio
async def test_existing_project_is_found(source_control, hosting, voice):
    await hosting.create_project("acme-co", repository="acme-org/acme-co", build_profile={})

    result = await _checker(source_control, hosting, voice).lookup(ServiceKind.HOSTING, "acme-co")

    assert isinstance(result, Found)
    assert result.record["name"] == "acme-co"


@pytest.mark.asyncio
async def test_agent_lookup_matches_exact_name_first_wins(source_control, hosting, voice):
    first = await voice.create_agent("Acme Setup Agent", prompt="p", first_message="m", voice_id="v")
    await voice.create_agent("Acme Setup Agent", prompt="p", first_message="m", voice_id="v")
    await voice.create_agent("acme setup agent", prompt="p", first_message="m", voice_id="v")

    checker = _checker(source_control, hosting, voice)
    result = await checker.lookup(ServiceKind.VOICE_AGENT, "Acme Setup Agent")

    assert isinstance(result, Found)
    assert result.record["agent_id"] == first["agent_id"]
    assert isinstance(await checker.lookup(ServiceKind.VOICE_AGENT, "Acme"), NotFound)


@pytest.mark.asyncio
async def test_lookup_failure_degrades_to_not_found_with_warning(caplog):
    async def broken(name):
        raise ProviderAPIError(401, "bad credentials")

    checker = ResourceExistenceChecker({ServiceKind.HOSTING: broken})

    with caplog.at_level(logging.WARNING, logger="launchpad.provisioning.existence"):
        result = await checker.lookup(ServiceKind.HOSTING, "acme-co")

    assert isinstance(result, NotFound)
    assert any("Existence check failed" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_unexpected_exception_also_degrades():
    async def broken(name):
        raise RuntimeError("connection reset")

    checker = ResourceExistenceChecker({ServiceKind.SOURCE_CONTROL: broken})

    assert isinstance(await checker.lookup(ServiceKind.SOURCE_CONTROL, "x"), NotFound)


@pytest.mark.asyncio
async def test_empty_record_is_not_found():
    async def empty(name):
        return {}

    checker = ResourceExistenceChecker({ServiceKind.HOSTING: empty})

    assert isinstance(await checker.lookup(ServiceKind.HOSTING, "acme-co"), NotFound)


@pytest.mark.asyncio
async def test_unregistered_service_is_a_programming_error():
    checker = ResourceExistenceChecker({})

    with pytest.raises(KeyError):
        await checker.lookup(ServiceKind.HOSTING, "acme-co")
