"""Resource existence checks.

``ResourceExistenceChecker.lookup`` asks one service whether a resource
with a given name exists. It never raises: a not-found response and a
failed lookup (network, auth, unexpected payload) both come back as
``NotFound``, the latter with a warning. A real conflict then surfaces
when the caller attempts creation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from launchpad.protocols import HostingService, SourceControlService, VoiceAgentService
from launchpad.providers.base import ProviderNotFoundError

from .models import Found, LookupResult, NotFound, ServiceKind

logger = logging.getLogger(__name__)

LookupFn = Callable[[str], Awaitable[dict[str, Any] | None]]


def agent_lookup(voice: VoiceAgentService) -> LookupFn:
    """Match agents by exact display name; the first match wins."""

    async def _lookup(name: str) -> dict[str, Any] | None:
        for agent in await voice.list_agents():
            if agent.get("name") == name:
                return agent
        return None

    return _lookup


class ResourceExistenceChecker:
    def __init__(self, lookups: Mapping[ServiceKind, LookupFn]) -> None:
        self._lookups = dict(lookups)

    @classmethod
    def for_services(
        cls,
        *,
        source_control: SourceControlService,
        hosting: HostingService,
        voice: VoiceAgentService,
    ) -> ResourceExistenceChecker:
        return cls({
            ServiceKind.SOURCE_CONTROL: source_control.get_repository,
            ServiceKind.HOSTING: hosting.get_project,
            ServiceKind.VOICE_AGENT: agent_lookup(voice),
        })

    async def lookup(self, service: ServiceKind, name: str) -> LookupResult:
        fn = self._lookups.get(service)
        if fn is None:
            raise KeyError(f"No lookup registered for service {service.value!r}")

        try:
            record = await fn(name)
        except ProviderNotFoundError:
            return NotFound()
        except Exception:
            logger.warning(
                "Existence check failed for %s %r, treating as not found",
                service.value,
                name,
                extra={"service": service.value, "resource_name": name},
                exc_info=True,
            )
            return NotFound()

        if not record:
            return NotFound()
        return Found(record)
