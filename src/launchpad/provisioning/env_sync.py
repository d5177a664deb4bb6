"""Reconcile a hosting project's environment variables against a target map.

Best-effort, per key:
  - empty target value  -> skipped (never overwrites a live value with blank)
  - key already present -> updated in place, targets reset to all environments
  - key absent          -> created as secret or plain, all environments

A failure on one key is logged and recorded in the report; the remaining
keys are still reconciled.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from launchpad.observability.metrics import ENV_SYNC_VARIABLES_TOTAL
from launchpad.protocols import HostingService
from launchpad.providers.base import ProviderAPIError

from .models import EnvironmentVariableSet, SyncReport

logger = logging.getLogger(__name__)


class EnvironmentVariableSynchronizer:
    def __init__(self, hosting: HostingService) -> None:
        self._hosting = hosting

    async def _existing_ids(self, project_id: str) -> dict[str, str]:
        try:
            envs = await self._hosting.list_env_vars(project_id)
        except ProviderAPIError:
            # Without a listing every key is attempted as a create; duplicates
            # fail individually and land in the report.
            logger.warning(
                "Could not list environment variables for %s",
                project_id,
                extra={"project_id": project_id},
                exc_info=True,
            )
            return {}
        existing: dict[str, str] = {}
        for env in envs:
            key, env_id = env.get("key"), env.get("id")
            if key and env_id and key not in existing:
                existing[key] = env_id
        return existing

    async def sync_variables(
        self,
        project_id: str,
        target_map: Mapping[str, str] | EnvironmentVariableSet,
    ) -> SyncReport:
        variables = (
            target_map
            if isinstance(target_map, EnvironmentVariableSet)
            else EnvironmentVariableSet.from_mapping(target_map)
        )
        report = SyncReport()
        report.skipped = [key for key, var in variables.items() if not var.value]
        pending = variables.non_empty()
        if not pending:
            _count(report)
            return report

        existing = await self._existing_ids(project_id)

        for var in pending:
            targets = list(var.targets)
            try:
                env_id = existing.get(var.key)
                if env_id:
                    await self._hosting.update_env_var(
                        project_id, env_id, value=var.value, targets=targets,
                    )
                    report.updated.append(var.key)
                else:
                    await self._hosting.create_env_var(
                        project_id,
                        key=var.key,
                        value=var.value,
                        var_type=var.kind.api_type,
                        targets=targets,
                    )
                    report.created.append(var.key)
            except ProviderAPIError as exc:
                logger.warning(
                    "Failed to set environment variable %s",
                    var.key,
                    extra={"project_id": project_id, "env_key": var.key},
                    exc_info=True,
                )
                report.failed[var.key] = str(exc)

        logger.info(
            "Environment sync for %s: %d created, %d updated, %d skipped, %d failed",
            project_id,
            len(report.created),
            len(report.updated),
            len(report.skipped),
            len(report.failed),
            extra={"project_id": project_id},
        )
        _count(report)
        return report


def _count(report: SyncReport) -> None:
    actions: dict[str, Any] = {
        "created": report.created,
        "updated": report.updated,
        "skipped": report.skipped,
        "failed": report.failed,
    }
    for action, keys in actions.items():
        if keys:
            ENV_SYNC_VARIABLES_TOTAL.labels(action=action).inc(len(keys))
