"""Repository provisioner: create-or-reuse the tenant's source repository.

Flow for ``ensure_repository``:
  lookup -> (found) reuse
         -> (not found) generate from template
                        -> template missing: create empty initialized repo
                        -> settle delay
  -> write README.md (read-modify-write with the current revision token)

A README write failure downgrades the step to ``degraded``; the repository
itself is still reported. A creation failure returns ``failed``. Nothing
in here raises for remote errors.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace

from launchpad.protocols import SourceControlService
from launchpad.providers.base import ProviderAPIError, ProviderNotFoundError

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

logger = logging.getLogger(__name__)

STEP_NAME = "repository"
CONFIG_FILE_PATH = "README.md"
CONFIG_COMMIT_MESSAGE = "Update README with platform configuration"
DEFAULT_SETTLE_SECONDS = 2.0


def render_config_file(metadata: TenantMetadata, secrets: SecretBundle) -> str:
    """Public README for a tenant repository. Only public values go in here."""
    datastore_url = secrets.datastore_url
    anon_key = secrets.datastore_anon_key
    return f"""# {metadata.platform_name}

AI Interview Platform for {metadata.display_company}

## Configuration

- **Supabase URL**: {datastore_url or 'Configure in Vercel'}
- **Platform**: {metadata.platform_name}
- **Company**: {metadata.company_name or 'N/A'}

## Getting Started

1. Clone this repository
2. Install dependencies: `npm install`
3. Set up environment variables
4. Run development server: `npm run dev`

## Environment Variables

```
NEXT_PUBLIC_SUPABASE_URL={datastore_url or 'your-supabase-url'}
NEXT_PUBLIC_SUPABASE_ANON_KEY={anon_key or 'your-anon-key'}
NEXT_PUBLIC_PLATFORM_NAME={metadata.platform_name}
```
"""


def _is_missing_template(exc: ProviderAPIError) -> bool:
    return isinstance(exc, ProviderNotFoundError) or "template" in exc.message.lower()


class RepositoryProvisioner:
    def __init__(
        self,
        *,
        source_control: SourceControlService,
        checker: ResourceExistenceChecker,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._scm = source_control
        self._checker = checker
        self._settle_seconds = settle_seconds
        self._sleep = sleep

    def repository_reference(self, name: str) -> str:
        return f"{self._scm.owner}/{name}"

    async def ensure_repository(
        self,
        canonical_name: str,
        template_ref: str,
        metadata: TenantMetadata,
        secrets: SecretBundle | None = None,
    ) -> StepOutcome:
        secrets = secrets or SecretBundle()
        log_extra = {"repository": canonical_name, "template": template_ref}

        lookup = await self._checker.lookup(ServiceKind.SOURCE_CONTROL, canonical_name)
        if isinstance(lookup, Found):
            logger.info("Repository already exists: %s", canonical_name, extra=log_extra)
            repo = lookup.record
            already_exists = True
        else:
            try:
                repo = await self._create(canonical_name, template_ref, metadata)
            except ProviderAPIError as exc:
                logger.error(
                    "Repository creation failed: %s",
                    canonical_name,
                    extra={**log_extra, "status_code": exc.status_code},
                    exc_info=True,
                )
                return StepOutcome(step=STEP_NAME, status=StepStatus.FAILED, error=str(exc))
            already_exists = False
            # A freshly generated repository rejects writes for a moment.
            await self._sleep(self._settle_seconds)

        record = ResourceRecord(
            kind=ResourceKind.REPOSITORY,
            external_id=str(repo.get("id") or repo.get("full_name") or canonical_name),
            name=canonical_name,
            url=repo.get("html_url") or self._scm.repository_url(canonical_name),
            already_exists=already_exists,
            reference=repo.get("full_name") or self.repository_reference(canonical_name),
        )

        warning = await self._write_config_file(canonical_name, metadata, secrets)
        if warning is not None:
            return StepOutcome(
                step=STEP_NAME,
                status=StepStatus.DEGRADED,
                record=replace(record, ready=False),
                warnings=(warning,),
            )
        return StepOutcome(step=STEP_NAME, status=StepStatus.SUCCEEDED, record=record)

    async def _create(
        self,
        name: str,
        template_ref: str,
        metadata: TenantMetadata,
    ) -> dict:
        description = f"AI Interview Platform for {metadata.display_company}"
        try:
            return await self._scm.create_from_template(
                template_ref, name, description=description,
            )
        except ProviderAPIError as exc:
            if not _is_missing_template(exc):
                raise
            logger.warning(
                "Template %s unavailable (%s), creating empty repository",
                template_ref,
                exc.message,
                extra={"repository": name, "template": template_ref},
            )
        return await self._scm.create_empty_repository(name, description=description)

    async def _write_config_file(
        self,
        name: str,
        metadata: TenantMetadata,
        secrets: SecretBundle,
    ) -> str | None:
        """Create or update README.md. Returns a warning string on failure."""
        content = render_config_file(metadata, secrets)
        try:
            sha: str | None = None
            try:
                current = await self._scm.get_file(name, CONFIG_FILE_PATH)
                sha = current.get("sha")
            except ProviderNotFoundError:
                pass
            await self._scm.put_file(
                name,
                CONFIG_FILE_PATH,
                content,
                message=CONFIG_COMMIT_MESSAGE,
                sha=sha,
            )
        except ProviderAPIError as exc:
            logger.warning(
                "Could not update %s in %s",
                CONFIG_FILE_PATH,
                name,
                extra={"repository": name, "status_code": exc.status_code},
                exc_info=True,
            )
            return f"{CONFIG_FILE_PATH} update failed: {exc}"

        logger.info("%s updated in %s", CONFIG_FILE_PATH, name, extra={"repository": name})
        return None
