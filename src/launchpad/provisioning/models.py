"""Domain types shared by the provisioners and the orchestrator."""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Union

from launchpad.voice.catalog import VoiceSelection


class ServiceKind(str, enum.Enum):
    SOURCE_CONTROL = "source_control"
    HOSTING = "hosting"
    VOICE_AGENT = "voice_agent"


class ResourceKind(str, enum.Enum):
    REPOSITORY = "repository"
    PROJECT = "project"
    AGENT = "agent"


class StepStatus(str, enum.Enum):
    """How a provisioning step ended.

    ``degraded`` means the resource exists but a follow-up write (config
    file, environment variable, deployment trigger) did not go through.
    """

    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"
    FAILED = "failed"


# ── Existence lookups ────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Found:
    record: dict[str, Any]


@dataclass(frozen=True, slots=True)
class NotFound:
    pass


LookupResult = Union[Found, NotFound]


# ── Resource records ─────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ResourceRecord:
    """A provisioned external resource.

    Attributes:
        kind: Which service the resource lives in.
        external_id: Identifier assigned by that service.
        name: Canonical name (or display name for agents).
        url: Public address, when the resource has one.
        already_exists: True when the resource was reused rather than created.
        ready: False when creation succeeded but follow-up setup did not.
        reference: Service-specific handle later steps bind to
            (``owner/name`` for repositories).
    """

    kind: ResourceKind
    external_id: str
    name: str
    url: str | None = None
    already_exists: bool = False
    ready: bool = True
    reference: str | None = None


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Typed result of one provisioner call."""

    step: str
    status: StepStatus
    record: ResourceRecord | None = None
    error: str | None = None
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status != StepStatus.FAILED

    def as_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "status": self.status.value,
            "already_exists": self.record.already_exists if self.record else None,
            "error": self.error,
            "warnings": list(self.warnings),
        }


# ── Environment variables ────────────────────────────────────────────

TARGET_ENVIRONMENTS: tuple[str, ...] = ("production", "preview", "development")

_SECRET_MARKERS = ("KEY", "SECRET")


class VariableKind(str, enum.Enum):
    SECRET = "secret"
    PLAIN = "plain"

    @property
    def api_type(self) -> str:
        """Type string used by the hosting API."""
        return "encrypted" if self is VariableKind.SECRET else "plain"


def classify_variable(key: str) -> VariableKind:
    if any(marker in key for marker in _SECRET_MARKERS):
        return VariableKind.SECRET
    return VariableKind.PLAIN


@dataclass(frozen=True, slots=True)
class EnvironmentVariable:
    key: str
    value: str
    kind: VariableKind
    targets: tuple[str, ...] = TARGET_ENVIRONMENTS


class EnvironmentVariableSet(Mapping[str, EnvironmentVariable]):
    """Target variables for a hosting project, keyed by name."""

    def __init__(self, variables: Mapping[str, EnvironmentVariable] | None = None) -> None:
        self._variables: dict[str, EnvironmentVariable] = dict(variables or {})

    @classmethod
    def from_mapping(cls, target_map: Mapping[str, str]) -> EnvironmentVariableSet:
        return cls({
            key: EnvironmentVariable(key=key, value=value or "", kind=classify_variable(key))
            for key, value in target_map.items()
        })

    def __getitem__(self, key: str) -> EnvironmentVariable:
        return self._variables[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def non_empty(self) -> list[EnvironmentVariable]:
        return [v for v in self._variables.values() if v.value]


@dataclass
class SyncReport:
    """Per-key outcome of one reconciliation pass."""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


# ── Request / result ─────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class TenantMetadata:
    platform_name: str
    company_name: str = ""
    description: str = ""
    voice: VoiceSelection = VoiceSelection.DEFAULT

    @property
    def display_company(self) -> str:
        return self.company_name or self.platform_name


@dataclass(frozen=True, slots=True)
class SecretBundle:
    """Credentials and identifiers handed from one step to the next."""

    datastore_url: str = ""
    datastore_anon_key: str = ""
    datastore_service_key: str = ""
    voice_api_key: str = ""
    agent_id: str = ""

    def with_agent_id(self, agent_id: str) -> SecretBundle:
        return replace(self, agent_id=agent_id)


@dataclass
class ProvisioningRequest:
    """Mutable working state of one orchestration run."""

    request_id: str
    canonical_name: str
    metadata: TenantMetadata
    secrets: SecretBundle
    steps: list[StepOutcome] = field(default_factory=list)

    def record(self, outcome: StepOutcome) -> StepOutcome:
        self.steps.append(outcome)
        return outcome

    def resource(self, kind: ResourceKind) -> ResourceRecord | None:
        for outcome in self.steps:
            if outcome.record is not None and outcome.record.kind == kind:
                return outcome.record
        return None


@dataclass(frozen=True, slots=True)
class ProvisioningResult:
    success: bool
    request_id: str
    canonical_name: str
    repository_url: str | None = None
    deployment_url: str | None = None
    agent_id: str | None = None
    repository_already_exists: bool = False
    deployment_already_exists: bool = False
    agent_already_exists: bool = False
    degraded: bool = False
    error: str | None = None
    error_code: str | None = None
    steps: tuple[StepOutcome, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "request_id": self.request_id,
            "canonical_name": self.canonical_name,
            "repository_url": self.repository_url,
            "deployment_url": self.deployment_url,
            "agent_id": self.agent_id,
            "already_exists": {
                "repository": self.repository_already_exists,
                "deployment": self.deployment_already_exists,
                "agent": self.agent_already_exists,
            },
            "degraded": self.degraded,
            "error": self.error,
            "error_code": self.error_code,
            "steps": [s.as_dict() for s in self.steps],
        }
