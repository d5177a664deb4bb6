"""Tenant stack provisioning: naming, existence checks, provisioners, orchestrator."""

from .deployment import BuildProfile, DeploymentProvisioner, build_environment_map
from .env_sync import EnvironmentVariableSynchronizer
from .existence import ResourceExistenceChecker
from .models import (
    EnvironmentVariable,
    EnvironmentVariableSet,
    Found,
    NotFound,
    ProvisioningRequest,
    ProvisioningResult,
    ResourceKind,
    ResourceRecord,
    SecretBundle,
    ServiceKind,
    StepOutcome,
    StepStatus,
    SyncReport,
    TenantMetadata,
    VariableKind,
    classify_variable,
)
from .naming import agent_display_name, canonical_name, deployment_url
from .orchestrator import ProvisioningOrchestrator, SetupRequest
from .repository import RepositoryProvisioner
from .voice_agent import VoiceAgentProvisioner

__all__ = [
    "BuildProfile",
    "DeploymentProvisioner",
    "EnvironmentVariable",
    "EnvironmentVariableSet",
    "EnvironmentVariableSynchronizer",
    "Found",
    "NotFound",
    "ProvisioningOrchestrator",
    "ProvisioningRequest",
    "ProvisioningResult",
    "RepositoryProvisioner",
    "ResourceExistenceChecker",
    "ResourceKind",
    "ResourceRecord",
    "SecretBundle",
    "ServiceKind",
    "SetupRequest",
    "StepOutcome",
    "StepStatus",
    "SyncReport",
    "TenantMetadata",
    "VariableKind",
    "VoiceAgentProvisioner",
    "agent_display_name",
    "build_environment_map",
    "canonical_name",
    "classify_variable",
    "deployment_url",
]
