"""HTTP clients for the external services a tenant stack is built on."""

from .base import (
    ProviderAPIError,
    ProviderClient,
    ProviderNotFoundError,
    ProviderTimeoutError,
    close_shared_async_client,
)
from .elevenlabs_client import (
    ElevenLabsAPIError,
    ElevenLabsClient,
    ElevenLabsNotFoundError,
)
from .github_client import GitHubAPIError, GitHubClient, GitHubNotFoundError
from .vercel_client import VercelAPIError, VercelClient, VercelNotFoundError

__all__ = [
    "ElevenLabsAPIError",
    "ElevenLabsClient",
    "ElevenLabsNotFoundError",
    "GitHubAPIError",
    "GitHubClient",
    "GitHubNotFoundError",
    "ProviderAPIError",
    "ProviderClient",
    "ProviderNotFoundError",
    "ProviderTimeoutError",
    "VercelAPIError",
    "VercelClient",
    "VercelNotFoundError",
    "close_shared_async_client",
]
