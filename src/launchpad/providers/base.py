"""Shared async HTTP plumbing for the provider API clients.

Every external service (source control, hosting, voice agents) is reached
through a subclass of ``ProviderClient``. The base class owns the request
loop, status-to-exception mapping, and optional backoff for transient
errors. Retries are off by default (``max_retries=0``): a rate-limit or
server error surfaces as an ordinary ``ProviderAPIError``.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, ClassVar

import httpx

logger = logging.getLogger(__name__)

# Status codes eligible for automatic retry when max_retries > 0.
_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

_DEFAULT_MAX_RETRIES = 0
_DEFAULT_BASE_DELAY = 1.0  # seconds
_DEFAULT_MAX_DELAY = 30.0  # seconds


# ── Exception hierarchy ─────────────────────────────────────────


class ProviderAPIError(Exception):
    """Base exception for external provider API errors."""

    service: ClassVar[str] = "provider"

    def __init__(
        self,
        status_code: int,
        message: str = "",
        *,
        response_body: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"{self.service} API error {status_code}: {message}")


class ProviderNotFoundError(ProviderAPIError):
    """Resource not found (404)."""

    def __init__(self, message: str = "Not found", **kwargs: Any) -> None:
        super().__init__(404, message, **kwargs)


class ProviderTimeoutError(ProviderAPIError):
    """Request to the provider timed out."""

    def __init__(self, message: str = "Request timed out") -> None:
        super().__init__(0, message)


# ── Module-level shared client ───────────────────────────────────

_shared_async_client: httpx.AsyncClient | None = None


def _get_shared_async_client() -> httpx.AsyncClient:
    global _shared_async_client
    if _shared_async_client is None:
        _shared_async_client = httpx.AsyncClient()
    return _shared_async_client


async def close_shared_async_client() -> None:
    global _shared_async_client
    if _shared_async_client is not None:
        await _shared_async_client.aclose()
        _shared_async_client = None


# ── Client ───────────────────────────────────────────────────────


class ProviderClient:
    """Base async HTTP client for a single provider REST API.

    Subclasses set ``api_error``/``not_found_error``/``timeout_error`` and
    implement ``_auth_headers``.
    """

    api_error: ClassVar[type[ProviderAPIError]] = ProviderAPIError
    not_found_error: ClassVar[type[ProviderNotFoundError]] = ProviderNotFoundError
    timeout_error: ClassVar[type[ProviderTimeoutError]] = ProviderTimeoutError

    def __init__(
        self,
        *,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = _DEFAULT_MAX_RETRIES,
        base_delay: float = _DEFAULT_BASE_DELAY,
        max_delay: float = _DEFAULT_MAX_DELAY,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = http_client or _get_shared_async_client()
        self._timeout = float(timeout_seconds)
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay

    def _auth_headers(self) -> dict[str, str]:
        raise NotImplementedError

    def _default_params(self) -> dict[str, str]:
        return {}

    @staticmethod
    def _error_message(payload: Any, fallback: str) -> str:
        """Pull a human-readable message out of an error payload."""
        if not isinstance(payload, dict):
            return fallback
        for key in ("message", "error", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict):
                nested = value.get("message")
                if isinstance(nested, str) and nested:
                    return nested
        return fallback

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return

        body = resp.text
        message = body[:200] if body else f"HTTP {resp.status_code}"

        try:
            message = self._error_message(resp.json(), message)
        except ValueError:
            pass

        if resp.status_code == 404:
            raise self.not_found_error(message=message, response_body=body)

        raise self.api_error(
            status_code=resp.status_code,
            message=message,
            response_body=body,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Execute a request, retrying transient failures up to max_retries."""
        url = f"{self._base_url}{path}"
        headers = self._auth_headers()
        merged_params = {**self._default_params(), **(params or {})}

        for attempt in range(self._max_retries + 1):
            try:
                resp = await self._client.request(
                    method,
                    url,
                    headers=headers,
                    json=json,
                    params=merged_params or None,
                    timeout=self._timeout,
                )
            except httpx.TimeoutException as e:
                if attempt < self._max_retries:
                    delay = self._backoff_delay(attempt)
                    logger.warning(
                        "%s request timeout (attempt %d/%d), retrying in %.1fs",
                        self.api_error.service,
                        attempt + 1,
                        self._max_retries + 1,
                        delay,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise self.timeout_error(str(e)) from e
            except httpx.RequestError as e:
                raise self.api_error(0, f"request error: {e}") from e

            if resp.status_code not in _RETRYABLE_STATUS_CODES or attempt >= self._max_retries:
                return resp

            delay = self._retry_after_delay(resp, attempt)
            logger.warning(
                "%s %s %s returned %d (attempt %d/%d), retrying in %.1fs",
                self.api_error.service,
                method,
                path,
                resp.status_code,
                attempt + 1,
                self._max_retries + 1,
                delay,
            )
            await asyncio.sleep(delay)

        raise self.api_error(0, "exhausted retries with no response")

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        resp = await self._request(method, path, json=json, params=params)
        self._raise_for_status(resp)
        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise self.api_error(
                status_code=resp.status_code,
                message=f"invalid JSON in response to {method} {path}",
                response_body=resp.text[:200],
            ) from e

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with full jitter."""
        delay = min(self._base_delay * (2 ** attempt), self._max_delay)
        return random.uniform(0, delay)

    def _retry_after_delay(self, resp: httpx.Response, attempt: int) -> float:
        """Use Retry-After header if present, otherwise exponential backoff."""
        retry_after = resp.headers.get("retry-after")
        if retry_after:
            try:
                return max(float(retry_after), 0.1)
            except ValueError:
                pass
        return self._backoff_delay(attempt)
