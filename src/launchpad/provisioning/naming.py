"""Canonical tenant names.

One rule, applied by every provisioner: lowercase, replace each run of
characters outside ``[a-z0-9-]`` with a single ``-``, squash repeated
dashes, trim leading/trailing dashes, truncate to 100 characters and trim
again so truncation cannot leave a trailing dash.
"""

from __future__ import annotations

import re

MAX_CANONICAL_NAME_LENGTH = 100

_INVALID_RUN_RE = re.compile(r"[^a-z0-9-]+")
_DASH_RUN_RE = re.compile(r"-{2,}")


def canonical_name(raw: str) -> str:
    """Derive the idempotency key for a tenant from a human-entered name.

    >>> canonical_name("Acme Co!!")
    'acme-co'
    """
    lowered = (raw or "").lower()
    replaced = _INVALID_RUN_RE.sub("-", lowered)
    squashed = _DASH_RUN_RE.sub("-", replaced).strip("-")
    return squashed[:MAX_CANONICAL_NAME_LENGTH].rstrip("-")


def deployment_url(name: str, domain: str = "vercel.app") -> str:
    """Public URL of a tenant's hosting project, known before it exists."""
    return f"https://{name}.{domain}"


def agent_display_name(company_name: str, platform_name: str) -> str:
    return f"{company_name or platform_name} Setup Agent"
