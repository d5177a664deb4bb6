"""Prometheus metrics for tenant provisioning.

Usage::

    from launchpad.observability.metrics import PROVISIONING_STEPS_TOTAL

    PROVISIONING_STEPS_TOTAL.labels(step="repository", status="degraded").inc()
"""

from __future__ import annotations

from prometheus_client import (
    REGISTRY,
    Counter,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

PROVISIONING_RUNS_TOTAL = Counter(
    "launchpad_provisioning_runs_total",
    "Provisioning runs by outcome (success, degraded, failed).",
    labelnames=["outcome"],
    registry=REGISTRY,
)

PROVISIONING_STEPS_TOTAL = Counter(
    "launchpad_provisioning_steps_total",
    "Provisioning steps by step name and final status.",
    labelnames=["step", "status"],
    registry=REGISTRY,
)

ENV_SYNC_VARIABLES_TOTAL = Counter(
    "launchpad_env_sync_variables_total",
    "Environment variables reconciled by action (created, updated, skipped, failed).",
    labelnames=["action"],
    registry=REGISTRY,
)


def metrics_text() -> tuple[bytes, str]:
    """Generate Prometheus exposition text and content-type header."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
