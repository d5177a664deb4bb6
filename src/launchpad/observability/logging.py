"""Structured logging for the provisioning service.

``create_app`` calls ``configure_logging`` once with ``LOG_LEVEL`` and
``LOG_FORMAT`` from ``LaunchpadSettings``. Provisioners and provider
clients keep using ``logging.getLogger(__name__)`` with ``extra=`` fields;
those stdlib records go through structlog's ProcessorFormatter so the
extras land in the rendered line next to the request id, e.g.::

    {"event": "Repository created: acme-co", "repository": "acme-co",
     "request_id": "req-setup-0001", "level": "info", ...}

Tenant credentials travel through the same code paths, so any field whose
name marks it as a credential is replaced with ``[REDACTED]`` before
rendering.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog

# Request-scoped correlation ID; doubles as the provisioning request id.
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

REDACTED = "[REDACTED]"

# Field names (lowercased) whose values never reach a log line.
SENSITIVE_FIELDS = frozenset({
    "authorization",
    "api_key",
    "anon_key",
    "service_key",
    "service_role_key",
    "voice_api_key",
    "datastore_service_key",
    "datastore_anon_key",
    "secrets",
    "token",
    "value",
})

_configured = False


def _add_request_id(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    rid = request_id_ctx.get()
    if rid is not None:
        event_dict.setdefault("request_id", rid)
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Mask credential-bearing fields, one level into nested dicts."""
    for key, value in list(event_dict.items()):
        if key.lower() in SENSITIVE_FIELDS:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if str(k).lower() in SENSITIVE_FIELDS else v
                for k, v in value.items()
            }
    return event_dict


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    force: bool = False,
) -> None:
    """Route stdlib and structlog output through one rendered handler.

    Only the first call takes effect unless ``force`` is set.
    """
    global _configured
    if _configured and not force:
        return
    _configured = True

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        _add_request_id,
        redact_sensitive_fields,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        # ExtraAdder lifts ``extra=`` fields off stdlib records.
        foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *shared_processors],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # httpx logs every provider request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """structlog logger for code that logs key-value events directly."""
    return structlog.get_logger(name)
