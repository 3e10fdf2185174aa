"""Observability: structured logging and tracing."""

from jobchat_agents.observability.logging import (
    configure_logging,
    entity_ids,
    request_context,
)
from jobchat_agents.observability.tracing import (
    configure_tracing,
    disable_tracing,
    get_tracer,
    traced_operation,
)

__all__ = [
    "configure_logging",
    "configure_tracing",
    "disable_tracing",
    "entity_ids",
    "get_tracer",
    "request_context",
    "traced_operation",
]
