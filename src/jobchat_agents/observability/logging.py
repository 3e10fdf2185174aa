"""Structured logging for the interview service.

Every inbound operation runs inside a request context that stamps its log
lines with the operation name and the ids of the application, candidate,
job, org or report it touches.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars, merge_contextvars

if TYPE_CHECKING:
    from jobchat_core.config.settings import Settings

ENTITY_ID_KEYS = ("application_id", "candidate_id", "job_id", "org_id", "report_id")

# Client libraries that log every request at INFO/DEBUG
_CHATTY_LOGGERS = ("httpx", "httpcore", "anthropic", "sqlalchemy.engine", "aiosqlite")


def configure_logging(settings: Settings) -> None:
    """Route structlog and stdlib logging through one root handler.

    JSON output flattens tracebacks into the event dict so operation failures
    stay one line per event; console output keeps the pretty renderer.
    """
    pre_chain = _pre_chain()
    level = _resolve_level(settings.log_level)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_chain(settings.log_format),
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


@contextmanager
def request_context(operation: str, **ids: str | None) -> Iterator[dict[str, str]]:
    """Bind the operation and non-blank entity ids for the duration of a call.

    Only the keys bound here are restored on exit, so context the caller
    bound beforehand survives.
    """
    bound = {"operation": operation, **entity_ids(ids)}
    with bound_contextvars(**bound):
        yield bound


def entity_ids(arguments: Mapping[str, Any]) -> dict[str, str]:
    """Pick the known entity id arguments that carry a non-blank string."""
    return {
        key: value
        for key in ENTITY_ID_KEYS
        if isinstance(value := arguments.get(key), str) and value.strip()
    }


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _render_chain(log_format: str) -> list[structlog.types.Processor]:
    if log_format == "json":
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def _resolve_level(level_name: str) -> int:
    """Convert a level name to its logging int, defaulting to INFO."""
    return logging.getLevelNamesMapping().get(level_name.upper(), logging.INFO)
