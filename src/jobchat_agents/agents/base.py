"""Base agent with injected collaborators and structured lifecycle logging."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from jobchat_core.constants import APPLICATIONS, ApplicationStatus
from jobchat_core.exceptions import NotFoundError

if TYPE_CHECKING:
    from jobchat_core.config.settings import Settings
    from jobchat_core.interfaces.completion import CompletionClient
    from jobchat_core.interfaces.document_store import DocumentStore

logger = structlog.get_logger()


def interview_open(application: dict[str, Any]) -> bool:
    """True until the application has been marked completed."""
    return application.get("status") != ApplicationStatus.COMPLETED


class BaseAgent:
    """Common wiring for components that talk to the completion service.

    The completion client and document store are passed in explicitly;
    nothing here creates or caches a client at module level.
    """

    agent_name: str = "base"

    def __init__(
        self,
        settings: Settings,
        completion: CompletionClient,
        store: DocumentStore,
    ) -> None:
        """Initialize with settings and collaborators."""
        self.settings = settings
        self._completion = completion
        self._store = store

    def _log_start(self, context: dict[str, object] | None = None) -> None:
        """Log agent execution start."""
        logger.info(
            "agent_start",
            agent=self.agent_name,
            **(context or {}),
        )

    def _log_end(
        self, duration: float, context: dict[str, object] | None = None
    ) -> None:
        """Log agent execution end with duration."""
        logger.info(
            "agent_end",
            agent=self.agent_name,
            duration_seconds=round(duration, 2),
            **(context or {}),
        )

    async def _load_application(self, application_id: str) -> dict[str, Any]:
        """Fetch an application document or raise NotFoundError."""
        application = await self._store.get(APPLICATIONS, application_id)
        if application is None:
            raise NotFoundError(APPLICATIONS, application_id)
        return application
