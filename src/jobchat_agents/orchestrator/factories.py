"""Factory functions wiring concrete collaborators from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from jobchat_agents.orchestrator.service import InterviewService

if TYPE_CHECKING:
    from jobchat_core.config.settings import Settings
    from jobchat_core.interfaces.completion import CompletionClient
    from jobchat_core.interfaces.document_store import DocumentStore


async def create_document_store(settings: Settings) -> DocumentStore:
    """Create the SQL-backed document store and make sure its table exists."""
    from jobchat_infra.db.document_store import SqlDocumentStore
    from jobchat_infra.db.engine import create_engine
    from jobchat_infra.db.session import create_session_factory, init_db

    engine = create_engine(settings)
    await init_db(engine)
    return SqlDocumentStore(create_session_factory(engine), engine=engine)


def create_completion_client(settings: Settings) -> CompletionClient:
    """Create the Anthropic-backed completion client."""
    from jobchat_infra.llm.anthropic_client import AnthropicCompletionClient

    return AnthropicCompletionClient(settings)


async def create_service(settings: Settings) -> InterviewService:
    """Build an InterviewService with production collaborators."""
    store = await create_document_store(settings)
    return InterviewService(settings, store, create_completion_client(settings))
