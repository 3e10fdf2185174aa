"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Generator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
import structlog
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from jobchat_agents.observability import disable_tracing
from jobchat_infra.db.document_store import SqlDocumentStore
from jobchat_infra.db.session import create_session_factory, init_db
from tests.mocks.mock_llm import FakeCompletionClient
from tests.mocks.mock_settings import make_settings


@pytest.fixture
def mock_settings() -> MagicMock:
    """Return a MagicMock Settings with sensible defaults."""
    return make_settings()


@pytest.fixture
def fake_completion() -> FakeCompletionClient:
    """Return a FakeCompletionClient with no scripted replies."""
    return FakeCompletionClient()


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[SqlDocumentStore, None]:
    """In-memory SQLite document store shared across sessions of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield SqlDocumentStore(create_session_factory(engine))
    await engine.dispose()


@pytest.fixture(autouse=True)
def _reset_observability() -> Generator[None, None, None]:
    """Restore root logger handlers and drop any tracer a test configured.

    configure_logging() replaces root handlers; stale StreamHandlers would
    otherwise write to pytest-captured streams closed during teardown.
    """
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.level = original_level
    structlog.contextvars.clear_contextvars()
    disable_tracing()
