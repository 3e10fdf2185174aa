"""Tests for InterviewSessionAgent turn handling and prompt caching."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from jobchat_agents.agents.interview_session import InterviewSessionAgent
from jobchat_agents.prompt_compiler import PromptCompiler
from jobchat_core.constants import APPLICATIONS
from jobchat_core.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    PromptCompilationError,
    UpstreamUnavailableError,
)
from jobchat_core.models.interview import ChatMessage
from jobchat_infra.db.document_store import SqlDocumentStore
from tests.mocks.mock_factories import CANDIDATE_ID, JOB_ID, ORG_ID, seed_context
from tests.mocks.mock_llm import FakeCompletionClient

APP_ID = "app-1"


async def _seed_application(store: SqlDocumentStore, **overrides: object) -> None:
    """Write the context documents and a fresh application."""
    await seed_context(store)
    application = {
        "candidateId": CANDIDATE_ID,
        "jobID": JOB_ID,
        "orgID": ORG_ID,
        "status": "applied",
        "messages": [],
        "reportID": "rep-1",
    }
    application.update(overrides)
    await store.set(APPLICATIONS, APP_ID, application)


@pytest.mark.unit
class TestSendTurn:
    """send_turn behaviour."""

    @pytest.mark.asyncio
    async def test_first_turn_compiles_and_caches(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """The first turn persists the compiled instruction and marks the interview started."""
        await _seed_application(store)
        completion = FakeCompletionClient(replies=["Welcome Ada. What do you build?"])
        agent = InterviewSessionAgent(mock_settings, completion, store)

        reply = await agent.send_turn(APP_ID, [], "Hi, I'm ready.")

        assert reply == "Welcome Ada. What do you build?"
        application = await store.get(APPLICATIONS, APP_ID)
        assert application is not None
        assert "Acme Robotics" in application["chatPrompt"]
        assert application["status"] == "interviewing"
        assert application["messages"] == [
            {"role": "user", "content": "Hi, I'm ready."},
            {"role": "assistant", "content": "Welcome Ada. What do you build?"},
        ]
        call = completion.calls[0]
        assert call.method == "chat"
        assert call.system_instruction == application["chatPrompt"]
        assert call.temperature == 0.5

    @pytest.mark.asyncio
    async def test_second_turn_reuses_instruction(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """The instruction is compiled once per application."""
        await _seed_application(store)
        completion = FakeCompletionClient(replies=["Q1", "Q2"])
        agent = InterviewSessionAgent(mock_settings, completion, store)

        with patch.object(PromptCompiler, "compile", autospec=True, return_value="SYS") as spy:
            await agent.send_turn(APP_ID, [], "Hello")
            history = [
                ChatMessage(role="user", content="Hello"),
                ChatMessage(role="assistant", content="Q1"),
            ]
            await agent.send_turn(APP_ID, history, "My answer")

        assert spy.call_count == 1
        assert [call.system_instruction for call in completion.calls] == ["SYS", "SYS"]
        application = await store.get(APPLICATIONS, APP_ID)
        assert application is not None
        assert len(application["messages"]) == 4

    @pytest.mark.asyncio
    async def test_existing_prompt_not_recompiled(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """A stored chatPrompt is used even if context documents changed."""
        await _seed_application(store, chatPrompt="CACHED", status="interviewing")
        completion = FakeCompletionClient(replies=["ok"])
        agent = InterviewSessionAgent(mock_settings, completion, store)

        await agent.send_turn(APP_ID, [], "Hello")

        assert completion.calls[0].system_instruction == "CACHED"

    @pytest.mark.asyncio
    async def test_history_passed_through(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """Caller history reaches the completion client as given."""
        await _seed_application(store)
        completion = FakeCompletionClient(replies=["ok"])
        agent = InterviewSessionAgent(mock_settings, completion, store)
        history = [ChatMessage(role="assistant", content="Welcome!")]

        await agent.send_turn(APP_ID, history, "Thanks")

        sent_history, sent_message = completion.calls[0].payload
        assert sent_history == history
        assert sent_message == "Thanks"

    @pytest.mark.asyncio
    async def test_completed_application_rejected(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """No turns are accepted after the report is written."""
        await _seed_application(store, status="completed")
        completion = FakeCompletionClient()
        agent = InterviewSessionAgent(mock_settings, completion, store)

        with pytest.raises(InvalidArgumentError):
            await agent.send_turn(APP_ID, [], "One more thing")
        assert completion.calls == []

    @pytest.mark.asyncio
    async def test_missing_application(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """Unknown application ids raise NotFoundError."""
        agent = InterviewSessionAgent(mock_settings, FakeCompletionClient(), store)
        with pytest.raises(NotFoundError):
            await agent.send_turn("ghost", [], "Hello")

    @pytest.mark.asyncio
    async def test_compilation_failure_writes_nothing(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """A job without a title stops the turn before any write or completion call."""
        await _seed_application(store)
        await store.set("jobs", JOB_ID, {"jobDescription": "No title here"})
        completion = FakeCompletionClient()
        agent = InterviewSessionAgent(mock_settings, completion, store)

        with pytest.raises(PromptCompilationError):
            await agent.send_turn(APP_ID, [], "Hello")

        application = await store.get(APPLICATIONS, APP_ID)
        assert application is not None
        assert "chatPrompt" not in application
        assert completion.calls == []

    @pytest.mark.asyncio
    async def test_upstream_failure_leaves_messages(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """If the completion call fails the stored messages are unchanged."""
        await _seed_application(store)
        completion = FakeCompletionClient(replies=[UpstreamUnavailableError("down")])
        agent = InterviewSessionAgent(mock_settings, completion, store)

        with pytest.raises(UpstreamUnavailableError):
            await agent.send_turn(APP_ID, [], "Hello")

        application = await store.get(APPLICATIONS, APP_ID)
        assert application is not None
        assert application["messages"] == []

    @pytest.mark.asyncio
    async def test_racing_first_turn_adopts_stored_instruction(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """A first turn that finds an instruction stored since its read uses that one."""
        await _seed_application(store)
        stale = await store.get(APPLICATIONS, APP_ID)
        await store.update(APPLICATIONS, APP_ID, {"chatPrompt": "WINNER", "status": "interviewing"})
        current = await store.get(APPLICATIONS, APP_ID)
        completion = FakeCompletionClient(replies=["ok"])
        agent = InterviewSessionAgent(mock_settings, completion, store)

        with (
            patch.object(PromptCompiler, "compile", autospec=True, return_value="LOSER") as spy,
            patch.object(agent, "_load_application", AsyncMock(side_effect=[stale, current])),
        ):
            await agent.send_turn(APP_ID, [], "Hello")

        assert spy.call_count == 1
        assert completion.calls[0].system_instruction == "WINNER"
        application = await store.get(APPLICATIONS, APP_ID)
        assert application is not None
        assert application["chatPrompt"] == "WINNER"

    @pytest.mark.asyncio
    async def test_turn_racing_completion_writes_nothing(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """Messages are not rewritten once the interview was completed mid-turn."""
        await _seed_application(store, chatPrompt="CACHED", status="interviewing")
        stale = await store.get(APPLICATIONS, APP_ID)
        await store.update(APPLICATIONS, APP_ID, {"status": "completed", "messages": ["final"]})
        agent = InterviewSessionAgent(mock_settings, FakeCompletionClient(replies=["ok"]), store)

        with (
            patch.object(agent, "_load_application", AsyncMock(return_value=stale)),
            pytest.raises(InvalidArgumentError, match="already been completed"),
        ):
            await agent.send_turn(APP_ID, [], "Hello")

        application = await store.get(APPLICATIONS, APP_ID)
        assert application is not None
        assert application["messages"] == ["final"]
