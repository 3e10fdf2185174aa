"""Tests for report parsing and ReportCompilerAgent persistence."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from jobchat_agents.agents.report_compiler import ReportCompilerAgent, parse_report_sections
from jobchat_agents.prompts.report import REPORT_SYSTEM
from jobchat_core.constants import APPLICATIONS, REPORTS
from jobchat_core.exceptions import AlreadyExistsError, MalformedReportError, NotFoundError
from jobchat_core.models.interview import ChatMessage
from jobchat_infra.db.document_store import SqlDocumentStore
from tests.mocks.mock_factories import CANDIDATE_ID, JOB_ID, ORG_ID, seed_context
from tests.mocks.mock_llm import VALID_REPORT_REPLY, FakeCompletionClient

APP_ID = "app-1"
REPORT_ID = "rep-1"

HISTORY = [
    ChatMessage(role="assistant", content="Tell me about a hard bug."),
    ChatMessage(role="user", content="A race in our cache invalidation."),
]


async def _seed(store: SqlDocumentStore, status: str = "interviewing") -> None:
    """Write context documents, an application and its empty report."""
    await seed_context(store)
    await store.set(
        APPLICATIONS,
        APP_ID,
        {
            "candidateId": CANDIDATE_ID,
            "jobID": JOB_ID,
            "orgID": ORG_ID,
            "status": status,
            "reportID": REPORT_ID,
            "messages": [],
        },
    )
    await store.set(
        REPORTS,
        REPORT_ID,
        {"summary": "", "candidateFeedback": "", "score": None, "questionResponses": []},
    )


@pytest.mark.unit
class TestParseReportSections:
    """Three-section reply parsing."""

    def test_valid_reply(self) -> None:
        """Sections split on markers; the score is rounded to one decimal."""
        report = parse_report_sections("preamble SECTION 1: R SECTION 2: F SECTION 3: 7.5")
        assert report.summary == "R"
        assert report.candidate_feedback == "F"
        assert report.score == 7.5

    def test_newline_after_marker(self) -> None:
        """Markers followed by a newline are accepted."""
        report = parse_report_sections(VALID_REPORT_REPLY)
        assert report.summary.startswith("## Overview")
        assert report.candidate_feedback.startswith("You explained")
        assert report.score == 7.5

    def test_missing_section_three(self) -> None:
        """Two markers are not enough."""
        with pytest.raises(MalformedReportError):
            parse_report_sections("SECTION 1: R SECTION 2: F")

    def test_non_numeric_score(self) -> None:
        """A score that is not a number is rejected."""
        with pytest.raises(MalformedReportError):
            parse_report_sections("SECTION 1: R SECTION 2: F SECTION 3: eight")

    @pytest.mark.parametrize("score", ["NaN", "inf", "-1", "10.5", "42"])
    def test_invalid_scores_rejected(self, score: str) -> None:
        """Non-finite and out-of-range scores are rejected, not clamped."""
        with pytest.raises(MalformedReportError):
            parse_report_sections(f"SECTION 1: R SECTION 2: F SECTION 3: {score}")

    @pytest.mark.parametrize("score", ["0", "10", "10.0"])
    def test_boundary_scores_accepted(self, score: str) -> None:
        """The range is inclusive."""
        assert 0 <= parse_report_sections(f"SECTION 1: R SECTION 2: F SECTION 3: {score}").score

    def test_empty_summary_rejected(self) -> None:
        """Sections must have content."""
        with pytest.raises(MalformedReportError):
            parse_report_sections("SECTION 1:  SECTION 2: F SECTION 3: 5")

    @pytest.mark.parametrize(
        ("raw_score", "expected"),
        [("9.96", 10.0), ("7.46", 7.5), ("8.449", 8.4), ("0.04", 0.0), ("3", 3.0)],
    )
    def test_score_rounded_to_one_decimal(self, raw_score: str, expected: float) -> None:
        """Scores keep one decimal place."""
        report = parse_report_sections(f"SECTION 1: R SECTION 2: F SECTION 3: {raw_score}")
        assert report.score == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "SECTION 2: F SECTION 1: R SECTION 3: 5",
            "SECTION 1: R SECTION 3: 5 SECTION 2: F",
            "SECTION 1: R SECTION 1: R again SECTION 3: 5",
        ],
    )
    def test_out_of_order_markers_rejected(self, raw: str) -> None:
        """Sections must appear as 1, 2, 3."""
        with pytest.raises(MalformedReportError, match="out of order"):
            parse_report_sections(raw)

    def test_markers_after_the_third_ignored(self) -> None:
        """Only the first three markers delimit sections."""
        report = parse_report_sections("SECTION 1: R SECTION 2: F SECTION 3: 6 SECTION 1: x")
        assert report.score == 6.0


@pytest.mark.unit
class TestReportCompilerAgent:
    """generate_report persistence."""

    @pytest.mark.asyncio
    async def test_report_and_status_written_together(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """A parsed report is stored and the application is completed."""
        await _seed(store)
        completion = FakeCompletionClient(replies=[VALID_REPORT_REPLY])
        agent = ReportCompilerAgent(mock_settings, completion, store)

        report = await agent.generate_report(APP_ID, HISTORY)

        assert report.score == 7.5
        stored = await store.get(REPORTS, REPORT_ID)
        assert stored is not None
        assert stored["score"] == 7.5
        assert stored["summary"].startswith("## Overview")
        assert stored["questionResponses"] == [m.model_dump() for m in HISTORY]
        application = await store.get(APPLICATIONS, APP_ID)
        assert application is not None
        assert application["status"] == "completed"
        assert "completedAt" in application

        call = completion.calls[0]
        assert call.method == "generate"
        assert call.system_instruction == REPORT_SYSTEM
        assert call.temperature == 0.3
        assert "A race in our cache invalidation." in call.payload
        assert "Acme Robotics" in call.payload

    @pytest.mark.asyncio
    async def test_malformed_reply_writes_nothing(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """A reply missing a section leaves report and application untouched."""
        await _seed(store)
        completion = FakeCompletionClient(replies=["SECTION 1: R SECTION 2: F"])
        agent = ReportCompilerAgent(mock_settings, completion, store)

        with pytest.raises(MalformedReportError):
            await agent.generate_report(APP_ID, HISTORY)

        stored = await store.get(REPORTS, REPORT_ID)
        assert stored is not None
        assert stored["score"] is None
        application = await store.get(APPLICATIONS, APP_ID)
        assert application is not None
        assert application["status"] == "interviewing"

    @pytest.mark.asyncio
    async def test_completed_application_rejected(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """Reports are generated once per application."""
        await _seed(store, status="completed")
        completion = FakeCompletionClient(replies=[VALID_REPORT_REPLY])
        agent = ReportCompilerAgent(mock_settings, completion, store)

        with pytest.raises(AlreadyExistsError):
            await agent.generate_report(APP_ID, HISTORY)
        assert completion.calls == []

    @pytest.mark.asyncio
    async def test_missing_report_document(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """The report document must exist before generation."""
        await _seed(store)
        await store.set(
            APPLICATIONS,
            APP_ID,
            {"candidateId": CANDIDATE_ID, "jobID": JOB_ID, "orgID": ORG_ID, "reportID": "gone"},
        )
        agent = ReportCompilerAgent(mock_settings, FakeCompletionClient(), store)

        with pytest.raises(NotFoundError) as exc_info:
            await agent.generate_report(APP_ID, HISTORY)
        assert exc_info.value.collection == REPORTS

    @pytest.mark.asyncio
    async def test_stale_read_cannot_overwrite_completed_report(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """A call that read the application before another call completed it stores nothing."""
        await _seed(store)
        stale = await store.get(APPLICATIONS, APP_ID)
        winner = ReportCompilerAgent(
            mock_settings, FakeCompletionClient(replies=[VALID_REPORT_REPLY]), store
        )
        await winner.generate_report(APP_ID, HISTORY)

        loser = ReportCompilerAgent(
            mock_settings,
            FakeCompletionClient(replies=["SECTION 1: Late SECTION 2: Late SECTION 3: 2"]),
            store,
        )
        with (
            patch.object(loser, "_load_application", AsyncMock(return_value=stale)),
            pytest.raises(AlreadyExistsError),
        ):
            await loser.generate_report(APP_ID, HISTORY)

        stored = await store.get(REPORTS, REPORT_ID)
        assert stored is not None
        assert stored["score"] == 7.5
        assert stored["summary"].startswith("## Overview")
