"""Report compiler agent — reduces a finished interview to summary, feedback and score."""

from __future__ import annotations

import math
import re
import time
from datetime import UTC, datetime

import structlog

from jobchat_agents.agents.base import BaseAgent, interview_open
from jobchat_agents.context import ContextAssembler
from jobchat_agents.prompt_compiler import normalize_context
from jobchat_agents.prompts.report import REPORT_SYSTEM, render_report_prompt
from jobchat_core.constants import (
    APPLICATIONS,
    MAX_SCORE,
    MIN_SCORE,
    REPORT_PROMPT_VERSION,
    REPORT_SECTION_PATTERN,
    REPORTS,
    ApplicationStatus,
)
from jobchat_core.exceptions import (
    AlreadyExistsError,
    FailedPreconditionError,
    MalformedReportError,
    NotFoundError,
)
from jobchat_core.models.interview import ChatMessage, ParsedReport

logger = structlog.get_logger()

_SECTION_RE = re.compile(REPORT_SECTION_PATTERN)


def parse_report_sections(raw: str) -> ParsedReport:
    """Split a report reply into its three sections and validate the score.

    Raises MalformedReportError when a marker is missing or out of order, or
    the score is not a finite number within [0, 10]. Out-of-range scores are
    rejected, not clamped. Valid scores are rounded to one decimal.
    """
    fragments = _SECTION_RE.split(raw)
    if len(fragments) < 4:
        msg = (
            f"Report reply has {len(fragments) - 1} of 3 section markers; "
            "expected SECTION 1, SECTION 2 and SECTION 3"
        )
        raise MalformedReportError(msg, details=raw[:500])

    order = [m.group().split()[1].rstrip(":") for m in _SECTION_RE.finditer(raw)][:3]
    if order != ["1", "2", "3"]:
        msg = f"Report section markers are out of order: {', '.join(order)}"
        raise MalformedReportError(msg, details=raw[:500])

    summary, feedback, raw_score = (fragment.strip() for fragment in fragments[1:4])
    if not summary or not feedback:
        msg = "Report reply has an empty summary or feedback section"
        raise MalformedReportError(msg, details=raw[:500])

    try:
        score = float(raw_score)
    except ValueError as e:
        msg = f"Report score is not a number: {raw_score[:50]!r}"
        raise MalformedReportError(msg) from e

    if math.isnan(score) or math.isinf(score):
        msg = f"Report score is not a finite number: {raw_score[:50]!r}"
        raise MalformedReportError(msg)
    if not MIN_SCORE <= score <= MAX_SCORE:
        msg = f"Report score {score} is outside [{MIN_SCORE}, {MAX_SCORE}]"
        raise MalformedReportError(msg)

    return ParsedReport(summary=summary, candidate_feedback=feedback, score=round(score, 1))


def _already_reported(application_id: str) -> AlreadyExistsError:
    return AlreadyExistsError(f"A report was already generated for application {application_id}.")


class ReportCompilerAgent(BaseAgent):
    """Generate, parse and persist the final interview report."""

    agent_name = "report_compiler"

    async def generate_report(
        self,
        application_id: str,
        full_history: list[ChatMessage],
    ) -> ParsedReport:
        """Produce the report and commit it together with the completed status.

        Nothing is written unless the reply parses cleanly. The completed check
        is repeated inside the write transaction, so of two concurrent calls
        only the first to commit stores its report.
        """
        self._log_start({"application_id": application_id, "turns": len(full_history)})
        start = time.monotonic()

        application = await self._load_application(application_id)
        if not interview_open(application):
            raise _already_reported(application_id)

        report_id = str(application.get("reportID", ""))
        if not report_id or await self._store.get(REPORTS, report_id) is None:
            raise NotFoundError(REPORTS, report_id or "<missing>")

        raw = await ContextAssembler(self._store).assemble(
            str(application.get("orgID", "")),
            str(application.get("jobID", "")),
            str(application.get("candidateId", "")),
        )
        context = normalize_context(raw)

        reply = await self._completion.generate(
            REPORT_SYSTEM,
            render_report_prompt(context, full_history),
            temperature=self.settings.report_temperature,
            model=self.settings.report_model,
        )
        report = parse_report_sections(reply)

        now = datetime.now(UTC).isoformat()
        transcript = [turn.model_dump() for turn in full_history]
        batch = self._store.batch()
        batch.update(
            REPORTS,
            report_id,
            {
                "questionResponses": transcript,
                "summary": report.summary,
                "candidateFeedback": report.candidate_feedback,
                "score": report.score,
                "promptVersion": REPORT_PROMPT_VERSION,
                "updatedAt": now,
            },
        )
        batch.update(
            APPLICATIONS,
            application_id,
            {
                "status": ApplicationStatus.COMPLETED.value,
                "messages": transcript,
                "completedAt": now,
                "updatedAt": now,
            },
            precondition=interview_open,
        )
        try:
            await batch.commit()
        except FailedPreconditionError as e:
            logger.warning("report_discarded_already_completed", application_id=application_id)
            raise _already_reported(application_id) from e

        logger.info(
            "report_persisted",
            application_id=application_id,
            report_id=report_id,
            score=report.score,
        )
        self._log_end(time.monotonic() - start, {"application_id": application_id})
        return report
