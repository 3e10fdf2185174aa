"""Inbound request handlers for the interview flow.

Each public coroutine validates its input before touching the store or the
completion service, and lets only typed JobChatError subclasses escape.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Callable, Coroutine, Sequence
from datetime import UTC, datetime
from functools import wraps
from typing import TYPE_CHECKING, Any, Concatenate, ParamSpec, TypeVar
from uuid import uuid4, uuid5

import structlog
from pydantic import ValidationError

from jobchat_agents.agents.extraction import ExtractionAgent
from jobchat_agents.agents.interview_session import InterviewSessionAgent
from jobchat_agents.agents.report_compiler import ReportCompilerAgent
from jobchat_agents.observability import entity_ids, request_context, traced_operation
from jobchat_agents.prompt_compiler import PromptCompiler
from jobchat_core.constants import (
    APPLICATION_ID_NAMESPACE,
    APPLICATIONS,
    CANDIDATES,
    JOBS,
    ORGS,
    REPORTS,
    ApplicationStatus,
)
from jobchat_core.exceptions import (
    AlreadyExistsError,
    InternalError,
    InvalidArgumentError,
    JobChatError,
    NotFoundError,
)
from jobchat_core.interfaces.document_store import ArrayUnion
from jobchat_core.models.interview import ChatMessage
from jobchat_core.models.results import (
    CreateApplicationResult,
    ExtractionResult,
    GenerateReportResult,
    InterviewTurnResult,
)
from jobchat_core.schemas import JOB_SCHEMA, ORG_SCHEMA

if TYPE_CHECKING:
    from jobchat_core.config.settings import Settings
    from jobchat_core.interfaces.completion import CompletionClient
    from jobchat_core.interfaces.document_store import DocumentStore

logger = structlog.get_logger()

P = ParamSpec("P")
R = TypeVar("R")


def application_id_for(candidate_id: str, job_id: str) -> str:
    """Deterministic application id for a (candidate, job) pair."""
    return str(uuid5(APPLICATION_ID_NAMESPACE, f"{candidate_id}:{job_id}"))


def _service_boundary(
    operation: str,
) -> Callable[
    [Callable[Concatenate[InterviewService, P], Coroutine[Any, Any, R]]],
    Callable[Concatenate[InterviewService, P], Coroutine[Any, Any, R]],
]:
    """Bind the operation and its entity ids to the log context, time the call,
    and convert stray exceptions to InternalError.
    """

    def decorator(
        fn: Callable[Concatenate[InterviewService, P], Coroutine[Any, Any, R]],
    ) -> Callable[Concatenate[InterviewService, P], Coroutine[Any, Any, R]]:
        signature = inspect.signature(fn)

        @wraps(fn)
        async def wrapper(self: InterviewService, *args: P.args, **kwargs: P.kwargs) -> R:
            try:
                arguments = signature.bind_partial(self, *args, **kwargs).arguments
            except TypeError:
                arguments = {}

            with request_context(operation, **entity_ids(arguments)):
                start = time.monotonic()
                try:
                    result = await fn(self, *args, **kwargs)
                except JobChatError as e:
                    logger.warning(
                        "operation_failed",
                        code=e.code,
                        error=e.message,
                        duration_seconds=round(time.monotonic() - start, 2),
                    )
                    raise
                except Exception as e:
                    logger.exception("operation_internal_error", error_type=type(e).__name__)
                    raise InternalError(
                        f"An unexpected error occurred during {operation}.", details=str(e)
                    ) from e
                logger.info(
                    "operation_complete",
                    duration_seconds=round(time.monotonic() - start, 2),
                )
                return result

        return wrapper

    return decorator


def _require(**fields: str | None) -> None:
    """Raise InvalidArgumentError naming every blank field."""
    missing = [name for name, value in fields.items() if not value or not value.strip()]
    if missing:
        msg = f"Missing required fields: {', '.join(missing)}."
        raise InvalidArgumentError(msg)


def _parse_history(history: Sequence[ChatMessage | dict[str, Any]] | None) -> list[ChatMessage]:
    """Coerce caller-supplied turns into ChatMessage objects."""
    try:
        return [
            turn if isinstance(turn, ChatMessage) else ChatMessage.model_validate(turn)
            for turn in history or []
        ]
    except ValidationError as e:
        msg = "History contains a malformed message."
        raise InvalidArgumentError(msg, details=str(e)) from e


class InterviewService:
    """createApplication, sendInterviewTurn, generateReport and extraction handlers."""

    def __init__(
        self,
        settings: Settings,
        store: DocumentStore,
        completion: CompletionClient,
        compiler: PromptCompiler | None = None,
    ) -> None:
        """Initialize with settings and injected collaborators."""
        self.settings = settings
        self._store = store
        self._completion = completion
        self._session = InterviewSessionAgent(settings, completion, store, compiler=compiler)
        self._reports = ReportCompilerAgent(settings, completion, store)
        self._extraction = ExtractionAgent(settings, completion, store)

    @traced_operation("create_application")
    @_service_boundary("create_application")
    async def create_application(
        self, candidate_id: str, job_id: str, org_id: str
    ) -> CreateApplicationResult:
        """Create the application and its empty report, or return the existing pair.

        Ids are deterministic per (candidate, job) and written with a
        create-if-absent batch, so concurrent duplicates resolve to one record.
        """
        _require(candidate_id=candidate_id, job_id=job_id, org_id=org_id)

        for collection, doc_id in ((CANDIDATES, candidate_id), (JOBS, job_id), (ORGS, org_id)):
            if await self._store.get(collection, doc_id) is None:
                raise NotFoundError(collection, doc_id)

        existing = await self._find_application(candidate_id, job_id)
        if existing is not None:
            return existing

        application_id = application_id_for(candidate_id, job_id)
        report_id = uuid4().hex
        now = datetime.now(UTC).isoformat()

        batch = self._store.batch()
        batch.create(
            APPLICATIONS,
            application_id,
            {
                "candidateId": candidate_id,
                "jobID": job_id,
                "orgID": org_id,
                "applicationDate": now,
                "status": ApplicationStatus.APPLIED.value,
                "messages": [],
                "reportID": report_id,
                "createdAt": now,
                "updatedAt": now,
            },
        )
        batch.create(
            REPORTS,
            report_id,
            {
                "candidateId": candidate_id,
                "applicationId": application_id,
                "jobID": job_id,
                "questionResponses": [],
                "summary": "",
                "candidateFeedback": "",
                "score": None,
                "createdAt": now,
                "updatedAt": now,
            },
        )
        batch.update(CANDIDATES, candidate_id, {"applications": ArrayUnion(application_id)})
        batch.update(JOBS, job_id, {"applications": ArrayUnion(application_id)})

        try:
            await batch.commit()
        except AlreadyExistsError:
            # Lost a race with a concurrent create for the same pair.
            existing = await self._find_application(candidate_id, job_id)
            if existing is None:
                raise
            return existing

        logger.info("application_created", application_id=application_id, report_id=report_id)
        return CreateApplicationResult(
            application_id=application_id, report_id=report_id, is_existing=False
        )

    @traced_operation("send_interview_turn")
    @_service_boundary("send_interview_turn")
    async def send_interview_turn(
        self,
        application_id: str,
        candidate_id: str,
        job_id: str,
        org_id: str,
        message: str,
        history: Sequence[ChatMessage | dict[str, Any]] | None = None,
    ) -> InterviewTurnResult:
        """Relay one candidate message and return the interviewer's reply."""
        _require(
            application_id=application_id,
            candidate_id=candidate_id,
            job_id=job_id,
            org_id=org_id,
        )
        if not message or not message.strip():
            msg = "Message must not be empty."
            raise InvalidArgumentError(msg)
        turns = _parse_history(history)

        await self._check_application(application_id, candidate_id, job_id, org_id)
        reply = await self._session.send_turn(application_id, turns, message)
        return InterviewTurnResult(response=reply)

    @traced_operation("generate_report")
    @_service_boundary("generate_report")
    async def generate_report(
        self,
        candidate_id: str,
        job_id: str,
        org_id: str,
        application_id: str,
        report_id: str,
        history: Sequence[ChatMessage | dict[str, Any]] | None = None,
    ) -> GenerateReportResult:
        """Score and summarize a finished interview."""
        _require(
            candidate_id=candidate_id,
            job_id=job_id,
            org_id=org_id,
            application_id=application_id,
            report_id=report_id,
        )
        turns = _parse_history(history)
        if not turns:
            msg = "Cannot generate a report from an empty interview history."
            raise InvalidArgumentError(msg)

        application = await self._check_application(application_id, candidate_id, job_id, org_id)
        if application.get("reportID") != report_id:
            msg = f"Report {report_id} does not belong to application {application_id}."
            raise InvalidArgumentError(msg)

        report = await self._reports.generate_report(application_id, turns)
        return GenerateReportResult(success=True, score=report.score)

    @traced_operation("extract_and_save_data")
    @_service_boundary("extract_and_save_data")
    async def extract_and_save_data(
        self,
        org_id: str,
        job_id: str,
        text_input: str,
        custom_instructions: str | None = None,
    ) -> ExtractionResult:
        """Extract job fields from free text and merge them into the job."""
        _require(org_id=org_id, job_id=job_id, text_input=text_input)

        job = await self._store.get(JOBS, job_id)
        if job is None:
            raise NotFoundError(JOBS, job_id)
        if job.get("orgId") not in (None, org_id):
            msg = f"Job {job_id} does not belong to organization {org_id}."
            raise InvalidArgumentError(msg)

        instructions = f'Set "orgId" to "{org_id}".'
        if custom_instructions:
            instructions = f"{instructions}\n{custom_instructions}"
        extracted = await self._extraction.extract(text_input, JOB_SCHEMA, instructions)

        await self._merge(JOBS, job_id, extracted, {"orgId": org_id})
        return ExtractionResult(extracted_data=extracted)

    @traced_operation("extract_and_save_org_data")
    @_service_boundary("extract_and_save_org_data")
    async def extract_and_save_org_data(
        self,
        org_id: str,
        text_input: str,
        custom_instructions: str | None = None,
    ) -> ExtractionResult:
        """Extract organization profile fields from free text and merge them in."""
        _require(org_id=org_id, text_input=text_input)

        if await self._store.get(ORGS, org_id) is None:
            raise NotFoundError(ORGS, org_id)

        extracted = await self._extraction.extract(text_input, ORG_SCHEMA, custom_instructions)
        await self._merge(ORGS, org_id, extracted, {})
        return ExtractionResult(extracted_data=extracted)

    async def close(self) -> None:
        """Release collaborators that hold connections."""
        for resource in (self._store, self._completion):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()

    async def _merge(
        self,
        collection: str,
        doc_id: str,
        extracted: dict[str, Any],
        forced: dict[str, Any],
    ) -> None:
        """Merge non-null extracted fields plus a last-updated timestamp."""
        changes = {key: value for key, value in extracted.items() if value is not None}
        changes.update(forced)
        changes["lastUpdated"] = datetime.now(UTC).isoformat()
        await self._store.update(collection, doc_id, changes)
        logger.info("extraction_merged", collection=collection, doc_id=doc_id, fields=len(changes))

    async def _find_application(
        self, candidate_id: str, job_id: str
    ) -> CreateApplicationResult | None:
        """Look up an existing application for the pair, by id and by query."""
        application_id = application_id_for(candidate_id, job_id)
        application = await self._store.get(APPLICATIONS, application_id)
        if application is None:
            for doc_id, doc in await self._store.query(
                APPLICATIONS, "candidateId", "==", candidate_id
            ):
                if doc.get("jobID") == job_id:
                    application_id, application = doc_id, doc
                    break
        if application is None:
            return None

        logger.info(
            "application_exists",
            application_id=application_id,
            candidate_id=candidate_id,
            job_id=job_id,
        )
        return CreateApplicationResult(
            application_id=application_id,
            report_id=str(application.get("reportID", "")),
            is_existing=True,
        )

    async def _check_application(
        self, application_id: str, candidate_id: str, job_id: str, org_id: str
    ) -> dict[str, Any]:
        """Load the application and confirm it binds the given candidate, job and org."""
        application = await self._store.get(APPLICATIONS, application_id)
        if application is None:
            raise NotFoundError(APPLICATIONS, application_id)
        expected = {"candidateId": candidate_id, "jobID": job_id, "orgID": org_id}
        mismatched = [key for key, value in expected.items() if application.get(key) != value]
        if mismatched:
            msg = (
                f"Application {application_id} does not match the supplied "
                f"{', '.join(mismatched)}."
            )
            raise InvalidArgumentError(msg)
        return application
