"""Context assembler — projects org, job and candidate documents for prompts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from jobchat_core.constants import CANDIDATES, JOBS, ORGS
from jobchat_core.exceptions import NotFoundError

if TYPE_CHECKING:
    from jobchat_core.interfaces.document_store import DocumentStore

logger = structlog.get_logger()

# Only the fields the prompt templates reference are ever read out.
ORG_FIELDS: tuple[str, ...] = (
    "name",
    "companyName",
    "companyDescription",
    "companySize",
    "industry",
    "location",
    "missionStatement",
    "companyValues",
    "workEnvironment",
)
JOB_FIELDS: tuple[str, ...] = (
    "jobTitle",
    "jobDepartment",
    "jobDescription",
    "jobLocation",
    "jobType",
    "riskTolerance",
    "requiredSkills",
    "preferredSkills",
    "requiredCertifications",
    "requiredEducation",
    "techStack",
    "successCriteria",
    "candidatePersona",
    "requiredQuestions",
    "workEnvironment",
)
CANDIDATE_FIELDS: tuple[str, ...] = (
    "name",
    "email",
    "resumeBreakdown",
    "resumeText",
)


def project(document: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """Keep only the listed top-level fields that are present."""
    return {name: document[name] for name in fields if name in document}


@dataclass(frozen=True)
class RawContext:
    """Projected, not yet normalized, context documents."""

    org: dict[str, Any] = field(default_factory=dict)
    job: dict[str, Any] = field(default_factory=dict)
    candidate: dict[str, Any] = field(default_factory=dict)


class ContextAssembler:
    """Fetch the three context documents an interview prompt is built from."""

    def __init__(self, store: DocumentStore) -> None:
        """Initialize with a document store."""
        self._store = store

    async def assemble(self, org_id: str, job_id: str, candidate_id: str) -> RawContext:
        """Return projections of the org, job and candidate documents.

        Raises NotFoundError naming the first id that does not resolve.
        """
        org = await self._fetch(ORGS, org_id)
        job = await self._fetch(JOBS, job_id)
        candidate = await self._fetch(CANDIDATES, candidate_id)

        context = RawContext(
            org=project(org, ORG_FIELDS),
            job=project(job, JOB_FIELDS),
            candidate=project(candidate, CANDIDATE_FIELDS),
        )
        logger.debug(
            "context_assembled",
            org_id=org_id,
            job_id=job_id,
            candidate_id=candidate_id,
        )
        return context

    async def _fetch(self, collection: str, doc_id: str) -> dict[str, Any]:
        document = await self._store.get(collection, doc_id)
        if document is None:
            raise NotFoundError(collection, doc_id)
        return document
