"""Domain models for jobchat."""

from jobchat_core.models.context import (
    CandidateContext,
    CompanyValue,
    InterviewContext,
    JobContext,
    OrgContext,
    SkillRequirement,
    StackEntry,
    SuccessCriteria,
    SuccessMetric,
    TechStack,
    WorkEnvironment,
)
from jobchat_core.models.interview import ChatMessage, ParsedReport
from jobchat_core.models.results import (
    CreateApplicationResult,
    ExtractionResult,
    GenerateReportResult,
    InterviewTurnResult,
)

__all__ = [
    "CandidateContext",
    "ChatMessage",
    "CompanyValue",
    "CreateApplicationResult",
    "ExtractionResult",
    "GenerateReportResult",
    "InterviewContext",
    "InterviewTurnResult",
    "JobContext",
    "OrgContext",
    "ParsedReport",
    "SkillRequirement",
    "StackEntry",
    "SuccessCriteria",
    "SuccessMetric",
    "TechStack",
    "WorkEnvironment",
]
