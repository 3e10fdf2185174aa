"""Shared constants and enums for jobchat."""

from __future__ import annotations

from enum import StrEnum
from uuid import UUID

# Prompt versions, bumped when a template changes
INTERVIEWER_PROMPT_VERSION = "v1"
REPORT_PROMPT_VERSION = "v1"
EXTRACTION_PROMPT_VERSION = "v1"

# LLM token pricing (USD per 1M tokens)
TOKEN_PRICES: dict[str, dict[str, float]] = {
    "claude-haiku-4-5-20251001": {"input": 0.80, "output": 4.00},
    "claude-sonnet-4-5-20250514": {"input": 3.00, "output": 15.00},
}

# Document store collections
ORGS = "orgs"
JOBS = "jobs"
CANDIDATES = "candidates"
APPLICATIONS = "applications"
REPORTS = "reports"

# Interview policy
MAX_INTERVIEW_QUESTIONS = 8
MAX_QUESTION_WORDS = 40

# Report contract
REPORT_SECTION_PATTERN = r"SECTION [1-3]:\s+"
MIN_SCORE = 0.0
MAX_SCORE = 10.0

# Namespace for deterministic application ids derived from (candidate, job)
APPLICATION_ID_NAMESPACE = UUID("6f1c2a4e-8d7b-5e3f-9a10-2b4c6d8e0f12")

NOT_AVAILABLE = "N/A"


class ApplicationStatus(StrEnum):
    """Lifecycle of an application record."""

    APPLIED = "applied"
    INTERVIEWING = "interviewing"
    COMPLETED = "completed"
