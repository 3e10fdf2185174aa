"""Response payloads of the inbound service operations."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CreateApplicationResult(BaseModel):
    """Outcome of createApplication."""

    application_id: str = Field(description="Application document id")
    report_id: str = Field(description="Report document id")
    is_existing: bool = Field(description="True when the pair already had an application")


class InterviewTurnResult(BaseModel):
    """Outcome of sendInterviewTurn."""

    response: str = Field(description="Interviewer reply text")


class GenerateReportResult(BaseModel):
    """Outcome of generateReport."""

    success: bool = Field(default=True)
    score: float = Field(description="Persisted overall score")


class ExtractionResult(BaseModel):
    """Outcome of extractAndSaveData."""

    extracted_data: dict[str, Any] = Field(description="Schema-valid extracted object")
