"""Conversation and report models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from jobchat_core.constants import MAX_SCORE, MIN_SCORE


class ChatMessage(BaseModel):
    """A single turn of interview conversation."""

    role: Literal["user", "assistant"] = Field(description="Who produced the turn")
    content: str = Field(description="Turn text")

    @model_validator(mode="before")
    @classmethod
    def accept_provider_shapes(cls, data: Any) -> Any:
        """Accept ``model`` as a role alias and ``text``/``parts`` as content."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("role") == "model":
            data["role"] = "assistant"
        if "content" not in data:
            if "text" in data:
                data["content"] = data.pop("text")
            elif isinstance(data.get("parts"), list):
                data["content"] = "".join(
                    part.get("text", "") if isinstance(part, dict) else str(part)
                    for part in data.pop("parts")
                )
        return data


class ParsedReport(BaseModel):
    """The three sections of a report-generation reply."""

    summary: str = Field(description="Structured markdown report")
    candidate_feedback: str = Field(description="Short feedback paragraph for the candidate")
    score: float = Field(ge=MIN_SCORE, le=MAX_SCORE, description="Overall score, one decimal")
