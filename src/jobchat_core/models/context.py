"""Interview context models with deep defaults for partially filled documents.

Organization, job and candidate documents are frequently half-filled by
hiring managers. Every optional field here resolves to a renderable default
(``N/A``, an empty list, or an empty sub-model) so template rendering never
dereferences a missing path.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from jobchat_core.constants import NOT_AVAILABLE


class _ContextModel(BaseModel):
    """Lenient base: camelCase aliases, unknown keys dropped, None means default."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
        frozen=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Replace explicit nulls with the field default when one exists."""
        if value is not None or info.field_name is None:
            return value
        field = cls.model_fields[info.field_name]
        if field.is_required():
            return value
        return field.get_default(call_default_factory=True)


class SkillRequirement(_ContextModel):
    """A required or preferred skill with its expected level."""

    skill: str = Field(default=NOT_AVAILABLE, description="Skill name")
    level: str = Field(default=NOT_AVAILABLE, description="Expected proficiency")

    @model_validator(mode="before")
    @classmethod
    def accept_name_or_string(cls, data: Any) -> Any:
        """Accept bare strings and the ``name`` spelling of the skill key."""
        if isinstance(data, str):
            return {"skill": data}
        if isinstance(data, dict) and "skill" not in data and "name" in data:
            return {**data, "skill": data["name"]}
        return data


class StackEntry(_ContextModel):
    """One technology in the job's stack."""

    skill: str = Field(default=NOT_AVAILABLE)
    level: str = Field(default="intermediate")
    real_world_application: str = Field(default="General application in role")
    red_flags: list[str] = Field(default_factory=list)
    weight: float = Field(default=0.5)

    @model_validator(mode="before")
    @classmethod
    def accept_string(cls, data: Any) -> Any:
        """Treat a bare string as the skill name."""
        if isinstance(data, str):
            return {"skill": data}
        return data


class TechStack(_ContextModel):
    """Technology stack and engineering context of the role."""

    stack: list[StackEntry] = Field(default_factory=list)
    architecture: str = Field(default="Not specified")
    scale: str = Field(default="Not specified")
    challenges: list[str] = Field(default_factory=list)
    practices: list[str] = Field(default_factory=list)


class SuccessMetric(_ContextModel):
    """A measurable success criterion."""

    metric: str = Field(default=NOT_AVAILABLE)
    description: str = Field(default=NOT_AVAILABLE)
    weight: float | None = Field(default=None)


class SuccessCriteria(_ContextModel):
    """Short and long term success criteria for the role."""

    immediate: list[SuccessMetric] = Field(default_factory=list)
    long_term: list[SuccessMetric] = Field(default_factory=list)


class WorkEnvironment(_ContextModel):
    """Team and workplace descriptors."""

    tech_maturity: str = Field(default=NOT_AVAILABLE)
    structure: str = Field(default=NOT_AVAILABLE)
    communication: str = Field(default=NOT_AVAILABLE)
    pace: str = Field(default=NOT_AVAILABLE)
    growth_expectations: str = Field(default=NOT_AVAILABLE)
    collaboration: str = Field(default=NOT_AVAILABLE)
    team_size: str = Field(default=NOT_AVAILABLE)


class CompanyValue(_ContextModel):
    """A weighted company value."""

    name: str = Field(default=NOT_AVAILABLE)
    description: str = Field(default=NOT_AVAILABLE)
    weight: float | None = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def accept_string(cls, data: Any) -> Any:
        """Treat a bare string as the value name."""
        if isinstance(data, str):
            return {"name": data}
        return data


class OrgContext(_ContextModel):
    """Projection of an organization document used by the prompts."""

    name: str = Field(default=NOT_AVAILABLE, description="Company name")
    company_description: str = Field(default=NOT_AVAILABLE)
    company_size: str = Field(default=NOT_AVAILABLE)
    industry: str = Field(default=NOT_AVAILABLE)
    location: str = Field(default=NOT_AVAILABLE)
    mission_statement: str = Field(default=NOT_AVAILABLE)
    company_values: list[CompanyValue] = Field(default_factory=list)
    work_environment: WorkEnvironment = Field(default_factory=WorkEnvironment)

    @model_validator(mode="before")
    @classmethod
    def fallback_company_name(cls, data: Any) -> Any:
        """Use ``companyName`` when the document has no ``name``."""
        if isinstance(data, dict) and not data.get("name") and data.get("companyName"):
            return {**data, "name": data["companyName"]}
        return data


class JobContext(_ContextModel):
    """Projection of a job document used by the prompts."""

    job_title: str = Field(description="Job title; the only field a prompt cannot do without")
    job_department: str = Field(default=NOT_AVAILABLE)
    job_description: str = Field(default=NOT_AVAILABLE)
    job_location: str = Field(default=NOT_AVAILABLE)
    job_type: str = Field(default=NOT_AVAILABLE)
    risk_tolerance: str = Field(default="medium")
    required_skills: list[SkillRequirement] = Field(default_factory=list)
    preferred_skills: list[SkillRequirement] = Field(default_factory=list)
    required_certifications: list[str] = Field(default_factory=list)
    required_education: list[str] = Field(default_factory=list)
    tech_stack: TechStack = Field(default_factory=TechStack)
    success_criteria: SuccessCriteria = Field(default_factory=SuccessCriteria)
    candidate_persona: str = Field(default=NOT_AVAILABLE)
    required_questions: list[str] = Field(default_factory=list)
    work_environment: WorkEnvironment = Field(default_factory=WorkEnvironment)


class CandidateContext(_ContextModel):
    """Projection of a candidate document used by the prompts."""

    name: str = Field(default="the candidate")
    email: str = Field(default=NOT_AVAILABLE)
    resume_breakdown: str = Field(default="No resume provided.")

    @model_validator(mode="before")
    @classmethod
    def fallback_resume_text(cls, data: Any) -> Any:
        """Use ``resumeText`` when no breakdown was stored; flatten structured ones."""
        if not isinstance(data, dict):
            return data
        if not data.get("resumeBreakdown") and data.get("resumeText"):
            data = {**data, "resumeBreakdown": data["resumeText"]}
        breakdown = data.get("resumeBreakdown")
        if isinstance(breakdown, dict | list):
            data = {**data, "resumeBreakdown": json.dumps(breakdown, indent=2, default=str)}
        return data


class InterviewContext(BaseModel):
    """Normalized org, job and candidate context for one application."""

    model_config = ConfigDict(frozen=True)

    org: OrgContext
    job: JobContext
    candidate: CandidateContext
