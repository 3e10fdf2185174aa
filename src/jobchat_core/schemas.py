"""JSON Schemas that drive free-text extraction into job and org documents."""

from __future__ import annotations

from typing import Any

_NULLABLE_STRING: dict[str, Any] = {"type": ["string", "null"]}
_STRING_LIST: dict[str, Any] = {"type": "array", "items": {"type": "string"}}
_WEIGHT: dict[str, Any] = {"type": ["number", "null"], "minimum": 0, "maximum": 1}


def _nullable(description: str, **extra: Any) -> dict[str, Any]:
    return {**_NULLABLE_STRING, "description": description, **extra}


def _string_list(description: str) -> dict[str, Any]:
    return {**_STRING_LIST, "description": description}


def _skill_list(description: str) -> dict[str, Any]:
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "skill": {"type": "string", "description": "Name of the skill."},
                "level": {
                    "type": "string",
                    "description": "Proficiency level (e.g., proficient, expert).",
                },
            },
            "required": ["skill", "level"],
            "additionalProperties": False,
        },
        "description": description,
    }


def _metric_list(description: str) -> dict[str, Any]:
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "metric": _nullable("The metric for success."),
                "description": _nullable("Detailed description of the success metric."),
                "weight": {**_WEIGHT, "description": "Relative importance (0.0 to 1.0)."},
            },
            "required": ["metric"],
            "additionalProperties": False,
        },
        "description": description,
    }


JOB_SCHEMA: dict[str, Any] = {
    "type": "object",
    "description": "Schema for a job posting.",
    "properties": {
        "jobTitle": _nullable("The title of the job."),
        "applicationDeadline": _nullable(
            "The deadline for applications.", format="date-time"
        ),
        "riskTolerance": {
            "type": ["string", "null"],
            "enum": ["high", "medium", "low", None],
            "description": "Hiring manager's risk tolerance for this role.",
        },
        "orgId": _nullable("The ID of the organization this job belongs to."),
        "status": _nullable("Current status of the job posting (e.g., Open, Closed)."),
        "requiredEducation": _string_list("List of required educational qualifications."),
        "requiredCertifications": _string_list("List of required certifications."),
        "requiredSkills": _skill_list("Required skills and expected proficiency levels."),
        "preferredSkills": _skill_list("Preferred skills and desired proficiency levels."),
        "requiredQuestions": _string_list(
            "Questions that must be asked or topics that must be covered in the interview."
        ),
        "candidateResourceLinks": {
            "type": "array",
            "items": {"type": "string", "format": "uri"},
            "description": "URLs to resources for candidates.",
        },
        "jobType": _nullable("Type of employment (e.g., Full-time, Part-time, Contract)."),
        "interviewStages": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "stageName": {"type": "string"},
                    "description": {"type": "string"},
                    "order": {"type": "integer"},
                },
                "required": ["stageName"],
                "additionalProperties": False,
            },
            "description": "Defined stages of the interview process for this job.",
        },
        "jobDepartment": _nullable("The department the job belongs to."),
        "jobDescription": _nullable(
            "Detailed job description, including influence, level, and day-to-day activities."
        ),
        "jobLocation": _nullable("The location of the job (e.g., City, State, Remote)."),
        "techStack": {
            "type": ["object", "null"],
            "properties": {
                "stack": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "skill": _nullable("Specific tool, technology, or platform."),
                            "level": _nullable("Expected level of expertise."),
                            "realWorldApplication": _nullable(
                                "Expected real-world application of the skill in this role."
                            ),
                            "redFlags": {
                                "type": ["array", "null"],
                                "items": {"type": "string"},
                                "description": "Red flags if a candidate lacks proficiency.",
                            },
                            "weight": {**_WEIGHT, "description": "Relative importance."},
                        },
                        "required": ["skill"],
                        "additionalProperties": False,
                    },
                },
                "architecture": _nullable("Overall system architecture."),
                "scale": _nullable("The scale at which the system operates."),
                "challenges": {
                    "type": ["array", "null"],
                    "items": {"type": "string"},
                    "description": "Key technical challenges of the role.",
                },
                "practices": {
                    "type": ["array", "null"],
                    "items": {"type": "string"},
                    "description": "Development practices followed (e.g., TDD, CI/CD).",
                },
            },
            "additionalProperties": False,
            "description": "Details about the technology stack used for the role.",
        },
        "successCriteria": {
            "type": ["object", "null"],
            "properties": {
                "immediate": _metric_list("Short-term success criteria (first 3-6 months)."),
                "longTerm": _metric_list("Long-term success criteria (6-12+ months)."),
            },
            "additionalProperties": False,
            "description": "Criteria defining success in the role.",
        },
        "workEnvironment": {
            "type": ["object", "null"],
            "properties": {
                "techMaturity": _nullable("Technological maturity of the team."),
                "structure": _nullable("Team or organizational structure."),
                "communication": _nullable("Primary communication style."),
                "pace": _nullable("Pace of work."),
                "growthExpectations": _nullable("Expectations for employee growth."),
                "collaboration": _nullable("Nature of collaboration."),
                "teamSize": _nullable("Typical size of the immediate team."),
            },
            "additionalProperties": False,
            "description": "Details about the work environment and team dynamics.",
        },
        "candidatePersona": _nullable(
            "The ideal candidate profile, including soft skills, work style, and motivations."
        ),
        "travelRequirements": _nullable("Any travel requirements for the job."),
        "salaryRange": _nullable("The salary range for the position."),
    },
    "required": ["jobTitle", "orgId", "jobDescription"],
    "additionalProperties": False,
}


ORG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "description": "Schema for an organization.",
    "properties": {
        "companyName": _nullable("Legal name of the company."),
        "companyDescription": _nullable(
            "A brief description of the company, its business, and culture."
        ),
        "companySize": _nullable("The size of the company (e.g., '1-50', '10000+')."),
        "industry": _nullable("The primary industry the company operates in."),
        "location": _nullable("Headquarters location or 'Remote-first'."),
        "missionStatement": _nullable("The company's mission statement."),
        "companyValues": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Name of the value."},
                    "description": {
                        "type": "string",
                        "description": "What this value means to the company.",
                    },
                    "extractedKeywords": {"type": "array", "items": {"type": "string"}},
                    "weight": {"type": "number", "minimum": 0, "maximum": 1},
                },
                "required": ["name", "description"],
                "additionalProperties": False,
            },
            "description": "List of core company values.",
        },
    },
    "required": ["companyName", "industry"],
    "additionalProperties": False,
}
