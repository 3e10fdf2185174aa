"""Prompt compiler — turns assembled context into the interviewer instruction."""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from jobchat_agents.context import RawContext
from jobchat_agents.prompts.interviewer import render_interviewer_system
from jobchat_core.constants import INTERVIEWER_PROMPT_VERSION
from jobchat_core.exceptions import PromptCompilationError
from jobchat_core.models.context import (
    CandidateContext,
    InterviewContext,
    JobContext,
    OrgContext,
)

logger = structlog.get_logger()


def normalize_context(raw: RawContext) -> InterviewContext:
    """Deep-default the projected documents into render-safe models.

    Raises PromptCompilationError when a document has a shape that cannot be
    coerced, or the job has no title.
    """
    try:
        return InterviewContext(
            org=OrgContext.model_validate(raw.org),
            job=JobContext.model_validate(raw.job),
            candidate=CandidateContext.model_validate(raw.candidate),
        )
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        msg = "Interview context could not be rendered into a prompt"
        raise PromptCompilationError(msg, details=problems) from e


def compile_system_instruction(context: InterviewContext) -> str:
    """Render the interviewer system instruction for a normalized context."""
    return render_interviewer_system(context)


class PromptCompiler:
    """Compile raw context documents into a system instruction."""

    version = INTERVIEWER_PROMPT_VERSION

    def compile(self, raw: RawContext) -> str:
        """Normalize then render. Deterministic for identical input."""
        context = normalize_context(raw)
        instruction = compile_system_instruction(context)
        logger.info(
            "system_instruction_compiled",
            prompt_version=self.version,
            job_title=context.job.job_title,
            length=len(instruction),
        )
        return instruction
