"""Interview session agent — relays one candidate turn to the interviewer model."""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from jobchat_agents.agents.base import BaseAgent, interview_open
from jobchat_agents.context import ContextAssembler
from jobchat_agents.prompt_compiler import PromptCompiler
from jobchat_core.constants import APPLICATIONS, ApplicationStatus
from jobchat_core.exceptions import FailedPreconditionError, InvalidArgumentError
from jobchat_core.models.interview import ChatMessage

if TYPE_CHECKING:
    from jobchat_core.config.settings import Settings
    from jobchat_core.interfaces.completion import CompletionClient
    from jobchat_core.interfaces.document_store import DocumentStore

logger = structlog.get_logger()


def _awaiting_instruction(application: dict[str, Any]) -> bool:
    return interview_open(application) and not application.get("chatPrompt")


def _interview_completed() -> InvalidArgumentError:
    return InvalidArgumentError("This interview has already been completed.")


class InterviewSessionAgent(BaseAgent):
    """Send interview turns using the application's cached system instruction."""

    agent_name = "interview_session"

    def __init__(
        self,
        settings: Settings,
        completion: CompletionClient,
        store: DocumentStore,
        compiler: PromptCompiler | None = None,
    ) -> None:
        """Initialize with collaborators and an optional prompt compiler."""
        super().__init__(settings, completion, store)
        self._assembler = ContextAssembler(store)
        self._compiler = compiler or PromptCompiler()

    async def send_turn(
        self,
        application_id: str,
        history: list[ChatMessage],
        user_message: str,
    ) -> str:
        """Return the interviewer's reply to user_message.

        The history is taken as given; the new turn pair is appended to it
        and stored as the application's messages.
        """
        self._log_start({"application_id": application_id, "history_len": len(history)})
        start = time.monotonic()

        application = await self._load_application(application_id)
        if not interview_open(application):
            raise _interview_completed()

        system_instruction = await self._get_or_compile_instruction(application_id, application)

        reply = await self._completion.chat(
            system_instruction,
            history,
            user_message,
            temperature=self.settings.interview_temperature,
            model=self.settings.interview_model,
        )

        messages = [
            *history,
            ChatMessage(role="user", content=user_message),
            ChatMessage(role="assistant", content=reply),
        ]
        try:
            await self._store.update(
                APPLICATIONS,
                application_id,
                {
                    "messages": [m.model_dump() for m in messages],
                    "updatedAt": datetime.now(UTC).isoformat(),
                },
                precondition=interview_open,
            )
        except FailedPreconditionError as e:
            raise _interview_completed() from e

        self._log_end(
            time.monotonic() - start,
            {"application_id": application_id, "reply_len": len(reply)},
        )
        return reply

    async def _get_or_compile_instruction(
        self, application_id: str, application: dict[str, Any]
    ) -> str:
        """Read-through cache: compile and persist only when none is stored.

        The write is conditional on no instruction being stored yet. A turn
        that loses that race adopts the instruction the winner persisted.
        """
        cached = application.get("chatPrompt")
        if cached:
            logger.debug("system_instruction_cache_hit", application_id=application_id)
            return str(cached)

        raw = await self._assembler.assemble(
            str(application.get("orgID", "")),
            str(application.get("jobID", "")),
            str(application.get("candidateId", "")),
        )
        instruction = self._compiler.compile(raw)
        try:
            await self._store.update(
                APPLICATIONS,
                application_id,
                {
                    "chatPrompt": instruction,
                    "status": ApplicationStatus.INTERVIEWING.value,
                    "updatedAt": datetime.now(UTC).isoformat(),
                },
                precondition=_awaiting_instruction,
            )
        except FailedPreconditionError:
            current = await self._load_application(application_id)
            if not interview_open(current):
                raise _interview_completed() from None
            logger.info("system_instruction_adopted", application_id=application_id)
            return str(current["chatPrompt"])
        logger.info("system_instruction_persisted", application_id=application_id)
        return instruction
