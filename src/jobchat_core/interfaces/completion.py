"""Abstract completion service interface."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from jobchat_core.models.interview import ChatMessage


@runtime_checkable
class CompletionClient(Protocol):
    """Stateless text-generation service."""

    async def chat(
        self,
        system_instruction: str,
        history: list[ChatMessage],
        message: str,
        *,
        temperature: float,
        model: str | None = None,
    ) -> str:
        """Continue a conversation and return the assistant's reply text."""
        ...

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        *,
        temperature: float,
        model: str | None = None,
    ) -> str:
        """Run a single-turn completion and return the reply text."""
        ...
