"""Scripted CompletionClient fake that records every call."""

from __future__ import annotations

import types
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from jobchat_core.models.interview import ChatMessage


@dataclass
class RecordedCall:
    """One call made against FakeCompletionClient."""

    method: str
    system_instruction: str
    payload: Any
    temperature: float
    model: str | None


@dataclass
class FakeCompletionClient:
    """Return scripted replies in order; raise when a reply is an exception.

    A callable reply is invoked with the RecordedCall and its return value
    used as the reply text.
    """

    replies: list[str | Exception | Callable[[RecordedCall], str]] = field(default_factory=list)
    default_reply: str = "Thanks. Could you tell me about a recent project?"
    calls: list[RecordedCall] = field(default_factory=list)

    async def chat(
        self,
        system_instruction: str,
        history: list[ChatMessage],
        message: str,
        *,
        temperature: float,
        model: str | None = None,
    ) -> str:
        """Record the conversation and return the next scripted reply."""
        call = RecordedCall(
            "chat", system_instruction, ([*history], message), temperature, model
        )
        return self._next(call)

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        *,
        temperature: float,
        model: str | None = None,
    ) -> str:
        """Record the prompt and return the next scripted reply."""
        return self._next(RecordedCall("generate", system_instruction, prompt, temperature, model))

    def _next(self, call: RecordedCall) -> str:
        self.calls.append(call)
        if not self.replies:
            return self.default_reply
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(call)
        return reply


def make_anthropic_response(
    text: str = "Hello there.",
    input_tokens: int = 120,
    output_tokens: int = 30,
) -> object:
    """Build a Messages API response lookalike with one text block and usage."""
    usage = types.SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens)
    block = types.SimpleNamespace(type="text", text=text)
    return types.SimpleNamespace(content=[block], usage=usage)


VALID_REPORT_REPLY = """Here is the evaluation.
SECTION 1: ## Overview
Solid backend candidate with strong Python depth.
## Recommendation
Yes, clear ownership of production systems.
SECTION 2: You explained your caching work clearly. Next time, quantify the impact.
SECTION 3: 7.46
"""
