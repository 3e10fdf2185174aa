"""Anthropic-backed implementation of CompletionClient."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

import anthropic
import structlog
from anthropic import AsyncAnthropic
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from jobchat_core.constants import TOKEN_PRICES
from jobchat_core.exceptions import UpstreamTimeoutError, UpstreamUnavailableError

if TYPE_CHECKING:
    from jobchat_core.config.settings import Settings
    from jobchat_core.models.interview import ChatMessage

logger = structlog.get_logger()

# Provider errors worth another attempt; everything else fails fast.
_TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    anthropic.APIConnectionError,
    anthropic.RateLimitError,
    anthropic.InternalServerError,
)

_OPENING_PLACEHOLDER = "(The candidate has joined the interview.)"


def estimate_cost_usd(model: str, input_tokens: int, output_tokens: int) -> float:
    """Estimate call cost from the static price table; unknown models cost 0."""
    prices = TOKEN_PRICES.get(model)
    if not prices:
        return 0.0
    return (
        input_tokens * prices["input"] / 1_000_000
        + output_tokens * prices["output"] / 1_000_000
    )


def extract_token_usage(response: object) -> tuple[int, int]:
    """Extract (input, output) token counts, falling back to (0, 0)."""
    usage = getattr(response, "usage", None)
    if usage is None:
        return (0, 0)
    return (
        int(getattr(usage, "input_tokens", 0) or 0),
        int(getattr(usage, "output_tokens", 0) or 0),
    )


def extract_text(response: object) -> str:
    """Return the first text block of a Messages API response."""
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return str(block.text)
    msg = "Completion service returned no text content"
    raise UpstreamUnavailableError(msg)


def to_provider_messages(history: list[ChatMessage], message: str) -> list[dict[str, str]]:
    """Shape a conversation for the Messages API.

    Consecutive same-role turns are joined and a conversation that opens with
    the interviewer gets a placeholder user turn in front of it.
    """
    turns: list[dict[str, str]] = []
    for turn in [*history, None]:
        role, content = ("user", message) if turn is None else (turn.role, turn.content)
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"] = f"{turns[-1]['content']}\n\n{content}"
        else:
            turns.append({"role": role, "content": content})
    if turns[0]["role"] == "assistant":
        turns.insert(0, {"role": "user", "content": _OPENING_PLACEHOLDER})
    return turns


class AnthropicCompletionClient:
    """Completion service over the Anthropic Messages API.

    Each call is retried on transient provider errors and bounded by an
    overall timeout. Failures surface as UpstreamUnavailableError.
    """

    def __init__(self, settings: Settings, client: AsyncAnthropic | None = None) -> None:
        """Initialize with settings and an optional pre-built SDK client."""
        self.settings = settings
        self._client = client or AsyncAnthropic(
            api_key=settings.anthropic_api_key.get_secret_value(),
            max_retries=0,
        )

    async def chat(
        self,
        system_instruction: str,
        history: list[ChatMessage],
        message: str,
        *,
        temperature: float,
        model: str | None = None,
    ) -> str:
        """Continue an interview conversation."""
        return await self._complete(
            system_instruction,
            to_provider_messages(history, message),
            temperature=temperature,
            model=model or self.settings.interview_model,
        )

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        *,
        temperature: float,
        model: str | None = None,
    ) -> str:
        """Run a single-turn completion."""
        return await self._complete(
            system_instruction,
            [{"role": "user", "content": prompt}],
            temperature=temperature,
            model=model or self.settings.report_model,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    async def _complete(
        self,
        system_instruction: str,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        model: str,
    ) -> str:
        """Send one request with retry and timeout, returning the reply text."""

        @retry(
            stop=stop_after_attempt(self.settings.llm_max_retries),
            wait=wait_exponential(
                multiplier=1,
                min=self.settings.llm_retry_wait_min,
                max=self.settings.llm_retry_wait_max,
            ),
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            reraise=True,
        )
        async def _do_call() -> Any:
            return await self._client.messages.create(
                model=model,
                max_tokens=self.settings.max_output_tokens,
                system=system_instruction,
                messages=messages,  # type: ignore[arg-type]
                temperature=temperature,
            )

        start = time.monotonic()
        try:
            async with asyncio.timeout(self.settings.llm_timeout_seconds):
                response = await _do_call()
        except TimeoutError as e:
            logger.error("llm_call_timeout", model=model, timeout=self.settings.llm_timeout_seconds)
            msg = f"Completion service did not answer within {self.settings.llm_timeout_seconds}s"
            raise UpstreamTimeoutError(msg) from e
        except anthropic.APIError as e:
            logger.error("llm_call_failed", model=model, error_type=type(e).__name__, error=str(e))
            raise UpstreamUnavailableError("AI service unavailable.", details=str(e)) from e

        elapsed = time.monotonic() - start
        input_tokens, output_tokens = extract_token_usage(response)
        logger.debug(
            "llm_call_complete",
            model=model,
            duration=round(elapsed, 2),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=round(estimate_cost_usd(model, input_tokens, output_tokens), 6),
        )
        return extract_text(response)
