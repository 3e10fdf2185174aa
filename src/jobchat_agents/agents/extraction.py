"""Extraction agent — schema-directed free text to validated JSON."""

from __future__ import annotations

import json
import re
import time
from typing import Any

import structlog
from jsonschema import Draft202012Validator

from jobchat_agents.agents.base import BaseAgent
from jobchat_agents.prompts.extraction import EXTRACTION_SYSTEM, render_extraction_prompt
from jobchat_core.exceptions import SchemaValidationError

logger = structlog.get_logger()

_CODE_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\n?(.*?)```", re.DOTALL)


def strip_code_fences(reply: str) -> str:
    """Return the first fenced Markdown block in the reply, or the whole reply.

    Models sometimes wrap the JSON in prose ("Here is the JSON:"), so the
    fence may appear anywhere.
    """
    match = _CODE_FENCE_RE.search(reply)
    if match:
        return match.group(1).strip()
    return reply.strip()


def schema_violations(schema: dict[str, Any], instance: Any) -> list[tuple[str, str]]:
    """Return (path, message) for every violation, ordered by path."""
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda err: list(err.absolute_path))
    return [(err.json_path, err.message) for err in errors]


class ExtractionAgent(BaseAgent):
    """Ask the completion service for JSON and accept it only if it fits the schema."""

    agent_name = "extraction"

    async def extract(
        self,
        text: str,
        target_schema: dict[str, Any],
        custom_instructions: str | None = None,
    ) -> dict[str, Any]:
        """Return a schema-valid object extracted from text.

        Raises SchemaValidationError on unparsable JSON or any schema violation.
        """
        self._log_start({"text_len": len(text)})
        start = time.monotonic()

        reply = await self._completion.generate(
            EXTRACTION_SYSTEM,
            render_extraction_prompt(text, target_schema, custom_instructions),
            temperature=self.settings.extraction_temperature,
            model=self.settings.extraction_model,
        )

        payload = strip_code_fences(reply)
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning("extraction_invalid_json", error=str(e))
            raise SchemaValidationError([("$", f"Reply is not valid JSON: {e.msg}")]) from e

        violations = schema_violations(target_schema, data)
        if violations:
            logger.warning("extraction_schema_violations", count=len(violations))
            raise SchemaValidationError(violations)

        self._log_end(time.monotonic() - start, {"fields": len(data)})
        return data  # type: ignore[no-any-return]
