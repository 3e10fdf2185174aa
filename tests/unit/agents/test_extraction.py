"""Tests for the extraction agent."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from jobchat_agents.agents.extraction import (
    ExtractionAgent,
    schema_violations,
    strip_code_fences,
)
from jobchat_agents.prompts.extraction import EXTRACTION_SYSTEM
from jobchat_core.exceptions import SchemaValidationError
from jobchat_infra.db.document_store import SqlDocumentStore
from tests.mocks.mock_llm import FakeCompletionClient

SCHEMA = {
    "type": "object",
    "properties": {"jobTitle": {"type": "string"}, "level": {"enum": ["junior", "senior"]}},
    "required": ["jobTitle"],
    "additionalProperties": False,
}


@pytest.mark.unit
class TestStripCodeFences:
    """Markdown fence removal."""

    def test_json_fence(self) -> None:
        """A ```json fence is removed."""
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self) -> None:
        """A bare ``` fence is removed."""
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self) -> None:
        """Unfenced text is only trimmed."""
        assert strip_code_fences('  {"a": 1}\n') == '{"a": 1}'

    def test_fence_inside_prose(self) -> None:
        """A fenced block surrounded by prose is found."""
        reply = 'Here is the JSON:\n```json\n{"a": 1}\n```\nLet me know if you need more.'
        assert strip_code_fences(reply) == '{"a": 1}'

    def test_first_fence_wins(self) -> None:
        """Only the first fenced block is returned."""
        reply = '```json\n{"a": 1}\n```\nor\n```json\n{"a": 2}\n```'
        assert strip_code_fences(reply) == '{"a": 1}'


@pytest.mark.unit
class TestSchemaViolations:
    """Violation listing."""

    def test_valid_instance(self) -> None:
        """A conforming instance has no violations."""
        assert schema_violations(SCHEMA, {"jobTitle": "Engineer"}) == []

    def test_violations_have_paths(self) -> None:
        """Each violation is reported with its JSON path."""
        violations = schema_violations(SCHEMA, {"jobTitle": 123, "level": "staff"})
        paths = [path for path, _ in violations]
        assert paths == ["$.jobTitle", "$.level"]


@pytest.mark.unit
class TestExtractionAgent:
    """extract() behaviour."""

    @pytest.mark.asyncio
    async def test_valid_reply_returned(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """A fenced, schema-valid reply is parsed and returned."""
        completion = FakeCompletionClient(replies=['```json\n{"jobTitle": "Engineer"}\n```'])
        agent = ExtractionAgent(mock_settings, completion, store)

        data = await agent.extract("We are hiring an engineer.", SCHEMA)

        assert data == {"jobTitle": "Engineer"}
        call = completion.calls[0]
        assert call.system_instruction == EXTRACTION_SYSTEM
        assert call.temperature == 0.1
        assert json.dumps(SCHEMA, indent=2) in call.payload
        assert "We are hiring an engineer." in call.payload

    @pytest.mark.asyncio
    async def test_custom_instructions_included(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """Custom instructions are embedded in the request."""
        completion = FakeCompletionClient(replies=['{"jobTitle": "Engineer"}'])
        agent = ExtractionAgent(mock_settings, completion, store)

        await agent.extract("text", SCHEMA, 'Set "orgId" to "o1".')

        assert '<additional_instructions>\nSet "orgId" to "o1".' in completion.calls[0].payload

    @pytest.mark.asyncio
    async def test_type_violation_raises(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """A wrong-typed field fails validation with its path."""
        completion = FakeCompletionClient(replies=['{"jobTitle": 123}'])
        agent = ExtractionAgent(mock_settings, completion, store)

        with pytest.raises(SchemaValidationError) as exc_info:
            await agent.extract("text", SCHEMA)
        assert exc_info.value.violations[0][0] == "$.jobTitle"

    @pytest.mark.asyncio
    async def test_invalid_json_raises(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """Prose instead of JSON fails validation at the root."""
        completion = FakeCompletionClient(replies=["Sorry, I cannot help with that."])
        agent = ExtractionAgent(mock_settings, completion, store)

        with pytest.raises(SchemaValidationError) as exc_info:
            await agent.extract("text", SCHEMA)
        assert exc_info.value.violations[0][0] == "$"

    @pytest.mark.asyncio
    async def test_prose_wrapped_fence_accepted(
        self, store: SqlDocumentStore, mock_settings: MagicMock
    ) -> None:
        """A reply that introduces the fenced JSON with prose still parses."""
        completion = FakeCompletionClient(
            replies=['Here is the JSON:\n```json\n{"jobTitle": "Engineer", "level": "senior"}\n```']
        )
        agent = ExtractionAgent(mock_settings, completion, store)

        data = await agent.extract("text", SCHEMA)

        assert data == {"jobTitle": "Engineer", "level": "senior"}
