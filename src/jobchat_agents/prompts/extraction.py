"""Schema-directed extraction prompt templates (v1)."""

from __future__ import annotations

import json
from typing import Any

EXTRACTION_SYSTEM = """\
You are a precise data extraction engine. You turn unstructured text into a \
single JSON object that conforms exactly to a given JSON Schema.

<rules>
- Output ONLY the JSON object. No prose, no explanations.
- Use only property names defined in the schema; never add extra properties.
- NEVER invent facts. If the text does not state a value, use null for \
nullable fields and an empty array for array fields.
- Required properties must always be present, even if null.
- Respect enums, types and numeric ranges declared in the schema.
- Weights are numbers between 0 and 1 reflecting emphasis in the text.
</rules>
"""

EXTRACTION_USER = """\
<schema>
{schema_json}
</schema>
{custom_block}
<text>
{text}
</text>

Extract the data from the text above as one JSON object matching the schema.
"""


def render_extraction_prompt(
    text: str,
    schema: dict[str, Any],
    custom_instructions: str | None = None,
) -> str:
    """Embed the schema verbatim and the source text in the extraction request."""
    custom_block = ""
    if custom_instructions and custom_instructions.strip():
        custom_block = (
            f"\n<additional_instructions>\n{custom_instructions.strip()}\n"
            "</additional_instructions>\n"
        )
    return EXTRACTION_USER.format(
        schema_json=json.dumps(schema, indent=2),
        custom_block=custom_block,
        text=text,
    )
