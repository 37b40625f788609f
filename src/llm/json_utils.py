"""Strict JSON decoding and schema validation for reviewer responses.

Model output is accepted only if it is a JSON document (optionally wrapped in
a single Markdown code fence) that validates against the expected pydantic
schema. Nothing is repaired or extracted from surrounding prose: anything
else raises :class:`~src.llm.provider.LLMParseError`, which callers handle
exactly like a transport failure.
"""

from __future__ import annotations

import json
import re
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from .provider import LLMParseError

T = TypeVar("T")

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n(?P<body>.*)\n\s*```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove one surrounding ```json ... ``` fence if present."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group("body").strip()
    return stripped


def parse_json_response(text: str) -> Any:
    """Decode a model response as JSON.

    Args:
        text: The response text from the model

    Returns:
        The decoded JSON value (typically a dict or list)

    Raises:
        LLMParseError: If the text is not a string or not valid JSON

    Example:
        >>> parse_json_response('```json\\n{"key": "value"}\\n```')["key"]
        'value'
    """
    if not isinstance(text, str):
        raise LLMParseError(f"Expected string input, got {type(text)}")

    body = strip_code_fence(text)
    if not body:
        raise LLMParseError("Response text is empty.", response_text=text)

    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise LLMParseError(f"Response is not valid JSON: {exc}", response_text=text) from exc


def validate_json(data: Any, schema: Any, *, response_text: str | None = None) -> Any:
    """Validate decoded JSON against ``schema`` (a model class or typing form).

    Raises:
        LLMParseError: If the data does not match the schema
    """
    try:
        return TypeAdapter(schema).validate_python(data)
    except ValidationError as exc:
        raise LLMParseError(
            f"Response does not match expected schema: {exc}",
            response_text=response_text,
        ) from exc


def parse_and_validate(text: str, schema: type[T] | Any) -> Any:
    """Decode ``text`` and validate it against ``schema`` in one step."""
    return validate_json(parse_json_response(text), schema, response_text=text)
