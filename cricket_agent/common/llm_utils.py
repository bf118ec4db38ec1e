"""Shared utilities for parsing LLM responses."""

from __future__ import annotations

import json
import re

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class LLMResponseError(ValueError):
    """Raised when an LLM response does not contain a usable JSON object."""


def clean_llm_json(raw: str) -> str:
    """Reduce an LLM response to the text of its outermost JSON object.

    Applied in order:
    1. Strip markdown code fence markers
    2. Trim leading non-'{' and trailing non-'}' characters
    3. Slice from the first '{' to the last '}'
    """
    text = _FENCE_RE.sub("", raw or "").strip()
    text = re.sub(r"^[^{]*", "", text)
    text = re.sub(r"[^}]*$", "", text)

    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        text = text[start:end]
    return text


def parse_llm_json(raw: str) -> dict:
    """Parse the JSON object embedded in an LLM response.

    Raises:
        LLMResponseError: if no JSON object can be decoded.
    """
    text = clean_llm_json(raw)
    if not text:
        raise LLMResponseError("No JSON object in LLM response")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Malformed JSON in LLM response: {e}") from e

    if not isinstance(data, dict):
        raise LLMResponseError(f"Expected a JSON object, got {type(data).__name__}")
    return data
