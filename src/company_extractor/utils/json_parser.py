"""Utility to extract a JSON array from LLM responses."""

from __future__ import annotations

import json
import re

from company_extractor.errors import ParseError

_FENCED_JSON = re.compile(r"```json\n([\s\S]*?)\n```")
_FENCED_ANY = re.compile(r"```([\s\S]*?)```")


def extract_json_array(text: str) -> list:
    """Extract a JSON array from an LLM response, handling ```json blocks.

    Tries in order:
    1. Take the body of a ```json fenced block, else of any ``` block,
       else the whole text
    2. Direct json.loads on that payload
    3. Cut the payload down to first '[' .. last ']' and parse once more

    A single JSON object is accepted as a one-element array.
    """
    text = text or ""
    payload = _fenced_payload(text)

    try:
        data = json.loads(payload.strip())
    except json.JSONDecodeError:
        data = _parse_brackets(payload, text)

    if isinstance(data, dict):
        return [data]
    if not isinstance(data, list):
        raise ParseError(f"Expected a JSON array, got {type(data).__name__}")
    return data


def _fenced_payload(text: str) -> str:
    """Return the body of the first fenced code block, or the text itself."""
    match = _FENCED_JSON.search(text) or _FENCED_ANY.search(text)
    if match and match.group(1):
        return match.group(1)
    return text


def _parse_brackets(payload: str, original: str) -> list | dict:
    """Drop any prefix before the first '[' and suffix after the last ']'."""
    start = payload.find("[")
    end = payload.rfind("]")
    if start == -1 or end <= start:
        raise ParseError(f"Could not extract JSON from text: {original[:200]}...")
    try:
        return json.loads(payload[start : end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"Could not extract JSON from text: {original[:200]}...") from e
