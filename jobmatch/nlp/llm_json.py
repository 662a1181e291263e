"""Pulling a JSON object out of a chat completion."""

import json
import re

_FENCED = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.I)
_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_object(text: str) -> dict:
    """
    Parse the single JSON object in `text`, optionally wrapped in a fenced
    code block and surrounded by prose. Raises ValueError when no object
    can be parsed.
    """
    if not text or not text.strip():
        raise ValueError("empty response")
    t = text.strip()
    m = _FENCED.search(t)
    if m:
        t = m.group(1)

    try:
        data = json.loads(t)
    except json.JSONDecodeError:
        m = _OBJECT.search(t)
        if not m:
            raise ValueError("no JSON object in response")
        try:
            data = json.loads(m.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"malformed JSON in response: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data
