"""Strict JSON extraction from model output."""

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)


def parse_json_output(text: str | None) -> Any:
    """
    Parse a model reply that should be a single JSON document.

    A surrounding markdown code fence is tolerated; anything else around the
    JSON is not.

    Raises:
        ValueError: If the text is empty or not valid JSON
    """
    if not text or not text.strip():
        raise ValueError("empty model output")
    body = text.strip()
    fenced = _FENCE_RE.match(body)
    if fenced:
        body = fenced.group(1)
    return json.loads(body)


def parse_string_list(text: str | None) -> list[str]:
    """
    Parse a JSON array of non-empty strings.

    Raises:
        ValueError: If the output is not exactly that shape
    """
    data = parse_json_output(text)
    if not isinstance(data, list) or not data:
        raise ValueError("expected a non-empty JSON array")
    terms = []
    for item in data:
        if not isinstance(item, str) or not item.strip():
            raise ValueError("expected every array element to be a non-empty string")
        terms.append(item.strip())
    return terms
