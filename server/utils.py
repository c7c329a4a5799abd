"""Shared utilities for FastAPI routes."""

from collections.abc import Mapping, Sequence
from typing import Any

SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key"}


def redact_sensitive_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Lowercase header names and redact auth-bearing headers before they are
    logged or stored.
    """
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        name = key.lower()
        if name in SENSITIVE_HEADERS and value:
            redacted[name] = "[REDACTED]"
        else:
            redacted[name] = value
    return redacted


def summarize_validation_errors(errors: Sequence[Mapping[str, Any]]) -> tuple[str, list[dict[str, str]]]:
    """
    Turn pydantic request errors into a single message plus per-field details.

    The message names the first failing field, e.g. ``"question is required"``.
    """
    details = []
    for err in errors:
        # First loc element is the request part ("body", "query", ...)
        field = ".".join(str(part) for part in err.get("loc", ())[1:]) or "body"
        details.append({"field": field, "message": err.get("msg", "")})

    if not details:
        return "Invalid request body", details

    first = errors[0]
    field = details[0]["field"]
    if first.get("type") == "missing":
        return f"{field} is required", details
    return f"Invalid {field}: {details[0]['message']}", details
