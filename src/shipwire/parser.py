"""Body parsing helpers shared by the executor and the client."""

from __future__ import annotations

import json
from typing import Any

from .errors import SerializationError


def extract_error_message(body: str | None) -> str | None:
    """Pull ``message`` out of the engine's JSON error envelope.

    Returns ``None`` when the body is not a JSON object with a string
    ``message`` so callers can fall back to the HTTP reason phrase.
    """
    if not body:
        return None
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return None

    if isinstance(parsed, dict):
        message = parsed.get("message")
        if isinstance(message, str):
            return message
    return None


def parse_json(text: str, *, context: Any | None = None) -> Any:
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"Invalid JSON response: {exc}", context=context) from exc


__all__ = ["extract_error_message", "parse_json"]
