"""Recovers a single JSON object from free-form model output.

Models wrap JSON in markdown fences or prose despite being told not to. The
decoder strips fences, falls back to the first balanced ``{...}`` block, and
on a parse failure returns a sentinel mapping instead of raising so the raw
text can be kept for inspection.
"""

import json
import math
import re
from typing import Any

from docflow.inference.exceptions import ResponseDecodeError
from docflow.logging.logger import Log

DECODE_ERROR_KEY = "_error"
DECODE_ERROR_MESSAGE = "Failed to decode JSON response"

_FENCE_RE = re.compile(r"^```[A-Za-z]*[ \t]*\r?\n?", re.MULTILINE)


def decode_model_json(raw: str) -> dict[str, Any]:
    """Decode model text into a mapping.

    Returns:
        The decoded object, or a sentinel mapping with ``_error``, ``_raw`` and
        ``_exception`` keys when the text is not valid JSON.

    Raises:
        ResponseDecodeError: if the text is valid JSON but not an object.
    """
    text = _strip_fences(raw.strip())

    if not text.startswith(("{", "[")):
        embedded = find_json_object(text)
        if embedded is not None:
            text = embedded

    try:
        decoded = json.loads(
            text, parse_constant=_reject_constant, parse_float=_finite_float
        )
    except ValueError as exc:
        Log.warning("JSON decode failed", error=str(exc))
        Log.debug(f"Undecodable model output:\n{text}")
        return {
            DECODE_ERROR_KEY: DECODE_ERROR_MESSAGE,
            "_raw": text,
            "_exception": str(exc),
        }

    if not isinstance(decoded, dict):
        raise ResponseDecodeError(
            f"Decoded JSON is not an object (got {type(decoded).__name__})"
        )
    return decoded


def is_decode_failure(payload: dict[str, Any]) -> bool:
    return DECODE_ERROR_KEY in payload


def find_json_object(text: str) -> str | None:
    """Return the first balanced {...} substring, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        end = _match_closing_brace(text, start)
        if end is not None:
            return text[start : end + 1]
        start = text.find("{", start + 1)
    return None


def _match_closing_brace(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not valid JSON and cannot be stored as JSONB.
    raise ValueError(f"Non-finite number {name} is not allowed")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f"Number {literal} is out of range")
    return value


def _strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()
