"""
Locate the first complete JSON object inside free-form model output.

Models often wrap JSON in prose or markdown fences. Instead of matching
from the first "{" to the last "}", each candidate "{" is handed to the
incremental decoder and the first one that decodes to an object wins.
A candidate that fails to decode is skipped as a whole, so an object
nested inside a broken one is never mistaken for the document.
"""

import json
from typing import Any

from .exceptions import MalformedJSON, NoJSONFound

_decoder = json.JSONDecoder()


def _span_end(text: str, start: int) -> int:
    """
    Return the index just past the "}" balancing the "{" at ``start``.

    Braces inside double-quoted strings are ignored. Returns -1 when the
    brace is never closed.
    """
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
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return -1


def find_json_object(text: str) -> dict[str, Any]:
    """
    Return the first syntactically complete JSON object in ``text``.

    Args:
        text: Raw model output.

    Returns:
        The decoded object.

    Raises:
        NoJSONFound: If ``text`` contains no "{".
        MalformedJSON: If no "{" starts a decodable object, or the first
            broken candidate runs to the end of the text.
    """
    start = text.find("{")
    if start == -1:
        raise NoJSONFound("No JSON returned")

    last_error: json.JSONDecodeError | None = None
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
            return value
        except json.JSONDecodeError as e:
            last_error = e

        end = _span_end(text, start)
        if end == -1:
            # Truncated object: anything after it is part of the broken value
            break
        start = text.find("{", end)

    raise MalformedJSON(f"Invalid JSON in model response: {last_error}")
