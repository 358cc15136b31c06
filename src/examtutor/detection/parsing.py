"""
Parsing and salvage of model responses that should contain a JSON array of
question boundaries.

The response is never trusted: markdown fences are stripped, the array span is
located, and if the whole array does not parse, each well-formed object is
recovered on its own.
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from examtutor.exceptions import ExtractionFailedError, MisformattedResponseError
from examtutor.schema import QuestionBoundary

__all__ = [
    "strip_code_fences",
    "locate_array",
    "salvage_objects",
    "load_items",
    "validate_items",
    "parse_boundary_response",
]

_FENCE = re.compile(r"```(?:json|JSON)?\s*\n?([\s\S]*?)(?:\n?```|$)")


def strip_code_fences(text: str) -> str:
    """Return the body of the first markdown code block, or the text unchanged."""
    text = text.strip()
    if "```" in text:
        match = _FENCE.search(text)
        if match:
            return match.group(1).strip()
    return text


def locate_array(text: str) -> str:
    """
    Narrow `text` to its outermost `[...]` span when it does not start with `[`.

    A missing closing bracket (truncated output) keeps everything from the first `[`.
    """
    if text.startswith("["):
        return text
    start = text.find("[")
    if start == -1:
        return text
    end = text.rfind("]")
    if end > start:
        return text[start : end + 1]
    return text[start:]


def salvage_objects(text: str) -> list[dict[str, Any]]:
    """
    Recover every individually well-formed top-level JSON object in `text`.

    Args:
        text (str): Possibly truncated or malformed JSON.

    Returns:
        list[dict]: Objects that decoded cleanly, in order of appearance.
    """
    decoder = json.JSONDecoder(strict=False)
    objects: list[dict[str, Any]] = []
    position = text.find("{")
    while position != -1:
        try:
            value, end = decoder.raw_decode(text, position)
        except json.JSONDecodeError:
            position = text.find("{", position + 1)
            continue
        if isinstance(value, dict):
            objects.append(value)
        position = text.find("{", end)
    return objects


def load_items(raw_text: str) -> list[Any]:
    """
    Decode a model response into a list of candidate items.

    Raises:
        MisformattedResponseError: If the response parses to something other than an array.
        ExtractionFailedError: If nothing parses and nothing can be salvaged.
    """
    text = locate_array(strip_code_fences(raw_text))
    try:
        value = json.loads(text, strict=False)
    except json.JSONDecodeError:
        salvaged = salvage_objects(text)
        if not salvaged:
            raise ExtractionFailedError(
                f"response is not valid JSON and no objects could be salvaged: {text[:200]!r}"
            )
        return salvaged

    if not isinstance(value, list):
        raise MisformattedResponseError(
            f"expected a JSON array, got {type(value).__name__}"
        )
    return value


def _as_page(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def validate_items(
    items: list[Any], page_count: int | None = None
) -> tuple[list[QuestionBoundary], int]:
    """
    Keep only items with a label, numeric page span and non-empty text.

    Args:
        items (list): Decoded candidate items.
        page_count (int | None): Document length; spans outside it are dropped.

    Returns:
        tuple[list[QuestionBoundary], int]: Valid boundaries and the number dropped.
    """
    boundaries: list[QuestionBoundary] = []
    dropped = 0
    for item in items:
        if not isinstance(item, dict):
            dropped += 1
            continue
        number = item.get("questionNumber")
        start = _as_page(item.get("startPage"))
        end = _as_page(item.get("endPage"))
        text = item.get("fullText")
        if (
            number in (None, "")
            or start is None
            or end is None
            or not isinstance(text, str)
            or not text.strip()
        ):
            dropped += 1
            continue
        try:
            boundary = QuestionBoundary(
                question_number=str(number),
                start_page=start,
                end_page=end,
                full_text=text.strip(),
            )
        except ValidationError:
            dropped += 1
            continue
        if page_count is not None and boundary.end_page > page_count:
            dropped += 1
            continue
        boundaries.append(boundary)
    return boundaries, dropped


def parse_boundary_response(
    raw_text: str, page_count: int | None = None
) -> list[QuestionBoundary]:
    """
    Parse a generative detector response into validated boundaries.

    Args:
        raw_text (str): Raw completion text.
        page_count (int | None): Document length for span checks.

    Returns:
        list[QuestionBoundary]: At least one valid boundary.

    Raises:
        ExtractionFailedError: If the text is empty or no valid item remains.
        MisformattedResponseError: If the top-level value is not an array.
    """
    if not raw_text or not raw_text.strip():
        raise ExtractionFailedError("completion returned no text")
    boundaries, _ = validate_items(load_items(raw_text), page_count)
    if not boundaries:
        raise ExtractionFailedError("no valid question items in response")
    return boundaries
