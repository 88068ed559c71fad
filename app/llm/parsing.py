"""
Fallible decoding of structured model output.

Models are asked for JSON but frequently wrap it in prose or markdown fences.
Decoders here never raise: they return ``Parsed`` or ``ParseFailed`` and the
caller branches on the tag.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union

_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_OBJECT = re.compile(r"\{[\s\S]*\}")
_ARRAY = re.compile(r"\[[\s\S]*\]")


@dataclass(frozen=True)
class Parsed:
    """Successfully decoded payload."""

    data: Any
    ok: bool = True


@dataclass(frozen=True)
class ParseFailed:
    """Reply could not be decoded; ``raw`` is kept (truncated) for logs."""

    reason: str
    raw: str = ""
    ok: bool = False


ParseResult = Union[Parsed, ParseFailed]


def _candidates(text: str, pattern: re.Pattern) -> list[str]:
    candidates = []
    block = _CODE_BLOCK.search(text)
    if block:
        candidates.append(block.group(1).strip())
    candidates.append(text.strip())
    match = pattern.search(text)
    if match:
        candidates.append(match.group())
    return candidates


def _decode(text: str | None, pattern: re.Pattern, expected: type) -> ParseResult:
    if not text or not text.strip():
        return ParseFailed(reason="empty reply")

    for candidate in _candidates(text, pattern):
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(data, expected):
            return Parsed(data=data)

    return ParseFailed(
        reason=f"no JSON {expected.__name__} found",
        raw=text[:200],
    )


def parse_json_object(text: str | None) -> ParseResult:
    """Extract a JSON object from a model reply."""
    return _decode(text, _OBJECT, dict)


def parse_json_array(text: str | None) -> ParseResult:
    """
    Extract a JSON array from a model reply.

    An object with a single list value (``{"claims": [...]}``) is accepted
    and unwrapped, since models often add a wrapper key.
    """
    result = _decode(text, _ARRAY, list)
    if result.ok:
        return result

    wrapped = parse_json_object(text)
    if wrapped.ok:
        lists = [v for v in wrapped.data.values() if isinstance(v, list)]
        if len(lists) == 1:
            return Parsed(data=lists[0])

    return result
