"""Locate and parse JSON embedded in noisy model output.

Generative models wrap JSON in prose or markdown fences, or emit near-valid
JSON with trailing commas. Extraction runs an ordered list of candidate
strategies, most likely first:

1. The whole text with one surrounding code fence removed
2. Every fenced code block in the text
3. The first short ``{...}`` or ``[...]`` regex match
4. The first balanced bracket structure (stack scan)

Each candidate is parsed strictly, then again with trailing commas removed.
The first candidate that yields an object or array wins. The bracket scan
is the slowest strategy and only runs when the cheaper ones failed.

Example:
    >>> parse_json_candidates('Here you go:\\n```json\\n{"a": 1,}\\n```')
    {'a': 1}
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterator
from typing import Any

logger = logging.getLogger(__name__)

CandidateStrategy = Callable[[str], Iterator[str]]

_OUTER_FENCE_RE = re.compile(r"^```(?:json)?[ \t]*\n?(.*?)\n?[ \t]*```$", re.DOTALL | re.IGNORECASE)
_FENCED_BLOCK_RE = re.compile(r"```(?:json\b|[\w-]*\n)?(.*?)```", re.DOTALL | re.IGNORECASE)
_SHORT_SPAN_RE = re.compile(r"\{.*?\}|\[.*?\]", re.DOTALL)
_OPEN_BRACKET_RE = re.compile(r"[\[{]")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

_CLOSERS = {"{": "}", "[": "]"}


def outer_fence_candidates(text: str) -> Iterator[str]:
    """Yield the text with a single surrounding code fence stripped."""
    stripped = text.strip()
    match = _OUTER_FENCE_RE.match(stripped)
    yield match.group(1) if match else stripped


def fenced_block_candidates(text: str) -> Iterator[str]:
    """Yield the contents of every fenced code block, in order."""
    for match in _FENCED_BLOCK_RE.finditer(text):
        yield match.group(1)


def short_span_candidates(text: str) -> Iterator[str]:
    """Yield the first non-greedy ``{...}`` or ``[...]`` span."""
    match = _SHORT_SPAN_RE.search(text)
    if match:
        yield match.group(0)


def _balanced_end(text: str, start: int) -> int | None:
    """Return the index closing the bracket opened at ``start``.

    Brackets inside JSON string literals are ignored. Returns ``None`` on a
    mismatched closer or when the text ends first.
    """
    stack: list[str] = []
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
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in "}]":
            if not stack or stack.pop() != char:
                return None
            if not stack:
                return index
    return None


def balanced_candidates(text: str) -> Iterator[str]:
    """Yield the first balanced bracket structure in the text.

    A start position whose scan hits a mismatched closer is abandoned and
    scanning resumes at the next opening bracket.
    """
    opening = _OPEN_BRACKET_RE.search(text)
    while opening:
        start = opening.start()
        end = _balanced_end(text, start)
        if end is not None:
            yield text[start : end + 1]
            return
        opening = _OPEN_BRACKET_RE.search(text, start + 1)


STRATEGIES: tuple[CandidateStrategy, ...] = (
    outer_fence_candidates,
    fenced_block_candidates,
    short_span_candidates,
    balanced_candidates,
)


def iter_json_candidates(
    text: str, strategies: tuple[CandidateStrategy, ...] = STRATEGIES
) -> Iterator[str]:
    """Lazily yield JSON candidates from each strategy, left to right.

    Empty candidates and repeats of an earlier candidate are skipped.
    """
    if not isinstance(text, str):
        return
    seen: set[str] = set()
    for strategy in strategies:
        for candidate in strategy(text):
            candidate = candidate.strip()
            if candidate and candidate not in seen:
                seen.add(candidate)
                yield candidate


def extract_json_candidates(text: str) -> list[str]:
    """Collect all JSON candidates, ordered by confidence.

    Args:
        text: Raw model output

    Returns:
        Substrings that may parse as JSON, most likely first
    """
    return list(iter_json_candidates(text))


def loads_lenient(candidate: str) -> dict[str, Any] | list[Any] | None:
    """Parse a candidate as a JSON object or array.

    Tries a strict parse first, then a pass with trailing commas removed.

    Returns:
        The parsed object or array, or ``None`` if neither pass yields one
    """
    for attempt in (candidate, _TRAILING_COMMA_RE.sub(r"\1", candidate)):
        try:
            value = json.loads(attempt)
        except (ValueError, RecursionError):
            continue
        if isinstance(value, (dict, list)):
            return value
    return None


def parse_json_candidates(text: str) -> dict[str, Any] | list[Any] | None:
    """Return the first candidate in ``text`` that parses to an object or array.

    Args:
        text: Raw model output

    Returns:
        Parsed JSON object or array, or ``None`` when no candidate parses
    """
    for position, candidate in enumerate(iter_json_candidates(text), start=1):
        value = loads_lenient(candidate)
        if value is not None:
            logger.debug(f"Parsed JSON from candidate {position} ({len(candidate)} chars)")
            return value
    return None
