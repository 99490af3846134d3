"""Buffer and string searches that update the shared match record.

Every function takes 0-based offsets and returns 0-based offsets; the
primitive layer converts to and from 1-based positions.
"""

from __future__ import annotations

from typing import Any, Optional

from elisp_compat.document.validation import clamp

from .match_data import MatchData
from .regex import compile_pattern, parse_char_set


def search_forward(
    buffer: Any, match: MatchData, needle: str, bound: Optional[int] = None
) -> Optional[int]:
    """Find ``needle`` after point; point moves past the match."""

    if not needle:
        return buffer.point
    limit = len(buffer.text) if bound is None else clamp(bound, len(buffer.text))
    point = clamp(buffer.point, len(buffer.text))
    index = buffer.text.find(needle, point, max(limit, point))
    if index < 0:
        match.clear()
        return None
    match.set_span(buffer, index, index + len(needle))
    buffer.point = index + len(needle)
    return buffer.point


def search_backward(
    buffer: Any, match: MatchData, needle: str, bound: Optional[int] = None
) -> Optional[int]:
    """Find ``needle`` ending at or before point; point moves to its start."""

    if not needle:
        return buffer.point
    limit = 0 if bound is None else clamp(bound, len(buffer.text))
    point = clamp(buffer.point, len(buffer.text))
    index = buffer.text.rfind(needle, min(limit, point), point)
    if index < 0:
        match.clear()
        return None
    match.set_span(buffer, index, index + len(needle))
    buffer.point = index
    return buffer.point


def re_search_forward(
    buffer: Any, match: MatchData, pattern: str, bound: Optional[int] = None
) -> Optional[int]:
    compiled = compile_pattern(pattern)
    if compiled is None:
        match.clear()
        return None
    limit = len(buffer.text) if bound is None else clamp(bound, len(buffer.text))
    point = clamp(buffer.point, len(buffer.text))
    found = compiled.search(buffer.text, point, max(limit, point))
    if found is None:
        match.clear()
        return None
    match.set_from_buffer(buffer, found)
    buffer.point = found.end()
    return buffer.point


def re_search_backward(
    buffer: Any, match: MatchData, pattern: str, bound: Optional[int] = None
) -> Optional[int]:
    """Find the last match starting before point; point moves to its start."""

    compiled = compile_pattern(pattern)
    if compiled is None:
        match.clear()
        return None
    limit = 0 if bound is None else clamp(bound, len(buffer.text))
    point = clamp(buffer.point, len(buffer.text))
    for start in range(point, limit - 1, -1):
        found = compiled.match(buffer.text, start)
        if found is not None and found.end() <= point:
            match.set_from_buffer(buffer, found)
            buffer.point = start
            return start
    match.clear()
    return None


def looking_at(
    buffer: Any, match: Optional[MatchData], pattern: str
) -> bool:
    """Match anchored at point; ``match=None`` leaves the record untouched."""

    compiled = compile_pattern(pattern)
    if compiled is None:
        if match is not None:
            match.clear()
        return False
    found = compiled.match(buffer.text, clamp(buffer.point, len(buffer.text)))
    if match is not None:
        if found is None:
            match.clear()
        else:
            match.set_from_buffer(buffer, found)
    return found is not None


def string_match(
    match: Optional[MatchData], pattern: str, string: str, start: int = 0
) -> Optional[int]:
    """Search ``string`` from ``start``; the slice is matched on its own."""

    compiled = compile_pattern(pattern)
    if compiled is None:
        if match is not None:
            match.clear()
        return None
    start = clamp(start, len(string))
    found = compiled.search(string[start:])
    if found is None:
        if match is not None:
            match.clear()
        return None
    if match is not None:
        match.set_from_string(found, start)
    return found.start() + start


def _allowed(spec: str):
    chars, negated = parse_char_set(spec)
    return lambda ch: (ch in chars) != negated


def skip_chars_forward(buffer: Any, spec: str, limit: Optional[int] = None) -> int:
    """Move point over characters in ``spec``; return the distance moved."""

    allowed = _allowed(spec)
    end = len(buffer.text) if limit is None else clamp(limit, len(buffer.text))
    start = buffer.point
    while buffer.point < end and allowed(buffer.text[buffer.point]):
        buffer.point += 1
    return buffer.point - start


def skip_chars_backward(buffer: Any, spec: str, limit: Optional[int] = None) -> int:
    """Move point back over characters in ``spec``; return the (negative) distance."""

    allowed = _allowed(spec)
    floor = 0 if limit is None else clamp(limit, len(buffer.text))
    start = buffer.point
    while buffer.point > floor and allowed(buffer.text[buffer.point - 1]):
        buffer.point -= 1
    return buffer.point - start


__all__ = [
    "search_forward",
    "search_backward",
    "re_search_forward",
    "re_search_backward",
    "looking_at",
    "string_match",
    "skip_chars_forward",
    "skip_chars_backward",
]
