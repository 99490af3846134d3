"""``replace-match`` against a string or the last matched buffer."""

from __future__ import annotations

from typing import Any, List, Optional

from .match_data import MatchData


def expand_template(template: str, groups: List[str]) -> str:
    r"""Expand ``\&``, ``\N`` and ``\\`` in ``template``.

    Any other escaped character is copied as-is; a trailing lone backslash is
    kept. A group reference past the last group expands to nothing.
    """

    out: List[str] = []
    i = 0
    while i < len(template):
        ch = template[i]
        if ch != "\\" or i + 1 >= len(template):
            out.append(ch)
            i += 1
            continue
        nxt = template[i + 1]
        if nxt == "&":
            out.append(groups[0] if groups else "")
        elif nxt == "\\":
            out.append("\\")
        elif nxt.isdigit():
            index = int(nxt)
            if index < len(groups):
                out.append(groups[index])
        else:
            out.append(nxt)
        i += 2
    return "".join(out)


def _groups(source: str, match: MatchData, shift: int) -> List[str]:
    texts: List[str] = []
    for index in range(match.group_count):
        span = match.group(index)
        if span is None:
            texts.append("")
            continue
        start, end = span[0] - shift, span[1] - shift
        if 0 <= start <= end <= len(source):
            texts.append(source[start:end])
        else:
            texts.append("")
    return texts


def replace_in_string(
    match: MatchData,
    newtext: str,
    string: str,
    *,
    literal: bool = False,
    subexp: int = 0,
) -> str:
    """Return ``string`` with group ``subexp`` of the last match replaced."""

    span = match.group(subexp)
    if span is None:
        return newtext
    start, end = span
    if not 0 <= start <= end <= len(string):
        return newtext
    replacement = newtext if literal else expand_template(newtext, _groups(string, match, 0))
    return string[:start] + replacement + string[end:]


def replace_in_buffer(
    match: MatchData,
    newtext: str,
    buffer: Any,
    *,
    literal: bool = False,
    subexp: int = 0,
) -> Optional[str]:
    """Replace the matched span in ``buffer`` and clear the match record.

    Point lands after the inserted text. Returns the inserted text, or
    ``None`` when there is no usable match.
    """

    span = match.group(subexp)
    if span is None:
        return None
    start, end = span[0] - 1, span[1] - 1
    replacement = (
        newtext if literal else expand_template(newtext, _groups(buffer.text, match, 1))
    )
    buffer.replace_region(start, end, replacement)
    match.clear()
    return replacement


__all__ = ["expand_template", "replace_in_string", "replace_in_buffer"]
