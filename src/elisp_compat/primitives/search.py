"""Search, match-data and replacement primitives over buffers and strings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Optional

from elisp_compat.document.buffer import Buffer
from elisp_compat.document.validation import ensure_integer, to_offset
from elisp_compat.errors import ConditionSignal
from elisp_compat.host.values import NIL, T, Symbol, as_bool, from_list, iterate, lisp_list, truthy
from elisp_compat.search import operations
from elisp_compat.search.regex import compile_pattern, regexp_quote
from elisp_compat.search.replace import expand_template, replace_in_buffer, replace_in_string

from .base import PrimitiveTable, install_primitives, optional, require_integer, require_string

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

Searcher = Callable[..., Optional[int]]


def search_failed(pattern: str) -> ConditionSignal:
    return ConditionSignal("search-failed", lisp_list(pattern), message=f"Search failed: {pattern!r}")


def _bound(buffer: Buffer, bound: Any) -> Optional[int]:
    return None if bound is NIL else to_offset(bound, len(buffer.text))


def _run_search(
    rt: "Runtime",
    forward: Searcher,
    backward: Searcher,
    pattern: Any,
    bound: Any,
    noerror: Any,
    count: Any,
) -> Any:
    """Repeat a search ``count`` times; a negative count searches the other way.

    On failure ``noerror`` decides: nil signals ``search-failed``, ``t``
    leaves point alone, anything else moves point to the bound.
    """

    pattern = require_string(pattern)
    buffer = rt.current_buffer()
    times = require_integer(optional(count, 1))
    searcher = forward if times >= 0 else backward
    limit = _bound(buffer, bound)
    start = buffer.point
    for _ in range(abs(times)):
        if searcher(buffer, rt.match_data, pattern, limit) is None:
            if noerror is NIL:
                raise search_failed(pattern)
            if noerror is T:
                buffer.goto(start)
            elif limit is not None:
                buffer.goto(limit)
            else:
                buffer.goto(len(buffer.text) if searcher is forward else 0)
            return NIL
    return buffer.point + 1


def search_forward(rt: "Runtime", string: Any, bound: Any = NIL, noerror: Any = NIL, count: Any = NIL) -> Any:
    return _run_search(
        rt, operations.search_forward, operations.search_backward, string, bound, noerror, count
    )


def search_backward(rt: "Runtime", string: Any, bound: Any = NIL, noerror: Any = NIL, count: Any = NIL) -> Any:
    return _run_search(
        rt, operations.search_backward, operations.search_forward, string, bound, noerror, count
    )


def re_search_forward(rt: "Runtime", regexp: Any, bound: Any = NIL, noerror: Any = NIL, count: Any = NIL) -> Any:
    return _run_search(
        rt, operations.re_search_forward, operations.re_search_backward, regexp, bound, noerror, count
    )


def re_search_backward(rt: "Runtime", regexp: Any, bound: Any = NIL, noerror: Any = NIL, count: Any = NIL) -> Any:
    return _run_search(
        rt, operations.re_search_backward, operations.re_search_forward, regexp, bound, noerror, count
    )


def looking_at(rt: "Runtime", regexp: Any, inhibit_modify: Any = NIL) -> Any:
    match = None if truthy(inhibit_modify) else rt.match_data
    return as_bool(operations.looking_at(rt.current_buffer(), match, require_string(regexp)))


def looking_at_p(rt: "Runtime", regexp: Any) -> Any:
    return as_bool(operations.looking_at(rt.current_buffer(), None, require_string(regexp)))


def _string_match(rt: "Runtime", regexp: Any, string: Any, start: Any, *, record: bool) -> Any:
    text = require_string(string)
    offset = require_integer(optional(start, 0))
    if offset < 0:
        offset += len(text)
    found = operations.string_match(
        rt.match_data if record else None, require_string(regexp), text, offset
    )
    return NIL if found is None else found


def string_match(rt: "Runtime", regexp: Any, string: Any, start: Any = NIL, inhibit_modify: Any = NIL) -> Any:
    return _string_match(rt, regexp, string, start, record=not truthy(inhibit_modify))


def string_match_p(rt: "Runtime", regexp: Any, string: Any, start: Any = NIL) -> Any:
    return _string_match(rt, regexp, string, start, record=False)


def match_beginning(rt: "Runtime", group: Any) -> Any:
    position = rt.match_data.beginning(require_integer(group))
    return NIL if position is None else position


def match_end(rt: "Runtime", group: Any) -> Any:
    position = rt.match_data.end(require_integer(group))
    return NIL if position is None else position


def match_data(rt: "Runtime", *_: Any) -> Any:
    """The recorded positions, unmatched groups as nil and trailing ones dropped."""

    items: List[Any] = [NIL if position < 0 else position for position in rt.match_data.positions]
    while items and items[-1] is NIL:
        items.pop()
    return from_list(items)


def set_match_data(rt: "Runtime", data: Any, *_: Any) -> Any:
    """Replace the record; positions are taken as belonging to the current buffer."""

    if data is NIL:
        rt.match_data.clear()
        return NIL
    positions = [ensure_integer(item) if item is not NIL else -1 for item in iterate(data)]
    rt.match_data.set_positions(positions, rt.current_buffer())
    return NIL


def match_string(rt: "Runtime", group: Any, string: Any = NIL) -> Any:
    span = rt.match_data.group(require_integer(group))
    if span is None:
        return NIL
    start, end = span
    if string is not NIL:
        return require_string(string)[start:end]
    if rt.match_data.in_string:
        return NIL
    buffer = rt.match_data.buffer or rt.current_buffer()
    return buffer.substring(start - 1, end - 1)


def replace_match(
    rt: "Runtime",
    newtext: Any,
    fixedcase: Any = NIL,
    literal: Any = NIL,
    string: Any = NIL,
    subexp: Any = NIL,
) -> Any:
    """Replace the last match in ``string``, or in the buffer it was found in."""

    newtext = require_string(newtext)
    group = require_integer(optional(subexp, 0))
    if string is not NIL:
        return replace_in_string(
            rt.match_data, newtext, require_string(string), literal=truthy(literal), subexp=group
        )
    buffer = rt.match_data.buffer or rt.current_buffer()
    replace_in_buffer(rt.match_data, newtext, buffer, literal=truthy(literal), subexp=group)
    return NIL


def replace_regexp_in_string(
    rt: "Runtime",
    regexp: Any,
    rep: Any,
    string: Any,
    fixedcase: Any = NIL,
    literal: Any = NIL,
    subexp: Any = NIL,
    start: Any = NIL,
) -> str:
    """Replace every match; ``rep`` is a template or a function of the matched text."""

    text = require_string(string)
    pattern = compile_pattern(require_string(regexp))
    if pattern is None:
        raise ConditionSignal("invalid-regexp", lisp_list(regexp), message="Invalid regexp")
    group = require_integer(optional(subexp, 0))
    offset = require_integer(optional(start, 0))
    out: List[str] = []
    cursor = offset
    for found in pattern.finditer(text, offset):
        if found.start(group) < 0:
            continue
        rt.match_data.set_from_string(found)
        if isinstance(rep, str):
            template = rep
        else:
            template = require_string(rt.interpreter.funcall(rep, found.group(0)))
        groups = [found.group(index) or "" for index in range((pattern.groups or 0) + 1)]
        replacement = template if truthy(literal) else expand_template(template, groups)
        out.append(text[cursor : found.start(group)])
        out.append(replacement)
        cursor = found.end(group)
    out.append(text[cursor:])
    return "".join(out)


def regexp_quote_(rt: "Runtime", string: Any) -> str:
    return regexp_quote(require_string(string))


def regexp_opt(rt: "Runtime", strings: Any, paren: Any = NIL) -> str:
    alternatives = "\\|".join(regexp_quote(require_string(item)) for item in iterate(strings))
    if paren is NIL:
        return "\\(?:" + alternatives + "\\)"
    if isinstance(paren, Symbol) and paren.name == "words":
        return "\\<\\(" + alternatives + "\\)\\>"
    if isinstance(paren, Symbol) and paren.name == "symbols":
        return "\\_<\\(" + alternatives + "\\)\\_>"
    return "\\(" + alternatives + "\\)"


def _skip_limit(buffer: Buffer, limit: Any) -> Optional[int]:
    return None if limit is NIL else to_offset(limit, len(buffer.text))


def skip_chars_forward(rt: "Runtime", spec: Any, limit: Any = NIL) -> int:
    buffer = rt.current_buffer()
    return operations.skip_chars_forward(buffer, require_string(spec), _skip_limit(buffer, limit))


def skip_chars_backward(rt: "Runtime", spec: Any, limit: Any = NIL) -> int:
    buffer = rt.current_buffer()
    return operations.skip_chars_backward(buffer, require_string(spec), _skip_limit(buffer, limit))


SEARCH_PRIMITIVES: PrimitiveTable = {
    "search-forward": (search_forward, 1, 4),
    "search-backward": (search_backward, 1, 4),
    "re-search-forward": (re_search_forward, 1, 4),
    "search-forward-regexp": (re_search_forward, 1, 4),
    "re-search-backward": (re_search_backward, 1, 4),
    "search-backward-regexp": (re_search_backward, 1, 4),
    "looking-at": (looking_at, 1, 2),
    "looking-at-p": (looking_at_p, 1, 1),
    "string-match": (string_match, 2, 4),
    "string-match-p": (string_match_p, 2, 3),
    "match-beginning": (match_beginning, 1, 1),
    "match-end": (match_end, 1, 1),
    "match-data": (match_data, 0, 3),
    "set-match-data": (set_match_data, 1, 2),
    "match-string": (match_string, 1, 2),
    "match-string-no-properties": (match_string, 1, 2),
    "replace-match": (replace_match, 1, 5),
    "replace-regexp-in-string": (replace_regexp_in_string, 3, 7),
    "regexp-quote": (regexp_quote_, 1, 1),
    "regexp-opt": (regexp_opt, 1, 2),
    "skip-chars-forward": (skip_chars_forward, 1, 2),
    "skip-chars-backward": (skip_chars_backward, 1, 2),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, SEARCH_PRIMITIVES)


__all__ = ["SEARCH_PRIMITIVES", "search_failed", "install"]
