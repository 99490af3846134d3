"""Single-pass rewriter from dialect source to text the host reader accepts.

Strings and comments are copied through untouched; everything else is scanned
for reader syntax the host does not understand (vector brackets, character
and radix literals, ``#'``) and a few names that collide with host built-ins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from elisp_compat.errors import ParseError

DELIMITERS = frozenset(" \t\n\r()[]'`,\"")
SYMBOL_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_:/+*<>=?!$%&.~"
)
ZERO_ARG_RENAMES = {
    "point": "(el-point",
    "dun-mode": "(call-fn 'dun-mode",
}
ESCAPED_PUNCTUATION = {"?": '"?"', ".": '"."', ",": '","', "!": '"!"'}
CHAR_ESCAPES = {
    "n": 10,
    "t": 9,
    "r": 13,
    "f": 12,
    "b": 8,
    "a": 7,
    "e": 27,
    "d": 127,
    "s": 32,
    "\\": 92,
    " ": 32,
}
_RADIX = {"o": 8, "x": 16, "b": 2}
_RADIX_DIGITS = {
    8: frozenset("01234567"),
    16: frozenset("0123456789abcdefABCDEF"),
    2: frozenset("01"),
}
_NUMBER_PAT = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_WHITESPACE = " \t\n\r"


@dataclass(slots=True)
class _ScanState:
    """Scanner state: at most one of string/comment is active at a time."""

    in_string: bool = False
    in_comment: bool = False
    escaped: bool = False
    vector_depth: int = 0
    string_start: int = 0


def _at_delimiter(src: str, index: int) -> bool:
    return index < 0 or index >= len(src) or src[index] in DELIMITERS


def read_symbol_token(src: str, start: int) -> str:
    end = start
    while end < len(src) and src[end] in SYMBOL_CHARS:
        end += 1
    return src[start:end]


def parse_char_literal(src: str, start: int) -> Optional[Tuple[int, int]]:
    """Parse ``?c`` at ``start``; return ``(code, consumed)`` or ``None``."""

    if start + 1 >= len(src):
        return None
    ch = src[start + 1]
    if ch != "\\":
        return ord(ch), 2
    if start + 2 >= len(src):
        return None
    esc = src[start + 2]
    octal = src[start + 2 : start + 5]
    if len(octal) == 3 and all(c in "01234567" for c in octal):
        return int(octal, 8), 5
    if esc in ("C", "^"):
        control = _parse_control(src, start)
        if control is not None:
            return control
    if esc == "s" and src[start + 3 : start + 4] == "-":
        return ord("s"), 3
    if esc in CHAR_ESCAPES:
        return CHAR_ESCAPES[esc], 3
    return ord(esc), 3


def _parse_control(src: str, start: int) -> Optional[Tuple[int, int]]:
    # ?\C-a and ?\^a both name the control character for "a"
    if src[start + 2] == "C":
        if src[start + 3 : start + 4] != "-" or start + 4 >= len(src):
            return None
        target, consumed = src[start + 4], 5
    else:
        if start + 3 >= len(src):
            return None
        target, consumed = src[start + 3], 4
    if target == "?":
        return 127, consumed
    return ord(target) & 31, consumed


def parse_radix_literal(src: str, start: int) -> Optional[Tuple[int, int]]:
    """Parse ``#xFF``/``#o17``/``#b101`` at ``start``; return ``(value, consumed)``."""

    if start + 2 >= len(src):
        return None
    base = _RADIX.get(src[start + 1].lower())
    if base is None:
        return None
    allowed = _RADIX_DIGITS[base]
    end = start + 2
    while end < len(src) and src[end] in allowed:
        end += 1
    if end == start + 2:
        return None
    return int(src[start + 2 : end], base), end - start


def _zero_arg_call(src: str, start: int) -> Optional[Tuple[str, int]]:
    index = start + 1
    while index < len(src) and src[index] in _WHITESPACE:
        index += 1
    token = read_symbol_token(src, index)
    replacement = ZERO_ARG_RENAMES.get(token)
    if replacement is None:
        return None
    after = index + len(token)
    probe = after
    while probe < len(src) and src[probe] in _WHITESPACE:
        probe += 1
    if probe < len(src) and src[probe] == ")":
        return replacement, after - start
    return None


def _leading_digit_symbol(src: str, start: int) -> Optional[str]:
    if not _at_delimiter(src, start - 1):
        return None
    token = read_symbol_token(src, start)
    if not token or not _at_delimiter(src, start + len(token)):
        return None
    if not any(c.isalpha() for c in token) or _NUMBER_PAT.match(token):
        return None
    return token


def preprocess(src: str) -> str:
    """Rewrite ``src`` for the host reader or raise ``ParseError``."""

    out: list[str] = []
    state = _ScanState()
    i = 0
    length = len(src)
    while i < length:
        ch = src[i]

        if state.in_comment:
            out.append(ch)
            if ch == "\n":
                state.in_comment = False
            i += 1
            continue

        if state.in_string:
            out.append(ch)
            if state.escaped:
                state.escaped = False
            elif ch == "\\":
                state.escaped = True
            elif ch == '"':
                state.in_string = False
            i += 1
            continue

        if ch == ";":
            state.in_comment = True
            out.append(ch)
            i += 1
            continue

        if ch == '"':
            state.in_string = True
            state.string_start = i
            out.append(ch)
            i += 1
            continue

        if ch == "#":
            if src[i + 1 : i + 2] == "'":
                out.append("'")
                i += 2
                continue
            radix = parse_radix_literal(src, i)
            if radix is not None:
                out.append(str(radix[0]))
                i += radix[1]
                continue

        if ch == "\\" and src[i + 1 : i + 2] in ESCAPED_PUNCTUATION:
            out.append(ESCAPED_PUNCTUATION[src[i + 1]])
            i += 2
            continue

        if (
            ch == "1"
            and src[i + 1 : i + 2] in ("+", "-")
            and _at_delimiter(src, i - 1)
            and _at_delimiter(src, i + 2)
        ):
            out.append("succ" if src[i + 1] == "+" else "pred")
            i += 2
            continue

        if ch == "?" and _at_delimiter(src, i - 1):
            literal = parse_char_literal(src, i)
            if literal is not None:
                out.append(str(literal[0]))
                i += literal[1]
                continue

        if ch == "[":
            out.append("(vector-literal ")
            state.vector_depth += 1
            i += 1
            continue

        if ch == "]":
            if state.vector_depth == 0:
                raise ParseError("unmatched ] in elisp source", offset=i)
            out.append(")")
            state.vector_depth -= 1
            i += 1
            continue

        if ch == "(":
            renamed = _zero_arg_call(src, i)
            if renamed is not None:
                out.append(renamed[0])
                i += renamed[1]
                continue

        if ch.isdigit():
            token = _leading_digit_symbol(src, i)
            if token is not None:
                out.append("n-" + token)
                i += len(token)
                continue

        out.append(ch)
        i += 1

    if state.in_string:
        raise ParseError(
            "unterminated string in elisp source", offset=state.string_start
        )
    if state.vector_depth:
        raise ParseError("unmatched [ in elisp source", offset=length)
    return "".join(out)


__all__ = [
    "DELIMITERS",
    "SYMBOL_CHARS",
    "preprocess",
    "parse_char_literal",
    "parse_radix_literal",
    "read_symbol_token",
]
