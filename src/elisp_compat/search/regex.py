"""Translation of dialect regular expressions into Python ``re`` patterns."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional, Pattern

_POSIX_CLASSES = {
    "alpha": "a-zA-Z",
    "alnum": "a-zA-Z0-9",
    "digit": "0-9",
    "xdigit": "0-9a-fA-F",
    "upper": "A-Z",
    "lower": "a-z",
    "space": r"\s",
    "blank": r" \t",
    "word": r"\w",
    "punct": r"!-/:-@\[-`{-~",
    "cntrl": r"\x00-\x1f",
    "print": r"\x20-\x7e",
    "graph": r"\x21-\x7e",
    "ascii": r"\x00-\x7f",
    "nonascii": r"\x80-\U0010ffff",
}

_SYNTAX_CLASSES = {
    "-": r"\s",
    " ": r"\s",
    "w": r"\w",
    "_": r"[\w$&*+\-/<=>_|]",
    ".": r"[^\w\s]",
    "(": r"[(\[{]",
    ")": r"[)\]}]",
    '"': r"[\"']",
}

_NEGATED_SYNTAX_CLASSES = {
    "-": r"\S",
    " ": r"\S",
    "w": r"\W",
    "_": r"[^\w$&*+\-/<=>_|]",
    ".": r"[\w\s]",
    "(": r"[^(\[{]",
    ")": r"[^)\]}]",
    '"': r"[^\"']",
}

_BACKSLASH_TRANSLATIONS = {
    "(": "(",
    ")": ")",
    "|": "|",
    "{": "{",
    "}": "}",
    "`": r"\A",
    "'": r"\Z",
    "<": r"\b(?=\w)",
    ">": r"\b(?<=\w)",
    "_<": r"(?<![\w_-])(?=[\w_-])",
    "_>": r"(?<=[\w_-])(?![\w_-])",
    "=": "",
    "w": r"\w",
    "W": r"\W",
    "b": r"\b",
    "B": r"\B",
}


def _translate_bracket(pattern: str, start: int) -> tuple[str, int]:
    """Translate ``[...]`` starting at ``start``; return (text, next index)."""

    i = start + 1
    out = ["["]
    if i < len(pattern) and pattern[i] == "^":
        out.append("^")
        i += 1
    first = True
    while i < len(pattern):
        ch = pattern[i]
        if ch == "]" and not first:
            out.append("]")
            return "".join(out), i + 1
        first = False
        if ch == "[" and pattern.startswith("[:", i):
            close = pattern.find(":]", i + 2)
            if close >= 0:
                name = pattern[i + 2 : close]
                if name not in _POSIX_CLASSES:
                    raise re.error(f"invalid character class {name!r}")
                out.append(_POSIX_CLASSES[name])
                i = close + 2
                continue
        if ch in "\\[]":
            out.append("\\" + ch)
        else:
            out.append(ch)
        i += 1
    raise re.error("unmatched [ in regexp")


def translate(pattern: str) -> str:
    """Rewrite a dialect regexp into the equivalent Python syntax.

    Raises ``re.error`` for constructs that cannot be translated.
    """

    out: list[str] = []
    i = 0
    length = len(pattern)
    while i < length:
        ch = pattern[i]
        if ch == "\\":
            if i + 1 >= length:
                raise re.error("trailing backslash in regexp")
            nxt = pattern[i + 1]
            if nxt == "(" and pattern.startswith("?:", i + 2):
                out.append("(?:")
                i += 4
                continue
            if nxt == "(" and pattern[i + 2 : i + 3] == "?":
                # explicitly numbered groups are renumbered positionally
                close = pattern.find(":", i + 3)
                if close < 0 or not pattern[i + 3 : close].isdigit():
                    raise re.error("invalid group syntax in regexp")
                out.append("(")
                i = close + 1
                continue
            if nxt == "_" and pattern[i + 2 : i + 3] in ("<", ">"):
                out.append(_BACKSLASH_TRANSLATIONS["_" + pattern[i + 2]])
                i += 3
                continue
            if nxt in ("s", "S"):
                if i + 2 >= length:
                    raise re.error("missing syntax class in regexp")
                table = _SYNTAX_CLASSES if nxt == "s" else _NEGATED_SYNTAX_CLASSES
                code = pattern[i + 2]
                if code not in table:
                    raise re.error(f"unsupported syntax class {code!r}")
                out.append(table[code])
                i += 3
                continue
            if nxt in ("c", "C"):
                # character categories have no Python counterpart
                out.append("." if nxt == "c" else "(?!)")
                i += 3
                continue
            if nxt.isdigit() and nxt != "0":
                out.append("\\" + nxt)
                i += 2
                continue
            if nxt in _BACKSLASH_TRANSLATIONS:
                out.append(_BACKSLASH_TRANSLATIONS[nxt])
                i += 2
                continue
            out.append(re.escape(nxt))
            i += 2
            continue
        if ch == "[":
            text, i = _translate_bracket(pattern, i)
            out.append(text)
            continue
        if ch in "(){}|":
            out.append("\\" + ch)
        elif ch in "*+?" and not out:
            out.append("\\" + ch)
        else:
            out.append(ch)
        i += 1
    return "".join(out)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Pattern[str]:
    return re.compile(translate(pattern), re.MULTILINE)


def compile_pattern(pattern: str) -> Optional[Pattern[str]]:
    """Compiled pattern, or ``None`` when the regexp is invalid."""

    try:
        return _compile(pattern)
    except re.error:
        return None


def regexp_quote(text: str) -> str:
    """Quote ``text`` so the dialect regexp engine matches it literally."""

    special = set("[*.\\?+^$")
    return "".join("\\" + ch if ch in special else ch for ch in text)


def parse_char_set(spec: str) -> tuple[frozenset[str], bool]:
    """Parse a ``skip-chars`` set such as ``"a-z_"`` or ``"^ \\t"``.

    Returns the explicit characters plus a flag that is ``True`` when the set
    is negated.
    """

    negated = spec.startswith("^")
    body = spec[1:] if negated else spec
    chars: set[str] = set()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            chars.add(body[i + 1])
            i += 2
            continue
        if i + 2 < len(body) and body[i + 1] == "-":
            low, high = ord(ch), ord(body[i + 2])
            chars.update(chr(code) for code in range(low, high + 1))
            i += 3
            continue
        chars.add(ch)
        i += 1
    return frozenset(chars), negated


__all__ = ["translate", "compile_pattern", "regexp_quote", "parse_char_set"]
