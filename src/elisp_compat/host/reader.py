"""Reader turning preprocessed source text into forms."""

from __future__ import annotations

import re
from typing import Any, Iterator, List

from elisp_compat.errors import ParseError

from .values import (
    BACKQUOTE,
    COMMA,
    COMMA_AT,
    NIL,
    QUOTE,
    VECTOR_LITERAL,
    Cons,
    Symbol,
    Vector,
    from_list,
)

_INT_PAT = re.compile(r"^[+-]?\d+\.?$")
_FLOAT_PAT = re.compile(r"^[+-]?(\d+\.\d+|\.\d+|\d+(\.\d*)?[eE][+-]?\d+)$")
_DELIMITERS = frozenset(" \t\n\r\f()'`,\";")

_STRING_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "f": "\f",
    "b": "\b",
    "a": "\a",
    "e": "\x1b",
    "s": " ",
    "d": "\x7f",
    "\\": "\\",
    '"': '"',
}


class _Dot:
    __slots__ = ()


class _Close:
    __slots__ = ()


_DOT = _Dot()
_CLOSE = _Close()


class Reader:
    """Recursive-descent reader over a single source string."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def __iter__(self) -> Iterator[Any]:
        while True:
            self._skip_blank()
            if self.pos >= len(self.text):
                return
            yield self.read()

    def read_all(self) -> List[Any]:
        return list(self)

    def read(self) -> Any:
        token = self._read_datum()
        if token is _CLOSE:
            raise ParseError("unexpected ) in elisp source", offset=self.pos - 1)
        if token is _DOT:
            raise ParseError("unexpected . in elisp source", offset=self.pos - 1)
        return token

    def _skip_blank(self) -> None:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == ";":
                end = text.find("\n", self.pos)
                self.pos = len(text) if end < 0 else end + 1
            elif ch.isspace():
                self.pos += 1
            else:
                return

    def _read_datum(self) -> Any:
        self._skip_blank()
        if self.pos >= len(self.text):
            raise ParseError("unexpected end of elisp source", offset=self.pos)
        ch = self.text[self.pos]
        if ch == "(":
            self.pos += 1
            return self._read_list()
        if ch == ")":
            self.pos += 1
            return _CLOSE
        if ch == "'":
            self.pos += 1
            return from_list([QUOTE, self.read()])
        if ch == "`":
            self.pos += 1
            return from_list([BACKQUOTE, self.read()])
        if ch == ",":
            self.pos += 1
            if self.pos < len(self.text) and self.text[self.pos] == "@":
                self.pos += 1
                return from_list([COMMA_AT, self.read()])
            return from_list([COMMA, self.read()])
        if ch == '"':
            self.pos += 1
            return self._read_string()
        return self._read_atom()

    def _read_list(self) -> Any:
        start = self.pos - 1
        items: list[Any] = []
        tail: Any = NIL
        while True:
            self._skip_blank()
            if self.pos >= len(self.text):
                raise ParseError("unclosed ( in elisp source", offset=start)
            datum = self._read_datum()
            if datum is _CLOSE:
                break
            if datum is _DOT:
                if not items:
                    raise ParseError("unexpected . in elisp source", offset=self.pos)
                tail = self.read()
                self._skip_blank()
                if self._read_datum() is not _CLOSE:
                    raise ParseError("expected ) after dotted tail", offset=self.pos)
                break
            items.append(datum)
        if items and items[0] is VECTOR_LITERAL and tail is NIL:
            return Vector(items[1:])
        return from_list(items, tail)

    def _read_string(self) -> str:
        text = self.text
        start = self.pos - 1
        out: list[str] = []
        while self.pos < len(text):
            ch = text[self.pos]
            self.pos += 1
            if ch == '"':
                return "".join(out)
            if ch != "\\":
                out.append(ch)
                continue
            if self.pos >= len(text):
                break
            esc = text[self.pos]
            self.pos += 1
            if esc == "\n":
                continue
            if esc in _STRING_ESCAPES:
                out.append(_STRING_ESCAPES[esc])
            elif esc in "01234567":
                digits = esc
                while (
                    len(digits) < 3
                    and self.pos < len(text)
                    and text[self.pos] in "01234567"
                ):
                    digits += text[self.pos]
                    self.pos += 1
                out.append(chr(int(digits, 8)))
            elif esc == "x":
                digits = ""
                while self.pos < len(text) and text[self.pos] in "0123456789abcdefABCDEF":
                    digits += text[self.pos]
                    self.pos += 1
                out.append(chr(int(digits, 16)) if digits else "x")
            elif esc == "u" and self.pos + 4 <= len(text):
                out.append(chr(int(text[self.pos : self.pos + 4], 16)))
                self.pos += 4
            else:
                out.append(esc)
        raise ParseError("unterminated string in elisp source", offset=start)

    def _read_atom(self) -> Any:
        text = self.text
        start = self.pos
        chars: list[str] = []
        escaped = False
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\":
                escaped = True
                self.pos += 1
                if self.pos < len(text):
                    chars.append(text[self.pos])
                    self.pos += 1
                continue
            if ch in _DELIMITERS:
                break
            chars.append(ch)
            self.pos += 1
        token = "".join(chars)
        if not token and not escaped:
            raise ParseError(
                f"unexpected character {text[start]!r} in elisp source", offset=start
            )
        if escaped:
            return Symbol(token)
        if token == ".":
            return _DOT
        if token.startswith("#"):
            raise ParseError(f"unsupported reader syntax {token!r}", offset=start)
        if _INT_PAT.match(token):
            return int(token.rstrip("."))
        if _FLOAT_PAT.match(token):
            return float(token)
        return Symbol(token)


def read_all(text: str) -> List[Any]:
    return Reader(text).read_all()


def read_one(text: str) -> Any:
    return Reader(text).read()


__all__ = ["Reader", "read_all", "read_one"]
