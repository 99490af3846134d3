"""Printed representations (``prin1``/``princ``) of dialect values."""

from __future__ import annotations

import math
from typing import Any, Protocol, runtime_checkable

from .values import (
    BACKQUOTE,
    COMMA,
    COMMA_AT,
    FUNCTION,
    NIL,
    QUOTE,
    Cons,
    Lambda,
    Macro,
    Primitive,
    SpecialForm,
    Symbol,
    Vector,
)

_READER_PREFIXES = {QUOTE: "'", FUNCTION: "#'", BACKQUOTE: "`", COMMA: ",", COMMA_AT: ",@"}
MAX_DEPTH = 64


@runtime_checkable
class LispPrintable(Protocol):
    """Objects (buffers, windows, keymaps...) that describe themselves."""

    def lisp_repr(self) -> str: ...


def format_float(value: float) -> str:
    if math.isnan(value):
        return "0.0e+NaN"
    if math.isinf(value):
        return "1.0e+INF" if value > 0 else "-1.0e+INF"
    return repr(value)


def _escape(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def to_string(value: Any, *, readably: bool = True, _depth: int = 0) -> str:
    if _depth > MAX_DEPTH:
        return "..."
    if isinstance(value, Symbol):
        return value.name
    if isinstance(value, bool):
        return "t" if value else "nil"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, str):
        return _escape(value) if readably else value
    if isinstance(value, Cons):
        return _list_repr(value, readably, _depth)
    if isinstance(value, Vector):
        if value.bool_vector:
            bits = "".join("1" if item is not NIL else "0" for item in value.items)
            return f"#&{len(value.items)}\"{bits}\""
        inner = " ".join(
            to_string(item, readably=readably, _depth=_depth + 1)
            for item in value.items
        )
        return f"[{inner}]"
    if isinstance(value, Lambda):
        return f"#<lambda {value.name}>" if value.name else "#<lambda>"
    if isinstance(value, Macro):
        return f"#<macro {value.name}>" if value.name else "#<macro>"
    if isinstance(value, Primitive):
        return f"#<subr {value.name}>"
    if isinstance(value, SpecialForm):
        return f"#<special-form {value.name}>"
    if isinstance(value, LispPrintable):
        return value.lisp_repr()
    return f"#<{type(value).__name__}>"


def _list_repr(value: Cons, readably: bool, depth: int) -> str:
    head = value.car
    if (
        isinstance(head, Symbol)
        and head in _READER_PREFIXES
        and isinstance(value.cdr, Cons)
        and value.cdr.cdr is NIL
    ):
        inner = to_string(value.cdr.car, readably=readably, _depth=depth + 1)
        return _READER_PREFIXES[head] + inner
    parts: list[str] = []
    cursor: Any = value
    while isinstance(cursor, Cons):
        parts.append(to_string(cursor.car, readably=readably, _depth=depth + 1))
        cursor = cursor.cdr
        if len(parts) > 10000:
            parts.append("...")
            cursor = NIL
            break
    if cursor is not NIL:
        parts.append(".")
        parts.append(to_string(cursor, readably=readably, _depth=depth + 1))
    return "(" + " ".join(parts) + ")"


def prin1_to_string(value: Any) -> str:
    return to_string(value, readably=True)


def princ_to_string(value: Any) -> str:
    return to_string(value, readably=False)


__all__ = [
    "LispPrintable",
    "format_float",
    "to_string",
    "prin1_to_string",
    "princ_to_string",
]
