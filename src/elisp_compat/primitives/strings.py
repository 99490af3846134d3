"""String construction, comparison, case conversion and ``format``."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, List

from elisp_compat.errors import ConditionSignal
from elisp_compat.host.printer import format_float, prin1_to_string, princ_to_string
from elisp_compat.host.values import NIL, Vector, as_bool, is_number, lisp_list, sequence_items, truthy
from elisp_compat.search.regex import compile_pattern

from .base import (
    PrimitiveTable,
    install_primitives,
    optional,
    out_of_range,
    require_integer,
    require_number,
    require_string,
    require_whole,
    string_or_symbol_name,
)
from .sequences import as_text

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

DEFAULT_SEPARATORS = "[ \f\t\n\r\v]+"
DEFAULT_TRIM = "[ \t\n\r]+"

_DIRECTIVE = re.compile(r"%(?:(\d+)\$)?([-+ #0]*)(\d*)(?:\.(\d+))?([sSdoxXcefg%])")
_DIGITS = "0123456789abcdef"
_DECIMAL = re.compile(r"[ \t\n]*([-+]?(?:\d+(\.\d*)?(?:[eE][-+]?\d+)?|\.\d+(?:[eE][-+]?\d+)?))")


def concat(rt: "Runtime", *parts: Any) -> str:
    return "".join(as_text(part) for part in parts)


def _slice_bounds(length: int, start: Any, end: Any, value: Any) -> tuple[int, int]:
    begin = require_integer(optional(start, 0))
    finish = require_integer(optional(end, length))
    if begin < 0:
        begin += length
    if finish < 0:
        finish += length
    if not 0 <= begin <= finish <= length:
        raise out_of_range(value, start, end)
    return begin, finish


def substring(rt: "Runtime", value: Any, start: Any = NIL, end: Any = NIL) -> Any:
    """Negative indices count from the end; vectors are sliced too."""

    if isinstance(value, Vector):
        begin, finish = _slice_bounds(len(value.items), start, end, value)
        return Vector(value.items[begin:finish], value.bool_vector)
    text = require_string(value)
    begin, finish = _slice_bounds(len(text), start, end, value)
    return text[begin:finish]


def split_string(
    rt: "Runtime", value: Any, separators: Any = NIL, omit_nulls: Any = NIL, trim: Any = NIL
) -> Any:
    """Split on a regexp; the default separators also drop empty pieces."""

    text = require_string(value)
    if separators is NIL:
        separators, omit_nulls = DEFAULT_SEPARATORS, True
    pattern = compile_pattern(require_string(separators))
    if pattern is None:
        raise ConditionSignal("invalid-regexp", lisp_list(separators), message="Invalid regexp")
    pieces: List[str] = []
    start = 0
    for found in pattern.finditer(text):
        if found.end() == found.start():
            continue
        pieces.append(text[start : found.start()])
        start = found.end()
    pieces.append(text[start:])
    if trim is not NIL:
        pieces = [_trim(piece, trim, trim) for piece in pieces]
    if truthy(omit_nulls):
        pieces = [piece for piece in pieces if piece]
    return lisp_list(*pieces)


def _trim(text: str, left: Any, right: Any) -> str:
    if left is not NIL:
        leading = compile_pattern("\\`\\(?:" + require_string(left) + "\\)")
        found = leading.match(text) if leading else None
        if found:
            text = text[found.end() :]
    if right is not NIL:
        trailing = compile_pattern("\\(?:" + require_string(right) + "\\)\\'")
        if trailing is not None:
            for index in range(len(text) + 1):
                if trailing.fullmatch(text, index):
                    text = text[:index]
                    break
    return text


def string_trim(rt: "Runtime", value: Any, left: Any = NIL, right: Any = NIL) -> str:
    return _trim(
        require_string(value), optional(left, DEFAULT_TRIM), optional(right, DEFAULT_TRIM)
    )


def string_trim_left(rt: "Runtime", value: Any, regexp: Any = NIL) -> str:
    return _trim(require_string(value), optional(regexp, DEFAULT_TRIM), NIL)


def string_trim_right(rt: "Runtime", value: Any, regexp: Any = NIL) -> str:
    return _trim(require_string(value), NIL, optional(regexp, DEFAULT_TRIM))


def string_join(rt: "Runtime", strings: Any, separator: Any = NIL) -> str:
    glue = "" if separator is NIL else require_string(separator)
    return glue.join(require_string(item) for item in sequence_items(strings))


def _case(convert_text, convert_char):
    def converter(rt: "Runtime", value: Any) -> Any:
        if isinstance(value, str):
            return convert_text(value)
        return ord(convert_char(chr(require_integer(value)))[0])

    return converter


def _capitalize_words(text: str, *, lower_rest: bool = True) -> str:
    out: List[str] = []
    in_word = False
    for ch in text:
        if ch.isalnum():
            if in_word:
                out.append(ch.lower() if lower_rest else ch)
            else:
                out.append(ch.upper())
            in_word = True
        else:
            out.append(ch)
            in_word = False
    return "".join(out)


def string_equal(rt: "Runtime", left: Any, right: Any) -> Any:
    return as_bool(string_or_symbol_name(left) == string_or_symbol_name(right))


def string_less(rt: "Runtime", left: Any, right: Any) -> Any:
    return as_bool(string_or_symbol_name(left) < string_or_symbol_name(right))


def string_greater(rt: "Runtime", left: Any, right: Any) -> Any:
    return as_bool(string_or_symbol_name(left) > string_or_symbol_name(right))


def string_prefix_p(rt: "Runtime", prefix: Any, value: Any, ignore_case: Any = NIL) -> Any:
    prefix, text = require_string(prefix), require_string(value)
    if truthy(ignore_case):
        prefix, text = prefix.lower(), text.lower()
    return as_bool(text.startswith(prefix))


def string_suffix_p(rt: "Runtime", suffix: Any, value: Any, ignore_case: Any = NIL) -> Any:
    suffix, text = require_string(suffix), require_string(value)
    if truthy(ignore_case):
        suffix, text = suffix.lower(), text.lower()
    return as_bool(text.endswith(suffix))


def string_search(rt: "Runtime", needle: Any, haystack: Any, start: Any = NIL) -> Any:
    text = require_string(haystack)
    offset = require_integer(optional(start, 0))
    if not 0 <= offset <= len(text):
        raise out_of_range(start)
    index = text.find(require_string(needle), offset)
    return NIL if index < 0 else index


def string_replace(rt: "Runtime", old: Any, new: Any, value: Any) -> str:
    old = require_string(old)
    if not old:
        raise ConditionSignal("error", lisp_list("Empty search string"), message="Empty search string")
    return require_string(value).replace(old, require_string(new))


def make_string(rt: "Runtime", count: Any, char: Any, *_: Any) -> str:
    return chr(require_integer(char)) * require_whole(count)


def string_(rt: "Runtime", *chars: Any) -> str:
    return "".join(chr(require_integer(char)) for char in chars)


def char_to_string(rt: "Runtime", char: Any) -> str:
    return chr(require_integer(char))


def string_to_char(rt: "Runtime", value: Any) -> int:
    text = require_string(value)
    return ord(text[0]) if text else 0


def string_to_list(rt: "Runtime", value: Any) -> Any:
    return lisp_list(*(ord(ch) for ch in require_string(value)))


def string_to_vector(rt: "Runtime", value: Any) -> Vector:
    return Vector([ord(ch) for ch in require_string(value)])


def number_to_string(rt: "Runtime", value: Any) -> str:
    number = require_number(value)
    return format_float(number) if isinstance(number, float) else str(number)


def parse_number(text: str, base: int = 10) -> Any:
    """Leading number of ``text`` as ``string-to-number`` reads it; 0 when there is none."""

    if base == 10:
        found = _DECIMAL.match(text)
        if not found:
            return 0
        literal = found.group(1)
        if found.group(2) is not None and found.group(2) == "." and "e" not in literal.lower():
            return int(literal.rstrip("."))
        if "." in literal or "e" in literal.lower():
            return float(literal)
        return int(literal)
    stripped = text.lstrip(" \t\n")
    sign = 1
    if stripped[:1] in ("-", "+"):
        sign = -1 if stripped[0] == "-" else 1
        stripped = stripped[1:]
    digits = ""
    for ch in stripped:
        if ch in _DIGITS and _DIGITS.index(ch) < base:
            digits += ch
        else:
            break
    return sign * int(digits, base) if digits else 0


def string_to_number(rt: "Runtime", value: Any, base: Any = NIL) -> Any:
    radix = require_integer(optional(base, 10))
    if not 2 <= radix <= 16:
        raise out_of_range(base)
    return parse_number(require_string(value), radix)


def _format_integer(value: Any) -> int:
    if isinstance(value, float):
        return int(value)
    if not is_number(value):
        raise ConditionSignal(
            "error", lisp_list("Format specifier doesn't match argument type")
        )
    return value


def format_string(template: str, args: List[Any]) -> str:
    """Expand ``%s %S %d %o %x %X %c %e %f %g %%`` with flags, width and precision."""

    out: List[str] = []
    cursor = 0
    position = 0
    for directive in _DIRECTIVE.finditer(template):
        out.append(template[cursor : directive.start()])
        cursor = directive.end()
        field, flags, width, precision, kind = directive.groups()
        if kind == "%":
            out.append("%")
            continue
        if field:
            position = int(field) - 1
        if position >= len(args):
            raise ConditionSignal(
                "error",
                lisp_list("Not enough arguments for format string"),
                message="Not enough arguments for format string",
            )
        value = args[position]
        position += 1
        spec = "%" + flags + width
        if kind in "sS":
            text = princ_to_string(value) if kind == "s" else prin1_to_string(value)
            if precision:
                text = text[: int(precision)]
            out.append(("%" + flags.replace("0", "") + width + "s") % text)
        elif kind == "c":
            out.append((spec + "s") % chr(require_integer(value)))
        elif kind in "doxX":
            if precision:
                spec += "." + precision
            out.append((spec + kind) % _format_integer(value))
        else:
            if precision:
                spec += "." + precision
            out.append((spec + kind) % float(require_number(value)))
    out.append(template[cursor:])
    return "".join(out)


def format_(rt: "Runtime", template: Any, *args: Any) -> str:
    return format_string(require_string(template), list(args))


def prin1_to_string_(rt: "Runtime", value: Any, noescape: Any = NIL, *_: Any) -> str:
    return princ_to_string(value) if truthy(noescape) else prin1_to_string(value)


def stringp(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, str))


def string_empty_p(rt: "Runtime", value: Any) -> Any:
    return as_bool(string_or_symbol_name(value) == "")


def char_or_string_p(rt: "Runtime", value: Any) -> Any:
    if isinstance(value, str):
        return as_bool(True)
    return as_bool(isinstance(value, int) and not isinstance(value, bool) and value >= 0)


def string_width(rt: "Runtime", value: Any, *_: Any) -> int:
    return len(require_string(value))


def string_bytes(rt: "Runtime", value: Any) -> int:
    return len(require_string(value).encode("utf-8"))


STRING_PRIMITIVES: PrimitiveTable = {
    "concat": (concat, 0, None),
    "substring": (substring, 1, 3),
    "substring-no-properties": (substring, 1, 3),
    "split-string": (split_string, 1, 4),
    "string-trim": (string_trim, 1, 3),
    "string-trim-left": (string_trim_left, 1, 2),
    "string-trim-right": (string_trim_right, 1, 2),
    "string-join": (string_join, 1, 2),
    "downcase": (_case(str.lower, str.lower), 1, 1),
    "upcase": (_case(str.upper, str.upper), 1, 1),
    "capitalize": (_case(_capitalize_words, str.upper), 1, 1),
    "upcase-initials": (
        _case(lambda text: _capitalize_words(text, lower_rest=False), str.upper),
        1,
        1,
    ),
    "string=": (string_equal, 2, 2),
    "string-equal": (string_equal, 2, 2),
    "string<": (string_less, 2, 2),
    "string-lessp": (string_less, 2, 2),
    "string>": (string_greater, 2, 2),
    "string-greaterp": (string_greater, 2, 2),
    "string-prefix-p": (string_prefix_p, 2, 3),
    "string-suffix-p": (string_suffix_p, 2, 3),
    "string-search": (string_search, 2, 3),
    "string-replace": (string_replace, 3, 3),
    "make-string": (make_string, 2, 3),
    "string": (string_, 0, None),
    "char-to-string": (char_to_string, 1, 1),
    "string-to-char": (string_to_char, 1, 1),
    "string-to-list": (string_to_list, 1, 1),
    "string-to-vector": (string_to_vector, 1, 1),
    "number-to-string": (number_to_string, 1, 1),
    "int-to-string": (number_to_string, 1, 1),
    "string-to-number": (string_to_number, 1, 2),
    "format": (format_, 1, None),
    "format-message": (format_, 1, None),
    "prin1-to-string": (prin1_to_string_, 1, 3),
    "stringp": (stringp, 1, 1),
    "string-empty-p": (string_empty_p, 1, 1),
    "char-or-string-p": (char_or_string_p, 1, 1),
    "string-width": (string_width, 1, 3),
    "string-bytes": (string_bytes, 1, 1),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, STRING_PRIMITIVES)


__all__ = ["STRING_PRIMITIVES", "format_string", "parse_number", "install"]
