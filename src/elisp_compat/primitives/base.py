"""Registration helpers and argument coercions shared by primitive modules."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Tuple

from elisp_compat.errors import ConditionSignal, TypeMismatchError
from elisp_compat.host.values import NIL, T, Symbol, is_number, lisp_list

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

PrimitiveSpec = Tuple[Callable[..., Any], int, Optional[int]]
PrimitiveTable = Dict[str, PrimitiveSpec]


def install_primitives(rt: "Runtime", table: Mapping[str, PrimitiveSpec]) -> None:
    """Register each ``name -> (handler, min, max)`` entry bound to ``rt``."""

    for name, (handler, minimum, maximum) in table.items():
        rt.interpreter.define_primitive(name, partial(handler, rt), minimum, maximum)


def install_globals(rt: "Runtime", values: Mapping[str, Any]) -> None:
    for name, value in values.items():
        symbol = Symbol(name)
        rt.interpreter.set_global(symbol, value)
        rt.interpreter.special_variables.add(symbol)


def require_string(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeMismatchError("stringp", value)
    return value


def require_integer(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeMismatchError("integerp", value)
    return value


def require_whole(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise TypeMismatchError("wholenump", value)
    return value


def require_number(value: Any) -> int | float:
    if not is_number(value):
        raise TypeMismatchError("number-or-marker-p", value)
    return value


def ensure_settable(symbol: Symbol) -> Symbol:
    if symbol is NIL or symbol is T or symbol.is_keyword:
        raise ConditionSignal(
            "setting-constant",
            lisp_list(symbol),
            message=f"Attempt to set a constant symbol: {symbol.name}",
        )
    return symbol


def optional(value: Any, default: Any = None) -> Any:
    """``default`` for an omitted or ``nil`` optional argument."""

    return default if value is NIL or value is None else value


def out_of_range(*data: Any) -> ConditionSignal:
    return ConditionSignal(
        "args-out-of-range", lisp_list(*data), message="Args out of range"
    )


def string_or_symbol_name(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Symbol):
        return value.name
    raise TypeMismatchError("stringp", value)


def ignore(rt: "Runtime", *_: Any) -> Any:
    """Accept any arguments and do nothing."""

    return NIL


def first_argument(rt: "Runtime", *args: Any) -> Any:
    return args[0] if args else NIL


__all__ = [
    "PrimitiveSpec",
    "PrimitiveTable",
    "install_primitives",
    "install_globals",
    "require_string",
    "require_integer",
    "require_whole",
    "require_number",
    "ensure_settable",
    "optional",
    "out_of_range",
    "string_or_symbol_name",
    "ignore",
    "first_argument",
]
