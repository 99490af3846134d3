"""Signalling primitives: ``signal``, ``throw``, ``error`` and condition definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from elisp_compat.conditions import ConditionCycleError
from elisp_compat.errors import ConditionSignal, ThrowSignal
from elisp_compat.host.printer import prin1_to_string, princ_to_string
from elisp_compat.host.values import NIL, Cons, Symbol, from_list, iterate, lisp_list, to_list

from .base import PrimitiveTable, install_primitives, require_string
from .strings import format_string
from .symbols import require_symbol

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

ERROR_MESSAGE = Symbol("error-message")
ERROR_CONDITIONS = Symbol("error-conditions")


def _describe(rt: "Runtime", name: str, data: Any) -> str:
    """``Message: datum, datum`` the way the top level reports a signal."""

    message = rt.conditions.message_of(name) or "peculiar error"
    if data is NIL:
        return message
    items = to_list(data) if isinstance(data, Cons) else [data]
    return f"{message}: " + ", ".join(prin1_to_string(item) for item in items)


def _error_text(args: tuple[Any, ...]) -> str:
    if args and isinstance(args[0], str):
        return format_string(args[0], list(args[1:]))
    return " ".join(princ_to_string(item) for item in args)


def signal(rt: "Runtime", condition: Any, data: Any) -> Any:
    name = require_symbol(condition).name
    raise ConditionSignal(name, data, message=_describe(rt, name, data))


def throw(rt: "Runtime", tag: Any, value: Any) -> Any:
    raise ThrowSignal(tag, value)


def error(rt: "Runtime", *args: Any) -> Any:
    raise ConditionSignal("error", NIL, message=_error_text(args))


def user_error(rt: "Runtime", *args: Any) -> Any:
    raise ConditionSignal("user-error", NIL, message=_error_text(args) or "user-error")


def define_error(rt: "Runtime", name: Any, message: Any = NIL, parent: Any = NIL) -> Any:
    """Register ``name`` under ``parent`` (a symbol or a list whose head is used)."""

    symbol = require_symbol(name)
    if isinstance(parent, Cons):
        parent = parent.car
    parent_name = "error" if parent is NIL else require_symbol(parent).name
    text = "" if message is NIL else require_string(message)
    try:
        rt.conditions.define(symbol.name, parent_name, message=text)
    except ConditionCycleError as exc:
        raise ConditionSignal("error", lisp_list(symbol), message=str(exc)) from exc
    properties = rt.plists.setdefault(symbol, {})
    properties[ERROR_MESSAGE] = text
    properties[ERROR_CONDITIONS] = from_list(Symbol(item) for item in rt.conditions.ancestry(symbol.name))
    rt.interpreter.set_global(symbol, symbol)
    return symbol


def error_message_string(rt: "Runtime", record: Any) -> str:
    """Text for a ``(CONDITION DATA)`` record as bound by ``condition-case``."""

    if not isinstance(record, Cons) or not isinstance(record.car, Symbol):
        return f"peculiar error: {prin1_to_string(record)}"
    name = record.car.name
    items = list(iterate(record.cdr))
    data = items[0] if items else NIL
    if isinstance(data, str):
        return data
    return _describe(rt, name, data)


CONDITION_PRIMITIVES: PrimitiveTable = {
    "signal": (signal, 2, 2),
    "throw": (throw, 2, 2),
    "error": (error, 1, None),
    "user-error": (user_error, 1, None),
    "define-error": (define_error, 1, 3),
    "error-message-string": (error_message_string, 1, 1),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, CONDITION_PRIMITIVES)


__all__ = ["CONDITION_PRIMITIVES", "install"]
