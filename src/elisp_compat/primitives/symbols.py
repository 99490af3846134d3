"""Symbols: interning, value and function cells, property lists, equality."""

from __future__ import annotations

from itertools import count
from typing import TYPE_CHECKING, Any

from elisp_compat.errors import TypeMismatchError
from elisp_compat.host.env import UNBOUND
from elisp_compat.host.evaluator import void_variable
from elisp_compat.host.values import (
    NIL,
    T,
    Symbol,
    as_bool,
    from_list,
    intern,
    intern_soft,
    lisp_eq,
    lisp_eql,
    lisp_equal,
    type_name,
)

from .base import PrimitiveTable, ensure_settable, install_primitives, require_string
from .editing import resolve_buffer

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

_gensym_counter = count()


def require_symbol(value: Any) -> Symbol:
    if not isinstance(value, Symbol):
        raise TypeMismatchError("symbolp", value)
    return value


def uninterned(name: str) -> Symbol:
    """A fresh symbol that is never returned by ``intern``."""

    symbol = object.__new__(Symbol)
    symbol.name = name
    return symbol


def intern_(rt: "Runtime", name: Any, *_: Any) -> Symbol:
    return intern(require_string(name))


def intern_soft_(rt: "Runtime", name: Any, *_: Any) -> Any:
    if isinstance(name, Symbol):
        return name if intern_soft(name.name) is name else NIL
    found = intern_soft(require_string(name))
    return NIL if found is None else found


def symbol_name(rt: "Runtime", symbol: Any) -> str:
    return require_symbol(symbol).name


def symbol_value(rt: "Runtime", symbol: Any) -> Any:
    symbol = require_symbol(symbol)
    if symbol is NIL or symbol is T or symbol.is_keyword:
        return symbol
    value = rt.interpreter.globals.lookup(symbol)
    if value is UNBOUND:
        raise void_variable(symbol)
    return value


def symbol_function(rt: "Runtime", symbol: Any) -> Any:
    value = rt.interpreter.function_cell(require_symbol(symbol))
    return NIL if value is UNBOUND else value


def set_(rt: "Runtime", symbol: Any, value: Any) -> Any:
    """Set the global value, keeping a buffer-local copy in sync."""

    symbol = ensure_settable(require_symbol(symbol))
    rt.interpreter.globals.define(symbol, value)
    locals_ = rt.current_buffer().local_variables
    if symbol in locals_ or symbol in rt.automatic_locals:
        locals_[symbol] = value
    return value


def set_default(rt: "Runtime", symbol: Any, value: Any) -> Any:
    return rt.interpreter.globals.define(ensure_settable(require_symbol(symbol)), value)


def default_value(rt: "Runtime", symbol: Any) -> Any:
    return symbol_value(rt, symbol)


def fset(rt: "Runtime", symbol: Any, definition: Any) -> Any:
    symbol = require_symbol(symbol)
    if symbol is NIL:
        ensure_settable(symbol)
    return rt.interpreter.fset(symbol, definition)


def boundp(rt: "Runtime", symbol: Any) -> Any:
    symbol = require_symbol(symbol)
    if symbol is NIL or symbol is T or symbol.is_keyword:
        return T
    return as_bool(rt.interpreter.globals.is_bound(symbol))


def fboundp(rt: "Runtime", symbol: Any) -> Any:
    return as_bool(rt.interpreter.fboundp(require_symbol(symbol)))


def makunbound(rt: "Runtime", symbol: Any) -> Any:
    symbol = ensure_settable(require_symbol(symbol))
    rt.interpreter.globals.unbind(symbol)
    rt.current_buffer().local_variables.pop(symbol, None)
    return symbol


def fmakunbound(rt: "Runtime", symbol: Any) -> Any:
    symbol = require_symbol(symbol)
    rt.interpreter.fset(symbol, NIL)
    return symbol


def put(rt: "Runtime", symbol: Any, prop: Any, value: Any) -> Any:
    rt.plists.setdefault(require_symbol(symbol), {})[require_symbol(prop)] = value
    return value


def get(rt: "Runtime", symbol: Any, prop: Any, *_: Any) -> Any:
    return rt.plists.get(require_symbol(symbol), {}).get(prop, NIL)


def symbol_plist(rt: "Runtime", symbol: Any) -> Any:
    items = []
    for prop, value in rt.plists.get(require_symbol(symbol), {}).items():
        items.extend((prop, value))
    return from_list(items)


def make_symbol(rt: "Runtime", name: Any) -> Symbol:
    return uninterned(require_string(name))


def gensym(rt: "Runtime", prefix: Any = NIL) -> Symbol:
    stem = "g" if prefix is NIL else require_string(prefix)
    return uninterned(f"{stem}{next(_gensym_counter)}")


def make_local_variable(rt: "Runtime", symbol: Any) -> Any:
    symbol = require_symbol(symbol)
    locals_ = rt.current_buffer().local_variables
    if symbol not in locals_:
        value = rt.interpreter.globals.lookup(symbol)
        locals_[symbol] = NIL if value is UNBOUND else value
    return symbol


def make_variable_buffer_local(rt: "Runtime", symbol: Any) -> Any:
    symbol = require_symbol(symbol)
    rt.automatic_locals.add(symbol)
    rt.interpreter.special_variables.add(symbol)
    if not rt.interpreter.globals.is_bound(symbol):
        rt.interpreter.globals.define(symbol, NIL)
    return symbol


def kill_local_variable(rt: "Runtime", symbol: Any) -> Any:
    symbol = require_symbol(symbol)
    rt.current_buffer().local_variables.pop(symbol, None)
    return symbol


def local_variable_p(rt: "Runtime", symbol: Any, buffer: Any = NIL) -> Any:
    target = rt.current_buffer() if buffer is NIL else resolve_buffer(rt, buffer)
    return as_bool(require_symbol(symbol) in target.local_variables)


def buffer_local_value(rt: "Runtime", symbol: Any, buffer: Any) -> Any:
    symbol = require_symbol(symbol)
    locals_ = resolve_buffer(rt, buffer).local_variables
    if symbol in locals_:
        return locals_[symbol]
    return symbol_value(rt, symbol)


def special_variable_p(rt: "Runtime", symbol: Any) -> Any:
    return as_bool(require_symbol(symbol) in rt.interpreter.special_variables)


def symbolp(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, Symbol))


def keywordp(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, Symbol) and value.is_keyword)


def booleanp(rt: "Runtime", value: Any) -> Any:
    return as_bool(value is NIL or value is T)


def eq(rt: "Runtime", left: Any, right: Any) -> Any:
    return as_bool(lisp_eq(left, right))


def eql(rt: "Runtime", left: Any, right: Any) -> Any:
    return as_bool(lisp_eql(left, right))


def equal(rt: "Runtime", left: Any, right: Any) -> Any:
    return as_bool(lisp_equal(left, right))


def type_of(rt: "Runtime", value: Any) -> Symbol:
    return intern(type_name(value))


SYMBOL_PRIMITIVES: PrimitiveTable = {
    "intern": (intern_, 1, 2),
    "intern-soft": (intern_soft_, 1, 2),
    "symbol-name": (symbol_name, 1, 1),
    "symbol-value": (symbol_value, 1, 1),
    "symbol-function": (symbol_function, 1, 1),
    "indirect-variable": (lambda rt, symbol: symbol, 1, 1),
    "set": (set_, 2, 2),
    "set-default": (set_default, 2, 2),
    "default-value": (default_value, 1, 1),
    "fset": (fset, 2, 2),
    "boundp": (boundp, 1, 1),
    "default-boundp": (boundp, 1, 1),
    "fboundp": (fboundp, 1, 1),
    "makunbound": (makunbound, 1, 1),
    "fmakunbound": (fmakunbound, 1, 1),
    "put": (put, 3, 3),
    "get": (get, 2, 2),
    "function-get": (get, 2, 3),
    "symbol-plist": (symbol_plist, 1, 1),
    "make-symbol": (make_symbol, 1, 1),
    "gensym": (gensym, 0, 1),
    "make-local-variable": (make_local_variable, 1, 1),
    "make-variable-buffer-local": (make_variable_buffer_local, 1, 1),
    "kill-local-variable": (kill_local_variable, 1, 1),
    "local-variable-p": (local_variable_p, 1, 2),
    "buffer-local-value": (buffer_local_value, 2, 2),
    "special-variable-p": (special_variable_p, 1, 1),
    "symbolp": (symbolp, 1, 1),
    "keywordp": (keywordp, 1, 1),
    "booleanp": (booleanp, 1, 1),
    "eq": (eq, 2, 2),
    "eql": (eql, 2, 2),
    "equal": (equal, 2, 2),
    "type-of": (type_of, 1, 1),
    "cl-type-of": (type_of, 1, 1),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, SYMBOL_PRIMITIVES)


__all__ = ["SYMBOL_PRIMITIVES", "require_symbol", "uninterned", "install"]
