"""Variable binding and assignment: ``let``, ``setq`` and the ``defvar`` family."""

from __future__ import annotations

from contextlib import ExitStack
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from elisp_compat.errors import ConditionSignal
from elisp_compat.host.env import UNBOUND, Environment
from elisp_compat.host.values import NIL, Cons, Symbol, lisp_list

from .base import FormHandler, arg, ensure_settable, install_forms, require_symbol

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

BindingSpec = Tuple[Symbol, Optional[Any]]


def binding_specs(spec: Any) -> List[BindingSpec]:
    """``((a 1) b (c))`` as ``[(a, 1), (b, None), (c, None)]``."""

    specs: List[BindingSpec] = []
    cursor = spec
    while isinstance(cursor, Cons):
        item = cursor.car
        if isinstance(item, Symbol):
            specs.append((item, None))
        elif isinstance(item, Cons):
            init = item.cdr.car if isinstance(item.cdr, Cons) else None
            specs.append((require_symbol(item.car), init))
        else:
            raise ConditionSignal(
                "error", lisp_list(item), message="malformed let binding"
            )
        cursor = cursor.cdr
    return specs


def bind_and_run(
    rt: "Runtime", pairs: List[Tuple[Symbol, Any]], body: List[Any], env: Environment
) -> Any:
    """Evaluate ``body`` with ``pairs`` bound; special variables bind dynamically."""

    special = rt.interpreter.special_variables
    lexical = [(symbol, value) for symbol, value in pairs if symbol not in special]
    dynamic = [(symbol, value) for symbol, value in pairs if symbol in special]
    frame = Environment(env, lexical)
    if not dynamic:
        return rt.interpreter.eval_body(body, frame)
    with rt.interpreter.dynamic_bindings(dynamic):
        return rt.interpreter.eval_body(body, frame)


def let(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    # every initializer sees the outer scope only
    pairs = [
        (symbol, NIL if init is None else rt.interpreter.eval(init, env))
        for symbol, init in binding_specs(arg(args, 0))
    ]
    return bind_and_run(rt, pairs, args[1:], env)


def let_star(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    special = rt.interpreter.special_variables
    frame = Environment(env)
    with ExitStack() as stack:
        for symbol, init in binding_specs(arg(args, 0)):
            value = NIL if init is None else rt.interpreter.eval(init, frame)
            if symbol in special:
                stack.enter_context(rt.interpreter.dynamic_bindings([(symbol, value)]))
            else:
                frame.define(symbol, value)
        return rt.interpreter.eval_body(args[1:], frame)


def assign(rt: "Runtime", symbol: Symbol, value: Any, env: Environment) -> Any:
    """``setq`` semantics for one symbol, keeping buffer-local copies in sync."""

    ensure_settable(symbol)
    if symbol in rt.interpreter.special_variables and not env.is_bound(symbol):
        rt.interpreter.globals.define(symbol, value)
    else:
        env.assign(symbol, value)
    locals_ = rt.current_buffer().local_variables
    if symbol in locals_ or symbol in rt.automatic_locals:
        locals_[symbol] = value
    return value


def setq(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    if len(args) % 2:
        raise ConditionSignal(
            "wrong-number-of-arguments",
            lisp_list(Symbol("setq"), len(args)),
            message="setq expects an even number of arguments",
        )
    result: Any = NIL
    for index in range(0, len(args), 2):
        symbol = require_symbol(args[index])
        result = assign(rt, symbol, rt.interpreter.eval(args[index + 1], env), env)
    return result


def setq_local(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    result: Any = NIL
    buffer = rt.current_buffer()
    for index in range(0, len(args) - 1, 2):
        symbol = ensure_settable(require_symbol(args[index]))
        result = rt.interpreter.eval(args[index + 1], env)
        buffer.local_variables[symbol] = result
        env.assign(symbol, result)
    return result


def setq_default(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    result: Any = NIL
    for index in range(0, len(args) - 1, 2):
        symbol = ensure_settable(require_symbol(args[index]))
        result = rt.interpreter.eval(args[index + 1], env)
        rt.interpreter.globals.define(symbol, result)
    return result


def _define_variable(
    rt: "Runtime", args: List[Any], env: Environment, *, constant: bool = False
) -> Symbol:
    symbol = ensure_settable(require_symbol(arg(args, 0)))
    rt.interpreter.special_variables.add(symbol)
    if constant:
        rt.constants.add(symbol)
    if len(args) < 2:
        return symbol
    globals_ = rt.interpreter.globals
    if globals_.lookup(symbol) is UNBOUND:
        globals_.define(symbol, rt.interpreter.eval(args[1], env))
    docstring = arg(args, 2)
    if isinstance(docstring, str):
        rt.plists.setdefault(symbol, {})[Symbol("variable-documentation")] = docstring
    return symbol


def defvar(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    return _define_variable(rt, args, env)


def defconst(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    return _define_variable(rt, args, env, constant=True)


def defvar_local(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    symbol = _define_variable(rt, args, env)
    rt.automatic_locals.add(symbol)
    return symbol


BINDING_FORMS: Dict[str, FormHandler] = {
    "let": let,
    "let*": let_star,
    "setq": setq,
    "setq-local": setq_local,
    "setq-default": setq_default,
    "defvar": defvar,
    "defconst": defconst,
    "defcustom": defvar,
    "defvar-local": defvar_local,
}


def install(rt: "Runtime") -> None:
    install_forms(rt, BINDING_FORMS)


__all__ = ["BINDING_FORMS", "binding_specs", "bind_and_run", "assign", "install"]
