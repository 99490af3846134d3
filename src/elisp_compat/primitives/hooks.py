"""Hook registration and running, global or local to the current buffer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

from elisp_compat.errors import TypeMismatchError
from elisp_compat.host.env import UNBOUND
from elisp_compat.host.values import LAMBDA, NIL, Cons, Lambda, Primitive, Symbol, iterate, lisp_equal, truthy

from .base import PrimitiveTable, install_primitives

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime


def _hook_name(hook: Any) -> str:
    if not isinstance(hook, Symbol) or hook is NIL:
        raise TypeMismatchError("symbolp", hook)
    return hook.name


def _is_single_function(value: Any) -> bool:
    if isinstance(value, (Lambda, Primitive)):
        return True
    return isinstance(value, Cons) and value.car is LAMBDA


def hook_functions(rt: "Runtime", hook: Symbol) -> List[Any]:
    """Functions run for ``hook``: buffer-local ones, then the variable's, then global additions."""

    functions: List[Any] = list(rt.current_buffer().hooks.get(hook.name, []))
    value = rt.interpreter.globals.lookup(hook)
    if value is not UNBOUND and value is not NIL:
        if _is_single_function(value):
            functions.append(value)
        elif isinstance(value, Cons):
            functions.extend(iterate(value))
        elif isinstance(value, Symbol):
            functions.append(value)
    functions.extend(rt.global_hooks.get(hook.name, []))
    return functions


def run_hook(rt: "Runtime", hook: Symbol, *args: Any) -> Any:
    result: Any = NIL
    for function in hook_functions(rt, hook):
        if isinstance(function, Symbol) and (function is NIL or function.name == "t"):
            continue
        result = rt.interpreter.apply(function, list(args))
    return result


def run_hooks(rt: "Runtime", *hooks: Any) -> Any:
    result: Any = NIL
    for hook in hooks:
        if isinstance(hook, Symbol) and hook is not NIL:
            result = run_hook(rt, hook)
    return result


def run_hook_with_args(rt: "Runtime", hook: Any, *args: Any) -> Any:
    return run_hook(rt, Symbol(_hook_name(hook)), *args)


def add_hook(
    rt: "Runtime", hook: Any, function: Any, depth: Any = NIL, local: Any = NIL
) -> Any:
    """Register ``function`` once; a non-nil ``depth`` appends instead of prepending."""

    name = _hook_name(hook)
    table = rt.current_buffer().hooks if truthy(local) else rt.global_hooks
    functions = table.setdefault(name, [])
    if any(lisp_equal(existing, function) for existing in functions):
        return NIL
    if truthy(depth):
        functions.append(function)
    else:
        functions.insert(0, function)
    return NIL


def remove_hook(rt: "Runtime", hook: Any, function: Any, local: Any = NIL) -> Any:
    name = _hook_name(hook)
    table = rt.current_buffer().hooks if truthy(local) else rt.global_hooks
    functions = table.get(name)
    if functions:
        table[name] = [item for item in functions if not lisp_equal(item, function)]
    return NIL


HOOK_PRIMITIVES: PrimitiveTable = {
    "add-hook": (add_hook, 2, 4),
    "remove-hook": (remove_hook, 2, 3),
    "run-hooks": (run_hooks, 0, None),
    "run-mode-hooks": (run_hooks, 0, None),
    "run-hook-with-args": (run_hook_with_args, 1, None),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, HOOK_PRIMITIVES)


__all__ = ["HOOK_PRIMITIVES", "hook_functions", "run_hook", "install"]
