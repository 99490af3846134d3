"""Structural dispatch with ``pcase``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from elisp_compat.host.env import Environment
from elisp_compat.host.values import NIL, QUOTE, T, Cons, Symbol, lisp_equal, to_list, truthy

from .base import FormHandler, arg, install_forms

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

WILDCARD = Symbol("_")

Bindings = List[Tuple[Symbol, Any]]


def match_pattern(
    rt: "Runtime", pattern: Any, value: Any, bindings: Bindings, env: Environment
) -> bool:
    """Match ``value`` against ``pattern``, appending variable bindings on success.

    Supported patterns: ``_`` and ``t`` match anything, other symbols bind
    the value, ``'X`` compares with ``equal``, ``(or P...)`` takes the first
    alternative that matches, ``(and P...)`` needs all of them, ``(pred F)``
    calls ``F`` on the value and ``(guard EXPR)`` tests an expression seeing
    the bindings so far. Anything else is a literal compared with ``equal``.
    """

    if isinstance(pattern, Symbol):
        if pattern is WILDCARD or pattern is T:
            return True
        if pattern is NIL or pattern.is_keyword:
            return lisp_equal(pattern, value)
        bindings.append((pattern, value))
        return True
    if isinstance(pattern, Cons) and isinstance(pattern.car, Symbol):
        head = pattern.car
        operands = to_list(pattern.cdr)
        if head is QUOTE:
            return lisp_equal(arg(operands, 0), value)
        if head.name == "or":
            for alternative in operands:
                trial: Bindings = []
                if match_pattern(rt, alternative, value, trial, env):
                    bindings.extend(trial)
                    return True
            return False
        if head.name == "and":
            trial = []
            for conjunct in operands:
                if not match_pattern(rt, conjunct, value, trial, env):
                    return False
            bindings.extend(trial)
            return True
        if head.name == "pred":
            predicate = arg(operands, 0)
            return truthy(rt.interpreter.funcall(predicate, value))
        if head.name == "guard":
            scope = Environment(env, list(bindings))
            return truthy(rt.interpreter.eval(arg(operands, 0), scope))
    return lisp_equal(pattern, value)


def pcase(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    subject = rt.interpreter.eval(arg(args, 0), env)
    for clause in args[1:]:
        if not isinstance(clause, Cons):
            continue
        bindings: Bindings = []
        if not match_pattern(rt, clause.car, subject, bindings, env):
            continue
        scope = Environment(env, bindings) if bindings else env
        return rt.interpreter.eval_body(to_list(clause.cdr), scope)
    return NIL


PCASE_FORMS: Dict[str, FormHandler] = {
    "pcase": pcase,
}


def install(rt: "Runtime") -> None:
    install_forms(rt, PCASE_FORMS)


__all__ = ["PCASE_FORMS", "match_pattern", "install"]
