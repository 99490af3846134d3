"""Quoting, sequencing and conditional special forms."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from elisp_compat.host.env import Environment
from elisp_compat.host.values import LAMBDA, NIL, T, Cons, from_list, iterate, truthy

from .base import FormHandler, arg, install_forms

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime


def quote(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    del rt, env
    return arg(args, 0)


def function(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    target = arg(args, 0)
    if isinstance(target, Cons) and target.car is LAMBDA:
        return rt.interpreter.make_lambda(target.cdr, env)
    return target


def lambda_(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    return rt.interpreter.make_lambda(from_list(args), env)


def progn(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    return rt.interpreter.eval_body(args, env)


def prog1(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    result = rt.interpreter.eval(arg(args, 0), env)
    rt.interpreter.eval_body(args[1:], env)
    return result


def prog2(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    rt.interpreter.eval(arg(args, 0), env)
    result = rt.interpreter.eval(arg(args, 1), env)
    rt.interpreter.eval_body(args[2:], env)
    return result


def if_(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    if truthy(rt.interpreter.eval(arg(args, 0), env)):
        return rt.interpreter.eval(arg(args, 1), env)
    return rt.interpreter.eval_body(args[2:], env)


def when(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    if truthy(rt.interpreter.eval(arg(args, 0), env)):
        return rt.interpreter.eval_body(args[1:], env)
    return NIL


def unless(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    if truthy(rt.interpreter.eval(arg(args, 0), env)):
        return NIL
    return rt.interpreter.eval_body(args[1:], env)


def cond(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    for clause in args:
        if not isinstance(clause, Cons):
            continue
        test = rt.interpreter.eval(clause.car, env)
        if truthy(test):
            body = list(iterate(clause.cdr))
            return rt.interpreter.eval_body(body, env) if body else test
    return NIL


def and_(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    result: Any = T
    for form in args:
        result = rt.interpreter.eval(form, env)
        if not truthy(result):
            return NIL
    return result


def or_(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    for form in args:
        result = rt.interpreter.eval(form, env)
        if truthy(result):
            return result
    return NIL


def while_(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    test, body = arg(args, 0), args[1:]
    while truthy(rt.interpreter.eval(test, env)):
        rt.interpreter.eval_body(body, env)
    return NIL


def backquote(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    return rt.interpreter.quasiquote(arg(args, 0), env)


def progn_after_first(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    return rt.interpreter.eval_body(args[1:], env)


def ignored(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    """``interactive``/``declare`` outside a definition body do nothing."""

    del rt, args, env
    return NIL


CONTROL_FORMS: Dict[str, FormHandler] = {
    "quote": quote,
    "function": function,
    "lambda": lambda_,
    "progn": progn,
    "prog1": prog1,
    "prog2": prog2,
    "if": if_,
    "when": when,
    "unless": unless,
    "cond": cond,
    "and": and_,
    "or": or_,
    "while": while_,
    "`": backquote,
    "interactive": ignored,
    "declare": ignored,
    "eval-when-compile": progn,
    "eval-and-compile": progn,
    "with-no-warnings": progn,
    "with-suppressed-warnings": progn_after_first,
    "save-restriction": progn,
    "with-silent-modifications": progn,
}


def install(rt: "Runtime") -> None:
    install_forms(rt, CONTROL_FORMS)


__all__ = ["CONTROL_FORMS", "install"]
