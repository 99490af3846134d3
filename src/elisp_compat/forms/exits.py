"""Non-local exits: ``catch``, ``condition-case``, ``ignore-errors`` and ``unwind-protect``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from elisp_compat.errors import ElispError, ThrowSignal
from elisp_compat.host.env import Environment
from elisp_compat.host.values import NIL, T, Cons, Symbol, iterate, lisp_eq, lisp_equal, to_list
from elisp_compat.runtime.telemetry import record_event

from .base import FormHandler, arg, condition_record, install_forms, is_catchable

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

SUCCESS = Symbol(":success")


def _tags_match(expected: Any, actual: Any) -> bool:
    if isinstance(expected, str) or isinstance(actual, str):
        return lisp_equal(expected, actual)
    return lisp_eq(expected, actual)


def catch(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    tag = rt.interpreter.eval(arg(args, 0), env)
    try:
        return rt.interpreter.eval_body(args[1:], env)
    except ThrowSignal as exc:
        if _tags_match(tag, exc.tag):
            return exc.value
        raise


def _handler_spec(spec: Any) -> Optional[str | List[str] | bool]:
    """Translate a clause head into what ``ConditionRegistry.matches`` takes."""

    if spec is T:
        return True
    if isinstance(spec, Symbol):
        return spec.name
    if isinstance(spec, Cons):
        return [item.name for item in iterate(spec) if isinstance(item, Symbol)]
    return None


def _clauses(args: List[Any]) -> Tuple[List[Cons], Optional[Cons]]:
    handlers: List[Cons] = []
    success: Optional[Cons] = None
    for clause in args:
        if not isinstance(clause, Cons):
            continue
        if clause.car is SUCCESS:
            success = clause
        else:
            handlers.append(clause)
    return handlers, success


def _run_clause(
    rt: "Runtime", var: Any, value: Any, clause: Cons, env: Environment
) -> Any:
    body = to_list(clause.cdr)
    if var is NIL or not isinstance(var, Symbol):
        return rt.interpreter.eval_body(body, env)
    if var in rt.interpreter.special_variables:
        with rt.interpreter.dynamic_bindings([(var, value)]):
            return rt.interpreter.eval_body(body, env)
    return rt.interpreter.eval_body(body, Environment(env, [(var, value)]))


def condition_case(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    """Evaluate the body form, routing a matching failure to its handler.

    The handler variable (unless ``nil``) is bound to ``(CONDITION DATA)``;
    a ``:success`` clause sees the body's value instead.
    """

    var = arg(args, 0)
    handlers, success = _clauses(args[2:])
    try:
        result = rt.interpreter.eval(arg(args, 1), env)
    except ElispError as exc:
        if not is_catchable(exc):
            raise
        for clause in handlers:
            spec = _handler_spec(clause.car)
            if spec is not None and rt.conditions.matches(spec, exc.condition):
                return _run_clause(rt, var, condition_record(exc), clause, env)
        raise
    if success is not None:
        return _run_clause(rt, var, result, success, env)
    return result


def ignore_errors(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    try:
        return rt.interpreter.eval_body(args, env)
    except ElispError as exc:
        if not is_catchable(exc):
            raise
        return NIL


def ignore_error(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    spec = _handler_spec(arg(args, 0))
    try:
        return rt.interpreter.eval_body(args[1:], env)
    except ElispError as exc:
        if not is_catchable(exc) or spec is None:
            raise
        if not rt.conditions.matches(spec, exc.condition):
            raise
        return NIL


def unwind_protect(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    """Run the cleanup forms on every exit; a body failure outranks a cleanup one."""

    try:
        result = rt.interpreter.eval(arg(args, 0), env)
    except BaseException:
        try:
            rt.interpreter.eval_body(args[1:], env)
        except Exception as cleanup_error:
            record_event(
                "forms.unwind_cleanup_failed",
                level="debug",
                data={"error": str(cleanup_error)},
                logger_name=rt.logger_name,
            )
        raise
    rt.interpreter.eval_body(args[1:], env)
    return result


EXIT_FORMS: Dict[str, FormHandler] = {
    "catch": catch,
    "condition-case": condition_case,
    "condition-case-unless-debug": condition_case,
    "ignore-errors": ignore_errors,
    "ignore-error": ignore_error,
    "unwind-protect": unwind_protect,
}


def install(rt: "Runtime") -> None:
    install_forms(rt, EXIT_FORMS)


__all__ = ["EXIT_FORMS", "install"]
