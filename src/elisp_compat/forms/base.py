"""Shared plumbing for special-form handlers."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Any, Callable, List, Mapping

from elisp_compat.errors import ElispError, ThrowSignal, TypeMismatchError
from elisp_compat.host.env import Environment
from elisp_compat.host.values import NIL, QUOTE, Cons, Symbol, lisp_list
from elisp_compat.primitives.base import ensure_settable

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

FormHandler = Callable[["Runtime", List[Any], Environment], Any]


def install_forms(rt: "Runtime", table: Mapping[str, FormHandler]) -> None:
    for name, handler in table.items():
        rt.interpreter.define_special_form(name, partial(handler, rt))


def arg(args: List[Any], index: int) -> Any:
    return args[index] if index < len(args) else NIL


def require_symbol(value: Any) -> Symbol:
    if not isinstance(value, Symbol):
        raise TypeMismatchError("symbolp", value)
    return value


def unquote(form: Any) -> Any:
    """``X`` for ``(quote X)``, otherwise the form itself."""

    if isinstance(form, Cons) and form.car is QUOTE and isinstance(form.cdr, Cons):
        return form.cdr.car
    return form


def is_catchable(exc: ElispError) -> bool:
    """Failures ``condition-case`` may intercept; parse and missing-primitive errors never are."""

    return exc.condition is not None


def condition_record(exc: ElispError) -> Any:
    """The ``(NAME DATA)`` list bound by ``condition-case`` handlers.

    ``DATA`` is the signal's data when there is some, else the failure text.
    """

    name = Symbol(exc.condition or "error")
    if isinstance(exc, ThrowSignal):
        return lisp_list(name, lisp_list(exc.tag, exc.value))
    data = exc.data
    if data is None or data is NIL:
        data = str(exc)
    return lisp_list(name, data)


__all__ = [
    "FormHandler",
    "install_forms",
    "arg",
    "require_symbol",
    "unquote",
    "ensure_settable",
    "is_catchable",
    "condition_record",
]
