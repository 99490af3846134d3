"""Generalized places: ``push``/``pop``, ``incf``/``decf``, ``setf`` and ``cl-rotatef``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List

from elisp_compat.errors import ConditionSignal, TypeMismatchError
from elisp_compat.host.env import UNBOUND, Environment
from elisp_compat.host.values import NIL, Cons, Symbol, is_number, lisp_list, to_list
from elisp_compat.primitives.sequences import elt_get, elt_set, nthcdr

from .base import FormHandler, arg, install_forms, require_symbol
from .binding import assign

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime


@dataclass(slots=True)
class Place:
    """Accessor pair for a settable location; subforms are evaluated once."""

    get: Callable[[], Any]
    set: Callable[[Any], Any]


def _symbol_place(rt: "Runtime", symbol: Symbol, env: Environment) -> Place:
    def getter() -> Any:
        value = env.lookup(symbol)
        return NIL if value is UNBOUND else value

    return Place(getter, lambda value: assign(rt, symbol, value, env))


def _cons_of(value: Any) -> Cons:
    if not isinstance(value, Cons):
        raise TypeMismatchError("consp", value)
    return value


def _nth_cell(index: Any, sequence: Any) -> Cons:
    return _cons_of(nthcdr(index, sequence))


def _set_car(cell: Cons, value: Any) -> Any:
    cell.car = value
    return value


def _set_cdr(cell: Cons, value: Any) -> Any:
    cell.cdr = value
    return value


def resolve_place(rt: "Runtime", form: Any, env: Environment) -> Place:
    """Build a ``Place`` for a symbol or an ``(aref|elt|nth|car|cdr|get ...)`` form."""

    if isinstance(form, Symbol):
        return _symbol_place(rt, form, env)
    if not isinstance(form, Cons) or not isinstance(form.car, Symbol):
        raise ConditionSignal("error", lisp_list(form), message="invalid place form")
    head = form.car.name
    operands = [rt.interpreter.eval(item, env) for item in to_list(form.cdr)]
    if head in ("aref", "elt") and len(operands) == 2:
        sequence, index = operands
        return Place(
            lambda: elt_get(sequence, index),
            lambda value: elt_set(sequence, index, value),
        )
    if head == "nth" and len(operands) == 2:
        index, sequence = operands
        cell = _nth_cell(index, sequence)
        return Place(lambda: cell.car, lambda value: _set_car(cell, value))
    if head in ("car", "cdr") and len(operands) == 1:
        cell = _cons_of(operands[0])
        if head == "car":
            return Place(lambda: cell.car, lambda value: _set_car(cell, value))
        return Place(lambda: cell.cdr, lambda value: _set_cdr(cell, value))
    if head == "get" and len(operands) == 2:
        symbol, prop = require_symbol(operands[0]), operands[1]
        plist = rt.plists.setdefault(symbol, {})

        def put(value: Any) -> Any:
            plist[prop] = value
            return value

        return Place(lambda: plist.get(prop, NIL), put)
    raise ConditionSignal(
        "error", lisp_list(form), message=f"unsupported place form: {head}"
    )


def _number(value: Any) -> Any:
    if value is NIL:
        return 0
    if not is_number(value):
        raise TypeMismatchError("number-or-marker-p", value)
    return value


def _adjust(rt: "Runtime", args: List[Any], env: Environment, sign: int) -> Any:
    place = resolve_place(rt, arg(args, 0), env)
    step = _number(rt.interpreter.eval(args[1], env)) if len(args) > 1 else 1
    return place.set(_number(place.get()) + sign * step)


def incf(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    return _adjust(rt, args, env, 1)


def decf(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    return _adjust(rt, args, env, -1)


def push(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    value = rt.interpreter.eval(arg(args, 0), env)
    place = resolve_place(rt, arg(args, 1), env)
    return place.set(Cons(value, place.get()))


def pop(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    place = resolve_place(rt, arg(args, 0), env)
    current = place.get()
    if current is NIL:
        return NIL
    cell = _cons_of(current)
    place.set(cell.cdr)
    return cell.car


def setf(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    result: Any = NIL
    for index in range(0, len(args) - 1, 2):
        place = resolve_place(rt, args[index], env)
        result = place.set(rt.interpreter.eval(args[index + 1], env))
    return result


def rotatef(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    """Shift each place's value one place to the left, wrapping around."""

    places = [resolve_place(rt, form, env) for form in args]
    if len(places) < 2:
        return NIL
    values = [place.get() for place in places]
    for place, value in zip(places, values[1:] + values[:1]):
        place.set(value)
    return NIL


PLACE_FORMS: Dict[str, FormHandler] = {
    "push": push,
    "pop": pop,
    "incf": incf,
    "decf": decf,
    "cl-incf": incf,
    "cl-decf": decf,
    "setf": setf,
    "cl-rotatef": rotatef,
}


def install(rt: "Runtime") -> None:
    install_forms(rt, PLACE_FORMS)


__all__ = ["Place", "PLACE_FORMS", "resolve_place", "install"]
