"""Counting and list iteration: ``dotimes``, ``dolist`` and a subset of ``cl-loop``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from elisp_compat.errors import TypeMismatchError
from elisp_compat.host.env import Environment
from elisp_compat.host.values import NIL, Cons, Symbol, Vector, from_list, is_list, is_number, to_list, truthy

from .base import FormHandler, arg, install_forms, require_symbol

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

CL_LOOP_ITERATION_CAP = 100000
TERMINAL_CLAUSES = frozenset({"do", "sum", "collect"})


def _loop_spec(args: List[Any]) -> List[Any]:
    spec = arg(args, 0)
    if not isinstance(spec, Cons):
        raise TypeMismatchError("listp", spec)
    return to_list(spec)


def _iteration_items(value: Any) -> List[Any]:
    if is_list(value):
        return to_list(value)
    if isinstance(value, Vector):
        return list(value.items)
    raise TypeMismatchError("listp", value)


def dotimes(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    spec = _loop_spec(args)
    var = require_symbol(spec[0])
    count = rt.interpreter.eval(spec[1] if len(spec) > 1 else NIL, env)
    if not is_number(count):
        raise TypeMismatchError("integerp", count)
    frame = Environment(env, [(var, 0)])
    body = args[1:]
    for index in range(int(count)):
        frame.define(var, index)
        rt.interpreter.eval_body(body, frame)
    frame.define(var, int(count))
    return rt.interpreter.eval(spec[2], frame) if len(spec) > 2 else NIL


def dolist(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    spec = _loop_spec(args)
    var = require_symbol(spec[0])
    items = _iteration_items(rt.interpreter.eval(spec[1] if len(spec) > 1 else NIL, env))
    frame = Environment(env, [(var, NIL)])
    body = args[1:]
    for item in items:
        frame.define(var, item)
        rt.interpreter.eval_body(body, frame)
    frame.define(var, NIL)
    return rt.interpreter.eval(spec[2], frame) if len(spec) > 2 else NIL


# cl-loop ------------------------------------------------------------------------


def _keyword(token: Any) -> str:
    return token.name if isinstance(token, Symbol) else ""


@dataclass(slots=True)
class _SequenceClause:
    var: Symbol
    form: Any
    across: bool = False
    items: List[Any] = field(default_factory=list)

    def prepare(self, rt: "Runtime", frame: Environment) -> None:
        value = rt.interpreter.eval(self.form, frame)
        if is_list(value):
            self.items = to_list(value)
        elif isinstance(value, Vector):
            self.items = list(value.items)
        elif self.across and isinstance(value, str):
            self.items = [ord(ch) for ch in value]
        else:
            self.items = []

    def advance(self, rt: "Runtime", frame: Environment, iteration: int) -> bool:
        del rt
        if iteration >= len(self.items):
            return False
        frame.define(self.var, self.items[iteration])
        return True


@dataclass(slots=True)
class _RangeClause:
    var: Symbol
    start_form: Any
    end_form: Any
    step_form: Any = 1
    comparison: str = "none"
    current: Any = 0
    end: Any = None
    step: Any = 1

    def prepare(self, rt: "Runtime", frame: Environment) -> None:
        values = [
            rt.interpreter.eval(form, frame)
            for form in (self.start_form, self.end_form, self.step_form)
        ]
        for value in values:
            if value is not NIL and not is_number(value):
                raise TypeMismatchError("numberp", value)
        self.current, self.end, step = values
        self.step = abs(step) or 1
        if self.comparison in ("downto", "above"):
            self.step = -self.step

    def advance(self, rt: "Runtime", frame: Environment, iteration: int) -> bool:
        del rt
        value = self.current + self.step * iteration
        if self.end is not NIL and self.end is not None:
            if self.comparison in ("to", "upto") and value > self.end:
                return False
            if self.comparison == "below" and value >= self.end:
                return False
            if self.comparison == "downto" and value < self.end:
                return False
            if self.comparison == "above" and value <= self.end:
                return False
        frame.define(self.var, value)
        return True


@dataclass(slots=True)
class _AssignClause:
    var: Symbol
    form: Any
    then: Optional[Any] = None

    def prepare(self, rt: "Runtime", frame: Environment) -> None:
        del rt, frame

    def advance(self, rt: "Runtime", frame: Environment, iteration: int) -> bool:
        form = self.then if iteration and self.then is not None else self.form
        frame.define(self.var, rt.interpreter.eval(form, frame))
        return True


@dataclass(slots=True)
class _LoopPlan:
    mode: str = ""
    body: List[Any] = field(default_factory=list)
    clauses: List[Any] = field(default_factory=list)
    repeat_form: Optional[Any] = None
    while_forms: List[Any] = field(default_factory=list)
    until_forms: List[Any] = field(default_factory=list)


def _parse_for(tokens: List[Any], index: int, plan: _LoopPlan) -> int:
    var = require_symbol(tokens[index + 1])
    op = _keyword(tokens[index + 2])
    if op == "=":
        form = tokens[index + 3]
        index += 4
        then = None
        if index < len(tokens) and _keyword(tokens[index]) == "then":
            then = tokens[index + 1]
            index += 2
        plan.clauses.append(_AssignClause(var, form, then))
        return index
    if op in ("in", "across"):
        plan.clauses.append(_SequenceClause(var, tokens[index + 3], across=op == "across"))
        return index + 4
    if op == "below":
        plan.clauses.append(_RangeClause(var, 0, tokens[index + 3], 1, "below"))
        return index + 4
    if op in ("from", "upfrom", "downfrom"):
        clause = _RangeClause(var, tokens[index + 3], NIL, 1, "downto" if op == "downfrom" else "none")
        index += 4
        while index + 1 < len(tokens) and _keyword(tokens[index]) in (
            "by", "to", "upto", "downto", "below", "above",
        ):
            word = _keyword(tokens[index])
            if word == "by":
                clause.step_form = tokens[index + 1]
            else:
                clause.comparison = word
                clause.end_form = tokens[index + 1]
            index += 2
        plan.clauses.append(clause)
        return index
    return index + 3


def _parse_loop(rt: "Runtime", tokens: List[Any], frame: Environment) -> _LoopPlan:
    """Walk the clause list; ``with`` bindings are evaluated as they are met."""

    plan = _LoopPlan()
    index = 0
    while index < len(tokens):
        word = _keyword(tokens[index])
        if word in TERMINAL_CLAUSES:
            plan.mode = word
            plan.body = tokens[index + 1 :]
            break
        if word == "with" and index + 1 < len(tokens):
            var = require_symbol(tokens[index + 1])
            index += 2
            value: Any = NIL
            if index < len(tokens) and _keyword(tokens[index]) == "=":
                value = rt.interpreter.eval(tokens[index + 1], frame)
                index += 2
            frame.define(var, value)
        elif word in ("while", "until") and index + 1 < len(tokens):
            target = plan.while_forms if word == "while" else plan.until_forms
            target.append(tokens[index + 1])
            index += 2
        elif word == "repeat" and index + 1 < len(tokens):
            plan.repeat_form = tokens[index + 1]
            index += 2
        elif word == "for" and index + 3 < len(tokens):
            index = _parse_for(tokens, index, plan)
        else:
            index += 1
    return plan


def cl_loop(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    """Run the supported ``cl-loop`` clauses.

    A loop needs a terminal ``do``, ``sum`` or ``collect`` clause; without
    one a warning is emitted once and the loop is skipped. Iterations stop
    after ``CL_LOOP_ITERATION_CAP`` rounds.
    """

    if not args:
        return NIL
    frame = Environment(env)
    plan = _parse_loop(rt, args, frame)
    if not plan.mode:
        rt.warn_once(
            "cl-loop-unsupported",
            "cl-loop form is not fully supported; skipping unsupported loop",
        )
        return NIL
    for clause in plan.clauses:
        clause.prepare(rt, frame)
    repeat: Optional[int] = None
    if plan.repeat_form is not None:
        count = rt.interpreter.eval(plan.repeat_form, frame)
        if not is_number(count):
            raise TypeMismatchError("integerp", count)
        repeat = max(int(count), 0)

    result: Any = NIL
    total: Any = 0
    collected: List[Any] = []
    for iteration in range(CL_LOOP_ITERATION_CAP):
        if repeat is not None and iteration >= repeat:
            break
        if not all(clause.advance(rt, frame, iteration) for clause in plan.clauses):
            break
        if any(not truthy(rt.interpreter.eval(form, frame)) for form in plan.while_forms):
            break
        if any(truthy(rt.interpreter.eval(form, frame)) for form in plan.until_forms):
            break
        if plan.mode == "do":
            result = rt.interpreter.eval_body(plan.body, frame)
        elif plan.body:
            value = rt.interpreter.eval(plan.body[0], frame)
            if plan.mode == "collect":
                collected.append(value)
            elif is_number(value):
                total += value
    if plan.mode == "sum":
        return total
    if plan.mode == "collect":
        return from_list(collected)
    return result


ITERATION_FORMS: Dict[str, FormHandler] = {
    "dotimes": dotimes,
    "dolist": dolist,
    "cl-dotimes": dotimes,
    "cl-dolist": dolist,
    "cl-loop": cl_loop,
}


def install(rt: "Runtime") -> None:
    install_forms(rt, ITERATION_FORMS)


__all__ = ["CL_LOOP_ITERATION_CAP", "ITERATION_FORMS", "install"]
