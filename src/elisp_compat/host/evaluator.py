"""Generic eval/apply over dialect values.

The interpreter knows nothing about buffers or conditions; every dialect
construct is registered on it as a primitive or special form at startup.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from elisp_compat.errors import ConditionSignal, ElispError, UnimplementedPrimitiveError

from .env import UNBOUND, Environment
from .printer import prin1_to_string
from .values import (
    BACKQUOTE,
    COMMA,
    COMMA_AT,
    LAMBDA,
    NIL,
    T,
    Cons,
    Lambda,
    Macro,
    ParamSpec,
    Primitive,
    SpecialForm,
    Symbol,
    Vector,
    from_list,
    iterate,
    lisp_list,
    to_list,
)

MAX_ALIAS_DEPTH = 32
MAX_MACRO_EXPANSIONS = 1000


def void_variable(symbol: Symbol) -> ConditionSignal:
    return ConditionSignal(
        "void-variable",
        lisp_list(symbol),
        message=f"Symbol's value as variable is void: {symbol.name}",
    )


def invalid_function(value: Any) -> ConditionSignal:
    return ConditionSignal(
        "invalid-function",
        lisp_list(value),
        message=f"Invalid function: {prin1_to_string(value)}",
    )


def host_failure(exc: Exception) -> ConditionSignal:
    """A Python failure inside a primitive, surfaced as a plain ``error``."""

    return ConditionSignal("error", NIL, message=str(exc) or type(exc).__name__)


class Interpreter:
    """Lisp-2 evaluator: values in environments, functions in a separate table."""

    def __init__(self) -> None:
        self.globals = Environment()
        self.functions: Dict[Symbol, Any] = {}
        self.special_variables: set[Symbol] = set()

    # registration -------------------------------------------------------

    def define_primitive(
        self,
        name: str,
        fn: Callable[..., Any],
        min_args: int = 0,
        max_args: Optional[int] = None,
    ) -> Primitive:
        primitive = Primitive(name, fn, min_args, max_args)
        self.functions[Symbol(name)] = primitive
        return primitive

    def define_special_form(
        self, name: str, handler: Callable[[List[Any], Environment], Any]
    ) -> SpecialForm:
        form = SpecialForm(name, handler)
        self.functions[Symbol(name)] = form
        return form

    def set_global(self, symbol: Symbol, value: Any) -> Any:
        return self.globals.define(symbol, value)

    # function cells -----------------------------------------------------

    def function_cell(self, symbol: Symbol) -> Any:
        return self.functions.get(symbol, UNBOUND)

    def fset(self, symbol: Symbol, definition: Any) -> Any:
        if definition is NIL:
            self.functions.pop(symbol, None)
        else:
            self.functions[symbol] = definition
        return definition

    def fboundp(self, symbol: Symbol) -> bool:
        return symbol in self.functions

    def indirect_function(self, value: Any) -> Any:
        """Follow symbol aliases to the definition they end at."""

        seen = 0
        while isinstance(value, Symbol) and value is not NIL:
            seen += 1
            if seen > MAX_ALIAS_DEPTH:
                raise ConditionSignal(
                    "cyclic-function-indirection", lisp_list(value)
                )
            definition = self.functions.get(value)
            if definition is None:
                raise UnimplementedPrimitiveError(value.name)
            value = definition
        return value

    # evaluation ---------------------------------------------------------

    def eval(self, form: Any, env: Optional[Environment] = None) -> Any:
        env = env or self.globals
        if isinstance(form, Symbol):
            if form is NIL or form is T or form.is_keyword:
                return form
            value = env.lookup(form)
            if value is UNBOUND:
                raise void_variable(form)
            return value
        if not isinstance(form, Cons):
            return form

        head = form.car
        if isinstance(head, Symbol):
            definition = self.functions.get(head)
            if definition is None:
                raise UnimplementedPrimitiveError(head.name)
            if isinstance(definition, Symbol):
                definition = self.indirect_function(definition)
            if isinstance(definition, SpecialForm):
                try:
                    return definition.handler(to_list(form.cdr), env)
                except (ElispError, RecursionError):
                    raise
                except Exception as exc:
                    raise host_failure(exc) from exc
            if isinstance(definition, Macro):
                return self.eval(self.expand_macro(definition, form.cdr), env)
            args = [self.eval(arg, env) for arg in iterate(form.cdr)]
            return self.apply(definition, args)
        if isinstance(head, Cons) and head.car is LAMBDA:
            function = self.make_lambda(head.cdr, env)
            args = [self.eval(arg, env) for arg in iterate(form.cdr)]
            return self.apply(function, args)
        raise invalid_function(head)

    def eval_body(self, forms: Sequence[Any] | Any, env: Environment) -> Any:
        """Evaluate forms in order (``progn``); an empty body yields nil."""

        result: Any = NIL
        items = forms if isinstance(forms, (list, tuple)) else iterate(forms)
        for form in items:
            result = self.eval(form, env)
        return result

    def make_lambda(
        self, spec: Any, env: Environment, *, name: Optional[str] = None
    ) -> Lambda:
        """Build a closure from ``(ARGS . BODY)``."""

        if not isinstance(spec, Cons):
            raise invalid_function(Cons(LAMBDA, spec))
        params = ParamSpec.parse(spec.car)
        body, doc, interactive = split_body(to_list(spec.cdr))
        return Lambda(params, body, env, name=name, interactive=interactive, doc=doc)

    def apply(self, function: Any, args: Sequence[Any]) -> Any:
        if isinstance(function, Primitive):
            function.check_arity(len(args))
            try:
                return function.fn(*args)
            except (ElispError, RecursionError):
                raise
            except Exception as exc:
                raise host_failure(exc) from exc
        if isinstance(function, Lambda):
            return self.call_lambda(function, args)
        if isinstance(function, Symbol) and function is not NIL:
            return self.apply(self.indirect_function(function), args)
        if isinstance(function, Cons) and function.car is LAMBDA:
            return self.call_lambda(self.make_lambda(function.cdr, self.globals), args)
        raise invalid_function(function)

    def funcall(self, function: Any, *args: Any) -> Any:
        return self.apply(function, list(args))

    def call_lambda(self, function: Lambda, args: Sequence[Any]) -> Any:
        function.params.check(len(args), name=function.name)
        pairs = function.params.bind(args)
        lexical = [(sym, val) for sym, val in pairs if sym not in self.special_variables]
        dynamic = [(sym, val) for sym, val in pairs if sym in self.special_variables]
        env = Environment(function.env, lexical)
        try:
            if dynamic:
                with self.dynamic_bindings(dynamic):
                    return self.eval_body(function.body, env)
            return self.eval_body(function.body, env)
        except RecursionError:
            raise ConditionSignal(
                "excessive-lisp-nesting",
                lisp_list(function.name or "lambda"),
                message="Lisp nesting exceeds the interpreter limit",
            ) from None

    # macros ---------------------------------------------------------------

    def expand_macro(self, macro: Macro, arg_forms: Any) -> Any:
        args = to_list(arg_forms)
        macro.params.check(len(args), name=macro.name)
        env = Environment(macro.env, macro.params.bind(args))
        return self.eval_body(macro.body, env)

    def macroexpand_1(self, form: Any) -> Tuple[Any, bool]:
        if isinstance(form, Cons) and isinstance(form.car, Symbol):
            definition = self.functions.get(form.car)
            if isinstance(definition, Macro):
                return self.expand_macro(definition, form.cdr), True
        return form, False

    def macroexpand(self, form: Any) -> Any:
        for _ in range(MAX_MACRO_EXPANSIONS):
            form, expanded = self.macroexpand_1(form)
            if not expanded:
                return form
        raise ConditionSignal("error", "macro expansion did not terminate")

    # dynamic scope ----------------------------------------------------------

    @contextmanager
    def dynamic_bindings(self, pairs: Sequence[Tuple[Symbol, Any]]) -> Iterator[None]:
        """Temporarily rebind global values, restoring them on every exit path."""

        saved = [(symbol, self.globals.lookup(symbol)) for symbol, _ in pairs]
        for symbol, value in pairs:
            self.globals.define(symbol, value)
        try:
            yield
        finally:
            for symbol, previous in reversed(saved):
                if previous is UNBOUND:
                    self.globals.unbind(symbol)
                else:
                    self.globals.define(symbol, previous)

    # backquote ----------------------------------------------------------------

    def quasiquote(self, template: Any, env: Environment, depth: int = 1) -> Any:
        if isinstance(template, Vector):
            return Vector(to_list(self._quasi_list(from_list(template.items), env, depth)))
        if not isinstance(template, Cons):
            return template
        head = template.car
        if head is COMMA:
            inner = _second(template)
            if depth == 1:
                return self.eval(inner, env)
            return lisp_list(COMMA, self.quasiquote(inner, env, depth - 1))
        if head is BACKQUOTE:
            return lisp_list(BACKQUOTE, self.quasiquote(_second(template), env, depth + 1))
        return self._quasi_list(template, env, depth)

    def _quasi_list(self, template: Any, env: Environment, depth: int) -> Any:
        items: list[Any] = []
        tail: Any = NIL
        cursor = template
        while isinstance(cursor, Cons):
            if cursor.car is COMMA and cursor is not template:
                # dotted unquote: (a . ,b) reads as (a \, b)
                tail = self.quasiquote(cursor, env, depth)
                break
            element = cursor.car
            if isinstance(element, Cons) and element.car is COMMA_AT and depth == 1:
                items.extend(to_list(self.eval(_second(element), env)))
            else:
                items.append(self.quasiquote(element, env, depth))
            cursor = cursor.cdr
        else:
            tail = cursor
        return from_list(items, tail)


def _second(form: Cons) -> Any:
    rest = form.cdr
    return rest.car if isinstance(rest, Cons) else NIL


def split_body(body: List[Any]) -> Tuple[List[Any], Optional[str], bool]:
    """Strip a leading docstring plus ``declare``/``interactive`` forms."""

    doc: Optional[str] = None
    interactive = False
    forms = list(body)
    if len(forms) > 1 and isinstance(forms[0], str):
        doc = forms.pop(0)
    while forms and isinstance(forms[0], Cons) and isinstance(forms[0].car, Symbol):
        name = forms[0].car.name
        if name == "declare":
            forms.pop(0)
        elif name == "interactive":
            interactive = True
            forms.pop(0)
        else:
            break
    return forms, doc, interactive


__all__ = ["Interpreter", "split_body", "void_variable", "invalid_function", "host_failure"]
