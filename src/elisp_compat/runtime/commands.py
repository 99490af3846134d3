"""Invoking bound commands and dispatching raw keys through the local keymap."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from elisp_compat.document.keymap import Keymap, key_candidates
from elisp_compat.errors import ArityError, ElispError, UnimplementedPrimitiveError
from elisp_compat.host.values import FUNCTION, LAMBDA, NIL, QUOTE, T, Cons, Lambda, Primitive, Symbol

from .telemetry import record_event, span

if TYPE_CHECKING:
    from .session import Runtime

PREFIX_ARGUMENT = 1


def resolve_binding(value: Any) -> Any:
    """Strip ``'cmd``/``#'cmd`` wrappers left on unevaluated keymap entries."""

    while (
        isinstance(value, Cons)
        and value.car in (QUOTE, FUNCTION)
        and isinstance(value.cdr, Cons)
    ):
        value = value.cdr.car
    return value


def _arity_rejection(rt: "Runtime", target: Any, count: int) -> Optional[ArityError]:
    """The ``ArityError`` calling ``target`` with ``count`` arguments would raise."""

    function = target
    if isinstance(function, Symbol) and function is not NIL:
        function = rt.interpreter.indirect_function(function)
    if isinstance(function, Cons) and function.car is LAMBDA:
        function = rt.interpreter.make_lambda(function.cdr, rt.interpreter.globals)
    try:
        if isinstance(function, Primitive):
            function.check_arity(count)
        elif isinstance(function, Lambda):
            function.params.check(count, name=function.name)
    except ArityError as exc:
        return exc
    return None


def invoke_command(rt: "Runtime", target: Any) -> Any:
    """Call ``target`` with no arguments, or with a prefix argument.

    Commands written as ``(defun cmd (arg) ...)`` expect a prefix argument:
    when the command's own arity rejects zero arguments with a minimum
    of one, it is called once with ``1``. The arity is checked before the call,
    so a failure raised from inside the command propagates unchanged and
    its side effects happen once. Any other arity mismatch is recorded as a
    message and raised.
    """

    target = resolve_binding(target)
    rejected = _arity_rejection(rt, target, 0)
    if rejected is None:
        return rt.interpreter.apply(target, [])
    if rejected.minimum != 1:
        rt.messages.append(str(rejected))
        raise rejected
    return rt.interpreter.apply(target, [PREFIX_ARGUMENT])


def binding_for_key(rt: "Runtime", key: int | str) -> Optional[tuple[str, Any]]:
    keymap = rt.document.current_buffer().local_map
    if not isinstance(keymap, Keymap):
        return None
    for candidate in key_candidates(key):
        binding = keymap.lookup(candidate)
        if binding is not None and binding is not NIL:
            return candidate, binding
    return None


def dispatch_key(rt: "Runtime", key: int | str) -> bool:
    """Run the command the current local keymap binds to ``key``.

    Returns ``True`` when a command ran to completion. Failures are recorded
    as messages and logged; unimplemented primitives still propagate.
    """

    found = binding_for_key(rt, key)
    if found is None:
        return False
    spec, binding = found
    with span(
        "commands::dispatch",
        logger_name=rt.logger_name,
        component="commands",
        metadata={"key": spec},
        report_failures=False,
    ) as handle:
        try:
            invoke_command(rt, binding)
        except UnimplementedPrimitiveError:
            raise
        except ElispError as exc:
            handle.fail(str(exc))
            record_event(
                "commands.dispatch_failed",
                level="warning",
                data={"key": spec, "error": str(exc)},
                logger_name=rt.logger_name,
            )
            return False
    return True


def commandp(rt: "Runtime", value: Any, *_: Any) -> Any:
    value = resolve_binding(value)
    if isinstance(value, Symbol) and value is not NIL:
        value = rt.interpreter.functions.get(value)
    return T if isinstance(value, Lambda) and value.interactive else NIL


def call_interactively(rt: "Runtime", function: Any, *_: Any) -> Any:
    return invoke_command(rt, function)


COMMAND_PRIMITIVES: Dict[str, tuple[Callable[..., Any], int, Optional[int]]] = {
    "commandp": (commandp, 1, 2),
    "call-interactively": (call_interactively, 1, 3),
}


def install(rt: "Runtime") -> None:
    for name, (handler, minimum, maximum) in COMMAND_PRIMITIVES.items():
        rt.interpreter.define_primitive(name, partial(handler, rt), minimum, maximum)


__all__ = [
    "resolve_binding",
    "invoke_command",
    "binding_for_key",
    "dispatch_key",
    "install",
]
