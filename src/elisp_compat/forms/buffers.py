"""Scoped buffer, point, window and match-data forms."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from elisp_compat.host.env import Environment
from elisp_compat.primitives.editing import resolve_buffer

from .base import FormHandler, arg, install_forms

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

TEMP_BUFFER_NAME = " *temp*"


def save_current_buffer(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    with rt.document.scoped_buffer():
        return rt.interpreter.eval_body(args, env)


def with_current_buffer(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    buffer = resolve_buffer(rt, rt.interpreter.eval(arg(args, 0), env))
    with rt.document.scoped_buffer(buffer):
        return rt.interpreter.eval_body(args[1:], env)


def with_temp_buffer(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    buffer = rt.document.generate_new_buffer(TEMP_BUFFER_NAME)
    try:
        with rt.document.scoped_buffer(buffer):
            return rt.interpreter.eval_body(args, env)
    finally:
        rt.document.kill_buffer(buffer.name)


def save_excursion(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    """Restore the current buffer and its point after the body, on every exit path."""

    buffer = rt.current_buffer()
    point = buffer.point
    with rt.document.scoped_buffer():
        try:
            return rt.interpreter.eval_body(args, env)
        finally:
            if buffer.live:
                buffer.goto(point)


def save_window_excursion(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    configuration = rt.document.capture_configuration()
    try:
        return rt.interpreter.eval_body(args, env)
    finally:
        rt.document.restore_configuration(configuration)


def save_match_data(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    saved = rt.match_data.snapshot()
    try:
        return rt.interpreter.eval_body(args, env)
    finally:
        rt.match_data.restore(saved)


BUFFER_FORMS: Dict[str, FormHandler] = {
    "save-current-buffer": save_current_buffer,
    "with-current-buffer": with_current_buffer,
    "with-temp-buffer": with_temp_buffer,
    "save-excursion": save_excursion,
    "save-window-excursion": save_window_excursion,
    "save-match-data": save_match_data,
}


def install(rt: "Runtime") -> None:
    install_forms(rt, BUFFER_FORMS)


__all__ = ["BUFFER_FORMS", "TEMP_BUFFER_NAME", "install"]
