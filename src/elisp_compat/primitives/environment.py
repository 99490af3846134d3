"""Calling, messages, time, files and the host stubs programs expect to exist.

Text properties, overlays, faces, syntax tables and menus are accepted and
ignored; prompts answer without blocking because drivers own the input loop.
"""

from __future__ import annotations

import os
import shutil
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any, List

from elisp_compat.errors import TypeMismatchError
from elisp_compat.host.printer import princ_to_string
from elisp_compat.host.values import (
    NIL,
    T,
    Cons,
    Symbol,
    Vector,
    as_bool,
    intern,
    is_number,
    lisp_equal,
    lisp_list,
    to_list,
)

from .base import (
    PrimitiveTable,
    first_argument,
    ignore,
    install_globals,
    install_primitives,
    optional,
    require_integer,
    require_string,
    string_or_symbol_name,
)
from .editing import insert, move_lines
from .strings import format_string

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

ENVIRONMENT_GLOBALS = {
    "fill-column": 70,
    "tab-width": 8,
    "indent-tabs-mode": NIL,
    "truncate-lines": NIL,
    "buffer-read-only": NIL,
    "inhibit-read-only": NIL,
    "inhibit-quit": NIL,
    "noninteractive": NIL,
    "window-system": NIL,
    "emacs-major-version": 30,
    "emacs-minor-version": 1,
    "system-type": Symbol("gnu/linux"),
    "user-full-name": "",
    "user-login-name": "",
    "data-directory": "etc/",
    "exec-directory": "lib-src/",
    "load-path": NIL,
    "last-command-event": NIL,
    "current-prefix-arg": NIL,
    "major-mode": Symbol("fundamental-mode"),
    "mode-name": "Fundamental",
    "mode-line-format": NIL,
    "cursor-type": T,
    "debug-on-error": NIL,
}

_TICKS = 1 << 16


def funcall(rt: "Runtime", function: Any, *args: Any) -> Any:
    return rt.interpreter.apply(function, list(args))


def apply(rt: "Runtime", function: Any, *args: Any) -> Any:
    """Spread the final argument, which must be a list, after the others."""

    *leading, tail = args
    return rt.interpreter.apply(function, leading + to_list(tail))


def call_fn(rt: "Runtime", name: Any, *args: Any) -> Any:
    if isinstance(name, str):
        name = intern(name)
    return rt.interpreter.apply(name, list(args))


def eval_(rt: "Runtime", form: Any, lexical: Any = NIL) -> Any:
    return rt.interpreter.eval(form, rt.interpreter.globals)


def macroexpand(rt: "Runtime", form: Any, *_: Any) -> Any:
    return rt.interpreter.macroexpand(form)


def macroexpand_1(rt: "Runtime", form: Any, *_: Any) -> Any:
    return rt.interpreter.macroexpand_1(form)[0]


def message(rt: "Runtime", template: Any, *args: Any) -> Any:
    """Format like ``format`` and record the text; ``(message nil)`` clears."""

    if template is NIL:
        return NIL
    if isinstance(template, str):
        text = format_string(template, list(args))
    else:
        text = princ_to_string(template)
    return rt.message(text)


def identity(rt: "Runtime", value: Any) -> Any:
    return value


def always(rt: "Runtime", *_: Any) -> Any:
    return T


# time ----------------------------------------------------------------------


def seconds_of(value: Any) -> float:
    """Seconds since the epoch from a number, ``(HIGH LOW USEC PSEC)`` or ``(TICKS . HZ)``."""

    if value is NIL:
        return time.time()
    if is_number(value):
        return float(value)
    if isinstance(value, Cons):
        if is_number(value.cdr):
            return value.car / value.cdr
        parts = to_list(value) + [0, 0, 0, 0]
        high, low, usec, psec = parts[:4]
        return high * _TICKS + low + usec / 1e6 + psec / 1e12
    raise TypeMismatchError("time-value-p", value)


def current_time(rt: "Runtime") -> Any:
    now = time.time()
    whole = int(now)
    return lisp_list(whole // _TICKS, whole % _TICKS, int((now - whole) * 1e6), 0)


def float_time(rt: "Runtime", value: Any = NIL) -> float:
    return seconds_of(value)


def time_convert(rt: "Runtime", value: Any, form: Any = NIL) -> Any:
    if isinstance(form, Symbol) and form.name == "integer":
        return int(seconds_of(value))
    return value


def time_equal_p(rt: "Runtime", left: Any, right: Any) -> Any:
    if lisp_equal(left, right):
        return T
    return as_bool(seconds_of(left) == seconds_of(right))


def current_time_string(rt: "Runtime", value: Any = NIL, *_: Any) -> str:
    moment = datetime.fromtimestamp(seconds_of(value))
    return f"{moment:%a %b} {moment.day:2d} {moment:%H:%M:%S %Y}"


# prompts --------------------------------------------------------------------


def read_string(
    rt: "Runtime", prompt: Any, initial: Any = NIL, history: Any = NIL, default: Any = NIL, *_: Any
) -> str:
    if isinstance(initial, str):
        return initial
    if isinstance(default, str):
        return default
    return ""


def prefix_numeric_value(rt: "Runtime", raw: Any) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, Cons) and isinstance(raw.car, int):
        return raw.car
    if isinstance(raw, Symbol) and raw.name == "-":
        return -1
    return 1


# files ----------------------------------------------------------------------


def expand_file_name(rt: "Runtime", name: Any, directory: Any = NIL) -> str:
    path = os.path.expanduser(require_string(name))
    if os.path.isabs(path):
        return os.path.normpath(path)
    base = os.path.expanduser("~") if directory is NIL else os.path.expanduser(require_string(directory))
    return os.path.normpath(os.path.join(base, path))


def substitute_in_file_name(rt: "Runtime", name: Any) -> str:
    return os.path.expanduser(os.path.expandvars(require_string(name)))


def locate_user_emacs_file(rt: "Runtime", name: Any, *_: Any) -> str:
    return os.path.join(os.path.expanduser("~/.emacs.d"), require_string(name))


def executable_find(rt: "Runtime", command: Any, *_: Any) -> Any:
    found = shutil.which(require_string(command))
    return NIL if found is None else found


def file_exists_p(rt: "Runtime", path: Any) -> Any:
    return as_bool(rt.file_source.exists(require_string(path)))


def file_attributes(rt: "Runtime", path: Any, *_: Any) -> Any:
    """A minimal attribute list: size in slot 7, modification time in slot 5."""

    name = require_string(path)
    if not rt.file_source.exists(name):
        return NIL
    size = len(rt.file_source.read_text(name).encode("utf-8"))
    mtime = int(os.path.getmtime(name)) if os.path.exists(name) else 0
    return lisp_list(NIL, 1, 0, 0, NIL, mtime, NIL, size, "-rw-r--r--", T, 0, 0)


def file_attribute_modification_time(rt: "Runtime", attributes: Any) -> Any:
    items = to_list(attributes)
    return items[5] if len(items) > 5 else NIL


def insert_file_contents(rt: "Runtime", path: Any, *_: Any) -> Any:
    """Insert the file at point and return ``(PATH CHARS)``; missing files insert nothing."""

    name = require_string(path)
    if not rt.file_source.exists(name):
        rt.warn_once(f"insert-file-contents:{name}", "file not found", path=name)
        return NIL
    text = rt.file_source.read_text(name)
    insert(rt, text)
    return lisp_list(name, len(text))


# text properties, faces and friends ------------------------------------------


def next_single_property_change(rt: "Runtime", position: Any, prop: Any, obj: Any = NIL, limit: Any = NIL) -> Any:
    if limit is not NIL:
        return limit
    end = len(rt.current_buffer().text) + 1
    position = require_integer(position)
    return position + 1 if position < end else end


def vertical_motion(rt: "Runtime", lines: Any, *_: Any) -> int:
    """Move by screen lines, which are buffer lines here; return how many were moved."""

    count = lines.cdr if isinstance(lines, Cons) else lines
    count = require_integer(count)
    return count - move_lines(rt.current_buffer(), count)


def facep(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, (Symbol, str)) and value is not NIL)


def make_obsolete(rt: "Runtime", obsolete: Any, current: Any, *_: Any) -> Any:
    rt.plists.setdefault(obsolete, {})[Symbol("byte-obsolete-info")] = lisp_list(current)
    return obsolete


def easy_menu_define(rt: "Runtime", symbol: Any, keymap: Any, doc: Any, menu: Any) -> Any:
    if isinstance(symbol, Symbol) and symbol is not NIL:
        rt.interpreter.set_global(symbol, menu)
    return symbol


def obarray_make(rt: "Runtime", size: Any = NIL) -> Vector:
    return Vector([NIL] * max(require_integer(optional(size, 0)), 0))


def derived_mode_p(rt: "Runtime", *modes: Any) -> Any:
    current = rt.interpreter.globals.lookup(Symbol("major-mode"))
    for mode in modes:
        if mode is current:
            return mode
    return T if modes else NIL


def provided_mode_derived_p(rt: "Runtime", mode: Any, *modes: Any) -> Any:
    return mode if any(item is mode for item in modes) else NIL


def system_name(rt: "Runtime") -> str:
    return os.uname().nodename if hasattr(os, "uname") else "localhost"


def getenv(rt: "Runtime", name: Any, *_: Any) -> Any:
    value = os.environ.get(string_or_symbol_name(name))
    return NIL if value is None else value


def _stubs(names: List[str], handler: Any, minimum: int = 0, maximum: Any = None) -> PrimitiveTable:
    return {name: (handler, minimum, maximum) for name in names}


ENVIRONMENT_PRIMITIVES: PrimitiveTable = {
    "funcall": (funcall, 1, None),
    "apply": (apply, 2, None),
    "call-fn": (call_fn, 1, None),
    "eval": (eval_, 1, 2),
    "macroexpand": (macroexpand, 1, 2),
    "macroexpand-all": (macroexpand, 1, 2),
    "macroexpand-1": (macroexpand_1, 1, 2),
    "message": (message, 1, None),
    "identity": (identity, 1, 1),
    "ignore": (ignore, 0, None),
    "always": (always, 0, None),
    "current-time": (current_time, 0, 0),
    "float-time": (float_time, 0, 1),
    "time-convert": (time_convert, 1, 2),
    "time-equal-p": (time_equal_p, 2, 2),
    "current-time-string": (current_time_string, 0, 2),
    "read-string": (read_string, 1, 5),
    "read-from-minibuffer": (read_string, 1, 7),
    "y-or-n-p": (always, 1, 1),
    "yes-or-no-p": (always, 1, 1),
    "prefix-numeric-value": (prefix_numeric_value, 1, 1),
    "called-interactively-p": (always, 0, 1),
    "input-pending-p": (ignore, 0, 1),
    "derived-mode-p": (derived_mode_p, 0, None),
    "provided-mode-derived-p": (provided_mode_derived_p, 1, None),
    "expand-file-name": (expand_file_name, 1, 2),
    "substitute-in-file-name": (substitute_in_file_name, 1, 1),
    "locate-user-emacs-file": (locate_user_emacs_file, 1, 2),
    "executable-find": (executable_find, 1, 2),
    "file-exists-p": (file_exists_p, 1, 1),
    "file-readable-p": (file_exists_p, 1, 1),
    "file-attributes": (file_attributes, 1, 2),
    "file-attribute-modification-time": (file_attribute_modification_time, 1, 1),
    "insert-file-contents": (insert_file_contents, 1, 5),
    "system-name": (system_name, 0, 0),
    "getenv": (getenv, 1, 2),
    "next-single-property-change": (next_single_property_change, 2, 4),
    "facep": (facep, 1, 1),
    "make-obsolete": (make_obsolete, 2, 3),
    "make-obsolete-variable": (make_obsolete, 2, 4),
    "easy-menu-define": (easy_menu_define, 4, None),
    "obarray-make": (obarray_make, 0, 1),
    "primitive-undo": (ignore, 2, 2),
    "vertical-motion": (vertical_motion, 1, 3),
    "1": (first_argument, 0, None),
    **_stubs(
        [
            "put-text-property",
            "add-text-properties",
            "set-text-properties",
            "remove-text-properties",
            "remove-list-of-text-properties",
            "add-face-text-property",
            "remove-overlays",
            "delete-overlay",
            "overlay-put",
            "set-face-background",
            "set-face-foreground",
            "set-face-attribute",
            "copy-face",
            "modify-syntax-entry",
            "turn-on-auto-fill",
            "auto-fill-mode",
            "do-auto-fill",
            "lpr-print-region",
            "fill-region-as-paragraph",
            "buffer-face-set",
            "font-lock-mode",
            "set-syntax-table",
        ],
        ignore,
    ),
    "get-text-property": (ignore, 2, 3),
    "text-properties-at": (ignore, 1, 2),
    "propertize": (first_argument, 1, None),
    "make-overlay": (ignore, 2, 5),
    "overlays-at": (ignore, 1, 2),
    "overlays-in": (ignore, 2, 2),
    "make-syntax-table": (lambda rt, *_: Vector([NIL] * 256), 0, 1),
    "syntax-table": (lambda rt: Vector([NIL] * 256), 0, 0),
    "emacs-pid": (lambda rt: os.getpid(), 0, 0),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, ENVIRONMENT_PRIMITIVES)
    install_globals(rt, ENVIRONMENT_GLOBALS)


__all__ = ["ENVIRONMENT_PRIMITIVES", "ENVIRONMENT_GLOBALS", "seconds_of", "install"]
