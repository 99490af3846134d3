"""Definition forms: functions, macros, aliases, modes, faces and keymaps."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from elisp_compat.document.keymap import Keymap
from elisp_compat.errors import TypeMismatchError
from elisp_compat.host.env import UNBOUND, Environment
from elisp_compat.host.evaluator import split_body
from elisp_compat.host.values import NIL, Cons, Macro, ParamSpec, Symbol, from_list, truthy
from elisp_compat.primitives.hooks import run_hook
from elisp_compat.primitives.keymaps import bind_key, require_keymap
from elisp_compat.runtime.telemetry import record_event

from .base import FormHandler, arg, install_forms, require_symbol, unquote

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

MAJOR_MODE = Symbol("major-mode")
MODE_NAME = Symbol("mode-name")
FACE_SPEC = Symbol("face-defface-spec")
GROUP_DOCUMENTATION = Symbol("group-documentation")


def defun(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    name = require_symbol(arg(args, 0))
    spec = Cons(arg(args, 1), from_list(args[2:]))
    rt.interpreter.fset(name, rt.interpreter.make_lambda(spec, env, name=name.name))
    record_event("forms.defun", level="debug", data={"name": name.name}, logger_name=rt.logger_name)
    return name


def defmacro(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    name = require_symbol(arg(args, 0))
    body, _, _ = split_body(args[2:])
    macro = Macro(ParamSpec.parse(arg(args, 1)), body, env, name=name.name)
    rt.interpreter.fset(name, macro)
    return name


def _alias_target(rt: "Runtime", form: Any, env: Environment) -> Symbol:
    target = unquote(form)
    if not isinstance(target, Symbol):
        target = rt.interpreter.eval(form, env)
    return require_symbol(target)


def defalias(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    """Bind the evaluated definition to the (usually quoted) target name."""

    name = _alias_target(rt, arg(args, 0), env)
    definition = rt.interpreter.eval(arg(args, 1), env)
    rt.interpreter.fset(name, definition)
    return name


def define_obsolete_function_alias(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    name = defalias(rt, args[:2], env)
    rt.warn_once(
        f"obsolete-function:{name.name}",
        f"{name.name} is an obsolete function alias",
        name=name.name,
    )
    return name


def defface(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    name = require_symbol(arg(args, 0))
    if rt.interpreter.globals.lookup(name) is UNBOUND:
        rt.interpreter.set_global(name, name)
    rt.plists.setdefault(name, {})[FACE_SPEC] = arg(args, 1)
    return name


def defgroup(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    name = arg(args, 0)
    if not isinstance(name, Symbol):
        name = Symbol(str(name))
    if rt.interpreter.globals.lookup(name) is UNBOUND:
        rt.interpreter.set_global(name, name)
    docstring = arg(args, 2)
    if isinstance(docstring, str):
        rt.plists.setdefault(name, {})[GROUP_DOCUMENTATION] = docstring
    return name


def declare_function(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    del rt, env
    return arg(args, 0)


# modes ----------------------------------------------------------------------------


def _mode_body(forms: List[Any]) -> List[Any]:
    """Drop the docstring and ``:keyword value`` pairs preceding a mode body."""

    body = list(forms)
    if body and isinstance(body[0], str):
        body.pop(0)
    while len(body) >= 2 and isinstance(body[0], Symbol) and body[0].is_keyword:
        del body[:2]
    return body


def _ensure_global(rt: "Runtime", symbol: Symbol, factory: Any) -> Any:
    value = rt.interpreter.globals.lookup(symbol)
    if value is UNBOUND:
        value = rt.interpreter.set_global(symbol, factory())
    rt.interpreter.special_variables.add(symbol)
    return value


def define_derived_mode(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    """Define a major mode command.

    Running the mode first runs its parent (when that is a defined mode),
    installs ``<mode>-map`` as the buffer's local map, records the mode in
    ``major-mode``, evaluates the body, then runs ``<mode>-hook``.
    """

    name = require_symbol(arg(args, 0))
    parent = arg(args, 1)
    label = arg(args, 2)
    body = _mode_body(args[3:])
    map_symbol = Symbol(f"{name.name}-map")
    hook_symbol = Symbol(f"{name.name}-hook")
    _ensure_global(rt, map_symbol, Keymap.sparse)
    _ensure_global(rt, hook_symbol, lambda: NIL)

    def enter_mode(*_: Any) -> Any:
        if isinstance(parent, Symbol) and parent is not NIL and rt.interpreter.fboundp(parent):
            rt.interpreter.funcall(parent)
        buffer = rt.current_buffer()
        keymap = rt.interpreter.globals.lookup(map_symbol)
        if isinstance(keymap, Keymap):
            buffer.local_map = keymap
        buffer.local_variables[MAJOR_MODE] = name
        rt.interpreter.set_global(MAJOR_MODE, name)
        if isinstance(label, str):
            buffer.local_variables[MODE_NAME] = label
            rt.interpreter.set_global(MODE_NAME, label)
        result = rt.interpreter.eval_body(body, env)
        run_hook(rt, hook_symbol)
        return result

    rt.interpreter.define_primitive(name.name, enter_mode, 0, 1)
    rt.plists.setdefault(name, {})[Symbol("derived-mode-parent")] = parent
    return name


# keymaps ----------------------------------------------------------------------------


def defvar_keymap(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    """``(defvar-keymap NAME [:full F] [:parent P] KEY DEF ...)``; keys and definitions are evaluated."""

    name = require_symbol(arg(args, 0))
    full = False
    parent: Any = None
    pairs: List[tuple[Any, Any]] = []
    rest = args[1:]
    index = 0
    while index + 1 < len(rest):
        key, value = rest[index], rest[index + 1]
        index += 2
        if isinstance(key, Symbol) and key.is_keyword:
            if key.name == ":full":
                full = truthy(rt.interpreter.eval(value, env))
            elif key.name == ":parent":
                parent = require_keymap(rt.interpreter.eval(value, env))
            continue
        pairs.append((key, value))
    keymap = Keymap.with_full_map(NIL) if full else Keymap.sparse()
    keymap.parent = parent
    for key, value in pairs:
        bind_key(rt, keymap, rt.interpreter.eval(key, env), rt.interpreter.eval(value, env))
    rt.interpreter.set_global(name, keymap)
    rt.interpreter.special_variables.add(name)
    return name


def _keymap_place(rt: "Runtime", form: Any, env: Environment) -> Keymap:
    """Resolve the keymap operand, creating a sparse map behind a symbol that lacks one."""

    target = unquote(form)
    if isinstance(target, Symbol) and target is not NIL:
        current = env.lookup(target)
        if isinstance(current, Keymap):
            return current
        keymap = Keymap.sparse()
        if env.is_bound(target):
            env.assign(target, keymap)
        else:
            rt.interpreter.set_global(target, keymap)
        return keymap
    value = rt.interpreter.eval(form, env)
    if not isinstance(value, Keymap):
        raise TypeMismatchError("keymapp", value)
    return value


def define_key(rt: "Runtime", args: List[Any], env: Environment) -> Any:
    keymap = _keymap_place(rt, arg(args, 0), env)
    key = rt.interpreter.eval(arg(args, 1), env)
    definition = rt.interpreter.eval(arg(args, 2), env)
    return bind_key(rt, keymap, key, definition)


DEFINITION_FORMS: Dict[str, FormHandler] = {
    "defun": defun,
    "defsubst": defun,
    "defmacro": defmacro,
    "defalias": defalias,
    "define-obsolete-function-alias": define_obsolete_function_alias,
    "defface": defface,
    "defgroup": defgroup,
    "declare-function": declare_function,
    "define-derived-mode": define_derived_mode,
    "defvar-keymap": defvar_keymap,
    "define-key": define_key,
    "keymap-set": define_key,
}


def install(rt: "Runtime") -> None:
    install_forms(rt, DEFINITION_FORMS)


__all__ = ["DEFINITION_FORMS", "install"]
