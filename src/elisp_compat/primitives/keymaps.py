"""Keymap primitives and the key-spec conversion shared with ``define-key``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from elisp_compat.document.keymap import Keymap, canonical_key, kbd, key_from_code
from elisp_compat.errors import TypeMismatchError
from elisp_compat.host.env import UNBOUND
from elisp_compat.host.values import NIL, Symbol, Vector, as_bool

from .base import PrimitiveTable, install_primitives

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

_SYMBOL_KEYS = {"tab": "TAB", "return": "RET", "escape": "ESC"}


def key_spec(rt: "Runtime", value: Any) -> str:
    """Canonical key string for a key description, or ``""`` when unsupported."""

    if isinstance(value, str):
        return canonical_key(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return key_from_code(value)
    if isinstance(value, Symbol) and value is not NIL:
        if value.name in _SYMBOL_KEYS:
            return _SYMBOL_KEYS[value.name]
        bound = rt.interpreter.globals.lookup(value)
        if isinstance(bound, str):
            return canonical_key(bound)
        return value.name
    if isinstance(value, Vector) and value.items:
        return key_spec(rt, value.items[0])
    return ""


def require_keymap(value: Any) -> Keymap:
    if not isinstance(value, Keymap):
        raise TypeMismatchError("keymapp", value)
    return value


def bind_key(rt: "Runtime", keymap: Keymap, key: Any, definition: Any) -> Any:
    spec = key_spec(rt, key)
    if not spec:
        raise TypeMismatchError("key-description", key)
    keymap.define(spec, definition)
    return definition


def make_sparse_keymap(rt: "Runtime", *_: Any) -> Keymap:
    return Keymap.sparse()


def make_keymap(rt: "Runtime", *_: Any) -> Keymap:
    return Keymap.with_full_map(NIL)


def keymapp(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, Keymap))


def use_local_map(rt: "Runtime", keymap: Any) -> Any:
    buffer = rt.current_buffer()
    buffer.local_map = None if keymap is NIL else require_keymap(keymap)
    return NIL


def current_local_map(rt: "Runtime") -> Any:
    keymap = rt.current_buffer().local_map
    return NIL if keymap is None else keymap


def local_set_key(rt: "Runtime", key: Any, command: Any) -> Any:
    buffer = rt.current_buffer()
    if buffer.local_map is None:
        buffer.local_map = Keymap.sparse()
    return bind_key(rt, buffer.local_map, key, command)


def kbd_(rt: "Runtime", text: Any) -> Any:
    if not isinstance(text, str):
        raise TypeMismatchError("stringp", text)
    return kbd(text)


def lookup_key(rt: "Runtime", keymap: Any, key: Any, *_: Any) -> Any:
    binding = require_keymap(keymap).lookup(key_spec(rt, key))
    return NIL if binding is None else binding


def set_keymap_parent(rt: "Runtime", keymap: Any, parent: Any) -> Any:
    require_keymap(keymap).parent = None if parent is NIL else require_keymap(parent)
    return parent


def keymap_parent(rt: "Runtime", keymap: Any) -> Any:
    parent = require_keymap(keymap).parent
    return NIL if parent is None else parent


def suppress_keymap(rt: "Runtime", keymap: Any, *_: Any) -> Any:
    require_keymap(keymap)
    return NIL


def global_set_key(rt: "Runtime", key: Any, command: Any) -> Any:
    symbol = Symbol("global-map")
    keymap = rt.interpreter.globals.lookup(symbol)
    if keymap is UNBOUND or not isinstance(keymap, Keymap):
        keymap = rt.interpreter.set_global(symbol, Keymap.sparse())
    return bind_key(rt, keymap, key, command)


KEYMAP_PRIMITIVES: PrimitiveTable = {
    "make-sparse-keymap": (make_sparse_keymap, 0, 1),
    "make-keymap": (make_keymap, 0, 1),
    "keymapp": (keymapp, 1, 1),
    "use-local-map": (use_local_map, 1, 1),
    "current-local-map": (current_local_map, 0, 0),
    "local-set-key": (local_set_key, 2, 2),
    "global-set-key": (global_set_key, 2, 2),
    "kbd": (kbd_, 1, 1),
    "lookup-key": (lookup_key, 2, 3),
    "set-keymap-parent": (set_keymap_parent, 2, 2),
    "keymap-parent": (keymap_parent, 1, 1),
    "suppress-keymap": (suppress_keymap, 1, 2),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, KEYMAP_PRIMITIVES)
    rt.interpreter.set_global(Symbol("global-map"), Keymap.sparse())
    rt.interpreter.special_variables.add(Symbol("global-map"))


__all__ = ["KEYMAP_PRIMITIVES", "key_spec", "bind_key", "require_keymap", "install"]
