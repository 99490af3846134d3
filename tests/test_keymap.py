from __future__ import annotations

from typing import Any

from elisp_compat.document.keymap import (
    FULL_MAP_SIZE,
    Keymap,
    describe_bindings,
    kbd,
    key_candidates,
    key_from_code,
    pretty_action_name,
)
from elisp_compat.host.values import NIL, Symbol
from elisp_compat.runtime.session import Runtime


def symbol_name(value: Any) -> str:
    return value.name if isinstance(value, Symbol) else str(value)


def test_full_map_stays_in_lock_step_with_bindings() -> None:
    keymap = Keymap.with_full_map(NIL)
    assert len(keymap.full) == FULL_MAP_SIZE
    keymap.define("a", Symbol("go"))
    assert keymap.full[ord("a")] is Symbol("go")
    keymap.undefine("a")
    assert keymap.full[ord("a")] is NIL
    assert keymap.lookup("a") is None


def test_lookup_searches_parent_maps() -> None:
    parent = Keymap.sparse()
    parent.define("q", Symbol("quit"))
    child = Keymap(parent=parent)
    assert child.lookup("q") is Symbol("quit")
    assert child.lookup_candidates(["x", "q"]) == ("q", Symbol("quit"))


def test_key_codes_and_kbd_canonicalization() -> None:
    assert key_from_code(97) == "a"
    assert key_from_code(9) == "TAB"
    assert key_from_code(13) == "RET"
    assert key_from_code(27) == "ESC"
    assert key_from_code(200) == ""
    assert kbd("<return>") == "RET"
    assert kbd(" <tab> ") == "TAB"
    assert kbd("C-c C-c") == "C-c C-c"


def test_key_candidates_for_raw_codes_and_names() -> None:
    assert key_candidates(13)[:3] == ("\r", "\n", "RET")
    assert key_candidates(32) == ("SPC", " ")
    assert key_candidates("left") == ("<left>", "left", "C-b")
    assert key_candidates("x") == ("x",)
    assert key_candidates(1) == ()


def test_status_summary_orders_priority_keys_first() -> None:
    keymap = Keymap.sparse()
    keymap.define("z", Symbol("tetris-rotate-next"))
    keymap.define("q", Symbol("tetris-end-game"))
    keymap.define(" ", Symbol("tetris-move-bottom"))
    assert describe_bindings(keymap, symbol_name) == "q quit | space drop | z rot cw"
    assert describe_bindings(Keymap.sparse(), symbol_name) is None


def test_pretty_action_names() -> None:
    assert pretty_action_name("snake-start-game") == "new"
    assert pretty_action_name("my-game-start") == "new"
    assert pretty_action_name("do-something-else") == "do something else"


def test_define_key_and_dispatch_through_runtime() -> None:
    rt = Runtime.create()
    rt.eval_string(
        """
        (defvar hits 0)
        (defun bump () (interactive) (setq hits (1+ hits)))
        (defvar-keymap demo-map "a" #'bump "<left>" 'bump)
        (define-key demo-map (kbd "RET") 'bump)
        (use-local-map demo-map)
        """
    )
    assert rt.dispatch_key(ord("a")) is True
    assert rt.dispatch_key("left") is True
    assert rt.dispatch_key(13) is True
    assert rt.dispatch_key(ord("b")) is False
    assert rt.eval_string("hits") == 3
    assert rt.eval_string('(lookup-key demo-map "a")') is Symbol("bump")


def test_full_keymap_from_make_keymap() -> None:
    rt = Runtime.create()
    keymap = rt.eval_string("(let ((m (make-keymap))) (define-key m [?x] 'go) m)")
    assert isinstance(keymap, Keymap)
    assert keymap.full is not None
    assert keymap.full[ord("x")] is Symbol("go")
