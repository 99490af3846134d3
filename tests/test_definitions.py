from __future__ import annotations

import pytest

from elisp_compat.document.keymap import Keymap
from elisp_compat.errors import ArityError, ConditionSignal
from elisp_compat.host.printer import prin1_to_string
from elisp_compat.host.values import T, Symbol
from elisp_compat.runtime.session import Runtime


def make_runtime() -> Runtime:
    return Runtime.create()


def test_lambda_list_binds_optional_and_rest() -> None:
    rt = make_runtime()
    rt.eval_string("(defun spread (a &optional b &rest r) (list a b r))")
    assert prin1_to_string(rt.eval_string("(spread 1)")) == "(1 nil nil)"
    assert prin1_to_string(rt.eval_string("(spread 1 2 3 4)")) == "(1 2 (3 4))"


def test_arity_error_carries_structured_counts() -> None:
    rt = make_runtime()
    rt.eval_string("(defun pair (a b) (list a b))")
    with pytest.raises(ArityError) as excinfo:
        rt.eval_string("(pair 1 2 3)")
    error = excinfo.value
    assert (error.minimum, error.exact, error.received, error.name) == (2, True, 3, "pair")
    assert str(error) == "pair expected 2 arguments, received 3"


def test_arity_error_for_open_ended_lambda_list() -> None:
    rt = make_runtime()
    rt.eval_string("(defun at-least-one (a &rest more) a)")
    with pytest.raises(ArityError) as excinfo:
        rt.eval_string("(at-least-one)")
    assert excinfo.value.exact is False
    assert str(excinfo.value) == "at-least-one expected at least 1 arguments, received 0"


def test_primitive_arity_is_catchable() -> None:
    rt = make_runtime()
    with pytest.raises(ArityError) as excinfo:
        rt.eval_string("(car)")
    assert excinfo.value.name == "car"
    assert rt.eval_string("(condition-case nil (car) (wrong-number-of-arguments 'bad))") is Symbol("bad")


def test_defalias_follows_symbol_chains() -> None:
    rt = make_runtime()
    rt.eval_string("(defalias 'plus #'+) (defalias 'add 'plus)")
    assert rt.eval_string("(add 1 2)") == 3
    assert rt.eval_string("(fboundp 'add)") is T
    assert rt.eval_string("(funcall 'add 4 5)") == 9


def test_alias_cycles_are_reported() -> None:
    rt = make_runtime()
    rt.eval_string("(defalias 'ping 'pong) (defalias 'pong 'ping)")
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string("(ping)")
    assert excinfo.value.condition == "cyclic-function-indirection"


def test_obsolete_alias_warns_once() -> None:
    rt = make_runtime()
    rt.eval_string("(define-obsolete-function-alias 'old-plus #'+ \"29.1\")")
    assert rt.eval_string("(old-plus 2 2)") == 4
    assert "obsolete-function:old-plus" in rt.warned


def test_defsubst_and_docstrings() -> None:
    rt = make_runtime()
    rt.eval_string('(defsubst twice (x) "Double X." (* 2 x))')
    assert rt.eval_string("(twice 21)") == 42


def test_defvar_keymap_with_parent_and_full_map() -> None:
    rt = make_runtime()
    rt.eval_string(
        """
        (defvar-keymap base-keys "q" 'quit-it)
        (defvar-keymap child-keys :full t :parent base-keys "x" 'ex)
        """
    )
    child = rt.eval_string("child-keys")
    assert isinstance(child, Keymap)
    assert child.full is not None
    assert rt.eval_string('(lookup-key child-keys "q")') is Symbol("quit-it")
    assert rt.eval_string('(lookup-key child-keys "x")') is Symbol("ex")


def test_define_derived_mode_runs_parent_body_and_hook() -> None:
    rt = make_runtime()
    rt.eval_string(
        """
        (defvar trail nil)
        (define-derived-mode base-mode nil "Base" (push 'base trail))
        (define-derived-mode board-mode base-mode "Board"
          "Board game mode."
          :group 'games
          (push 'board trail))
        (add-hook 'board-mode-hook (lambda () (push 'hook trail)))
        (define-key board-mode-map "n" 'board-new)
        """
    )
    rt.eval_string("(board-mode)")
    assert prin1_to_string(rt.eval_string("trail")) == "(hook board base)"
    assert rt.eval_string("major-mode") is Symbol("board-mode")
    assert rt.eval_string("mode-name") == "Board"
    assert rt.current_buffer().local_map is rt.eval_string("board-mode-map")
    assert rt.eval_string("(derived-mode-p 'board-mode)") is Symbol("board-mode")
    assert rt.eval_string("(get 'board-mode 'derived-mode-parent)") is Symbol("base-mode")


def test_defface_and_defgroup_define_symbols() -> None:
    rt = make_runtime()
    rt.eval_string("(defgroup tiles nil \"Tile games.\") (defface tile-face '((t :bold t)) \"Face.\")")
    assert rt.eval_string("tiles") is Symbol("tiles")
    assert rt.eval_string("tile-face") is Symbol("tile-face")
