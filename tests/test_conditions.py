from __future__ import annotations

import re
from pathlib import Path

import pytest

import elisp_compat
from elisp_compat.conditions import ROOT_CONDITION, ConditionCycleError, ConditionRegistry
from elisp_compat.errors import ConditionSignal, ThrowSignal
from elisp_compat.host.printer import prin1_to_string
from elisp_compat.host.values import NIL, Symbol
from elisp_compat.runtime.session import Runtime


def make_runtime() -> Runtime:
    return Runtime.create()


def test_registry_starts_with_standard_conditions() -> None:
    registry = ConditionRegistry()
    assert registry.is_defined("search-failed")
    assert registry.ancestry("file-missing") == ["file-missing", "file-error", ROOT_CONDITION]
    assert registry.message_of("void-variable") == "Symbol's value as variable is void"


def test_registry_matches_parents_lists_and_catch_all() -> None:
    registry = ConditionRegistry()
    registry.define("game-over", "quit")
    assert registry.matches("quit", "game-over")
    assert registry.matches(["arith-error", "error"], "game-over")
    assert registry.matches(True, "anything")
    assert not registry.matches("file-error", "game-over")


def test_registry_rejects_cycles() -> None:
    registry = ConditionRegistry()
    registry.define("a-err")
    registry.define("b-err", "a-err")
    with pytest.raises(ConditionCycleError):
        registry.define("a-err", "b-err")
    assert registry.parent_of("a-err") == ROOT_CONDITION


def test_unknown_parent_is_rooted_at_error() -> None:
    registry = ConditionRegistry()
    registry.define("child-err", "fresh-parent")
    assert registry.ancestry("child-err") == ["child-err", "fresh-parent", ROOT_CONDITION]


def test_condition_case_binds_name_and_data() -> None:
    rt = make_runtime()
    record = rt.eval_string("(condition-case e (signal 'arith-error '(1 2)) (error e))")
    assert prin1_to_string(record) == "(arith-error (1 2))"


def test_define_error_hierarchy_is_used_by_handlers() -> None:
    rt = make_runtime()
    result = rt.eval_string(
        """
        (define-error 'game-error "Game failed")
        (define-error 'board-full "Board is full" 'game-error)
        (condition-case nil
            (signal 'board-full nil)
          (game-error 'caught))
        """
    )
    assert result is Symbol("caught")
    assert prin1_to_string(rt.eval_string("(get 'board-full 'error-conditions)")) == (
        "(board-full game-error error)"
    )


def test_define_error_cycle_becomes_an_error_signal() -> None:
    rt = make_runtime()
    rt.eval_string("(define-error 'p-err \"P\") (define-error 'q-err \"Q\" 'p-err)")
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string("(define-error 'p-err \"P\" 'q-err)")
    assert excinfo.value.condition == "error"


def test_unhandled_signal_propagates_with_description() -> None:
    rt = make_runtime()
    rt.eval_string("(define-error 'my-err \"My message\")")
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string("(condition-case nil (signal 'my-err '(1 \"x\")) (file-error nil))")
    assert str(excinfo.value) == 'My message: 1, "x"'


def test_error_formats_its_message() -> None:
    rt = make_runtime()
    text = rt.eval_string(
        '(condition-case err (error "Bad %s: %d" "move" 3) (error (error-message-string err)))'
    )
    assert text == "Bad move: 3"


def test_user_error_is_its_own_condition() -> None:
    rt = make_runtime()
    result = rt.eval_string(
        "(condition-case err (user-error \"No game\") (user-error (car err)))"
    )
    assert result is Symbol("user-error")


def test_error_message_string_describes_signal_data() -> None:
    rt = make_runtime()
    assert rt.eval_string("(error-message-string '(void-variable foo))") == (
        "Symbol's value as variable is void: foo"
    )
    assert rt.eval_string("(error-message-string '(search-failed))") == "Search failed"


def test_catch_and_throw() -> None:
    rt = make_runtime()
    assert rt.eval_string("(catch 'done (dotimes (i 10) (when (= i 3) (throw 'done i))) 'never)") == 3
    with pytest.raises(ThrowSignal):
        rt.eval_string("(catch 'other (throw 'done 1))")


def test_condition_case_success_clause() -> None:
    rt = make_runtime()
    assert rt.eval_string("(condition-case v (+ 1 2) (error 0) (:success (* v 10)))") == 30


def test_ignore_errors_and_ignore_error() -> None:
    rt = make_runtime()
    assert rt.eval_string("(ignore-errors (car 1))") is NIL
    assert rt.eval_string("(ignore-error wrong-type-argument (car 1))") is NIL
    with pytest.raises(ConditionSignal):
        rt.eval_string("(ignore-error arith-error (signal 'void-variable '(x)))")


def test_unwind_protect_runs_cleanup_on_error() -> None:
    rt = make_runtime()
    rt.eval_string("(defvar cleaned nil)")
    rt.eval_string("(ignore-errors (unwind-protect (error \"boom\") (setq cleaned t)))")
    assert rt.eval_string("cleaned") is Symbol("t")


def test_unwind_protect_cleanup_runs_when_throwing_to_catch() -> None:
    rt = make_runtime()
    source = "(let ((trail nil)) (list (catch 'done (unwind-protect (throw 'done 1) (push 'cleanup trail))) trail))"
    assert prin1_to_string(rt.eval_string(source)) == "(1 (cleanup))"


def test_unwind_protect_cleanup_failure_after_success_propagates() -> None:
    rt = make_runtime()
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string('(unwind-protect 1 (error "cleanup broke"))')
    assert str(excinfo.value) == "cleanup broke"


def test_unwind_protect_keeps_the_body_failure_over_the_cleanup_one() -> None:
    rt = make_runtime()
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string('(unwind-protect (error "body broke") (error "cleanup broke"))')
    assert str(excinfo.value) == "body broke"
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string('(unwind-protect (error "body broke") (char-to-string -5))')
    assert str(excinfo.value) == "body broke"


def test_python_failures_inside_primitives_are_plain_errors() -> None:
    rt = make_runtime()
    assert rt.eval_string("(condition-case nil (char-to-string -5) (error 'caught))") is Symbol("caught")
    assert rt.eval_string("(condition-case nil (expt 0 -1) (error 'caught))") is Symbol("caught")
    assert rt.eval_string("(condition-case err (char-to-string -5) (error (car err)))") is Symbol("error")
    assert rt.eval_string("(ignore-errors (char-to-string -5))") is NIL


def test_overflow_error_is_an_arith_error() -> None:
    rt = make_runtime()
    assert rt.conditions.ancestry("overflow-error") == ["overflow-error", "arith-error", ROOT_CONDITION]
    assert rt.eval_string("(condition-case nil (truncate 1.0e400) (arith-error 'overflow))") is Symbol("overflow")
    assert rt.eval_string("(condition-case nil (truncate 1.0e400) (error 'caught))") is Symbol("caught")


def test_every_signalled_condition_is_registered() -> None:
    pattern = re.compile(r'ConditionSignal\(\s*"([a-z-]+)"')
    package = Path(elisp_compat.__file__).parent
    names = {
        name
        for path in package.rglob("*.py")
        for name in pattern.findall(path.read_text(encoding="utf-8"))
    }
    assert "overflow-error" in names
    registry = ConditionRegistry()
    assert [name for name in sorted(names) if not registry.is_defined(name)] == []
    for name in names:
        assert registry.ancestry(name)[-1] == ROOT_CONDITION
