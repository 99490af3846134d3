from __future__ import annotations

from dataclasses import dataclass

import pytest

from elisp_compat.errors import ArityError, ConditionSignal, TypeMismatchError, UnimplementedPrimitiveError
from elisp_compat.host.values import NIL, T, Symbol
from elisp_compat.runtime.loader import MemoryFileSource
from elisp_compat.runtime.session import Runtime, RuntimeConfig
from elisp_compat.runtime.timers import parse_delay


@dataclass
class FakeClock:
    now: float = 0.0

    def __call__(self) -> float:
        return self.now


def make_runtime(clock: FakeClock | None = None, files: dict[str, str] | None = None) -> Runtime:
    source = MemoryFileSource()
    for path, text in (files or {}).items():
        source.add(path, text)
    config = RuntimeConfig(load_paths=("/lib",), file_source=source, clock=clock)
    return Runtime.create(config)


def test_parse_delay_accepts_numbers_and_unit_strings() -> None:
    assert parse_delay(NIL) == 0.0
    assert parse_delay(1.5) == 1.5
    assert parse_delay("now") == 0.0
    assert parse_delay("2 sec") == 2.0
    assert parse_delay("500 ms") == 0.5
    assert parse_delay("1 min") == 60.0
    with pytest.raises(TypeMismatchError):
        parse_delay("soon")


def test_periodic_timer_fires_and_reschedules() -> None:
    clock = FakeClock()
    rt = make_runtime(clock)
    rt.eval_string(
        """
        (defvar ticks 0)
        (defun tick () (setq ticks (1+ ticks)))
        (setq game-timer (run-at-time 0.5 1 #'tick))
        """
    )
    assert rt.tick_timers(0.4) == []
    assert rt.eval_string("ticks") == 0
    rt.tick_timers(0.5)
    rt.tick_timers(1.5)
    assert rt.eval_string("ticks") == 2
    rt.eval_string("(cancel-timer game-timer)")
    rt.tick_timers(10.0)
    assert rt.eval_string("ticks") == 2


def test_tick_without_argument_reads_the_clock() -> None:
    clock = FakeClock()
    rt = make_runtime(clock)
    rt.eval_string("(defvar fired nil) (run-at-time \"2 sec\" nil (lambda () (setq fired t)))")
    clock.now = 1.0
    rt.tick_timers()
    assert rt.eval_string("fired") is NIL
    clock.now = 2.0
    rt.tick_timers()
    assert rt.eval_string("fired") is T


def test_one_shot_timer_with_arguments() -> None:
    rt = make_runtime(FakeClock())
    rt.eval_string("(defvar got nil) (run-at-time nil nil (lambda (x) (setq got x)) 7)")
    rt.tick_timers(0.0)
    assert rt.eval_string("got") == 7
    assert rt.eval_string("(timer-list)") is NIL


def test_failing_timer_is_disabled_and_reported() -> None:
    rt = make_runtime(FakeClock())
    rt.eval_string('(run-at-time 0 1 (lambda () (error "boom")))')
    failures = rt.tick_timers(0.0)
    assert len(failures) == 1
    assert failures[0].message == "boom"
    assert failures[0].timer.active is False
    assert rt.messages[-1] == "timer error: boom"
    assert rt.tick_timers(5.0) == []


def test_python_failure_in_a_timer_disables_it() -> None:
    rt = make_runtime(FakeClock())
    rt.eval_string("(run-at-time 0 1 (lambda () (char-to-string -5)))")
    failures = rt.tick_timers(0.0)
    assert len(failures) == 1
    assert isinstance(failures[0].error, ConditionSignal)
    assert failures[0].error.condition == "error"
    assert failures[0].timer.active is False


def test_quit_in_a_timer_is_not_a_failure() -> None:
    rt = make_runtime(FakeClock())
    rt.eval_string("(run-at-time 0 nil (lambda () (signal 'quit nil)))")
    assert rt.tick_timers(0.0) == []


def test_unimplemented_function_in_a_timer_is_reported() -> None:
    rt = make_runtime(FakeClock())
    rt.eval_string("(run-at-time 0 nil (lambda () (missing-game-function)))")
    failures = rt.tick_timers(0.0)
    assert isinstance(failures[0].error, UnimplementedPrimitiveError)


def test_commands_fall_back_to_a_prefix_argument() -> None:
    rt = make_runtime()
    rt.eval_string("(defvar got nil) (defun with-arg (n) (interactive \"p\") (setq got n))")
    rt.invoke_command(Symbol("with-arg"))
    assert rt.eval_string("got") == 1
    assert rt.eval_string("(commandp 'with-arg)") is T
    assert rt.eval_string("(commandp 'car)") is NIL


def test_failing_prefix_command_runs_only_once() -> None:
    rt = make_runtime()
    rt.eval_string(
        """
        (defvar hits 0)
        (defun strike (n) (interactive "p") (setq hits (+ hits n)) (insert "x") (error "boom"))
        """
    )
    with pytest.raises(ConditionSignal) as excinfo:
        rt.invoke_command(Symbol("strike"))
    assert str(excinfo.value) == "boom"
    assert rt.eval_string("hits") == 1
    assert rt.current_buffer().text == "x"


def test_arity_failures_inside_a_command_are_not_retried() -> None:
    rt = make_runtime()
    rt.eval_string("(defvar runs 0) (defun clumsy () (setq runs (1+ runs)) (car))")
    with pytest.raises(ArityError) as excinfo:
        rt.invoke_command(Symbol("clumsy"))
    assert excinfo.value.name == "car"
    assert rt.eval_string("runs") == 1


def test_commands_needing_two_arguments_fail_loudly() -> None:
    rt = make_runtime()
    rt.eval_string("(defun needs-two (a b) (list a b))")
    with pytest.raises(ArityError):
        rt.invoke_command(Symbol("needs-two"))
    assert rt.messages[-1] == "needs-two expected 2 arguments, received 0"


def test_dispatch_reports_command_failures_as_false() -> None:
    rt = make_runtime()
    rt.eval_string(
        """
        (defun broken () (interactive) (error "nope"))
        (defun unfinished () (interactive) (not-written-yet))
        (defvar-keymap play-map "b" #'broken "u" #'unfinished)
        (use-local-map play-map)
        """
    )
    assert rt.dispatch_key(ord("b")) is False
    with pytest.raises(UnimplementedPrimitiveError):
        rt.dispatch_key(ord("u"))


def test_status_line_describes_the_local_map() -> None:
    rt = make_runtime()
    assert rt.status_line() is None
    rt.eval_string("(defvar-keymap m \"q\" 'tetris-end-game \"n\" 'tetris-start-game) (use-local-map m)")
    assert rt.status_line() == "q quit | n new"


def test_require_loads_features_from_load_paths() -> None:
    rt = make_runtime(
        files={
            "/lib/tiles-core.el": "(defvar tiles-size 4) (provide 'tiles-core)",
            "/lib/tiles/extra.el": "(defun tiles-extra-fn () 'extra) (provide 'tiles-extra)",
        }
    )
    assert rt.eval_string("(require 'tiles-core)") is Symbol("tiles-core")
    assert rt.eval_string("tiles-size") == 4
    assert rt.eval_string("(featurep 'tiles-core)") is T
    rt.eval_string("(require 'tiles-extra)")
    assert rt.eval_string("(tiles-extra-fn)") is Symbol("extra")


def test_require_of_missing_feature() -> None:
    rt = make_runtime()
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string("(require 'nowhere)")
    assert excinfo.value.condition == "file-missing"
    assert rt.eval_string("(require 'nowhere nil t)") is NIL
    assert rt.eval_string("(condition-case nil (require 'nowhere) (file-error 'missing))") is Symbol("missing")


def test_mutually_requiring_files_terminate() -> None:
    rt = make_runtime(
        files={
            "/lib/left.el": "(require 'right) (provide 'left)",
            "/lib/right.el": "(require 'left) (provide 'right)",
        }
    )
    rt.eval_string("(require 'left)")
    assert {"left", "right"} <= rt.features
    assert not rt.loading


def test_loading_a_file_adds_its_directory_to_the_load_path() -> None:
    rt = make_runtime(
        files={
            "/game/main.el": "(require 'helper) (helper-fn)",
            "/game/helper.el": "(defun helper-fn () 'ok) (provide 'helper)",
        }
    )
    assert rt.load("/game/main.el") is Symbol("ok")
    assert rt.eval_string('(load "helper")') is T


def test_runtimes_are_isolated() -> None:
    first, second = make_runtime(), make_runtime()
    first.eval_string("(defvar shared 1) (define-error 'only-here \"x\")")
    assert second.eval_string("(boundp 'shared)") is NIL
    assert not second.conditions.is_defined("only-here")


def test_teardown_clears_timers() -> None:
    rt = make_runtime(FakeClock())
    rt.eval_string("(run-at-time 1 1 #'ignore)")
    rt.teardown()
    assert len(rt.timers) == 0
