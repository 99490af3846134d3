from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from elisp_compat.adapters.textual import BufferView, TextualElispAdapter, TextualUIHooks, translate_key
from elisp_compat.runtime.session import Runtime, RuntimeConfig

GAME_SOURCE = """
(defvar moves 0)
(defun tiles-move-left () (interactive) (setq moves (1+ moves)) (insert "<"))
(defun tiles-end-game () (interactive) (message "bye %d" moves))
(defun tiles-hint () (interactive) (tiles-unwritten-helper))
(defvar-keymap tiles-mode-map
  "<left>" #'tiles-move-left
  "q" #'tiles-end-game
  "h" #'tiles-hint)
(use-local-map tiles-mode-map)
"""


class Recorder:
    def __init__(self) -> None:
        self.views: List[BufferView] = []
        self.statuses: List[str] = []
        self.messages: List[str] = []
        self.logs: List[str] = []

    def hooks(self) -> TextualUIHooks:
        return TextualUIHooks(
            update_buffer=self.views.append,
            update_status=self.statuses.append,
            show_message=self.messages.append,
            log=self.logs.append,
        )


def make_adapter(clock: float = 0.0) -> tuple[Runtime, TextualElispAdapter, Recorder]:
    runtime = Runtime.create(RuntimeConfig(clock=lambda: clock))
    runtime.eval_string(GAME_SOURCE)
    recorder = Recorder()
    adapter = TextualElispAdapter(runtime, recorder.hooks())
    return runtime, adapter, recorder


def test_translate_key_maps_textual_names() -> None:
    assert translate_key("ctrl+c") == 3
    assert translate_key("ctrl+1") is None
    assert translate_key("left") == "left"
    assert translate_key("a", "a") == ord("a")
    assert translate_key("f1") is None


def test_adapter_pushes_initial_view_and_status() -> None:
    _, _, recorder = make_adapter()
    assert recorder.views[-1].name == "*scratch*"
    assert recorder.views[-1].text == ""
    assert recorder.statuses[-1] == "q quit | left left | h tiles hint"


def test_arrow_key_runs_the_bound_command() -> None:
    runtime, adapter, recorder = make_adapter()
    assert adapter.handle_textual_key("left") is True
    view = recorder.views[-1]
    assert view.text == "<"
    assert (view.point, view.line, view.column) == (1, 1, 1)
    assert runtime.eval_string("moves") == 1
    assert any(line.startswith("key ->") for line in recorder.logs)


def test_messages_are_shown_once() -> None:
    _, adapter, recorder = make_adapter()
    adapter.handle_textual_key("q", text="q")
    adapter.refresh()
    assert recorder.messages == ["bye 0"]


def test_unbound_keys_are_not_handled() -> None:
    _, adapter, recorder = make_adapter()
    views = len(recorder.views)
    assert adapter.handle_textual_key("z", text="z") is False
    assert adapter.handle_textual_key("f5") is False
    assert len(recorder.views) == views


def test_unimplemented_command_becomes_a_status_notice() -> None:
    runtime, adapter, recorder = make_adapter()
    assert adapter.handle_textual_key("h", text="h") is False
    assert recorder.statuses[-1] == "feature not implemented: tiles-unwritten-helper"
    assert "unimplemented:tiles-unwritten-helper" in runtime.warned


def test_timer_failures_disable_the_timer_and_notify() -> None:
    runtime, adapter, recorder = make_adapter()
    runtime.eval_string('(run-at-time 0 1 (lambda () (error "boom")))')
    failures = adapter.process_timers(0.0)
    assert [failure.message for failure in failures] == ["boom"]
    assert recorder.statuses[-1] == "timer disabled: boom"
    assert recorder.messages[-1] == "timer error: boom"
    assert adapter.process_timers(1.0) == []


def test_timer_edits_refresh_the_view() -> None:
    runtime, adapter, recorder = make_adapter()
    runtime.eval_string('(run-at-time 0 nil (lambda () (insert "tick")))')
    adapter.process_timers(0.0)
    assert recorder.views[-1].text == "tick"


def test_app_helpers(tmp_path: Path) -> None:
    pytest.importorskip("textual")
    from elisp_compat.adapters.textual.app import create_runtime, with_cursor

    assert with_cursor("ab", 0) == "█b"
    assert with_cursor("a\nb", 1) == "a█\nb"
    assert with_cursor("ab", 9) == "ab█"

    (tmp_path / "helper.el").write_text("(defun start () (insert \"ready\")) (provide 'helper)")
    game = tmp_path / "game.el"
    game.write_text("(require 'helper)")
    runtime = create_runtime(str(game), entry="start")
    assert runtime.current_buffer().text == "ready"
