from __future__ import annotations

import pytest

from elisp_compat.document.buffer import Buffer
from elisp_compat.document.windows import SCRATCH_BUFFER, DocumentModel


def make_buffer(text: str = "", point: int = 0) -> Buffer:
    buffer = Buffer(name="test", text=text)
    buffer.goto(point)
    return buffer


def test_insert_moves_point_past_text() -> None:
    buffer = make_buffer("hello", 5)
    buffer.insert(" world")
    assert buffer.text == "hello world"
    assert buffer.point == 11
    assert buffer.version == 1


def test_goto_clamps_into_range() -> None:
    buffer = make_buffer("abc")
    assert buffer.goto(-4) == 0
    assert buffer.goto(99) == 3


def test_delete_region_shifts_point_after_region() -> None:
    buffer = make_buffer("abcdef", 5)
    assert buffer.delete_region(1, 3) == "bc"
    assert buffer.text == "adef"
    assert buffer.point == 3


def test_delete_region_inside_pulls_point_to_start() -> None:
    buffer = make_buffer("abcdef", 2)
    buffer.delete_region(4, 1)
    assert buffer.text == "aef"
    assert buffer.point == 1


def test_insert_at_before_point_keeps_point_on_same_text() -> None:
    buffer = make_buffer("world", 2)
    buffer.insert_at(0, "hi ")
    assert buffer.point == 5
    assert buffer.char_at(buffer.point) == "r"


def test_line_geometry() -> None:
    buffer = make_buffer("one\ntwo\nthree", 6)
    assert buffer.line_start() == 4
    assert buffer.line_end() == 7
    assert buffer.column() == 2
    assert buffer.count_lines(0, len(buffer.text)) == 2


def test_initial_state_shows_scratch_in_window_one() -> None:
    model = DocumentModel()
    window = model.selected_window()
    assert window.id == 1
    assert model.current_buffer().name == SCRATCH_BUFFER


def test_ensure_buffer_returns_the_same_object() -> None:
    model = DocumentModel()
    first = model.ensure_buffer("game")
    assert model.ensure_buffer("game") is first
    assert model.get_buffer("game") is first
    assert model.get_buffer("missing") is None


def test_generate_new_buffer_numbers_duplicates() -> None:
    model = DocumentModel()
    names = [model.generate_new_buffer("out").name for _ in range(3)]
    assert names == ["out", "out<2>", "out<3>"]
    assert model.generate_new_buffer("").name == "*buffer*"


def test_buffer_names_are_sorted() -> None:
    model = DocumentModel()
    model.ensure_buffer("zeta")
    model.ensure_buffer("alpha")
    assert model.buffer_names() == ["*scratch*", "alpha", "zeta"]


def test_killing_shown_buffer_falls_back_to_scratch() -> None:
    model = DocumentModel()
    game = model.ensure_buffer("game")
    model.switch_to_buffer(game)
    assert model.kill_buffer("game") is True
    assert game.live is False
    assert model.current_buffer().name == SCRATCH_BUFFER
    assert model.kill_buffer("game") is False


def test_killing_every_buffer_recreates_scratch() -> None:
    model = DocumentModel()
    model.kill_buffer(SCRATCH_BUFFER)
    assert model.current_buffer().name == SCRATCH_BUFFER


def test_selected_window_recovers_from_stale_id() -> None:
    model = DocumentModel()
    other = model.new_window(model.ensure_buffer("other"))
    model.select_window(other)
    model.delete_window(other)
    assert model.selected_window().id == 1


def test_scoped_buffer_restores_on_exit_and_failure() -> None:
    model = DocumentModel()
    work = model.ensure_buffer("work")
    with model.scoped_buffer(work) as current:
        assert current is work
    assert model.current_buffer().name == SCRATCH_BUFFER

    with pytest.raises(RuntimeError):
        with model.scoped_buffer(work):
            raise RuntimeError("boom")
    assert model.current_buffer().name == SCRATCH_BUFFER


def test_window_configuration_round_trip() -> None:
    model = DocumentModel()
    saved = model.capture_configuration()
    model.switch_to_buffer(model.ensure_buffer("elsewhere"))
    model.restore_configuration(saved)
    assert model.current_buffer().name == SCRATCH_BUFFER


def test_get_buffer_window_finds_lowest_window() -> None:
    model = DocumentModel()
    shown = model.ensure_buffer("shown")
    window = model.new_window(shown)
    assert model.get_buffer_window("shown") is window
    assert model.get_buffer_window("hidden") is None
