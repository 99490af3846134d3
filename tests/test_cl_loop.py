from __future__ import annotations

import pytest

from elisp_compat.forms.iteration import CL_LOOP_ITERATION_CAP
from elisp_compat.host.printer import prin1_to_string
from elisp_compat.host.values import NIL
from elisp_compat.runtime.session import Runtime


def loop_result(source: str) -> str:
    return prin1_to_string(Runtime.create().eval_string(source))


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("(cl-loop for i from 1 to 5 sum i)", "15"),
        ("(cl-loop for x in '(1 2 3) collect (* x x))", "(1 4 9)"),
        ("(cl-loop for i below 3 collect i)", "(0 1 2)"),
        ('(cl-loop for c across "ab" collect c)', "(97 98)"),
        ("(cl-loop for v across [4 5] sum v)", "9"),
        ("(cl-loop for i from 10 downto 7 collect i)", "(10 9 8 7)"),
        ("(cl-loop for i from 0 by 2 below 7 collect i)", "(0 2 4 6)"),
        ("(cl-loop repeat 3 collect 'x)", "(x x x)"),
        ("(cl-loop for x = 1 then (* x 2) repeat 4 collect x)", "(1 2 4 8)"),
        ("(cl-loop with base = 10 for x in '(1 2) collect (+ base x))", "(11 12)"),
        ("(cl-loop for x in '(1 2 3 4) while (< x 3) collect x)", "(1 2)"),
        ("(cl-loop for i from 1 until (> i 3) collect i)", "(1 2 3)"),
    ],
)
def test_supported_clauses(source: str, expected: str) -> None:
    assert loop_result(source) == expected


def test_parallel_for_clauses_stop_at_the_shortest() -> None:
    assert loop_result("(cl-loop for x in '(a b c) for i from 0 collect (cons i x))") == (
        "((0 . a) (1 . b) (2 . c))"
    )
    assert loop_result("(cl-loop for x in '(a b c) for y in '(1) collect y)") == "(1)"


def test_do_clause_runs_for_side_effects() -> None:
    rt = Runtime.create()
    assert rt.eval_string("(let ((acc 0)) (cl-loop for x in '(1 2 3) do (setq acc (+ acc x))) acc)") == 6


def test_loop_without_terminal_clause_is_skipped_with_a_warning() -> None:
    rt = Runtime.create()
    assert rt.eval_string("(cl-loop for x in '(1 2))") is NIL
    assert "cl-loop-unsupported" in rt.warned


def test_unbounded_loop_stops_at_the_iteration_cap() -> None:
    rt = Runtime.create()
    assert rt.eval_string("(length (cl-loop for i upfrom 0 collect i))") == CL_LOOP_ITERATION_CAP == 100000
