from __future__ import annotations

from typing import Any

import pytest

from elisp_compat.errors import ConditionSignal, TypeMismatchError
from elisp_compat.host.printer import prin1_to_string
from elisp_compat.host.values import NIL, T, Symbol
from elisp_compat.runtime.session import Runtime


@pytest.fixture
def rt() -> Runtime:
    return Runtime.create()


def printed(rt: Runtime, source: str) -> str:
    return prin1_to_string(rt.eval_string(source))


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("(/ 7 2)", 3),
        ("(/ -7 2)", -3),
        ("(/ 7 2.0)", 3.5),
        ("(% -7 2)", -1),
        ("(mod -7 2)", 1),
        ("(max 1 2.0)", 2.0),
        ("(floor -7 2)", -4),
        ("(truncate 2.7)", 2),
        ("(ash 1 4)", 16),
        ("(ash 16 -2)", 4),
        ("(logand 12 10)", 8),
        ("(logior 12 10)", 14),
        ("(expt 2 10)", 1024),
        ("(abs -3)", 3),
        ("(- 5)", -5),
        ("(1+ 41)", 42),
    ],
)
def test_arithmetic(rt: Runtime, source: str, expected: Any) -> None:
    assert rt.eval_string(source) == expected


def test_comparisons_chain(rt: Runtime) -> None:
    assert rt.eval_string("(< 1 2 3)") is T
    assert rt.eval_string("(< 1 3 2)") is NIL
    assert rt.eval_string("(= 1 1.0)") is T
    assert rt.eval_string("(/= 1 2)") is T


def test_integer_division_by_zero_signals(rt: Runtime) -> None:
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string("(/ 1 0)")
    assert excinfo.value.condition == "arith-error"
    assert rt.eval_string("(condition-case nil (% 3 0) (arith-error 'caught))") is Symbol("caught")


def test_non_numbers_raise_type_mismatch(rt: Runtime) -> None:
    with pytest.raises(TypeMismatchError):
        rt.eval_string('(+ 1 "two")')


def test_random_is_bounded_and_seedable(rt: Runtime) -> None:
    values = [rt.eval_string("(random 6)") for _ in range(20)]
    assert all(0 <= value < 6 for value in values)
    first = rt.eval_string('(progn (random "seed") (random 1000))')
    second = rt.eval_string('(progn (random "seed") (random 1000))')
    assert first == second


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ('(format "%d-%s" 7 "x")', "7-x"),
        ('(format "%03d|%-4d|" 7 7)', "007|7   |"),
        ('(format "%5.2f" 3.14159)', " 3.14"),
        ('(format "%S %s" "q" "q")', '"q" q'),
        ('(format "%c%x%X" 65 255 255)', "AffFF"),
        ('(format "100%%")', "100%"),
        ('(format "%s" \'(1 "a"))', "(1 a)"),
    ],
)
def test_format_directives(rt: Runtime, source: str, expected: str) -> None:
    assert rt.eval_string(source) == expected


def test_format_with_too_few_arguments_signals(rt: Runtime) -> None:
    with pytest.raises(ConditionSignal):
        rt.eval_string('(format "%s %s" 1)')


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ('(concat "a" "b" "c")', "abc"),
        ('(substring "hello" 1 -1)', "ell"),
        ('(string-trim "  x  ")', "x"),
        ('(string-join (list "a" "b") "-")', "a-b"),
        ('(upcase "ab")', "AB"),
        ('(capitalize "hello world")', "Hello World"),
        ('(make-string 3 ?x)', "xxx"),
        ("(string ?a ?b)", "ab"),
        ('(string-replace "a" "o" "banana")', "bonono"),
        ('(number-to-string 1.5)', "1.5"),
    ],
)
def test_string_operations(rt: Runtime, source: str, expected: str) -> None:
    assert rt.eval_string(source) == expected


def test_string_predicates_and_numbers(rt: Runtime) -> None:
    assert rt.eval_string('(string-prefix-p "ab" "abc")') is T
    assert rt.eval_string('(string= "a" "b")') is NIL
    assert rt.eval_string('(string-search "b" "abc")') == 1
    assert rt.eval_string('(string-to-number "42")') == 42
    assert rt.eval_string('(string-to-number "3.5")') == 3.5
    assert rt.eval_string('(string-to-number "ff" 16)') == 255
    assert rt.eval_string('(string-to-number "abc")') == 0
    assert rt.eval_string("(upcase ?a)") == 65


def test_split_string(rt: Runtime) -> None:
    assert printed(rt, '(split-string "  a b  c ")') == '("a" "b" "c")'
    assert printed(rt, '(split-string "a,b,,c" ",")') == '("a" "b" "" "c")'
    assert printed(rt, '(split-string "a,b,,c" "," t)') == '("a" "b" "c")'


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("(mapcar (lambda (x) (* x 2)) '(1 2 3))", "(2 4 6)"),
        ("(mapconcat #'number-to-string '(1 2 3) \",\")", '"1,2,3"'),
        ("(sort (list 3 1 2) #'<)", "(1 2 3)"),
        ("(number-sequence 1 5 2)", "(1 3 5)"),
        ("(nreverse (list 1 2))", "(2 1)"),
        ("(assoc \"b\" '((\"a\" . 1) (\"b\" . 2)))", '("b" . 2)'),
        ("(alist-get 'b '((a . 1) (b . 2)))", "2"),
        ("(last '(1 2 3))", "(3)"),
        ("(butlast '(1 2 3))", "(1 2)"),
        ("(append '(1) '(2) nil '(3))", "(1 2 3)"),
        ("(memq 'c '(a b c d))", "(c d)"),
        ("(delete 2 (list 1 2 3 2))", "(1 3)"),
        ("(seq-filter #'cl-evenp '(1 2 3 4))", "(2 4)"),
        ("(aref [1 2 3] 1)", "2"),
        ("(make-vector 2 0)", "[0 0]"),
        ("(vconcat '(1) [2])", "[1 2]"),
        ("(length \"abc\")", "3"),
        ("(nth 5 '(a b))", "nil"),
    ],
)
def test_sequence_operations(rt: Runtime, source: str, expected: str) -> None:
    assert printed(rt, source) == expected


def test_aset_mutates_vectors_in_place(rt: Runtime) -> None:
    assert printed(rt, "(let ((v (make-vector 3 0))) (aset v 1 9) v)") == "[0 9 0]"


def test_negative_lengths_are_wrong_type(rt: Runtime) -> None:
    with pytest.raises(TypeMismatchError):
        rt.eval_string("(make-vector -1 0)")
    with pytest.raises(TypeMismatchError):
        rt.eval_string("(make-string -1 ?x)")
    assert rt.eval_string("(condition-case nil (make-vector -2 nil) (wrong-type-argument 'bad))") is Symbol("bad")
    assert rt.eval_string("(make-string 0 ?x)") == ""


def test_symbol_primitives(rt: Runtime) -> None:
    assert rt.eval_string('(eq (intern "abc") \'abc)') is T
    assert rt.eval_string("(eq (make-symbol \"abc\") 'abc)") is NIL
    assert rt.eval_string("(symbol-name 'abc)") == "abc"
    rt.eval_string("(put 'gem 'value 10) (set 'score 5)")
    assert rt.eval_string("(get 'gem 'value)") == 10
    assert rt.eval_string("score") == 5
    assert rt.eval_string("(boundp 'score)") is T
    assert rt.eval_string("(boundp 'unset-thing)") is NIL
    assert rt.eval_string("(equal '(1 \"a\") (list 1 \"a\"))") is T
    assert rt.eval_string("(type-of 1.5)") is Symbol("float")


def test_buffer_local_variables(rt: Runtime) -> None:
    rt.eval_string("(defvar speed 1)")
    rt.eval_string('(with-current-buffer (get-buffer-create "fast") (setq-local speed 9))')
    assert rt.eval_string("(buffer-local-value 'speed (get-buffer \"fast\"))") == 9
    assert rt.eval_string("(local-variable-p 'speed)") is NIL


def test_editing_and_line_motion(rt: Runtime) -> None:
    rt.eval_string('(insert "line1\\nline2\\nline3")')
    rt.eval_string("(goto-char (point-min))")
    assert rt.eval_string("(forward-line 1)") == 0
    assert rt.eval_string("(point)") == 7
    assert rt.eval_string("(line-end-position)") == 12
    assert rt.eval_string("(line-number-at-pos)") == 2
    assert rt.eval_string("(bolp)") is T
    rt.eval_string("(end-of-line)")
    assert rt.eval_string("(eolp)") is T
    assert rt.eval_string("(current-column)") == 5
    assert rt.eval_string("(forward-line 5)") == 4


def test_insert_delete_and_char_access(rt: Runtime) -> None:
    rt.eval_string('(insert "abc" ?d)')
    assert rt.eval_string("(buffer-string)") == "abcd"
    assert rt.eval_string("(char-before)") == ord("d")
    rt.eval_string("(goto-char 2) (delete-char 1)")
    assert rt.eval_string("(buffer-string)") == "acd"
    assert rt.eval_string("(char-after)") == ord("c")
    assert rt.eval_string("(buffer-substring 1 3)") == "ac"
    rt.eval_string("(erase-buffer)")
    assert rt.eval_string("(buffer-size)") == 0


def test_buffer_table_primitives(rt: Runtime) -> None:
    rt.eval_string('(switch-to-buffer "game")')
    assert rt.eval_string("(buffer-name)") == "game"
    assert rt.eval_string('(buffer-live-p (get-buffer "game"))') is T
    assert rt.eval_string('(kill-buffer "game")') is T
    assert rt.eval_string("(buffer-name)") == "*scratch*"
    assert rt.eval_string('(get-buffer "game")') is NIL


def test_window_primitives(rt: Runtime) -> None:
    rt.eval_string("(split-window)")
    assert rt.eval_string("(length (window-list))") == 2
    rt.eval_string("(delete-other-windows)")
    assert rt.eval_string("(length (window-list))") == 1
    rt.eval_string('(set-window-buffer (selected-window) "shown")')
    assert rt.eval_string("(buffer-name (window-buffer))") == "shown"
    assert rt.eval_string("(frame-width)") == 120
    assert rt.eval_string("(windowp (selected-window))") is T


def test_message_records_formatted_text(rt: Runtime) -> None:
    assert rt.eval_string('(message "score: %d" 12)') == "score: 12"
    assert rt.messages[-1] == "score: 12"
    assert rt.eval_string("(message nil)") is NIL


def test_funcall_apply_and_call_fn(rt: Runtime) -> None:
    assert rt.eval_string("(apply #'+ 1 2 '(3 4))") == 10
    assert rt.eval_string("(funcall (lambda (a b) (- a b)) 5 3)") == 2
    assert rt.eval_string('(call-fn "max" 3 9)') == 9
    assert rt.eval_string("(eval '(* 6 7))") == 42


def test_time_values(rt: Runtime) -> None:
    assert rt.eval_string("(float-time '(0 5 0 0))") == 5.0
    assert rt.eval_string("(float-time '(1 . 4))") == 0.25
    assert rt.eval_string("(time-convert '(0 7 500000 0) 'integer)") == 7
    assert rt.eval_string("(time-equal-p 5 '(0 5 0 0))") is T
    assert rt.eval_string("(length (current-time))") == 4
    assert len(rt.eval_string("(current-time-string)")) == 24


def test_prompts_answer_without_input(rt: Runtime) -> None:
    assert rt.eval_string('(read-string "Name: " "init")') == "init"
    assert rt.eval_string('(read-string "Name: " nil nil "dflt")') == "dflt"
    assert rt.eval_string("(prefix-numeric-value nil)") == 1
    assert rt.eval_string("(prefix-numeric-value '(4))") == 4


def test_text_property_functions_are_accepted(rt: Runtime) -> None:
    assert rt.eval_string('(propertize "x" \'face \'bold)') == "x"
    rt.eval_string("(put-text-property 1 1 'face 'bold)")
    assert rt.eval_string("(get-text-property 1 'face)") is NIL
