from __future__ import annotations

import pytest

from elisp_compat.errors import ConditionSignal, UnimplementedPrimitiveError
from elisp_compat.host.printer import prin1_to_string
from elisp_compat.host.values import NIL, T, Symbol
from elisp_compat.runtime.session import Runtime


def make_runtime() -> Runtime:
    return Runtime.create()


def evaluated(rt: Runtime, source: str) -> str:
    return prin1_to_string(rt.eval_string(source))


def test_let_initializers_see_the_outer_scope() -> None:
    rt = make_runtime()
    assert rt.eval_string("(let ((x 1)) (let ((x 2) (y x)) y))") == 1
    assert rt.eval_string("(let* ((x 1) (y (+ x 1))) y)") == 2
    assert evaluated(rt, "(let (a (b)) (list a b))") == "(nil nil)"


def test_special_variables_bind_dynamically() -> None:
    rt = make_runtime()
    rt.eval_string("(defvar depth 1) (defun get-depth () depth)")
    assert rt.eval_string("(let ((depth 5)) (get-depth))") == 5
    assert rt.eval_string("depth") == 1


def test_defvar_keeps_an_existing_value() -> None:
    rt = make_runtime()
    rt.eval_string("(defvar level 3) (defvar level 9)")
    assert rt.eval_string("level") == 3


def test_closures_capture_lexical_bindings() -> None:
    rt = make_runtime()
    rt.eval_string("(let ((n 0)) (setq counter (lambda () (setq n (1+ n)))))")
    rt.eval_string("(funcall counter)")
    assert rt.eval_string("(funcall counter)") == 2


def test_setq_rejects_constants_and_odd_arguments() -> None:
    rt = make_runtime()
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string("(setq nil 1)")
    assert excinfo.value.condition == "setting-constant"
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string("(setq :key 1)")
    assert excinfo.value.condition == "setting-constant"
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string("(setq a)")
    assert excinfo.value.condition == "wrong-number-of-arguments"


def test_void_variable_and_missing_function() -> None:
    rt = make_runtime()
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string("not-bound-anywhere")
    assert excinfo.value.condition == "void-variable"
    with pytest.raises(UnimplementedPrimitiveError) as missing:
        rt.eval_string("(condition-case nil (no-such-function 1) (error 'caught))")
    assert missing.value.name == "no-such-function"


def test_conditionals_and_sequencing() -> None:
    rt = make_runtime()
    assert rt.eval_string("(cond ((= 1 2) 'a) ((> 3 2) 'b))") is Symbol("b")
    assert rt.eval_string("(cond ((+ 2 3)))") == 5
    assert rt.eval_string("(prog1 1 2 3)") == 1
    assert rt.eval_string("(prog2 1 2 3)") == 2
    assert rt.eval_string("(and 1 nil 3)") is NIL
    assert rt.eval_string("(or nil 2)") == 2
    assert rt.eval_string("(if nil 1 2 3)") == 3
    assert rt.eval_string("(unless nil 'ran)") is Symbol("ran")


def test_while_loop_accumulates() -> None:
    rt = make_runtime()
    source = "(let ((i 0) (acc nil)) (while (< i 3) (push i acc) (setq i (1+ i))) acc)"
    assert evaluated(rt, source) == "(2 1 0)"


def test_backquote_splices_and_unquotes() -> None:
    rt = make_runtime()
    assert evaluated(rt, "(let ((x 1) (ys '(2 3))) `(a ,x ,@ys))") == "(a 1 2 3)"
    assert evaluated(rt, "(let ((x 1)) `[p ,x])") == "[p 1]"


def test_macros_expand_before_evaluation() -> None:
    rt = make_runtime()
    rt.eval_string("(defmacro my-inc (v) `(setq ,v (+ ,v 1)))")
    assert rt.eval_string("(let ((z 1)) (my-inc z) z)") == 2
    assert evaluated(rt, "(macroexpand-1 '(my-inc q))") == "(setq q (+ q 1))"


def test_pcase_patterns() -> None:
    rt = make_runtime()
    source = """
    (defun classify (v)
      (pcase v
        ((pred stringp) 'str)
        ((or 'a 'b) 'letter)
        ((and n (guard (> n 2))) (* n 10))
        (_ 'other)))
    """
    rt.eval_string(source)
    assert rt.eval_string('(classify "x")') is Symbol("str")
    assert rt.eval_string("(classify 3)") == 30
    assert rt.eval_string("(classify 'b)") is Symbol("letter")
    assert rt.eval_string("(classify 1)") is Symbol("other")
    assert rt.eval_string("(pcase 5 (1 'one))") is NIL


def test_generalized_places() -> None:
    rt = make_runtime()
    source = "(let ((l (list 1 2 3))) (setf (nth 1 l) 20) (push 0 l) (pop l) (incf (car l) 5) l)"
    assert evaluated(rt, source) == "(6 20 3)"
    assert evaluated(rt, "(let ((v (vector 1 2))) (cl-rotatef (aref v 0) (aref v 1)) v)") == "[2 1]"
    rt.eval_string("(setf (get 'piece 'color) 'red)")
    assert rt.eval_string("(get 'piece 'color)") is Symbol("red")
    assert rt.eval_string("(let ((x nil)) (cl-decf x 2))") == -2


def test_with_temp_buffer_is_killed_afterwards() -> None:
    rt = make_runtime()
    assert rt.eval_string('(with-temp-buffer (insert "abc") (buffer-string))') == "abc"
    assert rt.current_buffer().name == "*scratch*"
    assert " *temp*" not in rt.document.buffer_names()


def test_save_excursion_restores_point() -> None:
    rt = make_runtime()
    buffer = rt.current_buffer()
    buffer.insert("hello")
    buffer.goto(1)
    rt.eval_string('(save-excursion (goto-char (point-max)) (insert "!"))')
    assert buffer.text == "hello!"
    assert buffer.point == 1


def test_with_current_buffer_switches_temporarily() -> None:
    rt = make_runtime()
    rt.eval_string('(with-current-buffer (get-buffer-create "other") (insert "z"))')
    assert rt.current_buffer().name == "*scratch*"
    assert rt.eval_string('(with-current-buffer "other" (buffer-string))') == "z"


def test_save_match_data_restores_the_record() -> None:
    rt = make_runtime()
    rt.eval_string('(string-match "a" "xa")')
    rt.eval_string('(save-match-data (string-match "b" "bbb"))')
    assert rt.eval_string("(match-beginning 0)") == 1


def test_dotimes_and_dolist() -> None:
    rt = make_runtime()
    assert rt.eval_string("(let ((s 0)) (dotimes (i 4 s) (setq s (+ s i))))") == 6
    assert evaluated(rt, "(let (out) (dolist (x '(a b) out) (push x out)))") == "(b a)"
    assert rt.eval_string("(let ((n 0)) (dolist (x [1 2 3]) (setq n (+ n x))) n)") == 6
    assert rt.eval_string("(dotimes (i 2) i)") is NIL


def test_t_evaluates_to_itself() -> None:
    rt = make_runtime()
    assert rt.eval_string("t") is T
    assert rt.eval_string(":kw") is Symbol(":kw")
