from __future__ import annotations

import pytest

from elisp_compat.errors import ParseError
from elisp_compat.syntax.preprocessor import parse_char_literal, preprocess


def test_vectors_become_vector_literal_forms() -> None:
    assert preprocess("[1 [2 3]]") == "(vector-literal 1 (vector-literal 2 3))"


def test_strings_and_comments_are_copied_verbatim() -> None:
    source = '(insert "[x] ?a 1+") ; [comment] ?b\n'
    assert preprocess(source) == source


def test_increment_names_are_renamed_only_as_whole_symbols() -> None:
    assert preprocess("(1+ x)") == "(succ x)"
    assert preprocess("(1- x)") == "(pred x)"
    assert preprocess("(foo-1+ x)") == "(foo-1+ x)"


def test_character_literals_become_codes() -> None:
    assert preprocess("(list ?a ?\\n ?\\t ?\\\\ ?\\C-a ?\\^b ?\\101)") == "(list 97 10 9 92 1 2 65)"


def test_parse_char_literal_reports_consumed_length() -> None:
    assert parse_char_literal("?x", 0) == (120, 2)
    assert parse_char_literal("?\\e", 0) == (27, 3)


def test_radix_literals_and_function_quotes() -> None:
    assert preprocess("(list #xff #o17 #b101)") == "(list 255 15 5)"
    assert preprocess("(mapcar #'car xs)") == "(mapcar 'car xs)"


def test_zero_argument_calls_are_renamed() -> None:
    assert preprocess("(goto-char (point))") == "(goto-char (el-point))"
    assert preprocess("( point  )") == "(el-point  )"
    assert preprocess("(dun-mode)") == "(call-fn 'dun-mode)"
    assert preprocess("(point-min)") == "(point-min)"


def test_leading_digit_symbols_get_a_prefix() -> None:
    assert preprocess("(defun 2048-move ())") == "(defun n-2048-move ())"
    assert preprocess("(+ 12 1.5e3)") == "(+ 12 1.5e3)"


@pytest.mark.parametrize(
    ("source", "message"),
    [
        ("(foo])", "unmatched ] in elisp source"),
        ("(foo [1 2)", "unmatched [ in elisp source"),
        ('(insert "abc)', "unterminated string in elisp source"),
    ],
)
def test_malformed_source_raises_parse_error(source: str, message: str) -> None:
    with pytest.raises(ParseError) as excinfo:
        preprocess(source)
    assert str(excinfo.value) == message
    assert excinfo.value.offset is not None
