from __future__ import annotations

import pytest

from elisp_compat.errors import ParseError
from elisp_compat.host.printer import prin1_to_string
from elisp_compat.host.reader import read_all, read_one
from elisp_compat.host.values import NIL, Cons, Symbol, Vector
from elisp_compat.syntax.preprocessor import preprocess


def printed(source: str) -> str:
    return prin1_to_string(read_one(preprocess(source)))


def test_reads_lists_dotted_pairs_and_atoms() -> None:
    assert printed("(a (b . c) 12 -3 1.5 .5 nil)") == "(a (b . c) 12 -3 1.5 0.5 nil)"
    assert read_one("nil") is NIL
    assert read_one("foo") is Symbol("foo")


def test_quote_shorthands_expand_to_lists() -> None:
    form = read_one("'x")
    assert isinstance(form, Cons)
    assert form.car is Symbol("quote")
    assert printed("`(a ,b ,@c)") == "`(a ,b ,@c)"


def test_string_escapes() -> None:
    assert read_one(r'"a\nb\t\"q\"\\"') == 'a\nb\t"q"\\'
    assert read_one('"one \\\ntwo"') == "one two"
    assert read_one(r'"\101\x42"') == "AB"


def test_vector_literals_are_materialized_without_evaluation() -> None:
    value = read_one(preprocess("[1 (+ 1 2) [x]]"))
    assert isinstance(value, Vector)
    assert value.items[0] == 1
    assert prin1_to_string(value.items[1]) == "(+ 1 2)"
    assert isinstance(value.items[2], Vector)


def test_escaped_symbol_characters() -> None:
    assert read_one(r"foo\ bar") is Symbol("foo bar")
    assert read_one(r"\1") is Symbol("1")


def test_read_all_returns_every_top_level_form() -> None:
    forms = read_all("; header\n(a) b\n\"c\"")
    assert len(forms) == 3
    assert forms[2] == "c"


@pytest.mark.parametrize("source", ["(a b", ")", "\"abc", "(. a)", "#s(x)"])
def test_malformed_input_raises_parse_error(source: str) -> None:
    with pytest.raises(ParseError):
        read_all(source)
