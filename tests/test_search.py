from __future__ import annotations

import re

import pytest

from elisp_compat.document.buffer import Buffer
from elisp_compat.errors import ConditionSignal
from elisp_compat.host.values import NIL, T, to_list
from elisp_compat.runtime.session import Runtime
from elisp_compat.search import operations
from elisp_compat.search.match_data import MatchData
from elisp_compat.search.regex import compile_pattern, parse_char_set, regexp_quote, translate
from elisp_compat.search.replace import expand_template


def make_buffer(text: str, point: int = 0) -> Buffer:
    buffer = Buffer(name="search", text=text)
    buffer.goto(point)
    return buffer


def make_runtime(text: str = "") -> Runtime:
    rt = Runtime.create()
    if text:
        rt.current_buffer().insert(text)
        rt.current_buffer().goto(0)
    return rt


def test_translate_groups_alternation_and_literals() -> None:
    assert translate(r"\(foo\|bar\)+") == "(foo|bar)+"
    assert translate("(a)|{b}") == r"\(a\)\|\{b\}"
    assert translate(r"\(?:x\)") == "(?:x)"
    assert translate("*star") == r"\*star"


def test_translate_character_classes() -> None:
    assert translate("[[:digit:]]+") == "[0-9]+"
    assert translate(r"\sw\s-") == r"\w\s"
    assert translate("[]a]") == r"[\]a]"


def test_invalid_patterns_compile_to_none() -> None:
    assert compile_pattern("[[:bogus:]]") is None
    assert compile_pattern("abc\\") is None
    with pytest.raises(re.error):
        translate("[abc")


def test_regexp_quote_escapes_special_characters() -> None:
    assert regexp_quote("a.b*c") == r"a\.b\*c"
    assert regexp_quote("[x]") == r"\[x]"


def test_search_forward_moves_point_and_records_span() -> None:
    buffer = make_buffer("one two two")
    match = MatchData()
    assert operations.search_forward(buffer, match, "two") == 7
    assert match.group(0) == (5, 8)
    assert operations.search_forward(buffer, match, "two") == 11
    assert operations.search_forward(buffer, match, "two") is None
    assert match.empty


def test_search_backward_lands_on_match_start() -> None:
    buffer = make_buffer("abc abc", 7)
    match = MatchData()
    assert operations.search_backward(buffer, match, "abc") == 4
    assert operations.search_backward(buffer, match, "abc") == 0


def test_regex_search_records_groups_as_positions() -> None:
    buffer = make_buffer("key=value")
    match = MatchData()
    assert operations.re_search_forward(buffer, match, r"\([a-z]+\)=\([a-z]+\)") == 9
    assert match.beginning(1) == 1
    assert match.end(2) == 10
    assert match.buffer is buffer


def test_re_search_backward_stops_before_point() -> None:
    buffer = make_buffer("x1 x2 x3", 5)
    match = MatchData()
    assert operations.re_search_backward(buffer, match, "x[0-9]") == 3
    assert buffer.point == 3


def test_string_match_offsets_are_zero_based() -> None:
    match = MatchData()
    assert operations.string_match(match, "b+", "aabbb") == 2
    assert match.in_string
    assert match.group(0) == (2, 5)
    assert operations.string_match(match, "b", "abab", 2) == 3


def test_skip_chars_sets_and_negation() -> None:
    assert parse_char_set("a-c_") == (frozenset("abc_"), False)
    buffer = make_buffer("   word  ")
    assert operations.skip_chars_forward(buffer, " ") == 3
    assert operations.skip_chars_forward(buffer, "^ ") == 4
    assert operations.skip_chars_backward(buffer, "a-z") == -4


def test_expand_template_references() -> None:
    groups = ["abc", "a", "c"]
    assert expand_template(r"<\&>", groups) == "<abc>"
    assert expand_template(r"\2\1", groups) == "ca"
    assert expand_template(r"\\\9", groups) == "\\"
    assert expand_template("tail\\", groups) == "tail\\"


def test_search_failure_signals_unless_noerror() -> None:
    rt = make_runtime("alpha")
    with pytest.raises(ConditionSignal) as excinfo:
        rt.eval_string('(search-forward "zzz")')
    assert excinfo.value.condition == "search-failed"

    assert rt.eval_string('(search-forward "zzz" nil t)') is NIL
    assert rt.current_buffer().point == 0
    assert rt.eval_string('(search-forward "zzz" nil 1)') is NIL
    assert rt.current_buffer().point == 5


def test_search_returns_one_based_positions() -> None:
    rt = make_runtime("hello world")
    assert rt.eval_string('(search-forward "world")') == 12
    assert rt.eval_string("(match-beginning 0)") == 7
    assert rt.eval_string('(re-search-backward "o")') == 8
    rt.eval_string("(goto-char (point-min))")
    assert rt.eval_string('(search-forward "l" nil nil 2)') == 5


def test_condition_case_catches_search_failed() -> None:
    rt = make_runtime("abc")
    result = rt.eval_string(
        """
        (condition-case err
            (re-search-forward "q+")
          (search-failed (car err)))
        """
    )
    assert result.name == "search-failed"


def test_match_string_for_buffer_and_string_matches() -> None:
    rt = make_runtime("name: ada")
    rt.eval_string('(re-search-forward "\\\\([a-z]+\\\\): \\\\([a-z]+\\\\)")')
    assert rt.eval_string("(match-string 2)") == "ada"
    rt.eval_string('(string-match "[0-9]+" "abc123")')
    assert rt.eval_string("(match-beginning 0)") == 3
    assert rt.eval_string('(match-string 0 "abc123")') == "123"
    assert rt.eval_string("(match-string 0)") is NIL


def test_string_match_p_preserves_match_data() -> None:
    rt = make_runtime()
    rt.eval_string('(string-match "b" "abc")')
    assert rt.eval_string('(string-match-p "c" "abc")') == 2
    assert to_list(rt.eval_string("(match-data)")) == [1, 2]


def test_replace_match_in_buffer_moves_point_after_text() -> None:
    rt = make_runtime("foo bar")
    rt.eval_string('(re-search-forward "b\\\\(a\\\\)r")')
    rt.eval_string('(replace-match "<\\\\1\\\\&>")')
    buffer = rt.current_buffer()
    assert buffer.text == "foo <abar>"
    assert buffer.point == len(buffer.text)


def test_replace_match_in_string() -> None:
    rt = make_runtime()
    rt.eval_string('(string-match "x+" "axxb")')
    assert rt.eval_string('(replace-match "Y" nil nil "axxb")') == "aYb"


def test_replace_regexp_in_string_with_template_and_function() -> None:
    rt = make_runtime()
    assert rt.eval_string('(replace-regexp-in-string "[0-9]" "#" "a1b22")') == "a#b##"
    assert rt.eval_string('(replace-regexp-in-string "o" (lambda (m) (upcase m)) "foo")') == "fOO"


def test_looking_at_and_skip_chars_through_runtime() -> None:
    rt = make_runtime("  indented")
    assert rt.eval_string('(looking-at " +")') is T
    assert rt.eval_string('(skip-chars-forward " ")') == 2
    assert rt.eval_string('(looking-at-p "ind")') is T
    assert rt.eval_string('(looking-at "x")') is NIL


def test_regexp_opt_builds_alternation() -> None:
    rt = make_runtime()
    assert rt.eval_string('(regexp-opt (list "a" "b.") t)') == "\\(a\\|b\\.\\)"
    assert rt.eval_string('(string-match (regexp-opt (list "cat" "dog")) "hotdog")') == 3
