"""Regex translation, buffer/string searches and the shared match record."""

from .match_data import UNMATCHED, MatchData
from .operations import (
    looking_at,
    re_search_backward,
    re_search_forward,
    search_backward,
    search_forward,
    skip_chars_backward,
    skip_chars_forward,
    string_match,
)
from .regex import compile_pattern, parse_char_set, regexp_quote, translate
from .replace import expand_template, replace_in_buffer, replace_in_string

__all__ = [
    "MatchData",
    "UNMATCHED",
    "compile_pattern",
    "translate",
    "regexp_quote",
    "parse_char_set",
    "search_forward",
    "search_backward",
    "re_search_forward",
    "re_search_backward",
    "looking_at",
    "string_match",
    "skip_chars_forward",
    "skip_chars_backward",
    "expand_template",
    "replace_in_string",
    "replace_in_buffer",
]
