"""Source preprocessing for dialect reader syntax."""

from .preprocessor import parse_char_literal, parse_radix_literal, preprocess

__all__ = ["preprocess", "parse_char_literal", "parse_radix_literal"]
