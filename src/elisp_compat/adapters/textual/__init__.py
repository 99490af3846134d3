"""Textual adapter surface for the compatibility runtime."""

from .controller import BufferView, TextualElispAdapter, TextualUIHooks, translate_key

__all__ = ["BufferView", "TextualElispAdapter", "TextualUIHooks", "translate_key"]
