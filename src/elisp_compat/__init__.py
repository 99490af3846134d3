"""Emacs Lisp compatibility runtime for hosting dialect programs outside the editor."""

__all__ = [
    "adapters",
    "conditions",
    "document",
    "errors",
    "forms",
    "host",
    "primitives",
    "runtime",
    "search",
    "syntax",
]

__version__ = "0.1.0"
