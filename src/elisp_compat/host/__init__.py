"""Minimal S-expression host: values, environments, reader, printer and eval."""

from .env import UNBOUND, Environment
from .evaluator import Interpreter
from .printer import prin1_to_string, princ_to_string
from .reader import Reader, read_all, read_one
from .values import (
    NIL,
    T,
    Cons,
    Lambda,
    Macro,
    ParamSpec,
    Primitive,
    SpecialForm,
    Symbol,
    Vector,
    from_list,
    intern,
    lisp_list,
    to_list,
)

__all__ = [
    "UNBOUND",
    "Environment",
    "Interpreter",
    "Reader",
    "read_all",
    "read_one",
    "prin1_to_string",
    "princ_to_string",
    "NIL",
    "T",
    "Cons",
    "Lambda",
    "Macro",
    "ParamSpec",
    "Primitive",
    "SpecialForm",
    "Symbol",
    "Vector",
    "from_list",
    "intern",
    "lisp_list",
    "to_list",
]
