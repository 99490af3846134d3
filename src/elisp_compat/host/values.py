"""Value kinds of the dialect and helpers shared by every primitive."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from elisp_compat.errors import ArityError, TypeMismatchError


class Symbol:
    """Interned symbol; constructing the same name twice returns one object."""

    __slots__ = ("name",)
    _table: Dict[str, "Symbol"] = {}

    def __new__(cls, name: str) -> "Symbol":
        existing = cls._table.get(name)
        if existing is not None:
            return existing
        self = object.__new__(cls)
        self.name = name
        cls._table[name] = self
        return self

    def __repr__(self) -> str:
        return f"Symbol({self.name!r})"

    def __str__(self) -> str:
        return self.name

    def __reduce__(self) -> tuple[Any, ...]:
        return (Symbol, (self.name,))

    @property
    def is_keyword(self) -> bool:
        return self.name.startswith(":")


def intern(name: str) -> Symbol:
    return Symbol(name)


def intern_soft(name: str) -> Optional[Symbol]:
    return Symbol._table.get(name)


NIL = Symbol("nil")
T = Symbol("t")
QUOTE = Symbol("quote")
FUNCTION = Symbol("function")
LAMBDA = Symbol("lambda")
BACKQUOTE = Symbol("`")
COMMA = Symbol(",")
COMMA_AT = Symbol(",@")
OPTIONAL = Symbol("&optional")
REST = Symbol("&rest")
VECTOR_LITERAL = Symbol("vector-literal")


@dataclass(slots=True, eq=False)
class Cons:
    """Mutable pair; proper lists are chains of pairs ending in ``NIL``."""

    car: Any
    cdr: Any = NIL

    def __iter__(self) -> Iterator[Any]:
        return iterate(self)


@dataclass(slots=True, eq=False)
class Vector:
    """Fixed-length mutable array, also used for bool vectors."""

    items: List[Any] = field(default_factory=list)
    bool_vector: bool = False

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class ParamSpec:
    """Parsed ``(a b &optional c &rest d)`` parameter list."""

    required: tuple[Symbol, ...] = ()
    optional: tuple[Symbol, ...] = ()
    rest: Optional[Symbol] = None

    @classmethod
    def parse(cls, params: Any) -> "ParamSpec":
        required: list[Symbol] = []
        optional: list[Symbol] = []
        rest: Optional[Symbol] = None
        section = "required"
        for item in iterate(params):
            if not isinstance(item, Symbol):
                raise TypeMismatchError("symbolp", item)
            if item is OPTIONAL:
                section = "optional"
                continue
            if item is REST:
                section = "rest"
                continue
            if section == "required":
                required.append(item)
            elif section == "optional":
                optional.append(item)
            elif rest is None:
                rest = item
        return cls(tuple(required), tuple(optional), rest)

    @property
    def minimum(self) -> int:
        return len(self.required)

    @property
    def exact(self) -> bool:
        return not self.optional and self.rest is None

    def check(self, received: int, *, name: str | None = None) -> None:
        too_few = received < len(self.required)
        too_many = self.rest is None and received > len(self.required) + len(
            self.optional
        )
        if too_few or too_many:
            raise ArityError(
                minimum=self.minimum, exact=self.exact, received=received, name=name
            )

    def bind(self, args: Sequence[Any]) -> list[tuple[Symbol, Any]]:
        pairs: list[tuple[Symbol, Any]] = []
        for index, symbol in enumerate(self.required):
            pairs.append((symbol, args[index]))
        offset = len(self.required)
        for index, symbol in enumerate(self.optional):
            position = offset + index
            pairs.append((symbol, args[position] if position < len(args) else NIL))
        if self.rest is not None:
            pairs.append(
                (self.rest, from_list(args[offset + len(self.optional) :]))
            )
        return pairs


@dataclass(slots=True, eq=False)
class Lambda:
    """Closure produced by ``lambda``/``defun``."""

    params: ParamSpec
    body: List[Any]
    env: Any
    name: Optional[str] = None
    interactive: bool = False
    doc: Optional[str] = None


@dataclass(slots=True, eq=False)
class Macro:
    """Macro value; its body runs over the unevaluated argument forms."""

    params: ParamSpec
    body: List[Any]
    env: Any
    name: Optional[str] = None


@dataclass(slots=True, eq=False)
class Primitive:
    """Function implemented in Python; arguments arrive evaluated."""

    name: str
    fn: Callable[..., Any]
    min_args: int = 0
    max_args: Optional[int] = None

    def check_arity(self, received: int) -> None:
        if received < self.min_args or (
            self.max_args is not None and received > self.max_args
        ):
            raise ArityError(
                minimum=self.min_args,
                exact=self.max_args == self.min_args,
                received=received,
                name=self.name,
            )


@dataclass(slots=True, eq=False)
class SpecialForm:
    """Construct whose handler receives the raw argument forms and the environment."""

    name: str
    handler: Callable[[List[Any], Any], Any]


def truthy(value: Any) -> bool:
    return value is not NIL


def as_bool(flag: bool) -> Symbol:
    return T if flag else NIL


def is_list(value: Any) -> bool:
    return value is NIL or isinstance(value, Cons)


def iterate(value: Any) -> Iterator[Any]:
    """Yield the elements of a proper list."""

    cursor = value
    while isinstance(cursor, Cons):
        yield cursor.car
        cursor = cursor.cdr
    if cursor is not NIL:
        raise TypeMismatchError("listp", cursor)


def to_list(value: Any) -> list[Any]:
    return list(iterate(value))


def from_list(items: Iterable[Any], tail: Any = NIL) -> Any:
    result = tail
    for item in reversed(list(items)):
        result = Cons(item, result)
    return result


def lisp_list(*items: Any) -> Any:
    return from_list(items)


def sequence_items(value: Any) -> list[Any]:
    """Elements of a list, vector or string (strings yield character codes)."""

    if is_list(value):
        return to_list(value)
    if isinstance(value, Vector):
        return list(value.items)
    if isinstance(value, str):
        return [ord(ch) for ch in value]
    raise TypeMismatchError("sequencep", value)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_function(value: Any) -> bool:
    if isinstance(value, (Lambda, Primitive)):
        return True
    return isinstance(value, Cons) and value.car is LAMBDA


def lisp_eq(left: Any, right: Any) -> bool:
    if left is right:
        return True
    return type(left) is int and type(right) is int and left == right


def lisp_eql(left: Any, right: Any) -> bool:
    if lisp_eq(left, right):
        return True
    return type(left) is float and type(right) is float and left == right


def lisp_equal(left: Any, right: Any) -> bool:
    """Structural equality (``equal``) across conses, vectors and strings."""

    while True:
        if lisp_eql(left, right):
            return True
        if isinstance(left, str) and isinstance(right, str):
            return left == right
        if isinstance(left, Vector) and isinstance(right, Vector):
            if len(left.items) != len(right.items):
                return False
            return all(lisp_equal(a, b) for a, b in zip(left.items, right.items))
        if isinstance(left, Cons) and isinstance(right, Cons):
            if not lisp_equal(left.car, right.car):
                return False
            left, right = left.cdr, right.cdr
            continue
        return False


def type_name(value: Any) -> str:
    if value is NIL:
        return "symbol"
    if isinstance(value, Symbol):
        return "symbol"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Cons):
        return "cons"
    if isinstance(value, Vector):
        return "bool-vector" if value.bool_vector else "vector"
    if isinstance(value, (Lambda, Primitive)):
        return "function"
    if isinstance(value, Macro):
        return "macro"
    if isinstance(value, SpecialForm):
        return "special-form"
    return type(value).__name__.lower()


__all__ = [
    "Symbol",
    "intern",
    "intern_soft",
    "NIL",
    "T",
    "QUOTE",
    "FUNCTION",
    "LAMBDA",
    "BACKQUOTE",
    "COMMA",
    "COMMA_AT",
    "OPTIONAL",
    "REST",
    "VECTOR_LITERAL",
    "Cons",
    "Vector",
    "ParamSpec",
    "Lambda",
    "Macro",
    "Primitive",
    "SpecialForm",
    "truthy",
    "as_bool",
    "is_list",
    "iterate",
    "to_list",
    "from_list",
    "lisp_list",
    "sequence_items",
    "is_number",
    "is_function",
    "lisp_eq",
    "lisp_eql",
    "lisp_equal",
    "type_name",
]
