"""Lists, vectors and generic sequence primitives."""

from __future__ import annotations

from functools import cmp_to_key
from typing import TYPE_CHECKING, Any, Callable, List

from elisp_compat.errors import TypeMismatchError
from elisp_compat.host.values import (
    NIL,
    T,
    Cons,
    Symbol,
    Vector,
    as_bool,
    from_list,
    is_function,
    is_list,
    iterate,
    lisp_eq,
    lisp_eql,
    lisp_equal,
    sequence_items,
    to_list,
    truthy,
)

from .base import (
    PrimitiveTable,
    install_primitives,
    out_of_range,
    require_integer,
    require_string,
    require_whole,
)

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime


# helpers shared with generalized places ---------------------------------------


def nthcdr(index: Any, sequence: Any) -> Any:
    cursor = sequence
    for _ in range(require_integer(index)):
        if not isinstance(cursor, Cons):
            if cursor is NIL:
                return NIL
            raise TypeMismatchError("listp", cursor)
        cursor = cursor.cdr
    return cursor


def elt_get(sequence: Any, index: Any) -> Any:
    """``aref``/``elt`` lookup; strings yield character codes."""

    position = require_integer(index)
    if isinstance(sequence, Vector):
        if not 0 <= position < len(sequence.items):
            raise out_of_range(sequence, index)
        return sequence.items[position]
    if isinstance(sequence, str):
        if not 0 <= position < len(sequence):
            raise out_of_range(sequence, index)
        return ord(sequence[position])
    if is_list(sequence):
        cell = nthcdr(position, sequence) if position >= 0 else NIL
        if not isinstance(cell, Cons):
            raise out_of_range(sequence, index)
        return cell.car
    raise TypeMismatchError("sequencep", sequence)


def elt_set(sequence: Any, index: Any, value: Any) -> Any:
    position = require_integer(index)
    if isinstance(sequence, Vector):
        if not 0 <= position < len(sequence.items):
            raise out_of_range(sequence, index)
        sequence.items[position] = value
        return value
    if isinstance(sequence, Cons):
        cell = nthcdr(position, sequence) if position >= 0 else NIL
        if not isinstance(cell, Cons):
            raise out_of_range(sequence, index)
        cell.car = value
        return value
    raise TypeMismatchError("arrayp", sequence)


def _cons(value: Any) -> Cons:
    if not isinstance(value, Cons):
        raise TypeMismatchError("consp", value)
    return value


def _same_kind(original: Any, items: List[Any]) -> Any:
    if isinstance(original, Vector):
        return Vector(items, bool_vector=original.bool_vector)
    if isinstance(original, str):
        return "".join(chr(code) for code in items)
    return from_list(items)


# conses -------------------------------------------------------------------------


def car(rt: "Runtime", value: Any) -> Any:
    if value is NIL:
        return NIL
    return _cons(value).car


def cdr(rt: "Runtime", value: Any) -> Any:
    if value is NIL:
        return NIL
    return _cons(value).cdr


def car_safe(rt: "Runtime", value: Any) -> Any:
    return value.car if isinstance(value, Cons) else NIL


def cdr_safe(rt: "Runtime", value: Any) -> Any:
    return value.cdr if isinstance(value, Cons) else NIL


def _composite(path: str) -> Callable[..., Any]:
    """``cadr``-style accessor; ``path`` is read right to left."""

    def accessor(rt: "Runtime", value: Any) -> Any:
        for step in reversed(path):
            value = car(rt, value) if step == "a" else cdr(rt, value)
        return value

    return accessor


def cons(rt: "Runtime", head: Any, tail: Any) -> Any:
    return Cons(head, tail)


def list_(rt: "Runtime", *items: Any) -> Any:
    return from_list(items)


def setcar(rt: "Runtime", cell: Any, value: Any) -> Any:
    _cons(cell).car = value
    return value


def setcdr(rt: "Runtime", cell: Any, value: Any) -> Any:
    _cons(cell).cdr = value
    return value


def append(rt: "Runtime", *sequences: Any) -> Any:
    if not sequences:
        return NIL
    items: List[Any] = []
    for sequence in sequences[:-1]:
        items.extend(sequence_items(sequence))
    return from_list(items, sequences[-1])


def nconc(rt: "Runtime", *lists: Any) -> Any:
    result: Any = NIL
    last_cell: Any = None
    for value in lists:
        if value is NIL:
            continue
        if last_cell is None:
            result = value
        else:
            last_cell.cdr = value
        if isinstance(value, Cons):
            last_cell = value
            while isinstance(last_cell.cdr, Cons):
                last_cell = last_cell.cdr
    return result


def length(rt: "Runtime", sequence: Any) -> int:
    if isinstance(sequence, (str, Vector)):
        return len(sequence)
    return len(to_list(sequence))


def safe_length(rt: "Runtime", sequence: Any) -> int:
    count = 0
    while isinstance(sequence, Cons):
        count += 1
        sequence = sequence.cdr
    return count


def nth(rt: "Runtime", index: Any, sequence: Any) -> Any:
    cell = nthcdr(index, sequence) if require_integer(index) >= 0 else sequence
    return cell.car if isinstance(cell, Cons) else NIL


def nthcdr_(rt: "Runtime", index: Any, sequence: Any) -> Any:
    return nthcdr(index, sequence)


def last(rt: "Runtime", sequence: Any, count: Any = NIL) -> Any:
    cells = []
    cursor = sequence
    while isinstance(cursor, Cons):
        cells.append(cursor)
        cursor = cursor.cdr
    keep = 1 if count is NIL else require_integer(count)
    if not cells or keep <= 0:
        return NIL if keep <= 0 else sequence
    return cells[max(len(cells) - keep, 0)]


def butlast(rt: "Runtime", sequence: Any, count: Any = NIL) -> Any:
    items = to_list(sequence)
    drop = 1 if count is NIL else require_integer(count)
    return from_list(items[: max(len(items) - drop, 0)])


def reverse(rt: "Runtime", sequence: Any) -> Any:
    return _same_kind(sequence, list(reversed(sequence_items(sequence))))


def nreverse(rt: "Runtime", sequence: Any) -> Any:
    if isinstance(sequence, Vector):
        sequence.items.reverse()
        return sequence
    return reverse(rt, sequence)


def copy_sequence(rt: "Runtime", sequence: Any) -> Any:
    if isinstance(sequence, str):
        return sequence
    return _same_kind(sequence, sequence_items(sequence))


def copy_tree(rt: "Runtime", value: Any) -> Any:
    if isinstance(value, Cons):
        return Cons(copy_tree(rt, value.car), copy_tree(rt, value.cdr))
    if isinstance(value, Vector):
        return Vector([copy_tree(rt, item) for item in value.items], value.bool_vector)
    return value


# membership and association ---------------------------------------------------


def _member(test: Callable[[Any, Any], bool]) -> Callable[..., Any]:
    def member(rt: "Runtime", element: Any, sequence: Any) -> Any:
        cursor = sequence
        while isinstance(cursor, Cons):
            if test(element, cursor.car):
                return cursor
            cursor = cursor.cdr
        return NIL

    return member


def _assoc(test: Callable[[Any, Any], bool], key_of: Callable[[Cons], Any]) -> Callable[..., Any]:
    def assoc(rt: "Runtime", key: Any, alist: Any, *_: Any) -> Any:
        for entry in iterate(alist):
            if isinstance(entry, Cons) and test(key, key_of(entry)):
                return entry
        return NIL

    return assoc


def alist_get(
    rt: "Runtime", key: Any, alist: Any, default: Any = NIL, remove: Any = NIL, testfn: Any = NIL
) -> Any:
    del remove
    for entry in iterate(alist):
        if not isinstance(entry, Cons):
            continue
        if testfn is NIL:
            matched = lisp_eq(key, entry.car)
        else:
            matched = truthy(rt.interpreter.funcall(testfn, key, entry.car))
        if matched:
            return entry.cdr
    return default


def _deleter(test: Callable[[Any, Any], bool]) -> Callable[..., Any]:
    def delete(rt: "Runtime", element: Any, sequence: Any) -> Any:
        kept = [item for item in sequence_items(sequence) if not test(element, item)]
        return _same_kind(sequence, kept)

    return delete


# mapping ----------------------------------------------------------------------------


def mapcar(rt: "Runtime", function: Any, sequence: Any) -> Any:
    return from_list(rt.interpreter.funcall(function, item) for item in sequence_items(sequence))


def mapc(rt: "Runtime", function: Any, sequence: Any) -> Any:
    for item in sequence_items(sequence):
        rt.interpreter.funcall(function, item)
    return sequence


def mapcan(rt: "Runtime", function: Any, sequence: Any) -> Any:
    results = [rt.interpreter.funcall(function, item) for item in sequence_items(sequence)]
    return nconc(rt, *results)


def as_text(value: Any) -> str:
    """Characters of a string, or of a list or vector of character codes."""

    if isinstance(value, str):
        return value
    if value is NIL:
        return ""
    items = sequence_items(value)
    return "".join(chr(require_integer(code)) for code in items)


def mapconcat(rt: "Runtime", function: Any, sequence: Any, separator: Any = "") -> str:
    separator = "" if separator is NIL else require_string(separator)
    parts = [as_text(rt.interpreter.funcall(function, item)) for item in sequence_items(sequence)]
    return separator.join(parts)


def seq_find(rt: "Runtime", predicate: Any, sequence: Any, default: Any = NIL) -> Any:
    for item in sequence_items(sequence):
        if truthy(rt.interpreter.funcall(predicate, item)):
            return item
    return default


def seq_filter(rt: "Runtime", predicate: Any, sequence: Any) -> Any:
    return from_list(
        item for item in sequence_items(sequence) if truthy(rt.interpreter.funcall(predicate, item))
    )


def seq_remove(rt: "Runtime", predicate: Any, sequence: Any) -> Any:
    return from_list(
        item
        for item in sequence_items(sequence)
        if not truthy(rt.interpreter.funcall(predicate, item))
    )


def cl_remove_if(rt: "Runtime", predicate: Any, sequence: Any, *_: Any) -> Any:
    kept = [
        item
        for item in sequence_items(sequence)
        if not truthy(rt.interpreter.funcall(predicate, item))
    ]
    return _same_kind(sequence, kept)


def seq_random_elt(rt: "Runtime", sequence: Any) -> Any:
    items = sequence_items(sequence)
    if not items:
        raise out_of_range(sequence)
    return rt.random.choice(items)


def sort(rt: "Runtime", sequence: Any, predicate: Any) -> Any:
    def compare(left: Any, right: Any) -> int:
        if truthy(rt.interpreter.funcall(predicate, left, right)):
            return -1
        if truthy(rt.interpreter.funcall(predicate, right, left)):
            return 1
        return 0

    ordered = sorted(sequence_items(sequence), key=cmp_to_key(compare))
    if isinstance(sequence, Vector):
        sequence.items[:] = ordered
        return sequence
    return _same_kind(sequence, ordered)


def number_sequence(rt: "Runtime", start: Any, end: Any = NIL, step: Any = NIL) -> Any:
    if end is NIL:
        return from_list([start])
    increment = 1 if step is NIL else step
    if increment == 0:
        raise TypeMismatchError("non-zero-step", step)
    values = []
    current = start
    while (increment > 0 and current <= end) or (increment < 0 and current >= end):
        values.append(current)
        current += increment
    return from_list(values)


# vectors ------------------------------------------------------------------------------


def vector(rt: "Runtime", *items: Any) -> Vector:
    return Vector(list(items))


def make_vector(rt: "Runtime", size: Any, initial: Any) -> Vector:
    return Vector([initial] * require_whole(size))


def make_bool_vector(rt: "Runtime", size: Any, initial: Any) -> Vector:
    value = T if truthy(initial) else NIL
    return Vector([value] * require_whole(size), bool_vector=True)


def aref(rt: "Runtime", sequence: Any, index: Any) -> Any:
    return elt_get(sequence, index)


def aset(rt: "Runtime", sequence: Any, index: Any, value: Any) -> Any:
    return elt_set(sequence, index, value)


def vconcat(rt: "Runtime", *sequences: Any) -> Vector:
    items: List[Any] = []
    for sequence in sequences:
        items.extend(sequence_items(sequence))
    return Vector(items)


def fillarray(rt: "Runtime", array: Any, value: Any) -> Any:
    if not isinstance(array, Vector):
        raise TypeMismatchError("arrayp", array)
    array.items[:] = [value] * len(array.items)
    return array


# predicates -----------------------------------------------------------------------------


def _predicate(test: Callable[[Any], bool]) -> Callable[..., Any]:
    def predicate(rt: "Runtime", value: Any) -> Any:
        return as_bool(test(value))

    return predicate


def functionp(rt: "Runtime", value: Any) -> Any:
    if isinstance(value, Symbol) and value is not NIL:
        value = rt.interpreter.functions.get(value)
    return as_bool(is_function(value))


SEQUENCE_PRIMITIVES: PrimitiveTable = {
    "car": (car, 1, 1),
    "cdr": (cdr, 1, 1),
    "car-safe": (car_safe, 1, 1),
    "cdr-safe": (cdr_safe, 1, 1),
    "caar": (_composite("aa"), 1, 1),
    "cadr": (_composite("ad"), 1, 1),
    "cdar": (_composite("da"), 1, 1),
    "cddr": (_composite("dd"), 1, 1),
    "caddr": (_composite("add"), 1, 1),
    "cons": (cons, 2, 2),
    "list": (list_, 0, None),
    "setcar": (setcar, 2, 2),
    "rplaca": (setcar, 2, 2),
    "setcdr": (setcdr, 2, 2),
    "rplacd": (setcdr, 2, 2),
    "append": (append, 0, None),
    "nconc": (nconc, 0, None),
    "length": (length, 1, 1),
    "safe-length": (safe_length, 1, 1),
    "nth": (nth, 2, 2),
    "nthcdr": (nthcdr_, 2, 2),
    "elt": (aref, 2, 2),
    "last": (last, 1, 2),
    "butlast": (butlast, 1, 2),
    "reverse": (reverse, 1, 1),
    "nreverse": (nreverse, 1, 1),
    "copy-sequence": (copy_sequence, 1, 1),
    "copy": (copy_sequence, 1, 1),
    "copy-tree": (copy_tree, 1, 2),
    "member": (_member(lisp_equal), 2, 2),
    "memq": (_member(lisp_eq), 2, 2),
    "memql": (_member(lisp_eql), 2, 2),
    "assq": (_assoc(lisp_eq, lambda entry: entry.car), 2, 2),
    "assoc": (_assoc(lisp_equal, lambda entry: entry.car), 2, 3),
    "rassq": (_assoc(lisp_eq, lambda entry: entry.cdr), 2, 2),
    "rassoc": (_assoc(lisp_equal, lambda entry: entry.cdr), 2, 2),
    "alist-get": (alist_get, 2, 5),
    "delq": (_deleter(lisp_eq), 2, 2),
    "delete": (_deleter(lisp_equal), 2, 2),
    "remq": (_deleter(lisp_eq), 2, 2),
    "remove": (_deleter(lisp_equal), 2, 2),
    "mapcar": (mapcar, 2, 2),
    "mapc": (mapc, 2, 2),
    "mapcan": (mapcan, 2, 2),
    "mapconcat": (mapconcat, 2, 3),
    "seq-find": (seq_find, 2, 3),
    "seq-filter": (seq_filter, 2, 2),
    "seq-remove": (seq_remove, 2, 2),
    "cl-remove-if": (cl_remove_if, 2, None),
    "seq-random-elt": (seq_random_elt, 1, 1),
    "sort": (sort, 2, 2),
    "number-sequence": (number_sequence, 1, 3),
    "vector": (vector, 0, None),
    "make-vector": (make_vector, 2, 2),
    "make-bool-vector": (make_bool_vector, 2, 2),
    "aref": (aref, 2, 2),
    "aset": (aset, 3, 3),
    "vconcat": (vconcat, 0, None),
    "fillarray": (fillarray, 2, 2),
    "consp": (_predicate(lambda value: isinstance(value, Cons)), 1, 1),
    "listp": (_predicate(is_list), 1, 1),
    "nlistp": (_predicate(lambda value: not is_list(value)), 1, 1),
    "atom": (_predicate(lambda value: not isinstance(value, Cons)), 1, 1),
    "null": (_predicate(lambda value: value is NIL), 1, 1),
    "not": (_predicate(lambda value: value is NIL), 1, 1),
    "vectorp": (_predicate(lambda value: isinstance(value, Vector)), 1, 1),
    "bool-vector-p": (
        _predicate(lambda value: isinstance(value, Vector) and value.bool_vector),
        1,
        1,
    ),
    "arrayp": (_predicate(lambda value: isinstance(value, (Vector, str))), 1, 1),
    "sequencep": (
        _predicate(lambda value: is_list(value) or isinstance(value, (Vector, str))),
        1,
        1,
    ),
    "functionp": (functionp, 1, 1),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, SEQUENCE_PRIMITIVES)


__all__ = [
    "SEQUENCE_PRIMITIVES",
    "nthcdr",
    "elt_get",
    "elt_set",
    "as_text",
    "install",
]
