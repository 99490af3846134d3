"""Arithmetic, comparison and numeric predicates."""

from __future__ import annotations

import math
import operator
from functools import reduce
from typing import TYPE_CHECKING, Any, Callable

from elisp_compat.errors import ConditionSignal
from elisp_compat.host.values import NIL, T, as_bool, is_number, lisp_list

from .base import PrimitiveTable, install_globals, install_primitives, require_integer, require_number

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

MOST_POSITIVE_FIXNUM = (1 << 61) - 1
MOST_NEGATIVE_FIXNUM = -(1 << 61)


def arith_error() -> ConditionSignal:
    return ConditionSignal("arith-error", NIL, message="Arithmetic error")


def _numbers(values: Any) -> list:
    return [require_number(value) for value in values]


def add(rt: "Runtime", *values: Any) -> Any:
    return sum(_numbers(values), 0)


def multiply(rt: "Runtime", *values: Any) -> Any:
    return reduce(operator.mul, _numbers(values), 1)


def subtract(rt: "Runtime", *values: Any) -> Any:
    numbers = _numbers(values)
    if not numbers:
        return 0
    if len(numbers) == 1:
        return -numbers[0]
    return reduce(operator.sub, numbers)


def _divide_pair(left: Any, right: Any) -> Any:
    if isinstance(left, float) or isinstance(right, float):
        if right == 0:
            if left == 0 or math.isnan(left):
                return math.nan
            return math.copysign(math.inf, left) * math.copysign(1.0, right)
        return left / right
    if right == 0:
        raise arith_error()
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right >= 0) else -quotient


def divide(rt: "Runtime", dividend: Any, *divisors: Any) -> Any:
    """Integer division truncates toward zero; any float operand makes it float division."""

    numbers = _numbers((dividend, *divisors))
    if not divisors:
        return _divide_pair(1, numbers[0])
    if any(isinstance(value, float) for value in numbers):
        numbers = [float(value) for value in numbers]
    return reduce(_divide_pair, numbers)


def remainder(rt: "Runtime", dividend: Any, divisor: Any) -> int:
    dividend, divisor = require_integer(dividend), require_integer(divisor)
    if divisor == 0:
        raise arith_error()
    result = abs(dividend) % abs(divisor)
    return result if dividend >= 0 else -result


def modulo(rt: "Runtime", dividend: Any, divisor: Any) -> Any:
    dividend, divisor = require_number(dividend), require_number(divisor)
    if divisor == 0:
        if isinstance(dividend, float) or isinstance(divisor, float):
            return math.nan
        raise arith_error()
    return dividend % divisor


def succ(rt: "Runtime", value: Any) -> Any:
    return require_number(value) + 1


def pred(rt: "Runtime", value: Any) -> Any:
    return require_number(value) - 1


def minimum(rt: "Runtime", *values: Any) -> Any:
    numbers = _numbers(values)
    result = min(numbers)
    return float(result) if any(isinstance(n, float) for n in numbers) else result


def maximum(rt: "Runtime", *values: Any) -> Any:
    numbers = _numbers(values)
    result = max(numbers)
    return float(result) if any(isinstance(n, float) for n in numbers) else result


def abs_(rt: "Runtime", value: Any) -> Any:
    return abs(require_number(value))


def _rounding(function: Callable[[float], Any]) -> Callable[..., Any]:
    def rounder(rt: "Runtime", value: Any, divisor: Any = NIL) -> int:
        value = require_number(value)
        if divisor is not NIL:
            divisor = require_number(divisor)
            if divisor == 0:
                raise arith_error()
            if isinstance(value, int) and isinstance(divisor, int) and function is math.floor:
                return value // divisor
            value = value / divisor
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            raise ConditionSignal("overflow-error", lisp_list(value), message="Arithmetic overflow")
        return int(function(value))

    return rounder


def float_(rt: "Runtime", value: Any) -> float:
    return float(require_number(value))


def _comparison(test: Callable[[Any, Any], bool]) -> Callable[..., Any]:
    def compare(rt: "Runtime", first: Any, *rest: Any) -> Any:
        numbers = _numbers((first, *rest))
        return as_bool(all(test(a, b) for a, b in zip(numbers, numbers[1:])))

    return compare


def not_equal(rt: "Runtime", left: Any, right: Any) -> Any:
    return as_bool(require_number(left) != require_number(right))


def random_(rt: "Runtime", limit: Any = NIL) -> int:
    """``(random N)`` in ``[0, N)``; ``t`` reseeds, a string seeds deterministically."""

    if limit is T:
        rt.random.seed()
        limit = NIL
    elif isinstance(limit, str):
        rt.random.seed(limit)
        limit = NIL
    if limit is NIL:
        return rt.random.randint(MOST_NEGATIVE_FIXNUM, MOST_POSITIVE_FIXNUM)
    bound = require_integer(limit)
    if bound <= 0:
        raise ConditionSignal("args-out-of-range", lisp_list(limit), message="Args out of range")
    return rt.random.randrange(bound)


def expt(rt: "Runtime", base: Any, power: Any) -> Any:
    base, power = require_number(base), require_number(power)
    if isinstance(base, int) and isinstance(power, int) and power >= 0:
        return base**power
    return float(base) ** power


def sqrt(rt: "Runtime", value: Any) -> float:
    value = require_number(value)
    return math.sqrt(value) if value >= 0 else math.nan


def ash(rt: "Runtime", value: Any, count: Any) -> int:
    value, count = require_integer(value), require_integer(count)
    return value << count if count >= 0 else value >> -count


def _bitwise(function: Callable[[int, int], int], identity: int) -> Callable[..., Any]:
    def combine(rt: "Runtime", *values: Any) -> int:
        return reduce(function, (require_integer(value) for value in values), identity)

    return combine


def _predicate(test: Callable[[Any], bool]) -> Callable[..., Any]:
    def predicate(rt: "Runtime", value: Any) -> Any:
        return as_bool(test(value))

    return predicate


def _integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def zerop(rt: "Runtime", value: Any) -> Any:
    return as_bool(require_number(value) == 0)


def oddp(rt: "Runtime", value: Any) -> Any:
    return as_bool(require_integer(value) % 2 == 1)


def evenp(rt: "Runtime", value: Any) -> Any:
    return as_bool(require_integer(value) % 2 == 0)


NUMBER_PRIMITIVES: PrimitiveTable = {
    "+": (add, 0, None),
    "-": (subtract, 0, None),
    "*": (multiply, 0, None),
    "/": (divide, 1, None),
    "%": (remainder, 2, 2),
    "mod": (modulo, 2, 2),
    "succ": (succ, 1, 1),
    "pred": (pred, 1, 1),
    "min": (minimum, 1, None),
    "max": (maximum, 1, None),
    "abs": (abs_, 1, 1),
    "floor": (_rounding(math.floor), 1, 2),
    "ceiling": (_rounding(math.ceil), 1, 2),
    "round": (_rounding(round), 1, 2),
    "truncate": (_rounding(math.trunc), 1, 2),
    "float": (float_, 1, 1),
    "=": (_comparison(operator.eq), 1, None),
    "/=": (not_equal, 2, 2),
    "<": (_comparison(operator.lt), 1, None),
    ">": (_comparison(operator.gt), 1, None),
    "<=": (_comparison(operator.le), 1, None),
    ">=": (_comparison(operator.ge), 1, None),
    "random": (random_, 0, 1),
    "expt": (expt, 2, 2),
    "sqrt": (sqrt, 1, 1),
    "ash": (ash, 2, 2),
    "lsh": (ash, 2, 2),
    "logand": (_bitwise(operator.and_, -1), 0, None),
    "logior": (_bitwise(operator.or_, 0), 0, None),
    "logxor": (_bitwise(operator.xor, 0), 0, None),
    "zerop": (zerop, 1, 1),
    "oddp": (oddp, 1, 1),
    "cl-oddp": (oddp, 1, 1),
    "evenp": (evenp, 1, 1),
    "cl-evenp": (evenp, 1, 1),
    "numberp": (_predicate(is_number), 1, 1),
    "integerp": (_predicate(_integer), 1, 1),
    "fixnump": (_predicate(_integer), 1, 1),
    "floatp": (_predicate(lambda value: isinstance(value, float)), 1, 1),
    "natnump": (_predicate(lambda value: _integer(value) and value >= 0), 1, 1),
    "cl-plusp": (_predicate(lambda value: is_number(value) and value > 0), 1, 1),
    "cl-minusp": (_predicate(lambda value: is_number(value) and value < 0), 1, 1),
}

NUMBER_GLOBALS = {
    "most-positive-fixnum": MOST_POSITIVE_FIXNUM,
    "most-negative-fixnum": MOST_NEGATIVE_FIXNUM,
    "float-pi": math.pi,
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, NUMBER_PRIMITIVES)
    install_globals(rt, NUMBER_GLOBALS)


__all__ = ["NUMBER_PRIMITIVES", "arith_error", "install"]
