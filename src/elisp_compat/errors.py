"""Exception hierarchy surfaced by the compatibility runtime."""

from __future__ import annotations

from typing import Any, Optional


class ElispError(RuntimeError):
    """Base class for failures raised while evaluating dialect code.

    ``condition`` names the condition kind ``condition-case`` matches against;
    ``None`` marks failures that handlers never intercept.
    """

    condition: Optional[str] = "error"

    @property
    def data(self) -> Any:
        return None


class ParseError(ElispError):
    """Raised when source text cannot be preprocessed or read."""

    condition = None

    def __init__(self, message: str, *, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class ArityError(ElispError):
    """Raised when a callable receives an unacceptable number of arguments."""

    condition = "wrong-number-of-arguments"

    def __init__(
        self,
        *,
        minimum: int,
        exact: bool,
        received: int,
        name: str | None = None,
    ) -> None:
        qualifier = "" if exact else "at least "
        label = name or "function"
        super().__init__(
            f"{label} expected {qualifier}{minimum} arguments, received {received}"
        )
        self.minimum = minimum
        self.exact = exact
        self.received = received
        self.name = name


class TypeMismatchError(ElispError):
    """Raised when an operation receives a value of the wrong kind."""

    condition = "wrong-type-argument"

    def __init__(self, expected: str, value: Any) -> None:
        super().__init__(f"wrong type argument: {expected}, {value!r}")
        self.expected = expected
        self.value = value


class ConditionSignal(ElispError):
    """A named condition raised by ``signal``, ``error`` or an internal failure."""

    def __init__(self, condition: str, data: Any = None, *, message: str = "") -> None:
        super().__init__(message or f"signal: {condition}")
        self.condition = condition
        self._data = data

    @property
    def data(self) -> Any:
        return self._data


class ThrowSignal(ElispError):
    """Tagged non-local exit travelling towards the matching ``catch``."""

    condition = "throw"

    def __init__(self, tag: Any, value: Any) -> None:
        super().__init__(f"throw: no catch for tag {tag!r}")
        self.tag = tag
        self.value = value


class UnimplementedPrimitiveError(ElispError):
    """Raised when a called function has no binding in this runtime."""

    condition = None

    def __init__(self, name: str) -> None:
        super().__init__(f"needed elisp function is not implemented: {name}")
        self.name = name


__all__ = [
    "ElispError",
    "ParseError",
    "ArityError",
    "TypeMismatchError",
    "ConditionSignal",
    "ThrowSignal",
    "UnimplementedPrimitiveError",
]
