"""Lexical environment frames."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple

from .values import Symbol


class _Unbound:
    __slots__ = ()

    def __repr__(self) -> str:
        return "UNBOUND"


UNBOUND: Any = _Unbound()


class Environment:
    """A frame of variable bindings with a parent pointer.

    The root frame (no parent) holds global values.
    """

    __slots__ = ("bindings", "parent")

    def __init__(
        self,
        parent: Optional["Environment"] = None,
        bindings: Optional[Iterable[Tuple[Symbol, Any]]] = None,
    ) -> None:
        self.parent = parent
        self.bindings: Dict[Symbol, Any] = dict(bindings or ())

    @property
    def root(self) -> "Environment":
        frame = self
        while frame.parent is not None:
            frame = frame.parent
        return frame

    def child(
        self, bindings: Optional[Iterable[Tuple[Symbol, Any]]] = None
    ) -> "Environment":
        return Environment(self, bindings)

    def find_frame(self, symbol: Symbol) -> Optional["Environment"]:
        frame: Optional[Environment] = self
        while frame is not None:
            if symbol in frame.bindings:
                return frame
            frame = frame.parent
        return None

    def lookup(self, symbol: Symbol, default: Any = UNBOUND) -> Any:
        frame = self.find_frame(symbol)
        if frame is None:
            return default
        return frame.bindings[symbol]

    def define(self, symbol: Symbol, value: Any) -> Any:
        self.bindings[symbol] = value
        return value

    def assign(self, symbol: Symbol, value: Any) -> Any:
        """Update the nearest binding, falling back to the global frame."""

        frame = self.find_frame(symbol) or self.root
        frame.bindings[symbol] = value
        return value

    def is_bound(self, symbol: Symbol) -> bool:
        return self.find_frame(symbol) is not None

    def is_bound_here(self, symbol: Symbol) -> bool:
        return symbol in self.bindings

    def unbind(self, symbol: Symbol) -> None:
        self.bindings.pop(symbol, None)


__all__ = ["Environment", "UNBOUND"]
