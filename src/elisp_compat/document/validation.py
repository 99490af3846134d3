"""Position helpers shared across document services."""

from __future__ import annotations

from typing import Any

from elisp_compat.errors import TypeMismatchError


def clamp(position: int, length: int) -> int:
    """Clamp a 0-based offset into ``[0, length]``."""

    if position < 0:
        return 0
    if position > length:
        return length
    return position


def ensure_integer(value: Any, expected: str = "integer-or-marker-p") -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeMismatchError(expected, value)
    return int(value)


def to_offset(position: Any, length: int) -> int:
    """Convert a 1-based dialect position into a clamped 0-based offset."""

    return clamp(ensure_integer(position) - 1, length)


def ordered_region(start: int, end: int, length: int) -> tuple[int, int]:
    start = clamp(start, length)
    end = clamp(end, length)
    if start > end:
        start, end = end, start
    return start, end


__all__ = ["clamp", "ensure_integer", "to_offset", "ordered_region"]
