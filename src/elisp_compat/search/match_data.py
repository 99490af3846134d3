"""The shared last-match record consulted by ``match-beginning`` and friends."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Match, Optional, Sequence, Tuple

UNMATCHED = -1


@dataclass(slots=True)
class MatchData:
    """Flat ``[start0, end0, start1, end1, ...]`` offsets of the last match.

    Offsets are 0-based when ``in_string`` is set and 1-based buffer
    positions otherwise; ``buffer`` then names the buffer that was searched.
    An unmatched group is stored as ``(-1, -1)``.
    """

    positions: List[int] = field(default_factory=list)
    in_string: bool = False
    buffer: Optional[Any] = None

    def clear(self) -> None:
        self.positions = []
        self.in_string = False
        self.buffer = None

    @property
    def empty(self) -> bool:
        return not self.positions

    @property
    def group_count(self) -> int:
        return len(self.positions) // 2

    def set_from_string(self, match: Match[str], base: int = 0) -> None:
        self.positions = _flatten(match, base)
        self.in_string = True
        self.buffer = None

    def set_from_buffer(self, buffer: Any, match: Match[str], base: int = 0) -> None:
        """Record a match found in ``buffer`` text sliced at offset ``base``."""

        self.positions = _flatten(match, base + 1)
        self.in_string = False
        self.buffer = buffer

    def set_span(self, buffer: Any, start: int, end: int) -> None:
        """Record a literal match of ``[start, end)`` (0-based) in ``buffer``."""

        self.positions = [start + 1, end + 1]
        self.in_string = False
        self.buffer = buffer

    def set_positions(self, positions: Sequence[int], buffer: Any = None) -> None:
        items = list(positions)
        if len(items) % 2:
            items.append(UNMATCHED)
        self.positions = items
        self.in_string = buffer is None
        self.buffer = buffer

    def snapshot(self) -> "MatchData":
        return MatchData(list(self.positions), self.in_string, self.buffer)

    def restore(self, saved: "MatchData") -> None:
        self.positions = list(saved.positions)
        self.in_string = saved.in_string
        self.buffer = saved.buffer

    def group(self, index: int) -> Optional[Tuple[int, int]]:
        """``(start, end)`` for group ``index``; ``None`` if absent or unmatched."""

        if index < 0 or 2 * index + 1 >= len(self.positions):
            return None
        start, end = self.positions[2 * index], self.positions[2 * index + 1]
        if start < 0 or end < 0:
            return None
        return start, end

    def beginning(self, index: int = 0) -> Optional[int]:
        span = self.group(index)
        return span[0] if span else None

    def end(self, index: int = 0) -> Optional[int]:
        span = self.group(index)
        return span[1] if span else None


def _flatten(match: Match[str], offset: int) -> List[int]:
    positions: List[int] = []
    for index in range((match.re.groups or 0) + 1):
        start, end = match.span(index)
        if start < 0:
            positions.extend((UNMATCHED, UNMATCHED))
        else:
            positions.extend((start + offset, end + offset))
    return positions


__all__ = ["MatchData", "UNMATCHED"]
