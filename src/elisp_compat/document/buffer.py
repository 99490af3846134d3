"""Text buffers: character storage, point tracking and buffer-local state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .validation import clamp, ordered_region


@dataclass(eq=False)
class Buffer:
    """Named text with a 0-based point always kept inside ``[0, len(text)]``.

    Identity matters: every lookup by name returns this same object until the
    buffer is killed.
    """

    name: str
    text: str = ""
    point: int = 0
    local_map: Optional[Any] = None
    hooks: Dict[str, List[Any]] = field(default_factory=dict)
    local_variables: Dict[Any, Any] = field(default_factory=dict)
    version: int = 0
    live: bool = True

    def lisp_repr(self) -> str:
        if not self.live:
            return "#<killed buffer>"
        return f"#<buffer {self.name}>"

    @property
    def size(self) -> int:
        return len(self.text)

    def _touch(self) -> None:
        self.version += 1

    def goto(self, offset: int) -> int:
        self.point = clamp(offset, len(self.text))
        return self.point

    def char_at(self, offset: int) -> Optional[str]:
        if 0 <= offset < len(self.text):
            return self.text[offset]
        return None

    def substring(self, start: int, end: int) -> str:
        start, end = ordered_region(start, end, len(self.text))
        return self.text[start:end]

    def insert(self, text: str) -> None:
        """Insert at point and leave point after the inserted text."""

        if not text:
            return
        self.point = clamp(self.point, len(self.text))
        self.text = self.text[: self.point] + text + self.text[self.point :]
        self.point += len(text)
        self._touch()

    def insert_at(self, offset: int, text: str) -> None:
        """Insert at ``offset``; a point at or after it moves with the text."""

        if not text:
            return
        offset = clamp(offset, len(self.text))
        self.text = self.text[:offset] + text + self.text[offset:]
        if self.point >= offset:
            self.point += len(text)
        self._touch()

    def delete_region(self, start: int, end: int) -> str:
        start, end = ordered_region(start, end, len(self.text))
        removed = self.text[start:end]
        if not removed:
            return ""
        self.text = self.text[:start] + self.text[end:]
        if self.point >= end:
            self.point -= end - start
        elif self.point > start:
            self.point = start
        self._touch()
        return removed

    def replace_region(self, start: int, end: int, text: str) -> int:
        """Replace ``[start, end)`` with ``text``; point lands after the new text."""

        start, end = ordered_region(start, end, len(self.text))
        self.text = self.text[:start] + text + self.text[end:]
        self.point = start + len(text)
        self._touch()
        return self.point

    def erase(self) -> None:
        self.text = ""
        self.point = 0
        self._touch()

    def line_start(self, offset: Optional[int] = None) -> int:
        offset = self.point if offset is None else clamp(offset, len(self.text))
        return self.text.rfind("\n", 0, offset) + 1

    def line_end(self, offset: Optional[int] = None) -> int:
        offset = self.point if offset is None else clamp(offset, len(self.text))
        end = self.text.find("\n", offset)
        return len(self.text) if end < 0 else end

    def column(self, offset: Optional[int] = None) -> int:
        offset = self.point if offset is None else clamp(offset, len(self.text))
        return offset - self.line_start(offset)

    def count_lines(self, start: int, end: int) -> int:
        start, end = ordered_region(start, end, len(self.text))
        return self.text.count("\n", start, end)


__all__ = ["Buffer"]
