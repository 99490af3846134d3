"""Keymaps: sparse key-spec bindings with an optional dense 256-entry table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

FULL_MAP_SIZE = 256
MAX_STATUS_ENTRIES = 8

KEY_ALIASES = {
    "tab": "TAB",
    "<tab>": "TAB",
    "return": "RET",
    "<return>": "RET",
    "escape": "ESC",
    "<escape>": "ESC",
}

STATUS_PRIORITY: Tuple[str, ...] = (
    "q",
    "n",
    "p",
    " ",
    "<left>",
    "<right>",
    "<up>",
    "<down>",
    "<prior>",
    "<next>",
    "C-c",
)

_PRETTY_KEYS = {
    " ": "space",
    "SPC": "space",
    "<left>": "left",
    "<right>": "right",
    "<up>": "up",
    "<down>": "down",
    "<prior>": "pgup",
    "<next>": "pgdn",
}

# (marker, label); a leading "$" marks a suffix match, first hit wins
_ACTION_LABELS: Tuple[Tuple[str, str], ...] = (
    ("start-game", "new"),
    ("$-start", "new"),
    ("pause", "pause"),
    ("resume", "pause"),
    ("quit", "quit"),
    ("end-game", "quit"),
    ("$-end", "quit"),
    ("move-bottom", "drop"),
    ("drop", "drop"),
    ("rotate-next", "rot cw"),
    ("rotate-prev", "rot ccw"),
    ("move-left", "left"),
    ("move-right", "right"),
    ("move-up", "up"),
    ("move-down", "down"),
    ("undo", "undo"),
    ("restart", "restart"),
)

_KEY_CANDIDATES: Dict[int, Tuple[str, ...]] = {
    10: ("\r", "\n", "RET", "C-m"),
    13: ("\r", "\n", "RET", "C-m"),
    9: ("\t", "TAB", "<tab>", "C-i"),
    27: ("ESC", "<escape>"),
    32: ("SPC", " "),
    2: ("C-b",),
    6: ("C-f",),
    14: ("C-n",),
    16: ("C-p",),
    3: ("C-c",),
}

_NAMED_KEY_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    "left": ("<left>", "left", "C-b"),
    "right": ("<right>", "right", "C-f"),
    "up": ("<up>", "up", "C-p"),
    "down": ("<down>", "down", "C-n"),
    "pageup": ("<prior>", "prior"),
    "pagedown": ("<next>", "next"),
    "enter": ("\r", "\n", "RET", "C-m"),
    "tab": ("\t", "TAB", "<tab>", "C-i"),
    "escape": ("ESC", "<escape>"),
    "space": ("SPC", " "),
}


@dataclass(eq=False)
class Keymap:
    """Mapping from canonical key specs to bound commands.

    When ``full`` is present, every single-character binding is written to
    both ``bindings`` and ``full`` inside ``define`` so the two never disagree.
    """

    bindings: Dict[str, Any] = field(default_factory=dict)
    full: Optional[List[Any]] = None
    parent: Optional["Keymap"] = None
    empty: Any = None

    @classmethod
    def sparse(cls) -> "Keymap":
        return cls()

    @classmethod
    def with_full_map(cls, empty: Any = None) -> "Keymap":
        return cls(full=[empty] * FULL_MAP_SIZE, empty=empty)

    def lisp_repr(self) -> str:
        inner = " ".join(f"({key!r} . {value})" for key, value in self.bindings.items())
        prefix = "keymap #^[...]" if self.full is not None else "keymap"
        return f"({prefix}{' ' + inner if inner else ''})"

    def define(self, key: str, binding: Any) -> Any:
        if not key:
            raise ValueError("key spec cannot be empty")
        self.bindings[key] = binding
        if self.full is not None and len(key) == 1 and ord(key) < FULL_MAP_SIZE:
            self.full[ord(key)] = binding
        return binding

    def undefine(self, key: str) -> None:
        self.bindings.pop(key, None)
        if self.full is not None and len(key) == 1 and ord(key) < FULL_MAP_SIZE:
            self.full[ord(key)] = self.empty

    def lookup(self, key: str) -> Any:
        """Return the binding for ``key`` (searching parents) or ``None``."""

        keymap: Optional[Keymap] = self
        while keymap is not None:
            if key in keymap.bindings:
                return keymap.bindings[key]
            keymap = keymap.parent
        return None

    def lookup_candidates(self, candidates: Sequence[str]) -> Optional[Tuple[str, Any]]:
        for key in candidates:
            binding = self.lookup(key)
            if binding is not None:
                return key, binding
        return None

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(list(self.bindings.items()))

    def __len__(self) -> int:
        return len(self.bindings)


def canonical_key(text: str) -> str:
    return KEY_ALIASES.get(text, text)


def key_from_code(code: int) -> str:
    """Canonical key spec for an integer character code, or ``""``."""

    if 32 <= code <= 126:
        return chr(code)
    if code == 9:
        return "TAB"
    if code in (10, 13):
        return "RET"
    if code == 27:
        return "ESC"
    return ""


def kbd(text: str) -> str:
    """Canonicalize a ``kbd`` description; multi-key sequences are kept verbatim."""

    stripped = text.strip()
    return canonical_key(stripped) if stripped else text


def key_candidates(key: int | str) -> Tuple[str, ...]:
    """Key specs a raw key code (or named key) may be bound under, in order."""

    if isinstance(key, str):
        named = _NAMED_KEY_CANDIDATES.get(key.lower())
        if named is not None:
            return named
        if len(key) == 1:
            return key_candidates(ord(key))
        return (key,)
    if key in _KEY_CANDIDATES:
        return _KEY_CANDIDATES[key]
    if 32 <= key <= 126:
        return (chr(key),)
    return ()


def pretty_key_name(key: str) -> str:
    return _PRETTY_KEYS.get(key, key)


def pretty_action_name(name: str) -> str:
    lowered = name.lower()
    for marker, label in _ACTION_LABELS:
        if marker.startswith("$"):
            if lowered.endswith(marker[1:]):
                return label
        elif marker in lowered:
            return label
    if not name:
        return "action"
    return name.replace("-", " ")


def describe_bindings(
    keymap: Optional[Keymap], binding_name: Callable[[Any], str]
) -> Optional[str]:
    """One-line ``key action | key action`` summary for a status display.

    Priority keys come first, then the remaining keys in sorted order, up to
    ``MAX_STATUS_ENTRIES`` entries; duplicate labels are collapsed.
    """

    if keymap is None or not keymap.bindings:
        return None
    tokens: List[str] = []
    seen: set[str] = set()

    def add(key: str) -> None:
        if key not in keymap.bindings:
            return
        label = f"{pretty_key_name(key)} {pretty_action_name(binding_name(keymap.bindings[key]))}"
        if label not in seen:
            seen.add(label)
            tokens.append(label)

    for key in STATUS_PRIORITY:
        add(key)
    for key in sorted(k for k in keymap.bindings if k not in STATUS_PRIORITY):
        if len(tokens) >= MAX_STATUS_ENTRIES:
            break
        add(key)
    return " | ".join(tokens) if tokens else None


__all__ = [
    "FULL_MAP_SIZE",
    "Keymap",
    "canonical_key",
    "key_from_code",
    "kbd",
    "key_candidates",
    "pretty_key_name",
    "pretty_action_name",
    "describe_bindings",
]
