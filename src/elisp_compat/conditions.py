"""Condition kinds and their parent chains, owned by one runtime instance."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from elisp_compat.runtime.telemetry import record_event

ROOT_CONDITION = "error"

STANDARD_CONDITIONS: tuple[tuple[str, str, str], ...] = (
    ("quit", ROOT_CONDITION, "Quit"),
    ("wrong-number-of-arguments", ROOT_CONDITION, "Wrong number of arguments"),
    ("wrong-type-argument", ROOT_CONDITION, "Wrong type argument"),
    ("args-out-of-range", ROOT_CONDITION, "Args out of range"),
    ("void-variable", ROOT_CONDITION, "Symbol's value as variable is void"),
    ("void-function", ROOT_CONDITION, "Symbol's function definition is void"),
    ("invalid-function", ROOT_CONDITION, "Invalid function"),
    ("arith-error", ROOT_CONDITION, "Arithmetic error"),
    ("overflow-error", "arith-error", "Arithmetic overflow error"),
    ("invalid-regexp", ROOT_CONDITION, "Invalid regexp"),
    ("user-error", ROOT_CONDITION, ""),
    ("file-error", ROOT_CONDITION, "File error"),
    ("file-missing", "file-error", "Cannot open load file"),
    ("end-of-file", ROOT_CONDITION, "End of file during parsing"),
    ("no-catch", ROOT_CONDITION, "No catch for tag"),
    ("search-failed", ROOT_CONDITION, "Search failed"),
    ("setting-constant", ROOT_CONDITION, "Attempt to set a constant symbol"),
    ("excessive-lisp-nesting", ROOT_CONDITION, "Lisp nesting exceeds limit"),
    ("cyclic-function-indirection", ROOT_CONDITION, "Symbol's chain of function indirections contains a loop"),
)


class ConditionCycleError(RuntimeError):
    """Raised when a new parent link would make a condition its own ancestor."""

    def __init__(self, name: str, parent: str) -> None:
        super().__init__(f"Condition '{name}' cannot inherit from '{parent}'")
        self.name = name
        self.parent = parent


@dataclass(slots=True)
class ConditionStats:
    """Snapshot of how many kinds are registered."""

    count: int
    names: tuple[str, ...]


class ConditionRegistry:
    """Mapping from condition name to parent name, rooted at ``error``."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._parents: Dict[str, Optional[str]] = {}
        self._messages: Dict[str, str] = {}
        self._logger_name = logger_name
        self.reset()

    def reset(self) -> None:
        self._parents = {ROOT_CONDITION: None}
        self._messages = {ROOT_CONDITION: "error"}
        for name, parent, message in STANDARD_CONDITIONS:
            self.define(name, parent, message=message)

    def teardown(self) -> None:
        self._parents.clear()
        self._messages.clear()

    def define(self, name: str, parent: Optional[str] = ROOT_CONDITION, *, message: str = "") -> str:
        """Register ``name`` under ``parent`` (the root when omitted)."""

        parent = parent or ROOT_CONDITION
        if name == ROOT_CONDITION:
            return name
        if name in self.ancestry(parent):
            raise ConditionCycleError(name, parent)
        if parent not in self._parents:
            self._parents[parent] = ROOT_CONDITION
        self._parents[name] = parent
        if message or name not in self._messages:
            self._messages[name] = message
        record_event(
            "conditions.define",
            level="debug",
            data={"name": name, "parent": parent},
            logger_name=self._logger_name,
        )
        return name

    def is_defined(self, name: str) -> bool:
        return name in self._parents

    def parent_of(self, name: str) -> Optional[str]:
        return self._parents.get(name)

    def message_of(self, name: str) -> str:
        return self._messages.get(name, "")

    def ancestry(self, name: str) -> List[str]:
        """``name`` followed by each parent up to the root, cycle guarded."""

        chain: List[str] = []
        seen: set[str] = set()
        current: Optional[str] = name
        while current is not None and current not in seen:
            seen.add(current)
            chain.append(current)
            current = self._parents.get(current)
        return chain

    def matches(self, spec: str | List[str] | bool, condition: str) -> bool:
        """Whether a handler spec catches ``condition``.

        ``True`` stands for the ``t`` catch-all; a list matches when any of
        its names lies on the condition's parent chain.
        """

        if spec is True:
            return True
        names = [spec] if isinstance(spec, str) else list(spec or [])
        chain = self.ancestry(condition)
        return any(name in chain for name in names)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._parents))

    def stats(self) -> ConditionStats:
        return ConditionStats(count=len(self._parents), names=tuple(sorted(self._parents)))


__all__ = [
    "ROOT_CONDITION",
    "ConditionCycleError",
    "ConditionRegistry",
    "ConditionStats",
]
