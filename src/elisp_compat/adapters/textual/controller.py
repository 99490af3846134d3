"""Minimal Textual adapter that wires a Runtime's buffers, keys and timers into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from elisp_compat.errors import UnimplementedPrimitiveError
from elisp_compat.runtime.session import Runtime
from elisp_compat.runtime.timers import TimerFailure

NAMED_KEYS = frozenset(
    {"left", "right", "up", "down", "pageup", "pagedown", "enter", "tab", "escape", "space"}
)


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class BufferView:
    """Read-only snapshot of the buffer shown in the selected window."""

    name: str
    text: str
    point: int
    line: int
    column: int
    version: int


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[BufferView], None]
    update_status: Callable[[str], None] = _noop
    show_message: Callable[[str], None] = _noop
    log: Callable[[str], None] = _noop


def translate_key(key: str, character: Optional[str] = None) -> int | str | None:
    """Map a Textual key name onto what ``Runtime.dispatch_key`` accepts.

    ``ctrl+x`` becomes its control code; arrows and other named keys pass
    through by name; printable keys become their character code.
    """

    if key.startswith("ctrl+"):
        rest = key[len("ctrl+") :]
        if len(rest) == 1 and rest.isalpha():
            return ord(rest.lower()) - ord("a") + 1
        return None
    if key in NAMED_KEYS:
        return key
    if character and len(character) == 1 and character.isprintable():
        return ord(character)
    return None


class TextualElispAdapter:
    """Bridges a Runtime to a Textual-friendly surface."""

    def __init__(self, runtime: Runtime, hooks: TextualUIHooks) -> None:
        self.runtime = runtime
        self.hooks = hooks
        self._last_view: Optional[Tuple[str, int, int]] = None
        self._shown_messages = len(runtime.messages)
        self.refresh(force=True)

    def handle_textual_key(self, key: str, *, text: Optional[str] = None) -> bool:
        """Translate a Textual key event and run the command bound to it."""

        code = translate_key(key, text)
        self._log_state("key ->", key=key, code=code)
        if code is None:
            return False
        notice = None
        try:
            handled = self.runtime.dispatch_key(code)
        except UnimplementedPrimitiveError as exc:
            self.runtime.warn_once(f"unimplemented:{exc.name}", str(exc), name=exc.name)
            notice = f"feature not implemented: {exc.name}"
            handled = False
        self._log_state("result <-", handled=handled)
        self.refresh()
        if notice:
            self.hooks.update_status(notice)
        return handled

    def process_timers(self, now: Optional[float] = None) -> List[TimerFailure]:
        """Fire due timers and surface failures to the UI."""

        failures = self.runtime.tick_timers(now)
        self.refresh()
        for failure in failures:
            self.hooks.update_status(f"timer disabled: {failure.message}")
            self._log_state("timer !", error=failure.message)
        return failures

    def refresh(self, *, force: bool = False) -> None:
        """Push the buffer, status and new messages when anything changed."""

        buffer = self.runtime.current_buffer()
        marker = (buffer.name, buffer.version, buffer.point)
        if force or marker != self._last_view:
            self._last_view = marker
            self.hooks.update_buffer(self.snapshot())
            status = self.runtime.status_line()
            if status:
                self.hooks.update_status(status)
        messages = self.runtime.messages
        if len(messages) > self._shown_messages:
            self._shown_messages = len(messages)
            self.hooks.show_message(messages[-1])

    def snapshot(self) -> BufferView:
        buffer = self.runtime.current_buffer()
        return BufferView(
            name=buffer.name,
            text=buffer.text,
            point=buffer.point,
            line=buffer.text.count("\n", 0, buffer.point) + 1,
            column=buffer.column(),
            version=buffer.version,
        )

    def _log_state(self, prefix: str, **fields: object) -> None:
        buffer = self.runtime.current_buffer()
        snapshot = {"buffer": buffer.name, "point": buffer.point, "version": buffer.version}
        snapshot.update({key: value for key, value in fields.items() if value is not None})
        parts = [prefix] + [f"{key}={value!r}" for key, value in snapshot.items()]
        self.hooks.log(" ".join(parts))


__all__ = ["BufferView", "TextualElispAdapter", "TextualUIHooks", "translate_key"]
