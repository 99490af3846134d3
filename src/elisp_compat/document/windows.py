"""Buffer and window tables, selection recovery and window configurations."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from elisp_compat.runtime.telemetry import record_event

from .buffer import Buffer

SCRATCH_BUFFER = "*scratch*"
DEFAULT_NEW_BUFFER = "*buffer*"


@dataclass(eq=False)
class Window:
    """A numbered view onto one buffer, referenced by name."""

    id: int
    buffer_name: str

    def lisp_repr(self) -> str:
        return f"#<window {self.id} on {self.buffer_name}>"


@dataclass(frozen=True, slots=True)
class WindowConfiguration:
    """Snapshot of the selected window id and each window's buffer name."""

    selected: int
    buffers: Mapping[int, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "buffers", MappingProxyType(dict(self.buffers)))

    def lisp_repr(self) -> str:
        return f"#<window-configuration {len(self.buffers)} windows>"


class DocumentModel:
    """Owns every buffer and window; the current buffer is the selected window's."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self.buffers: Dict[str, Buffer] = {}
        self.windows: Dict[int, Window] = {}
        self.selected_id = 0
        self.next_window_id = 1
        self._logger_name = logger_name
        self._initialize()

    def _initialize(self) -> Window:
        scratch = self.ensure_buffer(SCRATCH_BUFFER)
        window = self.new_window(scratch)
        self.selected_id = window.id
        return window

    # buffers ------------------------------------------------------------

    def ensure_buffer(self, name: str) -> Buffer:
        """Fetch ``name`` or create it; the same object is returned every time."""

        buffer = self.buffers.get(name)
        if buffer is None:
            buffer = Buffer(name=name)
            self.buffers[name] = buffer
        return buffer

    def get_buffer(self, name: str) -> Optional[Buffer]:
        return self.buffers.get(name)

    def generate_new_buffer(self, base: str) -> Buffer:
        base = base or DEFAULT_NEW_BUFFER
        name = base
        suffix = 2
        while name in self.buffers:
            name = f"{base}<{suffix}>"
            suffix += 1
        return self.ensure_buffer(name)

    def buffer_names(self) -> List[str]:
        return sorted(self.buffers)

    def buffer_list(self) -> List[Buffer]:
        return [self.buffers[name] for name in self.buffer_names()]

    def kill_buffer(self, name: str) -> bool:
        buffer = self.buffers.pop(name, None)
        if buffer is None:
            return False
        buffer.live = False
        record_event(
            "document.kill_buffer",
            level="debug",
            data={"buffer": name, "remaining": len(self.buffers)},
            logger_name=self._logger_name,
        )
        if not self.buffers:
            self._initialize()
            return True
        for window in self.windows.values():
            if window.buffer_name == name:
                window.buffer_name = self.ensure_buffer(SCRATCH_BUFFER).name
        return True

    def bury_buffer(self, name: str) -> None:
        if self.current_buffer().name == name:
            self.switch_to_buffer(self.ensure_buffer(SCRATCH_BUFFER))

    # windows ------------------------------------------------------------

    def new_window(self, buffer: Buffer) -> Window:
        window = Window(id=self.next_window_id, buffer_name=buffer.name)
        self.next_window_id += 1
        self.windows[window.id] = window
        return window

    def selected_window(self) -> Window:
        """Return the selected window, recovering when the id went stale."""

        window = self.windows.get(self.selected_id)
        if window is not None:
            return window
        if self.windows:
            window = self.windows[min(self.windows)]
            self.selected_id = window.id
            return window
        return self._initialize()

    def select_window(self, window: Window) -> Window:
        self.windows.setdefault(window.id, window)
        self.selected_id = window.id
        return window

    def window_buffer(self, window: Window) -> Buffer:
        return self.ensure_buffer(window.buffer_name)

    def set_window_buffer(self, window: Optional[Window], buffer: Buffer) -> Buffer:
        target = window or self.selected_window()
        self.buffers.setdefault(buffer.name, buffer)
        target.buffer_name = buffer.name
        self.windows.setdefault(target.id, target)
        return buffer

    def get_buffer_window(self, name: str) -> Optional[Window]:
        for window_id in sorted(self.windows):
            window = self.windows[window_id]
            if window.buffer_name == name:
                return window
        return None

    def delete_window(self, window: Window) -> None:
        self.windows.pop(window.id, None)

    # current buffer -------------------------------------------------------

    def current_buffer(self) -> Buffer:
        return self.window_buffer(self.selected_window())

    def switch_to_buffer(self, buffer: Buffer) -> Buffer:
        return self.set_window_buffer(None, buffer)

    @contextmanager
    def scoped_buffer(self, buffer: Optional[Buffer] = None) -> Iterator[Buffer]:
        """Make ``buffer`` current for the block and restore the prior one.

        The previous buffer comes back on every exit path, unless the block
        killed it.
        """

        original = self.current_buffer()
        if buffer is not None:
            self.switch_to_buffer(buffer)
        try:
            yield self.current_buffer()
        finally:
            if original.live and original.name in self.buffers:
                self.switch_to_buffer(original)

    # configurations -------------------------------------------------------

    def capture_configuration(self) -> WindowConfiguration:
        selected = self.selected_window()
        return WindowConfiguration(
            selected=selected.id,
            buffers={wid: win.buffer_name for wid, win in self.windows.items()},
        )

    def restore_configuration(self, config: WindowConfiguration) -> None:
        for window_id, buffer_name in config.buffers.items():
            window = self.windows.get(window_id)
            if window is None:
                window = Window(id=window_id, buffer_name=buffer_name)
                self.windows[window_id] = window
                self.next_window_id = max(self.next_window_id, window_id + 1)
            window.buffer_name = self.ensure_buffer(buffer_name).name
        if config.selected in self.windows:
            self.selected_id = config.selected


__all__ = [
    "SCRATCH_BUFFER",
    "Window",
    "WindowConfiguration",
    "DocumentModel",
]
