"""Executable Textual app that hosts a dialect program."""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

try:  # pragma: no cover - imported only when the app is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use elisp_compat.adapters.textual.app"
    ) from exc

from elisp_compat.errors import ElispError
from elisp_compat.host.values import intern
from elisp_compat.runtime.session import Runtime, RuntimeConfig
from elisp_compat.runtime.telemetry import configure

from .controller import BufferView, TextualElispAdapter, TextualUIHooks

TIMER_INTERVAL = 0.05
CURSOR = "\u2588"


def create_runtime(path: str, *, load_paths: Sequence[str] = (), entry: Optional[str] = None) -> Runtime:
    """Build a runtime, load ``path`` and optionally call ``entry``."""

    directory = os.path.dirname(os.path.abspath(path))
    runtime = Runtime.create(RuntimeConfig(load_paths=(directory, *load_paths)))
    runtime.load(path)
    if entry:
        runtime.invoke_command(intern(entry))
    return runtime


def with_cursor(text: str, point: int) -> str:
    """Draw the cursor over the character at ``point``, or before a newline."""

    point = min(point, len(text))
    if point < len(text) and text[point] != "\n":
        return text[:point] + CURSOR + text[point + 1 :]
    return text[:point] + CURSOR + text[point:]


@dataclass
class UIState:
    buffer_text: str = ""
    status_text: str = ""
    message_text: str = ""


class ElispApp(App[None]):
    """Minimal Textual UI showing the selected window's buffer."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-view {
		height: 1fr;
		border: round $accent;
		padding: 0 1;
		content-align: left top;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#message-line {
		height: 1;
		background: $surface-darken-2;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, runtime: Runtime) -> None:
        super().__init__()
        self.runtime = runtime
        self.adapter: TextualElispAdapter | None = None
        self._state = UIState()
        self._buffer_widget: Static | None = None
        self._status_widget: Static | None = None
        self._message_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="buffer-area"):
            self._buffer_widget = Static("", id="buffer-view", markup=False)
            yield self._buffer_widget
        self._status_widget = Static("", id="status-line")
        self._message_widget = Static("", id="message-line", markup=False)
        yield self._status_widget
        yield self._message_widget
        yield Footer()

    async def on_mount(self) -> None:
        hooks = TextualUIHooks(
            update_buffer=self._update_buffer,
            update_status=self._update_status,
            show_message=self._show_message,
        )
        self.adapter = TextualElispAdapter(self.runtime, hooks)
        self.set_interval(TIMER_INTERVAL, self._process_timers)

    def on_unmount(self) -> None:
        self.runtime.teardown()

    def _process_timers(self) -> None:
        if self.adapter:
            self.adapter.process_timers()

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter or event.key == "ctrl+q":
            return
        if self.adapter.handle_textual_key(event.key, text=event.character):
            event.stop()

    def _update_buffer(self, view: BufferView) -> None:
        self._state.buffer_text = with_cursor(view.text, view.point)
        if self._buffer_widget:
            self._buffer_widget.update(self._state.buffer_text)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _show_message(self, text: str) -> None:
        self._state.message_text = text
        if self._message_widget:
            self._message_widget.update(text)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a dialect program in a Textual UI.")
    parser.add_argument("file", help="Source file to load")
    parser.add_argument(
        "-L",
        "--load-path",
        action="append",
        default=[],
        help="Extra directory searched by require (repeatable)",
    )
    parser.add_argument(
        "--call",
        default=os.environ.get("ELISP_COMPAT_ENTRY"),
        help="Command to invoke after loading, e.g. a mode function",
    )
    parser.add_argument(
        "--log-preset",
        choices=("development", "production", "performance", "quiet"),
        default=os.environ.get("ELISP_COMPAT_LOG_PRESET", "quiet"),
        help="Telemetry preset (default: quiet)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    configure(preset=args.log_preset)
    try:
        runtime = create_runtime(args.file, load_paths=args.load_path, entry=args.call)
    except (ElispError, OSError) as exc:
        print(f"elisp-compat: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    ElispApp(runtime).run()


if __name__ == "__main__":  # pragma: no cover - manual run
    main()
