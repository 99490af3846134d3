"""Window selection, window configurations and single-frame display stubs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from elisp_compat.document.windows import Window, WindowConfiguration
from elisp_compat.errors import TypeMismatchError
from elisp_compat.host.values import NIL, T, Symbol, as_bool, from_list, lisp_list

from .base import PrimitiveTable, first_argument, ignore, install_primitives, require_integer
from .editing import buffer_or_current, get_buffer_create

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

MONITOR_WIDTH = 1024
MONITOR_HEIGHT = 768


@dataclass(frozen=True, slots=True)
class Frame:
    """The one frame every window lives on."""

    name: str = "F1"

    def lisp_repr(self) -> str:
        return f"#<frame {self.name}>"


FRAME = Frame()


def require_window(rt: "Runtime", value: Any) -> Window:
    if value is NIL:
        return rt.document.selected_window()
    if not isinstance(value, Window):
        raise TypeMismatchError("window-live-p", value)
    return value


def selected_window(rt: "Runtime") -> Window:
    return rt.document.selected_window()


def select_window(rt: "Runtime", window: Any, *_: Any) -> Window:
    return rt.document.select_window(require_window(rt, window))


def window_buffer(rt: "Runtime", window: Any = NIL) -> Any:
    return rt.document.window_buffer(require_window(rt, window))


def set_window_buffer(rt: "Runtime", window: Any, buffer: Any, *_: Any) -> Any:
    rt.document.set_window_buffer(require_window(rt, window), get_buffer_create(rt, buffer))
    return NIL


def get_buffer_window(rt: "Runtime", buffer: Any = NIL, *_: Any) -> Any:
    if isinstance(buffer, str):
        name = buffer
    else:
        name = buffer_or_current(rt, buffer).name
    window = rt.document.get_buffer_window(name)
    return NIL if window is None else window


def window_list(rt: "Runtime", *_: Any) -> Any:
    windows = rt.document.windows
    return from_list(windows[window_id] for window_id in sorted(windows))


def windowp(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, Window))


def window_live_p(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, Window) and value.id in rt.document.windows)


def split_window(rt: "Runtime", window: Any = NIL, *_: Any) -> Window:
    source = require_window(rt, window)
    return rt.document.new_window(rt.document.window_buffer(source))


def delete_window(rt: "Runtime", window: Any = NIL) -> Any:
    rt.document.delete_window(require_window(rt, window))
    return NIL


def delete_other_windows(rt: "Runtime", window: Any = NIL, *_: Any) -> Any:
    keep = require_window(rt, window)
    for other in list(rt.document.windows.values()):
        if other is not keep:
            rt.document.delete_window(other)
    rt.document.select_window(keep)
    return NIL


def current_window_configuration(rt: "Runtime", *_: Any) -> WindowConfiguration:
    return rt.document.capture_configuration()


def set_window_configuration(rt: "Runtime", configuration: Any, *_: Any) -> Any:
    if not isinstance(configuration, WindowConfiguration):
        raise TypeMismatchError("window-configuration-p", configuration)
    rt.document.restore_configuration(configuration)
    return T


def window_configuration_p(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, WindowConfiguration))


def frame_width(rt: "Runtime", *_: Any) -> int:
    return rt.config.frame_width


def frame_height(rt: "Runtime", *_: Any) -> int:
    return rt.config.frame_height


def window_start(rt: "Runtime", *_: Any) -> int:
    return 1


def window_end(rt: "Runtime", window: Any = NIL, *_: Any) -> int:
    return len(rt.document.window_buffer(require_window(rt, window)).text) + 1


def window_point(rt: "Runtime", window: Any = NIL) -> int:
    return rt.document.window_buffer(require_window(rt, window)).point + 1


def set_window_point(rt: "Runtime", window: Any, position: Any) -> int:
    buffer = rt.document.window_buffer(require_window(rt, window))
    return buffer.goto(require_integer(position) - 1) + 1


def selected_frame(rt: "Runtime") -> Frame:
    return FRAME


def frame_list(rt: "Runtime") -> Any:
    return lisp_list(FRAME)


def frame_selected_window(rt: "Runtime", *_: Any) -> Window:
    return rt.document.selected_window()


def frame_parameter(rt: "Runtime", frame: Any, parameter: Any) -> Any:
    if isinstance(parameter, Symbol) and parameter.name == "cursor-type":
        return Symbol("box")
    return NIL


def frame_monitor_attributes(rt: "Runtime", *_: Any) -> Any:
    area = lisp_list(0, 0, MONITOR_WIDTH, MONITOR_HEIGHT)
    return lisp_list(
        lisp_list(Symbol("geometry"), *area),
        lisp_list(Symbol("workarea"), *area),
    )


def window_body_pixel_edges(rt: "Runtime", *_: Any) -> Any:
    return lisp_list(0, 0, MONITOR_WIDTH, MONITOR_HEIGHT)


def always(rt: "Runtime", *_: Any) -> Any:
    return T


def one(rt: "Runtime", *_: Any) -> int:
    return 1


WINDOW_PRIMITIVES: PrimitiveTable = {
    "selected-window": (selected_window, 0, 0),
    "select-window": (select_window, 1, 2),
    "window-buffer": (window_buffer, 0, 1),
    "set-window-buffer": (set_window_buffer, 2, 3),
    "get-buffer-window": (get_buffer_window, 0, 2),
    "window-list": (window_list, 0, 3),
    "windowp": (windowp, 1, 1),
    "window-live-p": (window_live_p, 1, 1),
    "split-window": (split_window, 0, 4),
    "delete-window": (delete_window, 0, 1),
    "delete-other-windows": (delete_other_windows, 0, 2),
    "current-window-configuration": (current_window_configuration, 0, 1),
    "set-window-configuration": (set_window_configuration, 1, 3),
    "window-configuration-p": (window_configuration_p, 1, 1),
    "window-width": (frame_width, 0, 2),
    "window-body-width": (frame_width, 0, 2),
    "window-height": (frame_height, 0, 2),
    "window-body-height": (frame_height, 0, 2),
    "frame-width": (frame_width, 0, 1),
    "frame-height": (frame_height, 0, 1),
    "window-start": (window_start, 0, 1),
    "window-end": (window_end, 0, 2),
    "window-point": (window_point, 0, 1),
    "set-window-start": (first_argument, 2, 3),
    "set-window-point": (set_window_point, 2, 2),
    "selected-frame": (selected_frame, 0, 0),
    "select-frame": (first_argument, 1, 2),
    "window-frame": (selected_frame, 0, 1),
    "frame-list": (frame_list, 0, 0),
    "visible-frame-list": (frame_list, 0, 0),
    "frame-visible-p": (always, 0, 1),
    "frame-selected-window": (frame_selected_window, 0, 1),
    "set-frame-selected-window": (first_argument, 2, 3),
    "frame-parameter": (frame_parameter, 2, 2),
    "modify-frame-parameters": (first_argument, 2, 2),
    "frame-monitor-attributes": (frame_monitor_attributes, 0, 1),
    "window-body-pixel-edges": (window_body_pixel_edges, 0, 1),
    "line-pixel-height": (one, 0, 1),
    "display-color-p": (always, 0, 1),
    "display-graphic-p": (ignore, 0, 1),
    "display-images-p": (ignore, 0, 1),
    "force-mode-line-update": (first_argument, 0, 1),
    "redisplay": (first_argument, 0, 1),
    "recenter": (first_argument, 0, 2),
    "sit-for": (always, 1, 2),
    "sleep-for": (ignore, 1, 2),
    "ding": (ignore, 0, 1),
    "beep": (ignore, 0, 1),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, WINDOW_PRIMITIVES)


__all__ = ["WINDOW_PRIMITIVES", "FRAME", "Frame", "install"]
