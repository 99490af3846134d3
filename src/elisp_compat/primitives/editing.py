"""Buffer table and point-relative editing primitives.

Positions handed to and returned from dialect code are 1-based; the
``Buffer`` model below them stores 0-based offsets.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

from elisp_compat.document.buffer import Buffer
from elisp_compat.document.validation import ensure_integer, to_offset
from elisp_compat.document.windows import SCRATCH_BUFFER
from elisp_compat.errors import TypeMismatchError
from elisp_compat.host.values import NIL, T, Symbol, Vector, as_bool, from_list, iterate

from .base import PrimitiveTable, first_argument, ignore, install_primitives, optional, require_integer, require_string

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

DEFAULT_TAB_WIDTH = 8


def resolve_buffer(rt: "Runtime", value: Any) -> Buffer:
    """A live buffer from a buffer object or a name; names are looked up, not created."""

    if isinstance(value, Buffer):
        return value
    if isinstance(value, str):
        buffer = rt.document.get_buffer(value)
        if buffer is None:
            raise TypeMismatchError("bufferp", value)
        return buffer
    raise TypeMismatchError("bufferp", value)


def buffer_or_current(rt: "Runtime", value: Any) -> Buffer:
    return rt.current_buffer() if value is NIL else resolve_buffer(rt, value)


def _offset(buffer: Buffer, position: Any) -> int:
    return to_offset(position, len(buffer.text))


def _count(value: Any, default: int = 1) -> int:
    return require_integer(optional(value, default))


def _is_word(ch: str) -> bool:
    return ch.isalnum()


# insertion and deletion -----------------------------------------------------


def insert(rt: "Runtime", *items: Any) -> Any:
    """Insert strings and characters at point, leaving point after them."""

    buffer = rt.current_buffer()
    for item in items:
        if isinstance(item, str):
            buffer.insert(item)
        else:
            buffer.insert(chr(require_integer(item)))
    return NIL


def insert_char(rt: "Runtime", char: Any, count: Any = NIL, *_: Any) -> Any:
    rt.current_buffer().insert(chr(require_integer(char)) * max(_count(count), 0))
    return NIL


def newline(rt: "Runtime", count: Any = NIL, *_: Any) -> Any:
    rt.current_buffer().insert("\n" * max(_count(count), 0))
    return NIL


def insert_rectangle(rt: "Runtime", rectangle: Any) -> Any:
    """Insert each line at the starting column of successive lines."""

    buffer = rt.current_buffer()
    items = rectangle.items if isinstance(rectangle, Vector) else list(iterate(rectangle))
    lines = [require_string(line) for line in items]
    column = buffer.column()
    for index, line in enumerate(lines):
        if index:
            end = buffer.line_end()
            if end >= len(buffer.text):
                buffer.insert_at(end, "\n")
            buffer.goto(end + 1)
            _move_to_column(buffer, column, force=True)
        buffer.insert(line)
    return NIL


def erase_buffer(rt: "Runtime") -> Any:
    rt.current_buffer().erase()
    return NIL


def delete_region(rt: "Runtime", start: Any, end: Any) -> Any:
    buffer = rt.current_buffer()
    buffer.delete_region(_offset(buffer, start), _offset(buffer, end))
    return NIL


def delete_char(rt: "Runtime", count: Any = NIL, *_: Any) -> Any:
    buffer = rt.current_buffer()
    amount = _count(count)
    if amount >= 0:
        buffer.delete_region(buffer.point, buffer.point + amount)
    else:
        buffer.delete_region(max(buffer.point + amount, 0), buffer.point)
    return NIL


def _blank(line: str) -> bool:
    return not line.strip(" \t")


def delete_blank_lines(rt: "Runtime") -> Any:
    """Collapse blank lines around point to one, or drop a lone blank line.

    On a non-blank line, the blank lines that follow it are deleted.
    """

    buffer = rt.current_buffer()
    lines = buffer.text.split("\n")
    current = buffer.text.count("\n", 0, buffer.point)
    if _blank(lines[current]):
        first = current
        while first > 0 and _blank(lines[first - 1]):
            first -= 1
        last = current
        while last + 1 < len(lines) and _blank(lines[last + 1]):
            last += 1
        keep = [""] if last > first else []
        lines[first : last + 1] = keep
        target = first
    else:
        last = current
        while last + 1 < len(lines) and _blank(lines[last + 1]):
            last += 1
        del lines[current + 1 : last + 1]
        target = current
    text = "\n".join(lines)
    buffer.replace_region(0, len(buffer.text), text)
    offset = sum(len(line) + 1 for line in lines[:target])
    buffer.goto(offset if target < len(lines) else len(text))
    return NIL


def subst_char_in_region(
    rt: "Runtime", start: Any, end: Any, old: Any, new: Any, *_: Any
) -> Any:
    buffer = rt.current_buffer()
    begin, finish = sorted((_offset(buffer, start), _offset(buffer, end)))
    segment = buffer.text[begin:finish]
    replaced = segment.replace(chr(require_integer(old)), chr(require_integer(new)))
    if replaced != segment:
        point = buffer.point
        buffer.replace_region(begin, finish, replaced)
        buffer.goto(point)
    return NIL


def _tab_width(rt: "Runtime") -> int:
    value = rt.interpreter.globals.lookup(Symbol("tab-width"))
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return DEFAULT_TAB_WIDTH


def untabify(rt: "Runtime", start: Any, end: Any, *_: Any) -> Any:
    """Expand tabs in the region to spaces up to the next tab stop."""

    buffer = rt.current_buffer()
    begin, finish = sorted((_offset(buffer, start), _offset(buffer, end)))
    width = _tab_width(rt)
    column = buffer.column(begin)
    out: List[str] = []
    for ch in buffer.text[begin:finish]:
        if ch == "\t":
            spaces = width - column % width
            out.append(" " * spaces)
            column += spaces
        else:
            out.append(ch)
            column = 0 if ch == "\n" else column + 1
    expanded = "".join(out)
    if expanded != buffer.text[begin:finish]:
        point = buffer.point
        delta = len(expanded) - (finish - begin)
        buffer.replace_region(begin, finish, expanded)
        buffer.goto(point + delta if point >= finish else point)
    return NIL


def indent_to(rt: "Runtime", column: Any, minimum: Any = NIL) -> int:
    buffer = rt.current_buffer()
    target = require_integer(column)
    current = buffer.column()
    target = max(target, current + _count(minimum, 0))
    if target > current:
        buffer.insert(" " * (target - current))
    return max(target, current)


# reading ----------------------------------------------------------------------


def buffer_substring(rt: "Runtime", start: Any, end: Any) -> str:
    buffer = rt.current_buffer()
    return buffer.substring(_offset(buffer, start), _offset(buffer, end))


def buffer_string(rt: "Runtime") -> str:
    return rt.current_buffer().text


def buffer_size(rt: "Runtime", buffer: Any = NIL) -> int:
    return len(buffer_or_current(rt, buffer).text)


def char_after(rt: "Runtime", position: Any = NIL) -> Any:
    buffer = rt.current_buffer()
    offset = buffer.point if position is NIL else ensure_integer(position) - 1
    ch = buffer.char_at(offset)
    return NIL if ch is None else ord(ch)


def char_before(rt: "Runtime", position: Any = NIL) -> Any:
    buffer = rt.current_buffer()
    offset = buffer.point if position is NIL else ensure_integer(position) - 1
    ch = buffer.char_at(offset - 1)
    return NIL if ch is None else ord(ch)


def following_char(rt: "Runtime") -> int:
    ch = char_after(rt)
    return 0 if ch is NIL else ch


def preceding_char(rt: "Runtime") -> int:
    ch = char_before(rt)
    return 0 if ch is NIL else ch


def bolp(rt: "Runtime") -> Any:
    buffer = rt.current_buffer()
    return as_bool(buffer.point == buffer.line_start())


def eolp(rt: "Runtime") -> Any:
    buffer = rt.current_buffer()
    return as_bool(buffer.point == buffer.line_end())


def bobp(rt: "Runtime") -> Any:
    return as_bool(rt.current_buffer().point == 0)


def eobp(rt: "Runtime") -> Any:
    buffer = rt.current_buffer()
    return as_bool(buffer.point >= len(buffer.text))


# motion -------------------------------------------------------------------------


def point(rt: "Runtime") -> int:
    return rt.current_buffer().point + 1


def point_min(rt: "Runtime") -> int:
    return 1


def point_max(rt: "Runtime") -> int:
    return len(rt.current_buffer().text) + 1


def goto_char(rt: "Runtime", position: Any) -> int:
    buffer = rt.current_buffer()
    return buffer.goto(_offset(buffer, position)) + 1


def forward_char(rt: "Runtime", count: Any = NIL) -> Any:
    buffer = rt.current_buffer()
    buffer.goto(buffer.point + _count(count))
    return NIL


def backward_char(rt: "Runtime", count: Any = NIL) -> Any:
    buffer = rt.current_buffer()
    buffer.goto(buffer.point - _count(count))
    return NIL


def move_lines(buffer: Buffer, count: int) -> int:
    """Move to the start of the line ``count`` lines away; return the shortfall."""

    if count > 0:
        moved = 0
        while moved < count:
            newline_at = buffer.text.find("\n", buffer.point)
            if newline_at < 0:
                partial = buffer.point > buffer.line_start()
                buffer.goto(len(buffer.text))
                return count - moved - (1 if partial else 0)
            buffer.goto(newline_at + 1)
            moved += 1
        return 0
    buffer.goto(buffer.line_start())
    moved = 0
    while moved < -count:
        if buffer.point == 0:
            return count + moved
        buffer.goto(buffer.line_start(buffer.point - 1))
        moved += 1
    return 0


def forward_line(rt: "Runtime", count: Any = NIL) -> int:
    return move_lines(rt.current_buffer(), _count(count))


def beginning_of_line(rt: "Runtime", count: Any = NIL) -> Any:
    buffer = rt.current_buffer()
    amount = _count(count)
    if amount != 1:
        move_lines(buffer, amount - 1)
    buffer.goto(buffer.line_start())
    return NIL


def end_of_line(rt: "Runtime", count: Any = NIL) -> Any:
    buffer = rt.current_buffer()
    amount = _count(count)
    if amount != 1:
        move_lines(buffer, amount - 1)
    buffer.goto(buffer.line_end())
    return NIL


def line_beginning_position(rt: "Runtime", count: Any = NIL) -> int:
    buffer = rt.current_buffer()
    saved = buffer.point
    try:
        beginning_of_line(rt, count)
        return buffer.point + 1
    finally:
        buffer.point = saved


def line_end_position(rt: "Runtime", count: Any = NIL) -> int:
    buffer = rt.current_buffer()
    saved = buffer.point
    try:
        end_of_line(rt, count)
        return buffer.point + 1
    finally:
        buffer.point = saved


def _move_words(buffer: Buffer, count: int) -> bool:
    text = buffer.text
    position = buffer.point
    for _ in range(abs(count)):
        if count > 0:
            while position < len(text) and not _is_word(text[position]):
                position += 1
            if position >= len(text):
                buffer.goto(position)
                return False
            while position < len(text) and _is_word(text[position]):
                position += 1
        else:
            while position > 0 and not _is_word(text[position - 1]):
                position -= 1
            if position == 0:
                buffer.goto(position)
                return False
            while position > 0 and _is_word(text[position - 1]):
                position -= 1
    buffer.goto(position)
    return True


def forward_word(rt: "Runtime", count: Any = NIL) -> Any:
    return as_bool(_move_words(rt.current_buffer(), _count(count)))


def backward_word(rt: "Runtime", count: Any = NIL) -> Any:
    return as_bool(_move_words(rt.current_buffer(), -_count(count)))


def current_column(rt: "Runtime") -> int:
    return rt.current_buffer().column()


def _move_to_column(buffer: Buffer, column: int, *, force: bool = False) -> int:
    start = buffer.line_start()
    end = buffer.line_end()
    target = start + max(column, 0)
    if target <= end:
        buffer.goto(target)
    else:
        buffer.goto(end)
        if force:
            buffer.insert(" " * (target - end))
    return buffer.column()


def move_to_column(rt: "Runtime", column: Any, force: Any = NIL) -> int:
    return _move_to_column(
        rt.current_buffer(), require_integer(column), force=force is T
    )


def count_lines(rt: "Runtime", start: Any, end: Any, *_: Any) -> int:
    buffer = rt.current_buffer()
    return buffer.count_lines(_offset(buffer, start), _offset(buffer, end))


def line_number_at_pos(rt: "Runtime", position: Any = NIL, *_: Any) -> int:
    buffer = rt.current_buffer()
    offset = buffer.point if position is NIL else _offset(buffer, position)
    return buffer.text.count("\n", 0, offset) + 1


# buffer table ---------------------------------------------------------------------


def _name(value: Any) -> str:
    if isinstance(value, Buffer):
        return value.name
    return require_string(value)


def get_buffer_create(rt: "Runtime", name: Any, *_: Any) -> Buffer:
    if isinstance(name, Buffer):
        return name
    return rt.document.ensure_buffer(require_string(name))


def get_buffer(rt: "Runtime", name: Any) -> Any:
    if isinstance(name, Buffer):
        return name if name.live else NIL
    buffer = rt.document.get_buffer(require_string(name))
    return NIL if buffer is None else buffer


def generate_new_buffer(rt: "Runtime", name: Any, *_: Any) -> Buffer:
    return rt.document.generate_new_buffer(require_string(name))


def generate_new_buffer_name(rt: "Runtime", name: Any, *_: Any) -> str:
    base = require_string(name)
    candidate, suffix = base, 2
    while rt.document.get_buffer(candidate) is not None:
        candidate = f"{base}<{suffix}>"
        suffix += 1
    return candidate


def kill_buffer(rt: "Runtime", buffer: Any = NIL) -> Any:
    name = buffer if isinstance(buffer, str) else buffer_or_current(rt, buffer).name
    return as_bool(rt.document.kill_buffer(name))


def bury_buffer(rt: "Runtime", buffer: Any = NIL) -> Any:
    rt.document.bury_buffer(_name(buffer) if buffer is not NIL else rt.current_buffer().name)
    return NIL


def buffer_list(rt: "Runtime", *_: Any) -> Any:
    return from_list(rt.document.buffer_list())


def buffer_name(rt: "Runtime", buffer: Any = NIL) -> Any:
    target = rt.current_buffer() if buffer is NIL else buffer
    if not isinstance(target, Buffer):
        raise TypeMismatchError("bufferp", target)
    return target.name if target.live else NIL


def buffer_live_p(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, Buffer) and value.live)


def bufferp(rt: "Runtime", value: Any) -> Any:
    return as_bool(isinstance(value, Buffer))


def current_buffer(rt: "Runtime") -> Buffer:
    return rt.current_buffer()


def set_buffer(rt: "Runtime", buffer: Any) -> Buffer:
    return rt.document.switch_to_buffer(resolve_buffer(rt, buffer))


def switch_to_buffer(rt: "Runtime", buffer: Any, *_: Any) -> Buffer:
    """Show ``buffer`` in the selected window; unknown names are created."""

    target = buffer if isinstance(buffer, Buffer) else rt.document.ensure_buffer(_name(buffer))
    return rt.document.switch_to_buffer(target)


def get_scratch_buffer_create(rt: "Runtime") -> Buffer:
    return rt.document.ensure_buffer(SCRATCH_BUFFER)


def append_to_buffer(rt: "Runtime", buffer: Any, start: Any, end: Any) -> Any:
    """Insert the current buffer's region into ``buffer`` at its point."""

    source = rt.current_buffer()
    text = source.substring(_offset(source, start), _offset(source, end))
    target = get_buffer_create(rt, buffer)
    target.insert(text)
    return NIL


def insert_buffer_substring(rt: "Runtime", buffer: Any, start: Any = NIL, end: Any = NIL) -> Any:
    source = resolve_buffer(rt, buffer)
    begin = 0 if start is NIL else _offset(source, start)
    finish = len(source.text) if end is NIL else _offset(source, end)
    rt.current_buffer().insert(source.substring(begin, finish))
    return NIL


EDITING_PRIMITIVES: PrimitiveTable = {
    "insert": (insert, 0, None),
    "insert-char": (insert_char, 1, 3),
    "newline": (newline, 0, 2),
    "insert-rectangle": (insert_rectangle, 1, 1),
    "erase-buffer": (erase_buffer, 0, 0),
    "delete-region": (delete_region, 2, 2),
    "delete-char": (delete_char, 0, 2),
    "delete-blank-lines": (delete_blank_lines, 0, 0),
    "subst-char-in-region": (subst_char_in_region, 4, 5),
    "untabify": (untabify, 2, 3),
    "indent-to": (indent_to, 1, 2),
    "buffer-substring": (buffer_substring, 2, 2),
    "buffer-substring-no-properties": (buffer_substring, 2, 2),
    "buffer-string": (buffer_string, 0, 0),
    "buffer-size": (buffer_size, 0, 1),
    "char-after": (char_after, 0, 1),
    "char-before": (char_before, 0, 1),
    "following-char": (following_char, 0, 0),
    "preceding-char": (preceding_char, 0, 0),
    "bolp": (bolp, 0, 0),
    "eolp": (eolp, 0, 0),
    "bobp": (bobp, 0, 0),
    "eobp": (eobp, 0, 0),
    "point": (point, 0, 0),
    "el-point": (point, 0, 0),
    "point-min": (point_min, 0, 0),
    "point-max": (point_max, 0, 0),
    "goto-char": (goto_char, 1, 1),
    "forward-char": (forward_char, 0, 1),
    "backward-char": (backward_char, 0, 1),
    "forward-line": (forward_line, 0, 1),
    "beginning-of-line": (beginning_of_line, 0, 1),
    "end-of-line": (end_of_line, 0, 1),
    "line-beginning-position": (line_beginning_position, 0, 1),
    "line-end-position": (line_end_position, 0, 1),
    "pos-bol": (line_beginning_position, 0, 1),
    "pos-eol": (line_end_position, 0, 1),
    "forward-word": (forward_word, 0, 1),
    "backward-word": (backward_word, 0, 1),
    "current-column": (current_column, 0, 0),
    "move-to-column": (move_to_column, 1, 2),
    "count-lines": (count_lines, 2, 3),
    "line-number-at-pos": (line_number_at_pos, 0, 2),
    "get-buffer-create": (get_buffer_create, 1, 2),
    "get-buffer": (get_buffer, 1, 1),
    "generate-new-buffer": (generate_new_buffer, 1, 2),
    "generate-new-buffer-name": (generate_new_buffer_name, 1, 2),
    "get-scratch-buffer-create": (get_scratch_buffer_create, 0, 0),
    "kill-buffer": (kill_buffer, 0, 1),
    "bury-buffer": (bury_buffer, 0, 1),
    "buffer-list": (buffer_list, 0, 1),
    "buffer-name": (buffer_name, 0, 1),
    "buffer-live-p": (buffer_live_p, 1, 1),
    "bufferp": (bufferp, 1, 1),
    "current-buffer": (current_buffer, 0, 0),
    "set-buffer": (set_buffer, 1, 1),
    "switch-to-buffer": (switch_to_buffer, 1, 3),
    "pop-to-buffer-same-window": (switch_to_buffer, 1, 2),
    "pop-to-buffer": (switch_to_buffer, 1, 3),
    "append-to-buffer": (append_to_buffer, 3, 3),
    "insert-buffer-substring": (insert_buffer_substring, 1, 3),
    "insert-buffer-substring-no-properties": (insert_buffer_substring, 1, 3),
    "buffer-modified-p": (ignore, 0, 1),
    "set-buffer-modified-p": (first_argument, 0, 1),
    "buffer-disable-undo": (first_argument, 0, 1),
    "buffer-enable-undo": (first_argument, 0, 1),
    "undo-boundary": (ignore, 0, 0),
    "narrow-to-region": (ignore, 2, 2),
    "widen": (ignore, 0, 0),
}


def install(rt: "Runtime") -> None:
    install_primitives(rt, EDITING_PRIMITIVES)


__all__ = [
    "EDITING_PRIMITIVES",
    "resolve_buffer",
    "buffer_or_current",
    "move_lines",
    "install",
]
