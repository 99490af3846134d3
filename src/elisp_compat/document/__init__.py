"""Editor state stand-ins: buffers, windows, configurations and keymaps."""

from .buffer import Buffer
from .keymap import (
    FULL_MAP_SIZE,
    Keymap,
    describe_bindings,
    kbd,
    key_candidates,
    key_from_code,
)
from .validation import clamp, ordered_region, to_offset
from .windows import SCRATCH_BUFFER, DocumentModel, Window, WindowConfiguration

__all__ = [
    "Buffer",
    "DocumentModel",
    "Window",
    "WindowConfiguration",
    "SCRATCH_BUFFER",
    "Keymap",
    "FULL_MAP_SIZE",
    "describe_bindings",
    "kbd",
    "key_candidates",
    "key_from_code",
    "clamp",
    "ordered_region",
    "to_offset",
]
