"""Primitive functions registered on every runtime."""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import (
    conditions,
    editing,
    environment,
    hooks,
    keymaps,
    numbers,
    search,
    sequences,
    strings,
    symbols,
    windows,
)

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

MODULES = (
    sequences,
    numbers,
    strings,
    symbols,
    editing,
    windows,
    keymaps,
    search,
    hooks,
    conditions,
    environment,
)


def install(rt: "Runtime") -> None:
    for module in MODULES:
        module.install(rt)


__all__ = ["MODULES", "install"]
