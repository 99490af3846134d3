"""Special forms registered on every runtime."""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import binding, buffers, control, definitions, exits, iteration, pcase, places

if TYPE_CHECKING:
    from elisp_compat.runtime.session import Runtime

MODULES = (control, binding, places, exits, iteration, pcase, definitions, buffers)


def install(rt: "Runtime") -> None:
    for module in MODULES:
        module.install(rt)


__all__ = ["MODULES", "install"]
