"""File loading, feature resolution and the ``require``/``provide`` bookkeeping."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Protocol, Sequence

from elisp_compat.errors import ConditionSignal
from elisp_compat.host.values import NIL, T, Symbol, truthy

if TYPE_CHECKING:
    from .session import Runtime

SOURCE_SUFFIX = ".el"


class FileSource(Protocol):
    """Anything able to read a dialect source file as text."""

    def read_text(self, path: str) -> str: ...

    def exists(self, path: str) -> bool: ...


class DiskFileSource:
    """``FileSource`` reading UTF-8 files from the local filesystem."""

    def read_text(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8")

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)


@dataclass(slots=True)
class MemoryFileSource:
    """In-memory ``FileSource`` keyed by normalized path."""

    files: Dict[str, str] = field(default_factory=dict)

    def read_text(self, path: str) -> str:
        try:
            return self.files[os.path.normpath(path)]
        except KeyError as exc:
            raise FileNotFoundError(path) from exc

    def exists(self, path: str) -> bool:
        return os.path.normpath(path) in self.files

    def add(self, path: str, text: str) -> None:
        self.files[os.path.normpath(path)] = text


class FeatureResolver:
    """Map a feature name to ``feature.el`` or ``a/b.el`` under the load paths."""

    def __init__(self, load_paths: Sequence[str], source: FileSource) -> None:
        self.load_paths = list(load_paths)
        self.source = source

    def candidates(self, feature: str) -> list[str]:
        names = [feature + SOURCE_SUFFIX]
        nested = feature.replace("-", "/") + SOURCE_SUFFIX
        if nested not in names:
            names.append(nested)
        return names

    def resolve(self, feature: str) -> Optional[str]:
        for directory in self.load_paths:
            for relative in self.candidates(feature):
                path = os.path.join(directory, relative)
                if self.source.exists(path):
                    return path
        return None

    def add_path(self, directory: str) -> None:
        if directory not in self.load_paths:
            self.load_paths.append(directory)


def feature_name(value: Any) -> str:
    if isinstance(value, Symbol):
        return value.name
    if isinstance(value, str):
        return value
    raise ConditionSignal("wrong-type-argument", value, message=f"not a feature name: {value!r}")


def load_file(rt: "Runtime", path: str) -> Any:
    """Read, preprocess and evaluate ``path``; returns the last value."""

    source = rt.file_source.read_text(path)
    directory = os.path.dirname(os.path.abspath(path))
    rt.resolver.add_path(directory)
    return rt.eval_string(source, filename=path)


def _resolve_load_target(rt: "Runtime", target: str) -> Optional[str]:
    if target.endswith(SOURCE_SUFFIX):
        return target if rt.file_source.exists(target) else rt.resolver.resolve(target[: -len(SOURCE_SUFFIX)])
    if rt.file_source.exists(target + SOURCE_SUFFIX):
        return target + SOURCE_SUFFIX
    return rt.resolver.resolve(target)


def load(rt: "Runtime", file: Any, noerror: Any = NIL, *_: Any) -> Any:
    target = feature_name(file)
    path = _resolve_load_target(rt, target)
    if path is None:
        if truthy(noerror):
            return NIL
        raise ConditionSignal(
            "file-missing",
            target,
            message=f"Cannot open load file: {target}",
        )
    load_file(rt, path)
    return T


def require(rt: "Runtime", feature: Any, filename: Any = NIL, noerror: Any = NIL) -> Any:
    name = feature_name(feature)
    if name in rt.features or name in rt.loading:
        return feature
    path = None
    if truthy(filename):
        path = _resolve_load_target(rt, feature_name(filename))
    if path is None:
        path = rt.resolver.resolve(name)
    if path is not None:
        rt.loading.add(name)
        try:
            load_file(rt, path)
        finally:
            rt.loading.discard(name)
        rt.features.add(name)
        return feature
    if truthy(noerror):
        return NIL
    raise ConditionSignal(
        "file-missing",
        name,
        message=f"Required feature is not available: {name}",
    )


def provide(rt: "Runtime", feature: Any, *_: Any) -> Any:
    rt.features.add(feature_name(feature))
    return feature


def featurep(rt: "Runtime", feature: Any, *_: Any) -> Any:
    return T if feature_name(feature) in rt.features else NIL


LOADER_PRIMITIVES: Dict[str, tuple[Callable[..., Any], int, Optional[int]]] = {
    "load": (load, 1, 5),
    "require": (require, 1, 3),
    "provide": (provide, 1, 2),
    "featurep": (featurep, 1, 2),
}


def install(rt: "Runtime") -> None:
    for name, (handler, minimum, maximum) in LOADER_PRIMITIVES.items():
        rt.interpreter.define_primitive(name, partial(handler, rt), minimum, maximum)


__all__ = [
    "FileSource",
    "DiskFileSource",
    "MemoryFileSource",
    "FeatureResolver",
    "feature_name",
    "load_file",
    "load",
    "require",
    "provide",
    "featurep",
    "install",
]
